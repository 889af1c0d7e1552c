"""Error types raised while decoding scattering-function files.

Every failure the reader can detect is reported as a single FormatError
carrying an ErrorKind, the offending path, and a short detail string.
None of them are retryable: a malformed file stays malformed.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorKind(Enum):
    """Categories of scattering-function file failures."""

    NOT_FOUND = "not_found"  # Missing or unreadable file
    BAD_MAGIC = "bad_magic"  # Wrong signature or version byte
    UNSUPPORTED = "unsupported"  # Extrapolation, textured, or odd channel count
    TRUNCATED = "truncated"  # Stream ended before the expected data
    CORRUPT = "corrupt"  # Counts or slices that break table invariants


_DESCRIPTIONS = {
    ErrorKind.NOT_FOUND: "could not be opened",
    ErrorKind.BAD_MAGIC: "is not a version 1 SCATFUN file",
    ErrorKind.UNSUPPORTED: "uses an unsupported feature",
    ErrorKind.TRUNCATED: "ends before all table data was read",
    ErrorKind.CORRUPT: "contains inconsistent table data",
}


class FormatError(Exception):
    """A scattering-function file could not be turned into a table.

    Attributes:
        kind: The failure category.
        path: The file that was being read.
        detail: Extra context, e.g. the offending header value.
    """

    def __init__(self, kind: ErrorKind, path: str | Path, detail: str = "") -> None:
        self.kind = kind
        self.path = Path(path)
        self.detail = detail
        super().__init__(self._format())

    def _format(self) -> str:
        message = f'Tabulated BSDF file "{self.path}" {_DESCRIPTIONS[self.kind]}'
        if self.detail:
            message += f": {self.detail}"
        return message
