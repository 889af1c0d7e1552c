"""Fixed 64-byte header of SCATFUN files.

Layout (all words little-endian):

    offset  size  field
    0       7     identifier "SCATFUN"
    7       1     version (1)
    8       4     flags (int32)              0x01 BSDF, 0x02 harmonic extrapolation
    12      4     elevation_count (int32)    nMu
    16      4     coeff_count (int32)        total Fourier coefficients
    20      4     max_order (int32)          longest series (mMax)
    24      4     channel_count (int32)      1 or 3
    28      4     basis_count (int32)        basis functions, >1 means textured
    32      4     metadata_bytes (int32)     size of trailing metadata
    36      4     parameter_count (int32)    textured parameters
    40      4     parameter_value_count      textured parameter samples
    44      4     relative_ior (float32)     eta(bottom) / eta(top)
    48      8     alpha (2 x float32)        Beckmann roughness top/bottom
    56      8     unused (2 x float32)

Files are produced by the layerlab material designer, see "A Comprehensive
Framework for Rendering Layered Materials" (Jakob et al., SIGGRAPH 2014).
Only plain, untextured BSDF files are accepted here.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

import numpy as np
import numpy.typing as npt

from scatfun.core.errors import ErrorKind, FormatError
from scatfun.core.table import SUPPORTED_CHANNEL_COUNTS

MAGIC = b"SCATFUN"
VERSION = 1
SIGNATURE = MAGIC + bytes([VERSION])

HEADER_SIZE = 64
HEADER_PAYLOAD_SIZE = HEADER_SIZE - len(SIGNATURE)

# Header flag bits
FLAG_BSDF = 0x01
FLAG_HARMONIC_EXTRAPOLATION = 0x02

# Nine int32 words followed by five float32 words
_INT_WORDS = 9
_FLOAT_WORDS = 5

# Probed once at import; files are always little-endian on disk
HOST_BYTE_ORDER = sys.byteorder
HOST_IS_BIG_ENDIAN = HOST_BYTE_ORDER == "big"


def decode_words(
    raw: bytes,
    dtype: npt.DTypeLike,
    *,
    swap: bool = HOST_IS_BIG_ENDIAN,
) -> npt.NDArray[Any]:
    """Decode little-endian 32-bit words into a native-order array.

    The bytes are first viewed in host order; on a big-endian host every
    word is then byte-swapped back.

    Args:
        raw: Raw bytes, a multiple of 4 long.
        dtype: np.int32 or np.float32.
        swap: Whether to byte-swap each word. Defaults to the host probe.

    Returns:
        A writable array of native byte order.
    """
    words = np.frombuffer(raw, dtype=np.dtype(dtype).newbyteorder("="))
    if swap:
        return words.byteswap()
    return words.copy()


def encode_words(values: npt.ArrayLike, dtype: npt.DTypeLike) -> bytes:
    """Encode values as little-endian 32-bit words."""
    return np.asarray(values, dtype=np.dtype(dtype).newbyteorder("<")).tobytes()


@dataclass(frozen=True)
class TableHeader:
    """Decoded SCATFUN header fields.

    Attributes:
        flags: Feature bits (FLAG_BSDF, FLAG_HARMONIC_EXTRAPOLATION).
        elevation_count: Number of elevation samples (nMu).
        coeff_count: Total number of Fourier coefficients in the file.
        max_order: Coefficient count of the longest series (mMax).
        channel_count: Number of color channels.
        basis_count: Number of BSDF basis functions.
        metadata_bytes: Size of the descriptive metadata after the table.
        parameter_count: Number of textured material parameters.
        parameter_value_count: Total samples over all textured parameters.
        relative_ior: Relative index of refraction through the material.
        alpha: Beckmann-equivalent roughness of the top and bottom sides.
    """

    flags: int
    elevation_count: int
    coeff_count: int
    max_order: int
    channel_count: int
    basis_count: int
    metadata_bytes: int = 0
    parameter_count: int = 0
    parameter_value_count: int = 0
    relative_ior: float = 1.0
    alpha: tuple[float, float] = (0.0, 0.0)

    @classmethod
    def from_payload(cls, payload: bytes, *, swap: bool = HOST_IS_BIG_ENDIAN) -> TableHeader:
        """Parse the 56 bytes that follow the signature.

        Raises:
            ValueError: If the payload is not exactly 56 bytes.
        """
        if len(payload) != HEADER_PAYLOAD_SIZE:
            raise ValueError(
                f"Header payload must be exactly {HEADER_PAYLOAD_SIZE} bytes, got {len(payload)}"
            )
        split = 4 * _INT_WORDS
        ints = decode_words(payload[:split], np.int32, swap=swap)
        floats = decode_words(payload[split:], np.float32, swap=swap)
        return cls(
            flags=int(ints[0]),
            elevation_count=int(ints[1]),
            coeff_count=int(ints[2]),
            max_order=int(ints[3]),
            channel_count=int(ints[4]),
            basis_count=int(ints[5]),
            metadata_bytes=int(ints[6]),
            parameter_count=int(ints[7]),
            parameter_value_count=int(ints[8]),
            relative_ior=float(floats[0]),
            alpha=(float(floats[1]), float(floats[2])),
        )

    def to_bytes(self) -> bytes:
        """Encode the full 64-byte header, signature included."""
        ints = [
            self.flags,
            self.elevation_count,
            self.coeff_count,
            self.max_order,
            self.channel_count,
            self.basis_count,
            self.metadata_bytes,
            self.parameter_count,
            self.parameter_value_count,
        ]
        floats = [self.relative_ior, self.alpha[0], self.alpha[1], 0.0, 0.0]
        return SIGNATURE + encode_words(ints, np.int32) + encode_words(floats, np.float32)

    @property
    def pair_count(self) -> int:
        """Number of (incoming, outgoing) elevation pairs."""
        return self.elevation_count * self.elevation_count

    @property
    def data_size(self) -> int:
        """Bytes of table data expected after the header (metadata excluded)."""
        n = self.elevation_count
        return 4 * n + 4 * n * n + 8 * n * n + 4 * self.coeff_count


def read_header(stream: BinaryIO, path: str | Path) -> TableHeader:
    """Read and decode the signature and header from an open stream.

    Args:
        stream: Binary stream positioned at the start of the file.
        path: File name used in error messages.

    Returns:
        The decoded header. It has not been validated yet.

    Raises:
        FormatError: BAD_MAGIC if the signature or version is wrong,
            TRUNCATED if the stream ends inside the header.
    """
    signature = stream.read(len(SIGNATURE))
    if signature != SIGNATURE:
        if signature[: len(MAGIC)] == MAGIC and len(signature) == len(SIGNATURE):
            raise FormatError(ErrorKind.BAD_MAGIC, path, f"unsupported version {signature[-1]}")
        raise FormatError(ErrorKind.BAD_MAGIC, path)

    payload = stream.read(HEADER_PAYLOAD_SIZE)
    if len(payload) != HEADER_PAYLOAD_SIZE:
        raise FormatError(
            ErrorKind.TRUNCATED,
            path,
            f"header has {len(payload)} of {HEADER_PAYLOAD_SIZE} bytes",
        )
    return TableHeader.from_payload(payload)


def validate_header(header: TableHeader, path: str | Path) -> None:
    """Reject headers describing tables this reader does not support.

    Only monochromatic and RGB files with uniform (non-textured) material
    properties and without harmonic extrapolation are accepted.

    Raises:
        FormatError: UNSUPPORTED for feature flags, channel or basis counts;
            CORRUPT for counts no table can have.
    """
    if header.flags & FLAG_HARMONIC_EXTRAPOLATION:
        raise FormatError(ErrorKind.UNSUPPORTED, path, "harmonic extrapolation is not supported")
    if header.flags != FLAG_BSDF:
        raise FormatError(ErrorKind.UNSUPPORTED, path, f"flags = {header.flags:#x}")
    if header.channel_count not in SUPPORTED_CHANNEL_COUNTS:
        raise FormatError(
            ErrorKind.UNSUPPORTED,
            path,
            f"{header.channel_count} color channels (expected 1 or 3)",
        )
    if header.basis_count != 1:
        raise FormatError(
            ErrorKind.UNSUPPORTED,
            path,
            f"textured BSDF with {header.basis_count} basis functions",
        )

    if header.elevation_count <= 0:
        raise FormatError(ErrorKind.CORRUPT, path, f"elevation_count = {header.elevation_count}")
    if header.coeff_count < 0:
        raise FormatError(ErrorKind.CORRUPT, path, f"coeff_count = {header.coeff_count}")
    if header.max_order <= 0:
        raise FormatError(ErrorKind.CORRUPT, path, f"max_order = {header.max_order}")
