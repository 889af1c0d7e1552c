"""Reader for SCATFUN tabulated BSDF files.

Two entry points are provided:

    read_table: Decode a file or raise FormatError.
    load_table: Decode a file, turning any FormatError into one logged
        diagnostic plus the sentinel table. Material code uses this one so
        a broken BSDF file only removes an appearance from the scene.

After the header, the file holds (in order) the elevation cosines, the
row-major marginal CDF, interleaved (offset, length) pairs for every
elevation pair, and the shared coefficient pool. Everything is assembled
in local arrays first; the ScatteringTable is only created once every
read and check has passed, so a failure never leaves a half-built table.

Example:
    >>> from scatfun.io.reader import load_table
    >>> result = load_table("coated_copper.bsdf")
    >>> if result.ok:
    ...     print(result.table.summary())
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Literal

import numpy as np
import numpy.typing as npt

from scatfun.core.errors import ErrorKind, FormatError
from scatfun.core.table import (
    ScatteringTable,
    compute_reciprocals,
    compute_zeroth_coefficients,
    find_bad_slices,
)
from scatfun.io.header import TableHeader, decode_words, read_header, validate_header

logger = logging.getLogger(__name__)

Precision = Literal["float32", "float64"]


@dataclass(frozen=True)
class ReadOptions:
    """Options controlling how a table is decoded.

    Attributes:
        precision: In-memory floating point type. Files always store
            float32; "float64" widens every value after reading.
        check_slices: Verify that every (offset, length) pair lies inside
            the coefficient pool and within max_order. When disabled, a
            non-empty slice starting outside the pool is still CORRUPT.
    """

    precision: Precision = "float32"
    check_slices: bool = True

    def __post_init__(self) -> None:
        if self.precision not in ("float32", "float64"):
            raise ValueError(f"Unknown precision: {self.precision}")

    @property
    def dtype(self) -> np.dtype[Any]:
        return np.dtype(self.precision)


DEFAULT_OPTIONS = ReadOptions()


@dataclass(frozen=True)
class LoadResult:
    """Outcome of load_table.

    Attributes:
        table: The decoded table, or the sentinel table on failure.
        error: The failure, or None on success.
    """

    table: ScatteringTable
    error: FormatError | None = None

    @property
    def ok(self) -> bool:
        """True if the file was decoded successfully."""
        return self.error is None


def open_table_file(path: str | Path) -> BinaryIO:
    """Open a table file for binary reading.

    Raises:
        FormatError: NOT_FOUND if the file cannot be opened.
    """
    path = Path(path)
    try:
        return path.open("rb")
    except OSError as e:
        raise FormatError(ErrorKind.NOT_FOUND, path, e.strerror or str(e)) from e


def _check_available(stream: BinaryIO, header: TableHeader, path: Path) -> None:
    """Fail with TRUNCATED before allocating sections the file cannot hold."""
    position = stream.tell()
    remaining = stream.seek(0, io.SEEK_END) - position
    stream.seek(position)

    n = header.elevation_count
    sections = (
        ("elevation table", 4 * n),
        ("marginal CDF", 4 * n * n),
        ("slice table", 8 * n * n),
        ("coefficient pool", 4 * header.coeff_count),
    )
    for what, size in sections:
        if size > remaining:
            raise FormatError(
                ErrorKind.TRUNCATED, path, f"{what} has {max(remaining, 0)} of {size} bytes"
            )
        remaining -= size


def _read_exact(stream: BinaryIO, size: int, path: Path, what: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise FormatError(ErrorKind.TRUNCATED, path, f"{what} has {len(data)} of {size} bytes")
    return data


def _read_floats(
    stream: BinaryIO, count: int, dtype: np.dtype[Any], path: Path, what: str
) -> npt.NDArray[Any]:
    """Read ``count`` float32 words and convert to the in-memory precision."""
    raw = _read_exact(stream, 4 * count, path, what)
    return decode_words(raw, np.float32).astype(dtype, copy=False)


def _read_ints(stream: BinaryIO, count: int, path: Path, what: str) -> npt.NDArray[np.int32]:
    raw = _read_exact(stream, 4 * count, path, what)
    return decode_words(raw, np.int32)


def _split_slices(
    offset_and_length: npt.NDArray[np.int32],
) -> tuple[npt.NDArray[np.int32], npt.NDArray[np.int32]]:
    """De-interleave (offset, length) pairs into two contiguous arrays."""
    pairs = offset_and_length.reshape(-1, 2)
    return np.ascontiguousarray(pairs[:, 0]), np.ascontiguousarray(pairs[:, 1])


def _decode(
    stream: BinaryIO, path: Path, options: ReadOptions
) -> ScatteringTable:
    header: TableHeader = read_header(stream, path)
    validate_header(header, path)
    _check_available(stream, header, path)

    n = header.elevation_count
    pair_count = header.pair_count
    dtype = options.dtype

    elevations = _read_floats(stream, n, dtype, path, "elevation table")
    marginal_cdf = _read_floats(stream, pair_count, dtype, path, "marginal CDF").reshape(n, n)
    offset_and_length = _read_ints(stream, 2 * pair_count, path, "slice table")
    coefficient_pool = _read_floats(
        stream, header.coeff_count, dtype, path, "coefficient pool"
    )

    slice_offset, slice_length = _split_slices(offset_and_length)

    if options.check_slices:
        bad = find_bad_slices(slice_offset, slice_length, header.coeff_count, header.max_order)
        if bad.size:
            k = int(bad[0])
            raise FormatError(
                ErrorKind.CORRUPT,
                path,
                f"slice {k} (offset {int(slice_offset[k])}, length {int(slice_length[k])}) "
                f"exceeds {header.coeff_count} coefficients or max order {header.max_order}",
            )

    try:
        zeroth_coeff = compute_zeroth_coefficients(coefficient_pool, slice_offset, slice_length)
    except IndexError as e:
        # Only reachable with check_slices disabled
        raise FormatError(ErrorKind.CORRUPT, path, f"slice offset outside coefficient pool ({e})") from e
    reciprocals = compute_reciprocals(header.max_order, dtype)

    return ScatteringTable(
        elevation_count=n,
        max_order=header.max_order,
        channel_count=header.channel_count,
        relative_ior=header.relative_ior,
        elevations=elevations,
        marginal_cdf=marginal_cdf,
        coefficient_pool=coefficient_pool,
        slice_offset=slice_offset,
        slice_length=slice_length,
        zeroth_coeff=zeroth_coeff,
        reciprocals=reciprocals,
    )


def read_table(path: str | Path, *, options: ReadOptions | None = None) -> ScatteringTable:
    """Decode a SCATFUN file into a ScatteringTable.

    Args:
        path: Path of the file to read.
        options: Decoding options. Defaults to float32 with slice checks.

    Returns:
        The decoded, read-only table.

    Raises:
        FormatError: NOT_FOUND if the file cannot be opened, BAD_MAGIC for a
            wrong signature, UNSUPPORTED for extrapolated, textured or
            non-1/3-channel files, TRUNCATED for short files, CORRUPT for
            inconsistent counts or slices.
    """
    path = Path(path)
    options = options or DEFAULT_OPTIONS
    with open_table_file(path) as stream:
        return _decode(stream, path, options)


def load_table(path: str | Path, *, options: ReadOptions | None = None) -> LoadResult:
    """Decode a SCATFUN file, falling back to the sentinel table on failure.

    Exactly one error record naming the file is logged per failed load.

    Args:
        path: Path of the file to read.
        options: Decoding options.

    Returns:
        A LoadResult holding the table and, on failure, the FormatError.
    """
    try:
        table = read_table(path, options=options)
    except FormatError as e:
        logger.error("%s", e)
        return LoadResult(table=ScatteringTable.empty(), error=e)

    logger.debug("Loaded tabulated BSDF %s: %s", path, table.summary())
    return LoadResult(table=table)
