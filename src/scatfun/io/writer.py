"""Writer for SCATFUN tabulated BSDF files.

The writer is the producer-side mirror of the reader. It is used to build
synthetic tables for tests and examples and to re-export tables decoded
at a different precision. Output is always little-endian and float32,
whatever the host or the in-memory precision.

Example:
    >>> from scatfun.io.writer import build_table, write_table
    >>> table = build_table(
    ...     elevations=[-1.0, 1.0],
    ...     marginal_cdf=[[0.0, 1.0], [0.0, 1.0]],
    ...     slices=[[0.5, 0.1], [0.2], [], [0.3]],
    ...     channel_count=1,
    ...     relative_ior=1.5,
    ... )
    >>> write_table("synthetic.bsdf", table)
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np
import numpy.typing as npt

from scatfun.core.table import (
    ScatteringTable,
    compute_reciprocals,
    compute_zeroth_coefficients,
)
from scatfun.io.header import FLAG_BSDF, TableHeader, encode_words


def build_table(
    elevations: npt.ArrayLike,
    marginal_cdf: npt.ArrayLike,
    slices: Sequence[Sequence[float]],
    *,
    channel_count: int,
    relative_ior: float,
    max_order: int | None = None,
    dtype: npt.DTypeLike = np.float32,
) -> ScatteringTable:
    """Assemble a ScatteringTable from per-pair coefficient lists.

    The slices are concatenated into the coefficient pool in pair order,
    which is also how layerlab lays them out.

    Args:
        elevations: Elevation cosines, length n.
        marginal_cdf: n x n marginal CDF (or n*n values, row-major).
        slices: n*n coefficient sequences, one per (incoming, outgoing) pair
            in row-major order. Empty sequences are allowed.
        channel_count: 1 or 3.
        relative_ior: Relative index of refraction.
        max_order: Longest series length. Defaults to the longest slice
            (at least 1).
        dtype: In-memory floating point type.

    Returns:
        A validated ScatteringTable.

    Raises:
        ValueError: If the inputs do not describe a valid table.
    """
    elevations = np.asarray(elevations, dtype=dtype).reshape(-1)
    n = elevations.shape[0]
    marginal_cdf = np.asarray(marginal_cdf, dtype=dtype)
    if marginal_cdf.size != n * n:
        raise ValueError(f"marginal_cdf has {marginal_cdf.size} values, expected {n * n}")
    if len(slices) != n * n:
        raise ValueError(f"Got {len(slices)} slices, expected {n * n}")

    slice_length = np.array([len(s) for s in slices], dtype=np.int32)
    slice_offset = np.zeros(n * n, dtype=np.int32)
    if n:
        slice_offset[1:] = np.cumsum(slice_length[:-1])
    coefficient_pool = np.array(
        [c for s in slices for c in s], dtype=dtype
    ).reshape(-1)

    if max_order is None:
        max_order = max(1, int(slice_length.max(initial=0)))

    table = ScatteringTable(
        elevation_count=n,
        max_order=max_order,
        channel_count=channel_count,
        relative_ior=float(relative_ior),
        elevations=elevations,
        marginal_cdf=marginal_cdf.reshape(n, n),
        coefficient_pool=coefficient_pool,
        slice_offset=slice_offset,
        slice_length=slice_length,
        zeroth_coeff=compute_zeroth_coefficients(coefficient_pool, slice_offset, slice_length),
        reciprocals=compute_reciprocals(max_order, dtype),
    )
    table.validate()
    return table


def encode_table(
    table: ScatteringTable,
    *,
    flags: int = FLAG_BSDF,
    basis_count: int = 1,
    metadata: bytes = b"",
    alpha: tuple[float, float] = (0.0, 0.0),
) -> bytes:
    """Encode a table in the SCATFUN layout.

    ``flags`` and ``basis_count`` are exposed so that files the reader must
    reject (extrapolated or textured) can be produced.

    Args:
        table: The table to encode. Must not be the sentinel.
        flags: Header flag bits.
        basis_count: Number of basis functions written to the header.
        metadata: Descriptive bytes appended after the coefficient pool.
        alpha: Roughness of the top and bottom interfaces.

    Returns:
        The encoded file contents.

    Raises:
        ValueError: If ``table`` is the sentinel.
    """
    if table.is_sentinel:
        raise ValueError("Cannot encode the sentinel table")

    header = TableHeader(
        flags=flags,
        elevation_count=table.elevation_count,
        coeff_count=table.coeff_count,
        max_order=table.max_order,
        channel_count=table.channel_count,
        basis_count=basis_count,
        metadata_bytes=len(metadata),
        relative_ior=table.relative_ior,
        alpha=alpha,
    )

    # Interleave back into the on-disk (offset, length) pairs
    offset_and_length = np.empty((table.pair_count, 2), dtype=np.int32)
    offset_and_length[:, 0] = table.slice_offset
    offset_and_length[:, 1] = table.slice_length

    parts = [
        header.to_bytes(),
        encode_words(table.elevations, np.float32),
        encode_words(table.marginal_cdf.reshape(-1), np.float32),
        encode_words(offset_and_length.reshape(-1), np.int32),
        encode_words(table.coefficient_pool, np.float32),
        metadata,
    ]
    return b"".join(parts)


def write_table(
    path: str | Path,
    table: ScatteringTable,
    *,
    flags: int = FLAG_BSDF,
    basis_count: int = 1,
    metadata: bytes = b"",
    alpha: tuple[float, float] = (0.0, 0.0),
) -> Path:
    """Encode a table and write it to ``path``.

    Keyword arguments are those of :func:`encode_table`.

    Returns:
        The written path.
    """
    path = Path(path)
    data = encode_table(
        table, flags=flags, basis_count=basis_count, metadata=metadata, alpha=alpha
    )
    path.write_bytes(data)
    return path
