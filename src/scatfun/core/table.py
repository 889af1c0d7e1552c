"""In-memory scattering table for tabulated Fourier BSDFs.

A ScatteringTable stores an isotropic BSDF in a spline-in-elevation,
Fourier-in-azimuth basis. Both incident and outgoing directions are
discretized by the cosines of their elevation angles (``elevations``);
each (incoming, outgoing) elevation pair owns a variable-length run of
Fourier coefficients inside one shared ``coefficient_pool``.

Pair indices are row-major: pair ``k = i * n + o`` for incoming index ``i``
and outgoing index ``o``, where ``n = elevation_count``.

Besides the data stored verbatim in a file, the table carries derived
lookup arrays so an evaluator never has to chase indirections or divide:

    - slice_offset / slice_length: split from the interleaved pairs on disk
    - zeroth_coeff: the order-0 term of every slice
    - reciprocals: 1 / j for each series order j

Example:
    >>> from scatfun.io.reader import read_table
    >>> table = read_table("paint.bsdf")
    >>> k = table.pair_index(3, 5)
    >>> table.slice(k)[0] == table.zeroth_coeff[k]
    True
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

import numpy as np
import numpy.typing as npt

# Channel counts an active table may carry (monochromatic or RGB)
SUPPORTED_CHANNEL_COUNTS = (1, 3)

_ARRAY_FIELDS = (
    "elevations",
    "marginal_cdf",
    "coefficient_pool",
    "slice_offset",
    "slice_length",
    "zeroth_coeff",
    "reciprocals",
)


def compute_reciprocals(max_order: int, dtype: npt.DTypeLike = np.float32) -> npt.NDArray[Any]:
    """Build the divisor table used by the Fourier series recurrence.

    Entry ``j`` holds ``1 / j``. Order 0 has no reciprocal; it is stored
    as NaN so that an accidental read poisons the result instead of
    quietly returning infinity.

    Args:
        max_order: Length of the longest Fourier series in the table.
        dtype: Floating point type of the result.

    Returns:
        Array of shape (max_order,).
    """
    reciprocals = np.empty(max_order, dtype=dtype)
    if max_order > 0:
        reciprocals[0] = np.nan
        reciprocals[1:] = 1.0 / np.arange(1, max_order, dtype=np.float64)
    return reciprocals


def compute_zeroth_coefficients(
    coefficient_pool: npt.NDArray[Any],
    slice_offset: npt.NDArray[np.int32],
    slice_length: npt.NDArray[np.int32],
) -> npt.NDArray[Any]:
    """Cache the first coefficient of every non-empty slice.

    Empty slices get 0. Offsets of empty slices are never dereferenced,
    so they may point at the end of the pool.

    Raises:
        IndexError: If a non-empty slice starts outside the pool. Negative
            offsets are rejected rather than wrapped.
    """
    zeroth = np.zeros(slice_offset.shape, dtype=coefficient_pool.dtype)
    nonempty = slice_length > 0
    starts = slice_offset[nonempty]
    if starts.size and int(starts.min()) < 0:
        raise IndexError(f"slice offset {int(starts.min())} is negative")
    zeroth[nonempty] = coefficient_pool[starts]
    return zeroth


@dataclass(frozen=True, eq=False)
class ScatteringTable:
    """Decoded tabulated BSDF.

    The table takes ownership of the arrays it is given and marks them
    read-only, so a finished table can be shared by any number of render
    workers without synchronization.

    A table whose ``channel_count`` is 0 is the sentinel meaning "no
    scattering function" (see :meth:`empty`). It is never evaluated.

    Attributes:
        elevation_count: Number of elevation samples ``n`` (nMu).
        max_order: Longest Fourier series occurring in the table (mMax).
        channel_count: 1 (monochromatic) or 3 (RGB); 0 for the sentinel.
        relative_ior: Relative index of refraction, eta(bottom) / eta(top).
        elevations: Elevation cosines, shape (n,), ascending by convention.
        marginal_cdf: Shape (n, n); row i is the CDF over outgoing index
            for incoming index i.
        coefficient_pool: Every Fourier coefficient, shape (coeff_count,).
        slice_offset: Start of each pair's slice in the pool, shape (n*n,).
        slice_length: Number of coefficients of each pair, shape (n*n,).
        zeroth_coeff: Cached order-0 coefficient per pair, shape (n*n,).
        reciprocals: ``1 / j`` per order, shape (max_order,). Index 0 is NaN.
    """

    elevation_count: int
    max_order: int
    channel_count: int
    relative_ior: float
    elevations: npt.NDArray[Any]
    marginal_cdf: npt.NDArray[Any]
    coefficient_pool: npt.NDArray[Any]
    slice_offset: npt.NDArray[np.int32]
    slice_length: npt.NDArray[np.int32]
    zeroth_coeff: npt.NDArray[Any]
    reciprocals: npt.NDArray[Any]

    def __post_init__(self) -> None:
        for name in _ARRAY_FIELDS:
            array = np.ascontiguousarray(getattr(self, name))
            array.setflags(write=False)
            object.__setattr__(self, name, array)

    @classmethod
    def empty(cls) -> ScatteringTable:
        """Return the sentinel table (no channels, every array empty)."""
        return cls(
            elevation_count=0,
            max_order=0,
            channel_count=0,
            relative_ior=0.0,
            elevations=np.zeros(0, dtype=np.float32),
            marginal_cdf=np.zeros((0, 0), dtype=np.float32),
            coefficient_pool=np.zeros(0, dtype=np.float32),
            slice_offset=np.zeros(0, dtype=np.int32),
            slice_length=np.zeros(0, dtype=np.int32),
            zeroth_coeff=np.zeros(0, dtype=np.float32),
            reciprocals=np.zeros(0, dtype=np.float32),
        )

    @property
    def is_sentinel(self) -> bool:
        """True if this table stands for "no scattering function"."""
        return self.channel_count == 0

    @property
    def coeff_count(self) -> int:
        """Total number of coefficients in the shared pool."""
        return int(self.coefficient_pool.shape[0])

    @property
    def pair_count(self) -> int:
        """Number of (incoming, outgoing) elevation pairs, ``n * n``."""
        return self.elevation_count * self.elevation_count

    def pair_index(self, incoming: int, outgoing: int) -> int:
        """Flatten an (incoming, outgoing) elevation index pair."""
        return incoming * self.elevation_count + outgoing

    def slice(self, k: int) -> npt.NDArray[Any]:
        """Return the Fourier coefficients of pair ``k`` (a read-only view)."""
        offset = int(self.slice_offset[k])
        return self.coefficient_pool[offset : offset + int(self.slice_length[k])]

    def validate(self) -> None:
        """Check the structural invariants of the table.

        Raises:
            ValueError: If shapes disagree with the counts, a slice runs
                outside the coefficient pool or exceeds ``max_order``, the
                channel count is unsupported, or the zeroth-coefficient
                cache is stale.
        """
        if self.is_sentinel:
            for name in _ARRAY_FIELDS:
                if getattr(self, name).size != 0:
                    raise ValueError(f"Sentinel table has non-empty {name}")
            return

        if self.channel_count not in SUPPORTED_CHANNEL_COUNTS:
            raise ValueError(
                f"channel_count = {self.channel_count} is not one of {SUPPORTED_CHANNEL_COUNTS}"
            )
        if self.elevation_count < 1:
            raise ValueError(f"elevation_count = {self.elevation_count} must be >= 1")
        if self.max_order < 1:
            raise ValueError(f"max_order = {self.max_order} must be >= 1")

        n = self.elevation_count
        expected_shapes = {
            "elevations": (n,),
            "marginal_cdf": (n, n),
            "slice_offset": (n * n,),
            "slice_length": (n * n,),
            "zeroth_coeff": (n * n,),
            "reciprocals": (self.max_order,),
        }
        for name, shape in expected_shapes.items():
            actual = getattr(self, name).shape
            if actual != shape:
                raise ValueError(f"{name} has shape {actual}, expected {shape}")

        bad = find_bad_slices(self.slice_offset, self.slice_length, self.coeff_count, self.max_order)
        if bad.size:
            k = int(bad[0])
            raise ValueError(
                f"Slice {k} (offset {int(self.slice_offset[k])}, length "
                f"{int(self.slice_length[k])}) does not fit a pool of "
                f"{self.coeff_count} coefficients with max_order {self.max_order}"
            )

        expected_zeroth = compute_zeroth_coefficients(
            self.coefficient_pool, self.slice_offset, self.slice_length
        )
        if not np.array_equal(expected_zeroth, self.zeroth_coeff):
            raise ValueError("zeroth_coeff does not match the coefficient pool")

    def summary(self) -> dict[str, Any]:
        """Scalar description of the table, for logs and tooling."""
        return {
            "elevation_count": self.elevation_count,
            "coeff_count": self.coeff_count,
            "max_order": self.max_order,
            "channel_count": self.channel_count,
            "relative_ior": float(self.relative_ior),
            "dtype": str(self.coefficient_pool.dtype),
        }

    def __repr__(self) -> str:
        items = ", ".join(f"{key}={value!r}" for key, value in self.summary().items())
        return f"ScatteringTable({items})"


def find_bad_slices(
    slice_offset: npt.NDArray[np.int32],
    slice_length: npt.NDArray[np.int32],
    coeff_count: int,
    max_order: int,
) -> npt.NDArray[np.intp]:
    """Return the pair indices whose slice breaks the pool bounds.

    A slice is valid when ``0 <= offset``, ``0 <= length <= max_order`` and
    ``offset + length <= coeff_count``.
    """
    offset = slice_offset.astype(np.int64)
    length = slice_length.astype(np.int64)
    bad = (offset < 0) | (length < 0) | (length > max_order) | (offset + length > coeff_count)
    return np.flatnonzero(bad)


def table_field_names() -> tuple[str, ...]:
    """Names of all ScatteringTable fields, in declaration order."""
    return tuple(f.name for f in fields(ScatteringTable))
