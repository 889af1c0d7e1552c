"""Taichi field storage for scattering tables.

A ScatteringTable lives in NumPy arrays on the host. Before a kernel can
evaluate it, its arrays are copied into Taichi fields. FourierTableFields
owns those fields and exposes O(1) accessors as Taichi functions, so an
integrator can reach any slice, coefficient, or reciprocal without
searching.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from scatfun.io.reader import read_table
    >>> from scatfun.materials.fields import FourierTableFields
    >>> fields = FourierTableFields(read_table("paint.bsdf"))
    >>> @ti.kernel
    ... def first_term(i: ti.i32, o: ti.i32) -> ti.f32:
    ...     return fields.zeroth_coefficient(fields.pair_index(i, o))
"""

from typing import Any

import numpy as np
import numpy.typing as npt
import taichi as ti

from scatfun.core.table import ScatteringTable


def _padded(array: npt.NDArray[Any], dtype: npt.DTypeLike) -> npt.NDArray[Any]:
    """Copy a 1D array for upload, padding empty arrays to one element.

    Taichi fields cannot have zero size; the padding entry is never read
    because every slice that would reach it has length 0.
    """
    if array.size == 0:
        return np.zeros(1, dtype=dtype)
    return np.ascontiguousarray(array, dtype=dtype)


@ti.data_oriented
class FourierTableFields:
    """GPU-side copy of one ScatteringTable.

    Attributes:
        elevation_count: Number of elevation samples n.
        max_order: Longest Fourier series length.
        channel_count: 1 or 3.
        relative_ior: Relative index of refraction.
        coeff_count: Number of coefficients in the pool.
        elevations: Field of shape (n,).
        marginal_cdf: Field of shape (n, n).
        coefficient_pool: Field of shape (max(coeff_count, 1),).
        slice_offsets: Field of shape (n*n,).
        slice_lengths: Field of shape (n*n,).
        zeroth_coeffs: Field of shape (n*n,).
        reciprocal_table: Field of shape (max_order,).
    """

    def __init__(self, table: ScatteringTable) -> None:
        """Upload ``table`` into freshly allocated fields.

        Raises:
            ValueError: If ``table`` is the sentinel table.
        """
        if table.is_sentinel:
            raise ValueError("Cannot upload the sentinel table (no scattering function)")

        n = table.elevation_count
        self.elevation_count = n
        self.max_order = table.max_order
        self.channel_count = table.channel_count
        self.relative_ior = float(table.relative_ior)
        self.coeff_count = table.coeff_count

        np_real = np.float64 if table.coefficient_pool.dtype == np.float64 else np.float32
        real = ti.f64 if np_real is np.float64 else ti.f32
        self.dtype = real

        self.elevations = ti.field(dtype=real, shape=n)
        self.marginal_cdf = ti.field(dtype=real, shape=(n, n))
        self.coefficient_pool = ti.field(dtype=real, shape=max(table.coeff_count, 1))
        self.slice_offsets = ti.field(dtype=ti.i32, shape=n * n)
        self.slice_lengths = ti.field(dtype=ti.i32, shape=n * n)
        self.zeroth_coeffs = ti.field(dtype=real, shape=n * n)
        self.reciprocal_table = ti.field(dtype=real, shape=table.max_order)

        self.elevations.from_numpy(np.ascontiguousarray(table.elevations, dtype=np_real))
        self.marginal_cdf.from_numpy(np.ascontiguousarray(table.marginal_cdf, dtype=np_real))
        self.coefficient_pool.from_numpy(_padded(table.coefficient_pool, np_real))
        self.slice_offsets.from_numpy(np.ascontiguousarray(table.slice_offset, dtype=np.int32))
        self.slice_lengths.from_numpy(np.ascontiguousarray(table.slice_length, dtype=np.int32))
        self.zeroth_coeffs.from_numpy(np.ascontiguousarray(table.zeroth_coeff, dtype=np_real))
        self.reciprocal_table.from_numpy(np.ascontiguousarray(table.reciprocals, dtype=np_real))

    @ti.func
    def pair_index(self, incoming: ti.i32, outgoing: ti.i32) -> ti.i32:
        """Flatten an (incoming, outgoing) elevation index pair."""
        return incoming * self.elevation_count + outgoing

    @ti.func
    def slice_offset(self, k: ti.i32) -> ti.i32:
        return self.slice_offsets[k]

    @ti.func
    def slice_length(self, k: ti.i32) -> ti.i32:
        return self.slice_lengths[k]

    @ti.func
    def zeroth_coefficient(self, k: ti.i32):
        """Order-0 coefficient of pair ``k`` (0 for an empty slice)."""
        return self.zeroth_coeffs[k]

    @ti.func
    def coefficient(self, k: ti.i32, order: ti.i32):
        """Coefficient ``order`` of pair ``k``; ``order`` must be < slice_length(k)."""
        return self.coefficient_pool[self.slice_offsets[k] + order]

    @ti.func
    def reciprocal(self, order: ti.i32):
        """``1 / order`` for ``order >= 1``. Index 0 holds NaN."""
        return self.reciprocal_table[order]

    @ti.func
    def elevation(self, i: ti.i32):
        return self.elevations[i]

    @ti.func
    def cdf(self, incoming: ti.i32, outgoing: ti.i32):
        return self.marginal_cdf[incoming, outgoing]
