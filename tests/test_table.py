"""Unit tests for the ScatteringTable container.

Tests cover:
- Sentinel table
- Read-only arrays
- Pair indexing and slice views
- Derived arrays (zeroth coefficients, reciprocals)
- Invariant validation
"""

import math

import numpy as np
import pytest

from scatfun.core.table import (
    ScatteringTable,
    compute_reciprocals,
    compute_zeroth_coefficients,
    find_bad_slices,
    table_field_names,
)


def _fields(table, **overrides):
    values = {name: getattr(table, name) for name in table_field_names()}
    values.update(overrides)
    return values


class TestSentinel:
    """Tests for the zero-channel sentinel table."""

    def test_empty_has_zero_channels(self):
        table = ScatteringTable.empty()
        assert table.channel_count == 0
        assert table.is_sentinel

    def test_empty_arrays_are_empty(self):
        table = ScatteringTable.empty()
        for name in ("elevations", "coefficient_pool", "slice_offset", "slice_length",
                     "zeroth_coeff", "reciprocals"):
            assert getattr(table, name).size == 0
        assert table.marginal_cdf.shape == (0, 0)
        assert table.coeff_count == 0
        assert table.pair_count == 0

    def test_empty_validates(self):
        ScatteringTable.empty().validate()

    def test_sentinel_with_data_is_invalid(self, small_table):
        bad = ScatteringTable(**_fields(small_table, channel_count=0))
        with pytest.raises(ValueError):
            bad.validate()


class TestImmutability:
    """Tests that finished tables cannot be modified."""

    def test_arrays_are_read_only(self, small_table):
        with pytest.raises(ValueError):
            small_table.coefficient_pool[0] = 2.0
        with pytest.raises(ValueError):
            small_table.slice_offset[0] = 1

    def test_fields_are_frozen(self, small_table):
        with pytest.raises(AttributeError):
            small_table.channel_count = 3


class TestLookup:
    """Tests for pair indexing and slice access."""

    def test_pair_index_is_row_major(self, small_table):
        assert small_table.pair_index(0, 0) == 0
        assert small_table.pair_index(0, 1) == 1
        assert small_table.pair_index(1, 0) == 2
        assert small_table.pair_index(1, 1) == 3

    def test_slice_views(self, small_table):
        np.testing.assert_array_equal(small_table.slice(0), [0.5, 0.25])
        np.testing.assert_array_equal(small_table.slice(1), [0.125])
        assert small_table.slice(2).size == 0

    def test_slice_starts_with_zeroth_coefficient(self, small_table):
        for k in range(small_table.pair_count):
            if small_table.slice_length[k] > 0:
                assert small_table.slice(k)[0] == small_table.zeroth_coeff[k]
            else:
                assert small_table.zeroth_coeff[k] == 0.0

    def test_summary(self, small_table):
        summary = small_table.summary()
        assert summary["elevation_count"] == 2
        assert summary["coeff_count"] == 3
        assert summary["max_order"] == 2
        assert summary["channel_count"] == 1
        assert summary["relative_ior"] == pytest.approx(1.5)
        assert "ScatteringTable(" in repr(small_table)


class TestDerivedArrays:
    """Tests for the reciprocal and zeroth-coefficient helpers."""

    def test_reciprocals(self):
        recip = compute_reciprocals(8)
        assert recip.shape == (8,)
        for j in range(1, 8):
            assert recip[j] * j == pytest.approx(1.0, rel=1e-6)

    def test_reciprocal_zero_is_nan(self):
        assert math.isnan(compute_reciprocals(4)[0])

    def test_reciprocals_dtype(self):
        assert compute_reciprocals(3, np.float64).dtype == np.float64
        assert compute_reciprocals(3).dtype == np.float32

    def test_reciprocals_of_zero_order(self):
        assert compute_reciprocals(0).shape == (0,)

    def test_zeroth_coefficients(self):
        pool = np.array([3.0, 4.0, 5.0], dtype=np.float32)
        offsets = np.array([1, 3, 0], dtype=np.int32)
        lengths = np.array([2, 0, 1], dtype=np.int32)
        zeroth = compute_zeroth_coefficients(pool, offsets, lengths)
        np.testing.assert_array_equal(zeroth, [4.0, 0.0, 3.0])

    def test_zeroth_coefficients_negative_offset(self):
        pool = np.array([3.0, 4.0, 5.0], dtype=np.float32)
        offsets = np.array([-1, -5], dtype=np.int32)
        lengths = np.array([1, 0], dtype=np.int32)
        with pytest.raises(IndexError, match="negative"):
            compute_zeroth_coefficients(pool, offsets, lengths)

    def test_zeroth_coefficients_ignores_empty_negative_offset(self):
        pool = np.array([3.0], dtype=np.float32)
        offsets = np.array([0, -5], dtype=np.int32)
        lengths = np.array([1, 0], dtype=np.int32)
        np.testing.assert_array_equal(compute_zeroth_coefficients(pool, offsets, lengths), [3.0, 0.0])

    def test_find_bad_slices(self):
        offsets = np.array([0, 2, -1, 1], dtype=np.int32)
        lengths = np.array([2, 2, 1, 3], dtype=np.int32)
        # pair 1 runs past the pool, pair 2 starts before it, pair 3 exceeds max order
        bad = find_bad_slices(offsets, lengths, coeff_count=3, max_order=2)
        np.testing.assert_array_equal(bad, [1, 2, 3])


class TestValidation:
    """Tests for ScatteringTable.validate()."""

    def test_valid_table(self, small_table):
        small_table.validate()

    def test_rejects_bad_channel_count(self, small_table):
        with pytest.raises(ValueError, match="channel_count"):
            ScatteringTable(**_fields(small_table, channel_count=2)).validate()

    def test_rejects_wrong_shape(self, small_table):
        table = ScatteringTable(**_fields(small_table, elevations=np.zeros(3, np.float32)))
        with pytest.raises(ValueError, match="elevations"):
            table.validate()

    def test_rejects_slice_outside_pool(self, small_table):
        offsets = np.array([0, 2, 3, 3], dtype=np.int32)
        lengths = np.array([2, 2, 0, 0], dtype=np.int32)
        table = ScatteringTable(**_fields(small_table, slice_offset=offsets, slice_length=lengths))
        with pytest.raises(ValueError, match="Slice 1"):
            table.validate()

    def test_rejects_stale_zeroth_cache(self, small_table):
        zeroth = np.array([0.5, 0.0, 0.0, 0.0], dtype=np.float32)
        table = ScatteringTable(**_fields(small_table, zeroth_coeff=zeroth))
        with pytest.raises(ValueError, match="zeroth_coeff"):
            table.validate()
