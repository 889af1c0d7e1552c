"""Pytest configuration for scatfun tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session, and helpers
for producing SCATFUN files on disk.
"""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_fourier_registry():
    """Clear the Fourier material registry before and after each test."""
    from scatfun.materials.fourier import clear_fourier_materials

    clear_fourier_materials()
    yield
    clear_fourier_materials()


@pytest.fixture
def small_table():
    """Monochromatic table with two elevations, three coefficients, max order 2.

    Slices (row-major pairs): [0.5, 0.25], [0.125], [], [].
    All values are exactly representable as float32.
    """
    from scatfun.io.writer import build_table

    return build_table(
        elevations=[-0.5, 0.5],
        marginal_cdf=[[0.0, 1.0], [0.25, 1.0]],
        slices=[[0.5, 0.25], [0.125], [], []],
        channel_count=1,
        relative_ior=1.5,
    )


@pytest.fixture
def small_table_bytes(small_table):
    """The small table encoded as a SCATFUN file."""
    from scatfun.io.writer import encode_table

    return encode_table(small_table)


@pytest.fixture
def write_bsdf(tmp_path):
    """Return a function writing raw bytes to a file under tmp_path."""

    def _write(data: bytes, name: str = "table.bsdf"):
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def patch_int():
    """Return a function replacing the little-endian int32 at a byte offset."""

    def _patch(data: bytes, offset: int, value: int) -> bytes:
        word = np.array([value], dtype="<i4").tobytes()
        return data[:offset] + word + data[offset + 4 :]

    return _patch
