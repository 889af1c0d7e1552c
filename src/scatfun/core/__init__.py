"""Core data types for tabulated Fourier BSDFs.

Components:
    table: The ScatteringTable container and its derived lookup arrays
    errors: FormatError and the ErrorKind taxonomy used by the reader

Tables are plain data. They perform no interpolation, sampling, or series
evaluation; those belong to the integrator that consumes them.
"""

from .errors import ErrorKind, FormatError
from .table import (
    SUPPORTED_CHANNEL_COUNTS,
    ScatteringTable,
    compute_reciprocals,
    compute_zeroth_coefficients,
    find_bad_slices,
    table_field_names,
)

__all__ = [
    # Errors
    "ErrorKind",
    "FormatError",
    # Table
    "ScatteringTable",
    "SUPPORTED_CHANNEL_COUNTS",
    "compute_reciprocals",
    "compute_zeroth_coefficients",
    "find_bad_slices",
    "table_field_names",
]
