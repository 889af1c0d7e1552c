"""Reading and writing SCATFUN tabulated BSDF files.

Components:
    header: The fixed 64-byte header and little-endian word codec
    reader: read_table / load_table, turning files into ScatteringTables
    writer: build_table / encode_table / write_table for producing files
"""

from .header import (
    FLAG_BSDF,
    FLAG_HARMONIC_EXTRAPOLATION,
    HEADER_SIZE,
    HOST_BYTE_ORDER,
    MAGIC,
    SIGNATURE,
    VERSION,
    TableHeader,
    decode_words,
    encode_words,
    read_header,
    validate_header,
)
from .reader import (
    DEFAULT_OPTIONS,
    LoadResult,
    ReadOptions,
    load_table,
    open_table_file,
    read_table,
)
from .writer import build_table, encode_table, write_table

__all__ = [
    # Header
    "MAGIC",
    "VERSION",
    "SIGNATURE",
    "HEADER_SIZE",
    "FLAG_BSDF",
    "FLAG_HARMONIC_EXTRAPOLATION",
    "HOST_BYTE_ORDER",
    "TableHeader",
    "decode_words",
    "encode_words",
    "read_header",
    "validate_header",
    # Reader
    "ReadOptions",
    "DEFAULT_OPTIONS",
    "LoadResult",
    "read_table",
    "load_table",
    "open_table_file",
    # Writer
    "build_table",
    "encode_table",
    "write_table",
]
