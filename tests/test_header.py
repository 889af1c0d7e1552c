"""Unit tests for the SCATFUN header codec.

Tests cover:
- Little-endian word decoding on either host byte order
- Header encoding layout
- Signature and truncation errors
- Header validation (flags, channels, basis count, counts)
"""

import io
import sys

import numpy as np
import pytest

from scatfun.core.errors import ErrorKind, FormatError
from scatfun.io.header import (
    FLAG_BSDF,
    FLAG_HARMONIC_EXTRAPOLATION,
    HEADER_SIZE,
    HOST_BYTE_ORDER,
    SIGNATURE,
    TableHeader,
    decode_words,
    encode_words,
    read_header,
    validate_header,
)


def _header(**overrides):
    values = dict(
        flags=FLAG_BSDF,
        elevation_count=4,
        coeff_count=10,
        max_order=3,
        channel_count=3,
        basis_count=1,
        relative_ior=1.25,
    )
    values.update(overrides)
    return TableHeader(**values)


class TestWordCodec:
    """Tests for endian-portable word decoding."""

    def test_host_byte_order_probe(self):
        assert HOST_BYTE_ORDER == sys.byteorder

    def test_encode_is_little_endian(self):
        assert encode_words([1], np.int32) == b"\x01\x00\x00\x00"
        assert encode_words([1.0], np.float32) == b"\x00\x00\x80\x3f"

    def test_decode_little_endian(self):
        raw = b"\x01\x00\x00\x00\xff\xff\xff\xff"
        np.testing.assert_array_equal(decode_words(raw, np.int32), [1, -1])

    def test_decoded_array_is_native_and_writable(self):
        words = decode_words(encode_words([2.5, -1.0], np.float32), np.float32)
        assert words.dtype.isnative
        words[0] = 0.0

    def test_other_host_byte_order(self):
        """Bytes in the opposite of host order decode correctly once swapped.

        This is what a host of the other byte order sees when it reads a
        little-endian file natively.
        """
        values = np.array([7, -3, 1 << 20], dtype=np.int32)
        foreign = values.astype(values.dtype.newbyteorder("S")).tobytes()
        np.testing.assert_array_equal(decode_words(foreign, np.int32, swap=True), values)

        floats = np.array([0.25, -8.0], dtype=np.float32)
        foreign = floats.astype(floats.dtype.newbyteorder("S")).tobytes()
        np.testing.assert_array_equal(decode_words(foreign, np.float32, swap=True), floats)


class TestHeaderLayout:
    """Tests for TableHeader encoding and decoding."""

    def test_header_size(self):
        assert len(_header().to_bytes()) == HEADER_SIZE

    def test_signature(self):
        assert _header().to_bytes()[:8] == b"SCATFUN\x01"

    def test_field_offsets(self):
        data = _header(metadata_bytes=9).to_bytes()
        assert data[8:12] == (1).to_bytes(4, "little")
        assert data[12:16] == (4).to_bytes(4, "little")
        assert data[16:20] == (10).to_bytes(4, "little")
        assert data[20:24] == (3).to_bytes(4, "little")
        assert data[24:28] == (3).to_bytes(4, "little")
        assert data[28:32] == (1).to_bytes(4, "little")
        assert data[32:36] == (9).to_bytes(4, "little")
        assert np.frombuffer(data[44:48], dtype="<f4")[0] == np.float32(1.25)

    def test_payload_round_trip(self):
        header = _header(metadata_bytes=5, alpha=(0.5, 0.25))
        assert TableHeader.from_payload(header.to_bytes()[8:]) == header

    def test_payload_from_other_host(self):
        header = _header()
        words = np.frombuffer(header.to_bytes()[8:], dtype="<u4")
        # What a host of the opposite byte order sees when reading natively
        foreign = words.astype(np.dtype("u4").newbyteorder("S")).tobytes()
        assert TableHeader.from_payload(foreign, swap=True) == header

    def test_payload_wrong_size(self):
        with pytest.raises(ValueError):
            TableHeader.from_payload(b"\x00" * 10)

    def test_data_size(self):
        header = _header(elevation_count=2, coeff_count=3)
        assert header.pair_count == 4
        assert header.data_size == 4 * 2 + 4 * 4 + 8 * 4 + 4 * 3


class TestReadHeader:
    """Tests for reading the header from a stream."""

    def test_reads_header(self):
        header = _header()
        assert read_header(io.BytesIO(header.to_bytes()), "x.bsdf") == header

    def test_stream_left_after_header(self):
        stream = io.BytesIO(_header().to_bytes() + b"rest")
        read_header(stream, "x.bsdf")
        assert stream.read() == b"rest"

    def test_bad_magic(self):
        data = b"SCATFUX\x01" + _header().to_bytes()[8:]
        with pytest.raises(FormatError) as excinfo:
            read_header(io.BytesIO(data), "x.bsdf")
        assert excinfo.value.kind is ErrorKind.BAD_MAGIC

    def test_bad_version(self):
        data = b"SCATFUN\x02" + _header().to_bytes()[8:]
        with pytest.raises(FormatError, match="version 2") as excinfo:
            read_header(io.BytesIO(data), "x.bsdf")
        assert excinfo.value.kind is ErrorKind.BAD_MAGIC

    def test_empty_stream(self):
        with pytest.raises(FormatError) as excinfo:
            read_header(io.BytesIO(b""), "x.bsdf")
        assert excinfo.value.kind is ErrorKind.BAD_MAGIC

    def test_truncated_header(self):
        with pytest.raises(FormatError) as excinfo:
            read_header(io.BytesIO(SIGNATURE + b"\x00" * 20), "x.bsdf")
        assert excinfo.value.kind is ErrorKind.TRUNCATED


class TestValidateHeader:
    """Tests for rejecting unsupported or impossible headers."""

    def test_accepts_mono_and_rgb(self):
        validate_header(_header(channel_count=1), "x.bsdf")
        validate_header(_header(channel_count=3), "x.bsdf")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"flags": FLAG_BSDF | FLAG_HARMONIC_EXTRAPOLATION},
            {"flags": 0},
            {"flags": 4},
            {"channel_count": 2},
            {"channel_count": 0},
            {"basis_count": 2},
            {"basis_count": 0},
        ],
    )
    def test_unsupported(self, overrides):
        with pytest.raises(FormatError) as excinfo:
            validate_header(_header(**overrides), "x.bsdf")
        assert excinfo.value.kind is ErrorKind.UNSUPPORTED

    def test_extrapolation_message(self):
        with pytest.raises(FormatError, match="harmonic extrapolation"):
            validate_header(_header(flags=3), "x.bsdf")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"elevation_count": 0},
            {"elevation_count": -2},
            {"coeff_count": -1},
            {"max_order": 0},
        ],
    )
    def test_corrupt_counts(self, overrides):
        with pytest.raises(FormatError) as excinfo:
            validate_header(_header(**overrides), "x.bsdf")
        assert excinfo.value.kind is ErrorKind.CORRUPT

    def test_error_names_file(self):
        with pytest.raises(FormatError, match="textured.bsdf"):
            validate_header(_header(basis_count=4), "textured.bsdf")
