"""Unit tests for the RawBlob codec and format discrimination.

Tests cover:
- Exact little-endian byte layout
- Bit-for-bit round trips, including NaN/inf patterns
- Length validation on decode
- Quantized header detection
"""

import struct

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from sqlite_vector.codec import (
    QUANTIZED_HEADER,
    decode_raw,
    encode_raw,
    is_quantized_format,
    quantized_blob_size,
    raw_blob_size,
)
from sqlite_vector.errors import FormatError, VectorError

float32s = st.floats(width=32, allow_nan=False)


class TestEncodeRaw:
    """Tests for encode_raw byte layout."""

    def test_single_one(self) -> None:
        """1.0 encodes as IEEE-754 0x3f800000, little-endian."""
        assert encode_raw([1.0]) == bytes([0x00, 0x00, 0x80, 0x3F])

    def test_empty(self) -> None:
        assert encode_raw([]) == b""

    def test_length_is_four_per_element(self) -> None:
        assert len(encode_raw([0.1, 0.2, 0.3])) == 12

    def test_matches_struct_little_endian(self) -> None:
        values = [1.5, -2.25, 3e10]
        assert encode_raw(values) == struct.pack("<3f", *values)

    def test_accepts_numpy_arrays(self) -> None:
        vec = np.array([1.0, 2.0], dtype=np.float64)
        assert encode_raw(vec) == struct.pack("<2f", 1.0, 2.0)

    def test_overflow_saturates_to_infinity(self) -> None:
        """Values past the float32 range saturate instead of raising."""
        decoded = decode_raw(encode_raw([1e39, -1e39]))
        assert decoded[0] == np.inf
        assert decoded[1] == -np.inf


class TestDecodeRaw:
    """Tests for decode_raw validation."""

    def test_single_one(self) -> None:
        decoded = decode_raw(bytes([0x00, 0x00, 0x80, 0x3F]))
        assert decoded.tolist() == [1.0]
        assert decoded.dtype == np.float32

    def test_empty(self) -> None:
        assert decode_raw(b"").size == 0

    @pytest.mark.parametrize("length", [1, 2, 3, 5, 7])
    def test_invalid_length_raises(self, length: int) -> None:
        with pytest.raises(FormatError, match="not a multiple of 4"):
            decode_raw(b"\x00" * length)

    def test_format_error_is_vector_error(self) -> None:
        with pytest.raises(VectorError):
            decode_raw(b"\x00\x00\x80")

    def test_decoded_array_is_writable(self) -> None:
        """Decoded vectors own their memory rather than viewing the blob."""
        decoded = decode_raw(encode_raw([1.0, 2.0]))
        decoded[0] = 5.0
        assert decoded[0] == 5.0

    @given(st.binary().filter(lambda b: len(b) % 4 != 0))  # type: ignore[misc]
    def test_any_misaligned_length_raises(self, blob: bytes) -> None:
        with pytest.raises(FormatError):
            decode_raw(blob)


class TestRoundTrip:
    """decode_raw(encode_raw(v)) == v, bit for bit."""

    @pytest.mark.parametrize(
        "vec",
        [
            [0.1, 0.2, 0.3],
            [-1.0, 0.0, 1.0],
            [1e10, -1e10, 3.14159],
            [42.0],
            [],
        ],
    )
    def test_known_vectors(self, vec: list[float]) -> None:
        original = np.asarray(vec, dtype=np.float32)
        assert np.array_equal(decode_raw(encode_raw(original)), original)

    @given(st.lists(float32s, max_size=64))  # type: ignore[misc]
    def test_round_trip_property(self, values: list[float]) -> None:
        original = np.asarray(values, dtype=np.float32)
        decoded = decode_raw(encode_raw(original))
        assert decoded.tobytes() == original.tobytes()

    def test_special_bit_patterns_survive(self) -> None:
        """NaN payloads, infinities and negative zero are reinterpreted, not computed."""
        blob = struct.pack("<4I", 0x7FC00001, 0x7F800000, 0xFF800000, 0x80000000)
        assert encode_raw(decode_raw(blob)) == blob


class TestFormatDiscrimination:
    """Tests for is_quantized_format."""

    @pytest.mark.parametrize(
        ("blob", "expected"),
        [
            (bytes([0x00, 0x01, 0x7F, 0x80]), True),
            (bytes([0x00, 0x01]), True),
            (bytes([0x00, 0x00, 0x7F]), False),
            (bytes([0x00]), False),
            (b"", False),
        ],
    )
    def test_header_detection(self, blob: bytes, expected: bool) -> None:
        assert is_quantized_format(blob) is expected

    def test_raw_blob_is_not_quantized(self) -> None:
        assert not is_quantized_format(encode_raw([1.0]))

    def test_blob_sizes(self) -> None:
        assert raw_blob_size(3) == 12
        assert quantized_blob_size(3) == 5
        assert QUANTIZED_HEADER == b"\x00\x01"
