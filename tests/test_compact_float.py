"""
Tests for the 3-byte compact float (sflt24) codec.
"""

import math
import pytest
import sys
from pathlib import Path

# Add tools to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))

from compact_float import (
    CompactFloat, FloatClass,
    decode_sflt24, encode_sflt24, read_sflt24, sflt24_to_float,
    QUIET_NAN,
)
from wire_reader import ByteCursor, OutOfBoundsError


class TestSpecialValues:
    """Zero, infinity and NaN encodings."""

    def test_positive_zero(self):
        value = sflt24_to_float(0x000000)
        assert value == 0.0
        assert math.copysign(1.0, value) == 1.0

    def test_negative_zero(self):
        value = sflt24_to_float(0x800000)
        assert value == 0.0
        assert math.copysign(1.0, value) == -1.0

    def test_positive_infinity(self):
        result = decode_sflt24(0x7F0000)
        assert result.kind is FloatClass.POSITIVE_INFINITY
        assert float(result) == math.inf

    def test_negative_infinity(self):
        result = decode_sflt24(0xFF0000)
        assert result.kind is FloatClass.NEGATIVE_INFINITY
        assert float(result) == -math.inf

    def test_nan(self):
        result = decode_sflt24(0x7F0001)
        assert result.kind is FloatClass.NAN
        assert math.isnan(float(result))

    def test_negative_nan(self):
        assert math.isnan(sflt24_to_float(0xFFFFFF))


class TestNormalized:
    """Non-zero exponent adds the implicit leading bit."""

    def test_one(self):
        """Exponent equal to the bias with zero mantissa is exactly 1.0."""
        result = decode_sflt24(0x3F0000)
        assert result.is_finite
        assert result.value == 1.0

    def test_minus_one(self):
        assert sflt24_to_float(0xBF0000) == -1.0

    def test_one_and_half(self):
        assert sflt24_to_float(0x3F8000) == 1.5

    def test_two(self):
        assert sflt24_to_float(0x400000) == 2.0

    def test_lux_value(self):
        # exponent 73, mantissa 0x34A0: (1 + 13472/65536) * 2**10
        assert sflt24_to_float(0x4934A0) == 1234.5

    def test_largest_finite(self):
        expected = (0x1FFFF / 0x10000) * 2.0 ** (0x7E - 63)
        assert sflt24_to_float(0x7EFFFF) == expected


class TestDenormal:
    """Zero exponent keeps the mantissa and scales with exponent 1."""

    def test_smallest_denormal(self):
        assert sflt24_to_float(0x000001) == 2.0 ** -78

    def test_largest_denormal(self):
        assert sflt24_to_float(0x00FFFF) == (0xFFFF / 0x10000) * 2.0 ** -62

    def test_denormal_meets_smallest_normal(self):
        """Exponent 0 and exponent 1 share the same scale."""
        assert sflt24_to_float(0x010000) == 2.0 ** -62
        assert sflt24_to_float(0x00FFFF) < sflt24_to_float(0x010000)

    def test_negative_denormal(self):
        assert sflt24_to_float(0x800001) == -(2.0 ** -78)


class TestTaggedResult:

    def test_raw_preserved(self):
        assert decode_sflt24(0x4934A0).raw == 0x4934A0

    def test_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            decode_sflt24(0x1000000)
        with pytest.raises(ValueError):
            decode_sflt24(-1)

    def test_read_from_cursor(self):
        cursor = ByteCursor(bytes([0x3F, 0x00, 0x00, 0xAA]))
        assert read_sflt24(cursor) == 1.0
        assert cursor.pos == 3

    def test_read_from_short_cursor(self):
        with pytest.raises(OutOfBoundsError):
            read_sflt24(ByteCursor(b'\x3f\x00'))

    def test_dataclass_equality(self):
        assert decode_sflt24(0x3F0000) == CompactFloat(0x3F0000, FloatClass.FINITE, 1.0)


class TestEncoder:
    """Host-side encoder, inverse of the decoder."""

    def test_encode_one(self):
        assert encode_sflt24(1.0) == 0x3F0000

    def test_encode_lux(self):
        assert encode_sflt24(1234.5) == 0x4934A0

    def test_encode_zeros(self):
        assert encode_sflt24(0.0) == 0x000000
        assert encode_sflt24(-0.0) == 0x800000

    def test_encode_infinities(self):
        assert encode_sflt24(math.inf) == 0x7F0000
        assert encode_sflt24(-math.inf) == 0xFF0000

    def test_encode_nan(self):
        assert encode_sflt24(math.nan) == QUIET_NAN

    def test_overflow_to_infinity(self):
        assert encode_sflt24(2.0 ** 64) == 0x7F0000
        assert encode_sflt24(-(2.0 ** 70)) == 0xFF0000

    def test_encode_denormal(self):
        assert encode_sflt24(2.0 ** -78) == 0x000001
        assert encode_sflt24(2.0 ** -63) == 0x008000

    def test_mantissa_carry(self):
        """Rounding the mantissa up to 0x10000 bumps the exponent."""
        just_below_two = 2.0 - 2.0 ** -20
        assert encode_sflt24(just_below_two) == 0x400000

    def test_exact_values_roundtrip(self):
        for raw in (0x3F0000, 0x3F8000, 0x4934A0, 0x000123, 0xC12345, 0x7EFFFF, 0x010000):
            assert encode_sflt24(sflt24_to_float(raw)) == raw
