#!/usr/bin/env python3
"""
compact_float.py - 3-byte compact floating point (sflt24) codec

The Catena firmware sends light levels as a 24-bit float that is close
to, but not, IEEE 754:

    bit  23      sign
    bits 22..16  exponent, biased by 63
    bits 15..0   mantissa

Unlike IEEE, the leading mantissa bit is explicit for denormals. A
non-zero exponent adds the implicit 1.0 bit (0x010000); a zero exponent
keeps the mantissa as-is and scales with exponent 1, so both cases share
one formula:

    value = (mantissa / 0x10000) * 2 ** (exponent - 63)

Exponent 0x7F encodes infinity (mantissa 0) or NaN (mantissa != 0).
Negative zero is representable and preserved.

Usage:
    from compact_float import decode_sflt24, encode_sflt24

    result = decode_sflt24(0x3F0000)     # CompactFloat(kind=FINITE, value=1.0)
    float(result)                        # 1.0
    encode_sflt24(1.0)                   # 0x3F0000
"""

import math
from dataclasses import dataclass
from enum import Enum

from wire_reader import ByteCursor


SIGN_MASK = 0x800000
EXPONENT_MASK = 0x7F0000
MANTISSA_MASK = 0x00FFFF
IMPLICIT_BIT = 0x010000

EXPONENT_BIAS = 63
EXPONENT_SPECIAL = 0x7F

# Canonical encodings written by the encoder
POSITIVE_INFINITY = 0x7F0000
NEGATIVE_INFINITY = 0xFF0000
QUIET_NAN = 0x7FFFFF


class FloatClass(Enum):
    FINITE = 'finite'
    POSITIVE_INFINITY = '+inf'
    NEGATIVE_INFINITY = '-inf'
    NAN = 'nan'


@dataclass(frozen=True)
class CompactFloat:
    """Decoded sflt24 value, tagged with its class."""
    raw: int
    kind: FloatClass
    value: float = 0.0

    @property
    def is_finite(self) -> bool:
        return self.kind is FloatClass.FINITE

    def __float__(self) -> float:
        if self.kind is FloatClass.POSITIVE_INFINITY:
            return math.inf
        if self.kind is FloatClass.NEGATIVE_INFINITY:
            return -math.inf
        if self.kind is FloatClass.NAN:
            return math.nan
        return self.value


def decode_sflt24(raw: int) -> CompactFloat:
    """Decode a 24-bit unsigned wire value. Every input in range is valid."""
    if not 0 <= raw <= 0xFFFFFF:
        raise ValueError(f"sflt24 value out of range: {raw:#x}")

    negative = bool(raw & SIGN_MASK)
    exponent = (raw & EXPONENT_MASK) >> 16
    mantissa = raw & MANTISSA_MASK

    if exponent == EXPONENT_SPECIAL:
        if mantissa == 0:
            kind = FloatClass.NEGATIVE_INFINITY if negative else FloatClass.POSITIVE_INFINITY
            return CompactFloat(raw, kind)
        return CompactFloat(raw, FloatClass.NAN)
    elif exponent != 0:
        mantissa += IMPLICIT_BIT
    else:
        # denormal: exponent is the minimum
        exponent = 1

    # mantissa / 0x10000 * 2**(exponent - 63), exact in binary64
    value = math.ldexp(mantissa, exponent - EXPONENT_BIAS - 16)
    return CompactFloat(raw, FloatClass.FINITE, -value if negative else value)


def sflt24_to_float(raw: int) -> float:
    return float(decode_sflt24(raw))


def read_sflt24(cursor: ByteCursor) -> float:
    """Read 3 bytes from the cursor and decode them as sflt24."""
    return sflt24_to_float(cursor.read_u24())


def encode_sflt24(value: float) -> int:
    """
    Encode a float as sflt24.

    Rounds the 16-bit mantissa to nearest (ties to even) and carries into
    the exponent. Magnitudes too large for exponent 0x7E become signed
    infinity; magnitudes below 2**-62 use the denormal form.
    """
    if math.isnan(value):
        return QUIET_NAN

    sign = SIGN_MASK if math.copysign(1.0, value) < 0 else 0
    magnitude = abs(value)
    if math.isinf(magnitude):
        return sign | POSITIVE_INFINITY
    if magnitude == 0.0:
        return sign

    # magnitude = m * 2**e with m in [0.5, 1), i.e. (2m) * 2**(e + 62 - 63)
    m, e = math.frexp(magnitude)
    exponent = e + EXPONENT_BIAS - 1

    if exponent >= 1:
        mantissa = round((2.0 * m - 1.0) * IMPLICIT_BIT)
        if mantissa == IMPLICIT_BIT:
            mantissa = 0
            exponent += 1
        if exponent >= EXPONENT_SPECIAL:
            return sign | POSITIVE_INFINITY
        return sign | (exponent << 16) | mantissa

    mantissa = round(math.ldexp(magnitude, EXPONENT_BIAS - 1 + 16))
    if mantissa >= IMPLICIT_BIT:
        # rounded up into the smallest normal value
        return sign | (1 << 16) | (mantissa - IMPLICIT_BIT)
    return sign | mantissa
