#!/usr/bin/env python3
"""
derived_quantities.py - Dewpoint and NWS heat index

Pure functions over already-decoded temperature and relative humidity.
Out-of-domain inputs return None ("not applicable") instead of raising,
so the frame decoder can drop one derived field and keep the record.

References:
    Dewpoint: Magnus form, http://andrew.rsmas.miami.edu/bmcnoldy/Humidity.html
    Heat index: https://www.wpc.ncep.noaa.gov/html/heatindex_equation.shtml
"""

import math
from typing import Optional


DEWPOINT_C1 = 243.04
DEWPOINT_C2 = 17.625

HEAT_INDEX_MIN_F = 76
HEAT_INDEX_MAX_F = 126
# reference tables stop at 183 (rounded)
HEAT_INDEX_LIMIT_F = 183.5

# NWS Rothfusz regression
_C = (
    -42.379,
    2.04901523,
    10.14333127,
    -0.22475541,
    -0.00683783,
    -0.05481717,
    0.00122874,
    0.00085282,
    -0.00000199,
)


def celsius_to_fahrenheit(t: float) -> float:
    return t * 1.8 + 32.0


def fahrenheit_to_celsius(t: float) -> float:
    return (t - 32.0) * 5.0 / 9.0


def dewpoint(t: float, rh: float) -> float:
    """
    Dewpoint in degrees C from temperature (C) and relative humidity (0..100).

    Humidity is clamped to [1%, 100%] before the logarithm, so very dry or
    supersaturated readings still produce a finite value.
    """
    h = rh / 100.0
    if h <= 0.01:
        h = 0.01
    elif h > 1.0:
        h = 1.0

    lnh = math.log(h)
    txc2_tpc1 = t * DEWPOINT_C2 / (t + DEWPOINT_C1)

    return DEWPOINT_C1 * (lnh + txc2_tpc1) / (DEWPOINT_C2 - lnh - txc2_tpc1)


def heat_index(t: float, rh: float) -> Optional[float]:
    """
    NWS heat index in degrees F.

    Args:
        t: dry-bulb temperature in F; rounded value must lie in [76, 126]
        rh: relative humidity in [0, 100]

    Returns:
        Heat index in F, or None outside the validated range.
    """
    # Only the domain test uses the rounded temperature.
    t_rounded = math.floor(t + 0.5)
    if t_rounded < HEAT_INDEX_MIN_F or t_rounded > HEAT_INDEX_MAX_F:
        return None
    if rh < 0 or rh > 100:
        return None

    # NWS: use the simple form when its average with t is below 80
    t_easy = 0.5 * (t + 61.0 + ((t - 68.0) * 1.2) + (rh * 0.094))
    if (t_easy + t) < 160.0:
        return t_easy

    t2 = t * t
    rh2 = rh * rh
    result = (
        _C[0]
        + _C[1] * t
        + _C[2] * rh
        + _C[3] * t * rh
        + _C[4] * t2
        + _C[5] * rh2
        + _C[6] * t2 * rh
        + _C[7] * t * rh2
        + _C[8] * t2 * rh2
    )

    if rh < 13.0 and 80.0 <= t <= 112.0:
        result -= ((13.0 - rh) / 4.0) * math.sqrt((17.0 - abs(t - 95.0)) / 17.0)
    elif rh > 85.0 and 80.0 <= t <= 87.0:
        result += ((rh - 85.0) / 10.0) * ((87.0 - t) / 5.0)

    if result >= HEAT_INDEX_LIMIT_F:
        return None
    return result


def heat_index_celsius(t: float, rh: float) -> Optional[float]:
    """Heat index from a Fahrenheit temperature, reported in C."""
    result = heat_index(t, rh)
    if result is None:
        return None
    return fahrenheit_to_celsius(result)
