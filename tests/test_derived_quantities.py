"""
Tests for dewpoint and NWS heat index.
"""

import math
import pytest
import sys
from pathlib import Path

# Add tools to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))

from derived_quantities import (
    celsius_to_fahrenheit, fahrenheit_to_celsius,
    dewpoint, heat_index, heat_index_celsius,
)


def rothfusz(t, rh):
    """Published NWS regression, without adjustments."""
    return (-42.379 + 2.04901523 * t + 10.14333127 * rh
            - 0.22475541 * t * rh - 0.00683783 * t * t
            - 0.05481717 * rh * rh + 0.00122874 * t * t * rh
            + 0.00085282 * t * rh * rh - 0.00000199 * t * t * rh * rh)


class TestDewpoint:

    def test_typical(self):
        assert dewpoint(20.0, 50.0) == pytest.approx(9.26, abs=0.01)

    def test_saturated_equals_temperature(self):
        assert dewpoint(25.0, 100.0) == pytest.approx(25.0)

    def test_zero_humidity_clamps(self):
        """rh=0 uses h=0.01 instead of log(0)."""
        value = dewpoint(20.0, 0.0)
        assert math.isfinite(value)
        assert value == dewpoint(20.0, 1.0)

    def test_negative_humidity_clamps(self):
        assert dewpoint(20.0, -5.0) == dewpoint(20.0, 1.0)

    def test_supersaturated_clamps(self):
        assert dewpoint(20.0, 120.0) == dewpoint(20.0, 100.0)

    def test_below_freezing(self):
        assert dewpoint(-10.0, 80.0) < -10.0


class TestHeatIndex:

    def test_easy_formula_at_low_temperature(self):
        """At 76F the simple NWS form applies."""
        expected = 0.5 * (76 + 61 + (76 - 68) * 1.2 + 50 * 0.094)
        assert heat_index(76.0, 50.0) == pytest.approx(expected)
        assert heat_index(76.0, 50.0) == pytest.approx(75.65)

    def test_above_range(self):
        for rh in (0.0, 50.0, 100.0):
            assert heat_index(130.0, rh) is None

    def test_below_range(self):
        assert heat_index(70.0, 50.0) is None

    def test_humidity_out_of_range(self):
        assert heat_index(90.0, -0.1) is None
        assert heat_index(90.0, 100.1) is None

    def test_domain_uses_rounded_temperature(self):
        assert heat_index(75.4, 50.0) is None
        assert heat_index(75.5, 50.0) is not None
        assert heat_index(126.5, 0.0) is None

    def test_formula_uses_unrounded_temperature(self):
        assert heat_index(75.5, 50.0) == pytest.approx(0.5 * (75.5 + 61 + 7.5 * 1.2 + 4.7))
        assert heat_index(126.4, 0.0) != heat_index(126.0, 0.0)

    def test_regression(self):
        assert heat_index(95.0, 70.0) == pytest.approx(122.613, abs=0.01)
        assert heat_index(95.0, 70.0) == pytest.approx(rothfusz(95.0, 70.0))

    def test_low_humidity_adjustment(self):
        expected = rothfusz(100.0, 10.0) - (3.0 / 4.0) * math.sqrt(12.0 / 17.0)
        assert heat_index(100.0, 10.0) == pytest.approx(expected)

    def test_high_humidity_adjustment(self):
        expected = rothfusz(85.0, 90.0) + (5.0 / 10.0) * (2.0 / 5.0)
        assert heat_index(85.0, 90.0) == pytest.approx(expected)

    def test_no_adjustment_outside_bands(self):
        assert heat_index(90.0, 50.0) == pytest.approx(rothfusz(90.0, 50.0))

    def test_beyond_reference_table(self):
        """Results at or above 183.5F are not vouched for."""
        assert heat_index(120.0, 60.0) is None


class TestHeatIndexCelsius:

    def test_converts_defined_result(self):
        assert heat_index_celsius(95.0, 70.0) == pytest.approx((122.613 - 32) * 5 / 9, abs=0.01)

    def test_passes_through_undefined(self):
        assert heat_index_celsius(130.0, 50.0) is None

    def test_temperature_conversions(self):
        assert celsius_to_fahrenheit(35.0) == pytest.approx(95.0)
        assert fahrenheit_to_celsius(212.0) == pytest.approx(100.0)
