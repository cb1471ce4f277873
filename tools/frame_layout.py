#!/usr/bin/env python3
"""
frame_layout.py - Wire layout of the Catena port 1 / format 0x2A uplink

    byte 0   format tag (0x2A)
    byte 1   presence bitmap, bit k gates field group k
    bytes 2+ present groups, concatenated in ascending bit order

    bit  group   bytes  encoding                       key(s)
    0    vbat    2      i16 / 4096                     battery_voltage
    1    vbus    2      i16 / 4096                     bus_voltage
    2    boot    1      u8                             boot_count
    3    th      2+2    i16 / 256, u16 * 100 / 65535   temperature_c, humidity_pct
                        (derived)                      dewpoint_c, heat_index_c
    4    lux     3      sflt24                         lux
    5    probe1  2      i16 / 256                      probe_one_temperature_c
    6    probe2  2      i16 / 256                      probe_two_temperature_c
    7    reserved

FIELD_GROUPS below is the authoritative copy of this table: the decoder
walks it to read a frame, the encoder walks it to write one, and the
tests enumerate it.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from compact_float import encode_sflt24, read_sflt24
from derived_quantities import celsius_to_fahrenheit, dewpoint, heat_index_celsius
from wire_reader import ByteCursor


FORMAT_TAG = 0x2A
LORAWAN_PORT = 1

HEADER_SIZE = 2  # format tag + bitmap
RESERVED_MASK = 0x80

VOLTAGE_SCALE = 4096.0
TEMPERATURE_SCALE = 256.0
HUMIDITY_FULL_SCALE = 65535.0

I16_MIN = -0x8000
I16_MAX = 0x7FFF
U16_MAX = 0xFFFF


# =============================================================================
# Scaled-value adapters
# =============================================================================

def read_voltage(cursor: ByteCursor) -> float:
    return cursor.read_i16() / VOLTAGE_SCALE


def read_temperature(cursor: ByteCursor) -> float:
    return cursor.read_i16() / TEMPERATURE_SCALE


def read_humidity(cursor: ByteCursor) -> float:
    return cursor.read_u16() * 100 / HUMIDITY_FULL_SCALE


def read_boot_count(cursor: ByteCursor) -> int:
    return cursor.read_u8()


def read_lux(cursor: ByteCursor) -> float:
    return read_sflt24(cursor)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _finite(value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Not a number: {value!r}") from None
    # only the lux group has inf/NaN encodings
    if not math.isfinite(number):
        raise ValueError(f"Cannot encode non-finite value {value!r}")
    return number


def _i16(value: float, scale: float) -> bytes:
    raw = _clamp(round(_finite(value) * scale), I16_MIN, I16_MAX)
    return raw.to_bytes(2, 'big', signed=True)


def write_voltage(value: float) -> bytes:
    return _i16(value, VOLTAGE_SCALE)


def write_temperature(value: float) -> bytes:
    return _i16(value, TEMPERATURE_SCALE)


def write_humidity(value: float) -> bytes:
    raw = _clamp(round(_finite(value) / 100.0 * HUMIDITY_FULL_SCALE), 0, U16_MAX)
    return raw.to_bytes(2, 'big')


def write_boot_count(value: int) -> bytes:
    # firmware sends only the low byte of the boot counter
    if not isinstance(value, int):
        value = int(_finite(value))
    return bytes([value & 0xFF])


def write_lux(value: float) -> bytes:
    return encode_sflt24(value).to_bytes(3, 'big')


# =============================================================================
# Derived quantities for the temperature/humidity group
# =============================================================================

def comfort_indices(data: Dict[str, Any]) -> Dict[str, float]:
    """Dewpoint and (when defined) heat index from decoded T/RH."""
    t = data['temperature_c']
    rh = data['humidity_pct']

    derived = {'dewpoint_c': dewpoint(t, rh)}
    t_heat = heat_index_celsius(celsius_to_fahrenheit(t), rh)
    if t_heat is not None:
        derived['heat_index_c'] = t_heat
    return derived


# =============================================================================
# Field table
# =============================================================================

@dataclass(frozen=True)
class FieldDef:
    """One fixed-width value inside a field group."""
    key: str
    size: int
    read: Callable[[ByteCursor], Any]
    write: Callable[[Any], bytes]


@dataclass(frozen=True)
class FieldGroup:
    """Fields gated by one bitmap bit, in wire order."""
    bit: int
    name: str
    fields: Tuple[FieldDef, ...]
    derive: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None
    derived_keys: Tuple[str, ...] = ()

    @property
    def mask(self) -> int:
        return 1 << self.bit

    @property
    def size(self) -> int:
        return sum(f.size for f in self.fields)

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(f.key for f in self.fields)


FIELD_GROUPS: Tuple[FieldGroup, ...] = (
    FieldGroup(0, 'vbat', (
        FieldDef('battery_voltage', 2, read_voltage, write_voltage),
    )),
    FieldGroup(1, 'vbus', (
        FieldDef('bus_voltage', 2, read_voltage, write_voltage),
    )),
    FieldGroup(2, 'boot', (
        FieldDef('boot_count', 1, read_boot_count, write_boot_count),
    )),
    FieldGroup(3, 'th', (
        FieldDef('temperature_c', 2, read_temperature, write_temperature),
        FieldDef('humidity_pct', 2, read_humidity, write_humidity),
    ), derive=comfort_indices, derived_keys=('dewpoint_c', 'heat_index_c')),
    FieldGroup(4, 'lux', (
        FieldDef('lux', 3, read_lux, write_lux),
    )),
    FieldGroup(5, 'probe1', (
        FieldDef('probe_one_temperature_c', 2, read_temperature, write_temperature),
    )),
    FieldGroup(6, 'probe2', (
        FieldDef('probe_two_temperature_c', 2, read_temperature, write_temperature),
    )),
)

# Key names used by the Node-RED decoder for this format
LEGACY_KEYS = {
    'battery_voltage': 'vBat',
    'bus_voltage': 'vBus',
    'boot_count': 'boot',
    'temperature_c': 'tempC',
    'humidity_pct': 'rh',
    'dewpoint_c': 'tDewC',
    'heat_index_c': 'tHeatIndexC',
    'lux': 'lux',
    'probe_one_temperature_c': 'tProbeOne',
    'probe_two_temperature_c': 'tProbeTwo',
}

FROM_LEGACY_KEYS = {v: k for k, v in LEGACY_KEYS.items()}


def frame_length(bitmap: int) -> int:
    """Exact frame length, header included, that a bitmap promises."""
    return HEADER_SIZE + sum(g.size for g in FIELD_GROUPS if bitmap & g.mask)
