#!/usr/bin/env python3
"""
frame_encoder.py - Build format 0x2A frames from measurements

Host-side counterpart of the firmware's fillTxBuffer(): the bitmap is
derived from which measurements are present, and the present groups are
written in ascending bit order using the same scale factors the decoder
divides by.

Accepts snake_case keys (battery_voltage, temperature_c, ...) or the
legacy Node-RED keys (vBat, tempC, ...). Derived keys (dewpoint_c,
heat_index_c) are computed by the decoder and ignored here.

Usage:
    from frame_encoder import encode_frame

    payload = encode_frame({'battery_voltage': 1.5, 'boot_count': 66})
    # bytes.fromhex('2a05 1800 42')
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from frame_layout import FIELD_GROUPS, FORMAT_TAG, FROM_LEGACY_KEYS


logger = logging.getLogger(__name__)


@dataclass
class EncodeResult:
    """Result of encoding measurements to a frame."""
    payload: bytes
    bitmap: int
    warnings: List[str] = field(default_factory=list)


class FrameEncoder:
    """Encoder walking the same field table as FrameDecoder."""

    def _normalize(self, data: Dict[str, Any], warnings: List[str]) -> Dict[str, Any]:
        known = set()
        derived = set()
        for group in FIELD_GROUPS:
            known.update(group.keys)
            derived.update(group.derived_keys)

        values = {}
        for key, value in data.items():
            name = FROM_LEGACY_KEYS.get(key, key)
            if name in derived:
                continue
            if name not in known:
                warnings.append(f"Unknown measurement '{key}' ignored")
                continue
            if value is None:
                continue
            values[name] = value
        return values

    def encode(self, data: Dict[str, Any]) -> EncodeResult:
        """
        Encode measurements to a frame.

        Raises:
            ValueError: only part of a multi-field group was supplied
                (e.g. temperature_c without humidity_pct), or a value
                other than lux is not a finite number
        """
        warnings: List[str] = []
        values = self._normalize(data, warnings)

        bitmap = 0
        body = bytearray()
        for group in FIELD_GROUPS:
            present = [k for k in group.keys if k in values]
            if not present:
                continue
            if len(present) != len(group.keys):
                missing = [k for k in group.keys if k not in values]
                raise ValueError(
                    f"Group '{group.name}' (bit {group.bit}) needs {', '.join(group.keys)}; "
                    f"missing {', '.join(missing)}"
                )
            bitmap |= group.mask
            for field_def in group.fields:
                body.extend(field_def.write(values[field_def.key]))

        for w in warnings:
            logger.debug(w)

        payload = bytes([FORMAT_TAG, bitmap]) + bytes(body)
        return EncodeResult(payload=payload, bitmap=bitmap, warnings=warnings)


def encode_frame(data: Dict[str, Any]) -> bytes:
    """Encode measurements to frame bytes."""
    return FrameEncoder().encode(data).payload
