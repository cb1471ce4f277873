#!/usr/bin/env python3
"""
frame_decoder.py - Decoder for Catena port 1 / format 0x2A uplinks

Decodes the frame sent by the MCCI Model 4928 Temperature Sensor
application (Catena 4610) into a record of physical values.

Outcomes:
    - record (dict)       frame decoded; only fields whose bit is set
    - None                not this decoder's port or format tag
    - FrameTruncatedError the bitmap promises more bytes than were sent;
                          no partial record is returned

Usage:
    from frame_decoder import FrameDecoder, decode_frame

    record = decode_frame(bytes.fromhex('2a01 1800'), port=1)
    # {'battery_voltage': 1.5}

    result = FrameDecoder().decode(payload, port)
    if result is not None:
        print(result.data, result.warnings)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from decoder_config import DecoderConfig
from frame_layout import (
    FIELD_GROUPS, FORMAT_TAG, HEADER_SIZE, LEGACY_KEYS, LORAWAN_PORT,
    RESERVED_MASK, frame_length,
)
from wire_reader import ByteCursor, OutOfBoundsError


logger = logging.getLogger(__name__)


class FrameTruncatedError(OutOfBoundsError):
    """The frame ends before every field its bitmap announces."""

    def __init__(self, cause: OutOfBoundsError, port: int, format_tag: int,
                 bitmap: Optional[int]):
        self.port = port
        self.format_tag = format_tag
        self.bitmap = bitmap
        self.actual_length = cause.length
        self.expected_length = frame_length(bitmap) if bitmap is not None else HEADER_SIZE

        bitmap_text = f"{bitmap:#04x}" if bitmap is not None else "<missing>"
        super().__init__(
            cause.need, cause.pos, cause.length,
            f"Truncated frame on port {port} fmt={format_tag:#04x}: "
            f"bitmap {bitmap_text} needs {self.expected_length} bytes, "
            f"got {cause.length} ({cause})"
        )


@dataclass
class DecodeResult:
    """Result of decoding one frame."""
    data: Dict[str, Any]
    bytes_consumed: int
    bitmap: int
    warnings: List[str] = field(default_factory=list)


def is_mine(payload: bytes, port: int) -> bool:
    """True when the port and format tag belong to this decoder."""
    if port != LORAWAN_PORT:
        return False
    return len(payload) > 0 and payload[0] == FORMAT_TAG


def not_mine_message(payload: bytes, port: Optional[int]) -> str:
    """Operator-facing text for a frame this decoder does not handle."""
    message = f"not port {LORAWAN_PORT}/fmt {FORMAT_TAG:#04x}! port={port}"
    if len(payload) > 0:
        message += f" fmt={payload[0]:#04x}"
    else:
        message += " <no fmt byte>"
    return message


class FrameDecoder:
    """
    Table-driven decoder for format 0x2A frames.

    Walks FIELD_GROUPS in ascending bit order; each group whose bit is set
    in the bitmap consumes its fields from the cursor. The decoder holds
    no per-call state and may be shared across threads.
    """

    def __init__(self, config: Optional[DecoderConfig] = None):
        self.config = config or DecoderConfig()

    def decode(self, payload: bytes, port: int) -> Optional[DecodeResult]:
        """
        Decode one uplink.

        Args:
            payload: raw frame bytes
            port: LoRaWAN fPort the frame arrived on

        Returns:
            DecodeResult, or None when the frame is not port 1 / format 0x2A

        Raises:
            FrameTruncatedError: the frame is shorter than its bitmap requires
        """
        if port != LORAWAN_PORT:
            logger.debug("Ignoring frame on port %s", port)
            return None

        cursor = ByteCursor(payload)
        if len(cursor) == 0 or payload[0] != FORMAT_TAG:
            logger.debug(not_mine_message(payload, port))
            return None
        format_tag = cursor.read_u8()

        bitmap = None
        data: Dict[str, Any] = {}
        try:
            bitmap = cursor.read_u8()
            for group in FIELD_GROUPS:
                if not bitmap & group.mask:
                    continue
                values = {field_def.key: field_def.read(cursor) for field_def in group.fields}
                data.update(values)
                if group.derive is not None and self.config.derived_quantities:
                    data.update(group.derive(values))
        except OutOfBoundsError as e:
            raise FrameTruncatedError(e, port, format_tag, bitmap) from e

        warnings = []
        if bitmap & RESERVED_MASK:
            warnings.append(f"Reserved bitmap bit 7 set (bitmap {bitmap:#04x}); ignored")
        if cursor.remaining:
            warnings.append(f"{cursor.remaining} trailing bytes after last field ignored")
        for w in warnings:
            logger.debug(w)

        if self.config.key_style == 'legacy':
            data = {LEGACY_KEYS[k]: v for k, v in data.items()}

        return DecodeResult(data=data, bytes_consumed=cursor.pos,
                            bitmap=bitmap, warnings=warnings)


_default_decoder = FrameDecoder()


def decode_frame(payload: bytes, port: int) -> Optional[Dict[str, Any]]:
    """Decode a frame to its record; None when it is not port 1 / format 0x2A."""
    result = _default_decoder.decode(payload, port)
    if result is None:
        return None
    return result.data
