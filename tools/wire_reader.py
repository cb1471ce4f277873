#!/usr/bin/env python3
"""
wire_reader.py - Big-endian primitive readers for Catena uplink frames

A ByteCursor wraps an immutable payload and a forward-only read offset.
Every read checks the remaining length first; a short buffer raises
OutOfBoundsError and leaves the offset where it was.

Usage:
    from wire_reader import ByteCursor

    cursor = ByteCursor(payload, pos=2)
    vbat = cursor.read_i16() / 4096.0
"""

from typing import Optional, Union


class OutOfBoundsError(ValueError):
    """Raised when a read needs more bytes than the payload holds."""

    def __init__(self, need: int, pos: int, length: int, message: Optional[str] = None):
        self.need = need
        self.pos = pos
        self.length = length
        super().__init__(message or (
            f"Buffer too short: need {need} bytes at pos {pos}, "
            f"only {max(length - pos, 0)} remain"
        ))


class ByteCursor:
    """Read-only view over a payload with a monotonically increasing offset."""

    def __init__(self, buf: Union[bytes, bytearray, memoryview], pos: int = 0):
        self._buf = bytes(buf)
        self._pos = pos

    @property
    def pos(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return max(len(self._buf) - self._pos, 0)

    def __len__(self) -> int:
        return len(self._buf)

    def _take(self, size: int) -> bytes:
        if self._pos + size > len(self._buf):
            raise OutOfBoundsError(size, self._pos, len(self._buf))
        data = self._buf[self._pos:self._pos + size]
        self._pos += size
        return data

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_u16(self) -> int:
        """Read 2 bytes big-endian as unsigned, 0..65535."""
        data = self._take(2)
        return (data[0] << 8) | data[1]

    def read_i16(self) -> int:
        """Read a u16 and reinterpret it as two's complement, -32768..32767."""
        raw = self.read_u16()
        if raw & 0x8000:
            raw -= 0x10000
        return raw

    def read_u24(self) -> int:
        """Read 3 bytes big-endian as unsigned, 0..0xFFFFFF."""
        data = self._take(3)
        return (data[0] << 16) | (data[1] << 8) | data[2]
