"""A single CAN frame carrying NMEA 2000 data."""

from __future__ import annotations

import struct

# Layout of a raw socket CAN frame: id, length, padding, 8 data bytes.
_CAN_FRAME = struct.Struct("<IB3x8s")
CAN_FRAME_SIZE = _CAN_FRAME.size
CAN_EFF_FLAG = 0x80000000
CAN_MAX_DLEN = 8


class Frame:
    """A CAN frame with NMEA 2000 identifier accessors."""

    def __init__(self, can_id: int = 0, data: bytes | None = None, length: int = 0):
        if not 0 <= length <= CAN_MAX_DLEN:
            raise ValueError(f"invalid frame length {length}")
        payload = bytes(data or b"")
        if len(payload) > CAN_MAX_DLEN:
            raise ValueError(f"frame data too long: {len(payload)} bytes")
        self.can_id = can_id
        self.data = bytearray(payload.ljust(CAN_MAX_DLEN, b"\x00"))
        self.length = length

    def __repr__(self) -> str:
        return (
            f"Frame(can_id={self.can_id:#x}, "
            f"data={bytes(self.data[:self.length]).hex()}, length={self.length})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return (
            self.can_id == other.can_id
            and self.length == other.length
            and self.data == other.data
        )

    def is_pdu1(self) -> bool:
        """True for destination-addressed (PDU1) frames."""
        return ((self.can_id >> 16) & 0xFF) < 240

    def source(self) -> int:
        return self.can_id & 0xFF

    def destination(self) -> int | None:
        """Destination address, or None for broadcast (PDU2) frames."""
        if self.is_pdu1():
            return (self.can_id >> 8) & 0xFF
        return None

    def pgn(self) -> int:
        if self.is_pdu1():
            return (self.can_id >> 8) & 0x1FF00
        return (self.can_id >> 8) & 0x1FFFF

    def priority(self) -> int:
        return (self.can_id >> 26) & 0x7

    def _check_range(self, offset: int, size: int) -> None:
        if size < 1 or offset < 0 or offset + size > len(self.data):
            raise IndexError(f"field at {offset} of {size} bytes is outside the frame")

    def read_int(self, offset: int, size: int, signed: bool = False) -> int:
        """Read a little-endian integer of ``size`` bytes at ``offset``."""
        self._check_range(offset, size)
        return int.from_bytes(self.data[offset:offset + size], "little", signed=signed)

    def write_int(self, offset: int, size: int, value: int) -> None:
        """Write the low ``size`` bytes of ``value`` little-endian at ``offset``."""
        self._check_range(offset, size)
        masked = value & ((1 << (8 * size)) - 1)
        self.data[offset:offset + size] = masked.to_bytes(size, "little")

    def pack(self) -> bytes:
        """Encode as a raw socket CAN frame."""
        return _CAN_FRAME.pack(self.can_id & 0xFFFFFFFF, self.length, bytes(self.data))

    @classmethod
    def unpack(cls, raw: bytes) -> "Frame":
        """Decode a raw socket CAN frame."""
        if len(raw) < CAN_FRAME_SIZE:
            raise ValueError(f"short CAN frame: {len(raw)} bytes")
        can_id, length, data = _CAN_FRAME.unpack(bytes(raw[:CAN_FRAME_SIZE]))
        if length > CAN_MAX_DLEN:
            raise ValueError(f"invalid frame length {length}")
        return cls(can_id, data, length)