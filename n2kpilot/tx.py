"""Frames the node transmits, and the table that holds them."""

from __future__ import annotations

import logging
from typing import Iterator, Protocol, Sequence

from .defs import (
    ERR_MSG_PREFIX,
    ISO_ADDRESS_CLAIM,
    NFACTORS,
    NMEA2000_INDUSTRY_GROUP,
    NMEA2000_PRIORITY_INFO,
    NMEA2000_PRIORITY_REQUEST,
    PRIVATE_COMMAND_FACTORS,
    PRIVATE_COMMAND_FACTORS_REQUEST,
    PgnDesc,
)
from .frame import CAN_EFF_FLAG, CAN_MAX_DLEN, Frame

logger = logging.getLogger(__name__)

# Default payload size of a fast-packet frame.
FAST_FRAME_DEFAULT_LENGTH = 233


class Sender(Protocol):
    """Anything frames can be written to, such as a CAN socket."""

    def send(self, data: bytes) -> int: ...


class TxFrame(Frame):
    """A single-frame PGN the node can send."""

    def __init__(
        self,
        descr: str | None,
        isuser: bool,
        pgn: int,
        priority: int,
        length: int,
    ):
        if not 0 <= length <= CAN_MAX_DLEN:
            raise ValueError(f"invalid frame length {length}")
        can_id = (((priority & 0x7) << 26) | (pgn << 8) | CAN_EFF_FLAG) & 0xFFFFFFFF
        super().__init__(can_id, None, length)
        self.desc = PgnDesc(descr, isuser, pgn)
        self.valid = False

    @property
    def enabled(self) -> bool:
        return self.desc.enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self.desc.enabled = bool(value)

    def set_source(self, src: int) -> None:
        self.can_id = (self.can_id & ~0xFF & 0xFFFFFFFF) | (src & 0xFF)

    def set_destination(self, dst: int) -> None:
        if not self.is_pdu1():
            raise ValueError(f"PGN {self.desc.pgn} is broadcast and has no destination")
        self.can_id = (self.can_id & ~0xFF00 & 0xFFFFFFFF) | ((dst & 0xFF) << 8)

    def _write(self, sock: Sender, frame: Frame, what: str) -> bool:
        try:
            sock.send(frame.pack())
        except OSError as exc:
            logger.error("%ssend %s: %s", ERR_MSG_PREFIX, what, exc)
            return False
        return True

    def send(self, sock: Sender) -> bool:
        """Write the frame if it holds valid data; True on success."""
        if not self.valid:
            return False
        return self._write(sock, self, str(self.desc.descr))


class FastFrameTx(TxFrame):
    """A PGN sent with the fast-packet protocol over several frames."""

    def __init__(
        self,
        descr: str | None,
        isuser: bool,
        pgn: int,
        priority: int,
        length: int = FAST_FRAME_DEFAULT_LENGTH,
    ):
        if length < 0:
            raise ValueError(f"invalid fast-packet length {length}")
        super().__init__(descr, isuser, pgn, priority, CAN_MAX_DLEN)
        self.fast_length = length
        self.data = bytearray(length)
        self._ident = 0

    def _chunks(self) -> Iterator[bytes]:
        payload = bytes(self.data)
        offset = 0
        sequence = 0
        while offset < self.fast_length:
            header = ((self._ident << 5) | sequence) & 0xFF
            if sequence == 0:
                body = payload[offset:offset + 6].ljust(6, b"\x00")
                chunk = bytes([header, self.fast_length & 0xFF]) + body
                offset += 6
            else:
                remain = min(self.fast_length - offset, 7)
                chunk = bytes([header]) + payload[offset:offset + remain]
                offset += remain
            yield chunk
            sequence += 1

    def send(self, sock: Sender) -> bool:
        if not self.valid:
            return False
        for sequence, chunk in enumerate(self._chunks()):
            frame = Frame(self.can_id, chunk, len(chunk))
            if not self._write(sock, frame, f"{self.desc.descr} ({sequence})"):
                return False
        self._ident = (self._ident + 1) & 0x7
        return True


class IsoAddressClaimTx(TxFrame):
    """ISO address claim, carrying the node's NAME."""

    def __init__(self):
        super().__init__(
            "ISO address claim", False, ISO_ADDRESS_CLAIM, NMEA2000_PRIORITY_REQUEST, 8
        )

    def set_name(
        self,
        unique_number: int,
        manuf_code: int,
        device_function: int,
        device_class: int,
        device_instance: int,
        system_instance: int,
    ) -> None:
        d = self.data
        d[0] = unique_number & 0xFF
        d[1] = (unique_number >> 8) & 0xFF
        d[2] = ((unique_number >> 16) & 0x1F) | ((manuf_code << 5) & 0xE0)
        d[3] = (manuf_code >> 3) & 0xFF
        d[4] = device_instance & 0xFF
        d[5] = device_function & 0xFF
        d[6] = (device_class << 1) & 0xFF
        d[7] = (0x80 | (NMEA2000_INDUSTRY_GROUP << 4) | system_instance) & 0xFF


class CommandFactorsTx(TxFrame):
    """Sets the pilot's command factors of one parameter slot."""

    def __init__(self):
        super().__init__(
            "Private command factors", True, PRIVATE_COMMAND_FACTORS,
            NMEA2000_PRIORITY_INFO, 8,
        )

    def update(self, slot: int, values: Sequence[int]) -> bool:
        """Fill in slot and factors; False while no pilot address is known."""
        if len(values) < NFACTORS:
            raise ValueError(f"expected {NFACTORS} factors, got {len(values)}")
        if self.destination() == 0:
            return False
        self.write_int(0, 1, slot)
        for index, value in enumerate(values[:NFACTORS]):
            self.write_int(1 + index * 2, 2, value)
        self.valid = True
        return True


class CommandFactorsRequestTx(TxFrame):
    """Asks the pilot for the factors of one parameter slot."""

    def __init__(self):
        super().__init__(
            "Private command factors request", True, PRIVATE_COMMAND_FACTORS_REQUEST,
            NMEA2000_PRIORITY_INFO, 1,
        )

    def update(self, slot: int) -> bool:
        """Fill in the slot; False while no pilot address is known."""
        if self.destination() == 0:
            return False
        self.write_int(0, 1, slot)
        self.valid = True
        return True


class TxTable:
    """All PGNs the node transmits, in a fixed order."""

    def __init__(self):
        self.iso_address_claim = IsoAddressClaimTx()
        self.command_factors = CommandFactorsTx()
        self.command_factors_request = CommandFactorsRequestTx()
        self._frames: tuple[TxFrame, ...] = (
            self.iso_address_claim,
            self.command_factors,
            self.command_factors_request,
        )
        self.sid = 0

    def __iter__(self) -> Iterator[TxFrame]:
        return iter(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    def get(self, index: int) -> TxFrame | None:
        """The frame at ``index``, or None when out of range."""
        if 0 <= index < len(self._frames):
            return self._frames[index]
        return None

    def index_of(self, pgn: int) -> int | None:
        """Index of the frame sending ``pgn``, or None."""
        for index, frame in enumerate(self._frames):
            if frame.desc.pgn == pgn:
                return index
        return None

    def by_pgn(self, pgn: int) -> TxFrame | None:
        index = self.index_of(pgn)
        return None if index is None else self._frames[index]

    def enable(self, index: int, enabled: bool) -> None:
        frame = self.get(index)
        if frame is not None:
            frame.enabled = enabled

    def send(self, sock: Sender, pgn: int, force: bool = False) -> bool:
        """Send the frame for ``pgn`` if it is enabled or ``force`` is set."""
        frame = self.by_pgn(pgn)
        if frame is None:
            return False
        if frame.enabled or force:
            return frame.send(sock)
        return False

    def set_source(self, src: int) -> None:
        for frame in self._frames:
            frame.set_source(src)