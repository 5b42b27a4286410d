"""Handlers for the PGNs the node receives, and the table that dispatches to them."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator

from .defs import (
    AUTO_HEAD,
    AUTO_OFF,
    AUTO_STANDBY,
    NFACTORS,
    NMEA2000_ATTITUDE,
    NMEA2000_RATEOFTURN,
    PRIVATE_COMMAND_FACTORS,
    PRIVATE_COMMAND_STATUS,
    PRIVATE_REMOTE_CONTROL,
    PgnDesc,
    rad2deg,
    srad2deg,
)
from .frame import Frame
from .model import PilotModel
from .tx import TxFrame, TxTable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

# Seconds without a frame after which the received data is stale.
RX_TIMEOUT = 5

CONTROL_MOB = 0x00
CONTROL_MOB_MARK = 0x00
CONTROL_MOB_SIZE = 2
CONTROL_LIGHT = 0x01
CONTROL_LIGHT_OFF = 0x00
CONTROL_LIGHT_ON = 0x01
CONTROL_LIGHT_VAL = 0x02
CONTROL_LIGHT_SIZE = 2
CONTROL_LIGHT_VAL_SIZE = 3
CONTROL_RESET = 0x02
CONTROL_RESET_SIZE = 1
CONTROL_MUTE = 0x02
CONTROL_MUTE_SIZE = 2
CONTROL_BEEP = 0x04
CONTROL_BEEP_SHORT = 0x00
CONTROL_BEEP_LONG = 0x01
CONTROL_BEEP_SIZE = 2
CONTROL_REMOTE_RADIO = 0x05
CONTROL_REMOTE_RADIO_SIZE = 5

MODE_NAMES = {
    AUTO_OFF: "Off",
    AUTO_STANDBY: "Standby",
    AUTO_HEAD: "On",
}
SILENT_COMMAND = "commande muette"


def _to_int8(value: int) -> int:
    return ((value + 128) & 0xFF) - 128


class RxHandler:
    """A received PGN: decodes matching frames and notices when they stop."""

    def __init__(
        self,
        descr: str | None,
        isuser: bool,
        pgn: int,
        model: PilotModel,
        clock: Clock = time.monotonic,
    ):
        self.desc = PgnDesc(descr, isuser, pgn, enabled=True)
        self.model = model
        self.clock = clock

    @property
    def pgn(self) -> int:
        return self.desc.pgn

    @property
    def enabled(self) -> bool:
        return self.desc.enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self.desc.enabled = bool(value)

    def handle(self, frame: Frame) -> bool:
        """Decode ``frame``; True when it was used."""
        return False

    def tick(self) -> None:
        """Called periodically to detect stale data."""


class _TimedRx(RxHandler):
    def __init__(self, descr, isuser, pgn, model, clock=time.monotonic):
        super().__init__(descr, isuser, pgn, model, clock)
        self.last_rx = self.clock()

    def _mark(self) -> None:
        self.last_rx = self.clock()

    def _expired(self) -> bool:
        return self.clock() - self.last_rx >= RX_TIMEOUT


class AttitudeRx(_TimedRx):
    """Boat heading from the attitude PGN."""

    def __init__(self, model: PilotModel, clock: Clock = time.monotonic):
        super().__init__("NMEA2000 attitude", True, NMEA2000_ATTITUDE, model, clock)

    def handle(self, frame: Frame) -> bool:
        rad = frame.read_int(1, 2, signed=True)
        self._mark()
        self.model.set_attitude(rad2deg(rad), True)
        return True

    def tick(self) -> None:
        if self._expired():
            self.model.set_attitude(0, False)


class RateOfTurnRx(_TimedRx):
    """Boat rate of turn."""

    def __init__(self, model: PilotModel, clock: Clock = time.monotonic):
        super().__init__("NMEA2000 rate of turn", True, NMEA2000_RATEOFTURN, model, clock)

    def handle(self, frame: Frame) -> bool:
        rad = frame.read_int(1, 4, signed=True)
        self._mark()
        self.model.set_rot(srad2deg(rad) / 1000.0, True)
        return True

    def tick(self) -> None:
        if self._expired():
            self.model.set_rot(0, False)


class CommandStatusRx(_TimedRx):
    """Status broadcast by the pilot: target heading, rudder, mode and slot."""

    def __init__(
        self,
        model: PilotModel,
        tx_table: TxTable,
        clock: Clock = time.monotonic,
    ):
        super().__init__(
            "Private Command Status", True, PRIVATE_COMMAND_STATUS, model, clock
        )
        self.tx_table = tx_table
        self.command_factors_request: TxFrame | None = None
        self.command_factors: TxFrame | None = None
        self.addr = -1
        self.group = -1
        self.mode = -1

    def _point_at(self, address: int) -> None:
        for frame in (self.command_factors_request, self.command_factors):
            if frame is not None:
                frame.set_destination(address)

    def handle(self, frame: Frame) -> bool:
        source = frame.source()
        if self.command_factors_request is None:
            self.command_factors_request = self.tx_table.by_pgn(
                PRIVATE_COMMAND_FACTORS_REQUEST_PGN
            )
            self.command_factors = self.tx_table.by_pgn(PRIVATE_COMMAND_FACTORS)
            self._point_at(source)
            logger.info("Command address %d", source)
        self._mark()

        heading = frame.read_int(0, 2, signed=True)
        auto_mode = frame.read_int(3, 1, signed=True)
        rudder = _to_int8(-frame.read_int(4, 1, signed=True))
        params_slot = frame.read_int(5, 1, signed=True)

        self.model.set_pilot_heading(rad2deg(heading), auto_mode == AUTO_HEAD)
        self.model.set_rudder(rudder, True)
        if self.addr != source:
            self._point_at(source)
        if self.addr != source or self.group != params_slot or self.mode != auto_mode:
            self.addr = source
            self.group = params_slot
            self.mode = auto_mode
            name = MODE_NAMES.get(auto_mode)
            if name is not None:
                self.model.set_status(source, params_slot, name)
        return True

    def tick(self) -> None:
        if self._expired():
            self.addr = -1
            self.group = -1
            self.mode = -1
            self.model.set_pilot_heading(0, False)
            self.model.set_rudder(0, False)
            self.model.set_status(-1, -1, SILENT_COMMAND)


# Imported under a distinct name to keep the handler body readable.
from .defs import PRIVATE_COMMAND_FACTORS_REQUEST as PRIVATE_COMMAND_FACTORS_REQUEST_PGN  # noqa: E402


class CommandFactorsRx(RxHandler):
    """Command factors of one parameter slot, as reported by the pilot."""

    def __init__(self, model: PilotModel, clock: Clock = time.monotonic):
        super().__init__(
            "Private Command Factors", True, PRIVATE_COMMAND_FACTORS, model, clock
        )

    def handle(self, frame: Frame) -> bool:
        slot = frame.read_int(0, 1, signed=True)
        values = [frame.read_int(1 + i * 2, 2, signed=True) for i in range(NFACTORS)]
        self.model.set_factors(slot, values)
        return True


class RemoteControlRx(RxHandler):
    """Remote control messages; only the radio report is used."""

    def __init__(self, model: PilotModel, clock: Clock = time.monotonic):
        super().__init__(
            "Private Remote Control", True, PRIVATE_REMOTE_CONTROL, model, clock
        )

    def handle(self, frame: Frame) -> bool:
        control_type = frame.read_int(0, 1)
        subtype = frame.read_int(1, 1)
        if control_type != CONTROL_REMOTE_RADIO:
            return False
        if frame.length != CONTROL_REMOTE_RADIO_SIZE or subtype != 0:
            return False
        self.model.set_radio(
            frame.read_int(2, 1), frame.read_int(3, 1), frame.read_int(4, 1)
        )
        return True


class RxTable:
    """All PGNs the node receives, in a fixed order."""

    def __init__(
        self,
        model: PilotModel,
        tx_table: TxTable,
        clock: Clock = time.monotonic,
    ):
        self.attitude = AttitudeRx(model, clock)
        self.rate_of_turn = RateOfTurnRx(model, clock)
        self.command_status = CommandStatusRx(model, tx_table, clock)
        self.command_factors = CommandFactorsRx(model, clock)
        self.remote_control = RemoteControlRx(model, clock)
        self._handlers: tuple[RxHandler, ...] = (
            self.attitude,
            self.rate_of_turn,
            self.command_status,
            self.command_factors,
            self.remote_control,
        )

    def __iter__(self) -> Iterator[RxHandler]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def handle(self, frame: Frame) -> bool:
        """Pass ``frame`` to the handler of its PGN, if that one is enabled."""
        pgn = frame.pgn()
        for handler in self._handlers:
            if handler.pgn == pgn:
                return handler.handle(frame) if handler.enabled else False
        return False

    def tick(self) -> None:
        for handler in self._handlers:
            if handler.enabled:
                handler.tick()

    def get(self, index: int) -> RxHandler | None:
        """The handler at ``index``, or None when out of range."""
        if 0 <= index < len(self._handlers):
            return self._handlers[index]
        return None

    def index_of(self, pgn: int) -> int | None:
        """Index of the handler for ``pgn``, or None."""
        for index, handler in enumerate(self._handlers):
            if handler.pgn == pgn:
                return index
        return None

    def enable(self, index: int, enabled: bool) -> None:
        handler = self.get(index)
        if handler is not None:
            handler.enabled = enabled