"""Radio remote control: decodes button packets and turns them into bus commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union

from .defs import (
    AUTO_HEAD,
    AUTO_OFF,
    NMEA2000_ADDR_GLOBAL,
    NMEA2000_PRIORITY_INFO,
    NMEA2000_PRIORITY_SECURITY,
    PRIVATE_REMOTE_CONTROL,
    deg2rad,
    rad2deg,
)
from .frame import CAN_EFF_FLAG, Frame
from .rx import (
    CONTROL_BEEP,
    CONTROL_BEEP_LONG,
    CONTROL_BEEP_SHORT,
    CONTROL_BEEP_SIZE,
    CONTROL_MOB,
    CONTROL_MOB_MARK,
    CONTROL_MOB_SIZE,
    CONTROL_REMOTE_RADIO,
    CONTROL_REMOTE_RADIO_SIZE,
)

logger = logging.getLogger(__name__)

# Identity of the remote on the bus.
USER_ADDRESS = 128
USER_MANUF_CODE = 0x7FE
USER_DEVICE_INSTANCE = 0
USER_DEVICE_FUNCTION = 160
USER_DEVICE_CLASS = 40
USER_INDUSTRY_GROUP = 4
USER_SYSTEM_INSTANCE = 0

# Serial number the radio receiver reports for the paired transmitter.
RADIO_SERIAL = bytes((0xE1, 0x1D, 0x00))
RADIO_PACKET_LENGTH = 8
_LF = 0x0A
_CR = 0x0D

# Rate of the free-running timer the original timings were expressed in.
TIMER_HZ = 9765.625
# A button held longer than this is a long press.
LONG_PRESS = 10000 / TIMER_HZ
# Heading changes are only sent while the pilot's status is this fresh.
COMMAND_TIMEOUT = 15000 / TIMER_HZ

NBUTTONS = 8


@dataclass(frozen=True)
class RadioPacket:
    """Content of one packet from the radio receiver."""

    buttons: int
    txv: int
    state: int
    rssi: int


class RadioDecoder:
    """Splits the receiver's byte stream into packets of the paired transmitter."""

    def __init__(self):
        self._buffer = bytearray()

    def feed(self, data: bytes) -> list[RadioPacket]:
        """Consume bytes; return the complete packets they finish."""
        packets = []
        for byte in bytes(data):
            if byte == _LF:
                continue
            if byte == _CR:
                if len(self._buffer) == RADIO_PACKET_LENGTH:
                    packet = self._decode(bytes(self._buffer))
                    if packet is not None:
                        packets.append(packet)
                self._buffer.clear()
            elif len(self._buffer) >= RADIO_PACKET_LENGTH:
                # Protocol error: too many bytes before the end of line.
                self._buffer.clear()
            else:
                self._buffer.append(byte)
        return packets

    @staticmethod
    def _decode(raw: bytes) -> RadioPacket | None:
        if raw[:3] != RADIO_SERIAL:
            return None
        logger.debug("rx sn 0x%02x%02x%02x", raw[2], raw[1], raw[0])
        return RadioPacket(buttons=raw[3], txv=raw[5], state=raw[6], rssi=raw[7])


@dataclass(frozen=True)
class ButtonEvent:
    """A short (released before the long-press delay) or long press of a button."""

    button: int
    long: bool = False


class ButtonTracker:
    """Turns successive button states into short and long press events."""

    def __init__(self):
        self.previous = 0
        self._pressed: dict[int, float] = {}

    def update(self, buttons: int, now: float) -> list[ButtonEvent]:
        """Take a new button bit mask; return the short presses it completes."""
        if buttons == self.previous:
            return []
        events = []
        for button in range(1, NBUTTONS + 1):
            bit = 1 << (button - 1)
            down = bool(buttons & bit)
            was_down = bool(self.previous & bit)
            if down and not was_down:
                self._pressed.setdefault(button, now)
            elif was_down and not down:
                if self._pressed.pop(button, None) is not None:
                    events.append(ButtonEvent(button, False))
        self.previous = buttons
        return events

    def poll(self, now: float) -> list[ButtonEvent]:
        """Return the buttons that have now been held long enough."""
        events = []
        for button, since in sorted(self._pressed.items()):
            if now - since > LONG_PRESS:
                events.append(ButtonEvent(button, True))
        for event in events:
            del self._pressed[event.button]
        return events


@dataclass(frozen=True)
class EngageCommand:
    """Request to the pilot to engage with a new target heading."""

    destination: int
    auto_mode: int
    heading: int
    params_slot: int


Message = Union[Frame, EngageCommand]


def _control_frame(priority: int, payload: bytes) -> Frame:
    can_id = (
        ((priority & 0x7) << 26)
        | (PRIVATE_REMOTE_CONTROL << 8)
        | (NMEA2000_ADDR_GLOBAL << 8)
        | CAN_EFF_FLAG
    ) & 0xFFFFFFFF
    return Frame(can_id, payload, len(payload))


def control_mob_frame() -> Frame:
    """Man-over-board mark, broadcast at security priority."""
    payload = bytes((CONTROL_MOB, CONTROL_MOB_MARK))[:CONTROL_MOB_SIZE]
    return _control_frame(NMEA2000_PRIORITY_SECURITY, payload)


def control_radio_frame(txv: int, state: int, rssi: int) -> Frame:
    """Report of the radio link: battery voltage, state and signal strength."""
    payload = bytes((CONTROL_REMOTE_RADIO, 0, txv & 0xFF, state & 0xFF, rssi & 0xFF))
    return _control_frame(NMEA2000_PRIORITY_INFO, payload[:CONTROL_REMOTE_RADIO_SIZE])


def control_beep_frame(beep_type: int) -> Frame:
    """Ask listeners to play the beep of ``beep_type``."""
    payload = bytes((CONTROL_BEEP, beep_type & 0xFF))[:CONTROL_BEEP_SIZE]
    return _control_frame(NMEA2000_PRIORITY_INFO, payload)


def device_name(unique_number: int) -> bytes:
    """The 8-byte NAME the remote claims its address with."""
    if not 0 <= unique_number < (1 << 21):
        raise ValueError(f"unique number {unique_number} does not fit in 21 bits")
    return bytes((
        (unique_number >> 13) & 0xFF,
        (unique_number >> 5) & 0xFF,
        ((unique_number & 0x1F) << 3) | ((USER_MANUF_CODE >> 8) & 0x7),
        USER_MANUF_CODE & 0xFF,
        USER_DEVICE_INSTANCE,
        USER_DEVICE_FUNCTION,
        (USER_DEVICE_CLASS << 1) & 0xFF,
        0x80 | (USER_INDUSTRY_GROUP << 4) | USER_SYSTEM_INSTANCE,
    ))


# Button events acted upon, in the order they are handled.
_ACTIONS: tuple[tuple[ButtonEvent, int | None, int], ...] = (
    (ButtonEvent(1, False), -1, CONTROL_BEEP_SHORT),
    (ButtonEvent(2, False), +1, CONTROL_BEEP_SHORT),
    (ButtonEvent(4, False), -10, CONTROL_BEEP_SHORT),
    (ButtonEvent(5, False), +10, CONTROL_BEEP_SHORT),
    (ButtonEvent(4, True), -90, CONTROL_BEEP_LONG),
    (ButtonEvent(5, True), +90, CONTROL_BEEP_LONG),
    (ButtonEvent(3, True), None, 0),
)


class RemoteController:
    """Reacts to radio packets and pilot status by sending bus messages.

    ``send`` is called with a :class:`Frame` for remote control messages
    (source address left at zero) and with an :class:`EngageCommand` for
    heading changes.
    """

    def __init__(self, send: Callable[[Message], object]):
        self.send = send
        self.tracker = ButtonTracker()
        self.last_status: float | None = None
        self.command_address: int | None = None
        self.received_heading = 0
        self.auto_mode = AUTO_OFF
        self.params_slot = 0
        self.target_heading = 0
        self.last_packet: RadioPacket | None = None
        self._pending: set[ButtonEvent] = set()

    def receive_status(
        self, source: int, heading: int, auto_mode: int, params_slot: int, now: float
    ) -> None:
        """Record a status report from the pilot at address ``source``."""
        self.last_status = now
        self.command_address = source
        self.received_heading = heading
        self.auto_mode = auto_mode
        self.params_slot = params_slot

    def on_packet(self, packet: RadioPacket, now: float) -> list[ButtonEvent]:
        """Handle a radio packet; return the button events acted upon."""
        logger.debug(
            "btn 0x%x txv %d stat 0x%x rssi %d",
            packet.buttons, packet.txv, packet.state, packet.rssi,
        )
        self.last_packet = packet
        if packet.buttons != self.tracker.previous:
            self.send(control_radio_frame(packet.txv, packet.state, packet.rssi))
            self._pending.update(self.tracker.update(packet.buttons, now))
        return self.poll(now)

    def poll(self, now: float) -> list[ButtonEvent]:
        """Check for long presses and act on pending events, in a fixed order."""
        self._pending.update(self.tracker.poll(now))
        handled = []
        for event, change, beep in _ACTIONS:
            if event not in self._pending:
                continue
            if change is None:
                self.send(control_mob_frame())
            else:
                self.update_heading(change, beep, now)
            handled.append(event)
        self._pending.clear()
        return handled

    def update_heading(self, change: int, beep_type: int, now: float) -> bool:
        """Shift the pilot's heading by ``change`` degrees; True when sent."""
        if self.last_status is None or now - self.last_status > COMMAND_TIMEOUT:
            return False
        if self.auto_mode != AUTO_HEAD or self.command_address is None:
            return False
        heading = int(rad2deg(self.received_heading) + 0.5) + change
        heading %= 360
        self.target_heading = deg2rad(heading)
        self.send(EngageCommand(
            self.command_address, self.auto_mode, self.target_heading, self.params_slot
        ))
        self.send(control_beep_frame(beep_type))
        return True