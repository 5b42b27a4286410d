"""Shared state of the pilot display, with change notification."""

from __future__ import annotations

import threading
from enum import IntEnum
from typing import Callable, Sequence

from .defs import NFACTORS


class DataUpdate(IntEnum):
    """Which part of the display a change concerns."""

    DATA_NAV = 0
    DATA_PARAMS = 1
    DATA_STATUS = 2
    RADIO_PARAMS = 3


Callback = Callable[[DataUpdate, "PilotModel"], None]


class PilotModel:
    """Values received from the bus, passed on to subscribed views."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: list[Callback] = []
        self.boat_heading = 0.0
        self.boat_heading_valid = False
        self.pilot_heading = 0.0
        self.pilot_heading_valid = False
        self.boat_rot = 0.0
        self.boat_rot_valid = False
        self.rudder = 0.0
        self.rudder_valid = False
        self.addr = -1
        self.group = -1
        self.mode = ""
        self.param_slot = -1
        self.param_values: tuple[int, ...] = (0,) * NFACTORS
        self.radio_txv = 0
        self.radio_state = 0
        self.radio_rssi = 0

    def subscribe(self, callback: Callback) -> Callable[[], None]:
        """Register ``callback(update, model)``; returns a function that removes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _wake(self, update: DataUpdate) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(update, self)

    def set_attitude(self, degrees: float, valid: bool) -> None:
        self.boat_heading_valid = valid
        if valid:
            self.boat_heading = degrees
        self._wake(DataUpdate.DATA_NAV)

    def set_rot(self, degrees: float, valid: bool) -> None:
        self.boat_rot_valid = valid
        if valid:
            self.boat_rot = degrees
        self._wake(DataUpdate.DATA_NAV)

    def set_pilot_heading(self, degrees: float, valid: bool) -> None:
        self.pilot_heading_valid = valid
        if valid:
            self.pilot_heading = degrees
        self._wake(DataUpdate.DATA_NAV)

    def set_rudder(self, degrees: float, valid: bool) -> None:
        self.rudder_valid = valid
        if valid:
            self.rudder = degrees
        self._wake(DataUpdate.DATA_NAV)

    def set_status(self, addr: int, group: int, mode: str) -> None:
        self.addr = addr
        self.group = group
        self.mode = mode
        self._wake(DataUpdate.DATA_STATUS)

    def set_factors(self, slot: int, values: Sequence[int]) -> None:
        if len(values) < NFACTORS:
            raise ValueError(f"expected {NFACTORS} factors, got {len(values)}")
        self.param_slot = slot
        self.param_values = tuple(values[:NFACTORS])
        self._wake(DataUpdate.DATA_PARAMS)

    def set_radio(self, txv: int, state: int, rssi: int) -> None:
        self.radio_txv = txv
        self.radio_state = state
        self.radio_rssi = rssi
        self._wake(DataUpdate.RADIO_PARAMS)