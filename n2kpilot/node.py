"""The NMEA 2000 node: address claiming, frame dispatch and the receive loop."""

from __future__ import annotations

import logging
import random
import select
import socket
import threading
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable

from .defs import (
    ERR_MSG_PREFIX,
    ISO_ADDRESS_CLAIM,
    ISO_REQUEST,
    NMEA2000_ADDR_GLOBAL,
    NMEA2000_ADDR_MAX,
)
from .frame import CAN_FRAME_SIZE, Frame
from .model import PilotModel
from .rx import RxTable
from .tx import TxTable

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = 0x80
DEFAULT_MANUF_CODE = 0x7FF
DEVICE_FUNCTION = 130
DEVICE_CLASS = 120

# Seconds to wait before retrying a failed configuration or claim.
RETRY_DELAY = 1.0
# Seconds an address claim must go uncontested before the address is ours.
CLAIM_DELAY = 1.0


class NodeState(Enum):
    UNCONF = auto()
    DOINGCONF = auto()
    DOCLAIM = auto()
    CLAIMING = auto()
    CLAIMED = auto()


@dataclass
class NodeConfig:
    """Settings that may be overridden by the configuration file."""

    canif: str = ""
    unique_number: int = 0
    device_instance: int = 0
    manuf_code: int = DEFAULT_MANUF_CODE


class Node:
    """A node on the NMEA 2000 bus, sending and receiving through a CAN socket."""

    def __init__(
        self,
        model: PilotModel,
        clock: Callable[[], float] = time.monotonic,
        unique_number: int | None = None,
    ):
        if unique_number is None:
            unique_number = random.getrandbits(21)
        self.model = model
        self.clock = clock
        self.address = DEFAULT_ADDRESS
        self.config = NodeConfig(unique_number=unique_number)
        self.tx = TxTable()
        self.rx = RxTable(model, self.tx, clock)
        self.state = NodeState.UNCONF
        self.sock = None
        self.claim_date = 0.0
        self.poll_timeout = 1.0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> "Node":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def open(self, sock=None) -> None:
        """Use ``sock`` (or a new raw CAN socket) and prepare the address claim."""
        self.state = NodeState.UNCONF
        if sock is None:
            try:
                sock = socket.socket(socket.AF_CAN, socket.SOCK_RAW, socket.CAN_RAW)
            except OSError as exc:
                logger.error("%screate CAN socket: %s", ERR_MSG_PREFIX, exc)
                raise
        self.sock = sock
        cfg = self.config
        claim = self.tx.iso_address_claim
        self.tx.set_source(self.address)
        claim.set_destination(NMEA2000_ADDR_GLOBAL)
        claim.set_name(
            cfg.unique_number, cfg.manuf_code, DEVICE_FUNCTION, DEVICE_CLASS,
            cfg.device_instance, 0,
        )
        claim.enabled = True
        claim.valid = True

    def _require_socket(self):
        if self.sock is None:
            raise RuntimeError("node is not open")
        return self.sock

    def configure(self) -> bool:
        """Bind the socket to the configured interface; True on success."""
        sock = self._require_socket()
        canif = self.config.canif
        if not canif:
            return False
        try:
            sock.bind((canif,))
        except OSError as exc:
            if self.state is NodeState.UNCONF:
                logger.error("%scan't bind CAN socket to %s: %s", ERR_MSG_PREFIX, canif, exc)
            return False
        return True

    def step(self) -> float:
        """Run one iteration of the node loop; returns seconds to wait before the next."""
        sock = self._require_socket()
        state = self.state
        if state in (NodeState.UNCONF, NodeState.DOINGCONF):
            if self.configure():
                self.state = NodeState.DOCLAIM
                return 0.0
            self.state = NodeState.DOINGCONF
            return RETRY_DELAY
        if state is NodeState.DOCLAIM:
            if self.tx.iso_address_claim.send(sock):
                self.state = NodeState.CLAIMING
                self.claim_date = self.clock()
                return 0.0
            logger.warning("failed to send claim")
            return RETRY_DELAY
        if state is NodeState.CLAIMING:
            if self.clock() - self.claim_date >= CLAIM_DELAY:
                logger.info("NMEA2000 address %d", self.address)
                self.state = NodeState.CLAIMED
        self._poll(sock)
        return 0.0

    def _poll(self, sock) -> None:
        try:
            ready, _, _ = select.select([sock], [], [], self.poll_timeout)
        except (OSError, ValueError) as exc:
            logger.error("%sselect: %s", ERR_MSG_PREFIX, exc)
            return
        if not ready:
            self.rx.tick()
            return
        try:
            raw = sock.recv(CAN_FRAME_SIZE)
        except OSError as exc:
            logger.error("%sread CAN socket: %s", ERR_MSG_PREFIX, exc)
        else:
            if raw:
                try:
                    frame = Frame.unpack(raw)
                except ValueError as exc:
                    logger.error("%sread CAN socket: %s", ERR_MSG_PREFIX, exc)
                else:
                    self.parse_frame(frame)
        self.rx.tick()

    def run(self, stop_event: threading.Event) -> None:
        """Loop until ``stop_event`` is set."""
        while not stop_event.is_set():
            delay = self.step()
            if delay > 0:
                stop_event.wait(delay)

    def start(self) -> threading.Thread:
        """Run the node loop in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("node is already running")
        self._require_socket()
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self.run, args=(self._stop,), name="nmea2000", daemon=True
        )
        self._thread.start()
        return self._thread

    def close(self) -> None:
        """Stop the background thread, if any, and close the socket."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def parse_frame(self, frame: Frame) -> None:
        """Dispatch a received frame."""
        if frame.is_pdu1() and frame.destination() not in (
            self.address, NMEA2000_ADDR_GLOBAL
        ):
            return
        pgn = frame.pgn()
        if pgn == ISO_ADDRESS_CLAIM:
            self.handle_address_claim(frame)
        elif pgn == ISO_REQUEST:
            self.handle_iso_request(frame)
        else:
            self.rx.handle(frame)

    def handle_address_claim(self, frame: Frame) -> None:
        """Resolve a claim for our address: give it up or defend it."""
        if frame.source() != self.address:
            return
        claim = self.tx.iso_address_claim
        for theirs, ours in zip(reversed(frame.data[:8]), reversed(claim.data[:8])):
            if theirs < ours:
                self.address += 1
                if self.address >= NMEA2000_ADDR_MAX:
                    self.address = 0
                self.tx.set_source(self.address)
                self.state = NodeState.DOCLAIM
                return
            if theirs > ours:
                break
        if not claim.send(self.sock):
            self.state = NodeState.DOCLAIM

    def handle_iso_request(self, frame: Frame) -> None:
        """Answer a request for one of the PGNs we transmit."""
        if frame.length < 3:
            return
        pgn = frame.read_int(0, 3)
        if self.tx.index_of(pgn) is None:
            return
        self.tx.send(self.sock, pgn)

    def send_by_pgn(self, pgn: int, force: bool = False) -> bool:
        """Send the frame for ``pgn``; False until our address is claimed."""
        if self.state is not NodeState.CLAIMED:
            return False
        return self.tx.send(self.sock, pgn, force)

    def tx_enable(self, index: int, enabled: bool) -> None:
        self.tx.enable(index, enabled)

    def rx_enable(self, index: int, enabled: bool) -> None:
        self.rx.enable(index, enabled)