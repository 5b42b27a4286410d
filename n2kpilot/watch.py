"""Commands that watch the bus for remote control frames and run programs."""

from __future__ import annotations

import socket
import struct
import subprocess
import sys
from typing import Iterable, Iterator, Sequence

from .defs import PRIVATE_REMOTE_CONTROL
from .frame import CAN_FRAME_SIZE, Frame
from .rx import CONTROL_BEEP, CONTROL_BEEP_SIZE

BEEP_PLAYER = "/usr/bin/audioplay"


def _warn(prog: str, message: str) -> None:
    print(f"{prog}: {message}", file=sys.stderr)


def pgn_filter(pgn: int) -> tuple[int, int]:
    """CAN id and mask matching frames of ``pgn`` on any address."""
    can_id = (((pgn >> 16) & 0x1) << 24) | (((pgn >> 8) & 0xFF) << 16)
    mask = (0x1 << 24) | (0xFF << 16)
    return can_id, mask


def source_address(can_id: int) -> int:
    return can_id & 0xFF


def _check_length(frame: Frame) -> None:
    if frame.length < 2:
        raise ValueError("short can frame")


def beep_type(frame: Frame) -> int | None:
    """The beep type of a BEEP control frame, or None for other frames."""
    _check_length(frame)
    if frame.data[0] != CONTROL_BEEP or frame.length != CONTROL_BEEP_SIZE:
        return None
    return frame.data[1]


def is_mob(frame: Frame) -> bool:
    """True for a man-over-board mark control frame."""
    _check_length(frame)
    return frame.data[0] == 0 and frame.data[1] == 0


def open_filtered_socket(pgn: int) -> socket.socket:
    """A raw CAN socket receiving only frames of ``pgn``."""
    sock = socket.socket(socket.AF_CAN, socket.SOCK_RAW, socket.CAN_RAW)
    try:
        can_id, mask = pgn_filter(pgn)
        print(f"id 0x{can_id:x} mask 0x{mask:x}")
        sock.setsockopt(
            socket.SOL_CAN_RAW, socket.CAN_RAW_FILTER, struct.pack("=II", can_id, mask)
        )
    except OSError:
        sock.close()
        raise
    return sock


def _frames(sock, prog: str) -> Iterator[Frame]:
    while True:
        try:
            raw = sock.recv(CAN_FRAME_SIZE)
        except OSError as exc:
            _warn(prog, f"recvfrom: {exc}")
            continue
        if not raw:
            return
        try:
            yield Frame.unpack(raw)
        except ValueError as exc:
            _warn(prog, str(exc))


def _run(prog: str, command: list[str]) -> None:
    try:
        subprocess.run(command, check=False)
    except OSError as exc:
        _warn(prog, f"exec: {exc}")


def _beep_loop(frames: Iterable[Frame], files: Sequence[str], prog: str = "watchcan_beep") -> None:
    for frame in frames:
        try:
            kind = beep_type(frame)
        except ValueError as exc:
            _warn(prog, str(exc))
            continue
        if kind is None:
            continue
        print(f"BEEP {kind} from source 0x{source_address(frame.can_id):x}")
        if kind >= len(files):
            _warn(prog, f"wrong BEEP type {kind}")
            continue
        _run(prog, [BEEP_PLAYER, files[kind]])


def _mob_loop(frames: Iterable[Frame], script: str, prog: str = "watchcan_mob") -> None:
    for frame in frames:
        try:
            mob = is_mob(frame)
        except ValueError as exc:
            _warn(prog, str(exc))
            continue
        if not mob:
            continue
        print(f"MOB from source 0x{source_address(frame.can_id):x}")
        _run(prog, [script])


def _open(prog: str):
    try:
        return open_filtered_socket(PRIVATE_REMOTE_CONTROL)
    except (OSError, AttributeError) as exc:
        _warn(prog, f"create CAN socket: {exc}")
        return None


def beep_main(argv: Sequence[str] | None = None) -> int:
    """Play ``argv[type]`` for every BEEP control frame seen on the bus."""
    prog = "watchcan_beep"
    files = list(sys.argv[1:] if argv is None else argv)
    if not files:
        _warn(prog, f"usage: {prog} <file> [<file>] ...")
        return 1
    sock = _open(prog)
    if sock is None:
        return 1
    with sock:
        _beep_loop(_frames(sock, prog), files, prog)
    return 0


def mob_main(argv: Sequence[str] | None = None) -> int:
    """Run the given script for every man-over-board frame seen on the bus."""
    prog = "watchcan_mob"
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        _warn(prog, f"usage: {prog} <file>")
        return 1
    sock = _open(prog)
    if sock is None:
        return 1
    with sock:
        _mob_loop(_frames(sock, prog), args[0], prog)
    return 0