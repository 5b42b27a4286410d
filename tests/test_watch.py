from unittest import mock

import pytest

from n2kpilot.defs import PRIVATE_REMOTE_CONTROL
from n2kpilot.frame import Frame
from n2kpilot.watch import (
    BEEP_PLAYER,
    _beep_loop,
    _mob_loop,
    beep_main,
    beep_type,
    is_mob,
    mob_main,
    pgn_filter,
    source_address,
)


def test_pgn_filter_matches_pgn():
    can_id, mask = pgn_filter(PRIVATE_REMOTE_CONTROL)
    assert mask == 0x01FF0000
    assert can_id & mask == can_id
    assert Frame(can_id).pgn() == PRIVATE_REMOTE_CONTROL


def test_pgn_filter_ignores_addresses():
    can_id, mask = pgn_filter(PRIVATE_REMOTE_CONTROL)
    addressed = can_id | 0x2A17
    assert addressed & mask == can_id


def test_source_address_matches_frame():
    can_id = (PRIVATE_REMOTE_CONTROL << 8) | 0x42
    assert source_address(can_id) == Frame(can_id).source()


def test_beep_type():
    assert beep_type(Frame(0, bytes([4, 1]), 2)) == 1
    assert beep_type(Frame(0, bytes([4, 0]), 2)) == 0
    assert beep_type(Frame(0, bytes([4, 1, 0]), 3)) is None
    assert beep_type(Frame(0, bytes([5, 0]), 2)) is None


def test_short_frames_rejected():
    with pytest.raises(ValueError):
        beep_type(Frame(0, bytes([4]), 1))
    with pytest.raises(ValueError):
        is_mob(Frame(0, b"", 0))


def test_is_mob():
    assert is_mob(Frame(0, bytes([0, 0]), 2)) is True
    assert is_mob(Frame(0, bytes([0, 1]), 2)) is False
    assert is_mob(Frame(0, bytes([4, 0]), 2)) is False


def test_usage_errors(capsys):
    assert beep_main([]) == 1
    assert "usage" in capsys.readouterr().err
    assert mob_main([]) == 1
    assert mob_main(["a", "b"]) == 1


def test_beep_loop_plays_matching_file(capsys):
    frames = [
        Frame(0x33, bytes([4, 0]), 2),
        Frame(0x33, bytes([4, 5]), 2),
        Frame(0x33, bytes([1, 0]), 2),
        Frame(0x33, bytes([4]), 1),
    ]
    with mock.patch("n2kpilot.watch.subprocess.run") as run:
        _beep_loop(frames, ["short.wav", "long.wav"])
    run.assert_called_once_with([BEEP_PLAYER, "short.wav"], check=False)
    out = capsys.readouterr()
    assert "BEEP 0 from source 0x33" in out.out
    assert "wrong BEEP type 5" in out.err


def test_mob_loop_runs_script(capsys):
    frames = [Frame(0x21, bytes([0, 0]), 2), Frame(0x21, bytes([0, 1]), 2)]
    with mock.patch("n2kpilot.watch.subprocess.run") as run:
        _mob_loop(frames, "alarm.sh")
    run.assert_called_once_with(["alarm.sh"], check=False)
    assert "MOB from source 0x21" in capsys.readouterr().out


def test_exec_failure_is_reported(capsys):
    with mock.patch("n2kpilot.watch.subprocess.run", side_effect=OSError("missing")):
        _mob_loop([Frame(0x21, bytes([0, 0]), 2)], "alarm.sh")
    assert "exec" in capsys.readouterr().err