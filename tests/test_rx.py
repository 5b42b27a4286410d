import pytest

from n2kpilot.defs import (
    AUTO_HEAD,
    AUTO_OFF,
    AUTO_STANDBY,
    NMEA2000_ATTITUDE,
    NMEA2000_RATEOFTURN,
    PRIVATE_COMMAND_FACTORS,
    PRIVATE_COMMAND_STATUS,
    PRIVATE_REMOTE_CONTROL,
    deg2rad,
    rad2deg,
    udeg2rad,
)
from n2kpilot.frame import CAN_EFF_FLAG, Frame
from n2kpilot.model import DataUpdate, PilotModel
from n2kpilot.rx import (
    CONTROL_BEEP,
    CONTROL_REMOTE_RADIO,
    CONTROL_REMOTE_RADIO_SIZE,
    SILENT_COMMAND,
    AttitudeRx,
    CommandFactorsRx,
    CommandStatusRx,
    RateOfTurnRx,
    RemoteControlRx,
    RxTable,
)
from n2kpilot.tx import TxTable


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_frame(pgn, src, payload, dst=0):
    can_id = CAN_EFF_FLAG | (6 << 26) | (pgn << 8) | (dst << 8) | src
    return Frame(can_id, bytes(payload), len(payload))


def status_payload(heading_deg, auto_mode, rudder, slot):
    frame = Frame(0, None, 6)
    frame.write_int(0, 2, deg2rad(heading_deg))
    frame.write_int(2, 1, 0)
    frame.write_int(3, 1, auto_mode)
    frame.write_int(4, 1, rudder)
    frame.write_int(5, 1, slot)
    return bytes(frame.data[:6])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def model():
    return PilotModel()


def test_attitude_sets_heading(model, clock):
    rx = AttitudeRx(model, clock)
    payload = bytearray(8)
    payload[1:3] = deg2rad(90).to_bytes(2, "little", signed=True)
    assert rx.handle(make_frame(NMEA2000_ATTITUDE, 3, payload)) is True
    assert model.boat_heading_valid is True
    assert model.boat_heading == pytest.approx(90, abs=0.01)


def test_attitude_negative_angle_wraps(model, clock):
    rx = AttitudeRx(model, clock)
    rad = deg2rad(270)
    payload = bytearray(8)
    payload[1:3] = rad.to_bytes(2, "little", signed=True)
    rx.handle(make_frame(NMEA2000_ATTITUDE, 3, payload))
    assert model.boat_heading == pytest.approx(rad2deg(rad))
    assert 0 <= model.boat_heading < 360


def test_attitude_tick_timeout(model, clock):
    rx = AttitudeRx(model, clock)
    rx.handle(make_frame(NMEA2000_ATTITUDE, 3, bytes(8)))
    clock.now += 4.9
    rx.tick()
    assert model.boat_heading_valid is True
    clock.now += 0.2
    rx.tick()
    assert model.boat_heading_valid is False


def test_rate_of_turn(model, clock):
    rx = RateOfTurnRx(model, clock)
    payload = bytearray(8)
    payload[1:5] = udeg2rad(5000).to_bytes(4, "little", signed=True)
    assert rx.handle(make_frame(NMEA2000_RATEOFTURN, 3, payload)) is True
    assert model.boat_rot_valid is True
    assert model.boat_rot == pytest.approx(5.0, abs=1e-3)
    clock.now += 5
    rx.tick()
    assert model.boat_rot_valid is False


def test_command_status_first_frame_targets_pilot(model, clock):
    tx = TxTable()
    rx = CommandStatusRx(model, tx, clock)
    frame = make_frame(PRIVATE_COMMAND_STATUS, 42, status_payload(45, AUTO_HEAD, 10, 2))
    assert rx.handle(frame) is True
    assert tx.command_factors.destination() == 42
    assert tx.command_factors_request.destination() == 42
    assert model.pilot_heading_valid is True
    assert model.pilot_heading == pytest.approx(45, abs=0.01)
    assert model.rudder == -10
    assert (model.addr, model.group, model.mode) == (42, 2, "On")


def test_command_status_follows_new_address(model, clock):
    tx = TxTable()
    rx = CommandStatusRx(model, tx, clock)
    rx.handle(make_frame(PRIVATE_COMMAND_STATUS, 42, status_payload(0, AUTO_OFF, 0, 0)))
    rx.handle(make_frame(PRIVATE_COMMAND_STATUS, 17, status_payload(0, AUTO_OFF, 0, 0)))
    assert tx.command_factors.destination() == 17
    assert model.addr == 17
    assert model.mode == "Off"


def test_command_status_mode_names_and_heading_validity(model, clock):
    rx = CommandStatusRx(model, TxTable(), clock)
    rx.handle(make_frame(PRIVATE_COMMAND_STATUS, 9, status_payload(10, AUTO_STANDBY, 0, 1)))
    assert model.mode == "Standby"
    assert model.pilot_heading_valid is False


def test_command_status_reports_status_only_on_change(model, clock):
    updates = []
    model.subscribe(lambda update, _m: updates.append(update))
    rx = CommandStatusRx(model, TxTable(), clock)
    frame = make_frame(PRIVATE_COMMAND_STATUS, 42, status_payload(45, AUTO_HEAD, 0, 2))
    rx.handle(frame)
    rx.handle(frame)
    assert updates.count(DataUpdate.DATA_STATUS) == 1
    assert updates.count(DataUpdate.DATA_NAV) == 4


def test_command_status_unknown_mode_not_reported(model, clock):
    updates = []
    model.subscribe(lambda update, _m: updates.append(update))
    rx = CommandStatusRx(model, TxTable(), clock)
    rx.handle(make_frame(PRIVATE_COMMAND_STATUS, 42, status_payload(0, 7, 0, 0)))
    assert DataUpdate.DATA_STATUS not in updates
    assert rx.mode == 7


def test_command_status_rudder_wraps_as_int8(model, clock):
    rx = CommandStatusRx(model, TxTable(), clock)
    rx.handle(make_frame(PRIVATE_COMMAND_STATUS, 42, status_payload(0, AUTO_OFF, -128, 0)))
    assert model.rudder == -128


def test_command_status_timeout(model, clock):
    rx = CommandStatusRx(model, TxTable(), clock)
    rx.handle(make_frame(PRIVATE_COMMAND_STATUS, 42, status_payload(45, AUTO_HEAD, 3, 2)))
    clock.now += 5
    rx.tick()
    assert model.mode == SILENT_COMMAND
    assert (model.addr, model.group) == (-1, -1)
    assert model.pilot_heading_valid is False
    assert model.rudder_valid is False
    assert rx.addr == -1


def test_command_factors(model, clock):
    rx = CommandFactorsRx(model, clock)
    frame = make_frame(PRIVATE_COMMAND_FACTORS, 42, bytes(8), dst=0x80)
    frame.write_int(0, 1, 3)
    frame.write_int(1, 2, 100)
    frame.write_int(3, 2, -20)
    frame.write_int(5, 2, 7)
    assert rx.handle(frame) is True
    assert model.param_slot == 3
    assert model.param_values == (100, -20, 7)


def test_remote_radio(model, clock):
    rx = RemoteControlRx(model, clock)
    frame = make_frame(
        PRIVATE_REMOTE_CONTROL, 5, bytes([CONTROL_REMOTE_RADIO, 0, 33, 0x41, 200])
    )
    assert rx.handle(frame) is True
    assert (model.radio_txv, model.radio_state, model.radio_rssi) == (33, 0x41, 200)


@pytest.mark.parametrize(
    "payload",
    [
        bytes([CONTROL_REMOTE_RADIO, 0, 1, 2]),
        bytes([CONTROL_REMOTE_RADIO, 1, 1, 2, 3]),
        bytes([CONTROL_BEEP, 0]),
    ],
)
def test_remote_rejected(model, clock, payload):
    rx = RemoteControlRx(model, clock)
    assert rx.handle(make_frame(PRIVATE_REMOTE_CONTROL, 5, payload)) is False
    assert model.radio_txv == 0


def test_table_order_and_lookup(model, clock):
    table = RxTable(model, TxTable(), clock)
    pgns = [
        NMEA2000_ATTITUDE,
        NMEA2000_RATEOFTURN,
        PRIVATE_COMMAND_STATUS,
        PRIVATE_COMMAND_FACTORS,
        PRIVATE_REMOTE_CONTROL,
    ]
    assert [table.index_of(p) for p in pgns] == list(range(len(pgns)))
    assert all(table.get(i).pgn == p for i, p in enumerate(pgns))
    assert table.get(len(pgns)) is None
    assert table.get(-1) is None
    assert table.index_of(12345) is None


def test_table_dispatch_and_disable(model, clock):
    table = RxTable(model, TxTable(), clock)
    frame = make_frame(
        PRIVATE_REMOTE_CONTROL, 5, bytes([CONTROL_REMOTE_RADIO, 0, 9, 8, 7]), dst=0xFF
    )
    assert table.handle(frame) is True
    assert model.radio_txv == 9
    table.enable(table.index_of(PRIVATE_REMOTE_CONTROL), False)
    assert table.get(table.index_of(PRIVATE_REMOTE_CONTROL)).enabled is False
    assert table.handle(frame) is False


def test_table_unknown_pgn(model, clock):
    table = RxTable(model, TxTable(), clock)
    assert table.handle(make_frame(0x1F000, 5, bytes(8))) is False


def test_table_tick_skips_disabled(model, clock):
    table = RxTable(model, TxTable(), clock)
    table.handle(make_frame(NMEA2000_ATTITUDE, 3, bytes(8)))
    table.handle(make_frame(NMEA2000_RATEOFTURN, 3, bytes(8)))
    table.enable(table.index_of(NMEA2000_ATTITUDE), False)
    clock.now += 10
    table.tick()
    assert model.boat_heading_valid is True
    assert model.boat_rot_valid is False