import pytest

from n2kpilot.model import DataUpdate, PilotModel


@pytest.fixture
def recorded():
    model = PilotModel()
    events = []
    model.subscribe(lambda update, m: events.append(update))
    return model, events


def test_attitude_valid_updates_value(recorded):
    model, events = recorded
    model.set_attitude(12.5, True)
    assert model.boat_heading == 12.5
    assert model.boat_heading_valid is True
    assert events == [DataUpdate.DATA_NAV]


def test_invalid_keeps_previous_value(recorded):
    model, _ = recorded
    model.set_rot(3.0, True)
    model.set_rot(9.0, False)
    assert model.boat_rot == 3.0
    assert model.boat_rot_valid is False


@pytest.mark.parametrize("setter,attr", [
    ("set_pilot_heading", "pilot_heading"),
    ("set_rudder", "rudder"),
    ("set_attitude", "boat_heading"),
])
def test_nav_setters(recorded, setter, attr):
    model, events = recorded
    getattr(model, setter)(42.0, True)
    assert getattr(model, attr) == 42.0
    assert events == [DataUpdate.DATA_NAV]


def test_status(recorded):
    model, events = recorded
    model.set_status(5, 2, "On")
    assert (model.addr, model.group, model.mode) == (5, 2, "On")
    assert events == [DataUpdate.DATA_STATUS]


def test_factors_are_copied(recorded):
    model, events = recorded
    values = [1, 2, 3]
    model.set_factors(4, values)
    values[0] = 99
    assert model.param_slot == 4
    assert model.param_values == (1, 2, 3)
    assert events == [DataUpdate.DATA_PARAMS]


def test_factors_too_few_raises():
    with pytest.raises(ValueError):
        PilotModel().set_factors(0, [1, 2])


def test_radio(recorded):
    model, events = recorded
    model.set_radio(33, 0x10, 70)
    assert (model.radio_txv, model.radio_state, model.radio_rssi) == (33, 0x10, 70)
    assert events == [DataUpdate.RADIO_PARAMS]


def test_callback_receives_model():
    model = PilotModel()
    seen = []
    model.subscribe(lambda update, m: seen.append(m))
    model.set_radio(1, 2, 3)
    assert seen == [model]


def test_unsubscribe_stops_notifications():
    model = PilotModel()
    events = []
    unsubscribe = model.subscribe(lambda update, m: events.append(update))
    model.set_rudder(1.0, True)
    unsubscribe()
    model.set_rudder(2.0, True)
    assert events == [DataUpdate.DATA_NAV]