from n2kpilot.model import PilotModel
from n2kpilot.node import Node
from n2kpilot.properties import Properties


def make_node():
    return Node(PilotModel(), unique_number=77)


def test_missing_file_keeps_defaults(tmp_path):
    node = make_node()
    Properties(tmp_path / "none.cfg", node)
    assert node.config.unique_number == 77
    assert node.config.canif == ""


def test_load_overrides(tmp_path):
    path = tmp_path / "cfg.ini"
    path.write_text(
        "[NMEA2000]\nInterface=can0\nUniqueNumber=1234\nDeviceInstance=3\n"
    )
    node = make_node()
    manuf = node.config.manuf_code
    Properties(path, node)
    assert node.config.canif == "can0"
    assert node.config.unique_number == 1234
    assert node.config.device_instance == 3
    assert node.config.manuf_code == manuf


def test_invalid_number_ignored(tmp_path):
    path = tmp_path / "cfg.ini"
    path.write_text("[NMEA2000]\nUniqueNumber=abc\n")
    node = make_node()
    Properties(path, node)
    assert node.config.unique_number == 77


def test_save_round_trip(tmp_path):
    path = tmp_path / "sub" / "cfg.ini"
    node = make_node()
    props = Properties(path, node)
    node.config.canif = "vcan1"
    node.config.device_instance = 9
    node.config.manuf_code = 42
    props.save()

    other = Node(PilotModel(), unique_number=1)
    Properties(path, other)
    assert other.config == node.config


def test_empty_interface_not_written(tmp_path):
    path = tmp_path / "cfg.ini"
    node = make_node()
    Properties(path, node).save()
    text = path.read_text()
    assert "Interface" not in text
    assert "UniqueNumber=77" in text


def test_other_sections_kept(tmp_path):
    path = tmp_path / "cfg.ini"
    path.write_text("[Position]\nX=10\n")
    node = make_node()
    Properties(path, node).save()
    text = path.read_text()
    assert "[Position]" in text
    assert "X=10" in text
    assert "[NMEA2000]" in text