"""Persistent NMEA 2000 settings of the node."""

from __future__ import annotations

import configparser
import re
from os import PathLike
from pathlib import Path

SECTION = "NMEA2000"
KEY_INTERFACE = "Interface"
_INT_KEYS = (
    ("UniqueNumber", "unique_number"),
    ("DeviceInstance", "device_instance"),
    ("ManufacturerCode", "manuf_code"),
)

_INTEGER = re.compile(r"\s*[+-]?\d+\s*")


class Properties:
    """Loads the node's bus settings from a file and saves them back."""

    def __init__(self, path: str | PathLike, node):
        self.path = Path(path)
        self.node = node
        self._parser = configparser.ConfigParser(interpolation=None)
        self._parser.optionxform = str
        if self.path.exists():
            with self.path.open(encoding="utf-8") as fh:
                self._parser.read_file(fh)

        cfg = node.config
        interface = self._parser.get(SECTION, KEY_INTERFACE, fallback=None)
        if interface is not None:
            cfg.canif = interface
        for key, attr in _INT_KEYS:
            text = self._parser.get(SECTION, key, fallback=None)
            if text is not None and _INTEGER.fullmatch(text) is not None:
                setattr(cfg, attr, int(text))

    def save(self) -> None:
        """Write the node's current settings, keeping the file's other entries."""
        cfg = self.node.config
        if not self._parser.has_section(SECTION):
            self._parser.add_section(SECTION)
        if cfg.canif:
            self._parser.set(SECTION, KEY_INTERFACE, cfg.canif)
        for key, attr in _INT_KEYS:
            self._parser.set(SECTION, key, str(int(getattr(cfg, attr))))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            self._parser.write(fh, space_around_delimiters=False)