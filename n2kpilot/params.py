"""Pilot parameter slots: editing, saving to a file and loading from one."""

from __future__ import annotations

import configparser
import logging
import re
from os import PathLike
from pathlib import Path
from typing import Sequence

from .defs import (
    NFACTORS,
    NPARAMS,
    PRIVATE_COMMAND_FACTORS,
    PRIVATE_COMMAND_FACTORS_REQUEST,
)
from .numberfield import NumberField

logger = logging.getLogger(__name__)

# Names of the factors in a parameters file, in PRIVATE_COMMAND_FACTORS order.
FACTOR_KEYS = ("error", "ROT", "accel")

_INTEGER = re.compile(r"\s*[+-]?\d+\s*")


class ParamsError(Exception):
    """A parameter slot could not be requested from the pilot."""


def _section(slot: int) -> str:
    return f"group{slot}"


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # keep key case as written
    return parser


def _request_slot(node, slot: int) -> bool:
    node.tx.command_factors_request.update(slot)
    return node.send_by_pgn(PRIVATE_COMMAND_FACTORS_REQUEST, True)


def _send_factors(node, slot: int, values: Sequence[int]) -> bool:
    node.tx.command_factors.update(slot, values)
    return node.send_by_pgn(PRIVATE_COMMAND_FACTORS, True)


class ParamsPanel:
    """Selection of a parameter slot and editing of its factors."""

    def __init__(self, node):
        self.node = node
        self.slot: int | None = None
        self.selection: int | None = None
        self.groups = tuple(f"group {i}" for i in range(NPARAMS))
        self.fields = [NumberField() for _ in range(NFACTORS)]

    def values(self) -> list[int]:
        """Current contents of the factor fields."""
        return [field.get_value() for field in self.fields]

    def select_slot(self, slot: int | None) -> bool:
        """Make ``slot`` current and ask the pilot for its factors."""
        if slot is None:
            return False
        if slot != self.slot:
            old = self.slot
            self.slot = slot
            if not _request_slot(self.node, slot):
                logger.error("setSlot %d: requestSlot failed, back to %s", slot, old)
                self.slot = old
                self.selection = old
                return False
        self.selection = slot
        return True

    def apply(self, values: Sequence[int] | None = None) -> bool:
        """Send the factors (``values``, or the fields' contents) for the current slot."""
        if self.slot is None:
            return False
        if values is not None:
            if len(values) < NFACTORS:
                raise ValueError(f"expected {NFACTORS} factors, got {len(values)}")
            for field, value in zip(self.fields, values):
                field.set_value(value)
        return _send_factors(self.node, self.slot, self.values())

    def reset(self) -> bool:
        """Clear the fields, or reload them from the pilot when a slot is selected."""
        if self.slot is None:
            for field in self.fields:
                field.set_value(0)
            return True
        return _request_slot(self.node, self.slot)

    def set_values(self, slot: int, values: Sequence[int]) -> bool:
        """Show factors reported by the pilot if they are for the current slot."""
        if slot != self.slot:
            return False
        self.selection = slot
        for field, value in zip(self.fields, values[:NFACTORS]):
            field.set_value(value)
        return True

    def refresh(self) -> bool:
        """Ask the pilot again for the current slot's factors."""
        if self.slot is None:
            return False
        return _request_slot(self.node, self.slot)


class ParamsSaver:
    """Collects every slot's factors from the pilot, then writes them to a file."""

    def __init__(self, node, path: str | PathLike):
        self.node = node
        self.path = Path(path)
        self.slot = 0
        self.done = False
        self._config = _new_parser()

    def _request(self, slot: int) -> None:
        self.slot = slot
        if not _request_slot(self.node, slot):
            raise ParamsError(f"error requesting slot {slot}")

    def start(self) -> None:
        """Request the first slot."""
        self._request(0)

    def set_values(self, slot: int, values: Sequence[int]) -> bool:
        """Record a reported slot; False once the file has been written."""
        if self.done:
            return False
        if slot != self.slot:
            return True
        if len(values) < NFACTORS:
            raise ValueError(f"expected {NFACTORS} factors, got {len(values)}")
        self._config[_section(slot)] = {
            key: str(int(value)) for key, value in zip(FACTOR_KEYS, values)
        }
        if slot + 1 < NPARAMS:
            self._request(slot + 1)
            return True
        with self.path.open("w", encoding="utf-8") as fh:
            self._config.write(fh, space_around_delimiters=False)
        self.done = True
        logger.info("Params saved to %s", self.path)
        return False


def _read_long(parser: configparser.ConfigParser, section: str, key: str) -> int:
    text = parser.get(section, key, fallback=None)
    if text is None or _INTEGER.fullmatch(text) is None:
        return -1
    return int(text)


def load_params(path: str | PathLike, node) -> list[int]:
    """Send to the pilot every complete slot found in a parameters file.

    Returns the slots that were sent.
    """
    parser = _new_parser()
    with Path(path).open(encoding="utf-8") as fh:
        parser.read_file(fh)
    loaded = []
    for slot in range(NPARAMS):
        values = [_read_long(parser, _section(slot), key) for key in FACTOR_KEYS]
        if all(value > 0 for value in values):
            _send_factors(node, slot, values)
            loaded.append(slot)
    return loaded