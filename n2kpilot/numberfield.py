"""A text entry holding an integer, falling back to its last set value."""

from __future__ import annotations

import re

_INTEGER = re.compile(r"\s*[+-]?\d+")


class NumberField:
    """Integer text field; unparsable text reverts to the last value set."""

    def __init__(self, value: int = 0):
        self.text = ""
        self.default = value
        self.set_value(value)

    def set_value(self, value: int) -> None:
        """Show ``value`` and remember it as the fallback."""
        value = int(value)
        self.text = f"{value:d}"
        self.default = value

    def set_text(self, text: str) -> None:
        """Replace the text, as typed by the user."""
        self.text = text

    def get_value(self) -> int:
        """The entered integer, or the fallback when the text is not one."""
        if _INTEGER.fullmatch(self.text) is None:
            self.set_value(self.default)
            return self.default
        return int(self.text)