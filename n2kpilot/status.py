"""Text shown in the pilot status panel."""

from __future__ import annotations


class StatusView:
    """Labels of the pilot and radio status panel."""

    def __init__(self):
        self.address_text = ""
        self.group_text = ""
        self.mode_text = ""
        self.txv_text = ""
        self.state_text = ""
        self.rssi_text = ""

    def address(self, addr: int) -> None:
        self.address_text = "" if addr == -1 else f"{addr:d}"

    def group(self, group: int) -> None:
        if group == -1:
            # An unknown group blanks the address label, leaving the group as is.
            self.address_text = "   "
        else:
            self.group_text = f"{group:d}"

    def status(self, mode: str) -> None:
        self.mode_text = mode

    def radio(self, txv: int, state: int, rssi: int) -> None:
        self.txv_text = f"{txv:d}"
        self.state_text = f"0x{state:x}"
        self.rssi_text = f"{rssi:d}"