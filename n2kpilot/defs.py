"""NMEA 2000 constants, PGN descriptors and angle conversions."""

from __future__ import annotations

import struct
from dataclasses import dataclass

NMEA2000_PRIORITY_HIGH = 0
NMEA2000_PRIORITY_SECURITY = 1
NMEA2000_PRIORITY_CONTROL = 3
NMEA2000_PRIORITY_REQUEST = 6
NMEA2000_PRIORITY_INFO = 6
NMEA2000_PRIORITY_ACK = 6
NMEA2000_PRIORITY_LOW = 7

NMEA2000_ADDR_GLOBAL = 255
NMEA2000_ADDR_NULL = 254
NMEA2000_ADDR_MAX = 251

NMEA2000_INDUSTRY_GROUP = 4

ISO_ADDRESS_CLAIM = 60928
ISO_REQUEST = 59904

NMEA2000_DATETIME = 129033
NMEA2000_ATTITUDE = 127257
NMEA2000_RATEOFTURN = 127251
NMEA2000_COGSOG = 129026
NMEA2000_XTE = 129283
NMEA2000_NAVDATA = 129284

PRIVATE_COMMAND_STATUS = 61846
PRIVATE_COMMAND_FACTORS = 39168
PRIVATE_COMMAND_FACTORS_REQUEST = 39424
PRIVATE_REMOTE_CONTROL = 39680

# Indices of the pilot's command factors, in PRIVATE_COMMAND_FACTORS order.
FACTOR_ERR = 0
FACTOR_DIF = 1
FACTOR_DIF2 = 2
NFACTORS = 3

# Number of parameter slots held by the pilot.
NPARAMS = 6

AUTO_OFF = 0x00
AUTO_STANDBY = 0x01
AUTO_HEAD = 0x02

APP_NAME = "wxpilot"
ERR_MSG_PREFIX = APP_NAME + ": "

# Units of 1e-4 radian per degree, rounded to single precision.
_RAD_PER_DEG = struct.unpack("<f", struct.pack("<f", 174.53293))[0]


@dataclass
class PgnDesc:
    """Description of a PGN handled or emitted by the node."""

    descr: str | None
    isuser: bool
    pgn: int
    enabled: bool = False


def rad2deg(rad: int) -> float:
    """Convert a signed angle in 1e-4 rad to degrees in [0, 360)."""
    deg = rad / _RAD_PER_DEG
    if deg < 0:
        deg += 360.0
    return deg


def srad2deg(rad: int) -> float:
    """Convert a signed angle in 1e-4 rad to signed degrees."""
    return rad / _RAD_PER_DEG


def urad2deg(rad: int) -> float:
    """Convert an unsigned angle in 1e-4 rad to degrees."""
    return rad / _RAD_PER_DEG


def deg2rad(deg: float) -> int:
    """Convert degrees to a signed angle in 1e-4 rad, in (-180, 180]."""
    if deg > 180:
        deg -= 360
    return int(deg * _RAD_PER_DEG + 0.5)


def udeg2rad(deg: float) -> int:
    """Convert degrees to an unsigned angle in 1e-4 rad."""
    return int(deg * _RAD_PER_DEG + 0.5)