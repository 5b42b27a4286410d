"""NMEA 2000 autopilot node, console state, radio remote logic and CAN bus watchers."""

__version__ = "0.1.0"