"""Layout of the heading compass strip and the horizontal rudder gauge."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

Colour = tuple[int, int, int]

BLACK: Colour = (0, 0, 0)
WHITE: Colour = (255, 255, 255)
COMPASS_BACKGROUND: Colour = (255, 255, 184)
MIDDLE_MARKER: Colour = (90, 80, 60)
ROT_COLOUR: Colour = (0, 0, 100)
TARGET_ON_SCALE: Colour = (0, 150, 0)
TARGET_OFF_SCALE: Colour = (240, 0, 0)
GAUGE_NEGATIVE: Colour = (240, 0, 0)
GAUGE_POSITIVE: Colour = (0, 240, 0)

COMPASS_HEIGHT = 30
DEGS_PER_MARK = 5
ROT_SCALE = 10
ROT_Y = 25


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _tmod(a: int, b: int) -> int:
    return a - b * _tdiv(a, b)


def norm_deg(deg: int) -> int:
    """Bring an angle off by at most one turn back into [0, 360)."""
    if deg < 0:
        return deg + 360
    if deg >= 360:
        return deg - 360
    return deg


@dataclass(frozen=True)
class Mark:
    x: int
    degrees: int
    height: int
    label: str | None


@dataclass(frozen=True)
class RotIndicator:
    x: int
    line_start: int
    line_end: int
    y: int = ROT_Y
    colour: Colour = ROT_COLOUR


class TargetKind(Enum):
    ON_SCALE = "on_scale"
    OFF_LEFT = "off_left"
    OFF_RIGHT = "off_right"


@dataclass(frozen=True)
class TargetMarker:
    kind: TargetKind
    x: int
    colour: Colour


@dataclass(frozen=True)
class CompassLayout:
    left: int
    width: int
    center: int
    nummarks: int
    background: Colour
    marks: tuple[Mark, ...] = ()
    rot: RotIndicator | None = None
    target: TargetMarker | None = None


class Compass:
    """Horizontal compass strip: heading scale, rate of turn and target."""

    def __init__(self):
        self.heading = 0
        self.heading_valid = False
        self.target_heading = 0
        self.target_heading_valid = False
        self.rot = 0.0
        self.rot_valid = False

    def set_heading(self, value: float, valid: bool) -> bool:
        """Store the heading; True when a redraw is needed."""
        value = int(value)
        if self.heading != value or self.heading_valid != valid:
            self.heading_valid = valid
            self.heading = value
            return True
        return False

    def set_target_heading(self, value: float, valid: bool) -> bool:
        value = int(value)
        if self.target_heading != value or self.target_heading_valid != valid:
            self.target_heading_valid = valid
            self.target_heading = value
            return True
        return False

    def set_rot(self, value: float, valid: bool) -> bool:
        if self.rot != value or self.rot_valid != valid:
            self.rot_valid = valid
            self.rot = value
            return True
        return False

    def layout(self, width: int, px_per_mark: int) -> CompassLayout:
        """Compute what to draw in a strip ``width`` pixels wide."""
        if px_per_mark <= 0:
            raise ValueError("px_per_mark must be positive")
        if width < 0:
            raise ValueError("width must not be negative")
        nummarks = width // px_per_mark + 1
        pwidth = width
        if nummarks * DEGS_PER_MARK > 360:
            nummarks = 360 // DEGS_PER_MARK
            pwidth = nummarks * px_per_mark
        left = (width - pwidth) // 2
        center = width // 2

        if not self.heading_valid:
            return CompassLayout(left, pwidth, center, nummarks, BLACK)

        heading = self.heading
        offset = _tdiv(_tmod(heading, DEGS_PER_MARK) * px_per_mark, DEGS_PER_MARK)
        marks = []
        half = nummarks // 2
        for i in range(-half, half + 1):
            deg = norm_deg((_tdiv(heading, DEGS_PER_MARK) + i) * DEGS_PER_MARK)
            x = center + i * px_per_mark - offset
            if _tmod(deg, 10) == 0:
                marks.append(Mark(x, deg, 8, str(deg)))
            else:
                marks.append(Mark(x, deg, 4, None))

        rot = None
        if self.rot_valid:
            lrot = max(-ROT_SCALE, min(ROT_SCALE, self.rot))
            x = int(center + lrot * (pwidth // 2) / ROT_SCALE)
            if lrot < 0:
                rot = RotIndicator(x, x, center)
            else:
                rot = RotIndicator(x, center, x)

        target = None
        if self.target_heading_valid:
            to_left = norm_deg(heading - self.target_heading)
            to_right = norm_deg(self.target_heading - heading)
            limit = nummarks * DEGS_PER_MARK // 2
            if to_left < to_right:
                if to_left > limit:
                    target = TargetMarker(TargetKind.OFF_LEFT, left, TARGET_OFF_SCALE)
                else:
                    x = center - _tdiv(to_left * px_per_mark, DEGS_PER_MARK)
                    target = TargetMarker(TargetKind.ON_SCALE, x, TARGET_ON_SCALE)
            else:
                if to_right > limit:
                    target = TargetMarker(
                        TargetKind.OFF_RIGHT, (width + pwidth) // 2, TARGET_OFF_SCALE
                    )
                else:
                    x = center + _tdiv(to_right * px_per_mark, DEGS_PER_MARK)
                    target = TargetMarker(TargetKind.ON_SCALE, x, TARGET_ON_SCALE)

        return CompassLayout(
            left, pwidth, center, nummarks, COMPASS_BACKGROUND,
            tuple(marks), rot, target,
        )


@dataclass(frozen=True)
class Bar:
    x: int
    y: int
    width: int
    height: int
    colour: Colour


@dataclass(frozen=True)
class GaugeLayout:
    width: int
    height: int
    background: Colour
    marks: tuple[int, ...] = ()
    bar: Bar | None = None


class HorizGauge:
    """Horizontal gauge centred on zero, such as a rudder angle."""

    def __init__(self, range_: int = 100, height: int = 15):
        if range_ <= 0:
            raise ValueError("range must be positive")
        self.range = range_
        self.height = height
        self.value = 0
        self.valid = False

    def set_gauge(self, value: float, valid: bool) -> bool:
        """Store the value; True when a redraw is needed."""
        value = int(value)
        if self.value != value or self.valid != valid:
            self.valid = valid
            self.value = value
            return True
        return False

    def layout(self, width: int) -> GaugeLayout:
        """Compute what to draw in a gauge ``width`` pixels wide."""
        if width < 0:
            raise ValueError("width must not be negative")
        if not self.valid:
            return GaugeLayout(width, self.height, BLACK)
        center = width // 2
        px_per_unit = width / 2 / self.range
        marks = tuple(
            int(center + i * px_per_unit)
            for i in range(-self.range, self.range + 1, 10)
        )
        length = int(self.value * px_per_unit)
        half = self.height // 2
        if self.value < 0:
            length = -length
            bar = Bar(center - length, half, length, half, GAUGE_NEGATIVE)
        else:
            bar = Bar(center, half, length, half, GAUGE_POSITIVE)
        return GaugeLayout(width, self.height, WHITE, marks, bar)