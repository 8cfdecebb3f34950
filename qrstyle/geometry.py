"""Pure geometry shared by the raster and vector compositors.

Every pixel position either compositor draws comes from here, so the PNG and
the SVG place modules and finder patterns at identical coordinates.
"""

import math
from dataclasses import dataclass
from enum import Enum

from qrstyle.config import FrameStyle
from qrstyle.errors import ConfigurationError

FINDER_SIZE = 7
FRAME_HEIGHT = 60
FRAME_INSET = 6
FRAME_CORNER_RADIUS = 12
CAPTION_FONT_SIZE = 24


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float
    radius: float = 0.0

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.w and self.y <= py <= self.y + self.h


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float

    def contains(self, px: float, py: float) -> bool:
        return math.hypot(px - self.cx, py - self.cy) <= self.r


Shape = Rect | Circle


class Corner(Enum):
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"


@dataclass(frozen=True)
class Grid:
    """Maps module coordinates to pixels for one symbol at one output size."""

    size: int
    module_count: int
    margin: int

    def __post_init__(self):
        if self.size <= 0:
            raise ConfigurationError(f"Size must be positive, got {self.size}")
        if self.module_count <= 0 or self.margin < 0:
            raise ConfigurationError(
                f"Degenerate grid: {self.module_count} modules, margin {self.margin}"
            )

    @property
    def module_px(self) -> float:
        return self.size / (self.module_count + 2 * self.margin)

    @property
    def offset(self) -> float:
        return self.margin * self.module_px

    def module_origin(self, x: int, y: int) -> tuple[float, float]:
        m = self.module_px
        return self.offset + x * m, self.offset + y * m

    def finder_origin(self, corner: Corner) -> tuple[float, float]:
        col, row = finder_origins(self.module_count)[corner]
        return self.module_origin(col, row)


def is_finder_module(x: int, y: int, module_count: int) -> bool:
    """True if (x, y) lies in one of the three 7x7 corner finder regions.

    The bottom-right corner never carries a finder pattern.
    """
    far = module_count - FINDER_SIZE
    return (
        (x < FINDER_SIZE and y < FINDER_SIZE)
        or (x >= far and y < FINDER_SIZE)
        or (x < FINDER_SIZE and y >= far)
    )


def finder_origins(module_count: int) -> dict[Corner, tuple[int, int]]:
    """(column, row) of each finder pattern's top-left module, in draw order."""
    far = module_count - FINDER_SIZE
    return {
        Corner.TOP_LEFT: (0, 0),
        Corner.TOP_RIGHT: (far, 0),
        Corner.BOTTOM_LEFT: (0, far),
    }


def frame_height(frame) -> int:
    """Extra canvas height below the code for a visible frame caption."""
    return FRAME_HEIGHT if frame is not None and frame.visible else 0


def frame_band(size: float, style: FrameStyle) -> Rect | list[tuple[float, float]]:
    """Caption band below a ``size``-pixel code.

    A Rect for simple/rounded frames, a ribbon polygon with notched ends for
    banners.
    """
    top = size + FRAME_INSET
    bottom = size + FRAME_HEIGHT - FRAME_INSET
    if style is FrameStyle.SIMPLE:
        return Rect(0, size, size, FRAME_HEIGHT)
    if style is FrameStyle.ROUNDED:
        pad = size * 0.05
        return Rect(pad, top, size - 2 * pad, bottom - top, FRAME_CORNER_RADIUS)
    if style is FrameStyle.BANNER:
        notch = FRAME_HEIGHT / 4
        mid = size + FRAME_HEIGHT / 2
        return [(0, top), (size, top), (size - notch, mid),
                (size, bottom), (0, bottom), (notch, mid)]
    raise ConfigurationError(f"Frame style {style!r} has no band")


def linear_gradient_endpoints(size: float, rotation_deg: float) -> tuple[tuple[float, float], tuple[float, float]]:
    """Start/end points of a linear gradient over a ``size`` x ``size`` area.

    A unit vector at ``rotation_deg`` is rotated around the centre and scaled
    to the half-edge, so 0 degrees runs left to right.
    """
    angle = math.radians(rotation_deg)
    half = size / 2
    dx, dy = math.cos(angle) * half, math.sin(angle) * half
    return (half - dx, half - dy), (half + dx, half + dy)


def radial_gradient_geometry(size: float) -> tuple[float, float, float]:
    """Centre and radius of a full-radius radial gradient: (cx, cy, r)."""
    half = size / 2
    return half, half, half
