"""Finder-pattern renderer: the three corner eyes, styled independently of data modules.

Each eye is a short stack of layers drawn in order: an outer block, a
background "hole", and a solid core. Scanners lock onto the core, so a style
that would leave it hollow or lighter than the background is rejected.
"""

from dataclasses import dataclass

from qrstyle.config import FinderStyle, StyleConfig, parse_hex_color, relative_luminance
from qrstyle.errors import ConfigurationError
from qrstyle.geometry import FINDER_SIZE, Circle, Corner, Grid, Rect, Shape


EYE_DOT_RADIUS_DIVISOR = 2.5
CORE_CIRCLE_RADIUS = 1.5  # in modules


@dataclass(frozen=True)
class Layer:
    """One filled shape of an eye.

    ``fill`` is a hex color; ``None`` means "clear to transparent" and only
    occurs on hole layers of a transparent-background render.
    """

    shape: Shape
    fill: str | None
    hole: bool = False


@dataclass(frozen=True)
class FinderPattern:
    corner: Corner
    color: str
    layers: tuple[Layer, ...]

    @property
    def shapes(self) -> list[Shape]:
        return [layer.shape for layer in self.layers]

    @property
    def core(self) -> Layer:
        return self.layers[-1]


def _luminance(color: str) -> float:
    return relative_luminance(parse_hex_color(color))


def _concentric(x, y, m, color, hole_fill, outer_r, hole_r, core: Shape) -> list[Layer]:
    size = FINDER_SIZE * m
    return [
        Layer(Rect(x, y, size, size, outer_r), color),
        Layer(Rect(x + m, y + m, size - 2 * m, size - 2 * m, hole_r), hole_fill, hole=True),
        Layer(core, color),
    ]


def _dots(x, y, m, color) -> list[Layer]:
    layers = []
    r = m / EYE_DOT_RADIUS_DIVISOR
    for i in range(FINDER_SIZE):
        for j in range(FINDER_SIZE):
            if i in (0, FINDER_SIZE - 1) or j in (0, FINDER_SIZE - 1):
                layers.append(Layer(Circle(x + i * m + m / 2, y + j * m + m / 2, r), color))
    layers.append(Layer(Circle(x + 3.5 * m, y + 3.5 * m, CORE_CIRCLE_RADIUS * m), color))
    return layers


def _check_core(layers: list[Layer], x: float, y: float, m: float, color: str,
                background: str, transparent: bool):
    core = layers[-1]
    centre = (x + 3.5 * m, y + 3.5 * m)
    if core.hole or core.fill != color or not core.shape.contains(*centre):
        raise ConfigurationError("Finder pattern core must be a solid shape covering the centre")
    if not transparent and _luminance(color) > _luminance(background):
        raise ConfigurationError(
            f"Finder pattern color {color} is lighter than the background {background}; "
            "the core must be the darkest element"
        )


def render_finder_pattern(
    origin: tuple[float, float],
    module_px: float,
    style: FinderStyle,
    color: str,
    background: str,
    transparent: bool = False,
    corner: Corner = Corner.TOP_LEFT,
) -> FinderPattern:
    """Layers for one eye whose top-left corner sits at pixel ``origin``."""
    x, y = origin
    m = module_px
    hole_fill = None if transparent else background
    core_rect = Rect(x + 2 * m, y + 2 * m, 3 * m, 3 * m)
    core_circle = Circle(x + 3.5 * m, y + 3.5 * m, CORE_CIRCLE_RADIUS * m)

    if style is FinderStyle.SQUARE:
        layers = _concentric(x, y, m, color, hole_fill, 0.0, 0.0, core_rect)
    elif style is FinderStyle.ROUNDED:
        core = Rect(core_rect.x, core_rect.y, core_rect.w, core_rect.h, m / 2)
        layers = _concentric(x, y, m, color, hole_fill, m, m / 2, core)
    elif style is FinderStyle.EXTRA_ROUNDED:
        layers = _concentric(x, y, m, color, hole_fill, 1.5 * m, m, core_circle)
    elif style is FinderStyle.DOTS:
        layers = _dots(x, y, m, color)
    else:
        raise ConfigurationError(f"Unknown finder pattern style {style!r}")

    _check_core(layers, x, y, m, color, background, transparent)
    return FinderPattern(corner=corner, color=color, layers=tuple(layers))


def eye_color(config: StyleConfig, corner: Corner) -> str:
    """Foreground color unless an eye-color override exists for ``corner``."""
    if config.eye_colors is not None:
        override = getattr(config.eye_colors, corner.value)
        if override:
            return override
    return config.foreground_color


def finder_patterns(grid: Grid, config: StyleConfig) -> list[FinderPattern]:
    """The three eyes in draw order: top-left, top-right, bottom-left."""
    return [
        render_finder_pattern(
            grid.finder_origin(corner),
            grid.module_px,
            config.finder_pattern,
            eye_color(config, corner),
            config.background_color,
            config.transparent_background,
            corner=corner,
        )
        for corner in Corner
    ]
