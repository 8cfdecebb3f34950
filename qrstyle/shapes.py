"""Shape mapper: one data module + a dot style -> one shape descriptor.

Both compositors draw data modules exclusively from these descriptors.
"""

from qrstyle.config import DotStyle
from qrstyle.errors import ConfigurationError
from qrstyle.geometry import Circle, Grid, Rect, Shape, is_finder_module

DOT_RADIUS_DIVISOR = 2.5
ROUNDED_RADIUS_DIVISOR = 4
CLASSY_RADIUS_DIVISOR = 3
# Classy modules are taller than wide and spill into the row below.
CLASSY_ASPECT = 1.2


def _square(x: float, y: float, m: float) -> Shape:
    return Rect(x, y, m, m)


def _dot(x: float, y: float, m: float) -> Shape:
    return Circle(x + m / 2, y + m / 2, m / DOT_RADIUS_DIVISOR)


def _rounded(x: float, y: float, m: float) -> Shape:
    return Rect(x, y, m, m, m / ROUNDED_RADIUS_DIVISOR)


def _extra_rounded(x: float, y: float, m: float) -> Shape:
    return Rect(x, y, m, m, m / 2)


def _classy(x: float, y: float, m: float) -> Shape:
    return Rect(x, y, m, m * CLASSY_ASPECT, m / CLASSY_RADIUS_DIVISOR)


_SHAPERS = {
    DotStyle.SQUARE: _square,
    DotStyle.DOT: _dot,
    DotStyle.ROUNDED: _rounded,
    DotStyle.EXTRA_ROUNDED: _extra_rounded,
    DotStyle.CLASSY: _classy,
}


def map_module(x: float, y: float, module_px: float, dot_style: DotStyle) -> Shape:
    """Shape for a data module whose cell starts at pixel (x, y).

    Callers must not pass finder-pattern modules; see
    :func:`layout_data_modules`.
    """
    try:
        shaper = _SHAPERS[dot_style]
    except KeyError:
        raise ConfigurationError(f"Unknown dot style {dot_style!r}") from None
    return shaper(x, y, module_px)


def layout_data_modules(matrix, grid: Grid, dot_style: DotStyle) -> list[Shape]:
    """Shapes for every dark module outside the finder regions, row by row."""
    n = matrix.module_count
    m = grid.module_px
    shapes = []
    for y in range(n):
        for x in range(n):
            if not matrix.is_dark(x, y) or is_finder_module(x, y, n):
                continue
            px, py = grid.module_origin(x, y)
            shapes.append(map_module(px, py, m, dot_style))
    return shapes
