"""Vector compositor: module matrix + style -> self-contained SVG document.

Module and finder geometry is taken from the same descriptors the raster
compositor draws, so both outputs line up at the same ``size``. The only
internal reference is the gradient definition; the logo is embedded as a
data URI.
"""

import base64
import io
from xml.sax.saxutils import escape, quoteattr

from qrstyle.config import GradientType, StyleConfig, parse_hex_color, to_hex
from qrstyle.finder import FinderPattern, finder_patterns
from qrstyle.geometry import (
    CAPTION_FONT_SIZE,
    FRAME_HEIGHT,
    Circle,
    Grid,
    Rect,
    Shape,
    frame_band,
    frame_height,
    linear_gradient_endpoints,
    radial_gradient_geometry,
)
from qrstyle.logging import audit, get_logger, trace
from qrstyle.logo import ImageLoader, fit_logo, load_image, occlusion_box, patch_box
from qrstyle.shapes import layout_data_modules

log = get_logger("vector")

SVG_NS = "http://www.w3.org/2000/svg"
GRADIENT_ID = "qr-gradient"


def _num(value: float) -> str:
    s = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if s in ("", "-0") else s


def _hex(color: str) -> str:
    return to_hex(parse_hex_color(color))


def shape_element(shape: Shape, fill: str | None = None) -> str:
    """``<rect>`` or ``<circle>`` for a descriptor; without ``fill`` it inherits."""
    fill_attr = f' fill="{fill}"' if fill else ""
    if isinstance(shape, Circle):
        return f'<circle cx="{_num(shape.cx)}" cy="{_num(shape.cy)}" r="{_num(shape.r)}"{fill_attr}/>'
    rounded = f' rx="{_num(shape.radius)}" ry="{_num(shape.radius)}"' if shape.radius > 0 else ""
    return (
        f'<rect x="{_num(shape.x)}" y="{_num(shape.y)}" '
        f'width="{_num(shape.w)}" height="{_num(shape.h)}"{rounded}{fill_attr}/>'
    )


def _rect_path(rect: Rect) -> str:
    x, y, w, h = rect.x, rect.y, rect.w, rect.h
    r = min(rect.radius, w / 2, h / 2)
    if r <= 0:
        return f"M{_num(x)} {_num(y)}h{_num(w)}v{_num(h)}h{_num(-w)}Z"
    arc = f"a{_num(r)} {_num(r)} 0 0 1"
    return (
        f"M{_num(x + r)} {_num(y)}h{_num(w - 2 * r)}{arc} {_num(r)} {_num(r)}"
        f"v{_num(h - 2 * r)}{arc} {_num(-r)} {_num(r)}"
        f"h{_num(-(w - 2 * r))}{arc} {_num(-r)} {_num(-r)}"
        f"v{_num(-(h - 2 * r))}{arc} {_num(r)} {_num(-r)}Z"
    )


def _gradient_defs(config: StyleConfig) -> str:
    gradient = config.gradient
    stops = (
        f'<stop offset="0%" stop-color="{_hex(gradient.color_start)}"/>'
        f'<stop offset="100%" stop-color="{_hex(gradient.color_end)}"/>'
    )
    if gradient.type is GradientType.LINEAR:
        (x1, y1), (x2, y2) = linear_gradient_endpoints(config.size, gradient.rotation)
        return (
            f'<linearGradient id="{GRADIENT_ID}" gradientUnits="userSpaceOnUse" '
            f'x1="{_num(x1)}" y1="{_num(y1)}" x2="{_num(x2)}" y2="{_num(y2)}">'
            f"{stops}</linearGradient>"
        )
    cx, cy, r = radial_gradient_geometry(config.size)
    return (
        f'<radialGradient id="{GRADIENT_ID}" gradientUnits="userSpaceOnUse" '
        f'cx="{_num(cx)}" cy="{_num(cy)}" r="{_num(r)}">'
        f"{stops}</radialGradient>"
    )


def _finder_elements(eye: FinderPattern) -> list[str]:
    """Elements for one eye; a transparent hole is cut out of its outer block with even-odd."""
    out = [f'<g data-corner="{eye.corner.value}">']
    layers = eye.layers
    i = 0
    while i < len(layers):
        layer = layers[i]
        nxt = layers[i + 1] if i + 1 < len(layers) else None
        if (nxt is not None and nxt.hole and nxt.fill is None
                and isinstance(layer.shape, Rect) and isinstance(nxt.shape, Rect)):
            d = _rect_path(layer.shape) + _rect_path(nxt.shape)
            out.append(f'<path d="{d}" fill-rule="evenodd" fill="{_hex(layer.fill)}"/>')
            i += 2
            continue
        out.append(shape_element(layer.shape, _hex(layer.fill)))
        i += 1
    out.append("</g>")
    return out


def _logo_elements(config: StyleConfig, logo_image) -> list[str]:
    logo = config.logo
    size = config.size
    out = []
    if not config.transparent_background:
        patch = patch_box(size, logo.size_fraction, logo.padding_px)
        out.append(shape_element(patch, _hex(config.background_color)))
    fitted, (x, y) = fit_logo(logo_image, occlusion_box(size, logo.size_fraction))
    buf = io.BytesIO()
    fitted.save(buf, format="PNG")
    href = "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
    out.append(
        f'<image x="{x}" y="{y}" width="{fitted.width}" height="{fitted.height}" href="{href}"/>'
    )
    return out


def _frame_elements(config: StyleConfig) -> list[str]:
    size = config.size
    fg = _hex(config.foreground_color)
    band = frame_band(size, config.frame.style)
    if isinstance(band, Rect):
        out = [shape_element(band, fg)]
    else:
        points = " ".join(f"{_num(px)},{_num(py)}" for px, py in band)
        out = [f'<polygon points="{points}" fill="{fg}"/>']
    out.append(
        f'<text x="{_num(size / 2)}" y="{_num(size + FRAME_HEIGHT / 2)}" '
        f'text-anchor="middle" dominant-baseline="central" font-family="sans-serif" '
        f'font-size="{CAPTION_FONT_SIZE}" fill="{_hex(config.background_color)}">'
        f"{escape(config.frame.text.strip())}</text>"
    )
    return out


@trace
def render_vector(matrix, config: StyleConfig, loader: ImageLoader = load_image) -> str:
    """Render ``matrix`` with ``config`` as SVG markup.

    Raises the same errors as :func:`qrstyle.raster.render_raster`.
    """
    grid = Grid(config.size, matrix.module_count, config.margin)
    modules = layout_data_modules(matrix, grid, config.dot_style)
    eyes = finder_patterns(grid, config)
    logo_image = loader(config.logo.url) if config.logo is not None else None

    size = config.size
    height = size + frame_height(config.frame)
    parts = [
        f'<svg xmlns="{SVG_NS}" width="{size}" height="{height}" viewBox="0 0 {size} {height}">',
    ]
    if config.gradient_enabled:
        parts.append(f"<defs>{_gradient_defs(config)}</defs>")
    if not config.transparent_background:
        parts.append(f'<rect width="{size}" height="{height}" fill="{_hex(config.background_color)}"/>')

    fill = f"url(#{GRADIENT_ID})" if config.gradient_enabled else _hex(config.foreground_color)
    parts.append(f'<g id="data-modules" fill="{fill}">')
    parts.extend(shape_element(shape) for shape in modules)
    parts.append("</g>")

    parts.append('<g id="finder-patterns">')
    for eye in eyes:
        parts.extend(_finder_elements(eye))
    parts.append("</g>")

    if logo_image is not None:
        parts.append('<g id="logo">')
        parts.extend(_logo_elements(config, logo_image))
        parts.append("</g>")

    if config.frame is not None and config.frame.visible:
        parts.append(f'<g id="frame" data-style={quoteattr(config.frame.style.value)}>')
        parts.extend(_frame_elements(config))
        parts.append("</g>")

    parts.append("</svg>")
    svg = "\n".join(parts) + "\n"

    audit("vector.rendered", logger=log,
          size=f"{size}x{height}", modules=len(modules),
          dot_style=config.dot_style.value, finder=config.finder_pattern.value,
          logo=logo_image is not None, chars=len(svg))
    return svg
