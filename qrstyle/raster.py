"""Raster compositor: module matrix + style -> PNG.

Draw order is fixed: background, data modules (solid or gradient fill),
finder patterns, logo patch, logo, frame. Geometry comes from
:mod:`qrstyle.geometry`, :mod:`qrstyle.shapes` and :mod:`qrstyle.finder`, the
same sources the vector compositor uses.
"""

import base64
import io

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from qrstyle.config import GradientType, StyleConfig, with_alpha
from qrstyle.finder import finder_patterns
from qrstyle.geometry import (
    CAPTION_FONT_SIZE,
    FRAME_HEIGHT,
    Circle,
    Grid,
    Rect,
    Shape,
    frame_band,
    linear_gradient_endpoints,
    radial_gradient_geometry,
)
from qrstyle.logging import audit, get_logger, trace
from qrstyle.logo import ImageLoader, fit_logo, load_image, occlusion_box, patch_box
from qrstyle.shapes import layout_data_modules

log = get_logger("raster")

CLEAR = (0, 0, 0, 0)
MIN_CAPTION_FONT_SIZE = 10


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def _box(rect: Rect) -> list[float]:
    return [rect.x, rect.y, rect.x + rect.w, rect.y + rect.h]


def _draw_shape(draw: ImageDraw.ImageDraw, shape: Shape, fill) -> None:
    if isinstance(shape, Circle):
        draw.ellipse(
            [shape.cx - shape.r, shape.cy - shape.r, shape.cx + shape.r, shape.cy + shape.r],
            fill=fill,
        )
    elif shape.radius > 0:
        draw.rounded_rectangle(_box(shape), radius=shape.radius, fill=fill)
    else:
        draw.rectangle(_box(shape), fill=fill)


def gradient_image(config: StyleConfig) -> Image.Image:
    """Per-pixel gradient over the code area (RGBA)."""
    gradient = config.gradient
    size = config.size
    start = np.array(with_alpha(gradient.color_start), dtype=np.float64)
    end = np.array(with_alpha(gradient.color_end), dtype=np.float64)

    ys, xs = np.mgrid[0:size, 0:size].astype(np.float64) + 0.5
    if gradient.type is GradientType.LINEAR:
        (x1, y1), (x2, y2) = linear_gradient_endpoints(size, gradient.rotation)
        dx, dy = x2 - x1, y2 - y1
        t = ((xs - x1) * dx + (ys - y1) * dy) / (dx * dx + dy * dy)
    else:
        cx, cy, r = radial_gradient_geometry(size)
        t = np.hypot(xs - cx, ys - cy) / r
    t = np.clip(t, 0.0, 1.0)[..., np.newaxis]

    rgba = start + (end - start) * t
    return Image.fromarray(np.round(rgba).astype(np.uint8))


def _module_fill(config: StyleConfig):
    """The single fill every data module is painted with: a color or a gradient image."""
    if config.gradient_enabled:
        return gradient_image(config)
    return with_alpha(config.foreground_color)


# ---------------------------------------------------------------------------
# Frame
# ---------------------------------------------------------------------------

def _caption_font(draw: ImageDraw.ImageDraw, text: str, max_width: float):
    size = CAPTION_FONT_SIZE
    font = ImageFont.load_default(size=size)
    while size > MIN_CAPTION_FONT_SIZE and draw.textlength(text, font=font) > max_width:
        size -= 2
        font = ImageFont.load_default(size=size)
    return font


def _draw_frame(code: Image.Image, config: StyleConfig) -> Image.Image:
    """Second pass: a taller surface with the code on top and the caption band below."""
    size = config.size
    bg = with_alpha(config.background_color, 0 if config.transparent_background else 255)
    canvas = Image.new("RGBA", (size, size + FRAME_HEIGHT), bg)
    canvas.paste(code, (0, 0))

    draw = ImageDraw.Draw(canvas)
    band = frame_band(size, config.frame.style)
    band_fill = with_alpha(config.foreground_color)
    if isinstance(band, Rect):
        _draw_shape(draw, band, band_fill)
    else:
        draw.polygon(band, fill=band_fill)

    text = config.frame.text.strip()
    font = _caption_font(draw, text, size * 0.8)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = (size - (right - left)) / 2 - left
    y = size + (FRAME_HEIGHT - (bottom - top)) / 2 - top
    draw.text((x, y), text, font=font, fill=with_alpha(config.background_color))
    return canvas


# ---------------------------------------------------------------------------
# Compositor
# ---------------------------------------------------------------------------

@trace
def render_raster(matrix, config: StyleConfig, loader: ImageLoader = load_image) -> bytes:
    """Render ``matrix`` with ``config`` and return PNG bytes.

    Raises:
        ConfigurationError: degenerate geometry or an invalid finder style,
            before any pixel is drawn.
        AssetLoadError: the configured logo could not be loaded.
    """
    grid = Grid(config.size, matrix.module_count, config.margin)
    modules = layout_data_modules(matrix, grid, config.dot_style)
    eyes = finder_patterns(grid, config)
    logo_image = loader(config.logo.url) if config.logo is not None else None

    size = config.size
    transparent = config.transparent_background
    surface = Image.new("RGBA", (size, size),
                        with_alpha(config.background_color, 0 if transparent else 255))

    mask = Image.new("L", (size, size), 0)
    mask_draw = ImageDraw.Draw(mask)
    for shape in modules:
        _draw_shape(mask_draw, shape, 255)
    surface.paste(_module_fill(config), (0, 0), mask)

    draw = ImageDraw.Draw(surface)
    for eye in eyes:
        for layer in eye.layers:
            _draw_shape(draw, layer.shape, with_alpha(layer.fill) if layer.fill else CLEAR)

    if logo_image is not None:
        logo = config.logo
        if not transparent:
            patch = patch_box(size, logo.size_fraction, logo.padding_px)
            draw.rectangle(_box(patch), fill=with_alpha(config.background_color))
        fitted, position = fit_logo(logo_image, occlusion_box(size, logo.size_fraction))
        surface.alpha_composite(fitted, position)

    if config.frame is not None and config.frame.visible:
        surface = _draw_frame(surface, config)

    if not transparent:
        surface = surface.convert("RGB")
    buf = io.BytesIO()
    surface.save(buf, format="PNG", optimize=True)
    png = buf.getvalue()

    audit("raster.rendered", logger=log,
          size=f"{surface.width}x{surface.height}",
          modules=len(modules), dot_style=config.dot_style.value,
          finder=config.finder_pattern.value,
          gradient=config.gradient.type.value if config.gradient_enabled else None,
          logo=logo_image is not None, bytes=len(png))
    return png


def to_data_uri(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
