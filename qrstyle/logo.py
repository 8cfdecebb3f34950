"""Logo safe zone and asset loading.

The occlusion box is the centred square a logo covers; the compositors place
the logo there and the validator scores the same fraction, so both agree on
how much of the symbol is hidden.
"""

import base64
import binascii
import io
from pathlib import Path
from typing import Callable
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, ImageOps, UnidentifiedImageError

from qrstyle.errors import AssetLoadError
from qrstyle.geometry import Rect
from qrstyle.logging import audit, get_logger, trace

log = get_logger("logo")

FETCH_TIMEOUT_S = 15

ImageLoader = Callable[[str], Image.Image]


# ---------------------------------------------------------------------------
# Safe-zone geometry
# ---------------------------------------------------------------------------

def occlusion_percent(size_fraction: float) -> float:
    """Share of the symbol edge hidden by the logo, in percent."""
    return size_fraction * 100


def occlusion_box(size: float, size_fraction: float) -> Rect:
    """Centred square of edge ``size * size_fraction``."""
    edge = size * size_fraction
    corner = (size - edge) / 2
    return Rect(corner, corner, edge, edge)


def patch_box(size: float, size_fraction: float, padding_px: float) -> Rect:
    """Occlusion box grown by ``padding_px`` on every side (the opaque patch)."""
    box = occlusion_box(size, size_fraction)
    return Rect(box.x - padding_px, box.y - padding_px,
                box.w + 2 * padding_px, box.h + 2 * padding_px)


def fit_logo(image: Image.Image, box: Rect) -> tuple[Image.Image, tuple[int, int]]:
    """Scale ``image`` into ``box`` preserving aspect ratio.

    Returns the RGBA logo and the integer paste position that centres it.
    """
    edge = max(1, round(box.w)), max(1, round(box.h))
    fitted = ImageOps.contain(image.convert("RGBA"), edge, Image.LANCZOS)
    x = round(box.x + (box.w - fitted.width) / 2)
    y = round(box.y + (box.h - fitted.height) / 2)
    return fitted, (x, y)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _decode(raw: bytes, url: str) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise AssetLoadError(f"Logo at {_short(url)} is not a readable image: {e}", url=url) from e
    return img


def _short(url: str) -> str:
    return url if len(url) <= 80 else url[:77] + "..."


def _read_data_uri(url: str) -> bytes:
    header, _, payload = url.partition(",")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True)
        return unquote(payload).encode("latin-1")
    except (binascii.Error, ValueError) as e:
        raise AssetLoadError(f"Malformed data URI for logo: {e}", url=url) from e


def _fetch(url: str) -> bytes:
    try:
        resp = requests.get(url, timeout=FETCH_TIMEOUT_S)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise AssetLoadError(f"Failed to fetch logo {_short(url)}: {e}", url=url) from e
    return resp.content


@trace
def load_image(url: str) -> Image.Image:
    """Load a logo from a ``data:`` URI, an http(s) URL, a ``file://`` URL or a path.

    Raises:
        AssetLoadError: the logo could not be read or decoded. There is no
            retry and no silent fallback to rendering without the logo.
    """
    if url.startswith("data:"):
        raw = _read_data_uri(url)
        source = "data-uri"
    else:
        parsed = urlparse(url)
        if parsed.scheme in ("http", "https"):
            raw = _fetch(url)
            source = parsed.scheme
        else:
            path = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(url)
            try:
                raw = path.read_bytes()
            except OSError as e:
                raise AssetLoadError(f"Cannot read logo file {path}: {e}", url=url) from e
            source = "file"

    img = _decode(raw, url)
    audit("logo.loaded", logger=log, source=source, size=f"{img.width}x{img.height}", mode=img.mode)
    return img
