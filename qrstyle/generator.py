"""Encoder adapter and the render entry point.

``encode`` turns content into an immutable module matrix using the ``qrcode``
library; ``render`` feeds that matrix through both compositors.
"""

import base64
import functools
from dataclasses import dataclass
from typing import Callable

import qrcode
from qrcode.exceptions import DataOverflowError

from qrstyle.config import ECCLevel, StyleConfig
from qrstyle.errors import CapacityError, ConfigurationError
from qrstyle.logging import audit, get_logger, trace
from qrstyle.logo import ImageLoader, load_image
from qrstyle.raster import render_raster, to_data_uri
from qrstyle.validator import ECC_BYTE_CAPACITY
from qrstyle.vector import render_vector

log = get_logger("generator")


@dataclass(frozen=True)
class ModuleMatrix:
    """Square grid of dark (True) / light (False) modules, indexed ``[row][col]``."""

    modules: tuple[tuple[bool, ...], ...]
    version: int | None = None

    def __post_init__(self):
        n = len(self.modules)
        if n == 0 or any(len(row) != n for row in self.modules):
            raise ConfigurationError(f"Module matrix must be square and non-empty, got {n} rows")

    @classmethod
    def from_rows(cls, rows, version: int | None = None) -> "ModuleMatrix":
        return cls(tuple(tuple(bool(cell) for cell in row) for row in rows), version)

    @property
    def module_count(self) -> int:
        return len(self.modules)

    def is_dark(self, x: int, y: int) -> bool:
        return self.modules[y][x]

    def dark_count(self) -> int:
        return sum(sum(row) for row in self.modules)


Encoder = Callable[[str, ECCLevel], ModuleMatrix]


@trace
def encode(content: str, level: ECCLevel = ECCLevel.M) -> ModuleMatrix:
    """Encode ``content`` at the smallest version that fits ``level``.

    Raises:
        CapacityError: the content does not fit even a version 40 symbol.
    """
    qr = qrcode.QRCode(version=None, error_correction=level.value, box_size=1, border=0)
    qr.add_data(content)
    try:
        qr.make(fit=True)
    except DataOverflowError as e:
        length = len(content.encode("utf-8"))
        capacity = ECC_BYTE_CAPACITY[level]
        raise CapacityError(
            f"Content ({length} bytes) exceeds the {level.name} capacity of {capacity} bytes",
            content_length=length, level=level.name, capacity=capacity,
        ) from e

    matrix = ModuleMatrix.from_rows(qr.modules, version=qr.version)
    audit("matrix.encoded", logger=log,
          data=content[:80], version=qr.version, ecc=level.name,
          modules=f"{matrix.module_count}x{matrix.module_count}")
    return matrix


@dataclass(frozen=True)
class RenderResult:
    raster: str
    vector: str
    matrix: ModuleMatrix

    def raster_bytes(self) -> bytes:
        return base64.b64decode(self.raster.partition(",")[2])


@trace
def render(
    content: str,
    style: StyleConfig,
    loader: ImageLoader = load_image,
    encoder: Encoder = encode,
) -> RenderResult:
    """Render ``content`` with ``style`` as a PNG data URI and an SVG document.

    The logo (if any) is loaded once and shared by both compositors.

    Raises:
        ConfigurationError: empty content or degenerate geometry.
        CapacityError: the content does not fit the error-correction level.
        AssetLoadError: the logo could not be loaded.
    """
    if not content:
        raise ConfigurationError("Content must not be empty")
    config = style.replace(content=content)
    matrix = encoder(content, config.error_correction_level)

    cached_loader = functools.lru_cache(maxsize=None)(loader)
    png = render_raster(matrix, config, loader=cached_loader)
    svg = render_vector(matrix, config, loader=cached_loader)
    return RenderResult(raster=to_data_uri(png), vector=svg, matrix=matrix)
