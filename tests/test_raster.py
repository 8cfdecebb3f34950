"""
Unit tests for the raster compositor.
"""

import io

import pytest
from PIL import Image

from qrstyle.config import EyeColors, Frame, Gradient, Logo, StyleConfig
from qrstyle.errors import AssetLoadError, ConfigurationError
from qrstyle.geometry import FRAME_HEIGHT, Grid
from qrstyle.raster import gradient_image, render_raster, to_data_uri

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _open(png):
    return Image.open(io.BytesIO(png))


def _finder_centre(grid, corner_col, corner_row):
    m = grid.module_px
    x, y = grid.module_origin(corner_col, corner_row)
    return int(x + 3.5 * m), int(y + 3.5 * m)


class TestRenderRaster:
    """Surface size, draw order and fills."""

    def test_png_of_requested_size(self, matrix, loader):
        png = render_raster(matrix, StyleConfig(size=300), loader=loader)
        assert png.startswith(PNG_SIGNATURE)
        img = _open(png)
        assert img.size == (300, 300)
        assert img.mode == "RGB"
        assert loader.calls == []

    def test_quiet_zone_is_background(self, matrix, loader):
        img = _open(render_raster(matrix, StyleConfig(size=300), loader=loader))
        assert img.getpixel((2, 2)) == (255, 255, 255)

    def test_finder_core_uses_foreground(self, matrix, loader):
        config = StyleConfig(size=300, foreground_color="#102030")
        img = _open(render_raster(matrix, config, loader=loader))
        grid = Grid(300, matrix.module_count, 4)
        assert img.getpixel(_finder_centre(grid, 0, 0)) == (0x10, 0x20, 0x30)

    def test_eye_color_override(self, matrix, loader):
        config = StyleConfig(size=300, eye_colors=EyeColors(top_right="#CC0000"))
        img = _open(render_raster(matrix, config, loader=loader))
        grid = Grid(300, matrix.module_count, 4)
        far = matrix.module_count - 7
        assert img.getpixel(_finder_centre(grid, far, 0)) == (0xCC, 0, 0)
        assert img.getpixel(_finder_centre(grid, 0, far)) == (0, 0, 0)

    def test_transparent_background(self, matrix, loader):
        config = StyleConfig(size=300, transparent_background=True)
        img = _open(render_raster(matrix, config, loader=loader))
        assert img.mode == "RGBA"
        assert img.getpixel((2, 2))[3] == 0

    def test_transparent_finder_hole_is_clear(self, matrix, loader):
        config = StyleConfig(size=300, transparent_background=True)
        img = _open(render_raster(matrix, config, loader=loader))
        grid = Grid(300, matrix.module_count, 4)
        m = grid.module_px
        x, y = grid.module_origin(0, 0)
        # middle of the one-module ring between outer block and core
        assert img.getpixel((int(x + 1.5 * m), int(y + 3.5 * m)))[3] == 0

    def test_frame_extends_surface(self, matrix, loader):
        config = StyleConfig(size=300, frame=Frame("simple", "Scan me"))
        img = _open(render_raster(matrix, config, loader=loader))
        assert img.size == (300, 300 + FRAME_HEIGHT)
        # band corner is drawn in the foreground color
        assert img.getpixel((1, 300 + 1)) == (0, 0, 0)

    @pytest.mark.parametrize("style", ["rounded", "banner"])
    def test_other_frame_styles(self, matrix, loader, style):
        config = StyleConfig(size=300, frame=Frame(style, "Scan me"))
        assert _open(render_raster(matrix, config, loader=loader)).size == (300, 360)

    def test_frame_without_text_is_skipped(self, matrix, loader):
        config = StyleConfig(size=300, frame=Frame("banner", ""))
        assert _open(render_raster(matrix, config, loader=loader)).size == (300, 300)

    def test_logo_drawn_on_top(self, matrix, loader):
        config = StyleConfig(size=300, logo=Logo("logo.png", size_fraction=0.2))
        img = _open(render_raster(matrix, config, loader=loader))
        assert loader.calls == ["logo.png"]
        assert img.getpixel((150, 150)) == (255, 0, 0)

    def test_logo_patch_uses_background(self, matrix, loader):
        config = StyleConfig(size=300, background_color="#FFFF00", logo=Logo("logo.png", size_fraction=0.2))
        img = _open(render_raster(matrix, config, loader=loader))
        # wide logo leaves the patch visible above it
        assert img.getpixel((150, 125)) == (255, 255, 0)

    def test_logo_failure_aborts_render(self, matrix):
        def failing(url):
            raise AssetLoadError("boom", url=url)

        config = StyleConfig(size=300, logo=Logo("logo.png"))
        with pytest.raises(AssetLoadError):
            render_raster(matrix, config, loader=failing)

    def test_invalid_finder_rejected_before_drawing(self, matrix, loader):
        config = StyleConfig(size=300, foreground_color="#F0F0F0", background_color="#101010",
                             logo=Logo("logo.png"))
        with pytest.raises(ConfigurationError):
            render_raster(matrix, config, loader=loader)
        assert loader.calls == []

    def test_geometry_is_deterministic(self, matrix, loader):
        config = StyleConfig(size=300, dot_style="dot", finder_pattern="dots")
        first = _open(render_raster(matrix, config, loader=loader))
        second = _open(render_raster(matrix, config, loader=loader))
        assert first.tobytes() == second.tobytes()

    def test_data_uri(self):
        assert to_data_uri(b"abc") == "data:image/png;base64,YWJj"


class TestGradient:
    """numpy gradient fill images."""

    def test_linear_runs_start_to_end(self):
        config = StyleConfig(size=100, gradient=Gradient(color_start="#FF0000", color_end="#0000FF"))
        img = gradient_image(config)
        assert img.size == (100, 100)
        left, right = img.getpixel((0, 50)), img.getpixel((99, 50))
        assert left[0] > 250 and left[2] < 5
        assert right[2] > 250 and right[0] < 5

    def test_radial_centre_is_start(self):
        config = StyleConfig(size=100, gradient=Gradient(type="radial", color_start="#FF0000",
                                                          color_end="#0000FF"))
        img = gradient_image(config)
        centre = img.getpixel((50, 50))
        assert centre[0] > 250
        corner = img.getpixel((0, 0))
        assert corner[2] == 255

    def test_gradient_fills_modules(self, all_dark_matrix, loader):
        config = StyleConfig(size=290, gradient=Gradient(color_start="#FF0000", color_end="#0000FF"))
        img = _open(render_raster(all_dark_matrix, config, loader=loader))
        # modules on the left lean red, on the right lean blue
        left = img.getpixel((125, 145))
        right = img.getpixel((165, 145))
        assert left[0] > right[0]
        assert right[2] > left[2]
