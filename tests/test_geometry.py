"""
Unit tests for the shared geometry used by both compositors.
"""

import pytest

from qrstyle.config import Frame, FrameStyle
from qrstyle.errors import ConfigurationError
from qrstyle.geometry import (
    FRAME_HEIGHT,
    Circle,
    Corner,
    Grid,
    Rect,
    finder_origins,
    frame_band,
    frame_height,
    is_finder_module,
    linear_gradient_endpoints,
    radial_gradient_geometry,
)


class TestGrid:
    """Module pixel size and quiet-zone offset."""

    def setup_method(self):
        # 25 modules + 2 * 4 margin = 33 cells of 10px
        self.grid = Grid(size=330, module_count=25, margin=4)

    def test_module_px(self):
        assert self.grid.module_px == 10

    def test_offset(self):
        assert self.grid.offset == 40

    def test_module_origin(self):
        assert self.grid.module_origin(1, 2) == (50, 60)

    def test_finder_origin(self):
        assert self.grid.finder_origin(Corner.TOP_RIGHT) == (40 + 18 * 10, 40)
        assert self.grid.finder_origin(Corner.BOTTOM_LEFT) == (40, 40 + 18 * 10)

    @pytest.mark.parametrize("size,count,margin", [(0, 21, 4), (-5, 21, 4), (300, 0, 4), (300, 21, -1)])
    def test_degenerate_grid_rejected(self, size, count, margin):
        with pytest.raises(ConfigurationError):
            Grid(size, count, margin)

    def test_module_px_always_positive(self):
        for count in (21, 57, 177):
            for margin in (1, 4, 10):
                assert Grid(120, count, margin).module_px > 0


class TestFinderPredicate:
    """The three 7x7 finder regions."""

    @pytest.mark.parametrize("x,y", [(0, 0), (6, 6), (20, 0), (14, 6), (0, 20), (6, 14)])
    def test_inside(self, x, y):
        assert is_finder_module(x, y, 21)

    @pytest.mark.parametrize("x,y", [(7, 7), (7, 0), (13, 0), (0, 13), (20, 20), (14, 14), (10, 10)])
    def test_outside(self, x, y):
        assert not is_finder_module(x, y, 21)

    def test_region_size_is_fixed(self):
        """Three 7x7 blocks regardless of symbol size; bottom-right has none."""
        for n in (21, 25, 57):
            count = sum(is_finder_module(x, y, n) for y in range(n) for x in range(n))
            assert count == 3 * 49

    def test_finder_origins(self):
        assert finder_origins(21) == {
            Corner.TOP_LEFT: (0, 0),
            Corner.TOP_RIGHT: (14, 0),
            Corner.BOTTOM_LEFT: (0, 14),
        }


class TestShapes:
    """Rect/Circle hit testing."""

    def test_rect_contains(self):
        rect = Rect(10, 10, 20, 20)
        assert rect.contains(20, 20)
        assert not rect.contains(5, 20)

    def test_circle_contains(self):
        circle = Circle(0, 0, 5)
        assert circle.contains(3, 4)
        assert not circle.contains(4, 4)


class TestFrameGeometry:
    """Caption band sizing."""

    def test_frame_height(self):
        assert frame_height(Frame("simple", "Scan me")) == FRAME_HEIGHT
        assert frame_height(Frame("banner", "")) == 0
        assert frame_height(Frame("none", "Scan me")) == 0
        assert frame_height(None) == 0

    def test_simple_band_spans_width(self):
        assert frame_band(300, FrameStyle.SIMPLE) == Rect(0, 300, 300, FRAME_HEIGHT)

    def test_rounded_band_is_inset(self):
        band = frame_band(300, FrameStyle.ROUNDED)
        assert band.x > 0 and band.x + band.w < 300
        assert band.y > 300 and band.y + band.h < 300 + FRAME_HEIGHT
        assert band.radius > 0

    def test_banner_is_notched_ribbon(self):
        points = frame_band(300, FrameStyle.BANNER)
        assert len(points) == 6
        assert all(300 <= y <= 300 + FRAME_HEIGHT for _, y in points)

    def test_none_has_no_band(self):
        with pytest.raises(ConfigurationError):
            frame_band(300, FrameStyle.NONE)


class TestGradientGeometry:
    """Gradient endpoints rotate around the centre."""

    def test_zero_rotation_runs_left_to_right(self):
        start, end = linear_gradient_endpoints(100, 0)
        assert start == pytest.approx((0, 50))
        assert end == pytest.approx((100, 50))

    def test_ninety_degrees_runs_top_to_bottom(self):
        start, end = linear_gradient_endpoints(100, 90)
        assert start == pytest.approx((50, 0), abs=1e-9)
        assert end == pytest.approx((50, 100), abs=1e-9)

    def test_radial_is_centred_full_radius(self):
        assert radial_gradient_geometry(200) == (100, 100, 100)
