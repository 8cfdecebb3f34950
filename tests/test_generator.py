"""
Unit tests for the encoder adapter and the render entry point.
"""

import dataclasses

import pytest

from qrstyle.config import ECCLevel, Frame, Logo, StyleConfig
from qrstyle.errors import AssetLoadError, CapacityError, ConfigurationError
from qrstyle.generator import ModuleMatrix, RenderResult, encode, render

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestModuleMatrix:
    """Immutable square module grid."""

    def test_from_rows(self):
        matrix = ModuleMatrix.from_rows([[1, 0], [0, 1]])
        assert matrix.module_count == 2
        assert matrix.is_dark(0, 0) and not matrix.is_dark(1, 0)
        assert matrix.dark_count() == 2

    def test_indexing_is_column_row(self):
        matrix = ModuleMatrix.from_rows([[False, True], [False, False]])
        assert matrix.is_dark(1, 0)
        assert not matrix.is_dark(0, 1)

    @pytest.mark.parametrize("rows", [[], [[True, False]], [[True], [True, False]]])
    def test_non_square_rejected(self, rows):
        with pytest.raises(ConfigurationError):
            ModuleMatrix.from_rows(rows)

    def test_frozen(self):
        matrix = ModuleMatrix.from_rows([[True]])
        with pytest.raises(dataclasses.FrozenInstanceError):
            matrix.version = 3


class TestEncode:
    """qrcode-backed encoding."""

    def test_module_count_matches_version(self):
        matrix = encode("https://example.com", ECCLevel.M)
        assert matrix.version >= 1
        assert matrix.module_count == 4 * matrix.version + 17

    def test_finder_corners_are_dark(self):
        matrix = encode("hello", ECCLevel.L)
        n = matrix.module_count
        for x, y in [(0, 0), (n - 1, 0), (0, n - 1), (3, 3), (n - 4, 3), (3, n - 4)]:
            assert matrix.is_dark(x, y)
        # ring between outer block and core
        assert not matrix.is_dark(1, 1)

    def test_higher_ecc_needs_more_modules(self):
        text = "x" * 200
        assert encode(text, ECCLevel.H).module_count > encode(text, ECCLevel.L).module_count

    def test_over_capacity_raises(self):
        with pytest.raises(CapacityError) as exc:
            encode("a" * 3000, ECCLevel.H)
        assert exc.value.level == "H"
        assert exc.value.capacity == 1273
        assert exc.value.content_length == 3000

    def test_deterministic(self):
        assert encode("same", ECCLevel.Q) == encode("same", ECCLevel.Q)


class TestRender:
    """render(): one matrix, two outputs."""

    def test_returns_data_uri_and_svg(self, loader):
        result = render("https://example.com", StyleConfig(), loader=loader)
        assert isinstance(result, RenderResult)
        assert result.raster.startswith("data:image/png;base64,")
        assert result.raster_bytes().startswith(PNG_SIGNATURE)
        assert result.vector.startswith("<svg")
        assert result.matrix.module_count >= 21

    def test_empty_content_rejected(self, loader):
        with pytest.raises(ConfigurationError):
            render("", StyleConfig(), loader=loader)

    def test_uses_style_ecc_level(self, loader):
        seen = []

        def encoder(content, level):
            seen.append((content, level))
            return encode(content, level)

        render("abc", StyleConfig(error_correction_level="H"), loader=loader, encoder=encoder)
        assert seen == [("abc", ECCLevel.H)]

    def test_injected_encoder(self, loader, all_dark_matrix):
        result = render("ignored", StyleConfig(size=290), loader=loader, encoder=lambda c, lv: all_dark_matrix)
        assert result.matrix is all_dark_matrix

    def test_logo_loaded_once(self, loader):
        style = StyleConfig(logo=Logo("https://cdn.example.com/logo.png"), frame=Frame("simple", "Scan"))
        result = render("https://example.com", style, loader=loader)
        assert loader.calls == ["https://cdn.example.com/logo.png"]
        assert "<image" in result.vector

    def test_capacity_error_before_drawing(self, loader):
        style = StyleConfig(error_correction_level="H", logo=Logo("logo.png"))
        with pytest.raises(CapacityError):
            render("a" * 3000, style, loader=loader)
        assert loader.calls == []

    def test_asset_error_propagates(self):
        def failing(url):
            raise AssetLoadError("unreachable", url=url)

        with pytest.raises(AssetLoadError):
            render("https://example.com", StyleConfig(logo=Logo("logo.png")), loader=failing)

    def test_raster_and_vector_share_size(self, loader):
        result = render("https://example.com", StyleConfig(size=256), loader=loader)
        assert 'width="256" height="256"' in result.vector
