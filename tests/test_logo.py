"""
Unit tests for the logo safe zone and logo loading.
"""

import io

import pytest
import requests
from PIL import Image

from qrstyle.errors import AssetLoadError
from qrstyle.geometry import Rect
from qrstyle.logo import fit_logo, load_image, occlusion_box, occlusion_percent, patch_box


def _png_bytes(size=(16, 8), color=(0, 0, 255, 255)):
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


class TestSafeZone:
    """Occlusion box and patch geometry."""

    def test_occlusion_percent(self):
        assert occlusion_percent(0.25) == 25
        assert occlusion_percent(0) == 0

    def test_occlusion_box_is_centred(self):
        assert occlusion_box(300, 0.25) == Rect(112.5, 112.5, 75, 75)

    def test_patch_adds_padding(self):
        assert patch_box(300, 0.25, 10) == Rect(102.5, 102.5, 95, 95)

    def test_fit_logo_preserves_aspect(self):
        logo = Image.new("RGBA", (40, 20), (255, 0, 0, 255))
        box = Rect(100, 100, 80, 80)
        fitted, (x, y) = fit_logo(logo, box)
        assert fitted.size == (80, 40)
        assert fitted.mode == "RGBA"
        assert (x, y) == (100, 120)


class TestLoadImage:
    """Logo sources: data URIs, paths, file URLs and http(s)."""

    def test_data_uri(self, png_data_uri):
        img = load_image(png_data_uri)
        assert img.size == (8, 8)

    def test_path(self, tmp_path):
        path = tmp_path / "logo.png"
        path.write_bytes(_png_bytes())
        assert load_image(str(path)).size == (16, 8)

    def test_file_url(self, tmp_path):
        path = tmp_path / "logo.png"
        path.write_bytes(_png_bytes())
        assert load_image(path.as_uri()).size == (16, 8)

    def test_missing_file(self, tmp_path):
        with pytest.raises(AssetLoadError) as exc:
            load_image(str(tmp_path / "missing.png"))
        assert exc.value.url.endswith("missing.png")

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "logo.png"
        path.write_bytes(b"definitely not a png")
        with pytest.raises(AssetLoadError) as exc:
            load_image(str(path))
        assert "not a readable image" in str(exc.value)

    def test_malformed_data_uri(self):
        with pytest.raises(AssetLoadError):
            load_image("data:image/png;base64,!!!not-base64!!!")

    def test_http_fetch(self, monkeypatch):
        class FakeResponse:
            content = _png_bytes((10, 10))

            def raise_for_status(self):
                pass

        seen = {}

        def fake_get(url, timeout):
            seen["url"], seen["timeout"] = url, timeout
            return FakeResponse()

        monkeypatch.setattr(requests, "get", fake_get)
        img = load_image("https://cdn.example.com/logo.png")
        assert img.size == (10, 10)
        assert seen == {"url": "https://cdn.example.com/logo.png", "timeout": 15}

    def test_http_failure_is_fatal(self, monkeypatch):
        def fake_get(url, timeout):
            raise requests.ConnectionError("connection refused")

        monkeypatch.setattr(requests, "get", fake_get)
        with pytest.raises(AssetLoadError) as exc:
            load_image("https://cdn.example.com/logo.png")
        assert isinstance(exc.value.__cause__, requests.ConnectionError)
