"""
Shared fixtures: encoded matrices and a synchronous, network-free logo loader.
"""

import base64
import io
import logging

import pytest
from PIL import Image

from qrstyle.config import ECCLevel, StyleConfig
from qrstyle.generator import ModuleMatrix, encode

EXAMPLE_URL = "https://example.com"
LOGO_RED = (255, 0, 0, 255)


@pytest.fixture(autouse=True)
def reset_qrstyle_logging():
    """CLI tests install stream handlers; drop them so later tests do not log to stale streams."""
    yield
    root = logging.getLogger("qrstyle")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


class StubLoader:
    """Returns a solid red 40x20 logo and records every url it was asked for."""

    def __init__(self, color=LOGO_RED, size=(40, 20)):
        self.color = color
        self.size = size
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        return Image.new("RGBA", self.size, self.color)


@pytest.fixture
def loader():
    return StubLoader()


@pytest.fixture
def matrix():
    return encode(EXAMPLE_URL, ECCLevel.M)


@pytest.fixture
def all_dark_matrix():
    return ModuleMatrix.from_rows([[True] * 21 for _ in range(21)])


@pytest.fixture
def style():
    return StyleConfig(content=EXAMPLE_URL)


@pytest.fixture
def png_data_uri():
    buf = io.BytesIO()
    Image.new("RGBA", (8, 8), LOGO_RED).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
