"""Decode check: run OpenCV's QR detector over a rendered raster."""

import base64
import io
import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image

from qrstyle.logging import audit, get_logger, trace

log = get_logger("verify")

DECODER = "opencv"


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = DECODER
    error: str | None = None


def _as_image(source) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, str):
        source = base64.b64decode(source.partition(",")[2])
    return Image.open(io.BytesIO(source))


def flatten(image: Image.Image) -> Image.Image:
    """RGB copy of ``image`` with any transparency composited onto white."""
    if image.mode in ("RGBA", "LA", "P"):
        rgba = image.convert("RGBA")
        white = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        return Image.alpha_composite(white, rgba).convert("RGB")
    return image.convert("RGB")


@trace
def scan_raster(source: Image.Image | bytes | str) -> ScanResult:
    """Decode a QR code from a PIL image, PNG bytes or a PNG data URI.

    Detection failures are reported in the result, not raised.
    """
    start = time.perf_counter()
    try:
        arr = np.array(flatten(_as_image(source)))
        gray = cv2.cvtColor(arr, cv2.COLOR_RGB2GRAY)
        data, _, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except (OSError, ValueError, cv2.error) as e:
        elapsed = (time.perf_counter() - start) * 1000
        audit("scan.error", logger=log, decoder=DECODER, error=str(e), time_ms=round(elapsed, 1))
        return ScanResult(success=False, decode_time_ms=elapsed, error=str(e))

    elapsed = (time.perf_counter() - start) * 1000
    if data:
        audit("scan.verified", logger=log, decoder=DECODER, success=True,
              time_ms=round(elapsed, 1), data=data[:80])
        return ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed)
    audit("scan.verified", logger=log, decoder=DECODER, success=False,
          time_ms=round(elapsed, 1), error="No QR code detected")
    return ScanResult(success=False, decode_time_ms=elapsed, error="No QR code detected")


@trace
def verify_render(result, expected: str | None = None) -> ScanResult:
    """Scan ``result.raster``; a decode that differs from ``expected`` is a failure."""
    scan = scan_raster(result.raster)
    if scan.success and expected is not None and scan.decoded_data != expected:
        scan.success = False
        scan.error = f"Data mismatch: got '{scan.decoded_data}', expected '{expected}'"
    return scan
