"""Style configuration: closed style enumerations, value objects and preset loading.

A :class:`StyleConfig` fully determines rendering output. Instances are frozen
and validated on construction, so an invalid configuration is rejected before
any surface is allocated.
"""

import dataclasses
import json
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import qrcode.constants

from qrstyle.errors import ConfigurationError
from qrstyle.logging import get_logger

log = get_logger("config")


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%

    @property
    def recovery_percent(self) -> int:
        return _RECOVERY_PERCENT[self]


_RECOVERY_PERCENT = {ECCLevel.L: 7, ECCLevel.M: 15, ECCLevel.Q: 25, ECCLevel.H: 30}


class _StyleEnum(Enum):
    """String-valued enum that also resolves legacy spellings."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-")
            for member in cls:
                if member.value == key:
                    return member
            alias = _ALIASES.get((cls.__name__, key))
            if alias is not None:
                return cls(alias)
        return None


class DotStyle(_StyleEnum):
    SQUARE = "square"
    DOT = "dot"
    ROUNDED = "rounded"
    EXTRA_ROUNDED = "extra-rounded"
    CLASSY = "classy"


class FinderStyle(_StyleEnum):
    SQUARE = "square"
    ROUNDED = "rounded"
    DOTS = "dots"
    EXTRA_ROUNDED = "extra-rounded"


class FrameStyle(_StyleEnum):
    NONE = "none"
    SIMPLE = "simple"
    ROUNDED = "rounded"
    BANNER = "banner"


class GradientType(_StyleEnum):
    LINEAR = "linear"
    RADIAL = "radial"


_ALIASES = {
    ("DotStyle", "dots"): "dot",
    ("DotStyle", "circle"): "dot",
    ("DotStyle", "squares"): "square",
    ("FinderStyle", "standard"): "square",
    ("FinderStyle", "dot"): "dots",
    ("FrameStyle", "banner-bottom"): "banner",
}


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def parse_hex_color(value: str) -> tuple[int, int, int]:
    """Parse ``#RGB`` / ``#RRGGBB`` (``#`` optional) into an RGB tuple."""
    if not isinstance(value, str):
        raise ConfigurationError(f"Invalid hex color: {value!r}")
    m = _HEX_RE.match(value.strip())
    if not m:
        raise ConfigurationError(f"Invalid hex color: {value!r}")
    digits = m.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return tuple(int(digits[i : i + 2], 16) for i in (0, 2, 4))


def to_hex(rgb: tuple[int, ...]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb[:3])


def with_alpha(color: str, alpha: int = 255) -> tuple[int, int, int, int]:
    return (*parse_hex_color(color), alpha)


def _linearize(channel: int) -> float:
    """sRGB channel (0-255) to linear light."""
    c = channel / 255.0
    return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(rgb: tuple[int, ...]) -> float:
    """WCAG 2.0 relative luminance of an RGB color."""
    r, g, b = [_linearize(ch) for ch in rgb[:3]]
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

def _coerce(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    if enum_cls is ECCLevel:
        if isinstance(value, str) and value.strip().upper() in ECCLevel.__members__:
            return ECCLevel[value.strip().upper()]
    else:
        try:
            return enum_cls(value)
        except ValueError:
            pass
    allowed = ", ".join(m.name if enum_cls is ECCLevel else m.value for m in enum_cls)
    raise ConfigurationError(f"Unknown {field_name} {value!r} (expected one of: {allowed})")


def _set(obj, name: str, value):
    object.__setattr__(obj, name, value)


@dataclass(frozen=True)
class Gradient:
    enabled: bool = True
    type: GradientType = GradientType.LINEAR
    color_start: str = "#000000"
    color_end: str = "#000000"
    rotation: float = 0.0

    def __post_init__(self):
        _set(self, "type", _coerce(GradientType, self.type, "gradient type"))
        parse_hex_color(self.color_start)
        parse_hex_color(self.color_end)
        if isinstance(self.rotation, bool) or not isinstance(self.rotation, (int, float)):
            raise ConfigurationError(f"Gradient rotation must be a number, got {self.rotation!r}")


@dataclass(frozen=True)
class EyeColors:
    top_left: str | None = None
    top_right: str | None = None
    bottom_left: str | None = None

    def __post_init__(self):
        for color in (self.top_left, self.top_right, self.bottom_left):
            if color:
                parse_hex_color(color)


@dataclass(frozen=True)
class Frame:
    style: FrameStyle = FrameStyle.NONE
    text: str = ""

    def __post_init__(self):
        _set(self, "style", _coerce(FrameStyle, self.style, "frame style"))
        if not isinstance(self.text, str):
            raise ConfigurationError(f"Frame text must be a string, got {self.text!r}")

    @property
    def visible(self) -> bool:
        return self.style is not FrameStyle.NONE and bool(self.text.strip())


@dataclass(frozen=True)
class Logo:
    url: str
    size_fraction: float = 0.2
    padding_px: int = 10

    def __post_init__(self):
        if not isinstance(self.url, str) or not self.url.strip():
            raise ConfigurationError("Logo url must be a non-empty string")
        f = self.size_fraction
        if isinstance(f, bool) or not isinstance(f, (int, float)) or not 0 < f <= 1:
            raise ConfigurationError(f"Logo size fraction must be in (0, 1], got {f!r}")
        if isinstance(self.padding_px, bool) or not isinstance(self.padding_px, int) or self.padding_px < 0:
            raise ConfigurationError(f"Logo padding must be a non-negative integer, got {self.padding_px!r}")


@dataclass(frozen=True)
class StyleConfig:
    """Everything needed to render one QR code."""

    content: str = ""
    error_correction_level: ECCLevel = ECCLevel.M
    size: int = 300
    margin: int = 4
    foreground_color: str = "#000000"
    background_color: str = "#FFFFFF"
    dot_style: DotStyle = DotStyle.SQUARE
    finder_pattern: FinderStyle = FinderStyle.SQUARE
    gradient: Gradient | None = None
    eye_colors: EyeColors | None = None
    frame: Frame | None = None
    logo: Logo | None = None
    transparent_background: bool = False

    def __post_init__(self):
        _set(self, "error_correction_level",
             _coerce(ECCLevel, self.error_correction_level, "error correction level"))
        _set(self, "dot_style", _coerce(DotStyle, self.dot_style, "dot style"))
        _set(self, "finder_pattern", _coerce(FinderStyle, self.finder_pattern, "finder pattern"))

        if not isinstance(self.content, str):
            raise ConfigurationError(f"Content must be a string, got {type(self.content).__name__}")
        if isinstance(self.size, bool) or not isinstance(self.size, (int, float)) or int(self.size) <= 0:
            raise ConfigurationError(f"Size must be a positive number of pixels, got {self.size!r}")
        _set(self, "size", int(self.size))
        if isinstance(self.margin, bool) or not isinstance(self.margin, int) or self.margin <= 0:
            raise ConfigurationError(f"Margin must be a positive number of modules, got {self.margin!r}")

        parse_hex_color(self.foreground_color)
        parse_hex_color(self.background_color)

        for name, cls in (("gradient", Gradient), ("eye_colors", EyeColors),
                          ("frame", Frame), ("logo", Logo)):
            value = getattr(self, name)
            if isinstance(value, dict):
                try:
                    _set(self, name, cls(**_snake_keys(value)))
                except TypeError as e:
                    raise ConfigurationError(f"Invalid {name}: {e}") from e
            elif value is not None and not isinstance(value, cls):
                raise ConfigurationError(f"{name} must be a {cls.__name__}, got {type(value).__name__}")

    @property
    def gradient_enabled(self) -> bool:
        return self.gradient is not None and self.gradient.enabled

    @property
    def has_logo(self) -> bool:
        return self.logo is not None

    def replace(self, **changes) -> "StyleConfig":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict) -> "StyleConfig":
        """Build a config from a UI/preset dict (camelCase or snake_case keys).

        Flat legacy keys (``logoUrl``, ``logoSize``, ``frameStyle``,
        ``frameText``, ``errorCorrection``, ``style``) are folded into their
        nested equivalents.
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"Style must be a mapping, got {type(data).__name__}")
        raw = _snake_keys(data)

        for legacy, target in (("error_correction", "error_correction_level"),
                               ("style", "dot_style")):
            if legacy in raw:
                raw.setdefault(target, raw.pop(legacy))

        if "logo_url" in raw:
            logo = {"url": raw.pop("logo_url")}
            if "logo_size" in raw:
                logo["size_fraction"] = raw.pop("logo_size")
            if logo["url"]:
                raw.setdefault("logo", logo)
        raw.pop("logo_size", None)

        if "frame_style" in raw or "frame_text" in raw:
            raw.setdefault("frame", {
                "style": raw.pop("frame_style", "none"),
                "text": raw.pop("frame_text", "") or "",
            })

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            log.debug("style.ignored_keys %s", unknown)
        return cls(**{k: v for k, v in raw.items() if k in known})


_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_keys(data: dict) -> dict:
    return {_CAMEL_RE.sub("_", str(k)).lower(): v for k, v in data.items()}


def load_style(path: str | Path) -> StyleConfig:
    """Load a JSON style preset."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read style preset {path}: {e}") from e
    return StyleConfig.from_dict(data)
