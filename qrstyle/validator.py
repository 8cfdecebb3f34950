"""Scannability validator: score a style before paying for a render.

Rules:
    contrast        WCAG luminance ratio between foreground and background
    size            output edge in pixels, approximate module size, scan distance
    logo            occluded share vs. the error-correction budget
    capacity        content length vs. the byte capacity of the chosen level
    quiet-zone      margin in modules (when supplied)
    foreground      finder colors lighter than the background (fails on an opaque
                    background, where rendering would reject them)

The overall score is the mean of the applicable check scores. ``validate``
never raises: malformed input yields failing checks instead.
"""

import math
from dataclasses import asdict, dataclass, field

from qrstyle.config import ECCLevel, StyleConfig, parse_hex_color, relative_luminance
from qrstyle.errors import AdvisoryWarning, ConfigurationError
from qrstyle.logging import audit, get_logger, trace
from qrstyle.logo import occlusion_percent

log = get_logger("validator")

PASS, WARN, FAIL = "pass", "warn", "fail"

# Byte-mode capacity at version 40
ECC_BYTE_CAPACITY = {ECCLevel.L: 2953, ECCLevel.M: 2331, ECCLevel.Q: 1663, ECCLevel.H: 1273}

# (version, L, M, Q, H) byte-mode capacities, used to estimate symbol density
_VERSION_CAPACITY = [
    (1, 17, 14, 11, 7), (2, 32, 26, 20, 14), (3, 53, 42, 32, 24),
    (4, 78, 62, 46, 34), (5, 106, 84, 60, 44), (6, 134, 106, 74, 58),
    (7, 154, 122, 86, 64), (8, 192, 152, 108, 84), (10, 271, 213, 151, 119),
    (15, 520, 412, 292, 226), (20, 858, 666, 482, 382), (25, 1273, 998, 718, 554),
    (30, 1732, 1370, 982, 742), (35, 2303, 1812, 1306, 1006), (40, 2953, 2331, 1663, 1273),
]
_LEVEL_COLUMN = {ECCLevel.L: 1, ECCLevel.M: 2, ECCLevel.Q: 3, ECCLevel.H: 4}

# Approximate module count of a small symbol, used for module size regardless
# of the actual encoded version.
TYPICAL_MODULE_COUNT = 33
SCREEN_DPI = 96

LOGO_MAX_PERCENT = 30
LOGO_LOW_ECC_PERCENT = 20
LOGO_COMFORT_PERCENT = 25


@dataclass
class Check:
    id: str
    category: str
    status: str
    message: str
    score: int
    suggestion: str | None = None


@dataclass
class PrintRecommendation:
    min_size_cm: float
    min_size_inches: float
    recommended_size_cm: float
    recommended_size_inches: float
    scan_distance_m: float
    scan_distance_ft: float
    dpi: int = 300


@dataclass
class LogoSuggestion:
    size_fraction: float


@dataclass
class SuggestedSettings:
    """Corrected settings; feeding them back into ``validate`` never scores worse."""

    foreground_color: str
    background_color: str
    size: int
    error_correction_level: str
    logo: LogoSuggestion | None = None
    shorten_content: bool = False


@dataclass
class ValidationReport:
    overall_score: int
    checks: list[Check]
    contrast_ratio: float | None
    module_size_px: float | None
    recommended_scan_distance: str
    logo_occlusion_percent: float
    error_correction_capacity_bytes: int | None
    error_correction_recovery_percent: int | None
    print_recommendation: PrintRecommendation
    suggested_settings: SuggestedSettings
    rating: str = field(init=False)

    def __post_init__(self):
        self.rating = quality_rating(self.overall_score)

    def check(self, check_id: str) -> Check | None:
        return next((c for c in self.checks if c.id == check_id), None)

    @property
    def failures(self) -> list[Check]:
        return [c for c in self.checks if c.status == FAIL]

    @property
    def warnings(self) -> list[Check]:
        return [c for c in self.checks if c.status == WARN]

    @property
    def is_valid(self) -> bool:
        return not self.failures

    def advisories(self) -> list[AdvisoryWarning]:
        return [AdvisoryWarning(c.id, c.message) for c in self.warnings]

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def contrast_ratio(color_a: str, color_b: str) -> float:
    """WCAG contrast ratio between two hex colors (1.0 - 21.0)."""
    l1 = relative_luminance(parse_hex_color(color_a))
    l2 = relative_luminance(parse_hex_color(color_b))
    if l1 < l2:
        l1, l2 = l2, l1
    return (l1 + 0.05) / (l2 + 0.05)


def recommended_scan_distance(size: float) -> str:
    """Rule of thumb: scan distance is about ten times the code's edge (96 DPI)."""
    distance_ft = round(size / SCREEN_DPI * 10 / 12)
    if distance_ft < 1:
        return "Close range (< 1 foot)"
    return f"{distance_ft} feet (~{distance_ft * 0.3048:.1f}m)"


def estimate_version(content_length: int, level: ECCLevel) -> int:
    column = _LEVEL_COLUMN[level]
    for row in _VERSION_CAPACITY:
        if content_length <= row[column]:
            return row[0]
    return 40


def print_recommendation(content_length: int, level: ECCLevel) -> PrintRecommendation:
    module_count = 21 + (estimate_version(content_length, level) - 1) * 4
    min_cm = max(2.0, module_count * 0.05)
    rec_cm = min_cm * 1.5
    return PrintRecommendation(
        min_size_cm=round(min_cm, 1),
        min_size_inches=round(min_cm / 2.54, 1),
        recommended_size_cm=round(rec_cm, 1),
        recommended_size_inches=round(rec_cm / 2.54, 1),
        scan_distance_m=round(rec_cm / 10, 2),
        scan_distance_ft=round(rec_cm * 10 / 30.48, 1),
    )


def quality_rating(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Good"
    if score >= 60:
        return "Fair"
    return "Poor"


def _parse_level(value) -> ECCLevel | None:
    if isinstance(value, ECCLevel):
        return value
    if isinstance(value, str) and value.strip().upper() in ECCLevel.__members__:
        return ECCLevel[value.strip().upper()]
    return None


def fitting_level(content_length: int, level: ECCLevel) -> ECCLevel | None:
    """Most robust level with more capacity than ``level`` that holds the content."""
    larger = sorted(
        (lv for lv in ECCLevel if ECC_BYTE_CAPACITY[lv] > ECC_BYTE_CAPACITY[level]),
        key=ECC_BYTE_CAPACITY.get,
    )
    return next((lv for lv in larger if content_length <= ECC_BYTE_CAPACITY[lv]), None)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _check_contrast(fg, bg) -> tuple[Check, float | None]:
    try:
        ratio = contrast_ratio(fg, bg)
    except ConfigurationError as e:
        return Check("contrast", "contrast", FAIL, f"Cannot evaluate contrast: {e}", 0,
                     "Use #RRGGBB colors"), None

    score = round(min(100.0, ratio / 7 * 100))
    detail = f"{ratio:.1f}:1"
    if ratio < 3:
        return Check("contrast", "contrast", FAIL,
                     f"Contrast ratio {detail} is too low; scanning is likely to break", score,
                     "Use a darker foreground or a lighter background"), ratio
    if ratio < 4.5:
        return Check("contrast", "contrast", WARN,
                     f"Contrast ratio {detail} could be improved (4.5:1 recommended)", score,
                     "Higher contrast improves scanning reliability"), ratio
    return Check("contrast", "contrast", PASS, f"Contrast ratio {detail}", score), ratio


def _is_size(size) -> bool:
    return (isinstance(size, (int, float)) and not isinstance(size, bool)
            and math.isfinite(size) and size > 0)


def _lighter_than(color, background) -> bool:
    return relative_luminance(parse_hex_color(color)) > relative_luminance(parse_hex_color(background))


def _check_foreground(fg, bg, transparent=False, finder_colors=()) -> Check | None:
    try:
        inverted = _lighter_than(fg, bg)
        light_eyes = [c for c in finder_colors if _lighter_than(c, bg)]
    except ConfigurationError:
        return None
    if transparent:
        if inverted:
            return Check("foreground-color", "accessibility", WARN,
                         "Foreground is lighter than the background; inverted codes do not scan on all devices",
                         60, "Use a dark foreground on a light background")
    elif inverted or light_eyes:
        lighter = fg if inverted else light_eyes[0]
        return Check("foreground-color", "accessibility", FAIL,
                     f"Finder pattern color {lighter} is lighter than the background {bg}; "
                     "the core must be the darkest element", 0,
                     "Use a dark foreground on a light background")
    return Check("foreground-color", "accessibility", PASS, "Dark foreground on light background", 100)


def _check_size(size) -> Check:
    if not _is_size(size):
        return Check("size", "size", FAIL, f"Invalid size {size!r}", 0, "Use a positive pixel size")
    if size < 100:
        return Check("size", "size", FAIL, f"{size}px is too small to scan reliably", 30,
                     "Use at least 200px, larger for print")
    if size < 200:
        return Check("size", "size", WARN, f"{size}px is small; hard to scan from a distance", 50,
                     "Increase size to at least 200px")
    if size < 300:
        return Check("size", "size", PASS, f"{size}px is adequate", 75,
                     "Consider 300px or larger for a longer scan distance")
    return Check("size", "size", PASS, f"{size}px is a good size", 100)


def _check_logo(percent: float, level: ECCLevel | None) -> Check:
    detail = f"Logo covers {percent:.0f}%"
    if percent > LOGO_MAX_PERCENT:
        return Check("logo-size", "logo", FAIL,
                     f"{detail}; logo is too large and may prevent scanning", 30,
                     "Reduce the logo to 30% or less")
    if percent > LOGO_LOW_ECC_PERCENT and level in (ECCLevel.L, None):
        return Check("logo-size", "logo", WARN,
                     f"{detail}; this logo size needs higher error correction", 60,
                     "Use at least M error correction with logos")
    if percent > LOGO_COMFORT_PERCENT:
        return Check("logo-size", "logo", PASS, f"{detail}", 80,
                     "A slightly smaller logo scans more reliably")
    return Check("logo-size", "logo", PASS, f"{detail}", 100)


def _check_capacity(content_length, level: ECCLevel | None) -> tuple[Check, ECCLevel | None, bool]:
    """Returns the check, a level that fits (if switching helps) and whether to shorten."""
    if level is None:
        return Check("capacity", "content", FAIL, "Unknown error-correction level", 0,
                     "Use one of L, M, Q, H"), None, False
    if isinstance(content_length, bool) or not isinstance(content_length, int) or content_length < 0:
        return Check("capacity", "content", FAIL, f"Invalid content length {content_length!r}", 0), None, False
    if content_length == 0:
        return Check("capacity", "content", FAIL, "QR code has no content", 0,
                     "Add content for the QR code to encode"), None, False

    capacity = ECC_BYTE_CAPACITY[level]
    if content_length > capacity:
        alternative = fitting_level(content_length, level)
        if alternative is not None:
            suggestion = (f"Switch to {alternative.name} error correction "
                          f"(holds {ECC_BYTE_CAPACITY[alternative]} bytes) or shorten the content")
        else:
            suggestion = "Shorten the content; no error-correction level can hold it"
        return Check("capacity", "content", FAIL,
                     f"Content ({content_length} bytes) exceeds the {level.name} capacity "
                     f"of {capacity} bytes", 0, suggestion), alternative, alternative is None

    usage = content_length / capacity * 100
    if usage >= 90:
        return Check("capacity", "content", WARN,
                     f"Content uses {usage:.0f}% of the {level.name} capacity", 70,
                     "Shorten the content or use a URL shortener"), None, False
    if usage >= 70:
        return Check("capacity", "content", WARN,
                     f"Content uses {usage:.0f}% of the {level.name} capacity; the code will be dense", 85,
                     "Consider a URL shortener"), None, False
    return Check("capacity", "content", PASS,
                 f"{content_length} bytes of {capacity} available", 100), None, False


def _check_margin(margin) -> Check:
    if isinstance(margin, bool) or not isinstance(margin, int) or margin < 2:
        return Check("quiet-zone", "technical", WARN, f"Quiet zone of {margin!r} modules is small", 60,
                     "Use a margin of at least 4 modules")
    return Check("quiet-zone", "technical", PASS, f"Quiet zone of {margin} modules", 100)


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------

def _suggest(fg, bg, size, level, ratio, logo_fraction, has_logo, content_length,
             capacity_alternative, shorten, transparent=False) -> SuggestedSettings:
    suggested_fg, suggested_bg = fg, bg
    if ratio is not None and ratio >= 4.5 and not transparent and _lighter_than(fg, bg):
        suggested_fg, suggested_bg = bg, fg
    elif ratio is None or ratio < 4.5:
        try:
            light_bg = relative_luminance(parse_hex_color(bg)) >= 0.5
        except ConfigurationError:
            light_bg = False
        suggested_fg = "#000000"
        suggested_bg = bg if light_bg else "#FFFFFF"

    suggested_size = size if _is_size(size) and size >= 300 else 300

    suggested_level = capacity_alternative or level or ECCLevel.M
    logo = None
    if has_logo:
        fraction = min(logo_fraction, LOGO_MAX_PERCENT / 100)
        if suggested_level is ECCLevel.L:
            fits_m = not isinstance(content_length, int) or content_length <= ECC_BYTE_CAPACITY[ECCLevel.M]
            if fits_m:
                suggested_level = ECCLevel.M
            else:
                fraction = min(fraction, LOGO_LOW_ECC_PERCENT / 100)
        logo = LogoSuggestion(size_fraction=round(fraction, 4))

    return SuggestedSettings(
        foreground_color=suggested_fg,
        background_color=suggested_bg,
        size=int(suggested_size),
        error_correction_level=suggested_level.name,
        logo=logo,
        shorten_content=shorten,
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

@trace
def validate(
    foreground_color: str,
    background_color: str,
    size: int,
    error_correction_level: ECCLevel | str,
    logo_size_fraction: float = 0.0,
    has_logo: bool = False,
    content_length: int | None = None,
    margin: int | None = None,
    transparent_background: bool = False,
    finder_colors: tuple[str, ...] = (),
) -> ValidationReport:
    """Score a style for scannability. Never raises.

    Args:
        content_length: UTF-8 byte length of the content; ``None`` skips the
            capacity check.
        margin: Quiet zone in modules; ``None`` skips the quiet-zone check.
        transparent_background: Finder colors lighter than the background are
            not rejected, since there is no background to compare against.
        finder_colors: Per-eye color overrides, held to the same darkness rule
            as the foreground.
    """
    level = _parse_level(error_correction_level)
    if isinstance(logo_size_fraction, bool) or not isinstance(logo_size_fraction, (int, float)):
        logo_size_fraction = 0.0
    logo_size_fraction = max(0.0, float(logo_size_fraction))
    if not isinstance(finder_colors, (tuple, list)):
        finder_colors = ()

    checks = []
    contrast, ratio = _check_contrast(foreground_color, background_color)
    checks.append(contrast)
    foreground = _check_foreground(foreground_color, background_color,
                                   transparent_background, finder_colors)
    if foreground is not None:
        checks.append(foreground)
    checks.append(_check_size(size))
    percent = occlusion_percent(logo_size_fraction) if has_logo else 0.0
    if has_logo:
        checks.append(_check_logo(percent, level))

    alternative, shorten = None, False
    if content_length is not None:
        capacity, alternative, shorten = _check_capacity(content_length, level)
        checks.append(capacity)
    elif level is None:
        checks.append(Check("capacity", "content", FAIL, "Unknown error-correction level", 0,
                            "Use one of L, M, Q, H"))
    if margin is not None:
        checks.append(_check_margin(margin))

    overall = round(sum(c.score for c in checks) / len(checks))
    size_ok = _is_size(size)
    estimate_level = level or ECCLevel.M
    estimate_length = content_length if isinstance(content_length, int) and content_length > 0 else 0

    report = ValidationReport(
        overall_score=overall,
        checks=checks,
        contrast_ratio=round(ratio, 2) if ratio is not None else None,
        module_size_px=round(size / TYPICAL_MODULE_COUNT, 1) if size_ok else None,
        recommended_scan_distance=recommended_scan_distance(size) if size_ok else "Unknown",
        logo_occlusion_percent=round(percent, 1),
        error_correction_capacity_bytes=ECC_BYTE_CAPACITY[level] if level else None,
        error_correction_recovery_percent=level.recovery_percent if level else None,
        print_recommendation=print_recommendation(estimate_length, estimate_level),
        suggested_settings=_suggest(foreground_color, background_color, size, level, ratio,
                                    logo_size_fraction, has_logo, content_length,
                                    alternative, shorten, transparent_background),
    )
    audit("validate.completed", logger=log,
          score=overall, rating=report.rating,
          failures=[c.id for c in report.failures],
          warnings=[c.id for c in report.warnings])
    return report


def validate_config(config: StyleConfig, check_content: bool = True) -> ValidationReport:
    """Validate a full StyleConfig, using its content and margin.

    With ``check_content=False`` the capacity check is skipped.
    """
    eyes = config.eye_colors
    overrides = (eyes.top_left, eyes.top_right, eyes.bottom_left) if eyes else ()
    return validate(
        config.foreground_color,
        config.background_color,
        config.size,
        config.error_correction_level,
        logo_size_fraction=config.logo.size_fraction if config.logo else 0.0,
        has_logo=config.has_logo,
        content_length=len(config.content.encode("utf-8")) if check_content else None,
        margin=config.margin,
        transparent_background=config.transparent_background,
        finder_colors=tuple(c for c in overrides if c),
    )
