"""qrstyle CLI: render styled QR codes, validate styles, verify renders."""

import argparse
import dataclasses
import json
import sys
from pathlib import Path

from qrstyle.config import (
    DotStyle,
    EyeColors,
    FinderStyle,
    FrameStyle,
    Frame,
    Gradient,
    GradientType,
    Logo,
    StyleConfig,
    load_style,
)
from qrstyle.errors import QRStyleError
from qrstyle.logging import audit, get_logger, setup_logging

log = get_logger("cli")


def _choices(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


def _add_style_args(p: argparse.ArgumentParser):
    """Style flags shared by ``render`` and ``validate``; each overrides ``--style``."""
    p.add_argument("--style", default=None, help="JSON style preset to start from")
    p.add_argument("-e", "--ecc", default=None, choices=["L", "M", "Q", "H"], help="Error correction level")
    p.add_argument("-s", "--size", type=int, default=None, help="Output edge length in pixels")
    p.add_argument("--margin", type=int, default=None, help="Quiet zone in modules")
    p.add_argument("--fg", default=None, help="Foreground colour (hex)")
    p.add_argument("--bg", default=None, help="Background colour (hex)")
    p.add_argument("--dot-style", default=None, choices=_choices(DotStyle), help="Data module shape")
    p.add_argument("--finder-style", default=None, choices=_choices(FinderStyle), help="Finder pattern style")
    p.add_argument("--gradient", nargs=2, metavar=("START", "END"), default=None,
                   help="Fill data modules with a gradient between two hex colours")
    p.add_argument("--gradient-type", default="linear", choices=_choices(GradientType))
    p.add_argument("--rotation", type=float, default=0.0, help="Linear gradient angle in degrees")
    p.add_argument("--eye-color", default=None, help="Colour for all three finder patterns (hex)")
    p.add_argument("--frame", default=None, choices=_choices(FrameStyle), help="Caption frame style")
    p.add_argument("--frame-text", default=None, help="Caption text below the code")
    p.add_argument("--logo", default=None, help="Logo path, URL or data URI")
    p.add_argument("--logo-size", type=float, default=None, help="Logo edge as a fraction of the code (0-1]")
    p.add_argument("--transparent", action="store_true", help="Transparent background")


def _style_from_args(args) -> StyleConfig:
    style = load_style(args.style) if args.style else StyleConfig()
    changes = {}
    for flag, field in (("ecc", "error_correction_level"), ("size", "size"), ("margin", "margin"),
                        ("fg", "foreground_color"), ("bg", "background_color"),
                        ("dot_style", "dot_style"), ("finder_style", "finder_pattern")):
        value = getattr(args, flag)
        if value is not None:
            changes[field] = value
    if args.gradient:
        changes["gradient"] = Gradient(type=args.gradient_type, color_start=args.gradient[0],
                                       color_end=args.gradient[1], rotation=args.rotation)
    if args.eye_color:
        changes["eye_colors"] = EyeColors(args.eye_color, args.eye_color, args.eye_color)
    if args.frame is not None or args.frame_text is not None:
        current = style.frame or Frame()
        frame_style = args.frame
        if frame_style is None:
            # caption alone implies a simple frame
            frame_style = FrameStyle.SIMPLE if current.style is FrameStyle.NONE else current.style
        changes["frame"] = Frame(style=frame_style,
                                 text=args.frame_text if args.frame_text is not None else current.text)
    if args.logo:
        fraction = args.logo_size if args.logo_size is not None else 0.2
        changes["logo"] = Logo(url=args.logo, size_fraction=fraction)
    elif args.logo_size is not None and style.logo is not None:
        changes["logo"] = dataclasses.replace(style.logo, size_fraction=args.logo_size)
    if args.transparent:
        changes["transparent_background"] = True
    return style.replace(**changes) if changes else style


def _print_report(report):
    print(f"Score: {report.overall_score}/100 ({report.rating})")
    for check in report.checks:
        print(f"  [{check.status.upper():4s}] {check.id:16s} {check.score:3d} | {check.message}")
        if check.suggestion and check.status != "pass":
            print(f"         -> {check.suggestion}")
    if report.contrast_ratio is not None:
        print(f"Contrast ratio: {report.contrast_ratio}:1")
    print(f"Scan distance: {report.recommended_scan_distance}")
    pr = report.print_recommendation
    print(f"Print size: min {pr.min_size_cm}cm ({pr.min_size_inches}in), "
          f"recommended {pr.recommended_size_cm}cm ({pr.recommended_size_inches}in) at {pr.dpi} DPI")


def cmd_render(args):
    """Render a styled QR code to PNG and/or SVG."""
    from qrstyle.generator import render
    from qrstyle.validator import validate_config

    style = _style_from_args(args).replace(content=args.content)
    if args.check:
        report = validate_config(style)
        _print_report(report)
        if report.failures:
            print("Refusing to render: fix the failing checks or drop --check.")
            sys.exit(1)

    result = render(args.content, style)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() == ".svg":
        output.write_text(result.vector, encoding="utf-8")
    else:
        output.write_bytes(result.raster_bytes())
    print(f"Rendered: {output} (version {result.matrix.version}, "
          f"{result.matrix.module_count}x{result.matrix.module_count} modules)")
    if args.svg:
        svg_path = Path(args.svg)
        svg_path.parent.mkdir(parents=True, exist_ok=True)
        svg_path.write_text(result.vector, encoding="utf-8")
        print(f"Rendered: {svg_path}")


def cmd_validate(args):
    """Score a style for scannability; exits 1 if any check fails."""
    from qrstyle.validator import validate_config

    style = _style_from_args(args)
    if args.content is not None:
        style = style.replace(content=args.content)
    report = validate_config(style, check_content=args.content is not None)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report)
    sys.exit(1 if report.failures else 0)


def cmd_verify(args):
    """Decode a rendered QR code image."""
    from qrstyle.verify import scan_raster

    result = scan_raster(Path(args.image).read_bytes())
    if result.success and args.expected is not None and result.decoded_data != args.expected:
        result.success = False
        result.error = f"Data mismatch: got '{result.decoded_data}', expected '{args.expected}'"
    status = "PASS" if result.success else "FAIL"
    print(f"  [{result.decoder:8s}] {status} | {result.decode_time_ms:6.1f}ms | {result.decoded_data or result.error}")
    sys.exit(0 if result.success else 1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrstyle", description="Styled QR code renderer and scannability checker")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- render ---
    p_render = subparsers.add_parser("render", help="Render a styled QR code")
    p_render.add_argument("content", help="Text or URL to encode")
    p_render.add_argument("-o", "--output", default="output/qr.png", help="Output file (.png or .svg)")
    p_render.add_argument("--svg", default=None, help="Also write the SVG document to this path")
    p_render.add_argument("--check", action="store_true", help="Validate first and refuse to render on failures")
    _add_style_args(p_render)

    # --- validate ---
    p_val = subparsers.add_parser("validate", help="Score a style for scannability")
    p_val.add_argument("content", nargs="?", default=None, help="Content to check against capacity")
    p_val.add_argument("--json", action="store_true", help="Print the report as JSON")
    _add_style_args(p_val)

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Decode a rendered QR code image")
    p_ver.add_argument("image", help="Path to QR code image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before any command runs
    level = "DEBUG" if args.verbose else "INFO"
    setup_logging(level=level, log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "render": cmd_render,
        "validate": cmd_validate,
        "verify": cmd_verify,
    }
    try:
        commands[args.command](args)
    except (QRStyleError, OSError) as e:
        audit("cli.failed", logger=log, command=args.command, error=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    audit("cli.done", logger=log, command=args.command)


if __name__ == "__main__":
    main()
