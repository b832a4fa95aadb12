"""
render_funnel.py — Funnel chart (ordered steps with drop-off) to SVG / PNG / PDF.

Input fields:
    --data  : path to a .json, .csv or .xlsx file   (or)
    --json  : chart JSON given inline

Bars keep the input order (top of funnel first); "blank" rows leave a gap.
Widths, height and gradient base default to FUNNEL_WIDTH, FUNNEL_HEIGHT and
FUNNEL_GRADIENT_BASE when set, else 1200 x 600 and 0.

Usage:
    render-funnel --data funnel.json --output funnel.svg
    render-funnel --json '[{"name": "visited", "count": 100}]' --output funnel.png --width 800
"""

from __future__ import annotations

import argparse
import os
import sys

from .config import resolve_gradient_base, resolve_height, resolve_width
from .draw import draw_chart
from .parse_data import FunnelDataError, load_file, parse_data, parse_options, validate_data
from .surface import EXPORT_FORMATS, MatplotlibSurface


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render a funnel chart.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--data", help="Path to chart data (.json, .csv, .xlsx)")
    source.add_argument("--json", help="Chart data as a JSON string")
    parser.add_argument("--output",        required=True)
    parser.add_argument("--width",         type=int,   default=resolve_width())
    parser.add_argument("--height",        type=int,   default=resolve_height())
    parser.add_argument("--gradient-base", type=float, default=resolve_gradient_base())
    parser.add_argument("--format",        choices=EXPORT_FORMATS,
                        help="Output format (default: taken from --output suffix)")
    return parser


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)

    fmt = args.format or os.path.splitext(args.output)[-1].lstrip(".").lower()
    if fmt not in EXPORT_FORMATS:
        print(f"[render_funnel] ERROR: cannot infer format from '{args.output}'. "
              f"Use --format {'|'.join(EXPORT_FORMATS)}.", file=sys.stderr)
        sys.exit(1)

    try:
        points  = load_file(args.data) if args.data else parse_data(args.json)
        validate_data(points)
        options = parse_options(args.width, args.height, args.gradient_base)
    except FunnelDataError as exc:
        print(f"[render_funnel] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    except OSError as exc:
        print(f"[render_funnel] ERROR: cannot read {args.data}: {exc}", file=sys.stderr)
        sys.exit(1)

    if not points:
        print("[render_funnel] WARNING: no data points, writing an empty chart.")

    with MatplotlibSurface(options.width, options.height) as surface:
        draw_chart(
            surface, points,
            width=options.width,
            height=options.height,
            gradient_base=options.gradient_base,
        )
        output_dir = os.path.dirname(args.output)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        surface.save(args.output, fmt)

    print(f"[render_funnel] saved: {args.output}")


if __name__ == "__main__":
    main()
