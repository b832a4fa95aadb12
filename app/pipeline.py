"""
pipeline.py — Turn raw chart input into rendered chart bytes.

Sequence:
    1. parse_data / load_file   → data points   (shape check)
    2. validate_data            → data points   (names, non-negative, non-increasing)
    3. parse_options            → ChartOptions  (width, height, gradient base)
    4. draw_chart               → MatplotlibSurface
    5. surface.to_bytes(fmt)    → SVG / PNG bytes

Every run gets its own surface, so concurrent requests never share drawing
state. Nothing is written to disk.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from funnel_chart.data import Blank, DataPoint, top_of_funnel_count
from funnel_chart.draw import draw_chart
from funnel_chart.parse_data import (
    FILE_EXTENSIONS,
    FunnelDataError,
    load_file,
    parse_data,
    parse_options,
    validate_data,
)
from funnel_chart.surface import MatplotlibSurface

ALLOWED_EXTENSIONS = FILE_EXTENSIONS
DOWNLOAD_BASENAME  = "funnel"

MEDIA_TYPES = {
    "svg": "image/svg+xml",
    "png": "image/png",
}

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ChartError(RuntimeError):
    pass


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------

@dataclass
class ChartResult:
    data:       list[DataPoint]
    content:    bytes
    fmt:        str
    media_type: str

    @property
    def filename(self) -> str:
        return f"{DOWNLOAD_BASENAME}.{self.fmt}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _render(data: list[DataPoint], width, height, gradient_base, fmt: str) -> ChartResult:
    if fmt not in MEDIA_TYPES:
        raise ChartError(f"Unsupported format: {fmt}. Expected one of {', '.join(MEDIA_TYPES)}")
    try:
        options = parse_options(width, height, gradient_base)
    except FunnelDataError as exc:
        raise ChartError(str(exc)) from exc

    t0 = time.perf_counter()
    with MatplotlibSurface(options.width, options.height) as surface:
        draw_chart(
            surface, data,
            width=options.width,
            height=options.height,
            gradient_base=options.gradient_base,
        )
        content = surface.to_bytes(fmt)
    duration_ms = round((time.perf_counter() - t0) * 1000)

    logger.info(
        "Rendered %s chart | %d points | %dx%d | %dms",
        fmt, len(data), options.width, options.height, duration_ms,
    )
    return ChartResult(data=data, content=content, fmt=fmt, media_type=MEDIA_TYPES[fmt])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def check_data(raw_json: str) -> list[DataPoint]:
    """Parse and validate chart JSON. Raises ChartError with the user-facing reason."""
    try:
        data = parse_data(raw_json)
        validate_data(data)
    except FunnelDataError as exc:
        raise ChartError(str(exc)) from exc
    return data


def summarize(data: list[DataPoint]) -> dict:
    steps = [point for point in data if not isinstance(point, Blank)]
    return {
        "steps":     len(steps),
        "blanks":    len(data) - len(steps),
        "top_count": top_of_funnel_count(data),
    }


def run_chart(raw_json: str, *, width, height, gradient_base, fmt: str = "svg") -> ChartResult:
    return _render(check_data(raw_json), width, height, gradient_base, fmt)


def run_chart_file(path: Path, *, width, height, gradient_base, fmt: str = "svg") -> ChartResult:
    if path.suffix.lower() not in ALLOWED_EXTENSIONS:
        raise ChartError(
            f"Unsupported file type. Upload {', '.join(sorted(ALLOWED_EXTENSIONS))}."
        )
    try:
        data = load_file(str(path))
        validate_data(data)
    except FunnelDataError as exc:
        raise ChartError(str(exc)) from exc
    return _render(data, width, height, gradient_base, fmt)
