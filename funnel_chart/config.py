"""
config.py — Chart defaults and their environment overrides.

    FUNNEL_WIDTH          chart width in pixels      (default 1200)
    FUNNEL_HEIGHT         chart height in pixels     (default 600)
    FUNNEL_GRADIENT_BASE  0 <= value < 1             (default 0)

Empty or invalid values fall back to the defaults.
"""

from __future__ import annotations

import os

DEFAULT_WIDTH         = 1200
DEFAULT_HEIGHT        = 600
# 0 <= gradient base < 1. Sets the "bottom" of the color gradient: to spread
# the gradient over proportions 0.3 to 1, use 0.3. When comparing several
# funnels, set it a little below the lowest absolute proportion among them.
DEFAULT_GRADIENT_BASE = 0.0
DEFAULT_FORMAT        = "svg"

DEFAULT_DATA_JSON = """[
    {"name": "did a thing", "count": 100},
    {"name": "did another thing", "count": 80},
    "blank",
    {"name": "did something good", "count": 60}
]"""


def resolve_width() -> int:
    raw = (os.getenv("FUNNEL_WIDTH") or "").strip()
    if not raw:
        return DEFAULT_WIDTH
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_WIDTH
    if value < 1:
        return DEFAULT_WIDTH
    return value


def resolve_height() -> int:
    raw = (os.getenv("FUNNEL_HEIGHT") or "").strip()
    if not raw:
        return DEFAULT_HEIGHT
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_HEIGHT
    if value < 1:
        return DEFAULT_HEIGHT
    return value


def resolve_gradient_base() -> float:
    raw = (os.getenv("FUNNEL_GRADIENT_BASE") or "").strip()
    if not raw:
        return DEFAULT_GRADIENT_BASE
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_GRADIENT_BASE
    if not 0 <= value < 1:
        return DEFAULT_GRADIENT_BASE
    return value
