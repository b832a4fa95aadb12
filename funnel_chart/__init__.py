"""Funnel chart rendering: bars, measured label layout, and drawing surfaces."""

from .data import BLANK, AnnotatedStep, Blank, Step, annotate_data
from .draw import draw_chart
from .parse_data import FunnelDataError, load_file, parse_data, validate_data
from .surface import MatplotlibSurface, RecordingSurface

__all__ = [
    "BLANK",
    "AnnotatedStep",
    "Blank",
    "FunnelDataError",
    "MatplotlibSurface",
    "RecordingSurface",
    "Step",
    "annotate_data",
    "draw_chart",
    "load_file",
    "parse_data",
    "validate_data",
]
