"""
draw.py — Lay the funnel bars out and draw them onto a Surface.

Bars are stacked top to bottom in input order, one slot per data point.
Blank points keep their slot empty. Each bar is centered horizontally, its
width proportional to the first step's count, and filled with a gradient
color picked from its absolute proportion.

Per bar, draw_chart() fills the rectangle first and then writes the labels
chosen by layout.plan_step_labels().
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from matplotlib.colors import LinearSegmentedColormap, to_hex

from .data import AnnotatedStep, Blank, DataPoint, annotate_data
from .layout import LabelPlan, Slot, plan_step_labels
from .metrics import TEXT_PADDING, TextMetrics, as_lines, measure_block_height
from .surface import Surface

logger = logging.getLogger(__name__)

# fraction of a row's vertical slot taken by the bar; the rest is the gap
BAR_FILL_RATIO = 0.75

GRADIENT_START = (252, 70, 107)   # low proportions
GRADIENT_END   = (63, 94, 251)    # top of the funnel

GRADIENT = LinearSegmentedColormap.from_list(
    "funnel",
    [tuple(c / 255 for c in GRADIENT_START), tuple(c / 255 for c in GRADIENT_END)],
)


@dataclass(frozen=True)
class Rect:
    x:      float
    y:      float
    width:  float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class Bar:
    index: int             # position in the full sequence, blanks included
    step:  AnnotatedStep
    rect:  Rect
    color: str


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def get_color(absolute_proportion: float, gradient_base: float) -> str:
    """
    Gradient position of a bar. gradient_base maps to the start of the
    gradient, so proportions at or below it share the start color.
    """
    position = max((absolute_proportion - gradient_base) / (1 - gradient_base), 0)
    return to_hex(GRADIENT(position))


def vertical_spacing(point_count: int, height: float) -> tuple[float, float]:
    """
    (row pitch, bar height). A quarter row is kept free below the last bar so
    that bars and gaps add up to exactly the canvas height.
    """
    spacing = height / (point_count - (1 - BAR_FILL_RATIO))
    return spacing, spacing * BAR_FILL_RATIO


def compute_bars(
    points: list,
    *,
    width: float,
    height: float,
    gradient_base: float,
) -> list[Bar]:
    """One Bar per annotated step; blanks only advance the row."""
    if not points:
        return []

    spacing, bar_height = vertical_spacing(len(points), height)
    bars: list[Bar] = []
    for index, point in enumerate(points):
        if isinstance(point, Blank):
            continue

        proportion = point.absolute_proportion
        if math.isfinite(proportion):
            bar_width = width * proportion
        else:
            logger.warning(
                "Step %r has a non-finite proportion (%s); drawing it with zero width",
                point.name, proportion,
            )
            bar_width = 0.0

        rect = Rect(
            x=(width - bar_width) / 2,
            y=index * spacing,
            width=bar_width,
            height=bar_height,
        )
        bars.append(Bar(index=index, step=point, rect=rect, color=get_color(proportion, gradient_base)))
    return bars


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------

def label_anchor_x(slot: Slot, rect: Rect) -> float:
    return {
        Slot.CENTER:      rect.center_x,
        Slot.INNER_LEFT:  rect.x + TEXT_PADDING,
        Slot.OUTER_LEFT:  rect.x - TEXT_PADDING,
        Slot.INNER_RIGHT: rect.right - TEXT_PADDING,
        Slot.OUTER_RIGHT: rect.right + TEXT_PADDING,
    }[slot]


def write_text(
    surface: Surface,
    metrics: TextMetrics,
    x: float,
    center_y: float,
    text,
    *,
    font_size: float,
    color: str,
    text_align: str,
) -> None:
    """Write one or more lines as a block vertically centered on center_y."""
    lines = as_lines(text)
    surface.text_baseline = "top"
    surface.fill_style    = color
    surface.text_align    = text_align
    metrics.set_font(font_size)

    line_height = font_size + TEXT_PADDING
    top = center_y - measure_block_height(len(lines), font_size) / 2
    for i, line in enumerate(lines):
        surface.fill_text(line, x, top + i * line_height)


def draw_labels(surface: Surface, metrics: TextMetrics, rect: Rect, plan: LabelPlan) -> None:
    for slot, label in plan.slots():
        write_text(
            surface, metrics,
            label_anchor_x(slot, rect), rect.center_y,
            label.lines,
            font_size=label.font_size,
            color=slot.color,
            text_align=slot.text_align,
        )


def draw_chart(
    surface: Surface,
    data: list[DataPoint],
    *,
    width: float,
    height: float,
    gradient_base: float,
) -> None:
    """
    Draw the whole funnel. Each bar is filled before its labels are written;
    the surface's font, fill and alignment state is left as the last label
    set it.
    """
    metrics = TextMetrics(surface)
    bars = compute_bars(annotate_data(data), width=width, height=height, gradient_base=gradient_base)

    for bar in bars:
        surface.fill_style = bar.color
        surface.fill_rect(bar.rect.x, bar.rect.y, bar.rect.width, bar.rect.height)

        plan = plan_step_labels(
            metrics, bar.step,
            bar_width=bar.rect.width,
            bar_height=bar.rect.height,
            chart_width=width,
        )
        draw_labels(surface, metrics, bar.rect, plan)

    logger.debug("Drew %d bars from %d data points", len(bars), len(data))
