"""
layout.py — Decide where the labels of one funnel bar go.

Every bar carries three label groups:

    step name     -> left of center   (inner-left or outer-left)
    "<n> users"   -> center of the bar
    percentages   -> right of center  (inner-right or outer-right)

              outer-left |inner-left   center   inner-right| outer-right
                         |=====================================|
                         |  did a     100 users   100% abs.    |
                         |=====================================|

Decisions are made purely from measured text widths:

1. If the count label (plus padding) is wider than the bar, nothing goes
   inside. The name goes outer-left and the count joins the percentages
   outer-right.
2. Otherwise the count is centered, and the name and the percentages are
   each wrapped twice: to the space left inside the bar beside the count,
   and to the strip outside the bar. Inside wins unless it overflows where
   outside doesn't, or it needs more than two lines where outside needs
   fewer.
3. Percentages collapse to a single "a / b" line when their stacked block
   is taller than the bar and the single line fits the chosen space.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from .data import AnnotatedStep
from .metrics import TEXT_PADDING, TextMetrics, measure_block_height
from .wrap import WrapResult, wrap_lines, wrap_text

logger = logging.getLogger(__name__)

COUNT_FONT_SIZE      = 16
LABEL_FONT_SIZE      = 14
# Minimum horizontal gap between the centered count and a side label.
BETWEEN_TEXT_PADDING = 24
STATS_SEPARATOR      = " / "

LIGHT_TEXT = "white"   # on the colored bar
DARK_TEXT  = "black"   # on the page background


class Slot(str, Enum):
    CENTER      = "center"
    INNER_LEFT  = "inner_left"
    OUTER_LEFT  = "outer_left"
    INNER_RIGHT = "inner_right"
    OUTER_RIGHT = "outer_right"

    @property
    def inside(self) -> bool:
        return self in (Slot.CENTER, Slot.INNER_LEFT, Slot.INNER_RIGHT)

    @property
    def color(self) -> str:
        return LIGHT_TEXT if self.inside else DARK_TEXT

    @property
    def text_align(self) -> str:
        # text hugs the bar edge (or the count) it sits next to
        return {
            Slot.CENTER:      "center",
            Slot.INNER_LEFT:  "left",
            Slot.OUTER_LEFT:  "right",
            Slot.INNER_RIGHT: "right",
            Slot.OUTER_RIGHT: "left",
        }[self]


@dataclass(frozen=True)
class Label:
    lines:     tuple[str, ...]
    font_size: float


@dataclass
class LabelPlan:
    center:      Optional[Label] = None
    inner_left:  Optional[Label] = None
    outer_left:  Optional[Label] = None
    inner_right: Optional[Label] = None
    outer_right: Optional[Label] = None

    def place(self, slot: Slot, label: Label) -> None:
        setattr(self, slot.value, label)

    def slots(self) -> list[tuple[Slot, Label]]:
        """Populated slots, in drawing order."""
        return [
            (slot, getattr(self, slot.value))
            for slot in Slot
            if getattr(self, slot.value) is not None
        ]


@dataclass(frozen=True)
class Spacing:
    inside:  float   # beside the centered count, inside the bar
    outside: float   # padding strip between the bar and the canvas edge


# ---------------------------------------------------------------------------
# Label text
# ---------------------------------------------------------------------------

def format_number(value: float) -> str:
    """
    Number text as a browser would print it: integral values without a
    trailing .0, plain decimals down to 1e-6, exponent form beyond 1e21.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    # shortest round-trip digits d1..dk with value = 0.d1..dk * 10**n
    sign, digit_tuple, exponent = Decimal(repr(float(value))).normalize().as_tuple()
    digits = "".join(map(str, digit_tuple))
    k = len(digits)
    n = exponent + k
    prefix = "-" if sign else ""

    if k <= n <= 21:
        return prefix + digits + "0" * (n - k)
    if 0 < n <= 21:
        return prefix + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return prefix + "0." + "0" * -n + digits
    mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
    return f"{prefix}{mantissa}e{n - 1:+d}"


def format_percentage(proportion: float) -> str:
    if not math.isfinite(proportion):
        return format_number(proportion)
    # round half up, not to even
    return str(math.floor(proportion * 100 + 0.5))


def count_label(step: AnnotatedStep) -> str:
    return f"{format_number(step.count)} users"


def stats_labels(step: AnnotatedStep) -> list[str]:
    labels = [f"{format_percentage(step.absolute_proportion)}% absolute"]
    if step.relative_proportion is not None:
        labels.append(f"{format_percentage(step.relative_proportion)}% relative")
    return labels


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------

def prefers_outside(inside: WrapResult, outside: WrapResult) -> bool:
    """
    Inside the bar is the default. Move out when the text can't fit inside
    but can outside, or when it stacks too high inside and outside is shorter.
    """
    if inside.has_overflow and not outside.has_overflow:
        return True
    return len(inside.lines) > 2 and len(outside.lines) < len(inside.lines)


def _stats_label(
    metrics: TextMetrics,
    stats: list[str],
    lines: list[str],
    space: float,
    bar_height: float,
) -> Label:
    block_height = measure_block_height(len(lines), LABEL_FONT_SIZE)
    single_line  = STATS_SEPARATOR.join(stats)
    # prefer multiline; i.e. only use single line if multiline is too tall
    # and single line is not too wide
    if (
        block_height + 2 * TEXT_PADDING > bar_height
        and metrics.measure_width(single_line, LABEL_FONT_SIZE) <= space
    ):
        return Label((single_line,), LABEL_FONT_SIZE)
    return Label(tuple(lines), LABEL_FONT_SIZE)


def _place_step_name(metrics: TextMetrics, step_name: str, spacing: Spacing) -> tuple[Slot, Label]:
    inside  = wrap_text(metrics, step_name, LABEL_FONT_SIZE, spacing.inside)
    outside = wrap_text(metrics, step_name, LABEL_FONT_SIZE, spacing.outside)
    if prefers_outside(inside, outside):
        return Slot.OUTER_LEFT, Label(tuple(outside.lines), LABEL_FONT_SIZE)
    return Slot.INNER_LEFT, Label(tuple(inside.lines), LABEL_FONT_SIZE)


def _place_stats(
    metrics: TextMetrics,
    stats: list[str],
    spacing: Spacing,
    bar_height: float,
) -> tuple[Slot, Label]:
    inside  = wrap_lines(metrics, stats, LABEL_FONT_SIZE, spacing.inside)
    outside = wrap_lines(metrics, stats, LABEL_FONT_SIZE, spacing.outside)
    if prefers_outside(inside, outside):
        return Slot.OUTER_RIGHT, _stats_label(metrics, stats, outside.lines, spacing.outside, bar_height)
    return Slot.INNER_RIGHT, _stats_label(metrics, stats, inside.lines, spacing.inside, bar_height)


def plan_labels(
    metrics: TextMetrics,
    *,
    bar_width: float,
    bar_height: float,
    chart_width: float,
    count_text: str,
    step_name: str,
    stats: list[str],
) -> LabelPlan:
    plan = LabelPlan()
    outside_space = (chart_width - bar_width) / 2 - 2 * TEXT_PADDING
    count_width   = metrics.measure_width(count_text, COUNT_FONT_SIZE)

    if count_width + 2 * TEXT_PADDING > bar_width:
        # we can't fit the label for the number of users inside the bar,
        # so it moves out with the stats and nothing is drawn inside
        logger.debug("Bar too narrow for %r (%.1f > %.1f), labels go outside",
                     count_text, count_width + 2 * TEXT_PADDING, bar_width)
        name_lines = wrap_text(metrics, step_name, LABEL_FONT_SIZE, outside_space).lines
        plan.place(Slot.OUTER_LEFT, Label(tuple(name_lines), LABEL_FONT_SIZE))

        merged  = [count_text, *stats]
        wrapped = wrap_lines(metrics, merged, LABEL_FONT_SIZE, outside_space)
        plan.place(Slot.OUTER_RIGHT, _stats_label(metrics, merged, wrapped.lines, outside_space, bar_height))
        return plan

    plan.place(Slot.CENTER, Label((count_text,), COUNT_FONT_SIZE))

    spacing = Spacing(
        inside=(bar_width - count_width) / 2 - TEXT_PADDING - BETWEEN_TEXT_PADDING,
        outside=outside_space,
    )
    name_slot, name_label = _place_step_name(metrics, step_name, spacing)
    plan.place(name_slot, name_label)

    stats_slot, stats_label = _place_stats(metrics, stats, spacing, bar_height)
    plan.place(stats_slot, stats_label)

    logger.debug("Placed %r: name=%s stats=%s (inside %.1f, outside %.1f)",
                 step_name, name_slot.value, stats_slot.value, spacing.inside, spacing.outside)
    return plan


def plan_step_labels(
    metrics: TextMetrics,
    step: AnnotatedStep,
    *,
    bar_width: float,
    bar_height: float,
    chart_width: float,
) -> LabelPlan:
    return plan_labels(
        metrics,
        bar_width=bar_width,
        bar_height=bar_height,
        chart_width=chart_width,
        count_text=count_label(step),
        step_name=step.name,
        stats=stats_labels(step),
    )
