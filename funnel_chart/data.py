"""
data.py — Funnel data points and proportion annotation.

A chart is an ordered sequence of data points. Each point is either a Step
(a named funnel stage with a user count) or a Blank (a spacer row that takes
a vertical slot but draws nothing).

    [Step("did a thing", 100), Step("did another thing", 80), BLANK, ...]

annotate_data() derives, for every Step, its proportion of the first step
(absolute) and of the nearest preceding step (relative). Blanks pass through
unchanged and never move the running counts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np


# ---------------------------------------------------------------------------
# Data points
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Step:
    name:  str
    count: float

    def to_json(self) -> dict:
        return {"name": self.name, "count": self.count}


@dataclass(frozen=True)
class Blank:
    def to_json(self) -> str:
        return "blank"


BLANK = Blank()

DataPoint = Union[Step, Blank]


@dataclass(frozen=True)
class AnnotatedStep:
    name:                str
    count:               float
    absolute_proportion: float
    relative_proportion: Optional[float]   # None for the first step

    def to_json(self) -> dict:
        return {
            "name":                self.name,
            "count":               self.count,
            "absolute_proportion": self.absolute_proportion,
            "relative_proportion": self.relative_proportion,
        }


AnnotatedPoint = Union[AnnotatedStep, Blank]


# ---------------------------------------------------------------------------
# Annotation
# ---------------------------------------------------------------------------

def divide(numerator: float, denominator: float) -> float:
    """
    IEEE division: 0/0 is NaN and x/0 is ±Infinity instead of raising, so a
    zero first step shows up as an odd label rather than a crash.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


def annotate_data(data: list[DataPoint]) -> list[AnnotatedPoint]:
    first_step_count:     float | None = None
    preceding_step_count: float | None = None
    annotated: list[AnnotatedPoint] = []

    for point in data:
        if isinstance(point, Blank):
            annotated.append(point)
            continue

        if first_step_count is None:
            first_step_count = point.count

        relative = (
            None
            if preceding_step_count is None
            else divide(point.count, preceding_step_count)
        )
        annotated.append(AnnotatedStep(
            name=point.name,
            count=point.count,
            absolute_proportion=divide(point.count, first_step_count),
            relative_proportion=relative,
        ))
        preceding_step_count = point.count

    return annotated


def top_of_funnel_count(data: list[DataPoint]) -> float:
    """Count of the first step, or 0 when the sequence has no steps."""
    for point in data:
        if isinstance(point, Step):
            return point.count
    return 0
