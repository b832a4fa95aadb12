"""
parse_data.py — Load, parse and validate funnel chart data.

Chart data is an ordered JSON array of steps and blank spacer rows:

    [
        {"name": "did a thing", "count": 100},
        {"name": "did another thing", "count": 80},
        "blank",
        {"name": "did something good", "count": 60}
    ]

CSV and Excel (.xlsx) files are accepted too: one row per data point with a
`name` and a `count` column. A row named "blank" with an empty count is a
blank.

    name,count
    did a thing,100
    did another thing,80
    blank,
    did something good,60

Every problem is reported as a FunnelDataError whose message names the
offending index, e.g. "step count at index 3 is greater than the previous
step count".

Usage:
    python -m funnel_chart.parse_data --input funnel.csv
"""

from __future__ import annotations

import argparse
import json
import math
import os
import sys
import zipfile
from dataclasses import dataclass
from numbers import Real

import pandas as pd

from .data import BLANK, Blank, DataPoint, Step

BLANK_MARKER    = "blank"
FILE_EXTENSIONS = {".json", ".csv", ".xlsx"}


class FunnelDataError(ValueError):
    def __init__(self, message: str, index: int | None = None):
        super().__init__(message)
        self.index = index


@dataclass(frozen=True)
class ChartOptions:
    width:         int
    height:        int
    gradient_base: float


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def _reject_constant(name: str):
    # JSON has no NaN/Infinity, even though Python's json module accepts them
    raise ValueError(f"invalid constant {name}")


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def parse_data(raw_json: str) -> list[DataPoint]:
    """Check the shape of raw chart JSON and turn it into data points."""
    try:
        result = json.loads(raw_json, parse_constant=_reject_constant)
    except ValueError as exc:
        raise FunnelDataError("invalid JSON") from exc

    if not isinstance(result, list):
        raise FunnelDataError("not an array")

    points: list[DataPoint] = []
    for i, point in enumerate(result):
        if point == BLANK_MARKER:
            points.append(BLANK)
            continue
        if point is None:
            raise FunnelDataError(f"null at index {i}", i)
        if not isinstance(point, dict):
            raise FunnelDataError(f'not "blank" or an object at index {i}', i)
        if "name" not in point:
            raise FunnelDataError(f"step name missing at index {i}", i)
        if not isinstance(point["name"], str):
            raise FunnelDataError(f"step name not a string at index {i}", i)
        if "count" not in point:
            raise FunnelDataError(f"step count missing at index {i}", i)
        if not _is_number(point["count"]):
            raise FunnelDataError(f"step count not a number at index {i}", i)
        points.append(Step(name=point["name"], count=point["count"]))

    return points


def validate_data(data: list[DataPoint]) -> None:
    """Steps must be named, non-negative and never grow down the funnel."""
    last_count = None
    for i, point in enumerate(data):
        if isinstance(point, Blank):
            continue
        if not point.name:
            raise FunnelDataError(f"step name is empty at index {i}", i)
        if point.count < 0:
            raise FunnelDataError(f"step count at index {i} is negative", i)
        if last_count is not None and point.count > last_count:
            raise FunnelDataError(
                f"step count at index {i} is greater than the previous step count", i
            )
        last_count = point.count


def dump_data(data: list[DataPoint]) -> str:
    """Render data points as the indented JSON text users edit."""
    rows = [json.dumps(point.to_json(), ensure_ascii=False) for point in data]
    if not rows:
        return "[]"
    return "[\n    " + ",\n    ".join(rows) + "\n]"


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def _read_csv(path: str) -> pd.DataFrame:
    # Try utf-8 first, fall back to latin-1 for accented step names
    try:
        return pd.read_csv(path, encoding="utf-8", dtype={"name": str}, keep_default_na=False)
    except UnicodeDecodeError:
        return pd.read_csv(path, encoding="latin-1", dtype={"name": str}, keep_default_na=False)


def _load_table(path: str) -> pd.DataFrame:
    ext = os.path.splitext(path)[-1].lower()
    try:
        if ext == ".csv":
            df = _read_csv(path)
        else:
            df = pd.read_excel(path, engine="openpyxl")
    except (ValueError, KeyError, zipfile.BadZipFile) as exc:
        # empty or malformed CSV: ValueError; corrupt .xlsx: BadZipFile or KeyError
        raise FunnelDataError(f"could not read {os.path.basename(path)}: {exc}") from exc

    # Match headers loosely: " Name " is the name column
    df.columns = [str(c).strip().lower() for c in df.columns]
    for col in ("name", "count"):
        if col not in df.columns:
            raise FunnelDataError(f"column '{col}' missing")
    return df


def _is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def rows_to_points(df: pd.DataFrame) -> list[DataPoint]:
    points: list[DataPoint] = []
    counts = pd.to_numeric(df["count"], errors="coerce")

    for i, (name, raw_count, count) in enumerate(zip(df["name"], df["count"], counts)):
        name = "" if _is_empty(name) else str(name).strip()
        if name.lower() == BLANK_MARKER and _is_empty(raw_count):
            points.append(BLANK)
            continue
        if _is_empty(raw_count):
            raise FunnelDataError(f"step count missing at index {i}", i)
        if pd.isna(count):
            raise FunnelDataError(f"step count not a number at index {i}", i)
        count = float(count)
        points.append(Step(name=name, count=int(count) if count.is_integer() else count))

    return points


def load_file(path: str) -> list[DataPoint]:
    ext = os.path.splitext(path)[-1].lower()
    if ext not in FILE_EXTENSIONS:
        raise FunnelDataError(
            f"Unsupported file type: {ext}. Expected {', '.join(sorted(FILE_EXTENSIONS))}"
        )
    if ext == ".json":
        try:
            with open(path, encoding="utf-8") as f:
                raw_json = f.read()
        except UnicodeDecodeError as exc:
            raise FunnelDataError(f"could not read {os.path.basename(path)}: {exc}") from exc
        return parse_data(raw_json)
    return rows_to_points(_load_table(path))


# ---------------------------------------------------------------------------
# Chart options
# ---------------------------------------------------------------------------

def parse_options(width, height, gradient_base) -> ChartOptions:
    try:
        width = int(width)
        height = int(height)
        gradient_base = float(gradient_base)
    except (TypeError, ValueError) as exc:
        raise FunnelDataError("width, height and gradient base must be numbers") from exc

    if width < 1:
        raise FunnelDataError("width must be at least 1")
    if height < 1:
        raise FunnelDataError("height must be at least 1")
    if not 0 <= gradient_base < 1:
        raise FunnelDataError("gradient base must be at least 0 and less than 1")
    return ChartOptions(width=width, height=height, gradient_base=gradient_base)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(
        description="Parse and validate funnel chart data, print it as chart JSON."
    )
    parser.add_argument("--input", required=True, help="Path to a .json, .csv or .xlsx file")
    args = parser.parse_args()

    print(f"[parse_data] Loading: {args.input}", file=sys.stderr)
    try:
        points = load_file(args.input)
        validate_data(points)
    except FunnelDataError as exc:
        sys.exit(f"[parse_data] ERROR: {exc}")

    steps = sum(1 for point in points if not isinstance(point, Blank))
    print(f"[parse_data] {steps} steps, {len(points) - steps} blanks", file=sys.stderr)
    print(dump_data(points))


if __name__ == "__main__":
    main()
