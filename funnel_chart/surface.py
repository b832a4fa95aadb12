"""
surface.py — Drawing surfaces the chart is rendered onto.

The chart code only ever talks to a Surface through this small, stateful
interface (modelled on a 2D canvas context):

    surface.fill_style    = "#3f5efb"
    surface.font          = Font(14)
    surface.text_align    = "left" | "center" | "right" | "start" | "end"
    surface.text_baseline = "top" | "middle" | "bottom" | "alphabetic"
    surface.fill_rect(x, y, width, height)
    surface.measure_text(text)   -> width in pixels under the current font
    surface.fill_text(text, x, y)

Coordinates are pixels with the origin at the top-left corner.

Two implementations:
    MatplotlibSurface : real font metrics, exports PNG / SVG / PDF
    RecordingSurface  : records operations, fixed-advance metrics (tests, dry runs)
"""

from __future__ import annotations

import functools
import io
import logging
from dataclasses import dataclass
from pathlib import Path

from matplotlib import font_manager
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.font_manager import FontProperties
from matplotlib.patches import Rectangle

logger = logging.getLogger(__name__)

FONT_FAMILY = ("Helvetica", "Arial", "sans-serif")
FONT_WEIGHT = "bold"

# One point is one pixel at 72 dpi, so font sizes can be given in pixels.
DPI = 72

EXPORT_FORMATS = ("png", "svg", "pdf")

_HORIZONTAL_ALIGN = {
    "left":   "left",
    "start":  "left",
    "center": "center",
    "right":  "right",
    "end":    "right",
}

_VERTICAL_ALIGN = {
    "top":        "top",
    "middle":     "center",
    "bottom":     "bottom",
    "alphabetic": "baseline",
}

_GENERIC_FAMILIES = {"serif", "sans-serif", "sans", "monospace", "cursive", "fantasy"}


class SurfaceClosedError(RuntimeError):
    pass


@dataclass(frozen=True)
class Font:
    size:   float
    weight: str             = FONT_WEIGHT
    family: tuple[str, ...] = FONT_FAMILY

    def css(self) -> str:
        return f"{self.weight} {self.size:g}px {', '.join(self.family)}"


class Surface:
    """Base class holding the mutable drawing state shared by all surfaces."""

    def __init__(self, width: float, height: float):
        self.width         = width
        self.height        = height
        self.fill_style    = "black"
        self.font          = Font(10)
        self.text_align    = "left"
        self.text_baseline = "top"

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        raise NotImplementedError

    def measure_text(self, text: str) -> float:
        raise NotImplementedError

    def fill_text(self, text: str, x: float, y: float) -> None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Recording surface
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DrawOp:
    kind:          str     # "fill_rect" | "fill_text"
    args:          tuple
    fill_style:    str
    font:          Font
    text_align:    str
    text_baseline: str


class RecordingSurface(Surface):
    """
    Offscreen surface that keeps every draw call, together with the state it
    was issued under. Text is measured as len(text) * font size * char_width,
    which makes layouts predictable.
    """

    def __init__(self, width: float, height: float, char_width: float = 0.6):
        super().__init__(width, height)
        self.char_width = char_width
        self.operations: list[DrawOp] = []

    def _record(self, kind: str, *args) -> None:
        self.operations.append(DrawOp(
            kind=kind,
            args=args,
            fill_style=self.fill_style,
            font=self.font,
            text_align=self.text_align,
            text_baseline=self.text_baseline,
        ))

    def fill_rect(self, x, y, width, height) -> None:
        self._record("fill_rect", x, y, width, height)

    def measure_text(self, text: str) -> float:
        return len(text) * self.font.size * self.char_width

    def fill_text(self, text, x, y) -> None:
        self._record("fill_text", text, x, y)

    def rects(self) -> list[DrawOp]:
        return [op for op in self.operations if op.kind == "fill_rect"]

    def texts(self) -> list[DrawOp]:
        return [op for op in self.operations if op.kind == "fill_text"]


# ---------------------------------------------------------------------------
# Matplotlib surface
# ---------------------------------------------------------------------------

@functools.lru_cache(maxsize=None)
def installed_families(requested: tuple[str, ...]) -> tuple[str, ...]:
    """
    Keep only the requested families matplotlib can actually find, so missing
    ones (Helvetica on most Linux boxes) don't trigger a findfont warning on
    every measurement.
    """
    installed = {entry.name for entry in font_manager.fontManager.ttflist}
    resolved = tuple(
        family for family in requested
        if family in installed or family in _GENERIC_FAMILIES
    )
    if resolved != requested:
        logger.debug("Font families %s resolved to %s", requested, resolved)
    return resolved or ("sans-serif",)


class MatplotlibSurface(Surface):
    """
    A surface backed by a matplotlib Figure on an Agg canvas.

    One axes covers the whole figure, with data limits equal to the pixel
    size and the y axis flipped, so data coordinates are surface pixels.
    Measurement goes through the Agg renderer with the same FontProperties
    that fill_text later draws with.
    """

    def __init__(self, width: int, height: int, background: str = "white"):
        super().__init__(width, height)
        self.background = background
        self.figure: Figure | None = Figure(
            figsize=(width / DPI, height / DPI), dpi=DPI, facecolor=background,
        )
        FigureCanvasAgg(self.figure)
        self.ax = self.figure.add_axes((0, 0, 1, 1))
        self.ax.set_xlim(0, width)
        self.ax.set_ylim(height, 0)
        self.ax.axis("off")
        self._renderer = None

    def __enter__(self) -> "MatplotlibSurface":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _ensure_open(self) -> Figure:
        if self.figure is None:
            raise SurfaceClosedError("Surface has been closed.")
        return self.figure

    def _ensure_renderer(self):
        figure = self._ensure_open()
        if self._renderer is None:
            self._renderer = figure.canvas.get_renderer()
        return self._renderer

    def _font_properties(self) -> FontProperties:
        return FontProperties(
            family=list(installed_families(self.font.family)),
            weight=self.font.weight,
            size=self.font.size,
        )

    def fill_rect(self, x, y, width, height) -> None:
        self._ensure_open()
        self.ax.add_patch(Rectangle(
            (x, y), width, height,
            facecolor=self.fill_style, edgecolor="none", linewidth=0,
        ))

    def measure_text(self, text: str) -> float:
        renderer = self._ensure_renderer()
        width, _, _ = renderer.get_text_width_height_descent(
            text, self._font_properties(), ismath=False,
        )
        return float(width)

    def fill_text(self, text, x, y) -> None:
        self._ensure_open()
        self.ax.text(
            x, y, text,
            ha=_HORIZONTAL_ALIGN[self.text_align],
            va=_VERTICAL_ALIGN[self.text_baseline],
            color=self.fill_style,
            fontproperties=self._font_properties(),
            parse_math=False,
        )

    def save(self, target, fmt: str | None = None) -> None:
        figure = self._ensure_open()
        if fmt is None and isinstance(target, (str, Path)):
            fmt = Path(target).suffix.lstrip(".").lower() or None
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}. Expected one of {EXPORT_FORMATS}")
        figure.savefig(target, format=fmt, facecolor=self.background)

    def to_bytes(self, fmt: str) -> bytes:
        buffer = io.BytesIO()
        self.save(buffer, fmt)
        return buffer.getvalue()

    def close(self) -> None:
        self.figure    = None
        self._renderer = None
