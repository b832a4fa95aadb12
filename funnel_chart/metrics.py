"""
metrics.py — Text measurement in chart fonts.

Widths come from the surface the chart is drawn on, so layout decisions use
the same metrics as the final rendering.
"""

from __future__ import annotations

from typing import Sequence, Union

from .surface import Font, Surface

# Gap between consecutive lines of a multi-line label, and between a label
# and the bar edge it is anchored to.
TEXT_PADDING = 4

Text = Union[str, Sequence[str]]


def as_lines(text: Text) -> list[str]:
    return [text] if isinstance(text, str) else list(text)


def measure_block_height(line_count: int, font_size: float, line_spacing: float = TEXT_PADDING) -> float:
    return line_count * font_size + (line_count - 1) * line_spacing


class TextMetrics:
    """
    Measures text on a surface. The font is set before every measurement,
    using the exact declaration the chart draws with, so widths measured here
    are the widths that end up on the surface.
    """

    def __init__(self, surface: Surface):
        self.surface = surface

    def set_font(self, font_size: float) -> None:
        self.surface.font = Font(font_size)

    def measure_width(self, text: Text, font_size: float) -> float:
        """Width of a line, or of the widest line of a block (0 for no lines)."""
        self.set_font(font_size)
        return max((self.surface.measure_text(line) for line in as_lines(text)), default=0.0)

    def measure_block_height(self, line_count: int, font_size: float, line_spacing: float = TEXT_PADDING) -> float:
        return measure_block_height(line_count, font_size, line_spacing)
