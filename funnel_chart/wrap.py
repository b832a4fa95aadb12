"""
wrap.py — Greedy word wrap against a measured pixel width.
"""

from __future__ import annotations

from dataclasses import dataclass

from .metrics import TextMetrics


@dataclass(frozen=True)
class WrapResult:
    lines:        list[str]
    has_overflow: bool      # some single word is wider than the wrap width


def wrap_text(metrics: TextMetrics, text: str, font_size: float, max_width: float) -> WrapResult:
    """
    Greedy word wrap on single spaces. Words are never split, so a word wider
    than max_width gets a line of its own and flags the result as overflowing.
    """
    lines: list[str] = []
    current_line: str | None = None
    has_overflow = False

    for word in text.split(" "):
        candidate = word if current_line is None else f"{current_line} {word}"
        if not metrics.measure_width(candidate, font_size) > max_width:
            current_line = candidate
        elif current_line is None:
            # the word alone is already too wide
            has_overflow = True
            lines.append(word)
        else:
            has_overflow = has_overflow or metrics.measure_width(word, font_size) > max_width
            lines.append(current_line)
            current_line = word

    if current_line is not None:
        lines.append(current_line)

    return WrapResult(lines=lines, has_overflow=has_overflow)


def wrap_lines(metrics: TextMetrics, texts: list[str], font_size: float, max_width: float) -> WrapResult:
    """Wrap each text on its own and stack the results."""
    lines: list[str] = []
    has_overflow = False
    for text in texts:
        wrapped = wrap_text(metrics, text, font_size, max_width)
        lines.extend(wrapped.lines)
        has_overflow = has_overflow or wrapped.has_overflow
    return WrapResult(lines=lines, has_overflow=has_overflow)
