"""Unit tests for text measurement and word wrapping."""

import pytest

from funnel_chart.metrics import TextMetrics, as_lines, measure_block_height
from funnel_chart.surface import Font, RecordingSurface
from funnel_chart.wrap import wrap_lines, wrap_text

# 14px labels measure 7px per character with the shared recording surface
LABEL = 14


class TestTextMetrics:

    def test_measures_single_line(self, metrics):
        assert metrics.measure_width("did a thing", 14) == 77
        assert metrics.measure_width("100 users", 16) == 72

    def test_measures_widest_line_of_block(self, metrics):
        assert metrics.measure_width(["ab", "abcd", "abc"], 14) == 28

    def test_empty_block_is_zero_wide(self, metrics):
        assert metrics.measure_width([], 14) == 0

    def test_sets_chart_font_before_measuring(self, recording_surface, metrics):
        metrics.measure_width("x", 16)

        assert recording_surface.font == Font(16)
        assert recording_surface.font.css() == "bold 16px Helvetica, Arial, sans-serif"

    def test_measuring_does_not_draw(self, recording_surface, metrics):
        metrics.measure_width("did a thing", 14)

        assert recording_surface.operations == []

    @pytest.mark.parametrize("lines, size, spacing, expected", [
        (1, 16, 4, 16),
        (2, 14, 4, 32),
        (3, 14, 4, 50),
        (3, 10, 0, 30),
    ])
    def test_block_height(self, metrics, lines, size, spacing, expected):
        assert measure_block_height(lines, size, spacing) == expected
        assert metrics.measure_block_height(lines, size, spacing) == expected

    def test_as_lines(self):
        assert as_lines("a b") == ["a b"]
        assert as_lines(("a", "b")) == ["a", "b"]


class TestWrapText:

    def test_short_text_is_one_line(self, metrics):
        result = wrap_text(metrics, "did a thing", LABEL, 77)

        assert result.lines == ["did a thing"]
        assert result.has_overflow is False

    def test_breaks_between_words(self, metrics):
        result = wrap_text(metrics, "aa bb cc", LABEL, 35)

        assert result.lines == ["aa bb", "cc"]
        assert result.has_overflow is False

    def test_long_word_after_short_one_overflows(self, metrics):
        result = wrap_text(metrics, "a verylongword b", LABEL, 50)

        assert result.lines == ["a", "verylongword", "b"]
        assert result.has_overflow is True

    def test_long_first_word_gets_own_line(self, metrics):
        result = wrap_text(metrics, "verylongword a", LABEL, 50)

        assert result.lines == ["verylongword", "a"]
        assert result.has_overflow is True

    def test_negative_width_overflows_every_word(self, metrics):
        result = wrap_text(metrics, "a b", LABEL, -8)

        assert result.lines == ["a", "b"]
        assert result.has_overflow is True

    def test_empty_text(self, metrics):
        result = wrap_text(metrics, "", LABEL, 10)

        assert result.lines == [""]
        assert result.has_overflow is False

    @pytest.mark.parametrize("text", [
        "did a thing",
        "one two three four five six",
        "a verylongword b",
        "double  spaced  words",
        "x",
    ])
    @pytest.mark.parametrize("width", [0, 20, 50, 100, 1000])
    def test_keeps_every_word_in_order(self, metrics, text, width):
        result = wrap_text(metrics, text, LABEL, width)

        assert " ".join(result.lines) == text

    @pytest.mark.parametrize("text", [
        "did a thing",
        "one two three four five six",
        "a verylongword b",
        "supercalifragilistic",
    ])
    @pytest.mark.parametrize("width", [10, 35, 50, 84, 140, 1000])
    def test_overflow_iff_some_word_is_too_wide(self, metrics, text, width):
        result = wrap_text(metrics, text, LABEL, width)

        expected = any(len(word) * 7 > width for word in text.split(" "))
        assert result.has_overflow is expected

    def test_wraps_with_surface_metrics(self):
        # a wider font needs more lines for the same width
        narrow = TextMetrics(RecordingSurface(100, 100, char_width=0.5))
        wide = TextMetrics(RecordingSurface(100, 100, char_width=1.0))

        assert wrap_text(narrow, "aa bb cc", LABEL, 56).lines == ["aa bb cc"]
        assert wrap_text(wide, "aa bb cc", LABEL, 56).lines == ["aa", "bb", "cc"]


class TestWrapLines:

    def test_stacks_each_text(self, metrics):
        result = wrap_lines(metrics, ["80% absolute", "80% relative"], LABEL, 1000)

        assert result.lines == ["80% absolute", "80% relative"]
        assert result.has_overflow is False

    def test_overflow_of_any_text(self, metrics):
        result = wrap_lines(metrics, ["ok", "absolute"], LABEL, 40)

        assert result.lines == ["ok", "absolute"]
        assert result.has_overflow is True
