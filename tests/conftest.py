"""
Shared fixtures for funnel chart tests.

Layout tests use a RecordingSurface with char_width=0.5, so text measures
exactly half its font size per character: 7px per character at the 14px
label size and 8px per character at the 16px count size.
"""

import pytest

from funnel_chart.data import BLANK, Step
from funnel_chart.metrics import TextMetrics
from funnel_chart.surface import RecordingSurface


@pytest.fixture
def recording_surface():
    return RecordingSurface(1000, 400, char_width=0.5)


@pytest.fixture
def metrics(recording_surface):
    return TextMetrics(recording_surface)


@pytest.fixture
def sample_data():
    return [
        Step("did a thing", 100),
        Step("did another thing", 80),
        BLANK,
        Step("did something good", 60),
    ]


@pytest.fixture
def sample_json():
    return """[
        {"name": "did a thing", "count": 100},
        {"name": "did another thing", "count": 80},
        "blank",
        {"name": "did something good", "count": 60}
    ]"""
