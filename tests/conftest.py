"""
Pytest configuration and fixtures
"""

import pytest

from insights.config import InsightsSettings
from insights.window import TimeWindow

from studio_fixtures import TODAY, studio_store


@pytest.fixture
def settings():
    """Settings with no database and debug off."""
    return InsightsSettings(database_url=None, debug=False, assumed_capacity=8, read_workers=4)


@pytest.fixture
def store():
    return studio_store()


@pytest.fixture
def window():
    return TimeWindow.ending_today(30, today=TODAY)
