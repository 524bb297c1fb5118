"""
Tests for lookback parsing and the window split
"""

from datetime import date, datetime, time

import pytest

from insights.snapshot import Collections
from insights.window import TimeWindow, apply_window, clamp_days

from studio_fixtures import TODAY, make_enrollment, make_mark, make_payment, make_session


class TestClampDays:
    @pytest.mark.parametrize("raw,expected", [
        (-5, 1),
        (10000, 365),
        ("abc", 30),
        (45, 45),
        (None, 30),
        ("", 30),
        ("90", 90),
        ("14days", 14),
        (0, 1),
        (365, 365),
    ])
    def test_clamps_and_defaults(self, raw, expected):
        assert clamp_days(raw) == expected


class TestTimeWindow:
    def test_ending_today_spans_days_back(self):
        window = TimeWindow.ending_today(30, today=TODAY)
        assert window.start == date(2024, 5, 31)
        assert window.end == TODAY
        assert window.days == 30

    def test_bounds_are_inclusive(self):
        window = TimeWindow.ending_today(7, today=TODAY)
        assert window.contains(window.start)
        assert window.contains(window.end)
        assert not window.contains(date(2024, 6, 22))
        assert not window.contains(date(2024, 7, 1))
        assert not window.contains(None)

    def test_as_dict_uses_iso_dates(self):
        window = TimeWindow.ending_today(30, today=TODAY)
        assert window.as_dict() == {"start": "2024-05-31", "end": "2024-06-30", "days": 30}


class TestApplyWindow:
    def test_each_collection_filters_on_its_own_date(self, window):
        old = date(2024, 1, 15)
        collections = Collections(
            sessions=[make_session("S1"), make_session("S2", day=old), make_session("S3", day=None)],
            enrollments=[
                make_enrollment("E1", "S1"),
                make_enrollment("E2", "S2", created_at=datetime.combine(old, time(9, 0))),
            ],
            attendance=[make_mark("A1", "S1"), make_mark("A2", "S2", day=old)],
            payments=[make_payment("P1"), make_payment("P2", paid_date=None), make_payment("P3", paid_date=old)],
        )

        views = apply_window(collections, window)

        assert [s.id for s in views.windowed.sessions] == ["S1"]
        assert [e.id for e in views.windowed.enrollments] == ["E1"]
        assert [a.id for a in views.windowed.attendance] == ["A1"]
        assert [p.id for p in views.windowed.payments] == ["P1"]

    def test_all_view_is_untouched(self, window):
        collections = Collections(sessions=[make_session("S1"), make_session("S2", day=date(2020, 1, 1))])
        views = apply_window(collections, window)
        assert views.all is collections
        assert len(views.all.sessions) == 2
        assert views.window == window
