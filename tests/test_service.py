"""
End-to-end tests for the insights service over the in-memory store

Checks the full report for an admin and a trainer, the all-time versus
windowed split, degraded reads and determinism.
"""

import json
from datetime import date

import pytest

from database import TrainerIdentity
from insights.config import InsightsSettings
from insights.errors import AccessDeniedError, ConfigurationError, NotAuthenticatedError
from insights.scope import Caller
from insights.service import InsightsService, create_store

from studio_fixtures import ROLES, TODAY, make_payment, make_session, studio_store


def _report(store, settings, user_id, days=30, role=None):
    return InsightsService(store, settings).get_insights(Caller(user_id=user_id, role=role), days, today=TODAY)


class TestAdminReport:
    @pytest.fixture
    def report(self, store, settings):
        return _report(store, settings, "U0")

    def test_top_level_shape(self, report):
        assert set(report) == {"operationalTrends", "cancellationHotspots", "insights", "summary"}
        assert set(report["operationalTrends"]) == {
            "attendance", "enrollment", "revenue", "classUtilization", "trainerPerformance"
        }
        assert set(report["cancellationHotspots"]) == {
            "byTimeOfDay", "byDayOfWeek", "byClassType", "byTrainer", "byClient", "averageHoursBeforeClass"
        }

    def test_summary(self, report):
        assert report["summary"] == {
            "totalClasses": 4,
            "cancelledClasses": 1,
            "totalEnrollments": 4,
            "cancelledEnrollments": 1,
            "overallCancellationRate": pytest.approx(25.0),
            "dateRange": {"start": "2024-05-31", "end": "2024-06-30", "days": 30},
        }

    def test_trends(self, report):
        trends = report["operationalTrends"]
        assert trends["attendance"]["averageRate"] == pytest.approx(200 / 3)
        assert trends["enrollment"] == {
            "daily": [{"date": "2024-06-30", "enrollments": 4}],
            "total": 4,
            "active": 3,
            "cancelled": 1,
        }
        assert trends["revenue"] == {
            "daily": [{"date": "2024-06-30", "revenue": pytest.approx(100.0)}],
            "total": pytest.approx(100.0),
            "averageDaily": pytest.approx(100.0),
        }
        assert [row["hour"] for row in trends["classUtilization"]["byHour"]] == ["9:00", "12:00", "18:00"]
        assert trends["classUtilization"]["byHour"][0]["utilization"] == pytest.approx(62.5)
        assert trends["classUtilization"]["averageOccupancy"] == pytest.approx(50.0)

    def test_trainer_performance_keeps_legacy_key(self, report):
        rows = {row["trainerId"]: row for row in report["operationalTrends"]["trainerPerformance"]}
        assert set(rows) == {"T1", "T2", "L1"}
        assert rows["L1"]["name"] == "Anna Smith"
        assert rows["L1"]["attendanceRate"] == 0.0
        assert rows["T1"]["cancellationRate"] == pytest.approx(50.0)

    def test_hotspots(self, report):
        hotspots = report["cancellationHotspots"]
        assert hotspots["byTimeOfDay"][0] == {"hour": "9:00", "cancellationRate": pytest.approx(50.0), "total": 2, "cancelled": 1}
        assert hotspots["byDayOfWeek"] == [
            {"day": "Sunday", "cancellationRate": pytest.approx(25.0), "total": 4, "cancelled": 1}
        ]
        assert [row["trainerId"] for row in hotspots["byTrainer"]] == ["T1", "L1", "T2"]
        assert hotspots["byClient"] == [{"clientId": "C2", "cancellations": 1}]
        assert hotspots["averageHoursBeforeClass"] == pytest.approx(2.0)

    def test_generated_messages(self, report):
        messages = report["insights"]
        assert messages["warnings"] == [
            "High cancellation rate (50.0%) at 9:00",
            "Anna Smith has a high cancellation rate (50.0%)",
            "Low average attendance rate: 66.7%",
            "Many cancellations occur less than 24 hours before class - consider implementing cancellation policies",
        ]
        assert messages["insights"] == [
            "Sunday has the highest cancellation rate (25.0%)",
            "Average daily revenue: $100.00",
            "Average cancellation occurs 0.1 days before scheduled class",
        ]
        assert len(messages["recommendations"]) == 3

    def test_report_is_json_serialisable(self, report):
        json.dumps(report)


class TestTrainerReport:
    def test_trainer_sees_own_classes_and_clients(self, store, settings):
        report = _report(store, settings, "U1")

        assert report["summary"]["totalClasses"] == 3
        assert report["summary"]["overallCancellationRate"] == pytest.approx(100 / 3)
        assert report["operationalTrends"]["revenue"]["total"] == pytest.approx(70.0)
        assert {row["trainerId"] for row in report["operationalTrends"]["trainerPerformance"]} == {"T1", "L1"}

    def test_trainer_with_no_classes_gets_zeroed_report(self, settings):
        cleo = TrainerIdentity(id="T3", first_name="Cleo", last_name="Park", owner_ref="U5")
        store = studio_store(trainers=[cleo], roles={**ROLES, "U5": "trainer"})

        report = _report(store, settings, "U5")

        assert report["summary"]["totalClasses"] == 0
        assert report["operationalTrends"]["revenue"]["total"] == 0.0
        assert report["operationalTrends"]["trainerPerformance"] == []
        assert report["cancellationHotspots"]["byTimeOfDay"] == []

    def test_denied_before_any_read(self, store, settings):
        with pytest.raises(AccessDeniedError):
            _report(store, settings, "U3")
        with pytest.raises(NotAuthenticatedError):
            _report(store, settings, None)


class TestWindowSplit:
    def test_old_sessions_count_in_summary_only(self, settings):
        old = date(2023, 1, 1)
        store = studio_store(sessions=[make_session("S1"), make_session("S9", day=old, start_time="20:00")])

        report = _report(store, settings, "U0", days=7)

        assert report["summary"]["totalClasses"] == 2
        assert [row["hour"] for row in report["cancellationHotspots"]["byTimeOfDay"]] == ["9:00", "20:00"]
        # Occupancy uses the windowed sessions: 5 / 10
        assert report["operationalTrends"]["classUtilization"]["averageOccupancy"] == pytest.approx(50.0)

    def test_no_dated_payments(self, settings):
        store = studio_store(payments=[make_payment("P1", paid_date=None), make_payment("P2", paid_date=None)])

        report = _report(store, settings, "U0", days=30)

        revenue = report["operationalTrends"]["revenue"]
        assert revenue == {"daily": [], "total": 0.0, "averageDaily": 0.0}
        assert not any(m.startswith("Average daily revenue") for m in report["insights"]["insights"])

    def test_days_are_clamped(self, store, settings):
        report = _report(store, settings, "U0", days="10000")
        assert report["summary"]["dateRange"]["days"] == 365


class TestDegradedReads:
    def test_failed_attendance_read_zeroes_attendance(self, store, settings):
        def broken(session_ids=None):
            raise ConnectionError("attendance replica down")

        store.fetch_attendance = broken
        report = _report(store, settings, "U0")

        assert report["operationalTrends"]["attendance"] == {"daily": [], "averageRate": 0.0}
        assert report["summary"]["totalClasses"] == 4


class TestDeterminism:
    def test_same_snapshot_same_bytes(self, store, settings):
        first = json.dumps(_report(store, settings, "U0"), sort_keys=True)
        second = json.dumps(_report(store, settings, "U0"), sort_keys=True)
        assert first == second


class TestCreateStore:
    def test_missing_database_url(self):
        with pytest.raises(ConfigurationError):
            create_store(InsightsSettings(database_url=None))

    def test_postgres_store_is_lazy(self):
        store = create_store(InsightsSettings(database_url="postgresql://localhost/studio"))
        assert store.database_url == "postgresql://localhost/studio"
