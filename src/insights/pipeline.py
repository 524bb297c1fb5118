"""
Report assembly.

Runs every aggregation over the windowed and all-time views, feeds the results
to the heuristics and lays them out in the response shape the dashboard
consumes. The report is a pure function of its inputs.
"""

from typing import Any, Dict

from database import attributed_trainer_id

from . import aggregator
from .config import ASSUMED_AVERAGE_CAPACITY
from .directory import TrainerDirectory
from .heuristics import generate_insights
from .logger import setup_logger
from .window import WindowedViews

logger = setup_logger(__name__)


def _log_anomalies(views: WindowedViews) -> None:
    sessions = views.all.sessions
    unattributed = [s.id for s in sessions if not attributed_trainer_id(s)]
    if unattributed:
        logger.warning(f"{len(unattributed)} classes have no trainer and are left out of trainer breakdowns")
        logger.debug(f"Unattributed classes: {', '.join(str(i) for i in unattributed)}")

    untimed = [s.id for s in sessions if not aggregator.has_readable_hour(s.start_time)]
    if untimed:
        logger.warning(f"{len(untimed)} classes have a missing or unreadable start time; bucketed at 0:00")

    undated = sum(1 for s in sessions if s.date is None)
    if undated:
        logger.debug(f"{undated} classes have no date and are left out of the weekday breakdown")


def build_summary(views: WindowedViews) -> Dict[str, Any]:
    """All-time totals for the scope, plus the requested window."""
    sessions = views.all.sessions
    enrollments = views.all.enrollments
    cancelled_classes = sum(1 for s in sessions if s.is_cancelled)
    return {
        "totalClasses": len(sessions),
        "cancelledClasses": cancelled_classes,
        "totalEnrollments": len(enrollments),
        "cancelledEnrollments": sum(1 for e in enrollments if e.is_cancelled),
        "overallCancellationRate": aggregator.safe_rate(cancelled_classes, len(sessions)),
        "dateRange": views.window.as_dict(),
    }


def build_report(
    views: WindowedViews,
    directory: TrainerDirectory,
    assumed_capacity: int = ASSUMED_AVERAGE_CAPACITY,
) -> Dict[str, Any]:
    """
    Build the full insights response.

    Trend series and the enrollment, revenue and occupancy figures use the
    windowed view. Utilization, trainer performance and the cancellation
    breakdowns by hour, weekday, class type and trainer use the all-time view.
    """
    windowed = views.windowed
    everything = views.all
    _log_anomalies(views)

    attendance_daily = aggregator.attendance_trend(windowed.attendance)
    average_attendance = aggregator.average_attendance_rate(attendance_daily)

    revenue_daily = aggregator.revenue_trend(windowed.payments)
    average_daily_revenue = (
        sum(day["revenue"] for day in revenue_daily) / len(revenue_daily) if revenue_daily else 0.0
    )

    by_hour = aggregator.cancellation_by_hour(everything.sessions)
    by_weekday = aggregator.cancellation_by_weekday(everything.sessions)
    by_trainer = aggregator.cancellation_by_trainer(everything.sessions, directory)

    cancelled_enrollments = [e for e in windowed.enrollments if e.is_cancelled]
    average_lead_hours = aggregator.average_lead_time_hours(cancelled_enrollments, everything.sessions)

    report = generate_insights(
        by_hour=by_hour,
        by_weekday=by_weekday,
        by_trainer=by_trainer,
        average_attendance=average_attendance,
        average_daily_revenue=average_daily_revenue,
        average_lead_hours=average_lead_hours,
    )

    return {
        "operationalTrends": {
            "attendance": {
                "daily": attendance_daily,
                "averageRate": average_attendance,
            },
            "enrollment": {
                "daily": aggregator.enrollment_trend(windowed.enrollments),
                "total": len(windowed.enrollments),
                "active": sum(1 for e in windowed.enrollments if e.status == "active"),
                "cancelled": len(cancelled_enrollments),
            },
            "revenue": {
                "daily": revenue_daily,
                "total": aggregator.total_revenue(windowed.payments),
                "averageDaily": average_daily_revenue,
            },
            "classUtilization": {
                "byHour": aggregator.utilization_by_hour(everything.sessions, assumed_capacity),
                "averageOccupancy": aggregator.average_occupancy(windowed.sessions, assumed_capacity),
            },
            "trainerPerformance": aggregator.trainer_performance(
                everything.sessions, everything.attendance, directory
            ),
        },
        "cancellationHotspots": {
            "byTimeOfDay": by_hour,
            "byDayOfWeek": by_weekday,
            "byClassType": aggregator.cancellation_by_class_type(everything.sessions),
            "byTrainer": by_trainer,
            "byClient": aggregator.top_cancelling_clients(cancelled_enrollments),
            "averageHoursBeforeClass": average_lead_hours,
        },
        "insights": report.to_dict(),
        "summary": build_summary(views),
    }
