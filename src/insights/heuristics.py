"""
Insight heuristics.

Fixed-threshold rules over the aggregated series. Every rule runs on every
report, in the order below, and each adds to one or more of the three
message lists.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

HOUR_CANCELLATION_THRESHOLD = 20.0
WEEKDAY_CANCELLATION_THRESHOLD = 20.0
TRAINER_CANCELLATION_THRESHOLD = 25.0
LOW_ATTENDANCE_THRESHOLD = 70.0
EXCELLENT_ATTENDANCE_THRESHOLD = 85.0
LATE_CANCELLATION_HOURS = 24.0


@dataclass
class InsightReport:
    insights: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "insights": list(self.insights),
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
        }


def _highest_rate(rows: Sequence[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    # max() keeps the first of equal maxima
    if not rows:
        return None
    return max(rows, key=lambda row: row["cancellationRate"])


def generate_insights(
    by_hour: Sequence[Dict[str, Any]],
    by_weekday: Sequence[Dict[str, Any]],
    by_trainer: Sequence[Dict[str, Any]],
    average_attendance: float,
    average_daily_revenue: float,
    average_lead_hours: float,
) -> InsightReport:
    """
    Evaluate the six scheduling, attendance, revenue and cancellation rules.

    Args:
        by_hour: cancellation-by-hour rows
        by_weekday: cancellation-by-weekday rows
        by_trainer: cancellation-by-trainer rows, already sorted by rate
        average_attendance: mean of the daily attendance rates
        average_daily_revenue: mean of the daily revenue series
        average_lead_hours: mean hours between cancellation and class day
    """
    report = InsightReport()

    peak_hour = _highest_rate(by_hour)
    if peak_hour and peak_hour["cancellationRate"] > HOUR_CANCELLATION_THRESHOLD:
        report.warnings.append(
            f"High cancellation rate ({peak_hour['cancellationRate']:.1f}%) at {peak_hour['hour']}"
        )
        report.recommendations.append(
            f"Consider reviewing classes scheduled at {peak_hour['hour']} - "
            "may need better communication or scheduling adjustments"
        )

    peak_day = _highest_rate(by_weekday)
    if peak_day and peak_day["cancellationRate"] > WEEKDAY_CANCELLATION_THRESHOLD:
        report.insights.append(
            f"{peak_day['day']} has the highest cancellation rate ({peak_day['cancellationRate']:.1f}%)"
        )

    flagged = next(
        (row for row in by_trainer if row["cancellationRate"] > TRAINER_CANCELLATION_THRESHOLD),
        None,
    )
    if flagged:
        report.warnings.append(
            f"{flagged['trainer']} has a high cancellation rate ({flagged['cancellationRate']:.1f}%)"
        )
        report.recommendations.append(f"Review scheduling and communication with {flagged['trainer']}")

    if average_attendance < LOW_ATTENDANCE_THRESHOLD:
        report.warnings.append(f"Low average attendance rate: {average_attendance:.1f}%")
        report.recommendations.append(
            "Consider implementing reminder systems or incentives to improve attendance"
        )
    elif average_attendance > EXCELLENT_ATTENDANCE_THRESHOLD:
        report.insights.append(f"Excellent attendance rate: {average_attendance:.1f}%")

    if average_daily_revenue > 0:
        report.insights.append(f"Average daily revenue: ${average_daily_revenue:.2f}")

    if average_lead_hours > 0:
        report.insights.append(
            f"Average cancellation occurs {average_lead_hours / 24:.1f} days before scheduled class"
        )
        if average_lead_hours < LATE_CANCELLATION_HOURS:
            report.warnings.append(
                "Many cancellations occur less than 24 hours before class - "
                "consider implementing cancellation policies"
            )

    return report
