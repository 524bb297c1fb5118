"""
Operational aggregations.

Each function folds one collection into a grouped series. Rates follow one
rule: numerator / denominator * 100, or 0 when the denominator is 0. Rates are
never clamped, so a rate above 100 points at double-counted source data.
"""

import re
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from database import AttendanceMark, Enrollment, PaymentRecord, Session, attributed_trainer_id

from .config import ASSUMED_AVERAGE_CAPACITY
from .directory import TrainerDirectory
from .logger import setup_logger

logger = setup_logger(__name__)

WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
UNKNOWN_CLASS_TYPE = "unknown"
TOP_CLIENTS_LIMIT = 10
MAX_LEAD_TIME_HOURS = 720

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def safe_rate(numerator: Any, denominator: Any) -> float:
    """Percentage, or 0.0 when the denominator is not positive."""
    if not denominator or denominator <= 0:
        return 0.0
    return float(numerator) / float(denominator) * 100


def extract_hour(start_time: Optional[str]) -> int:
    """Leading HH of a HH:MM[:SS] string; 0 when missing or not numeric."""
    if not start_time:
        return 0
    match = _LEADING_INT.match(str(start_time).split(":", 1)[0])
    return int(match.group(0)) if match else 0


def has_readable_hour(start_time: Optional[str]) -> bool:
    return bool(start_time) and _LEADING_INT.match(str(start_time).split(":", 1)[0]) is not None


def weekday_name(day) -> str:
    # date.weekday() counts from Monday
    return WEEKDAYS[(day.weekday() + 1) % 7]


def hour_label(hour: int) -> str:
    return f"{hour}:00"


def _sessions_frame(sessions: Sequence[Session]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "session_id": s.id,
            "hour": extract_hour(s.start_time),
            "weekday": weekday_name(s.date) if s.date else None,
            "class_type": s.class_type or UNKNOWN_CLASS_TYPE,
            "trainer_id": attributed_trainer_id(s),
            "cancelled": s.is_cancelled,
            "enrolled": s.current_enrollment or 0,
        }
        for s in sessions
    ])


def _cancellation_counts(frame: pd.DataFrame, key: str, sort: bool) -> pd.DataFrame:
    return (
        frame.groupby(key, sort=sort)["cancelled"]
        .agg(total="count", cancelled="sum")
        .reset_index()
    )


# ===== OPERATIONAL TRENDS =====

def attendance_trend(attendance: Sequence[AttendanceMark]) -> List[Dict[str, Any]]:
    """Per-day present/total counts and attendance rate, oldest day first."""
    marks = [a for a in attendance if a.date is not None]
    if not marks:
        return []

    frame = pd.DataFrame([{"date": a.date, "present": a.is_present} for a in marks])
    daily = frame.groupby("date")["present"].agg(present="sum", total="count").reset_index()

    return [
        {
            "date": row.date.isoformat(),
            "attendance": safe_rate(row.present, row.total),
            "present": int(row.present),
            "total": int(row.total),
        }
        for row in daily.itertuples(index=False)
    ]


def average_attendance_rate(daily: Sequence[Dict[str, Any]]) -> float:
    """Mean of the per-day rates (each day weighs the same, whatever its volume)."""
    if not daily:
        return 0.0
    return sum(day["attendance"] for day in daily) / len(daily)


def enrollment_trend(enrollments: Sequence[Enrollment]) -> List[Dict[str, Any]]:
    """Enrollments created per day."""
    created = [e.created_date for e in enrollments if e.created_date is not None]
    if not created:
        return []

    daily = pd.Series(created, name="date").value_counts().sort_index()
    return [
        {"date": day.isoformat(), "enrollments": int(count)}
        for day, count in daily.items()
    ]


def revenue_trend(payments: Sequence[PaymentRecord]) -> List[Dict[str, Any]]:
    """Completed revenue per paid date; payments with no paid date are left out."""
    paid = [p for p in payments if p.is_completed and p.paid_date is not None]
    if not paid:
        return []

    frame = pd.DataFrame([{"date": p.paid_date, "amount": float(p.amount)} for p in paid])
    daily = frame.groupby("date")["amount"].sum()
    return [
        {"date": day.isoformat(), "revenue": float(amount)}
        for day, amount in daily.items()
    ]


def total_revenue(payments: Sequence[PaymentRecord]) -> float:
    return float(sum(p.amount for p in payments if p.is_completed and p.paid_date is not None))


def utilization_by_hour(sessions: Sequence[Session], assumed_capacity: int = ASSUMED_AVERAGE_CAPACITY) -> List[Dict[str, Any]]:
    """Enrolled seats against an assumed class size, per start hour."""
    if not sessions:
        return []

    frame = _sessions_frame(sessions)
    by_hour = (
        frame.groupby("hour")
        .agg(classes=("session_id", "count"), enrolled=("enrolled", "sum"))
        .reset_index()
    )
    return [
        {
            "hour": hour_label(int(row.hour)),
            "utilization": safe_rate(row.enrolled, row.classes * assumed_capacity),
            "classes": int(row.classes),
        }
        for row in by_hour.itertuples(index=False)
    ]


def average_occupancy(sessions: Sequence[Session], assumed_capacity: int = ASSUMED_AVERAGE_CAPACITY) -> float:
    """Total enrolled over total capacity, ratioed once across all sessions."""
    if not sessions:
        return 0.0
    enrolled = sum(s.current_enrollment or 0 for s in sessions)
    capacity = sum(assumed_capacity if s.max_capacity is None else s.max_capacity for s in sessions)
    return safe_rate(enrolled, capacity)


def trainer_performance(
    sessions: Sequence[Session],
    attendance: Sequence[AttendanceMark],
    directory: TrainerDirectory,
) -> List[Dict[str, Any]]:
    """Per-trainer class, cancellation and attendance figures, in first-seen order."""
    if not sessions:
        return []
    frame = _sessions_frame(sessions)
    attributed = frame[frame["trainer_id"].notna()]
    if attributed.empty:
        return []

    per_trainer = attributed.groupby("trainer_id", sort=False)["cancelled"].agg(
        classes="count", cancellations="sum"
    )

    owners = attributed.drop_duplicates("session_id")[["session_id", "trainer_id"]]
    marks = pd.DataFrame(
        [{"session_id": a.session_ref, "present": a.is_present} for a in attendance],
        columns=["session_id", "present"],
    )
    joined = marks.merge(owners, on="session_id", how="inner")
    per_trainer_marks = joined.groupby("trainer_id")["present"].agg(attendance="sum", totalAttendance="count")

    combined = (
        per_trainer.join(per_trainer_marks, how="left")
        .reindex(columns=["classes", "cancellations", "attendance", "totalAttendance"])
        .fillna(0)
    )
    names = directory.names(combined.index)

    results = []
    for trainer_id, row in combined.iterrows():
        classes = int(row["classes"])
        cancellations = int(row["cancellations"])
        present = int(row["attendance"])
        total = int(row["totalAttendance"])
        results.append({
            "trainerId": trainer_id,
            "name": names[trainer_id],
            "classes": classes,
            "cancellations": cancellations,
            "cancellationRate": safe_rate(cancellations, classes),
            "attendance": present,
            "totalAttendance": total,
            "attendanceRate": safe_rate(present, total),
        })
    return results


# ===== CANCELLATION HOTSPOTS =====

def cancellation_by_hour(sessions: Sequence[Session]) -> List[Dict[str, Any]]:
    if not sessions:
        return []
    counts = _cancellation_counts(_sessions_frame(sessions), "hour", sort=True)
    return [
        {
            "hour": hour_label(int(row.hour)),
            "cancellationRate": safe_rate(row.cancelled, row.total),
            "total": int(row.total),
            "cancelled": int(row.cancelled),
        }
        for row in counts.itertuples(index=False)
    ]


def cancellation_by_weekday(sessions: Sequence[Session]) -> List[Dict[str, Any]]:
    """Weekdays that occur in the data, Sunday first."""
    dated = [s for s in sessions if s.date is not None]
    if not dated:
        return []

    counts = _cancellation_counts(_sessions_frame(dated), "weekday", sort=False).set_index("weekday")
    return [
        {
            "day": day,
            "cancellationRate": safe_rate(counts.at[day, "cancelled"], counts.at[day, "total"]),
            "total": int(counts.at[day, "total"]),
            "cancelled": int(counts.at[day, "cancelled"]),
        }
        for day in WEEKDAYS
        if day in counts.index
    ]


def cancellation_by_class_type(sessions: Sequence[Session]) -> List[Dict[str, Any]]:
    if not sessions:
        return []
    counts = _cancellation_counts(_sessions_frame(sessions), "class_type", sort=False)
    return [
        {
            "type": row.class_type,
            "cancellationRate": safe_rate(row.cancelled, row.total),
            "total": int(row.total),
            "cancelled": int(row.cancelled),
        }
        for row in counts.itertuples(index=False)
    ]


def cancellation_by_trainer(sessions: Sequence[Session], directory: TrainerDirectory) -> List[Dict[str, Any]]:
    """Attributed sessions per trainer, highest cancellation rate first."""
    attributed = [s for s in sessions if attributed_trainer_id(s)]
    if not attributed:
        return []

    counts = _cancellation_counts(_sessions_frame(attributed), "trainer_id", sort=False)
    names = directory.names(counts["trainer_id"])
    rows = [
        {
            "trainerId": row.trainer_id,
            "trainer": names[row.trainer_id],
            "cancellationRate": safe_rate(row.cancelled, row.total),
            "total": int(row.total),
            "cancelled": int(row.cancelled),
        }
        for row in counts.itertuples(index=False)
    ]
    return sorted(rows, key=lambda r: r["cancellationRate"], reverse=True)


def top_cancelling_clients(enrollments: Sequence[Enrollment], limit: int = TOP_CLIENTS_LIMIT) -> List[Dict[str, Any]]:
    """Clients with the most cancelled enrollments, at most `limit` of them."""
    clients = [e.client_ref for e in enrollments if e.is_cancelled and e.client_ref is not None]
    if not clients:
        return []

    counts = pd.Series(clients, name="client_id").groupby(clients, sort=False).size()
    counts = counts.sort_values(ascending=False, kind="stable").head(limit)
    return [
        {"clientId": client_id, "cancellations": int(count)}
        for client_id, count in counts.items()
    ]


def _hours_before(session_day, cancelled_at: datetime) -> float:
    if cancelled_at.tzinfo is not None:
        class_start = datetime.combine(session_day, time.min, tzinfo=timezone.utc)
    else:
        class_start = datetime.combine(session_day, time.min)
    return (class_start - cancelled_at).total_seconds() / 3600


def cancellation_lead_hours(enrollments: Sequence[Enrollment], sessions: Sequence[Session]) -> List[float]:
    """Hours between cancellation and class day, keeping only 0 < h < 720."""
    by_id: Dict[str, Session] = {}
    for session in sessions:
        by_id.setdefault(session.id, session)

    samples = []
    discarded = 0
    for enrollment in enrollments:
        if not enrollment.is_cancelled or enrollment.updated_at is None:
            continue
        session = by_id.get(enrollment.session_ref)
        if session is None or session.date is None:
            discarded += 1
            continue
        hours = _hours_before(session.date, enrollment.updated_at)
        if 0 < hours < MAX_LEAD_TIME_HOURS:
            samples.append(hours)
        else:
            discarded += 1

    if discarded:
        logger.debug(f"Lead time: kept {len(samples)} cancellations, discarded {discarded}")
    return samples


def average_lead_time_hours(enrollments: Sequence[Enrollment], sessions: Sequence[Session]) -> float:
    samples = cancellation_lead_hours(enrollments, sessions)
    if not samples:
        return 0.0
    return sum(samples) / len(samples)
