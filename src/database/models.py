"""
Database Models

Dataclasses representing the studio records read by the insights engine.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

# Alias so the `date` fields below do not shadow the type in their annotations
CalendarDate = date


def _parse_date(value: Any) -> Optional[date]:
    """Accept a date, a datetime or an ISO string; anything else is None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    # fromisoformat only learned the Z suffix in 3.11
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _ref(value: Any) -> Optional[str]:
    """Normalise an id column (text or uuid) to a string reference."""
    if value is None or value == "":
        return None
    return str(value)


def _parse_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_amount(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


@dataclass(frozen=True)
class Session:
    """A scheduled class."""
    id: str
    name: Optional[str] = None
    date: Optional[CalendarDate] = None
    start_time: Optional[str] = None
    status: Optional[str] = None
    class_type: Optional[str] = None
    trainer_ref: Optional[str] = None
    legacy_instructor_ref: Optional[str] = None
    max_capacity: Optional[int] = None
    current_enrollment: Optional[int] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Session":
        return cls(
            id=str(row["id"]),
            name=row.get("name"),
            date=_parse_date(row.get("date")),
            start_time=str(row["start_time"]) if row.get("start_time") is not None else None,
            status=row.get("status"),
            class_type=row.get("class_type"),
            trainer_ref=_ref(row.get("trainer_id")),
            legacy_instructor_ref=_ref(row.get("instructor_id")),
            max_capacity=_parse_int(row.get("max_capacity")),
            current_enrollment=_parse_int(row.get("current_enrollment")),
        )


@dataclass(frozen=True)
class Enrollment:
    """A client's booking for a session."""
    id: str
    client_ref: Optional[str]
    session_ref: Optional[str]
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"

    @property
    def created_date(self) -> Optional[date]:
        return self.created_at.date() if self.created_at else None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Enrollment":
        return cls(
            id=str(row["id"]),
            client_ref=_ref(row.get("client_id")),
            session_ref=_ref(row.get("class_id")),
            status=row.get("status"),
            created_at=_parse_datetime(row.get("created_at")),
            updated_at=_parse_datetime(row.get("updated_at")),
        )


@dataclass(frozen=True)
class AttendanceMark:
    """An attendance check for one client in one session."""
    id: str
    client_ref: Optional[str]
    session_ref: Optional[str]
    date: Optional[CalendarDate] = None
    status: Optional[str] = None

    @property
    def is_present(self) -> bool:
        return self.status == "present"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AttendanceMark":
        return cls(
            id=str(row["id"]),
            client_ref=_ref(row.get("client_id")),
            session_ref=_ref(row.get("class_id")),
            date=_parse_date(row.get("date")),
            status=row.get("status"),
        )


@dataclass(frozen=True)
class PaymentRecord:
    """A client payment."""
    id: str
    client_ref: Optional[str]
    amount: Decimal = Decimal("0")
    status: Optional[str] = None
    paid_date: Optional[date] = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PaymentRecord":
        return cls(
            id=str(row["id"]),
            client_ref=_ref(row.get("client_id")),
            amount=_parse_amount(row.get("amount")),
            status=row.get("status"),
            paid_date=_parse_date(row.get("paid_date")),
        )


@dataclass(frozen=True)
class TrainerIdentity:
    """A trainer, or a legacy instructor record with the same shape."""
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    owner_ref: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        """Full name, or None unless both parts are present."""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TrainerIdentity":
        return cls(
            id=str(row["id"]),
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
            owner_ref=_ref(row.get("user_id")),
            email=row.get("email"),
        )


def attributed_trainer_id(session: Session) -> Optional[str]:
    """Primary trainer reference, falling back to the legacy instructor one."""
    return session.trainer_ref or session.legacy_instructor_ref
