"""
Record Stores

Read-only access to the studio records. The insights engine only talks to the
RecordStore interface; PostgresRecordStore backs it with psycopg and
InMemoryRecordStore with plain lists.

Filter arguments follow one rule throughout: None means "no filter", an empty
collection matches nothing.
"""

from abc import ABC, abstractmethod
from typing import Collection, Iterable, List, Optional, Sequence

from .models import AttendanceMark, Enrollment, PaymentRecord, Session, TrainerIdentity
from .utils import Filters, fetch_column, fetch_rows

SESSIONS_TABLE = "classes"
ENROLLMENTS_TABLE = "class_enrollments"
ATTENDANCE_TABLE = "attendance"
PAYMENTS_TABLE = "payments"
TRAINERS_TABLE = "trainers"
INSTRUCTORS_TABLE = "instructors"
ROLES_TABLE = "user_roles"

IdFilter = Optional[Collection[str]]


class RecordStore(ABC):
    """Read-only record store queried by equality/membership predicates."""

    @abstractmethod
    def fetch_sessions(self, session_ids: IdFilter = None) -> List[Session]:
        pass

    @abstractmethod
    def fetch_enrollments(self, session_ids: IdFilter = None) -> List[Enrollment]:
        pass

    @abstractmethod
    def fetch_attendance(self, session_ids: IdFilter = None) -> List[AttendanceMark]:
        pass

    @abstractmethod
    def fetch_payments(self, client_ids: IdFilter = None, status: Optional[str] = "completed") -> List[PaymentRecord]:
        pass

    @abstractmethod
    def fetch_trainers(self, ids: IdFilter = None, owner_refs: IdFilter = None) -> List[TrainerIdentity]:
        pass

    @abstractmethod
    def fetch_legacy_instructors(self, ids: IdFilter = None, owner_refs: IdFilter = None) -> List[TrainerIdentity]:
        pass

    @abstractmethod
    def fetch_session_ids(self, trainer_ref: Optional[str] = None, legacy_instructor_ref: Optional[str] = None) -> List[str]:
        """Ids of sessions owned by a trainer id or by a legacy instructor id."""

    @abstractmethod
    def fetch_client_ids(self, session_ids: Collection[str]) -> List[str]:
        """Distinct clients enrolled in any of the given sessions."""

    @abstractmethod
    def fetch_role(self, user_id: str) -> Optional[str]:
        pass


def _id_filter(column: str, ids: IdFilter) -> Filters:
    return [] if ids is None else [(column, list(ids))]


class PostgresRecordStore(RecordStore):
    """RecordStore over the studio PostgreSQL schema.

    Every call opens its own connection, so calls may run on separate threads.
    """

    def __init__(self, database_url: Optional[str]):
        if not database_url:
            raise RuntimeError("DATABASE_URL not set")
        self.database_url = database_url

    def _rows(self, table: str, filters: Filters) -> List[dict]:
        # Skip the round trip when a membership filter can match nothing
        if any(isinstance(value, list) and not value for _, value in filters):
            return []
        return fetch_rows(self.database_url, table, filters)

    def fetch_sessions(self, session_ids: IdFilter = None) -> List[Session]:
        rows = self._rows(SESSIONS_TABLE, _id_filter("id", session_ids))
        return [Session.from_row(row) for row in rows]

    def fetch_enrollments(self, session_ids: IdFilter = None) -> List[Enrollment]:
        rows = self._rows(ENROLLMENTS_TABLE, _id_filter("class_id", session_ids))
        return [Enrollment.from_row(row) for row in rows]

    def fetch_attendance(self, session_ids: IdFilter = None) -> List[AttendanceMark]:
        rows = self._rows(ATTENDANCE_TABLE, _id_filter("class_id", session_ids))
        return [AttendanceMark.from_row(row) for row in rows]

    def fetch_payments(self, client_ids: IdFilter = None, status: Optional[str] = "completed") -> List[PaymentRecord]:
        filters = list(_id_filter("client_id", client_ids))
        if status is not None:
            filters.append(("status", status))
        rows = self._rows(PAYMENTS_TABLE, filters)
        return [PaymentRecord.from_row(row) for row in rows]

    def fetch_trainers(self, ids: IdFilter = None, owner_refs: IdFilter = None) -> List[TrainerIdentity]:
        filters = list(_id_filter("id", ids)) + list(_id_filter("user_id", owner_refs))
        return [TrainerIdentity.from_row(row) for row in self._rows(TRAINERS_TABLE, filters)]

    def fetch_legacy_instructors(self, ids: IdFilter = None, owner_refs: IdFilter = None) -> List[TrainerIdentity]:
        filters = list(_id_filter("id", ids)) + list(_id_filter("user_id", owner_refs))
        return [TrainerIdentity.from_row(row) for row in self._rows(INSTRUCTORS_TABLE, filters)]

    def fetch_session_ids(self, trainer_ref: Optional[str] = None, legacy_instructor_ref: Optional[str] = None) -> List[str]:
        filters = []
        if trainer_ref is not None:
            filters.append(("trainer_id", trainer_ref))
        if legacy_instructor_ref is not None:
            filters.append(("instructor_id", legacy_instructor_ref))
        if not filters:
            return []
        return fetch_column(self.database_url, SESSIONS_TABLE, "id", filters)

    def fetch_client_ids(self, session_ids: Collection[str]) -> List[str]:
        if not session_ids:
            return []
        return fetch_column(self.database_url, ENROLLMENTS_TABLE, "client_id", [("class_id", list(session_ids))])

    def fetch_role(self, user_id: str) -> Optional[str]:
        rows = fetch_rows(self.database_url, ROLES_TABLE, [("user_id", user_id)], columns=["role"])
        return rows[0]["role"] if rows else None


def _matches(value: Optional[str], allowed: IdFilter) -> bool:
    return allowed is None or value in allowed


class InMemoryRecordStore(RecordStore):
    """RecordStore over in-process lists, for tests and local runs."""

    def __init__(
        self,
        sessions: Iterable[Session] = (),
        enrollments: Iterable[Enrollment] = (),
        attendance: Iterable[AttendanceMark] = (),
        payments: Iterable[PaymentRecord] = (),
        trainers: Iterable[TrainerIdentity] = (),
        legacy_instructors: Iterable[TrainerIdentity] = (),
        roles: Optional[dict] = None,
    ):
        self.sessions: Sequence[Session] = list(sessions)
        self.enrollments: Sequence[Enrollment] = list(enrollments)
        self.attendance: Sequence[AttendanceMark] = list(attendance)
        self.payments: Sequence[PaymentRecord] = list(payments)
        self.trainers: Sequence[TrainerIdentity] = list(trainers)
        self.legacy_instructors: Sequence[TrainerIdentity] = list(legacy_instructors)
        self.roles = dict(roles or {})

    def fetch_sessions(self, session_ids: IdFilter = None) -> List[Session]:
        return [s for s in self.sessions if _matches(s.id, session_ids)]

    def fetch_enrollments(self, session_ids: IdFilter = None) -> List[Enrollment]:
        return [e for e in self.enrollments if _matches(e.session_ref, session_ids)]

    def fetch_attendance(self, session_ids: IdFilter = None) -> List[AttendanceMark]:
        return [a for a in self.attendance if _matches(a.session_ref, session_ids)]

    def fetch_payments(self, client_ids: IdFilter = None, status: Optional[str] = "completed") -> List[PaymentRecord]:
        return [
            p for p in self.payments
            if _matches(p.client_ref, client_ids) and (status is None or p.status == status)
        ]

    def fetch_trainers(self, ids: IdFilter = None, owner_refs: IdFilter = None) -> List[TrainerIdentity]:
        return [t for t in self.trainers if _matches(t.id, ids) and _matches(t.owner_ref, owner_refs)]

    def fetch_legacy_instructors(self, ids: IdFilter = None, owner_refs: IdFilter = None) -> List[TrainerIdentity]:
        return [
            i for i in self.legacy_instructors
            if _matches(i.id, ids) and _matches(i.owner_ref, owner_refs)
        ]

    def fetch_session_ids(self, trainer_ref: Optional[str] = None, legacy_instructor_ref: Optional[str] = None) -> List[str]:
        if trainer_ref is None and legacy_instructor_ref is None:
            return []
        return sorted({
            s.id for s in self.sessions
            if (trainer_ref is None or s.trainer_ref == trainer_ref)
            and (legacy_instructor_ref is None or s.legacy_instructor_ref == legacy_instructor_ref)
        })

    def fetch_client_ids(self, session_ids: Collection[str]) -> List[str]:
        return sorted({
            e.client_ref for e in self.enrollments
            if e.session_ref in session_ids and e.client_ref is not None
        })

    def fetch_role(self, user_id: str) -> Optional[str]:
        return self.roles.get(user_id)
