"""
Tests for record parsing and the Postgres store's query building
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from psycopg import sql

from database import AttendanceMark, Enrollment, PaymentRecord, PostgresRecordStore, Session, TrainerIdentity
from database import attributed_trainer_id
from database.utils import build_select


class TestFromRow:
    def test_session_row(self):
        session = Session.from_row({
            "id": 12,
            "name": "Morning Reformer",
            "date": "2024-06-03",
            "start_time": "07:30:00",
            "status": "cancelled",
            "class_type": "reformer",
            "trainer_id": None,
            "instructor_id": "L1",
            "max_capacity": "12",
            "current_enrollment": 9,
        })
        assert session.id == "12"
        assert session.date == date(2024, 6, 3)
        assert session.is_cancelled
        assert session.legacy_instructor_ref == "L1"
        assert session.max_capacity == 12
        assert attributed_trainer_id(session) == "L1"

    def test_trainer_ref_takes_precedence(self):
        session = Session(id="S1", trainer_ref="T1", legacy_instructor_ref="L1")
        assert attributed_trainer_id(session) == "T1"
        assert attributed_trainer_id(Session(id="S2")) is None

    def test_enrollment_timestamps(self):
        enrollment = Enrollment.from_row({
            "id": "E1",
            "client_id": "C1",
            "class_id": "S1",
            "status": "cancelled",
            "created_at": "2024-06-01T08:00:00Z",
            "updated_at": datetime(2024, 6, 2, 9, 0, tzinfo=timezone.utc),
        })
        assert enrollment.created_at == datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
        assert enrollment.created_date == date(2024, 6, 1)
        assert enrollment.session_ref == "S1"
        assert enrollment.is_cancelled

    def test_attendance_and_payment(self):
        mark = AttendanceMark.from_row({"id": "A1", "client_id": "C1", "class_id": "S1", "date": "2024-06-01", "status": "present"})
        payment = PaymentRecord.from_row({"id": "P1", "client_id": "C1", "amount": "49.90", "status": "completed", "paid_date": None})
        assert mark.is_present
        assert payment.amount == Decimal("49.90")
        assert payment.is_completed
        assert payment.paid_date is None

    def test_unparsable_values_become_none(self):
        session = Session.from_row({"id": "S1", "date": "soon", "max_capacity": "lots"})
        assert session.date is None
        assert session.max_capacity is None

    def test_trainer_identity(self):
        trainer = TrainerIdentity.from_row({"id": "T1", "first_name": "Anna", "last_name": "Smith", "user_id": "U1"})
        assert trainer.owner_ref == "U1"
        assert trainer.display_name == "Anna Smith"


class TestBuildSelect:
    def test_membership_and_equality_params(self):
        query, params = build_select("payments", filters=[("client_id", ["C1", "C2"]), ("status", "completed")])
        assert isinstance(query, sql.Composed)
        assert params == [["C1", "C2"], "completed"]

    def test_no_filters(self):
        query, params = build_select("classes", columns=["id"])
        assert isinstance(query, sql.Composed)
        assert params == []


class TestPostgresRecordStore:
    def test_requires_url(self):
        with pytest.raises(RuntimeError, match="DATABASE_URL not set"):
            PostgresRecordStore(None)

    def test_empty_membership_filter_skips_the_query(self):
        # An unreachable URL proves no connection is attempted
        store = PostgresRecordStore("postgresql://invalid.invalid/none")
        assert store.fetch_sessions(session_ids=[]) == []
        assert store.fetch_payments(client_ids=set()) == []
        assert store.fetch_client_ids([]) == []
        assert store.fetch_session_ids() == []
