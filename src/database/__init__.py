"""
Database Package

Record models and read-only record stores.
"""

from .models import AttendanceMark, Enrollment, PaymentRecord, Session, TrainerIdentity, attributed_trainer_id
from .store import InMemoryRecordStore, PostgresRecordStore, RecordStore

__all__ = [
    "AttendanceMark",
    "Enrollment",
    "PaymentRecord",
    "Session",
    "TrainerIdentity",
    "attributed_trainer_id",
    "RecordStore",
    "PostgresRecordStore",
    "InMemoryRecordStore",
]
