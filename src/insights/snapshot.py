"""
Snapshot reads.

Issues the four collection reads concurrently and folds each outcome into a
collection: a failed read becomes an empty list and is logged, it never fails
the request.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, TypeVar

from database import AttendanceMark, Enrollment, PaymentRecord, RecordStore, Session

from .logger import setup_logger
from .scope import Scope

logger = setup_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ReadResult(Generic[T]):
    """Outcome of one collection read."""
    name: str
    records: List[T] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def records_or_empty(self) -> List[T]:
        if self.error is not None:
            logger.error(f"Error fetching {self.name}: {type(self.error).__name__}: {self.error}")
            return []
        return self.records


@dataclass(frozen=True)
class Collections:
    """The four record collections the pipeline works on."""
    sessions: List[Session] = field(default_factory=list)
    enrollments: List[Enrollment] = field(default_factory=list)
    attendance: List[AttendanceMark] = field(default_factory=list)
    payments: List[PaymentRecord] = field(default_factory=list)


def read_collection(name: str, reader: Callable[[], List[T]]) -> ReadResult[T]:
    """Run one read, capturing any failure as a value."""
    try:
        return ReadResult(name=name, records=list(reader()))
    except Exception as e:
        return ReadResult(name=name, error=e)


def fetch_snapshot(store: RecordStore, scope: Scope, max_workers: int = 4) -> Collections:
    """
    Read sessions, enrollments, attendance and completed payments for a scope.

    The reads are independent and run on a thread pool; the result waits for
    all four. An empty restricted scope short-circuits to empty collections.
    """
    if scope.is_empty:
        return Collections()

    sessions_filter = scope.session_filter
    clients_filter = scope.client_filter

    readers = {
        "classes": lambda: store.fetch_sessions(session_ids=sessions_filter),
        "enrollments": lambda: store.fetch_enrollments(session_ids=sessions_filter),
        "attendance": lambda: store.fetch_attendance(session_ids=sessions_filter),
        "payments": lambda: store.fetch_payments(client_ids=clients_filter, status="completed"),
    }

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            name: executor.submit(read_collection, name, reader)
            for name, reader in readers.items()
        }
        results = {name: future.result() for name, future in futures.items()}

    failed = [name for name, result in results.items() if not result.ok]
    if failed:
        logger.warning(f"Continuing with empty collections for failed reads: {', '.join(failed)}")

    return Collections(
        sessions=results["classes"].records_or_empty(),
        enrollments=results["enrollments"].records_or_empty(),
        attendance=results["attendance"].records_or_empty(),
        payments=results["payments"].records_or_empty(),
    )
