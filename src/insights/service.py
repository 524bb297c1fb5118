"""
Insights service.

Glues scope resolution, the snapshot reads, the window split, trainer naming
and report assembly into one call per request.
"""

from datetime import date
from typing import Any, Dict, Optional

from database import PostgresRecordStore, RecordStore

from .config import InsightsSettings, get_settings
from .directory import build_trainer_directory
from .errors import ConfigurationError
from .logger import setup_logger
from .pipeline import build_report
from .scope import Caller, resolve_scope
from .snapshot import fetch_snapshot
from .window import TimeWindow, apply_window, clamp_days

logger = setup_logger(__name__)


def create_store(settings: Optional[InsightsSettings] = None) -> RecordStore:
    """Postgres-backed store for the configured DATABASE_URL."""
    settings = settings or get_settings()
    if not settings.database_url:
        raise ConfigurationError("DATABASE_URL not set")
    return PostgresRecordStore(settings.database_url)


class InsightsService:
    """Computes the insights report for one caller at a time."""

    def __init__(self, store: RecordStore, settings: Optional[InsightsSettings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def get_insights(self, caller: Caller, days: Any = None, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Build the insights report visible to the caller.

        Args:
            caller: Authenticated identity (role optional, looked up if missing)
            days: Lookback window; parsed and clamped to [1, 365]
            today: Window end date (defaults to the current date)

        Returns:
            Report dictionary with operationalTrends, cancellationHotspots,
            insights and summary

        Raises:
            NotAuthenticatedError, AccessDeniedError: before any data is read
        """
        scope = resolve_scope(self.store, caller)
        window = TimeWindow.ending_today(clamp_days(days), today=today)
        logger.info(
            f"Computing insights for user {caller.user_id} "
            f"({'all classes' if scope.unrestricted else f'{len(scope.session_ids)} classes'}, "
            f"{window.start} to {window.end})"
        )

        collections = fetch_snapshot(self.store, scope, max_workers=self.settings.read_workers)
        views = apply_window(collections, window)
        directory = build_trainer_directory(self.store, collections.sessions, scope)

        report = build_report(views, directory, assumed_capacity=self.settings.assumed_capacity)
        logger.info(
            f"Insights ready: {report['summary']['totalClasses']} classes, "
            f"{len(report['insights']['warnings'])} warnings"
        )
        return report
