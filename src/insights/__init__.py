"""
Insights Package

Operational analytics for the studio dashboard: trends, cancellation
hotspots and generated insights, scoped to the calling admin or trainer.
"""

from .errors import AccessDeniedError, ConfigurationError, InsightsError, NotAuthenticatedError
from .scope import Caller, Scope, resolve_scope
from .service import InsightsService, create_store
from .window import clamp_days

__all__ = [
    "AccessDeniedError",
    "ConfigurationError",
    "InsightsError",
    "NotAuthenticatedError",
    "Caller",
    "Scope",
    "resolve_scope",
    "InsightsService",
    "create_store",
    "clamp_days",
]
