"""
Exceptions raised by the insights engine.
"""


class InsightsError(Exception):
    """Base class for insights errors."""


class ConfigurationError(InsightsError):
    """Store credentials or endpoints are missing."""


class NotAuthenticatedError(InsightsError):
    """No caller identity was supplied."""


class AccessDeniedError(InsightsError):
    """The caller's role may not view insights."""
