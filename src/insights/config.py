"""
Insights configuration.

Values come from the environment (and a local .env file, if present).
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_LOOKBACK_DAYS = 30
MIN_LOOKBACK_DAYS = 1
MAX_LOOKBACK_DAYS = 365

# Average class size assumed by the utilization-by-hour series. Product has not
# confirmed this figure; change it through INSIGHTS_ASSUMED_CAPACITY only.
ASSUMED_AVERAGE_CAPACITY = 8


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class InsightsSettings:
    """Runtime settings for the insights engine."""
    database_url: Optional[str] = None
    debug: bool = False
    assumed_capacity: int = ASSUMED_AVERAGE_CAPACITY
    read_workers: int = 4
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "InsightsSettings":
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            debug=_env_flag("INSIGHTS_DEBUG"),
            assumed_capacity=_env_int("INSIGHTS_ASSUMED_CAPACITY", ASSUMED_AVERAGE_CAPACITY),
            read_workers=max(1, _env_int("INSIGHTS_READ_WORKERS", 4)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def get_settings() -> InsightsSettings:
    return InsightsSettings.from_env()
