"""
Insights HTTP API.

Exposes GET /insights for the dashboard. The caller identity is read through
the get_caller dependency so an authentication layer can override it.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, status

from database import RecordStore

from .config import InsightsSettings, get_settings
from .errors import AccessDeniedError, ConfigurationError, NotAuthenticatedError
from .logger import log_error, setup_logger
from .scope import Caller
from .service import InsightsService, create_store

logger = setup_logger(__name__)

GENERIC_ERROR_MESSAGE = "Failed to fetch insights data"
CONFIGURATION_ERROR_MESSAGE = "Server configuration error"

router = APIRouter(
    prefix="/insights",
    tags=["insights"],
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Admin or trainer role required"},
        500: {"description": "Internal server error"}
    }
)


# ==============================================================================
# DEPENDENCIES
# ==============================================================================

def get_insights_settings() -> InsightsSettings:
    return get_settings()


def get_caller(x_user_id: Optional[str] = Header(default=None)) -> Caller:
    """Caller identity as forwarded by the authentication proxy."""
    return Caller(user_id=x_user_id)


def get_store(settings: InsightsSettings = Depends(get_insights_settings)) -> RecordStore:
    try:
        return create_store(settings)
    except ConfigurationError as e:
        logger.error(f"Insights store unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=CONFIGURATION_ERROR_MESSAGE
        )


# ==============================================================================
# API ENDPOINTS
# ==============================================================================

@router.get(
    "",
    summary="Get operational insights",
    description="""
    Attendance, enrollment and revenue trends, class utilization, trainer
    performance, cancellation hotspots and generated insights for the caller.

    Admins see every class; trainers see the classes they run.
    """
)
def get_insights(
    days: Optional[str] = Query(
        default=None,
        description="Lookback window in days (default 30, clamped to 1-365)"
    ),
    caller: Caller = Depends(get_caller),
    store: RecordStore = Depends(get_store),
    settings: InsightsSettings = Depends(get_insights_settings),
) -> Dict[str, Any]:
    """Get the insights report for the calling admin or trainer."""
    try:
        return InsightsService(store, settings).get_insights(caller, days)

    except NotAuthenticatedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    except AccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    except ConfigurationError as e:
        logger.error(f"Insights configuration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=CONFIGURATION_ERROR_MESSAGE
        )

    except Exception as e:
        log_error(logger, e, context="Error fetching insights data", debug=settings.debug)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) if settings.debug else GENERIC_ERROR_MESSAGE
        )


def create_app() -> FastAPI:
    """
    Create the FastAPI application serving the insights router.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Studio Insights API",
        description="Operational analytics for the studio dashboard",
        version="1.0.0",
    )
    app.include_router(router)

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    return app
