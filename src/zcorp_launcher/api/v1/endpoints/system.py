"""Health and status endpoints."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from zcorp_launcher.api.v1.dependencies import SessionDep
from zcorp_launcher.core.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])

_STARTED_AT = time.time()


@router.get("/health")
def get_health(db: SessionDep) -> dict[str, object]:
    """Report service liveness and database connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        logger.warning("Health check could not reach the database: %s", e)
        db_status = f"unhealthy: {e}"

    return {
        "status": "ok" if db_status == "healthy" else "degraded",
        "timestamp": int(time.time()),
        "uptime": round(time.time() - _STARTED_AT, 1),
        "components": {
            "database": db_status,
            "nonce_backend": settings.nonce_backend,
        },
        "version": settings.app_version,
        "environment": settings.environment,
    }
