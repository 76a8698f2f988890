"""
Health check endpoint.

Used by load balancers, monitoring systems, and humans
to verify the application is running and responsive.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pocketbank.config import get_settings
from pocketbank.logging_config import get_logger
from pocketbank.models.base import get_db

router = APIRouter(tags=["Health"])

logger = get_logger("pocketbank.api")


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Return application health status including database connectivity.

    If the database check fails the instance reports itself
    as degraded.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": "pocketbank",
        "version": get_settings().APP_VERSION,
        "database": db_status,
    }
