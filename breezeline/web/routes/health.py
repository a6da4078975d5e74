"""Health check API routes.

Liveness for the hosting platform plus a database round trip.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from breezeline.web.dependencies import Services, get_services
from breezeline.web.models import envelope

router = APIRouter(prefix="/health", tags=["Health"])

SERVICE_NAME = "Breezeline Interiors API"


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(services: Services = Depends(get_services)):
    """Check application health.

    Always 200 while the process serves requests; the database state is
    reported in the payload.
    """
    try:
        async with services.session_factory() as session:
            await session.execute(text("SELECT 1"))
        database = "connected"
    except (SQLAlchemyError, OSError):
        database = "disconnected"

    return envelope(
        {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "database": database,
        }
    )
