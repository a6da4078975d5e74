"""Admin routes over stored estimation leads.

Routes:
- GET    /api/estimations - Recent leads with aggregate stats
- DELETE /api/estimations - Clear every stored lead
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query

from breezeline.leads.service import LeadService
from breezeline.web.auth import AdminContext
from breezeline.web.dependencies import get_lead_service, require_auth
from breezeline.web.models import LeadOut, LeadStatsOut, dump, envelope

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/estimations", tags=["estimations"])


@router.get("")
async def list_estimations(
    limit: int = Query(50, ge=1, le=1000),
    admin: AdminContext = Depends(require_auth),
    leads: LeadService = Depends(get_lead_service),
):
    """Most recent leads (newest first) and totals for the dashboard."""
    recent, stats = await leads.recent(limit)
    currency = leads.pricing.currency
    return envelope(
        {
            "estimations": [dump(LeadOut.from_lead(lead, currency)) for lead in recent],
            "stats": dump(LeadStatsOut.from_stats(stats, currency)),
        }
    )


@router.delete("")
async def clear_estimations(
    admin: AdminContext = Depends(require_auth),
    leads: LeadService = Depends(get_lead_service),
):
    """Delete all stored leads."""
    removed = await leads.clear()
    logger.info("estimations_cleared_by_admin", admin=admin.username, removed=removed)
    return envelope({"deleted": removed}, message="All estimations cleared")
