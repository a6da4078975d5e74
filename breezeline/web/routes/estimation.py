"""Public estimation routes.

Routes:
- POST /api/calculate-estimation - Quote a project from the rate table
- GET  /api/price-list           - Full rate table
- POST /api/submit-estimation    - Store a lead and notify by email
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from breezeline.leads.service import LeadService
from breezeline.pricing.calculator import round_money
from breezeline.pricing.rates import price_list
from breezeline.web.dependencies import get_lead_service
from breezeline.web.models import (
    EstimationRequest,
    QuoteOut,
    SubmissionOut,
    SubmissionRequest,
    dump,
    envelope,
)

router = APIRouter(prefix="/api", tags=["estimation"])


@router.post("/calculate-estimation")
async def calculate_estimation(
    payload: EstimationRequest,
    leads: LeadService = Depends(get_lead_service),
):
    """Price a project type / class / area combination. No side effects."""
    quote = leads.quote(payload.project_type, payload.service_class, payload.area)
    return envelope(dump(QuoteOut.from_quote(quote)))


@router.get("/price-list")
async def get_price_list():
    """Return the rate table as ``{projectType: {serviceClass: pricePerSqm}}``."""
    table = {
        ptype: {sclass: float(price) for sclass, price in classes.items()}
        for ptype, classes in price_list().items()
    }
    return envelope(table)


@router.post("/submit-estimation")
async def submit_estimation(
    payload: SubmissionRequest,
    leads: LeadService = Depends(get_lead_service),
):
    """Store an estimation lead.

    The total is recomputed on the server; the submitted ``totalPrice`` is only
    checked for presence. Emails go out in the background and their failure
    does not affect this response.
    """
    result = await leads.submit(
        project_type=payload.project_type,
        service_class=payload.service_class,
        area=payload.area,
        total_price=payload.total_price,
        phone=payload.phone,
        email=payload.email,
        contact_name=payload.contact_name,
    )
    data = SubmissionOut(
        estimation_id=result.lead.id,
        total_price=float(round_money(result.lead.total_price)),
        formatted_price=result.formatted_price,
        user_email_sent=result.email_sent,
    )
    return envelope(dump(data), message="Estimation submitted successfully")
