"""Shared Pydantic models for the Breezeline web API.

Wire format is camelCase; Python attributes stay snake_case. Monetary values
leave the API as floats rounded to fils, alongside a formatted string.

Usage:
    from breezeline.web.models import EstimationRequest

    @router.post("/api/calculate-estimation")
    async def calculate(payload: EstimationRequest):
        ...
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from breezeline.models import Category, EstimationLead, LeadStats, Quote, Work
from breezeline.pricing.calculator import format_currency, round_money


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def envelope(data: Any = None, message: str | None = None) -> dict:
    """Success envelope: ``{"success": true, "data": ...}``."""
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def _money(value: Decimal) -> float:
    return float(round_money(value))


# ============================================================================
# Estimation
# ============================================================================


class EstimationRequest(CamelModel):
    """Body of POST /api/calculate-estimation.

    Fields are left loosely typed; the calculator owns their validation so
    every rejection carries the same user-facing messages.
    """

    project_type: Any = None
    service_class: Any = Field(
        default=None,
        validation_alias=AliasChoices("serviceClass", "projectClass", "service_class"),
    )
    area: Any = None


class SubmissionRequest(EstimationRequest):
    """Body of POST /api/submit-estimation."""

    total_price: Any = None
    phone: Any = None  # string or bare number
    email: Optional[str] = None
    contact_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("contactName", "userName", "contact_name"),
    )


class QuoteOut(CamelModel):
    project_type: str
    service_class: str
    area: float
    unit_price: float
    total_price: float
    currency: str
    formatted_unit_price: str
    formatted_price: str

    @classmethod
    def from_quote(cls, quote: Quote) -> QuoteOut:
        return cls(
            project_type=quote.project_type.value,
            service_class=quote.service_class.value,
            area=float(quote.area),
            unit_price=_money(quote.unit_price),
            total_price=_money(quote.total_price),
            currency=quote.currency,
            formatted_unit_price=format_currency(quote.unit_price, quote.currency),
            formatted_price=format_currency(quote.total_price, quote.currency),
        )


class SubmissionOut(CamelModel):
    estimation_id: int
    total_price: float
    formatted_price: str
    user_email_sent: bool


class LeadOut(CamelModel):
    id: int
    project_type: str
    service_class: str
    area: float
    unit_price: float
    total_price: float
    formatted_price: str
    phone: Optional[str] = None
    email: Optional[str] = None
    contact_name: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_lead(cls, lead: EstimationLead, currency: str = "AED") -> LeadOut:
        return cls(
            id=lead.id,
            project_type=lead.project_type.value,
            service_class=lead.service_class.value,
            area=float(lead.area),
            unit_price=_money(lead.unit_price),
            total_price=_money(lead.total_price),
            formatted_price=format_currency(lead.total_price, currency),
            phone=lead.phone,
            email=lead.email,
            contact_name=lead.contact_name,
            created_at=lead.created_at,
        )


class LeadStatsOut(CamelModel):
    total: int
    this_month: int
    total_value: float
    formatted_total_value: str

    @classmethod
    def from_stats(cls, stats: LeadStats, currency: str = "AED") -> LeadStatsOut:
        return cls(
            total=stats.total,
            this_month=stats.this_month,
            total_value=_money(stats.total_value),
            formatted_total_value=format_currency(stats.total_value, currency),
        )


# ============================================================================
# Auth
# ============================================================================


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# ============================================================================
# Portfolio
# ============================================================================


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None


class CategoryOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_category(cls, category: Category) -> CategoryOut:
        return cls.model_validate(category.model_dump())


class WorkOut(CamelModel):
    id: int
    title: str
    category_id: int
    category_name: Optional[str] = None
    image_path: str
    image_url: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_work(cls, work: Work, uploads_url: str = "/uploads") -> WorkOut:
        return cls(**work.model_dump(), image_url=f"{uploads_url}/{work.image_path}")


def dump(model: BaseModel) -> dict:
    """Serialize a response model with its camelCase aliases."""
    return model.model_dump(by_alias=True)
