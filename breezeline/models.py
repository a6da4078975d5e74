"""Breezeline Pydantic models for type-safe data validation.

Domain records shared by the stores, the notifier and the web layer.
Monetary values are Decimal throughout; rounding happens only when a value
is formatted for display.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProjectType(str, Enum):
    """Kinds of project the firm quotes for."""

    ONE_BHK = "1BHK"
    TWO_BHK = "2BHK"
    THREE_BHK = "3BHK"
    STUDIO = "Studio Apartment"
    OFFICE = "Office"
    RETAIL = "Retail Shops"
    FOOD_AND_BEVERAGE = "F&B"
    VILLA_RENOVATION = "Villa Renovation"


class ServiceClass(str, Enum):
    """Finish level of the fit-out."""

    STANDARD = "Standard"
    PREMIUM = "Premium"


class Quote(BaseModel):
    """Result of a rate table lookup for a given area."""

    project_type: ProjectType
    service_class: ServiceClass
    area: Decimal
    unit_price: Decimal
    total_price: Decimal
    currency: str = "AED"


class LeadDraft(BaseModel):
    """Validated lead ready to be persisted (no id or timestamp yet)."""

    project_type: ProjectType
    service_class: ServiceClass
    area: Decimal
    unit_price: Decimal
    total_price: Decimal
    phone: str | None = None
    email: str | None = None
    contact_name: str | None = None


class EstimationLead(LeadDraft):
    """Persisted estimation request. Immutable once stored."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    created_at: datetime


class LeadStats(BaseModel):
    """Aggregate figures for the admin dashboard."""

    total: int = 0
    this_month: int = 0
    total_value: Decimal = Decimal("0")


class Category(BaseModel):
    """Portfolio category."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = None


class Work(BaseModel):
    """Portfolio work joined with its category name."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    category_id: int
    category_name: str | None = None
    image_path: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DeadLetter(BaseModel):
    """Notification that could not be delivered."""

    lead_id: int
    recipient: str
    subject: str
    error: str
    failed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
