"""Lead submission pipeline: validate, price, persist, notify."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import structlog

from breezeline.config import PricingConfig
from breezeline.errors import ValidationError
from breezeline.leads.store import LeadStore
from breezeline.models import EstimationLead, LeadDraft, LeadStats, Quote
from breezeline.notifications.notifier import LeadNotifier
from breezeline.pricing.calculator import format_currency, quote

logger = structlog.get_logger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UAE_PHONE_RE = re.compile(r"^(\+971|0)?5[0-9][0-9]{7}$")

REQUIRED_MESSAGE = "Project type, class, area, and total price are required"
PHONE_MESSAGE = "Please enter a valid UAE phone number (e.g., 05X XXX XXXX or +971 5X XXX XXXX)"


@dataclass
class SubmissionResult:
    lead: EstimationLead
    formatted_price: str
    email_sent: bool


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def clean_email(value: str | None) -> str | None:
    email = _blank_to_none(value)
    if email is not None and not EMAIL_RE.match(email):
        raise ValidationError("Please enter a valid email address", field="email")
    return email


def clean_phone(value: object) -> str | None:
    # JSON clients may send the number itself; digits only, so no float/bool
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    elif value is not None and not isinstance(value, str):
        raise ValidationError(PHONE_MESSAGE, field="phone")
    phone = _blank_to_none(value)
    if phone is None:
        return None
    if not UAE_PHONE_RE.match(re.sub(r"\s", "", phone)):
        raise ValidationError(PHONE_MESSAGE, field="phone")
    return phone


def _parse_client_total(value: object) -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(REQUIRED_MESSAGE, field="totalPrice")
    try:
        total = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Total price must be a number", field="totalPrice") from None
    if not total.is_finite():
        raise ValidationError("Total price must be a number", field="totalPrice")
    # A zero total means the client never priced the estimate
    if total == 0:
        raise ValidationError(REQUIRED_MESSAGE, field="totalPrice")
    return total


class LeadService:
    """Owns the estimation flow for one lead store and notifier."""

    def __init__(
        self,
        store: LeadStore,
        notifier: LeadNotifier,
        pricing: PricingConfig | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.pricing = pricing or PricingConfig()

    def quote(self, project_type: object, service_class: object, area: object) -> Quote:
        return quote(
            project_type,
            service_class,
            area,
            min_area=self.pricing.min_area,
            max_area=self.pricing.max_area,
            currency=self.pricing.currency,
        )

    def format(self, amount: Decimal) -> str:
        return format_currency(amount, self.pricing.currency)

    async def submit(
        self,
        project_type: object,
        service_class: object,
        area: object,
        total_price: object,
        phone: object = None,
        email: str | None = None,
        contact_name: str | None = None,
    ) -> SubmissionResult:
        """Store a lead priced by the server, then notify in the background.

        The client's total is only compared, never stored.

        Raises:
            ValidationError: Before anything is written
            StorageFault: If the store rejects the write
        """
        if any(v is None or v == "" for v in (project_type, service_class, area)):
            raise ValidationError(REQUIRED_MESSAGE)
        client_total = _parse_client_total(total_price)

        priced = self.quote(project_type, service_class, area)
        draft = LeadDraft(
            project_type=priced.project_type,
            service_class=priced.service_class,
            area=priced.area,
            unit_price=priced.unit_price,
            total_price=priced.total_price,
            phone=clean_phone(phone),
            email=clean_email(email),
            contact_name=_blank_to_none(contact_name),
        )

        if client_total != priced.total_price:
            logger.warning(
                "client_total_mismatch",
                client_total=str(client_total),
                server_total=str(priced.total_price),
                project_type=priced.project_type.value,
            )

        lead = await self.store.append(draft)
        logger.info(
            "lead_stored",
            lead_id=lead.id,
            project_type=lead.project_type.value,
            total_price=str(lead.total_price),
        )

        self.notifier.dispatch(lead)

        return SubmissionResult(
            lead=lead,
            formatted_price=self.format(lead.total_price),
            email_sent=lead.email is not None,
        )

    async def recent(self, limit: int = 50) -> tuple[list[EstimationLead], LeadStats]:
        return await self.store.recent(limit), await self.store.stats()

    async def clear(self) -> int:
        removed = await self.store.clear()
        logger.info("leads_cleared", removed=removed)
        return removed
