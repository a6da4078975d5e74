"""Best-effort lead notifications.

``LeadNotifier.dispatch`` hands a stored lead to a background task and returns
at once. Delivery failures are logged and kept in a bounded dead-letter log;
they never reach the request that submitted the lead.
"""

from __future__ import annotations

import asyncio
from collections import deque
from decimal import Decimal

import structlog
from jinja2 import TemplateError

from breezeline.errors import NotificationFault
from breezeline.models import DeadLetter, EstimationLead
from breezeline.notifications.email import EmailService
from breezeline.pricing.calculator import format_currency

logger = structlog.get_logger(__name__)


def _format_area(area: Decimal) -> str:
    normalized = area.normalize()
    return f"{normalized:,f}"


class LeadNotifier:
    """Sends the admin lead alert and the client confirmation."""

    def __init__(
        self,
        email_service: EmailService,
        currency: str = "AED",
        dead_letter_capacity: int = 100,
    ):
        self.email_service = email_service
        self.currency = currency
        self._dead_letters: deque[DeadLetter] = deque(maxlen=dead_letter_capacity)
        self._pending: set[asyncio.Task] = set()

    @property
    def dead_letters(self) -> list[DeadLetter]:
        return list(self._dead_letters)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _context(self, lead: EstimationLead) -> dict:
        return {
            "lead": lead,
            "area": _format_area(lead.area),
            "formatted_price": format_currency(lead.total_price, self.currency),
            "formatted_unit_price": format_currency(lead.unit_price, self.currency),
        }

    def messages_for(self, lead: EstimationLead) -> list[tuple[str, str, str]]:
        """(recipient, subject, template) for every email this lead triggers."""
        formatted = format_currency(lead.total_price, self.currency)
        project = lead.project_type.value
        messages = []

        admin_recipient = self.email_service.config.admin_recipient
        if admin_recipient:
            messages.append(
                (admin_recipient, f"New {project} Estimation - {formatted}", "lead_alert.html")
            )
        if lead.email:
            messages.append(
                (lead.email, f"Your {project} Estimation - {formatted}", "client_confirmation.html")
            )
        return messages

    async def notify(self, lead: EstimationLead) -> None:
        """Render and send every email for the lead. Never raises."""
        if not self.email_service.configured:
            logger.info("lead_notification_skipped", lead_id=lead.id, reason="smtp_not_configured")
            return

        context = self._context(lead)
        for recipient, subject, template in self.messages_for(lead):
            try:
                html_body = self.email_service.render_template(template, context)
                await asyncio.to_thread(
                    self.email_service.send_email, [recipient], subject, html_body
                )
            except (NotificationFault, TemplateError) as e:
                self._dead_letter(lead, recipient, subject, e)

    def _dead_letter(self, lead: EstimationLead, recipient: str, subject: str, error: Exception) -> None:
        letter = DeadLetter(lead_id=lead.id, recipient=recipient, subject=subject, error=str(error))
        self._dead_letters.append(letter)
        logger.error(
            "lead_notification_failed",
            lead_id=lead.id,
            recipient=recipient,
            subject=subject,
            error=str(error),
        )

    def dispatch(self, lead: EstimationLead) -> asyncio.Task:
        """Schedule notify() without waiting for it."""
        task = asyncio.create_task(self.notify(lead), name=f"notify-lead-{lead.id}")
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("lead_notification_cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("lead_notification_crashed", task=task.get_name(), error=repr(exc))

    async def drain(self) -> None:
        """Wait for in-flight notifications (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
