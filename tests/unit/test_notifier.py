"""Unit tests for the email service and the best-effort lead notifier."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from breezeline.config import MailConfig
from breezeline.errors import NotificationFault
from breezeline.models import EstimationLead, LeadDraft
from breezeline.notifications.email import EmailService
from breezeline.notifications.notifier import LeadNotifier

CONFIGURED = MailConfig(
    smtp_user="sales@breezeline.ae",
    smtp_password="app-password",
    from_email="sales@breezeline.ae",
    admin_email="owner@breezeline.ae",
)


@pytest.fixture
def lead(sample_draft: LeadDraft) -> EstimationLead:
    return EstimationLead(id=7, created_at=datetime.now(timezone.utc), **sample_draft.model_dump())


class TestEmailService:
    """Test template rendering and SMTP sending."""

    def test_render_lead_alert(self, lead):
        service = EmailService(CONFIGURED)

        html = service.render_template(
            "lead_alert.html",
            {
                "lead": lead,
                "area": "50",
                "formatted_price": "AED 110,000.00",
                "formatted_unit_price": "AED 2,200.00",
            },
        )

        assert "AED 110,000.00" in html
        assert "2BHK" in html
        assert "client@example.com" in html

    def test_templates_escape_client_input(self, lead):
        service = EmailService(CONFIGURED)
        hostile = lead.model_copy(update={"contact_name": "<script>alert(1)</script>"})

        html = service.render_template(
            "lead_alert.html",
            {"lead": hostile, "area": "50", "formatted_price": "x", "formatted_unit_price": "y"},
        )

        assert "<script>" not in html

    def test_build_message_headers(self):
        message = EmailService(CONFIGURED).build_message(["a@example.com"], "Subject", "<p>hi</p>")

        assert message["Subject"] == "Subject"
        assert message["To"] == "a@example.com"
        assert "sales@breezeline.ae" in message["From"]
        assert "Breezeline Interiors" in message["From"]

    def test_unconfigured_send_is_skipped(self):
        with patch("breezeline.notifications.email.smtplib.SMTP") as mock_smtp:
            sent = EmailService(MailConfig()).send_email(["a@example.com"], "s", "<p>b</p>")

        assert sent is False
        mock_smtp.assert_not_called()

    @patch("breezeline.notifications.email.smtplib.SMTP")
    def test_send_uses_starttls_and_login(self, mock_smtp):
        server = MagicMock()
        mock_smtp.return_value.__enter__.return_value = server

        sent = EmailService(CONFIGURED).send_email(["a@example.com"], "s", "<p>b</p>")

        assert sent is True
        mock_smtp.assert_called_once_with("smtp.gmail.com", 587, timeout=20)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("sales@breezeline.ae", "app-password")
        server.send_message.assert_called_once()

    @patch("breezeline.notifications.email.smtplib.SMTP")
    def test_transport_error_raises_notification_fault(self, mock_smtp):
        mock_smtp.side_effect = OSError("connection refused")

        with pytest.raises(NotificationFault):
            EmailService(CONFIGURED).send_email(["a@example.com"], "s", "<p>b</p>")


class TestLeadNotifier:
    """Test which emails a lead triggers and how failures are recorded."""

    def test_messages_for_admin_and_client(self, lead):
        notifier = LeadNotifier(EmailService(CONFIGURED))

        messages = notifier.messages_for(lead)

        assert messages == [
            ("owner@breezeline.ae", "New 2BHK Estimation - AED 110,000.00", "lead_alert.html"),
            ("client@example.com", "Your 2BHK Estimation - AED 110,000.00", "client_confirmation.html"),
        ]

    def test_admin_recipient_falls_back_to_smtp_user(self, lead):
        config = MailConfig(smtp_user="sales@breezeline.ae", smtp_password="pw")
        notifier = LeadNotifier(EmailService(config))

        recipients = [recipient for recipient, _, _ in notifier.messages_for(lead)]

        assert recipients[0] == "sales@breezeline.ae"

    def test_no_client_email_no_confirmation(self, lead):
        notifier = LeadNotifier(EmailService(CONFIGURED))

        messages = notifier.messages_for(lead.model_copy(update={"email": None}))

        assert [template for _, _, template in messages] == ["lead_alert.html"]

    @pytest.mark.asyncio
    async def test_unconfigured_notify_sends_nothing(self, lead):
        service = EmailService(MailConfig())
        notifier = LeadNotifier(service)

        with patch.object(service, "send_email") as mock_send:
            await notifier.notify(lead)

        mock_send.assert_not_called()
        assert notifier.dead_letters == []

    @pytest.mark.asyncio
    async def test_failed_delivery_goes_to_dead_letters(self, lead):
        service = EmailService(CONFIGURED)
        notifier = LeadNotifier(service, dead_letter_capacity=1)

        with patch.object(service, "send_email", side_effect=NotificationFault("smtp down")):
            await notifier.notify(lead)

        # Capacity 1: only the most recent failure is kept
        letters = notifier.dead_letters
        assert len(letters) == 1
        assert letters[0].recipient == "client@example.com"
        assert letters[0].error == "smtp down"

    @pytest.mark.asyncio
    async def test_dispatch_runs_in_background(self, lead):
        service = EmailService(CONFIGURED)
        notifier = LeadNotifier(service)

        with patch.object(service, "send_email", return_value=True) as mock_send:
            task = notifier.dispatch(lead)
            assert notifier.pending == 1
            await notifier.drain()

        assert task.done()
        assert notifier.pending == 0
        assert mock_send.call_count == 2
        assert notifier.dead_letters == []

    def test_area_is_formatted_without_trailing_zeros(self, lead):
        notifier = LeadNotifier(EmailService(CONFIGURED))

        context = notifier._context(lead.model_copy(update={"area": Decimal("1250.50")}))

        assert context["area"] == "1,250.5"
        assert context["formatted_unit_price"] == "AED 2,200.00"
