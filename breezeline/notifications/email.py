"""Email notification service for Breezeline.

Renders lead emails from Jinja2 templates and sends them over SMTP.
"""
from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from pathlib import Path
from typing import Any, Dict, List

import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape

from breezeline.config import MailConfig
from breezeline.errors import NotificationFault

logger = structlog.get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


class EmailService:
    """Service for sending emails with template support."""

    def __init__(self, config: MailConfig, template_dir: Path = TEMPLATE_DIR):
        self.config = config
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
        )

    @property
    def configured(self) -> bool:
        return self.config.configured

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render an email template with the given context.

        Args:
            template_name: Name of the template file (e.g., "lead_alert.html")
            context: Dictionary of variables to pass to the template

        Returns:
            Rendered HTML string
        """
        template = self.jinja_env.get_template(template_name)
        return template.render(**context)

    def build_message(
        self,
        to_emails: List[str],
        subject: str,
        html_body: str,
        text_body: str | None = None,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.config.from_name, self.config.from_email or self.config.smtp_user))
        msg["To"] = ", ".join(to_emails)

        if text_body:
            msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))
        return msg

    def send_email(
        self,
        to_emails: List[str],
        subject: str,
        html_body: str,
        text_body: str | None = None,
    ) -> bool:
        """Send one email. Blocking; call from a worker thread.

        Returns:
            True if sent, False when SMTP is not configured

        Raises:
            NotificationFault: If the SMTP transport fails
        """
        if not self.configured:
            logger.warning("smtp_not_configured", to=to_emails, subject=subject)
            return False

        msg = self.build_message(to_emails, subject, html_body, text_body)

        try:
            with smtplib.SMTP(
                self.config.smtp_host, self.config.smtp_port, timeout=self.config.timeout_seconds
            ) as server:
                server.starttls()
                server.login(self.config.smtp_user, self.config.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationFault(f"Failed to send email: {e}") from e

        logger.info("email_sent", to=to_emails, subject=subject)
        return True
