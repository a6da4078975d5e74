"""Lead email notifications."""

from breezeline.notifications.email import EmailService
from breezeline.notifications.notifier import LeadNotifier

__all__ = ["EmailService", "LeadNotifier"]
