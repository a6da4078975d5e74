"""Estimation leads: storage and submission pipeline."""

from breezeline.leads.service import LeadService, SubmissionResult
from breezeline.leads.store import InMemoryLeadStore, LeadStore, SqlLeadStore

__all__ = [
    "InMemoryLeadStore",
    "LeadService",
    "LeadStore",
    "SqlLeadStore",
    "SubmissionResult",
]
