"""Database layer for Breezeline with async SQLAlchemy."""

from breezeline.db.connection import close_db, get_session, init_db
from breezeline.db.models import (
    AdminAccountModel,
    Base,
    CategoryModel,
    EstimationLeadModel,
    WorkModel,
)

__all__ = [
    "Base",
    "AdminAccountModel",
    "CategoryModel",
    "EstimationLeadModel",
    "WorkModel",
    "close_db",
    "get_session",
    "init_db",
]
