"""Breezeline Web Route Modules.

Each module exports a ``router`` (APIRouter instance); ``breezeline.web.app``
includes them all. Shared dependencies live in ``breezeline.web.dependencies``
and shared request/response models in ``breezeline.web.models``.

Usage:
    from breezeline.web.routes import auth
    app.include_router(auth.router)
"""

from breezeline.web.routes import (
    auth,
    categories,
    estimation,
    health,
    leads,
    works,
)

__all__ = [
    "auth",  # Admin login / logout / check
    "categories",  # Portfolio categories
    "estimation",  # Public quote and lead submission
    "health",
    "leads",  # Admin lead listing and clearing
    "works",  # Portfolio works with image upload
]
