"""Shared dependencies for Breezeline web routes.

The application builds one ``Services`` container at startup and keeps it on
``app.state``. Route handlers receive the pieces they need through
``Depends()``; gated handlers also receive the caller's ``AdminContext``
explicitly instead of reading it from request-scoped globals.

Usage:
    from fastapi import Depends
    from breezeline.web.dependencies import get_portfolio, require_auth

    @router.delete("/api/works/{work_id}")
    async def delete_work(
        work_id: int,
        admin: AdminContext = Depends(require_auth),
        portfolio: PortfolioStore = Depends(get_portfolio),
    ):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Cookie, Depends, Request

from breezeline.config import AppConfig
from breezeline.db.connection import SessionFactory, get_session
from breezeline.errors import AuthError
from breezeline.leads.service import LeadService
from breezeline.leads.store import InMemoryLeadStore, LeadStore, SqlLeadStore
from breezeline.notifications.email import EmailService
from breezeline.notifications.notifier import LeadNotifier
from breezeline.portfolio.images import ImageStorage
from breezeline.portfolio.repository import PortfolioStore
from breezeline.web.auth import AdminContext, AdminDirectory, build_session_store

SESSION_COOKIE = "session"


@dataclass
class Services:
    """Everything the routes talk to, wired once per application."""

    config: AppConfig
    leads: LeadService
    notifier: LeadNotifier
    directory: AdminDirectory
    portfolio: PortfolioStore
    session_factory: SessionFactory = get_session


def build_services(config: AppConfig, session_factory: SessionFactory = get_session) -> Services:
    """Wire stores, notifier and directory from configuration."""
    store: LeadStore
    if config.leads.backend == "database":
        store = SqlLeadStore(session_factory)
    else:
        store = InMemoryLeadStore(capacity=config.leads.capacity)

    notifier = LeadNotifier(EmailService(config.mail), currency=config.pricing.currency)
    images = ImageStorage(
        config.uploads.directory,
        max_bytes=config.uploads.max_bytes,
        allowed_content_types=config.uploads.allowed_content_types,
    )
    return Services(
        config=config,
        leads=LeadService(store, notifier, config.pricing),
        notifier=notifier,
        directory=AdminDirectory(session_factory, build_session_store(config.auth), config.auth),
        portfolio=PortfolioStore(images, session_factory),
        session_factory=session_factory,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_lead_service(services: Services = Depends(get_services)) -> LeadService:
    return services.leads


def get_portfolio(services: Services = Depends(get_services)) -> PortfolioStore:
    return services.portfolio


def get_directory(services: Services = Depends(get_services)) -> AdminDirectory:
    return services.directory


async def optional_auth(
    session: str | None = Cookie(default=None),
    directory: AdminDirectory = Depends(get_directory),
) -> AdminContext | None:
    """Resolve the session cookie, or None for anonymous callers."""
    return await directory.authenticate(session)


async def require_auth(
    admin: AdminContext | None = Depends(optional_auth),
) -> AdminContext:
    """Dependency to require an authenticated admin.

    Raises:
        AuthError: If the session cookie is missing, unknown or expired (401)
    """
    if admin is None:
        raise AuthError.session_required()
    return admin
