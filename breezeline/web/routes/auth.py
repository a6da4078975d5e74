"""Authentication routes for the Breezeline admin API.

Routes:
- POST /api/auth/login  - Check credentials, set the session cookie
- POST /api/auth/logout - Destroy the session, clear the cookie
- GET  /api/auth/check  - Whether the caller holds a valid session
"""

from __future__ import annotations

from fastapi import APIRouter, Cookie, Depends, Response

from breezeline.web.auth import AdminContext, AdminDirectory
from breezeline.web.dependencies import SESSION_COOKIE, Services, get_directory, get_services, optional_auth
from breezeline.web.models import LoginRequest, envelope

router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("/login")
async def login(
    payload: LoginRequest,
    response: Response,
    services: Services = Depends(get_services),
):
    """Process login.

    Sets an httponly session cookie on success; 401 envelope on failure.
    """
    admin = await services.directory.login(payload.username, payload.password)
    auth_config = services.config.auth
    response.set_cookie(
        key=SESSION_COOKIE,
        value=admin.token,
        httponly=True,
        max_age=auth_config.session_ttl_seconds,
        samesite="lax",
        secure=auth_config.cookie_secure,
    )
    return envelope({"username": admin.username}, message="Logged in")


@router.post("/logout")
async def logout(
    response: Response,
    session: str | None = Cookie(default=None),
    directory: AdminDirectory = Depends(get_directory),
):
    """Logout. Safe to call without a session or with an expired one."""
    await directory.logout(session)
    response.delete_cookie(SESSION_COOKIE)
    return envelope(None, message="Logged out")


@router.get("/check")
async def check(admin: AdminContext | None = Depends(optional_auth)):
    """Report whether the caller is authenticated."""
    return envelope(
        {
            "authenticated": admin is not None,
            "username": admin.username if admin else None,
        }
    )
