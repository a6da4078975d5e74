"""Error taxonomy for the Breezeline API.

Each error carries the HTTP status it maps to, so the web layer can render
the uniform ``{"success": false, "message": ...}`` envelope without knowing
which component raised it.
"""

from __future__ import annotations


class BreezelineError(Exception):
    """Base class for all expected application errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BreezelineError):
    """Missing or invalid client input. User-correctable, not a fault."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class AuthError(BreezelineError):
    """Bad credentials or a missing/expired session."""

    status_code = 401

    INVALID_CREDENTIALS = "Invalid username or password"
    SESSION_REQUIRED = "Authentication required"

    @classmethod
    def invalid_credentials(cls) -> AuthError:
        return cls(cls.INVALID_CREDENTIALS)

    @classmethod
    def session_required(cls) -> AuthError:
        return cls(cls.SESSION_REQUIRED)


class NotFoundError(BreezelineError):
    """Operation on a category or work id that does not exist."""

    status_code = 404


class StorageFault(BreezelineError):
    """Persistence layer unavailable or a write failed."""

    status_code = 500


class NotificationFault(BreezelineError):
    """Email transport failure. Never leaves the notifier."""

    status_code = 500
