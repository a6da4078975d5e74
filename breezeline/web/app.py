"""FastAPI application for the Breezeline Interiors API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from breezeline.config import AppConfig, get_config
from breezeline.core.logging import configure_logging
from breezeline.db.connection import build_engine, close_db, get_session, init_db, session_scope
from breezeline.errors import BreezelineError, StorageFault, ValidationError
from breezeline.startup_validation import validate_startup
from breezeline.web.dependencies import Services, build_services
from breezeline.web.routes import auth, categories, estimation, health, leads, works

logger = structlog.get_logger()

UPLOADS_URL = "/uploads"


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    return f"{field}: {first.get('msg')}" if field else str(first.get("msg"))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BreezelineError)
    async def breezeline_error_handler(request: Request, exc: BreezelineError):
        if isinstance(exc, StorageFault):
            logger.error("storage_fault", path=request.url.path, error=exc.message)
        extra = {"field": exc.field} if isinstance(exc, ValidationError) and exc.field else {}
        return _error(exc.status_code, exc.message, **extra)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path, error=str(exc))
        return _error(500, "Internal server error")


def create_app(config: AppConfig | None = None, services: Services | None = None) -> FastAPI:
    """Build the application.

    Args:
        config: Defaults to ``get_config()`` and the shared engine. An explicit
            config gets its own engine, used for schema creation, startup
            checks, admin bootstrap and the health probe.
        services: Pre-wired services (tests swap stores or the notifier here)
    """
    engine = build_engine(config.db) if config is not None else None
    config = config or get_config()
    session_factory = session_scope(engine) if engine is not None else get_session
    services = services or build_services(config, session_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config.log_level)
        await init_db(engine=engine)
        async with services.session_factory() as session:
            await validate_startup(session, config)
        await services.directory.bootstrap()
        logger.info("breezeline_started", environment=config.environment)
        yield
        await services.notifier.drain()
        if engine is not None:
            await engine.dispose()
        else:
            await close_db()
        logger.info("breezeline_stopped")

    app = FastAPI(
        title="Breezeline Interiors API",
        description="Estimates, leads and portfolio management for Breezeline Interiors",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(RequestLoggingMiddleware)

    # Prometheus Metrics (one registry per app so test apps don't collide)
    Instrumentator(registry=CollectorRegistry()).instrument(app).expose(app, include_in_schema=False)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(estimation.router)
    app.include_router(leads.router)
    app.include_router(auth.router)
    app.include_router(categories.router)
    app.include_router(works.router)

    services.portfolio.images.ensure_directory()
    app.mount(
        UPLOADS_URL,
        StaticFiles(directory=str(services.portfolio.images.directory)),
        name="uploads",
    )
    # Mounted last: "/" would otherwise shadow the API routes
    if config.static_dir is not None and config.static_dir.exists():
        app.mount("/", StaticFiles(directory=str(config.static_dir), html=True), name="static")

    return app
