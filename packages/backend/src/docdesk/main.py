"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance with its own AppContext on app.state. Lifespan manages startup
(config validation, optional Redis) and shutdown (Redis, data-access
handle). Middleware, CORS, error handling and routers are registered here.
"""

import traceback
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docdesk import __version__
from docdesk.api import api_router
from docdesk.auth.providers import CredentialProvider
from docdesk.config import Settings, get_settings
from docdesk.context import AppContext
from docdesk.db.redis import close_redis, init_redis
from docdesk.errors import AppError, ConfigurationError, ValidationError
from docdesk.middleware.rate_limit import RateLimitMiddleware
from docdesk.middleware.request_id import RequestIdMiddleware
from docdesk.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


def check_config(settings: Settings) -> None:
    """Fail fast on bad production config; warn about it elsewhere."""
    problems = settings.config_problems()
    if not problems:
        return
    if settings.is_production:
        raise ConfigurationError(problems)
    for problem in problems:
        logger.warning("docdesk.config_problem", problem=problem)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown.
    """
    ctx: AppContext = app.state.context
    settings = ctx.settings
    logger.info(
        "docdesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )
    check_config(settings)

    try:
        await init_redis(settings.redis_url)
        logger.info("docdesk.redis_connected")
    except Exception as e:
        # Redis is optional; only rate limiting uses it
        logger.warning("docdesk.redis_unavailable", error=str(e))

    yield

    logger.info("docdesk.shutdown")
    await close_redis()
    await ctx.aclose()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render AppError as {"detail", "code"} with its status code."""
    content = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, ValidationError) and exc.fields:
        content["fields"] = exc.fields

    settings: Settings = request.app.state.context.settings
    if settings.is_development:
        content["trace"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    if exc.status_code >= 500:
        logger.error("docdesk.app_error", code=exc.code, error=exc.message)

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(content, status_code=exc.status_code, headers=headers)


def create_app(
    settings: Optional[Settings] = None,
    providers: Optional[list[CredentialProvider]] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="docdesk",
        description="Owner-scoped markdown documents behind a session authority",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = AppContext(settings, providers=providers)
    app.add_exception_handler(AppError, app_error_handler)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware,
        session_cookie=settings.session_cookie_name,
        force_hsts=settings.is_production,
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app


# Default app instance (used by uvicorn: docdesk.main:app)
app = create_app()
