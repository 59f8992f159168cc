"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and the database is reachable through the shared data-access handle.
Redis is optional (rate limiting only), so it is reported but never
makes the service "degraded".
"""

from fastapi import APIRouter, Request
from sqlalchemy import text

from docdesk import __version__
from docdesk.context import get_context
from docdesk.db.redis import get_redis

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and dependency connectivity."""
    ctx = get_context(request)
    checks = {"server": "ok", "version": __version__}

    try:
        async with ctx.data_access.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    try:
        await get_redis().ping()
        redis_status = "ok"
    except Exception as e:
        redis_status = f"unavailable: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {
        "status": status,
        "auth": "degraded" if ctx.authority.degraded else "ok",
        "redis": redis_status,
        **checks,
    }
