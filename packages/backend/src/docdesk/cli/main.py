"""docdesk CLI — run the server, prepare the database, inspect auth config.

Usage:
    docdesk serve --reload               # Run the API with uvicorn
    docdesk init-db                      # Create tables on the configured DB
    docdesk check-config                 # Report configuration problems
    docdesk providers                    # Show configured sign-in providers
    docdesk whoami --token <jwt>         # Ask a running server who a token is
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from docdesk import __version__
from docdesk.auth.providers import build_providers
from docdesk.config import get_settings
from docdesk.db.engine import DataAccessHandle

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("DOCDESK_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at a running docdesk server."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="docdesk")
def main():
    """docdesk — authenticated document service."""


@main.command()
@click.option("--host", help="Bind address (default: DOCDESK_HOST)")
@click.option("--port", type=int, help="Port (default: DOCDESK_PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "docdesk.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create all tables on the configured database."""
    settings = get_settings()

    async def _init():
        handle = DataAccessHandle(settings)
        try:
            await handle.create_all()
        finally:
            await handle.dispose()

    _run(_init())
    click.secho("Database schema created.", fg="green")


@main.command("check-config")
def check_config():
    """Report configuration problems; exit 1 if there are any."""
    settings = get_settings()
    problems = settings.config_problems()
    if not settings.auth_secret and not settings.is_production:
        problems.append(
            "DOCDESK_AUTH_SECRET is not set; sign-in will be unavailable."
        )

    click.echo(f"environment: {settings.environment}")
    click.echo(f"store logging: {', '.join(settings.db_log_levels)}")
    if not problems:
        click.secho("Configuration OK.", fg="green")
        return
    for problem in problems:
        click.secho(f"- {problem}", fg="red", err=True)
    sys.exit(1)


@main.command()
def providers():
    """List the sign-in providers this configuration enables."""
    for provider in build_providers(get_settings()):
        click.echo(f"{provider.id:<12} {provider.name}")


@main.command()
@click.option("--token", envvar="DOCDESK_TOKEN", required=True,
              help="Access token (or set DOCDESK_TOKEN)")
def whoami(token: str):
    """Show the session a running server sees for TOKEN."""

    async def _whoami():
        async with _client() as c:
            r = await c.get(
                "/api/auth/session", headers={"Authorization": f"Bearer {token}"}
            )
            r.raise_for_status()
            return r.json()

    session = _run(_whoami())
    click.echo(_pretty_json(session))
    if not session.get("authenticated"):
        sys.exit(1)


if __name__ == "__main__":
    main()
