"""Application context — owner of the process-wide resources.

Learn: instead of module-level singletons, create_app() builds one
AppContext and stores it on app.state. Request handlers reach it through
the get_context / get_db dependencies, and tests can build as many
independent contexts as they like.

The session authority is built eagerly (so a missing secret is reported
once, at startup). The data-access handle is built lazily on first use and
then cached, so a context never holds more than one.
"""

from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from docdesk.auth.authority import SessionAuthority
from docdesk.auth.providers import CredentialProvider
from docdesk.config import Settings
from docdesk.db.engine import DataAccessHandle, acquire_handle, release_handle


class AppContext:
    """Settings, session authority and data-access handle for one app."""

    def __init__(
        self,
        settings: Settings,
        providers: Optional[list[CredentialProvider]] = None,
    ):
        self.settings = settings
        self.authority = SessionAuthority(settings, providers=providers)
        self._data_access: Optional[DataAccessHandle] = None

    @property
    def data_access(self) -> DataAccessHandle:
        if self._data_access is None:
            self._data_access = acquire_handle(self.settings)
        return self._data_access

    async def aclose(self) -> None:
        """Shutdown hook: release this context's hold on the data-access handle.

        A handle shared with other live contexts stays open for them.
        """
        if self._data_access is not None:
            await release_handle(self._data_access)
            self._data_access = None


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with get_context(request).data_access.session() as session:
        yield session
