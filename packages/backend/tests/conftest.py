"""Test fixtures — a fresh app and SQLite database per test.

Learn: each test builds its own app with create_app(settings), pointed at
a SQLite file under tmp_path. The schema is created through the app's own
data-access handle, and the handle is disposed when the test ends, so no
state leaks between tests and no external database is needed.

Auth is real: tests sign tokens with the app's session authority instead
of overriding the identity dependency.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from docdesk.config import Settings
from docdesk.main import create_app
from docdesk.services.user_service import UserService

TEST_SECRET = "test-secret-for-docdesk-session-tokens"
OWNER_PASSWORD = "correct-horse-battery"


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'docdesk.db'}",
        "environment": "test",
        "auth_secret": TEST_SECRET,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def create_user(app, email: str, password: str = OWNER_PASSWORD, name=None):
    """Register a user through the service layer and commit."""
    async with app.state.context.data_access.session() as db:
        user = await UserService(db).register(email, password, name=name)
        await db.commit()
        return user


def bearer(app, user) -> dict:
    tokens = app.state.context.authority.issue(user.id, user.email)
    return {"Authorization": f"Bearer {tokens.access_token}"}


@pytest.fixture()
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest_asyncio.fixture()
async def app(settings):
    app = create_app(settings)
    await app.state.context.data_access.create_all()
    yield app
    await app.state.context.aclose()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def owner(app):
    return await create_user(app, "owner@example.com", name="Owner")


@pytest_asyncio.fixture()
async def owner_headers(app, owner):
    return bearer(app, owner)


@pytest_asyncio.fixture()
async def stranger_headers(app):
    stranger = await create_user(app, "stranger@example.com")
    return bearer(app, stranger)
