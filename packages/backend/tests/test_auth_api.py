"""Auth route tests — the catch-all /api/auth/{action} pipeline.

Learn: GET and POST go through the same handler. Rejected credentials
come back as {"authenticated": false}, never as a server error.
"""

import pytest

from conftest import OWNER_PASSWORD, make_settings
from docdesk.config import Settings
from docdesk.main import create_app

COOKIE = Settings.model_fields["session_cookie_name"].default


async def _sign_in(client, email="owner@example.com", password=OWNER_PASSWORD):
    return await client.post(
        "/api/auth/signin/credentials",
        json={"email": email, "password": password},
    )


# ═══════════════════════════════════════════════════════════
# Providers
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_providers_lists_credentials(client):
    r = await client.get("/api/auth/providers")
    assert r.status_code == 200
    assert r.json()["providers"] == [{"id": "credentials", "name": "Email"}]


@pytest.mark.asyncio
async def test_providers_via_post_uses_same_pipeline(client):
    r = await client.post("/api/auth/providers")
    assert r.status_code == 200
    assert r.json()["providers"][0]["id"] == "credentials"


def test_google_provider_registered_when_configured(tmp_path):
    app = create_app(make_settings(
        tmp_path, google_client_id="cid", google_client_secret="csecret"
    ))
    assert set(app.state.context.authority.providers) == {"credentials", "google"}


@pytest.mark.asyncio
async def test_unknown_action_is_404(client):
    r = await client.get("/api/auth/nope")
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


# ═══════════════════════════════════════════════════════════
# Sign in
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_sign_in_success(client, owner):
    r = await _sign_in(client)
    assert r.status_code == 200
    body = r.json()
    assert body["authenticated"] is True
    assert body["user"] == {"id": owner.id, "email": "owner@example.com"}
    assert body["accessToken"]
    assert body["refreshToken"]
    assert body["tokenType"] == "bearer"
    assert COOKIE in r.cookies
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_sign_in_email_is_case_insensitive(client, owner):
    r = await _sign_in(client, email="Owner@Example.com")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_sign_in_wrong_password(client, owner):
    r = await _sign_in(client, password="wrong-password")
    assert r.status_code == 401
    assert r.json()["authenticated"] is False
    assert r.json()["error"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_sign_in_unknown_user(client):
    r = await _sign_in(client, email="nobody@example.com")
    assert r.status_code == 401
    assert r.json()["authenticated"] is False


@pytest.mark.asyncio
async def test_sign_in_malformed_body(client, owner):
    r = await client.post(
        "/api/auth/signin/credentials",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 401
    assert r.json()["authenticated"] is False


@pytest.mark.asyncio
async def test_sign_in_missing_fields(client, owner):
    r = await client.post("/api/auth/signin/credentials", json={"email": 42})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_sign_in_requires_post(client):
    r = await client.get("/api/auth/signin/credentials")
    assert r.status_code == 405


@pytest.mark.asyncio
async def test_sign_in_unknown_provider(client):
    r = await client.post("/api/auth/signin/github", json={})
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# Session
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_session_without_credentials(client):
    r = await client.get("/api/auth/session")
    assert r.status_code == 200
    assert r.json()["authenticated"] is False
    assert r.json()["user"] is None


@pytest.mark.asyncio
async def test_session_with_bearer(client, owner, owner_headers):
    r = await client.get("/api/auth/session", headers=owner_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["authenticated"] is True
    assert body["user"]["id"] == owner.id
    assert body["expires"]
    # Plain session lookups never hand out tokens.
    assert body["accessToken"] is None


@pytest.mark.asyncio
async def test_session_with_cookie(client, owner):
    token = (await _sign_in(client)).json()["accessToken"]
    client.cookies.clear()
    client.cookies.set(COOKIE, token)

    r = await client.get("/api/auth/session")
    assert r.json()["authenticated"] is True
    assert r.json()["user"]["id"] == owner.id


@pytest.mark.asyncio
async def test_session_with_invalid_bearer(client):
    r = await client.get(
        "/api/auth/session", headers={"Authorization": "Bearer invalid_token_here"}
    )
    assert r.status_code == 200
    assert r.json()["authenticated"] is False


@pytest.mark.asyncio
async def test_refresh_session(client, owner):
    refresh = (await _sign_in(client)).json()["refreshToken"]

    r = await client.post("/api/auth/session", json={"refreshToken": refresh})
    assert r.status_code == 200
    body = r.json()
    assert body["authenticated"] is True
    assert body["user"]["id"] == owner.id
    assert body["accessToken"]


@pytest.mark.asyncio
async def test_refresh_with_access_token_fails(client, owner):
    access = (await _sign_in(client)).json()["accessToken"]
    r = await client.post("/api/auth/session", json={"refreshToken": access})
    assert r.status_code == 401
    assert r.json()["authenticated"] is False


# ═══════════════════════════════════════════════════════════
# Sign out
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_sign_out_clears_cookie(client, owner):
    await _sign_in(client)
    r = await client.post("/api/auth/signout")
    assert r.status_code == 200
    assert r.json()["authenticated"] is False
    assert COOKIE in r.headers["set-cookie"]
    assert "Max-Age=0" in r.headers["set-cookie"]
