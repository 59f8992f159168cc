"""Credential providers — pluggable sign-in strategies.

Learn: the session authority doesn't know how a credential is checked.
Each provider takes the posted sign-in body and either returns the User it
proves, or None. Rejections are never exceptions: a bad password, a missing
field, or an unreachable identity service all read as "not signed in".

The registry maps a provider id to a factory that receives the settings
and returns a provider, or None when the provider isn't configured:

    register_provider("my_sso", lambda settings: MySSOProvider(settings))
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import httpx
import structlog

from docdesk.auth.password import verify_password
from docdesk.config import Settings
from docdesk.db.models import User
from docdesk.services.user_service import UserService

logger = structlog.get_logger()

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


class CredentialProvider(ABC):
    """Abstract base for sign-in strategies."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Provider id, used in the /api/auth/signin/{id} path."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name."""

    @abstractmethod
    async def authenticate(
        self, credentials: dict, users: UserService
    ) -> Optional[User]:
        """Return the proven user, or None if the credentials are rejected."""


class PasswordProvider(CredentialProvider):
    """Email + password checked against the stored bcrypt hash."""

    id = "credentials"
    name = "Email"

    async def authenticate(
        self, credentials: dict, users: UserService
    ) -> Optional[User]:
        email = credentials.get("email")
        password = credentials.get("password")
        if not isinstance(email, str) or not isinstance(password, str):
            return None

        user = await users.get_by_email(email)
        if not user or not user.password_hash:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user


class GoogleProvider(CredentialProvider):
    """Google sign-in: verifies an ID token with Google's tokeninfo endpoint.

    Learn: the frontend completes the OAuth dance and posts the resulting
    ID token. We only accept it if Google vouches for it, it was issued to
    our client id, and the email is verified. First sign-in creates the user.
    """

    id = "google"
    name = "Google"

    def __init__(
        self,
        client_id: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.transport = transport
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    async def authenticate(
        self, credentials: dict, users: UserService
    ) -> Optional[User]:
        id_token = credentials.get("id_token")
        if not isinstance(id_token, str) or not id_token:
            return None

        try:
            async with self._client() as client:
                r = await client.get(
                    GOOGLE_TOKENINFO_URL, params={"id_token": id_token}
                )
        except httpx.HTTPError as e:
            logger.warning("auth.google_unreachable", error=str(e))
            return None

        if r.status_code != 200:
            return None
        try:
            info = r.json()
        except ValueError:
            logger.warning("auth.google_bad_response", body=r.text[:200])
            return None
        if not isinstance(info, dict):
            return None

        if info.get("aud") != self.client_id:
            logger.warning("auth.google_audience_mismatch", aud=info.get("aud"))
            return None
        if str(info.get("email_verified", "")).lower() != "true":
            return None
        email = info.get("email")
        if not email:
            return None

        return await users.get_or_create_by_email(
            email, name=info.get("name"), image=info.get("picture")
        )


# ─── Registry ──────────────────────────────────────────────

ProviderFactory = Callable[[Settings], Optional[CredentialProvider]]


def _google_factory(settings: Settings) -> Optional[CredentialProvider]:
    if not settings.google_enabled:
        return None
    return GoogleProvider(settings.google_client_id)


_PROVIDERS: dict[str, ProviderFactory] = {
    "credentials": lambda settings: PasswordProvider(),
    "google": _google_factory,
}


def register_provider(name: str, factory: ProviderFactory) -> None:
    """Register a custom provider factory (replaces any existing one)."""
    _PROVIDERS[name] = factory


def build_providers(settings: Settings) -> list[CredentialProvider]:
    """Instantiate every registered provider that is configured."""
    providers = []
    for factory in _PROVIDERS.values():
        provider = factory(settings)
        if provider is not None:
            providers.append(provider)
    return providers
