"""Session authority — verifies and issues session tokens.

Learn: one SessionAuthority exists per app context. It owns the signing
secret and the configured credential providers, and it answers the
catch-all /api/auth/{action} route for both GET and POST:

    GET  providers            → configured providers
    GET  session              → current session (bearer header or cookie)
    POST session              → refresh: refresh token → new token pair
    POST signin/{provider}    → verify credentials → token pair + cookie
    *    signout              → clear the session cookie

Missing secret: the authority still constructs. It logs one warning and
runs degraded: every token verifies as "no session", and issuing tokens
raises AuthConfigurationError (503) rather than signing with an empty key.

Bad credentials or tokens are never exceptions here; they come back as an
unauthenticated SessionRead so clients can show a login prompt.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from docdesk.auth.jwt import ACCESS, REFRESH, TokenError, create_token, decode_token
from docdesk.auth.providers import CredentialProvider, build_providers
from docdesk.config import Settings
from docdesk.errors import AuthConfigurationError, NotFoundError
from docdesk.schemas.auth import ProviderRead, SessionRead, SessionUser
from docdesk.services.user_service import UserService

logger = structlog.get_logger()


class SessionIdentity:
    """The verified identity behind a request.

    Learn: downstream code only needs the user id (documents are scoped
    by it) and the email; everything else stays in the token.
    """

    def __init__(
        self,
        user_id: str,
        email: Optional[str] = None,
        expires: Optional[datetime] = None,
    ):
        self.user_id = user_id
        self.email = email
        self.expires = expires

    def to_session(self) -> SessionRead:
        return SessionRead(
            authenticated=True,
            user=SessionUser(id=self.user_id, email=self.email),
            expires=self.expires,
        )


class SessionTokens:
    def __init__(self, access_token: str, refresh_token: str, expires: datetime):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires = expires
        self.token_type = "bearer"


def unauthenticated(reason: Optional[str] = None) -> SessionRead:
    return SessionRead(authenticated=False, error=reason)


async def _read_body(request: Request) -> dict:
    """Posted JSON body, or {} when it's absent or malformed."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class SessionAuthority:
    """Verify request identity; issue and refresh session tokens."""

    def __init__(
        self,
        settings: Settings,
        providers: Optional[list[CredentialProvider]] = None,
    ):
        self.settings = settings
        self._secret = settings.auth_secret
        self.degraded = not self._secret
        if self.degraded:
            logger.warning(
                "auth.secret_missing",
                detail=(
                    "DOCDESK_AUTH_SECRET is not set; sessions cannot be "
                    "issued or verified until it is configured"
                ),
            )

        if providers is None:
            providers = build_providers(settings)
        self.providers: dict[str, CredentialProvider] = {
            p.id: p for p in providers
        }

    # ─── Tokens ─────────────────────────────────────────

    def issue(self, user_id: str, email: Optional[str] = None) -> SessionTokens:
        """Sign a fresh access/refresh pair for this user."""
        if self.degraded:
            raise AuthConfigurationError()

        access_ttl = timedelta(minutes=self.settings.access_token_expire_minutes)
        refresh_ttl = timedelta(days=self.settings.refresh_token_expire_days)
        claims = {"email": email} if email else None
        algorithm = self.settings.jwt_algorithm

        return SessionTokens(
            access_token=create_token(
                user_id, ACCESS, self._secret, algorithm, access_ttl, claims
            ),
            refresh_token=create_token(
                user_id, REFRESH, self._secret, algorithm, refresh_ttl, claims
            ),
            expires=datetime.now(timezone.utc) + access_ttl,
        )

    def _decode(self, token: str, token_type: str) -> Optional[dict]:
        if self.degraded or not token:
            return None
        try:
            return decode_token(
                token, self._secret, self.settings.jwt_algorithm, token_type
            )
        except TokenError as e:
            logger.debug("auth.token_rejected", reason=str(e))
            return None

    def verify(self, token: Optional[str]) -> Optional[SessionIdentity]:
        """Identity for an access token, or None if it doesn't verify."""
        payload = self._decode(token or "", ACCESS)
        if payload is None:
            return None
        return SessionIdentity(
            user_id=str(payload["sub"]),
            email=payload.get("email"),
            expires=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def refresh(self, refresh_token: Optional[str]) -> Optional[SessionTokens]:
        """Exchange a refresh token for a new pair, or None if it's invalid."""
        payload = self._decode(refresh_token or "", REFRESH)
        if payload is None:
            return None
        return self.issue(str(payload["sub"]), payload.get("email"))

    # ─── Requests ───────────────────────────────────────

    def token_from_request(self, request: Request) -> Optional[str]:
        """Bearer token from the Authorization header, else the session cookie."""
        authorization = request.headers.get("authorization", "")
        if authorization.lower().startswith("bearer "):
            return authorization[7:].strip() or None
        return request.cookies.get(self.settings.session_cookie_name)

    def identify(self, request: Request) -> Optional[SessionIdentity]:
        return self.verify(self.token_from_request(request))

    def _session_response(
        self, tokens: SessionTokens, user_id: str, email: Optional[str]
    ) -> JSONResponse:
        session = SessionRead(
            authenticated=True,
            user=SessionUser(id=user_id, email=email),
            expires=tokens.expires,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
        )
        response = JSONResponse(session.to_json())
        response.set_cookie(
            self.settings.session_cookie_name,
            tokens.access_token,
            max_age=self.settings.access_token_expire_minutes * 60,
            httponly=True,
            samesite="lax",
            secure=self.settings.is_production,
        )
        return response

    async def handle(
        self, request: Request, action: str, db: AsyncSession
    ) -> Response:
        """Single pipeline behind GET and POST /api/auth/{action}."""
        action = action.strip("/")

        if action == "providers":
            return JSONResponse({
                "providers": [
                    ProviderRead(id=p.id, name=p.name).to_json()
                    for p in self.providers.values()
                ]
            })

        if action == "session":
            if request.method == "POST":
                return await self._refresh_session(request)
            identity = self.identify(request)
            session = identity.to_session() if identity else unauthenticated()
            return JSONResponse(session.to_json())

        if action.startswith("signin/"):
            return await self._sign_in(request, action.split("/", 1)[1], db)

        if action == "signout":
            response = JSONResponse(unauthenticated().to_json())
            response.delete_cookie(self.settings.session_cookie_name)
            return response

        raise NotFoundError("Auth action", action)

    async def _refresh_session(self, request: Request) -> Response:
        body = await _read_body(request)
        refresh_token = body.get("refreshToken") or body.get("refresh_token")
        if not isinstance(refresh_token, str):
            refresh_token = None

        payload = self._decode(refresh_token or "", REFRESH)
        if payload is None:
            return JSONResponse(
                unauthenticated("Invalid refresh token").to_json(), status_code=401
            )
        user_id, email = str(payload["sub"]), payload.get("email")
        return self._session_response(self.issue(user_id, email), user_id, email)

    async def _sign_in(
        self, request: Request, provider_id: str, db: AsyncSession
    ) -> Response:
        if request.method != "POST":
            return JSONResponse(
                {"detail": "Use POST to sign in"}, status_code=405,
                headers={"Allow": "POST"},
            )
        provider = self.providers.get(provider_id)
        if provider is None:
            raise NotFoundError("Provider", provider_id)
        if self.degraded:
            raise AuthConfigurationError()

        body = await _read_body(request)
        user = await provider.authenticate(body, UserService(db))
        if user is None:
            logger.info("auth.signin_failed", provider=provider_id)
            return JSONResponse(
                unauthenticated("Invalid credentials").to_json(), status_code=401
            )

        # Providers may have created the user on first sign-in.
        await db.commit()
        logger.info("auth.signin", provider=provider_id, user_id=user.id)
        tokens = self.issue(user.id, user.email)
        return self._session_response(tokens, user.id, user.email)
