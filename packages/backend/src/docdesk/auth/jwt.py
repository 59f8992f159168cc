"""JWT session token creation and verification.

Learn: JWT (JSON Web Token) provides stateless sessions.
- Access token: short-lived (60min), sent on every request
- Refresh token: long-lived (30 days), exchanged for a new pair

The signing secret and algorithm are passed in by the session authority,
which owns them; this module never reads settings itself.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Raised when token verification fails."""


def create_token(
    subject: str,
    token_type: str,
    secret: str,
    algorithm: str,
    expires_in: timedelta,
    claims: Optional[dict[str, Any]] = None,
) -> str:
    """Sign a token for `subject` that expires after `expires_in`."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "type": token_type,
        "iat": now,
        "exp": now + expires_in,
    }
    if claims:
        payload.update(claims)
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(
    token: str,
    secret: str,
    algorithm: str,
    expected_type: Optional[str] = None,
) -> dict:
    """Verify and decode a token.

    Returns the payload dict on success.
    Raises TokenError on failure, including a type mismatch.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if "sub" not in payload:
        raise TokenError("Token has no subject")
    if expected_type and payload.get("type") != expected_type:
        raise TokenError(f"Not an {expected_type} token")
    return payload
