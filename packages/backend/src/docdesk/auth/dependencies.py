"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current identity from the request, via the app
context's session authority. A token can arrive as a Bearer header
or as the session cookie set at sign-in.
"""

from typing import Optional

from fastapi import Depends, Request

from docdesk.auth.authority import SessionIdentity
from docdesk.context import get_context
from docdesk.errors import UnauthorizedError


def get_current_identity_optional(request: Request) -> Optional[SessionIdentity]:
    """Current identity, or None. The "soft" auth dependency."""
    return get_context(request).authority.identify(request)


def get_current_identity(
    identity: Optional[SessionIdentity] = Depends(get_current_identity_optional),
) -> SessionIdentity:
    """Current identity (required — 401 if no valid session)."""
    if identity is None:
        raise UnauthorizedError()
    return identity
