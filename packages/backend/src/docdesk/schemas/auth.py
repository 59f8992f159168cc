"""Pydantic schemas for the session authority's responses."""

from datetime import datetime
from typing import Optional

from docdesk.schemas.base import CamelModel


class SessionUser(CamelModel):
    id: str
    email: Optional[str] = None


class SessionRead(CamelModel):
    """What /api/auth/session returns.

    An unauthenticated result is a normal response, not an error:
    authenticated=False with an optional reason.
    """

    authenticated: bool
    user: Optional[SessionUser] = None
    expires: Optional[datetime] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    error: Optional[str] = None


class ProviderRead(CamelModel):
    id: str
    name: str
