"""Pydantic schemas for user accounts and nicknames."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from docdesk.schemas.base import CamelModel


class UserRegister(CamelModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=128)
    name: Optional[str] = Field(None, max_length=100)


class UserRead(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime


class NicknameUpdate(CamelModel):
    nickname: str


class NicknameRead(CamelModel):
    nickname: Optional[str] = None
