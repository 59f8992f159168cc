"""User service — accounts, OAuth user provisioning, nicknames.

Learn: Service layer separates business logic from HTTP routing.
API routes and auth providers call services, services call the database.
Services flush but never commit; the caller owns the transaction.
"""

import re
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docdesk.auth.password import hash_password
from docdesk.db.models import User
from docdesk.errors import ConflictError, NotFoundError, ValidationError

NICKNAME_MIN_LENGTH = 2
NICKNAME_MAX_LENGTH = 20
# Letters in any script, digits, underscore, whitespace and hyphen.
NICKNAME_PATTERN = re.compile(r"^[\w\s-]+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_nickname(nickname: str) -> str:
    """Return the trimmed nickname or raise ValidationError."""
    trimmed = nickname.strip()
    if len(trimmed) < NICKNAME_MIN_LENGTH:
        raise ValidationError(
            f"Nickname must be at least {NICKNAME_MIN_LENGTH} characters",
            fields={"nickname": ["too_short"]},
        )
    if len(trimmed) > NICKNAME_MAX_LENGTH:
        raise ValidationError(
            f"Nickname must be at most {NICKNAME_MAX_LENGTH} characters",
            fields={"nickname": ["too_long"]},
        )
    if not NICKNAME_PATTERN.match(trimmed):
        raise ValidationError(
            "Nickname may only contain letters, digits, spaces, '-' and '_'",
            fields={"nickname": ["invalid_characters"]},
        )
    return trimmed


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalars().first()

    async def register(
        self, email: str, password: str, name: Optional[str] = None
    ) -> User:
        """Create a password account. Emails are unique, case-insensitively."""
        if await self.get_by_email(email):
            raise ConflictError("Email already registered")

        user = User(
            email=normalize_email(email),
            name=name,
            password_hash=hash_password(password),
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def get_or_create_by_email(
        self,
        email: str,
        name: Optional[str] = None,
        image: Optional[str] = None,
    ) -> User:
        """Find the user for an externally verified email, creating it once."""
        user = await self.get_by_email(email)
        if user:
            return user

        user = User(email=normalize_email(email), name=name, image=image)
        self.db.add(user)
        await self.db.flush()
        return user

    # ─── Nickname ───────────────────────────────────────

    async def get_nickname(self, user_id: str) -> Optional[str]:
        user = await self.get(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user.name or None

    async def set_nickname(self, user_id: str, nickname: str) -> User:
        trimmed = validate_nickname(nickname)
        user = await self.get(user_id)
        if not user:
            raise NotFoundError("User", user_id)

        user.name = trimmed
        await self.db.flush()
        return user
