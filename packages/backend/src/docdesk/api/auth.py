"""Auth API — the catch-all session authority route.

Learn: GET and POST on /api/auth/{action} share one handler, which hands
the request straight to the session authority. The action path
(providers, session, signin/{provider}, signout) is interpreted there, so
adding a provider never touches routing.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from docdesk.context import get_context, get_db

router = APIRouter(prefix="/auth")


@router.api_route("/{action:path}", methods=["GET", "POST"])
async def auth_handler(
    action: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    return await get_context(request).authority.handle(request, action, db)
