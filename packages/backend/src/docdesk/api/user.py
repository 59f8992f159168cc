"""User API — registration and nickname.

- POST /user/register → create a password account (open)
- GET  /user/nickname → current user's nickname
- PUT  /user/nickname → set it (2-20 chars, validated in the service)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docdesk.auth.authority import SessionIdentity
from docdesk.auth.dependencies import get_current_identity
from docdesk.context import get_db
from docdesk.schemas.user import NicknameRead, NicknameUpdate, UserRead, UserRegister
from docdesk.services.user_service import UserService

router = APIRouter(prefix="/user")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: UserRegister, svc: UserService = Depends(_svc)):
    user = await svc.register(body.email, body.password, name=body.name)
    await svc.db.commit()
    return user


@router.get("/nickname", response_model=NicknameRead)
async def get_nickname(
    identity: SessionIdentity = Depends(get_current_identity),
    svc: UserService = Depends(_svc),
):
    return NicknameRead(nickname=await svc.get_nickname(identity.user_id))


@router.put("/nickname")
async def set_nickname(
    body: NicknameUpdate,
    identity: SessionIdentity = Depends(get_current_identity),
    svc: UserService = Depends(_svc),
):
    user = await svc.set_nickname(identity.user_id, body.nickname)
    await svc.db.commit()
    return {"name": user.name}
