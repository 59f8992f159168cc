"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: unlike a router-wide auth dependency, document and nickname routes
declare get_current_identity themselves because they need the identity's
user_id. Health, auth and registration stay open.
"""

from fastapi import APIRouter

from docdesk.api.auth import router as auth_router
from docdesk.api.documents import router as documents_router
from docdesk.api.health import router as health_router
from docdesk.api.user import router as user_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(user_router, tags=["user"])
api_router.include_router(documents_router, tags=["documents"])
