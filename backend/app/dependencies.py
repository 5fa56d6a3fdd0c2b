"""
LoveAlbum Backend — Shared FastAPI Dependencies
================================================

What:  The admin-session guard used by every mutating album endpoint,
       the admin endpoints and the upload endpoint.

Usage:
    @router.post("/albums")
    async def create_album(admin: Admin = Depends(require_admin), ...):
        ...
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.models.admin import Admin
from app.services.auth_service import auth_service


async def require_admin(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Admin:
    """
    Resolves the `adminToken` cookie to an admin.

    Raises:
        AuthenticationError (401) when the cookie is missing or invalid.
    """
    token = request.cookies.get(settings.admin_cookie_name)
    return await auth_service.verify(db, token)
