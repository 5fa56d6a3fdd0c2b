"""
LoveAlbum Backend — Admin Route Handlers
=========================================

What:  Admin session (login / verify / logout) and album management
       (list everything, toggle visibility, cascade delete).
Who:   The admin panel.

Session cookie:
    POST /api/admin/login sets `adminToken` (httpOnly, SameSite=lax,
    max-age JWT_EXPIRE_HOURS, path /). Every other admin endpoint reads it
    through the require_admin dependency. Responses under /api/admin are
    marked no-store by NoCacheMiddleware.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.dependencies import require_admin
from app.exceptions import ValidationError
from app.models.admin import Admin
from app.schemas.album import AdminAlbumListResponse, AlbumResponse, VisibilityUpdate
from app.schemas.auth import AdminInfo, LoginRequest, LoginResponse, VerifyResponse
from app.schemas.common import ErrorResponse, SuccessResponse
from app.services.album_service import album_service
from app.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

_AUTH_RESPONSES = {401: {"description": "Admin session required", "model": ErrorResponse}}


# ── Session ───────────────────────────────────────────────────────────────

@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing account or password", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Admin login",
    description="Checks the credentials and sets the httpOnly session cookie.",
)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    result = await auth_service.login(db, credentials.admin_account, credentials.password)
    response.set_cookie(
        key=settings.admin_cookie_name,
        value=result.token,
        max_age=settings.jwt_expire_hours * 3600,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return LoginResponse(admin=AdminInfo.model_validate(result.admin))


@router.get(
    "/verify",
    response_model=VerifyResponse,
    responses=_AUTH_RESPONSES,
    summary="Verify the admin session",
)
async def verify(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> VerifyResponse:
    admin = await auth_service.verify(db, request.cookies.get(settings.admin_cookie_name))
    return VerifyResponse(admin=AdminInfo.model_validate(admin))


@router.post("/logout", response_model=SuccessResponse, summary="Clear the admin session cookie")
async def logout(response: Response) -> SuccessResponse:
    response.delete_cookie(
        key=settings.admin_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return SuccessResponse(message="Logged out")


# ── Album Management ──────────────────────────────────────────────────────

@router.get(
    "/albums",
    response_model=AdminAlbumListResponse,
    responses=_AUTH_RESPONSES,
    summary="List all albums (admin)",
    description="Includes private albums. Search also matches the creating admin.",
)
async def list_albums(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=100, ge=1, le=500),
    search: Optional[str] = Query(default=None, max_length=200),
    is_public: Optional[bool] = Query(default=None),
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminAlbumListResponse:
    result = await album_service.list_all_albums(
        db=db,
        page=page,
        limit=limit,
        search=search,
        is_public=is_public,
    )
    return AdminAlbumListResponse(albums=result.albums, pagination=result.pagination)


@router.put(
    "/albums",
    response_model=AlbumResponse,
    responses={**_AUTH_RESPONSES, 404: {"description": "Album not found", "model": ErrorResponse}},
    summary="Set album visibility",
)
async def set_visibility(
    body: VisibilityUpdate,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AlbumResponse:
    return await album_service.set_visibility(db=db, album_id=body.album_id, is_public=body.is_public)


@router.delete(
    "/albums",
    response_model=SuccessResponse,
    responses={
        **_AUTH_RESPONSES,
        400: {"description": "Missing or malformed album id", "model": ErrorResponse},
        404: {"description": "Album not found", "model": ErrorResponse},
    },
    summary="Delete an album and its related data",
)
async def delete_album(
    id: Optional[str] = Query(default=None, description="Album id"),
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    if not id:
        raise ValidationError(message="Album ID is required", field="id")
    try:
        album_id = uuid.UUID(id)
    except ValueError:
        raise ValidationError(message="Album ID is not valid", field="id", context={"id": id})

    await album_service.admin_delete_album(db=db, album_id=album_id)
    logger.info("Admin '%s' deleted album %s", admin.admin_account, album_id)
    return SuccessResponse(message="Album and related data deleted successfully")
