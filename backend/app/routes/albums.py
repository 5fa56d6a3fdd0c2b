"""
LoveAlbum Backend — Album Route Handlers
=========================================

What:  Public album listing and lookup; admin-only create, update, delete.
How:   Extracts query/form/body data, delegates to AlbumService.
Who:   The gallery page (listing), the album viewer (lookup) and the admin
       panel (mutations).

Caching:
    GET /api/albums/{slug} is served through the in-process album cache
    and counts one view per request.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_admin
from app.models.admin import Admin
from app.schemas.album import (
    AlbumCreatedResponse,
    AlbumCreateForm,
    AlbumListResponse,
    AlbumResponse,
    AlbumUpdate,
)
from app.schemas.common import ErrorResponse, SuccessResponse
from app.schemas.upload import IncomingFile
from app.services.album_service import album_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Albums"])


async def _read_upload(upload: Optional[UploadFile]) -> Optional[IncomingFile]:
    if upload is None:
        return None
    content = await upload.read()
    return IncomingFile(filename=upload.filename or "", content=content)


@router.get(
    "/albums",
    response_model=AlbumListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List public albums",
    description=(
        "Returns public albums, newest first, with offset pagination. "
        "Optionally restricted to one category (by slug) and filtered by a "
        "case-insensitive search over name, subtitle and tags."
    ),
)
async def list_albums(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=10, ge=1, le=100, description="Albums per page"),
    category: Optional[str] = Query(default=None, description="Category slug"),
    search: Optional[str] = Query(default=None, max_length=200),
    db: AsyncSession = Depends(get_db_session),
) -> AlbumListResponse:
    return await album_service.list_public_albums(
        db=db,
        page=page,
        limit=limit,
        category=category,
        search=search,
    )


@router.post(
    "/albums",
    status_code=201,
    response_model=AlbumCreatedResponse,
    responses={
        400: {"description": "Missing fields or invalid media", "model": ErrorResponse},
        401: {"description": "Admin session required", "model": ErrorResponse},
        409: {"description": "An album with this name already exists", "model": ErrorResponse},
    },
    summary="Create an album",
    description=(
        "Multipart form: album fields plus the two avatars, one or more photos "
        "(each with an optional caption in `photo_notes`, same order) and an "
        "optional music file. A music file uploaded beforehand through the "
        "chunked upload endpoint can be referenced with `music_url` instead."
    ),
)
async def create_album(
    name: str = Form(default=""),
    day_start: str = Form(default="", description="Start date, YYYY-MM-DD"),
    subtitle: str = Form(default=""),
    template: str = Form(default="template1"),
    quote: str = Form(default=""),
    letter_notes: str = Form(default="[]", description="JSON list of {title, content, date}"),
    music_url: str = Form(default=""),
    photo_notes: List[str] = Form(default=[]),
    male_photo: Optional[UploadFile] = File(default=None),
    female_photo: Optional[UploadFile] = File(default=None),
    music: Optional[UploadFile] = File(default=None),
    photos: List[UploadFile] = File(default=[]),
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AlbumCreatedResponse:
    form = AlbumCreateForm(
        name=name,
        day_start=day_start,
        subtitle=subtitle,
        template=template,
        quote=quote,
        letter_notes=letter_notes,
        music_url=music_url,
        male_photo=await _read_upload(male_photo),
        female_photo=await _read_upload(female_photo),
        music=await _read_upload(music),
        photos=[await _read_upload(p) for p in photos],
        photo_notes=photo_notes,
    )
    album = await album_service.create_album(db=db, form=form, created_by=admin.admin_account)
    return AlbumCreatedResponse(album=album)


@router.get(
    "/albums/{slug}",
    response_model=AlbumResponse,
    responses={404: {"description": "Album not found", "model": ErrorResponse}},
    summary="Get an album by slug",
    description="Returns one album and counts a view.",
)
async def get_album(
    slug: str,
    db: AsyncSession = Depends(get_db_session),
) -> AlbumResponse:
    return await album_service.get_album(db=db, slug=slug)


@router.put(
    "/albums/{slug}",
    response_model=AlbumResponse,
    responses={
        401: {"description": "Admin session required", "model": ErrorResponse},
        404: {"description": "Album not found", "model": ErrorResponse},
    },
    summary="Update an album",
    description="Partial update: only the fields present in the body are changed.",
)
async def update_album(
    slug: str,
    changes: AlbumUpdate,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AlbumResponse:
    return await album_service.update_album(db=db, slug=slug, changes=changes)


@router.delete(
    "/albums/{slug}",
    response_model=SuccessResponse,
    responses={
        401: {"description": "Admin session required", "model": ErrorResponse},
        404: {"description": "Album not found", "model": ErrorResponse},
    },
    summary="Delete an album",
    description="Deletes the album with its notes, analytics and media files.",
)
async def delete_album(
    slug: str,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await album_service.delete_album(db=db, slug=slug)
    return SuccessResponse(message="Album deleted successfully")
