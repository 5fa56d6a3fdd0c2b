"""
LoveAlbum Backend — Viewer Screen Routes
=========================================

What:  JSON payloads for the preview card, the photo carousel and the
       flipbook letter pages. None of these count a view.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.views import Carousel, Flipbook, PreviewCard
from app.services.view_service import view_service

router = APIRouter(
    prefix="/api/albums",
    tags=["Viewer"],
    responses={404: {"description": "Album not found", "model": ErrorResponse}},
)


@router.get("/{slug}/preview", response_model=PreviewCard, summary="Album preview card")
async def preview(slug: str, db: AsyncSession = Depends(get_db_session)) -> PreviewCard:
    return await view_service.preview(db, slug)


@router.get("/{slug}/carousel", response_model=Carousel, summary="Photo carousel slides")
async def carousel(slug: str, db: AsyncSession = Depends(get_db_session)) -> Carousel:
    return await view_service.carousel(db, slug)


@router.get("/{slug}/letters", response_model=Flipbook, summary="Flipbook letter pages")
async def letters(slug: str, db: AsyncSession = Depends(get_db_session)) -> Flipbook:
    return await view_service.flipbook(db, slug)
