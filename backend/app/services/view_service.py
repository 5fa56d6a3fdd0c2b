"""
LoveAlbum Backend — Presentational View Service
================================================

What:  Builds the preview card, photo carousel and flipbook payloads.
How:   Reads the album through AlbumService.get_album() with
       count_view=False: the viewer has already counted the visit with
       GET /api/albums/{slug}, so these screens do not count it again.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.schemas.views import (
    Carousel,
    CarouselSlide,
    Flipbook,
    FlipbookPage,
    PreviewCard,
)
from app.services.album_service import album_service, normalize_lines

logger = logging.getLogger(__name__)


def days_together(day_start: str, today: Optional[date] = None) -> Optional[int]:
    """
    Whole days since `day_start` (ISO date or datetime).

    Returns 0 for a date in the future and None when `day_start` does not parse.
    """
    if not day_start:
        return None
    try:
        start = datetime.fromisoformat(day_start.strip().replace("Z", "+00:00")).date()
    except ValueError:
        logger.debug("Unparseable day_start '%s'", day_start)
        return None
    today = today or datetime.now(timezone.utc).date()
    return max((today - start).days, 0)


class ViewService:

    async def preview(self, db: AsyncSession, slug: str) -> PreviewCard:
        album = await album_service.get_album(db, slug, count_view=False)
        return PreviewCard(
            slug=album.slug,
            name=album.name,
            subtitle=album.subtitle,
            template=album.template,
            cover_image=album.cover_image or settings.placeholder_url,
            male_avatar=album.male_avatar,
            female_avatar=album.female_avatar,
            day_start=album.day_start,
            days_together=days_together(album.day_start),
            photo_count=len(album.photos),
            views=album.views,
            likes=album.likes,
        )

    async def carousel(self, db: AsyncSession, slug: str) -> Carousel:
        album = await album_service.get_album(db, slug, count_view=False)
        slides = [
            CarouselSlide(index=i, url=url, caption=album.messages.get(str(i), ""))
            for i, url in enumerate(album.photos)
        ]
        return Carousel(
            slug=album.slug,
            name=album.name,
            slides=slides,
            music=album.music,
            quote=album.quote,
            days_together=days_together(album.day_start),
            settings=album.settings,
        )

    async def flipbook(self, db: AsyncSession, slug: str) -> Flipbook:
        album = await album_service.get_album(db, slug, count_view=False)
        pages = [
            FlipbookPage(
                page=i + 1,
                title=note.title,
                lines=normalize_lines(note.content),
                date=note.date,
            )
            for i, note in enumerate(album.letter_notes)
        ]
        return Flipbook(
            slug=album.slug,
            pages=pages,
            male_avatar=album.male_avatar,
            female_avatar=album.female_avatar,
            music=album.music,
        )


view_service = ViewService()
