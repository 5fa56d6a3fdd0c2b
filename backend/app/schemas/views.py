"""
LoveAlbum Backend — Presentational View Schemas
================================================

What:  Payloads for the three viewer screens, shaped so the frontend can
       render them without post-processing:
       - PreviewCard:  the share/preview card at /prevSlug/{slug}
       - Carousel:     the photo carousel at /{slug}
       - Flipbook:     the letter pages at /{slug}/Note
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.album import AlbumSettings


class PreviewCard(BaseModel):
    slug: str
    name: str
    subtitle: str
    template: str
    cover_image: str
    male_avatar: Optional[str] = None
    female_avatar: Optional[str] = None
    day_start: str
    days_together: Optional[int] = Field(
        default=None, description="Whole days since day_start; null when the date is unparseable"
    )
    photo_count: int
    views: int
    likes: int


class CarouselSlide(BaseModel):
    index: int
    url: str
    caption: str = ""


class Carousel(BaseModel):
    slug: str
    name: str
    slides: List[CarouselSlide]
    music: Optional[str] = None
    quote: str = ""
    days_together: Optional[int] = None
    settings: AlbumSettings


class FlipbookPage(BaseModel):
    page: int = Field(description="1-based page number")
    title: str
    lines: List[str]
    date: str


class Flipbook(BaseModel):
    slug: str
    pages: List[FlipbookPage]
    male_avatar: Optional[str] = None
    female_avatar: Optional[str] = None
    music: Optional[str] = None
