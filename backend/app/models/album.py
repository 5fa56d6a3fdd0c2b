"""
LoveAlbum Backend — Album SQLAlchemy Model
===========================================

What:  ORM model representing the `albums` table.
Who:   Used by AlbumService for CRUD, by ViewService for presentational
       payloads and by Alembic for schema management.

Table Design:
    - UUID primary key; `slug` is the public identifier (unique index)
    - Media fields hold URL paths ("/uploads/<kind>/<file>"), never bytes
    - photos / messages / letter_notes / tags / settings are JSON documents:
      they are always read and written as a whole with the album
    - views / likes are counters updated with atomic UPDATE ... + 1
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.types import JSONType, utcnow

TEMPLATES = ("template1", "template2", "template3", "template4")

DEFAULT_SETTINGS: Dict[str, bool] = {
    "auto_play": True,
    "show_counter": True,
    "allow_comments": True,
}


class Album(Base):
    """
    A published love album.

    Lifecycle:
        1. Created by an admin (multipart form + uploaded media)
        2. Read by viewers at /{slug} (cached, every read counts a view)
        3. Edited (partial update) or hidden (is_public=False) by an admin
        4. Deleted together with its media files, notes and analytics
    """

    __tablename__ = "albums"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subtitle: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # ISO date string (YYYY-MM-DD) the couple started dating
    day_start: Mapped[str] = mapped_column(String(32), nullable=False)
    template: Mapped[str] = mapped_column(String(32), nullable=False, default="template1")

    cover_image: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    male_avatar: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    female_avatar: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    music: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    photos: Mapped[List[str]] = mapped_column(JSONType, nullable=False, default=list)
    # Photo captions keyed by photo index as a string: {"0": "...", "1": "..."}
    messages: Mapped[Dict[str, str]] = mapped_column(JSONType, nullable=False, default=dict)
    quote: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # [{"title": str, "content": [line, ...], "date": str}, ...]
    letter_notes: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONType, nullable=False, default=list
    )

    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, default="admin")
    tags: Mapped[List[str]] = mapped_column(JSONType, nullable=False, default=list)
    settings: Mapped[Dict[str, bool]] = mapped_column(
        JSONType, nullable=False, default=lambda: dict(DEFAULT_SETTINGS)
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_albums_created_at", "created_at"),
        Index("idx_albums_is_public", "is_public"),
        Index("idx_albums_created_by", "created_by"),
    )

    def media_urls(self) -> List[str]:
        """Every stored media URL referenced by this album (may contain duplicates)."""
        urls = [self.cover_image, self.male_avatar, self.female_avatar, self.music]
        urls.extend(self.photos or [])
        return [u for u in urls if isinstance(u, str) and u]

    def __repr__(self) -> str:
        return f"<Album(slug='{self.slug}', public={self.is_public}, views={self.views})>"
