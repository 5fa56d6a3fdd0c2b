"""
LoveAlbum Backend — Analytics SQLAlchemy Model
===============================================

What:  One row of counters per album per UTC day (`album_analytics` table).
Who:   Written by AnalyticsService.track_event(), read by get_analytics().

The (album_id, date) pair is unique: tracking an event finds today's row
or creates it, then increments one counter.
"""

import uuid
import datetime as dt
from typing import Dict

from sqlalchemy import Date, ForeignKey, Index, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.types import JSONType


class AlbumAnalytics(Base):
    __tablename__ = "album_analytics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    album_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("albums.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unique_views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # seconds
    # {"<photo index>": count}
    photo_views: Mapped[Dict[str, int]] = mapped_column(JSONType, nullable=False, default=dict)
    music_plays: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    note_views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    share_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("album_id", "date", name="uq_album_analytics_album_date"),
        Index("idx_album_analytics_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<AlbumAnalytics(album_id={self.album_id}, date={self.date}, views={self.views})>"
