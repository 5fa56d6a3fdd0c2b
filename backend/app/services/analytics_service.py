"""
LoveAlbum Backend — Analytics Service
======================================

What:  Per-album, per-day interaction counters.
How:   track_event() finds (or creates) the row for the album and the
       current UTC day, then increments the counter for the event type.
       get_analytics() returns the rows plus totals over them.
Who:   Called by the /api/analytics route handlers; the album viewer posts
       events, the admin dashboard reads them.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, LoveAlbumError, ValidationError
from app.models.analytics import AlbumAnalytics
from app.schemas.analytics import (
    EVENT_TYPES,
    AggregatedAnalytics,
    AnalyticsResponse,
    DailyAnalytics,
)
from app.services.album_service import album_service

logger = logging.getLogger(__name__)

# Counter column incremented by 1 for the simple event types
COUNTER_COLUMNS = {
    "view": "views",
    "unique_view": "unique_views",
    "music_play": "music_plays",
    "note_view": "note_views",
    "share": "share_count",
}

# Event names sent by older viewer builds
EVENT_ALIASES = {
    "uniqueView": "unique_view",
    "timeSpent": "time_spent",
    "photoView": "photo_view",
    "musicPlay": "music_play",
    "noteView": "note_view",
}


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _parse_date(value: str, field: str) -> date:
    """Accepts YYYY-MM-DD or a full ISO 8601 timestamp; nothing trailing."""
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(
            message=f"Invalid date '{value}'. Use YYYY-MM-DD.",
            field=field,
            context={field: value},
        )


def _non_negative_int(value: Any, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(message=f"{field} must be an integer", field=field)
    if number < 0:
        raise ValidationError(message=f"{field} must not be negative", field=field)
    return number


class AnalyticsService:

    async def _today_row(self, db: AsyncSession, album_id) -> AlbumAnalytics:
        """Today's row for the album, created with zeroed counters if missing."""
        today = utc_today()
        query = select(AlbumAnalytics).where(
            AlbumAnalytics.album_id == album_id,
            AlbumAnalytics.date == today,
        )
        row = (await db.execute(query)).scalar_one_or_none()
        if row is not None:
            return row

        row = AlbumAnalytics(
            album_id=album_id,
            date=today,
            views=0,
            unique_views=0,
            time_spent=0,
            photo_views={},
            music_plays=0,
            note_views=0,
            share_count=0,
        )
        # A concurrent first event of the day fails on uq_album_analytics_album_date
        db.add(row)
        await db.flush()
        return row

    async def track_event(
        self,
        db: AsyncSession,
        album_slug: str,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Records one viewer interaction.

        Raises:
            ValidationError: missing album/event, unknown event type, bad payload
            NotFoundError:   unknown album
        """
        data = data or {}
        if not album_slug or not event_type:
            raise ValidationError(message="album and event_type are required")

        event_type = EVENT_ALIASES.get(event_type, event_type)
        if event_type not in EVENT_TYPES:
            raise ValidationError(
                message=f"Unknown event type '{event_type}'. Must be one of: {', '.join(EVENT_TYPES)}",
                field="event_type",
            )

        # Payload checks run before any row is created
        duration = 0
        photo_key = None
        if event_type == "time_spent":
            duration = _non_negative_int(data.get("duration", 0), "duration")
        elif event_type == "photo_view":
            if data.get("photo_index") is None:
                raise ValidationError(message="photo_index is required", field="photo_index")
            photo_key = str(_non_negative_int(data["photo_index"], "photo_index"))

        try:
            album_id = await album_service.get_album_id(db, album_slug)
            row = await self._today_row(db, album_id)

            if event_type == "time_spent":
                row.time_spent = row.time_spent + duration
            elif event_type == "photo_view":
                photo_views = dict(row.photo_views or {})
                photo_views[photo_key] = photo_views.get(photo_key, 0) + 1
                row.photo_views = photo_views
            else:
                column = COUNTER_COLUMNS[event_type]
                setattr(row, column, getattr(row, column) + 1)

            await db.flush()
            logger.debug("Tracked %s for album %s", event_type, album_slug)

        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error tracking %s for %s: %s", event_type, album_slug, str(e))
            raise DatabaseError(context={"album": album_slug, "event_type": event_type})

    async def get_analytics(
        self,
        db: AsyncSession,
        album_slug: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> AnalyticsResponse:
        """
        Daily rows (newest first) and their totals.

        The date range applies only when both ends are given; both are
        inclusive. Without an album, rows of every album are returned.
        """
        query = select(AlbumAnalytics)
        if start_date and end_date:
            start = _parse_date(start_date, "start_date")
            end = _parse_date(end_date, "end_date")
            query = query.where(AlbumAnalytics.date >= start, AlbumAnalytics.date <= end)

        try:
            if album_slug:
                album_id = await album_service.get_album_id(db, album_slug)
                query = query.where(AlbumAnalytics.album_id == album_id)

            result = await db.execute(query.order_by(AlbumAnalytics.date.desc()))
            rows: List[AlbumAnalytics] = list(result.scalars().all())

        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error reading analytics: %s", str(e), exc_info=True)
            raise DatabaseError(context={"album": album_slug})

        return AnalyticsResponse(
            analytics=[DailyAnalytics.model_validate(r) for r in rows],
            aggregated=self.aggregate(rows),
        )

    @staticmethod
    def aggregate(rows: List[AlbumAnalytics]) -> AggregatedAnalytics:
        totals = AggregatedAnalytics()
        for row in rows:
            totals.total_views += row.views
            totals.total_unique_views += row.unique_views
            totals.total_time_spent += row.time_spent
            totals.total_music_plays += row.music_plays
            totals.total_note_views += row.note_views
            totals.total_shares += row.share_count
            for index, count in (row.photo_views or {}).items():
                totals.photo_views[index] = totals.photo_views.get(index, 0) + count
        return totals


analytics_service = AnalyticsService()
