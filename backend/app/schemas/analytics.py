"""
LoveAlbum Backend — Analytics Schemas
======================================

What:  Event tracking body and the daily/aggregate analytics responses.

Event types and the counter each one increments:
    view          → views
    unique_view   → unique_views
    time_spent    → time_spent += data.duration (seconds)
    photo_view    → photo_views[data.photo_index]
    music_play    → music_plays
    note_view     → note_views
    share         → share_count
"""

import uuid
import datetime as dt
from typing import Any, Dict, List

from pydantic import BaseModel, Field

EVENT_TYPES = (
    "view",
    "unique_view",
    "time_spent",
    "photo_view",
    "music_play",
    "note_view",
    "share",
)


class AnalyticsEvent(BaseModel):
    album: str = Field(default="", description="Album slug")
    event_type: str = Field(default="", description=f"One of: {', '.join(EVENT_TYPES)}")
    data: Dict[str, Any] = Field(default_factory=dict, description="Event payload")


class DailyAnalytics(BaseModel):
    id: uuid.UUID
    album_id: uuid.UUID
    date: dt.date
    views: int
    unique_views: int
    time_spent: int
    photo_views: Dict[str, int]
    music_plays: int
    note_views: int
    share_count: int

    model_config = {"from_attributes": True}


class AggregatedAnalytics(BaseModel):
    total_views: int = 0
    total_unique_views: int = 0
    total_time_spent: int = 0
    total_music_plays: int = 0
    total_note_views: int = 0
    total_shares: int = 0
    photo_views: Dict[str, int] = Field(default_factory=dict)


class AnalyticsResponse(BaseModel):
    analytics: List[DailyAnalytics]
    aggregated: AggregatedAnalytics
