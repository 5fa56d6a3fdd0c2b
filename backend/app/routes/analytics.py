"""
LoveAlbum Backend — Analytics Route Handlers
=============================================

What:  POST /api/analytics records a viewer event; GET /api/analytics
       returns daily rows and totals for the dashboard.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.analytics import AnalyticsEvent, AnalyticsResponse
from app.schemas.common import ErrorResponse, SuccessResponse
from app.services.analytics_service import analytics_service

router = APIRouter(
    prefix="/api",
    tags=["Analytics"],
    responses={
        400: {"description": "Invalid event or date", "model": ErrorResponse},
        404: {"description": "Album not found", "model": ErrorResponse},
    },
)


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Daily analytics with totals",
    description=(
        "Rows are newest first. The date range is applied only when both "
        "start_date and end_date are given (YYYY-MM-DD, inclusive)."
    ),
)
async def get_analytics(
    album: Optional[str] = Query(default=None, description="Album slug"),
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> AnalyticsResponse:
    return await analytics_service.get_analytics(
        db=db,
        album_slug=album,
        start_date=start_date,
        end_date=end_date,
    )


@router.post("/analytics", response_model=SuccessResponse, summary="Track a viewer event")
async def track_event(
    event: AnalyticsEvent,
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await analytics_service.track_event(
        db=db,
        album_slug=event.album,
        event_type=event.event_type,
        data=event.data,
    )
    return SuccessResponse()
