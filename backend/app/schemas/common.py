"""
LoveAlbum Backend — Shared Response Schemas
============================================

What:  Error, pagination and health models used by more than one router.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "album 'our-story' was not found",
            "request_id": "3f2a9c1d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class Pagination(BaseModel):
    """Offset pagination block returned by album listings."""
    page: int = Field(description="1-based page number")
    limit: int = Field(description="Page size")
    total: int = Field(description="Total number of matching items")
    pages: int = Field(description="Total number of pages (ceil(total / limit))")


class SuccessResponse(BaseModel):
    """Acknowledgement for mutations that return no resource."""
    success: bool = True
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    cache: Dict[str, int] = Field(description="Album cache statistics")
    uptime_seconds: float = Field(description="Seconds since service started")
