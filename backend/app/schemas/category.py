"""
LoveAlbum Backend — Category Schemas
"""

import uuid

from pydantic import BaseModel


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: str
    cover_image: str
    sort_order: int
    album_count: int
