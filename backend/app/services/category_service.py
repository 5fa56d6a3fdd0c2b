"""
LoveAlbum Backend — Category Service
"""

import logging
from typing import List

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError
from app.models.album import Album
from app.models.category import Category, category_albums
from app.schemas.category import CategoryResponse

logger = logging.getLogger(__name__)


class CategoryService:

    async def list_categories(self, db: AsyncSession) -> List[CategoryResponse]:
        """Active categories ordered by sort_order, each with its public album count."""
        album_count = (
            select(func.count(Album.id))
            .select_from(category_albums)
            .join(
                Album,
                and_(Album.id == category_albums.c.album_id, Album.is_public.is_(True)),
            )
            .where(category_albums.c.category_id == Category.id)
            .correlate(Category)
            .scalar_subquery()
        )
        query = (
            select(Category, album_count.label("album_count"))
            .where(Category.is_active.is_(True))
            .order_by(Category.sort_order.asc(), Category.name.asc())
        )

        try:
            result = await db.execute(query)
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error listing categories: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve categories. Please try again.")

        return [
            CategoryResponse(
                id=category.id,
                name=category.name,
                slug=category.slug,
                description=category.description,
                cover_image=category.cover_image,
                sort_order=category.sort_order,
                album_count=count or 0,
            )
            for category, count in rows
        ]


category_service = CategoryService()
