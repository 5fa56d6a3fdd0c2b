"""
LoveAlbum Backend — ORM Models Package

Importing this package registers every table on Base.metadata
(used by Alembic autogenerate and create_tables()).
"""

from app.models.admin import Admin
from app.models.album import Album
from app.models.analytics import AlbumAnalytics
from app.models.category import Category, category_albums
from app.models.note import Note

__all__ = [
    "Admin",
    "Album",
    "AlbumAnalytics",
    "Category",
    "Note",
    "category_albums",
]
