"""
LoveAlbum Backend — Application Package Initializer
===================================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn (`app.main:app`), Alembic, pytest and the seed command.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← albums, uploads, auth, analytics
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database + File Storage + Cache   │  ← async sessions, disk, TTL map
    └─────────────────────────────────────┘

    Routes never touch the database directly; every read and write goes
    through a service so it can be unit-tested with a mocked session.
"""

__version__ = "1.0.0"
