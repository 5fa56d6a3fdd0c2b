"""Create album tables

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  Creates albums, notes, album_analytics, admins, categories and the
       category_albums association table.
How:   List/map album fields are JSONB columns; every child table references
       albums.id with ON DELETE CASCADE.

PostgreSQL only (JSONB, gen_random_uuid). SQLite databases for local runs
and tests are created from the models with `python -m app.seed init-db`.

Rollback: downgrade() drops every table (destructive: all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def _album_fk():
    return sa.Column(
        "album_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("albums.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    # ── albums ────────────────────────────────────────────────────────────
    op.create_table(
        "albums",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("slug", sa.String(255), nullable=False,
                  comment="URL identifier derived from the album name"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("subtitle", sa.String(500), nullable=False, server_default=sa.text("''")),
        sa.Column("day_start", sa.String(32), nullable=False,
                  comment="ISO date the couple started dating"),
        sa.Column("template", sa.String(32), nullable=False,
                  server_default=sa.text("'template1'")),
        sa.Column("cover_image", sa.String(500), nullable=False, server_default=sa.text("''")),
        sa.Column("male_avatar", sa.String(500), nullable=True),
        sa.Column("female_avatar", sa.String(500), nullable=True),
        sa.Column("music", sa.String(500), nullable=True),
        sa.Column("photos", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("messages", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'"),
                  comment="Photo captions keyed by photo index"),
        sa.Column("quote", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("letter_notes", postgresql.JSONB(), nullable=False,
                  server_default=sa.text("'[]'")),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("likes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_by", sa.String(255), nullable=False,
                  server_default=sa.text("'admin'")),
        sa.Column("tags", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("settings", postgresql.JSONB(), nullable=False, server_default=sa.text(
            """'{"auto_play": true, "show_counter": true, "allow_comments": true}'"""
        )),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("idx_albums_created_at", "albums", [sa.text("created_at DESC")])
    op.create_index("idx_albums_is_public", "albums", ["is_public"])
    op.create_index("idx_albums_created_by", "albums", ["created_by"])

    # ── notes ─────────────────────────────────────────────────────────────
    op.create_table(
        "notes",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False,
                  server_default=sa.text("gen_random_uuid()")),
        _album_fk(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("date", sa.String(64), nullable=False, server_default=sa.text("''")),
        sa.Column("author", sa.String(255), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("likes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_notes_album_id", "notes", ["album_id"])
    op.create_index("idx_notes_created_at", "notes", [sa.text("created_at DESC")])

    # ── album_analytics ───────────────────────────────────────────────────
    op.create_table(
        "album_analytics",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False,
                  server_default=sa.text("gen_random_uuid()")),
        _album_fk(),
        sa.Column("date", sa.Date(), nullable=False, comment="UTC day"),
        sa.Column("views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("unique_views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("time_spent", sa.Integer(), nullable=False, server_default=sa.text("0"),
                  comment="Seconds"),
        sa.Column("photo_views", postgresql.JSONB(), nullable=False,
                  server_default=sa.text("'{}'")),
        sa.Column("music_plays", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("note_views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("share_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("album_id", "date", name="uq_album_analytics_album_date"),
    )
    op.create_index("idx_album_analytics_date", "album_analytics", ["date"])

    # ── admins ────────────────────────────────────────────────────────────
    op.create_table(
        "admins",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("admin_account", sa.String(255), nullable=False),
        sa.Column("hash_password", sa.String(255), nullable=False, comment="bcrypt hash"),
        *_timestamps(),
        sa.Column("last_login", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("admin_account"),
    )

    # ── categories ────────────────────────────────────────────────────────
    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("cover_image", sa.String(500), nullable=False, server_default=sa.text("''")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    op.create_table(
        "category_albums",
        sa.Column("category_id", postgresql.UUID(as_uuid=True),
                  sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False),
        _album_fk(),
        sa.PrimaryKeyConstraint("category_id", "album_id"),
    )


def downgrade() -> None:
    """Drops every table. Destructive: all album data is lost."""
    op.drop_table("category_albums")
    op.drop_table("categories")
    op.drop_table("admins")
    op.drop_index("idx_album_analytics_date", table_name="album_analytics")
    op.drop_table("album_analytics")
    op.drop_index("idx_notes_created_at", table_name="notes")
    op.drop_index("idx_notes_album_id", table_name="notes")
    op.drop_table("notes")
    op.drop_index("idx_albums_created_by", table_name="albums")
    op.drop_index("idx_albums_is_public", table_name="albums")
    op.drop_index("idx_albums_created_at", table_name="albums")
    op.drop_table("albums")
