"""Create the villagers schema

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates postal_areas, villages, users, stories, photos, foods and
       specialties with their unique constraints and created_at indexes.

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _approved() -> sa.Column:
    return sa.Column("approved", sa.Boolean(), server_default=sa.text("true"), nullable=False)


def _village_fk() -> sa.Column:
    return sa.Column("village_id", sa.Uuid(), sa.ForeignKey("villages.id"), nullable=False)


def upgrade() -> None:
    # ── Geography ─────────────────────────────────────────────────────────
    op.create_table(
        "postal_areas",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(6), nullable=False, comment="6-digit Indian postal code"),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("district", sa.String(100), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "villages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("postal_area_id", sa.Uuid(), sa.ForeignKey("postal_areas.id"), nullable=False),
        _approved(),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        # Materialization inserts with ON CONFLICT (name, postal_area_id) DO NOTHING
        sa.UniqueConstraint("name", "postal_area_id", name="uq_villages_name_postal_area"),
    )
    op.create_index("ix_villages_postal_area_id", "villages", ["postal_area_id"])

    # ── Users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # ── Content ───────────────────────────────────────────────────────────
    op.create_table(
        "stories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("original_text", sa.Text(), nullable=False),
        sa.Column("original_lang", sa.String(16), server_default=sa.text("'en'"), nullable=False),
        _village_fk(),
        sa.Column("author_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        _approved(),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "photos",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=False, comment="data:<mime>;base64,<payload>"),
        _village_fk(),
        _approved(),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "foods",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("ingredients", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        _village_fk(),
        _approved(),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "village_id", name="uq_foods_name_village"),
    )

    op.create_table(
        "specialties",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        _village_fk(),
        _approved(),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("title", "village_id", name="uq_specialties_title_village"),
    )

    # ── Indexes ───────────────────────────────────────────────────────────
    op.create_index("ix_stories_author_id", "stories", ["author_id"])
    for table in ("stories", "photos", "foods", "specialties"):
        op.create_index(f"ix_{table}_village_id", table, ["village_id"])
        # Every listing is ORDER BY created_at DESC
        op.create_index(f"idx_{table}_created_at", table, ["created_at"])


def downgrade() -> None:
    """Drop every table, children first."""
    for table in ("stories", "photos", "foods", "specialties"):
        op.drop_index(f"idx_{table}_created_at", table_name=table)
        op.drop_index(f"ix_{table}_village_id", table_name=table)
    op.drop_index("ix_stories_author_id", table_name="stories")
    op.drop_index("ix_villages_postal_area_id", table_name="villages")
    for table in ("stories", "photos", "foods", "specialties", "users", "villages", "postal_areas"):
        op.drop_table(table)
