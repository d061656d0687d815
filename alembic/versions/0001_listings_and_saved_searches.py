"""Listings corpus and saved searches with match checkpoints.

Revision ID: 0001
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "listings",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("brand", sa.String(50), index=True),
        sa.Column("model", sa.String(100)),
        sa.Column("price", sa.Float()),
        sa.Column("year", sa.Integer()),
        sa.Column("mileage", sa.Integer()),
        sa.Column("fuel_type", sa.String(30)),
        sa.Column("transmission", sa.String(30)),
        sa.Column("location", sa.String(100)),
        sa.Column("condition", sa.String(10)),
        sa.Column("is_active", sa.Boolean(), default=True),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_listing_active_price", "listings", ["is_active", "price"])

    op.create_table(
        "saved_searches",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False, index=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("filters", sa.JSON(), nullable=False),
        sa.Column("filters_version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("alert_enabled", sa.Boolean(), default=True),
        sa.Column("alert_frequency", sa.String(10), server_default="daily"),
        sa.Column("known_listing_ids", sa.JSON()),
        sa.Column("pending_digest_ids", sa.JSON()),
        sa.Column("total_matches", sa.Integer(), server_default="0"),
        sa.Column("new_matches_count", sa.Integer(), server_default="0"),
        sa.Column("last_checked", sa.DateTime(), nullable=False),
        sa.Column("last_notified_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.Column("revision", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_saved_search_alerting", "saved_searches", ["alert_enabled", "alert_frequency"])


def downgrade() -> None:
    op.drop_index("ix_saved_search_alerting", table_name="saved_searches")
    op.drop_table("saved_searches")
    op.drop_index("ix_listing_active_price", table_name="listings")
    op.drop_table("listings")
