"""Create catalog and user tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), unique=True, nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), unique=True, nullable=False),
        sa.Column("slug", sa.String(100), unique=True, nullable=False),
    )
    op.create_table(
        "banks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), unique=True, nullable=False),
        sa.Column("slug", sa.String(100), unique=True, nullable=False),
        sa.Column("logo_url", sa.String(500), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
    )
    op.create_table(
        "cards",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(200), unique=True, nullable=False),
        sa.Column("bank_id", sa.Integer, sa.ForeignKey("banks.id"), nullable=False, index=True),
        sa.Column(
            "category_id", sa.Integer, sa.ForeignKey("categories.id"), nullable=False, index=True
        ),
        sa.Column("annual_fee", sa.String(50), nullable=False),
        sa.Column("intro_apr", sa.String(100), nullable=True),
        sa.Column("regular_apr", sa.String(100), nullable=True),
        sa.Column("rewards_description", sa.Text, nullable=True),
        sa.Column("rating", sa.String(10), nullable=True),
        sa.Column("featured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("card_color_from", sa.String(20), server_default="#0F4C81"),
        sa.Column("card_color_to", sa.String(20), server_default="#0F4C81"),
        sa.Column("content_html", sa.Text, nullable=True),
        sa.Column("youtube_video_id", sa.String(50), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("apply_link", sa.String(500), nullable=True),
        sa.Column(
            "publish_date",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_table(
        "articles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("slug", sa.String(300), unique=True, nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("content_html", sa.Text, nullable=True),
        sa.Column("excerpt", sa.Text, nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("publish_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("youtube_video_id", sa.String(50), nullable=True),
    )
    op.create_table(
        "calculators",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(100), unique=True, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("icon_name", sa.String(50), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("calculators")
    op.drop_table("articles")
    op.drop_table("cards")
    op.drop_table("banks")
    op.drop_table("categories")
    op.drop_table("users")
