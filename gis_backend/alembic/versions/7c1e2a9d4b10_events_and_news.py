"""events and news

Revision ID: 7c1e2a9d4b10
Revises:
Create Date: 2026-10-19 10:12:40.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "7c1e2a9d4b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=300), nullable=False),
        # naive UTC
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("time", sa.String(length=20), nullable=False, server_default="00:00"),
        sa.Column("location", sa.String(length=300), nullable=True),
        sa.Column("type", sa.String(length=50), nullable=False, server_default="Webinar"),
        sa.Column("participants", sa.String(length=200), nullable=False, server_default="-"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("poster", sa.Text(), nullable=True),
        sa.Column("registration_link", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_events_date", "events", ["date"], unique=False)

    op.create_table(
        "news",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author", sa.String(length=200), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_news_created_at", "news", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_news_created_at", table_name="news")
    op.drop_table("news")
    op.drop_index("ix_events_date", table_name="events")
    op.drop_table("events")
