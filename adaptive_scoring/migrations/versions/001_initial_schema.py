"""Initial schema for articles and the user profile

Revision ID: 001
Revises:
Create Date: 2026-10-19

For databases already created by init_db, mark this migration as complete
without running it:
    alembic stamp 001
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "articles",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("source_name", sa.Text(), nullable=True),
        sa.Column("author", sa.Text(), nullable=True),
        sa.Column("published_at", sa.Integer(), nullable=True),
        sa.Column("discovered_at", sa.Integer(), nullable=False),
        sa.Column("relevant", sa.Boolean(), nullable=True),
        sa.Column("rated_at", sa.Integer(), nullable=True),
        sa.Column("ai_score", sa.Integer(), nullable=True),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("ai_category", sa.Text(), nullable=True),
        sa.Column("topic_filtered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("topic_filtered_at", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("url"),
    )
    op.create_index("idx_articles_relevant", "articles", ["relevant"])
    op.create_index("idx_articles_topic_filtered", "articles", ["topic_filtered"])
    op.create_index("idx_articles_discovered_at", "articles", ["discovered_at"])

    # Likes and dislikes are JSON-encoded lists of strings
    op.create_table(
        "profiles",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("likes", sa.Text(), nullable=False),
        sa.Column("dislikes", sa.Text(), nullable=False),
        sa.Column("changelog", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("last_updated", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("profiles")
    op.drop_index("idx_articles_discovered_at", table_name="articles")
    op.drop_index("idx_articles_topic_filtered", table_name="articles")
    op.drop_index("idx_articles_relevant", table_name="articles")
    op.drop_table("articles")
