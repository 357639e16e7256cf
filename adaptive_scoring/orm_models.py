"""
SQLAlchemy ORM models for the adaptive scoring system.

These models are internal to the database layer. The public interface
uses the dataclass models from models.py.
"""

import json
from typing import List, Optional

from sqlalchemy import Boolean, Index, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from adaptive_scoring.models import Article, Profile


class JSONEncodedList(TypeDecorator):
    """Represents a list as a JSON-encoded string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[List], dialect) -> Optional[str]:
        if value is None:
            return None
        return json.dumps(value)

    def process_result_value(self, value: Optional[str], dialect) -> List:
        if value is None:
            return []
        return json.loads(value)


class Base(DeclarativeBase):
    pass


class ArticleORM(Base):
    """SQLAlchemy model for articles table."""

    __tablename__ = "articles"

    # SHA-256 of the article URL
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    author: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    published_at: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    discovered_at: Mapped[int] = mapped_column(Integer, nullable=False)
    # NULL = unrated
    relevant: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    rated_at: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    ai_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    ai_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_category: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    topic_filtered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    topic_filtered_at: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("idx_articles_relevant", "relevant"),
        Index("idx_articles_topic_filtered", "topic_filtered"),
        Index("idx_articles_discovered_at", "discovered_at"),
    )


class ProfileORM(Base):
    """SQLAlchemy model for profiles table (a single row keyed by PROFILE_ID)."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    likes: Mapped[List[str]] = mapped_column(JSONEncodedList, nullable=False)
    dislikes: Mapped[List[str]] = mapped_column(JSONEncodedList, nullable=False)
    changelog: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)
    last_updated: Mapped[int] = mapped_column(Integer, nullable=False)


# Conversion functions between ORM models and dataclasses

# Columns the scorer and the rating actions are allowed to change in place
UPDATABLE_ARTICLE_FIELDS = frozenset({
    "relevant",
    "rated_at",
    "ai_score",
    "ai_summary",
    "ai_category",
    "topic_filtered",
    "topic_filtered_at",
})


def article_orm_to_dataclass(orm: ArticleORM) -> Article:
    """Convert an ArticleORM instance to an Article dataclass."""
    return Article(
        id=orm.id,
        url=orm.url,
        title=orm.title,
        summary=orm.summary or "",
        content=orm.content or "",
        source_name=orm.source_name or "",
        author=orm.author or "",
        published_at=orm.published_at,
        discovered_at=orm.discovered_at,
        relevant=orm.relevant,
        rated_at=orm.rated_at,
        ai_score=orm.ai_score,
        ai_summary=orm.ai_summary or "",
        ai_category=orm.ai_category or "",
        topic_filtered=bool(orm.topic_filtered),
        topic_filtered_at=orm.topic_filtered_at,
    )


def article_dataclass_to_orm(article: Article, discovered_at: int) -> ArticleORM:
    """Convert an Article dataclass to an ArticleORM instance."""
    return ArticleORM(
        id=article.id,
        url=article.url,
        title=article.title,
        summary=article.summary or None,
        content=article.content or None,
        source_name=article.source_name or None,
        author=article.author or None,
        published_at=article.published_at,
        discovered_at=discovered_at,
        relevant=article.relevant,
        rated_at=article.rated_at,
        ai_score=article.ai_score,
        ai_summary=article.ai_summary or None,
        ai_category=article.ai_category or None,
        topic_filtered=article.topic_filtered,
        topic_filtered_at=article.topic_filtered_at,
    )


def profile_orm_to_dataclass(orm: ProfileORM) -> Profile:
    """Convert a ProfileORM instance to a Profile dataclass."""
    return Profile(
        likes=list(orm.likes or []),
        dislikes=list(orm.dislikes or []),
        changelog=orm.changelog or "",
        created_at=orm.created_at,
        last_updated=orm.last_updated,
    )
