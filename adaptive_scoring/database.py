"""
Database operations for the adaptive scoring system.

Uses SQLAlchemy ORM for database access. The public API uses dataclass models
from models.py, with conversion to/from ORM models handled internally.
"""

import time
from typing import List, Optional

from sqlalchemy import exists, func, select

from adaptive_scoring.constants import PROFILE_ID
from adaptive_scoring.db_engine import get_engine, get_session
from adaptive_scoring.exceptions import ArticleNotFoundError
from adaptive_scoring.models import Article, Profile
from adaptive_scoring.orm_models import (
    Base,
    ArticleORM,
    ProfileORM,
    UPDATABLE_ARTICLE_FIELDS,
    article_dataclass_to_orm,
    article_orm_to_dataclass,
    profile_orm_to_dataclass,
)


def init_db():
    """Initialize the database schema."""
    engine = get_engine()
    Base.metadata.create_all(engine)


# Articles


def insert_article(article: Article) -> str:
    """Insert a new article into the database.

    Returns the article id.
    """
    discovered_at = article.discovered_at or int(time.time())
    orm = article_dataclass_to_orm(article, discovered_at)

    with get_session() as session:
        session.add(orm)
        session.flush()
        return orm.id


def get_article_by_id(article_id: str) -> Optional[Article]:
    """Get an article by its id."""
    with get_session() as session:
        orm = session.get(ArticleORM, article_id)
        if orm is None:
            return None
        return article_orm_to_dataclass(orm)


def get_article_by_url(url: str) -> Optional[Article]:
    """Get an article by its source URL."""
    with get_session() as session:
        stmt = select(ArticleORM).where(ArticleORM.url == url)
        orm = session.execute(stmt).scalar_one_or_none()
        if orm is None:
            return None
        return article_orm_to_dataclass(orm)


def article_exists(article_id: str) -> bool:
    """Check if an article already exists in the database."""
    with get_session() as session:
        stmt = select(exists().where(ArticleORM.id == article_id))
        return session.execute(stmt).scalar()


def update_article(article_id: str, **fields) -> None:
    """Update scoring/rating fields of an article in place.

    Raises:
        ArticleNotFoundError: if no article has this id.
        ValueError: if a field is not one of the updatable columns.
    """
    unknown = set(fields) - UPDATABLE_ARTICLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update article fields: {sorted(unknown)}")

    with get_session() as session:
        orm = session.get(ArticleORM, article_id)
        if orm is None:
            raise ArticleNotFoundError(article_id)
        for name, value in fields.items():
            setattr(orm, name, value)


def rate_article(article_id: str, relevant: bool) -> None:
    """Record the user's relevant / not-relevant verdict on an article."""
    update_article(article_id, relevant=relevant, rated_at=int(time.time()))


def unrate_article(article_id: str) -> None:
    """Remove the user's rating from an article."""
    update_article(article_id, relevant=None, rated_at=None)


def get_rated_articles() -> List[Article]:
    """Get every article the user has rated, oldest rating first."""
    with get_session() as session:
        stmt = (
            select(ArticleORM)
            .where(ArticleORM.relevant.is_not(None))
            .order_by(ArticleORM.rated_at.asc())
        )
        orms = session.execute(stmt).scalars().all()
        return [article_orm_to_dataclass(orm) for orm in orms]


def count_ratings() -> tuple[int, int]:
    """Count (relevant, not_relevant) ratings."""
    with get_session() as session:
        stmt = (
            select(ArticleORM.relevant, func.count())
            .where(ArticleORM.relevant.is_not(None))
            .group_by(ArticleORM.relevant)
        )
        counts = {relevant: count for relevant, count in session.execute(stmt).all()}
        return counts.get(True, 0), counts.get(False, 0)


def get_articles_for_rerating() -> List[Article]:
    """Get every article that has not been filtered out by the topic gate."""
    with get_session() as session:
        stmt = (
            select(ArticleORM)
            .where(ArticleORM.topic_filtered == False)  # noqa: E712
            .order_by(ArticleORM.discovered_at.asc())
        )
        orms = session.execute(stmt).scalars().all()
        return [article_orm_to_dataclass(orm) for orm in orms]


# Profile


def get_profile() -> Optional[Profile]:
    """Get the user's profile, if one has been created."""
    with get_session() as session:
        orm = session.get(ProfileORM, PROFILE_ID)
        if orm is None:
            return None
        return profile_orm_to_dataclass(orm)


def save_profile(profile: Profile) -> Profile:
    """Write the profile as the single canonical record (full replace).

    The stored created_at is never overwritten once set. Returns the profile
    as stored.
    """
    with get_session() as session:
        orm = session.get(ProfileORM, PROFILE_ID)
        if orm is None:
            orm = ProfileORM(id=PROFILE_ID, created_at=profile.created_at)
            session.add(orm)
        orm.likes = list(profile.likes)
        orm.dislikes = list(profile.dislikes)
        orm.changelog = profile.changelog
        orm.last_updated = profile.last_updated
        session.flush()
        return profile_orm_to_dataclass(orm)


def delete_profile() -> bool:
    """Delete the user's profile.

    Returns True if a profile was deleted, False if none existed.
    """
    with get_session() as session:
        orm = session.get(ProfileORM, PROFILE_ID)
        if orm is None:
            return False
        session.delete(orm)
        return True
