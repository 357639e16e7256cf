"""
Collaborators handed to each workflow run.

The orchestrators never reach for module-level clients; everything they talk
to arrives in a WorkflowContext, so tests can swap in fakes.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from adaptive_scoring import database
from adaptive_scoring.config import Settings, get_gemini_api_key, load_settings
from adaptive_scoring.db_engine import configure_database
from adaptive_scoring.models import Article, Profile
from llm.llm_util import GeminiInferenceClient, ModelTier


class SqlProfileStore:
    """ProfileStore over the profiles table."""

    def get(self) -> Optional[Profile]:
        return database.get_profile()

    def put(self, profile: Profile) -> Profile:
        return database.save_profile(profile)


class SqlArticleStore:
    """Article store over the articles table."""

    def get(self, article_id: str) -> Optional[Article]:
        return database.get_article_by_id(article_id)

    def update(self, article_id: str, **fields) -> None:
        database.update_article(article_id, **fields)


class SqlFeedbackSource:
    """Source of every article the user has rated."""

    def query_rated(self) -> List[Article]:
        return database.get_rated_articles()


@dataclass
class WorkflowContext:
    """
    Dependencies for one orchestrator invocation.

    inference must provide complete(tier, prompt) -> str and raise on
    transport failure. article_store may be None, in which case the scorer
    only returns the updated article without persisting it.
    """
    inference: object
    profile_store: object = field(default_factory=SqlProfileStore)
    article_store: Optional[object] = field(default_factory=SqlArticleStore)
    feedback_source: object = field(default_factory=SqlFeedbackSource)
    clock: Callable[[], float] = time.time
    sleep: Callable[[float], None] = time.sleep

    def now(self) -> int:
        return int(self.clock())


def build_inference_client(settings: Settings) -> GeminiInferenceClient:
    return GeminiInferenceClient(
        api_key=get_gemini_api_key(),
        model_names={
            ModelTier.CHEAP: settings.cheap_model,
            ModelTier.CAPABLE: settings.capable_model,
        },
        timeout_seconds=settings.llm_timeout_seconds,
    )


def build_context(settings: Optional[Settings] = None) -> WorkflowContext:
    """Wire up the production context: SQLite stores and the Gemini client."""
    if settings is None:
        settings = load_settings()
    configure_database(settings.db_path)
    database.init_db()
    return WorkflowContext(inference=build_inference_client(settings))
