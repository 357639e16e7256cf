"""
Data models for the adaptive scoring system.
"""

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from adaptive_scoring.constants import CATEGORY_PERSONALIZED_FALLBACK


def article_id_from_url(url: str) -> str:
    """Derive the stable article id from its source URL (SHA-256 hex digest)."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


@dataclass
class Article:
    """One ingested content item and its scoring state."""
    url: str
    title: str
    id: str = ""
    summary: str = ""
    content: str = ""
    source_name: str = ""
    author: str = ""
    published_at: Optional[int] = None
    discovered_at: int = 0
    # None = unrated, True = relevant, False = not relevant
    relevant: Optional[bool] = None
    rated_at: Optional[int] = None
    ai_score: Optional[int] = None
    ai_summary: str = ""
    ai_category: str = ""
    topic_filtered: bool = False
    topic_filtered_at: Optional[int] = None
    # Transient: set on the returned copy when a scoring run is abandoned
    scoring_error: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            self.id = article_id_from_url(self.url)

    def prompt_text(self, limit: Optional[int] = None) -> str:
        """The best available body text for prompts."""
        text = self.content or self.summary or ""
        if limit is not None and len(text) > limit:
            return text[:limit] + "..."
        return text


@dataclass
class Profile:
    """The single persisted record of the user's content preferences."""
    likes: List[str]
    dislikes: List[str]
    changelog: str
    created_at: int
    last_updated: int


# Profile evolution modes


@dataclass(frozen=True)
class CreateNew:
    """Derive a profile from scratch."""


@dataclass(frozen=True)
class Evolve:
    """Refine an existing profile instead of replacing it."""
    existing_profile: Profile


EvolutionMode = Union[CreateNew, Evolve]


def evolution_mode_for(existing_profile: Optional[Profile]) -> EvolutionMode:
    if existing_profile is None:
        return CreateNew()
    return Evolve(existing_profile)


@dataclass
class FeedbackSet:
    """Rated articles partitioned by the user's verdict."""
    relevant: List[Article] = field(default_factory=list)
    not_relevant: List[Article] = field(default_factory=list)

    @property
    def relevant_count(self) -> int:
        return len(self.relevant)

    @property
    def not_relevant_count(self) -> int:
        return len(self.not_relevant)


# Component-level failures, reported as values rather than raised


@dataclass
class ProfileGenerationFailed:
    attempts: int
    last_error: str


@dataclass
class TopicGateFailed:
    attempts: int
    last_error: str


@dataclass
class ScorerFailed:
    attempts: int
    last_error: str


@dataclass
class TopicDecision:
    """Outcome of the topic gate for one article."""
    relevant: bool
    attempts: int
    ambiguous: bool = False


@dataclass
class ArticleScore:
    """Outcome of preference scoring for one article."""
    score: int
    summary: str
    reasoning: str
    category: str
    attempts: int

    @property
    def is_fallback(self) -> bool:
        return self.category == CATEGORY_PERSONALIZED_FALLBACK


# Workflow outcomes


class LearningStatus(Enum):
    SAVED = "saved"
    INSUFFICIENT_DATA = "insufficient_data"
    FAILED = "failed"


class LearningFailure(Enum):
    FEEDBACK_COLLECTION_FAILED = "feedback_collection_failed"
    PROFILE_GENERATION_FAILED = "profile_generation_failed"
    PROFILE_SAVE_FAILED = "profile_save_failed"
    LEARNING_IN_PROGRESS = "learning_in_progress"


@dataclass
class LearningResult:
    """What a learner run reports back to its caller."""
    status: LearningStatus
    detail: str
    failure: Optional[LearningFailure] = None
    profile: Optional[Profile] = None
    relevant_count: int = 0
    not_relevant_count: int = 0
    attempts: int = 0
    error_count: int = 0


class ScoringOutcome(Enum):
    NO_PROFILE = "no_profile"
    ALREADY_FILTERED = "already_filtered"
    TOPIC_FILTERED = "topic_filtered"
    SCORED = "scored"
    FALLBACK_SCORED = "fallback_scored"
    ABORTED = "aborted"


@dataclass
class ScoringResult:
    """The article after a scoring run, plus how the run ended."""
    article: Article
    outcome: ScoringOutcome
    error_count: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class ThresholdStatus:
    """Whether enough ratings exist to build a profile, and what is missing."""
    threshold_met: bool
    relevant_count: int
    not_relevant_count: int
    message: str


@dataclass
class BatchResult:
    processed: int
    failed: int = 0
    outcomes: dict = field(default_factory=dict)
