"""Shared fixtures for the adaptive scoring tests."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine

from adaptive_scoring import db_engine
from adaptive_scoring.context import WorkflowContext
from adaptive_scoring.models import Article, Profile
from adaptive_scoring.orm_models import Base
from llm.llm_util import ModelTier

FIXED_NOW = 1_700_000_000


class FakeInference:
    """Inference client that replays scripted responses per tier.

    A scripted item that is an exception instance is raised instead of
    returned.
    """

    def __init__(self, cheap=(), capable=()):
        self.scripts = {ModelTier.CHEAP: list(cheap), ModelTier.CAPABLE: list(capable)}
        self.calls = []

    def complete(self, tier, prompt):
        self.calls.append((tier, prompt))
        script = self.scripts[tier]
        if not script:
            raise AssertionError(f"Unexpected {tier.value} inference call")
        item = script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def prompts(self, tier):
        return [prompt for call_tier, prompt in self.calls if call_tier is tier]

    def count(self, tier):
        return len(self.prompts(tier))


class FakeProfileStore:
    def __init__(self, profile=None, get_errors=(), put_errors=()):
        self.profile = profile
        self.get_errors = list(get_errors)
        self.put_errors = list(put_errors)
        self.puts = []

    def get(self):
        if self.get_errors:
            raise self.get_errors.pop(0)
        return self.profile

    def put(self, profile):
        if self.put_errors:
            raise self.put_errors.pop(0)
        self.puts.append(profile)
        self.profile = profile
        return profile


class FakeArticleStore:
    def __init__(self, update_errors=()):
        self.update_errors = list(update_errors)
        self.updates = []

    def get(self, article_id):
        return None

    def update(self, article_id, **fields):
        if self.update_errors:
            raise self.update_errors.pop(0)
        self.updates.append((article_id, fields))


class FakeFeedbackSource:
    def __init__(self, articles=(), error=None):
        self.articles = list(articles)
        self.error = error

    def query_rated(self):
        if self.error is not None:
            raise self.error
        return list(self.articles)


@pytest.fixture
def temp_db():
    """Create a temporary in-memory database for testing."""
    test_engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(test_engine)
    db_engine.set_engine(test_engine)
    yield test_engine
    db_engine.reset_engine()


@pytest.fixture
def fixed_now():
    """The clock reading every faked context reports."""
    return FIXED_NOW


@pytest.fixture
def make_context():
    """Build a WorkflowContext wired to in-memory fakes."""

    def _make(cheap=(), capable=(), profile=None, profile_get_errors=(), profile_put_errors=(),
              update_errors=(), rated=(), feedback_error=None, with_article_store=True, now=FIXED_NOW):
        return WorkflowContext(
            inference=FakeInference(cheap=cheap, capable=capable),
            profile_store=FakeProfileStore(profile, profile_get_errors, profile_put_errors),
            article_store=FakeArticleStore(update_errors) if with_article_store else None,
            feedback_source=FakeFeedbackSource(rated, feedback_error),
            clock=lambda: now,
            sleep=MagicMock(),
        )

    return _make


@pytest.fixture
def sample_article():
    return Article(
        url="https://example.com/posts/llm-eval-harness",
        title="Building an evaluation harness for LLM agents",
        summary="A walkthrough of regression testing for agent prompts.",
        content="Full text about building evaluation harnesses for agent workflows.",
        source_name="Example Engineering Blog",
        discovered_at=FIXED_NOW - 3600,
    )


@pytest.fixture
def sample_profile():
    return Profile(
        likes=["hands-on tutorials for developer tools", "evaluation of LLM systems"],
        dislikes=["celebrity gossip", "cryptocurrency price speculation"],
        changelog="Profile created from ratings",
        created_at=FIXED_NOW - 86400,
        last_updated=FIXED_NOW - 86400,
    )


def rated(url, relevant, title=None):
    """A rated article for feeding the learner."""
    return Article(url=url, title=title or url.rsplit("/", 1)[-1], summary=f"Summary of {url}",
                   relevant=relevant, rated_at=FIXED_NOW - 100)


@pytest.fixture
def rated_articles():
    """Factory producing n relevant and m not-relevant rated articles."""

    def _make(n_relevant, n_not_relevant):
        return (
            [rated(f"https://example.com/good/{i}", True, f"Good article {i}") for i in range(n_relevant)]
            + [rated(f"https://example.com/bad/{i}", False, f"Bad article {i}") for i in range(n_not_relevant)]
        )

    return _make
