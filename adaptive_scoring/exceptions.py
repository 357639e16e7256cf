"""
Exceptions raised by the adaptive scoring system.

Expected outcomes (not enough ratings, no profile, topic-filtered articles,
fallback scores) are never exceptions; they are reported through the result
types in models.py.
"""


class AdaptiveScoringError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(AdaptiveScoringError):
    """Settings or credentials are missing or invalid."""


class ResponseParseError(AdaptiveScoringError):
    """An LLM response could not be parsed into the expected structure."""


class ResponseValidationError(ResponseParseError):
    """An LLM response parsed but its fields are out of bounds or mistyped."""


class ArticleNotFoundError(AdaptiveScoringError):
    """No article exists with the requested id."""

    def __init__(self, article_id: str):
        super().__init__(f"Article {article_id} not found")
        self.article_id = article_id


class ProfileValidationError(AdaptiveScoringError):
    """A manually supplied profile edit breaks the profile's bounds."""
