"""
User feedback: collecting rated articles and deciding whether there is enough
signal to build a profile.
"""

from typing import Iterable

from adaptive_scoring.constants import MIN_NOT_RELEVANT_RATINGS, MIN_RELEVANT_RATINGS
from adaptive_scoring.models import Article, FeedbackSet, ThresholdStatus


def partition_feedback(rated_articles: Iterable[Article]) -> FeedbackSet:
    """Split rated articles by verdict. Unrated articles are ignored."""
    feedback = FeedbackSet()
    for article in rated_articles:
        if article.relevant is True:
            feedback.relevant.append(article)
        elif article.relevant is False:
            feedback.not_relevant.append(article)
    return feedback


def collect_feedback(feedback_source) -> FeedbackSet:
    """Query every rated article from the source and partition it.

    Errors from the source propagate to the caller.
    """
    return partition_feedback(feedback_source.query_rated())


def has_enough_feedback(relevant_count: int, not_relevant_count: int) -> bool:
    """The profile prompt needs at least two positive and two negative examples."""
    return relevant_count >= MIN_RELEVANT_RATINGS and not_relevant_count >= MIN_NOT_RELEVANT_RATINGS


def threshold_status(relevant_count: int, not_relevant_count: int) -> ThresholdStatus:
    met = has_enough_feedback(relevant_count, not_relevant_count)
    if met:
        message = "Ready to generate profile"
    else:
        missing_relevant = max(0, MIN_RELEVANT_RATINGS - relevant_count)
        missing_not_relevant = max(0, MIN_NOT_RELEVANT_RATINGS - not_relevant_count)
        message = (
            f"Need {missing_relevant} more relevant and "
            f"{missing_not_relevant} more not relevant ratings"
        )
    return ThresholdStatus(
        threshold_met=met,
        relevant_count=relevant_count,
        not_relevant_count=not_relevant_count,
        message=message,
    )
