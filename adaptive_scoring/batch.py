"""
Batch scoring: score newly ingested articles, and re-rate stored articles
after the profile changes.
"""

from typing import Callable, Iterable, Optional

from adaptive_scoring import database
from adaptive_scoring.models import Article, BatchResult
from adaptive_scoring.scorer import ScoringOrchestrator
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def process_new_articles(articles: Iterable[Article], topic_description: str, context) -> BatchResult:
    """
    Insert and score articles that haven't been seen before.

    Articles whose id (derived from the URL) is already stored are skipped, so
    nothing is paid for twice.
    """
    orchestrator = ScoringOrchestrator(context)
    result = BatchResult(processed=0)

    for article in articles:
        if database.article_exists(article.id):
            logger.debug(f"Article already exists: {article.url}")
            continue

        database.insert_article(article)
        scoring = orchestrator.run(article, topic_description)
        result.processed += 1
        result.outcomes[scoring.outcome.value] = result.outcomes.get(scoring.outcome.value, 0) + 1

    logger.info(f"Processed {result.processed} new articles: {result.outcomes}")
    return result


def rerate_articles(
    topic_description: str,
    context,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> BatchResult:
    """
    Re-run scoring over every article that hasn't been topic-filtered.

    One article failing doesn't stop the batch.

    Args:
        topic_description: The topic the gate checks against.
        context: WorkflowContext for the scoring runs.
        on_progress: Optional callback receiving (current, total).
    """
    articles = database.get_articles_for_rerating()
    total = len(articles)
    logger.info(f"Found {total} eligible articles to rerate")

    orchestrator = ScoringOrchestrator(context)
    result = BatchResult(processed=0)

    for index, article in enumerate(articles, start=1):
        if on_progress is not None:
            on_progress(index, total)
        try:
            scoring = orchestrator.run(article, topic_description)
        except Exception as e:
            logger.error(f"Error re-rating article {article.id}: {e}")
            result.failed += 1
            continue
        result.processed += 1
        result.outcomes[scoring.outcome.value] = result.outcomes.get(scoring.outcome.value, 0) + 1

    logger.info(f"Rerate complete: {result.processed} processed, {result.failed} failed")
    return result
