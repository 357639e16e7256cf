"""
Cheap-tier topic pre-filter.

Every new article is checked against the free-text topic description before
it is allowed anywhere near the expensive scoring model.
"""

from typing import Union

from adaptive_scoring.constants import PROMPTS_DIR, RETRY_DELAY_SECONDS, TOPIC_GATE_ATTEMPTS
from adaptive_scoring.models import Article, TopicDecision, TopicGateFailed
from adaptive_scoring.response_parsing import parse_yes_no
from llm.llm_util import ModelTier, render_prompt
from util.logging_util import setup_logger

logger = setup_logger(__name__)

TOPIC_GATE_TEMPLATE = PROMPTS_DIR / "topic_gate.jinja2"


def build_topic_prompt(article: Article, topic_description: str) -> str:
    return render_prompt(
        TOPIC_GATE_TEMPLATE,
        {
            "topic_description": topic_description,
            "title": article.title,
            "summary": article.summary or article.ai_summary or "No summary available",
        },
    )


def check_topic_relevance(
    article: Article,
    topic_description: str,
    context,
) -> Union[TopicDecision, TopicGateFailed]:
    """
    Ask the cheap tier whether an article is on-topic.

    An ambiguous answer (both or neither of "yes"/"no") is retried; if the final
    attempt is still ambiguous the article is treated as not relevant.

    Returns:
        TopicDecision, or TopicGateFailed if the final attempt got no response.
    """
    prompt = build_topic_prompt(article, topic_description)
    last_error = ""

    for attempt in range(1, TOPIC_GATE_ATTEMPTS + 1):
        if attempt > 1:
            context.sleep(RETRY_DELAY_SECONDS)

        try:
            response = context.inference.complete(ModelTier.CHEAP, prompt)
        except Exception as e:
            last_error = str(e)
            logger.warning(f"Topic gate attempt {attempt}/{TOPIC_GATE_ATTEMPTS} failed: {e}")
            continue

        verdict = parse_yes_no(response)
        if verdict is None:
            if attempt < TOPIC_GATE_ATTEMPTS:
                logger.warning(f"Ambiguous topic response: {response.strip()[:80]!r} - retrying")
                continue
            logger.warning(
                f"Ambiguous topic response on final attempt: {response.strip()[:80]!r} - "
                "defaulting to not relevant"
            )
            return TopicDecision(relevant=False, attempts=attempt, ambiguous=True)

        logger.info(f"Topic check for '{article.title[:50]}': {'RELEVANT' if verdict else 'NOT RELEVANT'}")
        return TopicDecision(relevant=verdict, attempts=attempt)

    logger.error(f"Topic gate failed after {TOPIC_GATE_ATTEMPTS} attempts: {last_error}")
    return TopicGateFailed(attempts=TOPIC_GATE_ATTEMPTS, last_error=last_error)
