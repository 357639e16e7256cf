"""
Capable-tier preference scoring of topic-relevant articles.
"""

from typing import List, Tuple, Union

from adaptive_scoring.constants import (
    CATEGORY_PERSONALIZED,
    CATEGORY_PERSONALIZED_FALLBACK,
    FALLBACK_SCORE,
    FALLBACK_SUMMARY,
    MAX_SCORE,
    MAX_SCORING_CONTENT_CHARS,
    MIN_SCORE,
    PREFERENCE_SCORING_ATTEMPTS,
    PROMPTS_DIR,
    RETRY_DELAY_SECONDS,
)
from adaptive_scoring.exceptions import ResponseParseError
from adaptive_scoring.models import Article, ArticleScore, Profile, ScorerFailed
from adaptive_scoring.response_parsing import (
    extract_json_object,
    require_int_in_range,
    require_non_empty_string,
)
from llm.llm_util import ModelTier, render_prompt
from util.logging_util import setup_logger

logger = setup_logger(__name__)

SCORE_ARTICLE_TEMPLATE = PROMPTS_DIR / "score_article.jinja2"

JSON_SHAPE_INSTRUCTION = (
    "IMPORTANT: respond with valid JSON only, with an integer score from 1 to 10 and "
    "non-empty summary and reasoning strings. Do not include markdown formatting."
)


def build_scoring_prompt(article: Article, profile: Profile, extra_instructions: List[str]) -> str:
    return render_prompt(
        SCORE_ARTICLE_TEMPLATE,
        {
            "likes": profile.likes,
            "dislikes": profile.dislikes,
            "title": article.title,
            "content": article.prompt_text(MAX_SCORING_CONTENT_CHARS) or "No content available",
            "extra_instructions": extra_instructions,
        },
    )


def parse_score_response(response: str) -> Tuple[int, str, str]:
    """
    Parse and validate a scoring response.

    Returns:
        Tuple of (score 1-10, summary, reasoning).
    """
    data = extract_json_object(response)
    score = require_int_in_range(data, "score", MIN_SCORE, MAX_SCORE)
    summary = require_non_empty_string(data, "summary")
    reasoning = require_non_empty_string(data, "reasoning")
    return score, summary, reasoning


def fallback_score(attempts: int, last_error: str) -> ArticleScore:
    """The neutral score used when the model never produced a usable answer."""
    return ArticleScore(
        score=FALLBACK_SCORE,
        summary=FALLBACK_SUMMARY,
        reasoning=f"Fallback after {attempts} unparseable responses: {last_error}",
        category=CATEGORY_PERSONALIZED_FALLBACK,
        attempts=attempts,
    )


def score_article(article: Article, profile: Profile, context) -> Union[ArticleScore, ScorerFailed]:
    """
    Score an article 1-10 against the profile's likes and dislikes.

    If the final attempt returned something that can't be parsed, the result
    is the neutral fallback score, which is a normal outcome. Only when the
    final attempt failed to reach the model at all is ScorerFailed returned.
    """
    extra_instructions: List[str] = []
    last_error = ""

    for attempt in range(1, PREFERENCE_SCORING_ATTEMPTS + 1):
        prompt = build_scoring_prompt(article, profile, extra_instructions)
        logger.info(f"Scoring '{article.title[:50]}' (attempt {attempt}/{PREFERENCE_SCORING_ATTEMPTS})")

        try:
            response = context.inference.complete(ModelTier.CAPABLE, prompt)
        except Exception as e:
            last_error = str(e)
            logger.warning(f"Scoring attempt {attempt} failed: {e}")
            if attempt < PREFERENCE_SCORING_ATTEMPTS:
                context.sleep(RETRY_DELAY_SECONDS)
                continue
            logger.error(f"Scoring failed after {PREFERENCE_SCORING_ATTEMPTS} attempts: {last_error}")
            return ScorerFailed(attempts=attempt, last_error=last_error)

        try:
            score, summary, reasoning = parse_score_response(response)
        except ResponseParseError as e:
            last_error = str(e)
            logger.warning(f"Failed to parse scoring response (attempt {attempt}): {e}")
            logger.warning(f"Raw response: {response[:200]}")
            if JSON_SHAPE_INSTRUCTION not in extra_instructions:
                extra_instructions.append(JSON_SHAPE_INSTRUCTION)
            if attempt < PREFERENCE_SCORING_ATTEMPTS:
                continue
            logger.warning("Using fallback scoring on final attempt")
            return fallback_score(attempt, last_error)

        logger.info(f"Article scored: {score}/10 - {reasoning[:120]}")
        return ArticleScore(
            score=score,
            summary=summary,
            reasoning=reasoning,
            category=CATEGORY_PERSONALIZED,
            attempts=attempt,
        )

    # Unreachable: the final attempt always returns above
    return fallback_score(PREFERENCE_SCORING_ATTEMPTS, last_error)
