"""
Profile generation: derive a preference profile from rated articles, or evolve
the existing one, using the capable model tier.
"""

from typing import List, Optional, Tuple, Union

from adaptive_scoring.constants import (
    MAX_FEEDBACK_EXCERPT_CHARS,
    MAX_PREFERENCES,
    PROFILE_GENERATION_ATTEMPTS,
    PROMPTS_DIR,
    RETRY_DELAY_SECONDS,
)
from adaptive_scoring.exceptions import ResponseParseError, ResponseValidationError
from adaptive_scoring.models import (
    Article,
    Evolve,
    EvolutionMode,
    FeedbackSet,
    Profile,
    ProfileGenerationFailed,
    evolution_mode_for,
)
from adaptive_scoring.response_parsing import extract_json_object, require_string_list
from llm.llm_util import ModelTier, render_prompt
from util.logging_util import setup_logger

logger = setup_logger(__name__)

BUILD_PROFILE_TEMPLATE = PROMPTS_DIR / "build_profile.jinja2"

JSON_SHAPE_INSTRUCTION = (
    "IMPORTANT: your previous response could not be used. Respond with valid JSON only, "
    'in the exact shape {"likes": ["..."], "dislikes": ["..."], "changelog": "..."}, '
    "with no markdown formatting and no text outside the JSON object."
)


def _feedback_entries(articles: List[Article]) -> List[dict]:
    return [
        {
            "title": article.title,
            "excerpt": article.prompt_text(MAX_FEEDBACK_EXCERPT_CHARS) or "No excerpt available",
        }
        for article in articles
    ]


def build_profile_prompt(
    mode: EvolutionMode,
    feedback: FeedbackSet,
    extra_instructions: Optional[List[str]] = None,
) -> str:
    """Render the create-or-evolve prompt for the given mode."""
    existing_likes = None
    existing_dislikes = None
    if isinstance(mode, Evolve):
        existing_likes = list(mode.existing_profile.likes)
        existing_dislikes = list(mode.existing_profile.dislikes)

    return render_prompt(
        BUILD_PROFILE_TEMPLATE,
        {
            "existing_likes": existing_likes,
            "existing_dislikes": existing_dislikes,
            "relevant_articles": _feedback_entries(feedback.relevant),
            "not_relevant_articles": _feedback_entries(feedback.not_relevant),
            "max_preferences": MAX_PREFERENCES,
            "extra_instructions": extra_instructions or [],
        },
    )


def parse_profile_response(response: str) -> Tuple[List[str], List[str], str]:
    """
    Parse and validate a profile response.

    Lists longer than MAX_PREFERENCES are truncated rather than rejected.

    Returns:
        Tuple of (likes, dislikes, changelog).
    """
    data = extract_json_object(response)
    likes = require_string_list(data, "likes")[:MAX_PREFERENCES]
    dislikes = require_string_list(data, "dislikes")[:MAX_PREFERENCES]

    changelog = data.get("changelog")
    if not isinstance(changelog, str):
        raise ResponseValidationError("'changelog' must be a string")

    return likes, dislikes, changelog.strip()


def evolve_profile(
    feedback: FeedbackSet,
    existing_profile: Optional[Profile],
    context,
) -> Union[Profile, ProfileGenerationFailed]:
    """
    Create a profile, or evolve the existing one, from the user's ratings.

    Makes up to PROFILE_GENERATION_ATTEMPTS calls to the capable tier. From the
    second attempt onwards the prompt carries an explicit instruction to answer
    in the exact JSON shape.

    Args:
        feedback: Rated articles partitioned by verdict.
        existing_profile: The current profile, or None to create from scratch.
        context: WorkflowContext supplying inference, clock and sleep.

    Returns:
        The new Profile, or ProfileGenerationFailed if every attempt failed.
    """
    mode = evolution_mode_for(existing_profile)
    mode_name = "evolve" if isinstance(mode, Evolve) else "create"
    extra_instructions: List[str] = []
    last_error = ""

    for attempt in range(1, PROFILE_GENERATION_ATTEMPTS + 1):
        if attempt > 1 and JSON_SHAPE_INSTRUCTION not in extra_instructions:
            extra_instructions.append(JSON_SHAPE_INSTRUCTION)

        prompt = build_profile_prompt(mode, feedback, extra_instructions)
        logger.info(f"Generating profile ({mode_name}, attempt {attempt}/{PROFILE_GENERATION_ATTEMPTS})")

        try:
            response = context.inference.complete(ModelTier.CAPABLE, prompt)
        except Exception as e:
            last_error = str(e)
            logger.warning(f"Profile generation attempt {attempt} failed: {e}")
            if attempt < PROFILE_GENERATION_ATTEMPTS:
                context.sleep(RETRY_DELAY_SECONDS)
            continue

        try:
            likes, dislikes, changelog = parse_profile_response(response)
        except ResponseParseError as e:
            last_error = str(e)
            logger.warning(f"Failed to parse profile response (attempt {attempt}): {e}")
            logger.warning(f"Response was: {response[:200]}")
            continue

        now = context.now()
        created_at = existing_profile.created_at if existing_profile is not None else now
        if not changelog:
            changelog = "Profile evolved from new ratings" if existing_profile else "Profile created from ratings"

        logger.info(f"Profile generated: {len(likes)} likes, {len(dislikes)} dislikes")
        return Profile(
            likes=likes,
            dislikes=dislikes,
            changelog=changelog,
            created_at=created_at,
            last_updated=now,
        )

    logger.error(f"Profile generation failed after {PROFILE_GENERATION_ATTEMPTS} attempts: {last_error}")
    return ProfileGenerationFailed(attempts=PROFILE_GENERATION_ATTEMPTS, last_error=last_error)
