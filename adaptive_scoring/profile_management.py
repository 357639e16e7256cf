"""
User-facing profile operations outside the learning workflow: checking rating
progress, editing the profile by hand, and deleting it.
"""

import time
from typing import List, Optional

from adaptive_scoring import database
from adaptive_scoring.constants import (
    MANUAL_UPDATE_CHANGELOG,
    MAX_PREFERENCES,
    MIN_MANUAL_PREFERENCE_LENGTH,
)
from adaptive_scoring.exceptions import ProfileValidationError
from adaptive_scoring.feedback import threshold_status
from adaptive_scoring.learner import PROFILE_WRITE_LOCK
from adaptive_scoring.models import Profile, ThresholdStatus
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def get_threshold_status() -> ThresholdStatus:
    """Report whether the user has rated enough articles to build a profile."""
    relevant_count, not_relevant_count = database.count_ratings()
    status = threshold_status(relevant_count, not_relevant_count)
    logger.info(f"Threshold check: {relevant_count} relevant, {not_relevant_count} not relevant")
    return status


def _clean_preferences(preferences: List[str], label: str) -> List[str]:
    if not isinstance(preferences, list):
        raise ProfileValidationError(f"{label} must be a list")
    if len(preferences) > MAX_PREFERENCES:
        raise ProfileValidationError(f"Maximum {MAX_PREFERENCES} {label} allowed")

    cleaned = []
    for preference in preferences:
        if not isinstance(preference, str) or len(preference.strip()) < MIN_MANUAL_PREFERENCE_LENGTH:
            raise ProfileValidationError(
                f"All preferences must be at least {MIN_MANUAL_PREFERENCE_LENGTH} characters long"
            )
        cleaned.append(preference.strip())
    return cleaned


def update_profile_manually(likes: List[str], dislikes: List[str], now: Optional[int] = None) -> Profile:
    """
    Replace the profile's likes and dislikes with the user's own edit.

    Raises:
        ProfileValidationError: if the lists break the profile bounds, or no
            profile exists yet.
    """
    cleaned_likes = _clean_preferences(likes, "likes")
    cleaned_dislikes = _clean_preferences(dislikes, "dislikes")

    with PROFILE_WRITE_LOCK:
        existing = database.get_profile()
        if existing is None:
            raise ProfileValidationError("No profile found to update. Please generate a profile first.")

        updated = Profile(
            likes=cleaned_likes,
            dislikes=cleaned_dislikes,
            changelog=MANUAL_UPDATE_CHANGELOG,
            created_at=existing.created_at,
            last_updated=now if now is not None else int(time.time()),
        )
        saved = database.save_profile(updated)

    logger.info(f"Profile updated manually: {len(saved.likes)} likes, {len(saved.dislikes)} dislikes")
    return saved


def delete_profile() -> bool:
    """Delete the profile. Returns False if there was nothing to delete."""
    with PROFILE_WRITE_LOCK:
        deleted = database.delete_profile()
    if deleted:
        logger.info("Profile deleted")
    else:
        logger.info("No profile found to delete")
    return deleted
