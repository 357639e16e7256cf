"""
Learning workflow: turn the user's ratings into a preference profile.

CollectFeedback -> ValidateThreshold -> LoadExistingProfile -> Evolve -> Save

Each state has a transition function returning either the next state or a
terminal LearningResult. There is no whole-run retry; only the Evolve step
retries internally.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from adaptive_scoring.feedback import collect_feedback, has_enough_feedback, threshold_status
from adaptive_scoring.models import (
    FeedbackSet,
    LearningFailure,
    LearningResult,
    LearningStatus,
    Profile,
    ProfileGenerationFailed,
)
from adaptive_scoring.profile_evolver import evolve_profile
from util.logging_util import log_state_transition, setup_logger

logger = setup_logger(__name__)

# Guards every read-then-write of the profile record within this process
PROFILE_WRITE_LOCK = threading.Lock()


class LearnerState(Enum):
    COLLECT_FEEDBACK = "collect_feedback"
    VALIDATE_THRESHOLD = "validate_threshold"
    LOAD_EXISTING_PROFILE = "load_existing_profile"
    EVOLVE = "evolve"
    SAVE = "save"


Step = Union[LearnerState, LearningResult]


@dataclass
class LearningRunState:
    """Everything one learning run knows. Discarded when the run ends."""
    feedback: Optional[FeedbackSet] = None
    existing_profile: Optional[Profile] = None
    generated_profile: Optional[Profile] = None
    attempts: int = 0
    error_count: int = 0
    last_error: str = ""


class LearningOrchestrator:
    """Builds or evolves the single user profile from rated articles."""

    def __init__(self, context):
        self.context = context
        self._transitions = {
            LearnerState.COLLECT_FEEDBACK: self._collect_feedback,
            LearnerState.VALIDATE_THRESHOLD: self._validate_threshold,
            LearnerState.LOAD_EXISTING_PROFILE: self._load_existing_profile,
            LearnerState.EVOLVE: self._evolve,
            LearnerState.SAVE: self._save,
        }

    def run(self) -> LearningResult:
        """
        Run the learner once.

        Only one run may be in flight per process; a second call while one is
        active is rejected rather than interleaved.
        """
        if not PROFILE_WRITE_LOCK.acquire(blocking=False):
            logger.warning("Learning run rejected - another run is already in progress")
            return LearningResult(
                status=LearningStatus.FAILED,
                detail="A learning run is already in progress",
                failure=LearningFailure.LEARNING_IN_PROGRESS,
            )
        try:
            return self._run()
        finally:
            PROFILE_WRITE_LOCK.release()

    def _run(self) -> LearningResult:
        logger.info("Starting learning run")
        run_state = LearningRunState()

        step: Step = LearnerState.COLLECT_FEEDBACK
        while isinstance(step, LearnerState):
            next_step = self._transitions[step](run_state)
            to_name = next_step.value if isinstance(next_step, LearnerState) else next_step.status.value
            log_state_transition(logger, "learner", step.value, to_name)
            step = next_step

        logger.info(f"Learning run finished: {step.status.value} - {step.detail}")
        return step

    def _result(self, run_state: LearningRunState, status: LearningStatus, detail: str,
                failure: Optional[LearningFailure] = None) -> LearningResult:
        feedback = run_state.feedback or FeedbackSet()
        return LearningResult(
            status=status,
            detail=detail,
            failure=failure,
            profile=run_state.generated_profile if status is LearningStatus.SAVED else None,
            relevant_count=feedback.relevant_count,
            not_relevant_count=feedback.not_relevant_count,
            attempts=run_state.attempts,
            error_count=run_state.error_count,
        )

    def _collect_feedback(self, run_state: LearningRunState) -> Step:
        try:
            run_state.feedback = collect_feedback(self.context.feedback_source)
        except Exception as e:
            run_state.error_count += 1
            run_state.last_error = str(e)
            logger.error(f"Failed to collect rated articles: {e}")
            return self._result(
                run_state,
                LearningStatus.FAILED,
                f"Feedback collection failed: {e}",
                LearningFailure.FEEDBACK_COLLECTION_FAILED,
            )
        return LearnerState.VALIDATE_THRESHOLD

    def _validate_threshold(self, run_state: LearningRunState) -> Step:
        feedback = run_state.feedback
        logger.info(
            f"Found {feedback.relevant_count} relevant, "
            f"{feedback.not_relevant_count} not-relevant articles"
        )
        if not has_enough_feedback(feedback.relevant_count, feedback.not_relevant_count):
            status = threshold_status(feedback.relevant_count, feedback.not_relevant_count)
            return self._result(run_state, LearningStatus.INSUFFICIENT_DATA, status.message)
        return LearnerState.LOAD_EXISTING_PROFILE

    def _load_existing_profile(self, run_state: LearningRunState) -> Step:
        try:
            run_state.existing_profile = self.context.profile_store.get()
        except Exception as e:
            # Best effort: an unreadable profile is treated like a missing one
            run_state.error_count += 1
            run_state.last_error = str(e)
            logger.warning(f"Could not load existing profile, creating a new one: {e}")
            run_state.existing_profile = None

        if run_state.existing_profile is None:
            logger.info("No existing profile - creating a new one")
        return LearnerState.EVOLVE

    def _evolve(self, run_state: LearningRunState) -> Step:
        result = evolve_profile(run_state.feedback, run_state.existing_profile, self.context)
        if isinstance(result, ProfileGenerationFailed):
            run_state.attempts = result.attempts
            run_state.error_count += 1
            run_state.last_error = result.last_error
            return self._result(
                run_state,
                LearningStatus.FAILED,
                f"Profile generation failed after {result.attempts} attempts: {result.last_error}",
                LearningFailure.PROFILE_GENERATION_FAILED,
            )
        run_state.generated_profile = result
        return LearnerState.SAVE

    def _save(self, run_state: LearningRunState) -> Step:
        try:
            saved = self.context.profile_store.put(run_state.generated_profile)
        except Exception as e:
            run_state.error_count += 1
            run_state.last_error = str(e)
            logger.error(f"Error saving profile: {e}")
            run_state.generated_profile = None
            return self._result(
                run_state,
                LearningStatus.FAILED,
                f"Profile save failed: {e}",
                LearningFailure.PROFILE_SAVE_FAILED,
            )

        if isinstance(saved, Profile):
            run_state.generated_profile = saved
        profile = run_state.generated_profile
        verb = "evolved" if run_state.existing_profile is not None else "created"
        return self._result(
            run_state,
            LearningStatus.SAVED,
            f"Profile {verb}: {len(profile.likes)} likes, {len(profile.dislikes)} dislikes",
        )


def run_learning(context) -> LearningResult:
    """Run the learner once; see LearningOrchestrator.run."""
    return LearningOrchestrator(context).run()
