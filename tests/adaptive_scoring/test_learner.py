"""Tests for the learning workflow."""

import json

from adaptive_scoring.learner import PROFILE_WRITE_LOCK, LearningOrchestrator, run_learning
from adaptive_scoring.models import LearningFailure, LearningStatus
from llm.llm_util import InferenceError, ModelTier


def profile_json(likes=("agent evaluation",), dislikes=("crypto hype",), changelog="Built from ratings"):
    return json.dumps({"likes": list(likes), "dislikes": list(dislikes), "changelog": changelog})


class TestLearningOrchestrator:

    def test_insufficient_data_writes_nothing(self, make_context, rated_articles):
        context = make_context(rated=rated_articles(1, 3))

        result = run_learning(context)

        assert result.status is LearningStatus.INSUFFICIENT_DATA
        assert result.detail == "Need 1 more relevant and 0 more not relevant ratings"
        assert result.relevant_count == 1
        assert result.not_relevant_count == 3
        assert result.profile is None
        assert context.profile_store.puts == []
        assert context.inference.calls == []

    def test_creates_first_profile(self, make_context, rated_articles, fixed_now):
        context = make_context(rated=rated_articles(3, 3), capable=[profile_json()])

        result = run_learning(context)

        assert result.status is LearningStatus.SAVED
        assert result.failure is None
        assert result.detail == "Profile created: 1 likes, 1 dislikes"
        saved = context.profile_store.puts[0]
        assert saved.likes == ["agent evaluation"]
        assert saved.created_at == saved.last_updated == fixed_now
        assert result.profile == saved

    def test_evolves_existing_profile(self, make_context, rated_articles, sample_profile, fixed_now):
        context = make_context(
            profile=sample_profile,
            rated=rated_articles(2, 2),
            capable=[profile_json(likes=["evaluation of LLM systems", "compiler internals"])],
        )

        result = run_learning(context)

        assert result.status is LearningStatus.SAVED
        assert result.detail.startswith("Profile evolved")
        saved = context.profile_store.profile
        assert saved.created_at == sample_profile.created_at
        assert saved.last_updated == fixed_now
        assert saved.likes == ["evaluation of LLM systems", "compiler internals"]
        assert "CURRENT LIKES" in context.inference.prompts(ModelTier.CAPABLE)[0]

    def test_profile_generation_failure(self, make_context, rated_articles, sample_profile):
        context = make_context(
            profile=sample_profile,
            rated=rated_articles(2, 2),
            capable=[InferenceError(ModelTier.CAPABLE, "timeout")] * 3,
        )

        result = run_learning(context)

        assert result.status is LearningStatus.FAILED
        assert result.failure is LearningFailure.PROFILE_GENERATION_FAILED
        assert result.attempts == 3
        assert context.profile_store.puts == []
        # The existing profile is untouched
        assert context.profile_store.profile == sample_profile

    def test_feedback_collection_failure(self, make_context):
        context = make_context(feedback_error=RuntimeError("database is locked"))

        result = run_learning(context)

        assert result.status is LearningStatus.FAILED
        assert result.failure is LearningFailure.FEEDBACK_COLLECTION_FAILED
        assert "database is locked" in result.detail

    def test_save_failure(self, make_context, rated_articles):
        context = make_context(
            rated=rated_articles(2, 2),
            capable=[profile_json()],
            profile_put_errors=[RuntimeError("disk full")],
        )

        result = run_learning(context)

        assert result.status is LearningStatus.FAILED
        assert result.failure is LearningFailure.PROFILE_SAVE_FAILED
        assert result.profile is None

    def test_unreadable_profile_falls_back_to_create(self, make_context, rated_articles):
        context = make_context(
            rated=rated_articles(2, 2),
            capable=[profile_json()],
            profile_get_errors=[RuntimeError("corrupt row")],
        )

        result = run_learning(context)

        assert result.status is LearningStatus.SAVED
        assert result.error_count == 1
        assert "no profile yet" in context.inference.prompts(ModelTier.CAPABLE)[0]

    def test_concurrent_run_is_rejected(self, make_context, rated_articles):
        context = make_context(rated=rated_articles(2, 2), capable=[profile_json()])

        with PROFILE_WRITE_LOCK:
            result = LearningOrchestrator(context).run()

        assert result.status is LearningStatus.FAILED
        assert result.failure is LearningFailure.LEARNING_IN_PROGRESS
        assert context.inference.calls == []

    def test_lock_is_released_after_run(self, make_context, rated_articles):
        run_learning(make_context(rated=rated_articles(0, 0)))
        assert not PROFILE_WRITE_LOCK.locked()
