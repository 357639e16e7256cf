"""Tests for the per-article scoring workflow."""

import json

import pytest

from adaptive_scoring.constants import (
    CATEGORY_PERSONALIZED_FALLBACK,
    NO_PROFILE_SUMMARY,
    TOPIC_FILTERED_SUMMARY,
)
from adaptive_scoring.exceptions import ConfigurationError
from adaptive_scoring.models import ScoringOutcome
from adaptive_scoring.scorer import ScoringOrchestrator, run_scoring
from llm.llm_util import InferenceError, ModelTier

TOPIC = "Software engineering and AI tooling"


def score_json(score):
    return json.dumps({"score": score, "summary": "Strong match", "reasoning": "Liked: tooling"})


class TestScoringOrchestrator:

    def test_full_pipeline_scores_article(self, make_context, sample_article, sample_profile):
        context = make_context(profile=sample_profile, cheap=["yes"], capable=[score_json(8)])

        result = ScoringOrchestrator(context).run(sample_article, TOPIC)

        assert result.outcome is ScoringOutcome.SCORED
        assert result.article.ai_score == 8
        assert result.article.ai_summary == "Strong match"
        assert result.article.ai_category == "personalized"
        assert result.article.topic_filtered is False
        assert result.error_count == 0
        assert context.article_store.updates == [
            (sample_article.id, {"ai_score": 8, "ai_summary": "Strong match", "ai_category": "personalized"})
        ]
        # The input article is left untouched
        assert sample_article.ai_score is None

    def test_cheap_tier_runs_before_capable(self, make_context, sample_article, sample_profile):
        context = make_context(profile=sample_profile, cheap=["yes"], capable=[score_json(8)])

        ScoringOrchestrator(context).run(sample_article, TOPIC)

        assert [tier for tier, _ in context.inference.calls] == [ModelTier.CHEAP, ModelTier.CAPABLE]

    def test_no_profile_leaves_article_unscored(self, make_context, sample_article):
        context = make_context(profile=None)

        result = ScoringOrchestrator(context).run(sample_article, TOPIC)

        assert result.outcome is ScoringOutcome.NO_PROFILE
        assert result.article.ai_score is None
        assert result.article.ai_summary == NO_PROFILE_SUMMARY
        assert context.inference.calls == []
        assert context.article_store.updates == [
            (sample_article.id, {"ai_score": None, "ai_summary": NO_PROFILE_SUMMARY})
        ]

    def test_topic_rejection_filters_article(self, make_context, sample_article, sample_profile, fixed_now):
        context = make_context(profile=sample_profile, cheap=["no"])

        result = ScoringOrchestrator(context).run(sample_article, TOPIC)

        assert result.outcome is ScoringOutcome.TOPIC_FILTERED
        assert result.article.topic_filtered is True
        assert result.article.topic_filtered_at == fixed_now
        assert result.article.ai_score is None
        assert result.article.ai_summary == TOPIC_FILTERED_SUMMARY
        assert context.inference.count(ModelTier.CAPABLE) == 0

    def test_topic_filtered_article_is_never_rescored(self, make_context, sample_article, sample_profile):
        context = make_context(profile=sample_profile, cheap=["no"])
        orchestrator = ScoringOrchestrator(context)

        filtered = orchestrator.run(sample_article, TOPIC).article
        again = orchestrator.run(filtered, TOPIC)

        assert again.outcome is ScoringOutcome.ALREADY_FILTERED
        assert again.article.topic_filtered is True
        assert again.article.ai_score is None
        assert again.article.topic_filtered_at == filtered.topic_filtered_at
        # One gate call in total, from the first run only
        assert context.inference.count(ModelTier.CHEAP) == 1
        assert context.inference.count(ModelTier.CAPABLE) == 0
        assert len(context.article_store.updates) == 1

    def test_fallback_score_is_a_normal_outcome(self, make_context, sample_article, sample_profile):
        context = make_context(profile=sample_profile, cheap=["yes"], capable=["?", "??", "???"])

        result = ScoringOrchestrator(context).run(sample_article, TOPIC)

        assert result.outcome is ScoringOutcome.FALLBACK_SCORED
        assert result.article.ai_score == 5
        assert result.article.ai_category == CATEGORY_PERSONALIZED_FALLBACK
        assert result.article.scoring_error is None
        assert result.error_count == 0

    def test_transient_profile_load_error_is_retried(self, make_context, sample_article, sample_profile):
        context = make_context(
            profile=sample_profile,
            profile_get_errors=[RuntimeError("database is locked")],
            cheap=["yes"],
            capable=[score_json(7)],
        )

        result = ScoringOrchestrator(context).run(sample_article, TOPIC)

        assert result.outcome is ScoringOutcome.SCORED
        assert result.error_count == 1
        assert "database is locked" in result.errors[0]

    def test_error_budget_aborts_run(self, make_context, sample_article, sample_profile):
        # Each gate failure costs two cheap calls; the third failure exhausts the budget
        context = make_context(
            profile=sample_profile,
            cheap=[InferenceError(ModelTier.CHEAP, "timeout")] * 6,
        )

        result = ScoringOrchestrator(context).run(sample_article, TOPIC)

        assert result.outcome is ScoringOutcome.ABORTED
        assert result.error_count == 3
        assert context.inference.count(ModelTier.CHEAP) == 6
        assert context.inference.count(ModelTier.CAPABLE) == 0
        assert context.article_store.updates == []
        # Returned in its last-known state with the errors attached
        assert result.article.ai_score is None
        assert result.article.topic_filtered is False
        assert "Topic filtering failed" in result.article.scoring_error

    def test_errors_accumulate_across_steps(self, make_context, sample_article, sample_profile):
        context = make_context(
            profile=sample_profile,
            profile_get_errors=[RuntimeError("locked"), RuntimeError("locked")],
            cheap=["yes"],
            capable=[InferenceError(ModelTier.CAPABLE, "timeout")] * 3,
        )

        result = ScoringOrchestrator(context).run(sample_article, TOPIC)

        assert result.outcome is ScoringOutcome.ABORTED
        assert result.error_count == 3
        assert "Profile scoring failed" in result.errors[-1]

    def test_persist_failure_is_retried(self, make_context, sample_article, sample_profile):
        context = make_context(
            profile=sample_profile,
            cheap=["yes"],
            capable=[score_json(4)],
            update_errors=[RuntimeError("disk full")],
        )

        result = ScoringOrchestrator(context).run(sample_article, TOPIC)

        assert result.outcome is ScoringOutcome.SCORED
        assert result.error_count == 1
        assert len(context.article_store.updates) == 1
        # The pipeline is not re-run to retry the write
        assert context.inference.count(ModelTier.CAPABLE) == 1

    def test_without_article_store_nothing_is_persisted(self, make_context, sample_article, sample_profile):
        context = make_context(profile=sample_profile, cheap=["yes"], capable=[score_json(8)],
                               with_article_store=False)

        article = run_scoring(sample_article, TOPIC, context)

        assert article.ai_score == 8

    @pytest.mark.parametrize("topic", ["", "   "])
    def test_blank_topic_is_a_configuration_error(self, make_context, sample_article, topic):
        with pytest.raises(ConfigurationError):
            ScoringOrchestrator(make_context()).run(sample_article, topic)

    def test_missing_inference_client_is_a_configuration_error(self, make_context, sample_article):
        context = make_context()
        context.inference = None
        with pytest.raises(ConfigurationError):
            run_scoring(sample_article, TOPIC, context)
