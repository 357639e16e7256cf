"""Tests for capable-tier preference scoring."""

import json

from adaptive_scoring.constants import CATEGORY_PERSONALIZED, CATEGORY_PERSONALIZED_FALLBACK, FALLBACK_SUMMARY
from adaptive_scoring.models import ArticleScore, ScorerFailed
from adaptive_scoring.preference_scorer import (
    JSON_SHAPE_INSTRUCTION,
    build_scoring_prompt,
    parse_score_response,
    score_article,
)
from llm.llm_util import InferenceError, ModelTier


def score_json(score, summary="Matches your interest in tooling", reasoning="Liked: developer tools"):
    return json.dumps({"score": score, "summary": summary, "reasoning": reasoning})


class TestBuildScoringPrompt:

    def test_includes_profile_and_article(self, sample_article, sample_profile):
        prompt = build_scoring_prompt(sample_article, sample_profile, [])

        assert "evaluation of LLM systems" in prompt
        assert "cryptocurrency price speculation" in prompt
        assert sample_article.title in prompt
        assert sample_article.content in prompt

    def test_long_content_is_truncated(self, sample_article, sample_profile):
        sample_article.content = "x" * 10000
        prompt = build_scoring_prompt(sample_article, sample_profile, [])
        assert "x" * 6000 + "..." in prompt
        assert "x" * 6001 not in prompt


class TestParseScoreResponse:

    def test_valid(self):
        assert parse_score_response(score_json(8)) == (8, "Matches your interest in tooling", "Liked: developer tools")

    def test_embedded_in_prose(self):
        response = "Sure! " + score_json(3) + " Let me know if you need more."
        assert parse_score_response(response)[0] == 3


class TestScoreArticle:

    def test_scores_on_first_attempt(self, make_context, sample_article, sample_profile):
        context = make_context(capable=[score_json(9)])

        result = score_article(sample_article, sample_profile, context)

        assert isinstance(result, ArticleScore)
        assert result.score == 9
        assert result.category == CATEGORY_PERSONALIZED
        assert result.attempts == 1
        assert result.is_fallback is False

    def test_out_of_range_score_is_retried_with_json_instruction(self, make_context, sample_article, sample_profile):
        context = make_context(capable=[score_json(11), score_json(6)])

        result = score_article(sample_article, sample_profile, context)

        assert result.score == 6
        assert result.attempts == 2
        first, second = context.inference.prompts(ModelTier.CAPABLE)
        assert JSON_SHAPE_INSTRUCTION not in first
        assert JSON_SHAPE_INSTRUCTION in second

    def test_three_unparseable_responses_give_fallback(self, make_context, sample_article, sample_profile):
        context = make_context(capable=["garbage", "more garbage", '{"score": "high"}'])

        result = score_article(sample_article, sample_profile, context)

        assert isinstance(result, ArticleScore)
        assert result.score == 5
        assert result.summary == FALLBACK_SUMMARY
        assert result.category == CATEGORY_PERSONALIZED_FALLBACK
        assert result.is_fallback is True
        assert context.inference.count(ModelTier.CAPABLE) == 3

    def test_transport_errors_on_every_attempt_fail(self, make_context, sample_article, sample_profile):
        context = make_context(capable=[InferenceError(ModelTier.CAPABLE, "timeout")] * 3)

        result = score_article(sample_article, sample_profile, context)

        assert isinstance(result, ScorerFailed)
        assert result.attempts == 3
        assert context.sleep.call_count == 2

    def test_parse_error_then_transport_error_on_final_attempt_fails(self, make_context, sample_article, sample_profile):
        context = make_context(capable=["garbage", "garbage", InferenceError(ModelTier.CAPABLE, "timeout")])

        result = score_article(sample_article, sample_profile, context)

        assert isinstance(result, ScorerFailed)

    def test_transport_error_then_success(self, make_context, sample_article, sample_profile):
        context = make_context(capable=[InferenceError(ModelTier.CAPABLE, "timeout"), score_json(2)])

        result = score_article(sample_article, sample_profile, context)

        assert result.score == 2
        assert result.attempts == 2
