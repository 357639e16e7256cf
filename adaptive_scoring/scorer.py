"""
Scoring workflow: load profile -> topic gate -> preference scorer, per article.

Each state has a transition function that returns either the next state or a
terminal ScoringOutcome. A failing step is re-entered until the run's error
budget is spent, at which point the run is abandoned and the article is
returned exactly as it came in, with an error summary attached.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Union

from adaptive_scoring.constants import (
    NO_PROFILE_SUMMARY,
    SCORING_ERROR_BUDGET,
    TOPIC_FILTERED_SUMMARY,
)
from adaptive_scoring.exceptions import ConfigurationError
from adaptive_scoring.models import (
    Article,
    Profile,
    ScorerFailed,
    ScoringOutcome,
    ScoringResult,
    TopicDecision,
    TopicGateFailed,
)
from adaptive_scoring.preference_scorer import score_article
from adaptive_scoring.topic_gate import check_topic_relevance
from util.logging_util import log_state_transition, setup_logger

logger = setup_logger(__name__)


class ScorerState(Enum):
    LOAD_PROFILE = "load_profile"
    TOPIC_GATE = "topic_gate"
    PREFERENCE_SCORER = "preference_scorer"
    PERSIST = "persist"


Step = Union[ScorerState, ScoringOutcome]


@dataclass
class ScoringRunState:
    """Everything one scoring run knows. Discarded when the run ends."""
    article: Article
    topic_description: str
    profile: Optional[Profile] = None
    topic_decision: Optional[TopicDecision] = None
    # Field changes to apply to the article once the pipeline reaches a verdict
    updates: dict = field(default_factory=dict)
    pending_outcome: Optional[ScoringOutcome] = None
    error_count: int = 0
    errors: List[str] = field(default_factory=list)


class ScoringOrchestrator:
    """Runs one article through the cost-tiered filter-then-score pipeline."""

    def __init__(self, context):
        self.context = context
        self._transitions = {
            ScorerState.LOAD_PROFILE: self._load_profile,
            ScorerState.TOPIC_GATE: self._topic_gate,
            ScorerState.PREFERENCE_SCORER: self._preference_scorer,
            ScorerState.PERSIST: self._persist,
        }

    def run(self, article: Article, topic_description: str) -> ScoringResult:
        """
        Score a single article.

        Raises:
            ConfigurationError: if the context or topic description is unusable.
                Nothing else is raised; every pipeline outcome is returned.
        """
        if self.context.inference is None or self.context.profile_store is None:
            raise ConfigurationError("Scoring needs an inference client and a profile store")
        if not topic_description or not topic_description.strip():
            raise ConfigurationError("A topic description is required for scoring")

        logger.info(f"Scoring article: {article.title}")
        run_state = ScoringRunState(article=article, topic_description=topic_description.strip())

        step: Step = ScorerState.LOAD_PROFILE
        while isinstance(step, ScorerState):
            next_step = self._transitions[step](run_state)
            log_state_transition(logger, "scorer", step.value, next_step.value)
            step = next_step

        return self._finish(run_state, step)

    def _fail(self, run_state: ScoringRunState, state: ScorerState, message: str) -> Step:
        run_state.error_count += 1
        run_state.errors.append(message)
        logger.error(f"{message} (error {run_state.error_count}/{SCORING_ERROR_BUDGET})")
        if run_state.error_count >= SCORING_ERROR_BUDGET:
            logger.error("Too many errors - abandoning scoring run")
            return ScoringOutcome.ABORTED
        return state

    def _load_profile(self, run_state: ScoringRunState) -> Step:
        try:
            profile = self.context.profile_store.get()
        except Exception as e:
            return self._fail(run_state, ScorerState.LOAD_PROFILE, f"Profile loading failed: {e}")

        if profile is None:
            logger.info("No user profile found - article will be unscored")
            run_state.updates = {"ai_score": None, "ai_summary": NO_PROFILE_SUMMARY}
            run_state.pending_outcome = ScoringOutcome.NO_PROFILE
            return ScorerState.PERSIST

        run_state.profile = profile
        logger.info(f"Profile loaded: {len(profile.likes)} likes, {len(profile.dislikes)} dislikes")

        # Topic-filtered articles never re-enter the pipeline
        if run_state.article.topic_filtered:
            logger.info("Article already topic-filtered - skipping")
            return ScoringOutcome.ALREADY_FILTERED

        return ScorerState.TOPIC_GATE

    def _topic_gate(self, run_state: ScoringRunState) -> Step:
        decision = check_topic_relevance(run_state.article, run_state.topic_description, self.context)
        if isinstance(decision, TopicGateFailed):
            return self._fail(
                run_state,
                ScorerState.TOPIC_GATE,
                f"Topic filtering failed after {decision.attempts} attempts: {decision.last_error}",
            )

        run_state.topic_decision = decision
        if not decision.relevant:
            run_state.updates = {
                "ai_score": None,
                "ai_summary": TOPIC_FILTERED_SUMMARY,
                "topic_filtered": True,
                "topic_filtered_at": self.context.now(),
            }
            run_state.pending_outcome = ScoringOutcome.TOPIC_FILTERED
            return ScorerState.PERSIST

        return ScorerState.PREFERENCE_SCORER

    def _preference_scorer(self, run_state: ScoringRunState) -> Step:
        result = score_article(run_state.article, run_state.profile, self.context)
        if isinstance(result, ScorerFailed):
            return self._fail(
                run_state,
                ScorerState.PREFERENCE_SCORER,
                f"Profile scoring failed after {result.attempts} attempts: {result.last_error}",
            )

        run_state.updates = {
            "ai_score": result.score,
            "ai_summary": result.summary,
            "ai_category": result.category,
        }
        run_state.pending_outcome = (
            ScoringOutcome.FALLBACK_SCORED if result.is_fallback else ScoringOutcome.SCORED
        )
        return ScorerState.PERSIST

    def _persist(self, run_state: ScoringRunState) -> Step:
        store = self.context.article_store
        if store is not None:
            try:
                store.update(run_state.article.id, **run_state.updates)
            except Exception as e:
                return self._fail(run_state, ScorerState.PERSIST, f"Saving article failed: {e}")
        return run_state.pending_outcome

    def _finish(self, run_state: ScoringRunState, outcome: ScoringOutcome) -> ScoringResult:
        if outcome is ScoringOutcome.ABORTED:
            article = replace(run_state.article, scoring_error="; ".join(run_state.errors))
        elif outcome is ScoringOutcome.ALREADY_FILTERED:
            article = replace(run_state.article, ai_score=None)
        else:
            article = replace(run_state.article, **run_state.updates)

        if article.ai_score is not None:
            logger.info(f"Scoring finished ({outcome.value}): {article.ai_score}/10")
        else:
            logger.info(f"Scoring finished ({outcome.value}): unscored")

        return ScoringResult(
            article=article,
            outcome=outcome,
            error_count=run_state.error_count,
            errors=list(run_state.errors),
        )


def run_scoring(article: Article, topic_description: str, context) -> Article:
    """Score one article and return it; see ScoringOrchestrator.run."""
    return ScoringOrchestrator(context).run(article, topic_description).article
