"""
Belief Updater - Applies evidence from one response to the belief store.

The answered skill gets a direct update; correlated skills that already have
a belief row get an attenuated update:

    propagated = evidence * correlation * 0.5
"""

import logging
from typing import Dict, Optional

from .belief_store import BeliefStore
from .models import Question, Response, SkillBelief
from .scoring import ResponseScorer, clamp

logger = logging.getLogger(__name__)

PROPAGATION_DAMPING = 0.5


class BeliefUpdater:

    def __init__(self, beliefs: BeliefStore, registry, scorer: Optional[ResponseScorer] = None):
        self.beliefs = beliefs
        self.registry = registry
        self.scorer = scorer or ResponseScorer()

    def update_from_response(self, response: Response, question: Question,
                             evidence: Optional[float] = None) -> float:
        """
        Score a response (unless evidence is given) and apply it.

        Returns the evidence value that was applied.
        """
        if evidence is None:
            evidence = self.scorer.score(response, question)
        logger.info("Updating beliefs from response %s (evidence=%.3f)", response.id, evidence)
        self.apply(response.session_id, question.skill_code, evidence, response.id)
        return evidence

    def apply(self, session_id: str, skill_code: str, evidence: float,
              response_id: Optional[str] = None) -> SkillBelief:
        """Direct update followed by propagation, as one serialized step per session."""
        evidence = clamp(evidence)
        with self.beliefs.locks.hold(session_id):
            row = self.beliefs.record_evidence(session_id, skill_code, evidence, response_id)
            self.propagate(session_id, skill_code, evidence)
        return row

    def propagate(self, session_id: str, source_skill: str, evidence: float) -> Dict[str, float]:
        """
        Spread evidence to correlated skills that already have a belief row.

        Returns the new belief of every row that was updated. A failure on
        one target is logged and skipped.
        """
        updated: Dict[str, float] = {}
        correlations = self.registry.correlations

        for target, weight in correlations.items_for(source_skill):
            try:
                propagated = evidence * weight * PROPAGATION_DAMPING
                row = self.beliefs.apply_propagated(session_id, target, propagated)
                if row is not None:
                    updated[target] = row.belief
            except Exception as e:
                logger.warning(
                    "Propagation %s -> %s failed for session %s: %s",
                    source_skill, target, session_id, e,
                )

        return updated
