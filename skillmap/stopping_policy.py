"""
Stopping Policy - Decides whether an assessment should continue.

Rules, first match wins:
    1. fewer than MIN questions answered      -> continue
    2. MAX questions answered                 -> stop (MAX_QUESTIONS_REACHED)
    3. time spent over the limit              -> stop (TIME_LIMIT_EXCEEDED)
    4. sufficient confidence                  -> stop (SUFFICIENT_CONFIDENCE)
    5. targeted session with good coverage    -> stop (GOOD_COVERAGE)
    6. otherwise                              -> continue
"""

import logging
from enum import Enum
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel

from .config import EngineConfig
from .models import Response

logger = logging.getLogger(__name__)

NEUTRAL_BELIEF = 0.5


class StopReason(str, Enum):
    MIN_NOT_REACHED = "MIN_NOT_REACHED"
    MAX_QUESTIONS_REACHED = "MAX_QUESTIONS_REACHED"
    TIME_LIMIT_EXCEEDED = "TIME_LIMIT_EXCEEDED"
    SUFFICIENT_CONFIDENCE = "SUFFICIENT_CONFIDENCE"
    GOOD_COVERAGE = "GOOD_COVERAGE"
    NONE = "NONE"


class StopDecision(BaseModel):
    should_stop: bool
    reason: StopReason


class StoppingStatus(BaseModel):
    questions_answered: int
    min_questions: int
    max_questions: int
    total_time_minutes: float
    max_time_minutes: float
    confidence_ratio: float
    confidence_threshold: float
    coverage_ratio: float
    coverage_threshold: float
    has_target_role: bool
    should_stop: bool
    reason: StopReason


def elapsed_seconds(responses: Sequence[Response]) -> int:
    """Total time spent, summed over responses (missing times count as 0)."""
    return sum(r.total_time_seconds or 0 for r in responses)


def coverage_ratio(beliefs: Mapping[str, float]) -> float:
    """Share of skills whose belief has moved off the neutral 0.5."""
    if not beliefs:
        return 0.0
    assessed = sum(1 for b in beliefs.values() if b != NEUTRAL_BELIEF)
    return assessed / len(beliefs)


def confidence_ratio(beliefs: Mapping[str, float], threshold: float) -> float:
    """Share of skills with a decisive belief (>= threshold or <= 1 - threshold)."""
    if not beliefs:
        return 0.0
    confident = sum(1 for b in beliefs.values() if b >= threshold or b <= 1 - threshold)
    return confident / len(beliefs)


class StoppingPolicy:

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def evaluate(self, answered_count: int, elapsed: float, beliefs: Mapping[str, float],
                 has_target_role: bool) -> StopDecision:
        cfg = self.config

        if answered_count < cfg.MIN_QUESTIONS:
            logger.debug("Continuing: minimum questions not reached (%d/%d)", answered_count, cfg.MIN_QUESTIONS)
            return StopDecision(should_stop=False, reason=StopReason.MIN_NOT_REACHED)

        if answered_count >= cfg.MAX_QUESTIONS:
            logger.debug("Stopping: maximum questions reached (%d)", answered_count)
            return StopDecision(should_stop=True, reason=StopReason.MAX_QUESTIONS_REACHED)

        if elapsed > cfg.MAX_TIME_SECONDS:
            logger.debug("Stopping: time limit exceeded (%ss)", elapsed)
            return StopDecision(should_stop=True, reason=StopReason.TIME_LIMIT_EXCEEDED)

        if self.has_sufficient_confidence(beliefs):
            logger.debug("Stopping: sufficient confidence achieved")
            return StopDecision(should_stop=True, reason=StopReason.SUFFICIENT_CONFIDENCE)

        if has_target_role and coverage_ratio(beliefs) >= cfg.COVERAGE_THRESHOLD:
            logger.debug("Stopping: good skill coverage achieved")
            return StopDecision(should_stop=True, reason=StopReason.GOOD_COVERAGE)

        logger.debug("Continuing assessment - no stopping criteria met")
        return StopDecision(should_stop=False, reason=StopReason.NONE)

    def has_sufficient_confidence(self, beliefs: Mapping[str, float]) -> bool:
        # TODO: define the confidence-based stopping formula; until then this rule never fires
        return False

    def status(self, answered_count: int, elapsed: float, beliefs: Mapping[str, float],
               has_target_role: bool) -> StoppingStatus:
        """Every ratio the rules look at, alongside the decision."""
        cfg = self.config
        decision = self.evaluate(answered_count, elapsed, beliefs, has_target_role)
        return StoppingStatus(
            questions_answered=answered_count,
            min_questions=cfg.MIN_QUESTIONS,
            max_questions=cfg.MAX_QUESTIONS,
            total_time_minutes=elapsed / 60.0,
            max_time_minutes=cfg.MAX_TIME_SECONDS / 60.0,
            confidence_ratio=confidence_ratio(beliefs, cfg.CONFIDENCE_THRESHOLD),
            confidence_threshold=cfg.CONFIDENCE_THRESHOLD,
            coverage_ratio=coverage_ratio(beliefs),
            coverage_threshold=cfg.COVERAGE_THRESHOLD,
            has_target_role=has_target_role,
            should_stop=decision.should_stop,
            reason=decision.reason,
        )

