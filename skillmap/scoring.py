"""
Response Scorer - Turns one answered question into evidence in [0, 1].

MCQ answers score on correctness alone. Free-text answers blend specificity,
answer length and depth:

    evidence = 0.3 * specificity + 0.4 * min(len / 500, 1) + 0.3 * depth
"""

import logging
import math
from typing import Optional

from .errors import ScoringError
from .models import Question, Response

logger = logging.getLogger(__name__)

SPECIFICITY_WEIGHT = 0.3
LENGTH_WEIGHT = 0.4
DEPTH_WEIGHT = 0.3
FULL_LENGTH_CHARS = 500


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp into [low, high]. NaN and infinities are malformed and map to low."""
    if not math.isfinite(value):
        return low
    return max(low, min(high, value))


def _metric(value) -> float:
    """Clamp an optional sub-score; missing -> 0."""
    if value is None:
        return 0.0
    try:
        return clamp(float(value))
    except (TypeError, ValueError):
        raise ScoringError(f"non-numeric metric: {value!r}")


class ResponseScorer:

    def score(self, response: Response, question: Question) -> float:
        """
        Fast evidence score, available as soon as a response arrives.

        Never raises: malformed responses score 0.0.
        """
        try:
            if question.is_mcq:
                return 1.0 if response.is_correct else 0.0
            return self._score_text(response, similarity=None)
        except ScoringError as e:
            logger.warning("Could not score response %s: %s", response.id, e)
            return 0.0

    def authoritative_score(self, response: Response, question: Question,
                            similarity: Optional[float]) -> float:
        """
        Score using the semantic similarity once it is known.

        Similarity stands in for depth when the response carries no depth
        score of its own. MCQ scores don't change.
        """
        try:
            if question.is_mcq:
                return 1.0 if response.is_correct else 0.0
            return self._score_text(response, similarity=similarity)
        except ScoringError as e:
            logger.warning("Could not rescore response %s: %s", response.id, e)
            return 0.0

    def _score_text(self, response: Response, similarity: Optional[float]) -> float:
        answer = response.answer_text
        if answer is not None and not isinstance(answer, str):
            raise ScoringError(f"answer is {type(answer).__name__}, expected str")

        specificity = _metric(response.specificity_score)
        length = min(len(answer) / FULL_LENGTH_CHARS, 1.0) if answer else 0.0

        depth_source = response.depth_score
        if depth_source is None and similarity is not None:
            depth_source = similarity
        depth = _metric(depth_source)

        score = (
            specificity * SPECIFICITY_WEIGHT +
            length * LENGTH_WEIGHT +
            depth * DEPTH_WEIGHT
        )
        return clamp(score)
