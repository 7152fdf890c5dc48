"""
Question Selector - Picks the next question to serve.

Features:
    - Target-role filtering of the question pool (falls back to everything)
    - Random warm-up for the first few questions
    - Greedy information-value scoring afterwards
    - Random fallbacks when adaptive scoring breaks
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .belief_store import BeliefStore
from .config import EngineConfig
from .models import Question

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 0.5

UNCERTAINTY_WEIGHT = 0.4
STRUCTURE_WEIGHT = 0.3
DIFFICULTY_WEIGHT = 0.2
DIVERSITY_WEIGHT = 0.1

RECENT_WINDOW = 3
PROGRAMMING_CATEGORY = "programming"


@dataclass
class QuestionCandidate:
    """A question candidate with its selection metrics."""
    question: Question
    score: float


class QuestionSelector:

    def __init__(self, registry, beliefs: BeliefStore, config: Optional[EngineConfig] = None,
                 rng: Optional[random.Random] = None):
        self.registry = registry
        self.beliefs = beliefs
        self.config = config or EngineConfig()
        self.rng = rng or random.Random()

    # ==================== Candidate Pool ====================

    def filter_by_role(self, questions: Sequence[Question], target_role: Optional[str]) -> List[Question]:
        """
        Questions whose skill matches the target role.

        A role matches on category, code or display name (case-insensitive
        substring), or when it mentions one of the skill's keywords;
        "engineer"/"developer" roles also take the Programming category. If
        nothing matches, every question is kept.
        """
        if not target_role:
            return list(questions)

        role = target_role.lower()
        graph = self.registry.graph
        matched = [q for q in questions if self._matches_role(graph.get_skill(q.skill_code), role)]
        return matched if matched else list(questions)

    @staticmethod
    def _matches_role(skill, role: str) -> bool:
        if skill is None:
            return False
        category = (skill.category or "").lower()
        if category and role in category:
            return True
        if skill.code and role in skill.code.lower():
            return True
        if skill.display_name and role in skill.display_name.lower():
            return True
        if any(k and k.lower() in role for k in skill.keywords):
            return True
        if "engineer" in role or "developer" in role:
            return category == PROGRAMMING_CATEGORY
        return False

    def candidate_pool(self, questions: Sequence[Question], target_role: Optional[str],
                       answered_ids: Sequence[str]) -> List[Question]:
        answered = set(answered_ids)
        return [q for q in self.filter_by_role(questions, target_role) if q.id not in answered]

    # ==================== Selection ====================

    def select_next(self, session_id: str, questions: Sequence[Question], target_role: Optional[str],
                    answered_ids: Sequence[str], recent_categories: Sequence[str] = ()) -> Optional[Question]:
        """
        Select the next question, or None when the pool is exhausted.

        Args:
            session_id: Session whose beliefs drive scoring
            questions: Full question catalog
            target_role: Optional role used to narrow the pool
            answered_ids: Question ids already answered in this session
            recent_categories: Categories of answered questions, oldest first
        """
        pool = self.candidate_pool(questions, target_role, answered_ids)
        if not pool:
            logger.info("No more questions available for session %s", session_id)
            return None

        if len(answered_ids) < self.config.WARMUP_QUESTIONS:
            window = pool[:min(self.config.WARMUP_POOL, len(pool))]
            return self.rng.choice(window)

        try:
            return self._select_adaptive(session_id, pool, recent_categories)
        except Exception as e:
            logger.warning(
                "Adaptive selection failed for session %s: %s, falling back to MCQ questions",
                session_id, e,
            )
            mcq = [q for q in pool if q.is_mcq]
            return self.rng.choice(mcq if mcq else pool)

    def _select_adaptive(self, session_id: str, pool: List[Question],
                         recent_categories: Sequence[str]) -> Question:
        scored = self.score_pool(session_id, pool, recent_categories)
        # max() keeps the first of equal scores, i.e. catalog order
        return max(scored, key=lambda c: c.score).question

    def top_n(self, session_id: str, questions: Sequence[Question], target_role: Optional[str],
              answered_ids: Sequence[str], count: int,
              recent_categories: Sequence[str] = ()) -> List[Question]:
        """The `count` best-scoring unanswered questions, best first."""
        if count <= 0:
            return []
        pool = self.candidate_pool(questions, target_role, answered_ids)
        scored = self.score_pool(session_id, pool, recent_categories)
        scored.sort(key=lambda c: c.score, reverse=True)
        return [c.question for c in scored[:count]]

    # ==================== Scoring ====================

    def score_pool(self, session_id: str, pool: Sequence[Question],
                   recent_categories: Sequence[str]) -> List[QuestionCandidate]:
        return [
            QuestionCandidate(question=q, score=self.score_question(session_id, q, recent_categories))
            for q in pool
        ]

    def score_question(self, session_id: str, question: Question,
                       recent_categories: Sequence[str] = ()) -> float:
        """
        Composite score of one candidate:

            0.4 * uncertainty + 0.3 * structure + 0.2 * difficulty fit + 0.1 * diversity

        Any failure gives the neutral score 0.5.
        """
        try:
            graph = self.registry.graph
            if not question.skill_code or question.skill_code not in graph:
                logger.warning("Question %s has unknown skill %r, returning neutral score",
                               question.id, question.skill_code)
                return NEUTRAL_SCORE

            belief = self.beliefs.belief_of(session_id, question.skill_code)
            uncertainty = abs(belief - 0.5) * 2

            level = graph.level(question.skill_code)
            structure = 1.0 / level if level > 0 else 1.0

            difficulty_fit = 1.0 - abs(question.difficulty - 0.5) * 2

            diversity = self.type_diversity(question, recent_categories)

            return (
                uncertainty * UNCERTAINTY_WEIGHT +
                structure * STRUCTURE_WEIGHT +
                difficulty_fit * DIFFICULTY_WEIGHT +
                diversity * DIVERSITY_WEIGHT
            )
        except Exception as e:
            logger.warning("Error calculating question score for question %s: %s", question.id, e)
            return NEUTRAL_SCORE

    @staticmethod
    def type_diversity(question: Question, recent_categories: Sequence[str]) -> float:
        """0 if the candidate's category repeats more than once in the last 3 answers, else 0.5."""
        if len(recent_categories) < RECENT_WINDOW:
            return 0.5
        recent = recent_categories[-RECENT_WINDOW:]
        same = sum(1 for c in recent if c == question.category)
        return 0.0 if same > 1 else 0.5
