"""
Assessment Engine - The operations the surrounding application calls.

Wires the skill graph, belief store, question selector and stopping policy
together. Dangling references (unknown session, question or skill) resolve to
neutral results instead of raising, so an assessment can always either
progress or stop cleanly.
"""

import logging
import random
import time
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel

from .belief_store import BeliefStore, SessionLocks
from .belief_updater import BeliefUpdater
from .catalog import QuestionCache
from .config import EngineConfig, load_config
from .memory_store import InMemoryStore
from .models import AssessmentSession, Question, Response, SessionStatus
from .question_selector import QuestionSelector
from .rescoring import BackgroundRescorer
from .scoring import ResponseScorer
from .similarity import EmbeddingSimilarityScorer
from .skill_graph import GraphRegistry, SkillGraph
from .stopping_policy import StopDecision, StoppingPolicy, StoppingStatus, StopReason, elapsed_seconds

logger = logging.getLogger(__name__)


class ProgressReport(BaseModel):
    questions_answered: int
    total_questions: int
    beliefs: Dict[str, float]
    should_continue: bool
    overall_progress: float


class AssessmentEngine:

    def __init__(self, skill_catalog, question_catalog, store=None, resume_skills=None,
                 similarity_scorer=None, config: Optional[EngineConfig] = None,
                 rng: Optional[random.Random] = None, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            skill_catalog: Provider of skills and dependencies
            question_catalog: Provider of questions
            store: Session/response/belief store (in-memory by default)
            resume_skills: Optional provider of verified_skills(session_id)
            similarity_scorer: Optional provider of similarity(expected, actual);
                defaults to OpenAI embeddings when OPENAI_API_KEY is set
            config: Engine settings (read from the environment by default)
            rng: Random source for warm-up and fallback picks
            clock: Time source for the question cache TTL
        """
        self.config = config or load_config()
        self.skill_catalog = skill_catalog
        self.question_catalog = question_catalog
        self.store = store if store is not None else InMemoryStore()

        self.registry = GraphRegistry(skill_catalog)
        self.registry.rebuild()

        self.question_cache = QuestionCache(question_catalog, ttl=self.config.QUESTION_CACHE_TTL, clock=clock)
        if hasattr(question_catalog, "on_change"):
            question_catalog.on_change(self.question_cache.invalidate)

        self.locks = SessionLocks()
        self.scorer = ResponseScorer()
        self.beliefs = BeliefStore(self.store, skill_catalog, resume_skills, self.locks)
        self.updater = BeliefUpdater(self.beliefs, self.registry, self.scorer)
        self.selector = QuestionSelector(self.registry, self.beliefs, self.config, rng)
        self.policy = StoppingPolicy(self.config)

        if similarity_scorer is None:
            default_scorer = EmbeddingSimilarityScorer.from_config(self.config)
            if default_scorer.available:
                similarity_scorer = default_scorer

        self.rescorer: Optional[BackgroundRescorer] = None
        if similarity_scorer is not None:
            self.rescorer = BackgroundRescorer(similarity_scorer, self.updater, self.store, self.scorer)

    @property
    def graph(self) -> SkillGraph:
        return self.registry.graph

    # ==================== Sessions ====================

    def start_session(self, target_role: Optional[str] = None,
                      session_id: Optional[str] = None) -> AssessmentSession:
        session = AssessmentSession(
            id=session_id or str(uuid.uuid4()),
            token=uuid.uuid4().hex,
            target_role=target_role,
        )
        self.store.save_session(session)
        logger.info("Started session %s (target role: %s)", session.id, target_role)
        return session

    def complete_session(self, session_id: str,
                         status: SessionStatus = SessionStatus.COMPLETED) -> Optional[AssessmentSession]:
        session = self._session(session_id)
        if session is None:
            return None
        session.status = status
        session.completed_at = datetime.now()
        session.answered_question_ids = self.store.answered_question_ids(session_id)
        self.store.save_session(session)
        self.locks.discard(session_id)
        return session

    def _session(self, session_id: str) -> Optional[AssessmentSession]:
        session = self.store.get_session(session_id)
        if session is None:
            logger.warning("Session %s not found", session_id)
        return session

    # ==================== Question Selection ====================

    def select_next_question(self, session_id: str) -> Optional[Question]:
        logger.info("Selecting next question for session: %s", session_id)
        session = self._session(session_id)
        if session is None:
            return None

        return self.selector.select_next(
            session_id,
            self.question_cache.get(),
            session.target_role,
            self.store.answered_question_ids(session_id),
            self._recent_categories(session_id),
        )

    def recommended_questions(self, session_id: str, count: int) -> List[Question]:
        session = self._session(session_id)
        if session is None:
            return []
        return self.selector.top_n(
            session_id,
            self.question_cache.get(),
            session.target_role,
            self.store.answered_question_ids(session_id),
            count,
            self._recent_categories(session_id),
        )

    def _recent_categories(self, session_id: str) -> List[str]:
        categories = []
        for response in self.store.responses_for(session_id):
            question = self.question_catalog.find_by_id(response.question_id)
            if question is not None:
                categories.append(question.category)
        return categories

    # ==================== Responses ====================

    def record_response(self, response: Response) -> Optional[float]:
        """
        Persist a response and update beliefs with its fast score.

        Returns the evidence applied, or None if the response was ignored
        because its session or question is unknown.
        """
        if self._session(response.session_id) is None:
            return None

        question = self.question_catalog.find_by_id(response.question_id)
        if question is None:
            logger.warning("Response %s references unknown question %s", response.id, response.question_id)
            return None

        with self.locks.hold(response.session_id):
            evidence = self.scorer.score(response, question)
            response.evidence = evidence
            self.store.append_response(response)
            self.updater.update_from_response(response, question, evidence)
            if self.rescorer is not None:
                self.rescorer.submit(response, question)

        return evidence

    # ==================== Beliefs ====================

    def get_beliefs(self, session_id: str) -> Dict[str, float]:
        return self.beliefs.snapshot(session_id)

    def get_belief(self, session_id: str, skill_code: str) -> float:
        return self.beliefs.belief_of(session_id, skill_code)

    def skill_gaps(self, session_id: str) -> Dict[str, float]:
        return self.beliefs.skill_gaps(session_id)

    def high_confidence_skills(self, session_id: str, threshold: float = 0.7) -> List[str]:
        return self.beliefs.high_confidence_skills(session_id, threshold)

    def low_confidence_skills(self, session_id: str, threshold: float = 0.3) -> List[str]:
        return self.beliefs.low_confidence_skills(session_id, threshold)

    # ==================== Stopping ====================

    def _stopping_inputs(self, session_id: str):
        session = self.store.get_session(session_id)
        responses = self.store.responses_for(session_id)
        return (
            len(self.store.answered_question_ids(session_id)),
            elapsed_seconds(responses),
            self.beliefs.snapshot(session_id),
            bool(session is not None and session.target_role),
        )

    def stop_decision(self, session_id: str) -> StopDecision:
        return self.policy.evaluate(*self._stopping_inputs(session_id))

    def should_stop(self, session_id: str) -> bool:
        return self.stop_decision(session_id).should_stop

    def stop_reason(self, session_id: str) -> StopReason:
        return self.stop_decision(session_id).reason

    def stopping_status(self, session_id: str) -> StoppingStatus:
        return self.policy.status(*self._stopping_inputs(session_id))

    def get_progress(self, session_id: str) -> ProgressReport:
        session = self.store.get_session(session_id)
        target_role = session.target_role if session is not None else None

        beliefs = self.beliefs.snapshot(session_id)
        pool = self.selector.filter_by_role(self.question_cache.get(), target_role)
        overall = sum(beliefs.values()) / len(beliefs) if beliefs else 0.5

        return ProgressReport(
            questions_answered=len(self.store.answered_question_ids(session_id)),
            total_questions=len(pool),
            beliefs=beliefs,
            should_continue=not self.should_stop(session_id),
            overall_progress=overall,
        )

    # ==================== Catalog Changes ====================

    def refresh_catalog(self):
        """Drop the cached question list; the next read reloads it."""
        self.question_cache.invalidate()

    def rebuild_graph(self) -> SkillGraph:
        """Rebuild the skill graph and correlations after a skill catalog change."""
        return self.registry.rebuild()

    def shutdown(self):
        if self.rescorer is not None:
            self.rescorer.shutdown()
