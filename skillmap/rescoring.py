"""
Background rescoring of free-text responses.

A response is scored immediately with the fast local score. When a semantic
scorer is configured, the similarity to the expected answer is computed off
the request path; if it changes the evidence, the new value is applied as a
further direct update through the same formulas. Beliefs are therefore
eventually consistent within that lag.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import replace
from typing import List, Optional

from .belief_updater import BeliefUpdater
from .models import Question, Response
from .scoring import ResponseScorer

logger = logging.getLogger(__name__)

EVIDENCE_TOLERANCE = 1e-9


class BackgroundRescorer:

    def __init__(self, similarity_scorer, updater: BeliefUpdater, store,
                 scorer: Optional[ResponseScorer] = None, max_workers: int = 2):
        self.similarity_scorer = similarity_scorer
        self.updater = updater
        self.store = store
        self.scorer = scorer or ResponseScorer()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="rescore")
        self._lock = threading.Lock()
        self._pending: List[Future] = []

    def submit(self, response: Response, question: Question) -> Optional[Future]:
        """Queue a response for rescoring. MCQ responses are never rescored."""
        if question.is_mcq:
            return None
        # workers only see a copy
        future = self._executor.submit(self.rescore, replace(response), question)
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)
        return future

    def rescore(self, response: Response, question: Question) -> Optional[float]:
        """
        Compute similarity and re-apply evidence if it changed.

        Returns the authoritative evidence, or None when similarity was
        unavailable. Errors are logged, never raised.
        """
        try:
            expected = question.context_hint or question.text
            similarity = self.similarity_scorer.similarity(expected, response.answer_text)
            if similarity is None:
                logger.debug("Similarity unavailable for response %s, keeping fast score", response.id)
                return None

            rescored = replace(response, similarity_score=similarity)
            evidence = self.scorer.authoritative_score(rescored, question, similarity)
            previous = rescored.evidence

            with self.updater.beliefs.locks.hold(rescored.session_id):
                if previous is None or abs(evidence - previous) > EVIDENCE_TOLERANCE:
                    self.updater.apply(rescored.session_id, question.skill_code, evidence, rescored.id)
                    rescored.evidence = evidence
                self.store.update_response(rescored)

            logger.debug("Computed similarity score %.3f for response %s", similarity, response.id)
            return evidence
        except Exception as e:
            logger.warning("Failed to rescore response %s: %s", response.id, e)
            return None

    def drain(self, timeout: Optional[float] = None):
        """Wait for every queued rescoring task."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self, wait_for_pending: bool = True):
        self._executor.shutdown(wait=wait_for_pending)
