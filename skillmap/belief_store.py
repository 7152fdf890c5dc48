"""
Belief Store - Per-session skill beliefs with resume-derived priors.

Each session holds at most one SkillBelief per skill:

    belief      - estimated proficiency [0, 1]
    confidence  - trust in that estimate [0, 1], raised only by direct evidence
    evidence    - ids of the responses that contributed (append-only)

Direct evidence update:
    belief'     = (belief * confidence + evidence * 0.5) / (confidence + 0.5)
    confidence' = min(confidence + 0.1, 1.0)

Propagated evidence update (existing rows only, confidence untouched):
    belief'     = (belief * confidence + propagated * 0.3) / (confidence + 0.3)
"""

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, List, Optional

from .models import SkillBelief
from .resume import matches_resume
from .scoring import clamp

logger = logging.getLogger(__name__)

NEUTRAL_BELIEF = 0.5
RESUME_PRESENT_PRIOR = 0.8
RESUME_ABSENT_PRIOR = 0.2

INITIAL_CONFIDENCE = 0.5
DIRECT_EVIDENCE_WEIGHT = 0.5
CONFIDENCE_STEP = 0.1
PROPAGATED_EVIDENCE_WEIGHT = 0.3


class SessionLocks:
    """One lock per session key, so writes to a session are serialized."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = defaultdict(threading.RLock)

    @contextmanager
    def hold(self, session_id: str):
        with self._guard:
            lock = self._locks[session_id]
        with lock:
            yield

    def discard(self, session_id: str):
        with self._guard:
            self._locks.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._locks)


class BeliefStore:

    def __init__(self, store, skill_catalog, resume_skills=None, locks: Optional[SessionLocks] = None):
        """
        Args:
            store: Session/belief store (InMemoryStore or RedisStore)
            skill_catalog: Provider with list_all() of Skills
            resume_skills: Optional provider with verified_skills(session_id)
            locks: Shared per-session locks
        """
        self.store = store
        self.skill_catalog = skill_catalog
        self.resume_skills = resume_skills
        self.locks = locks if locks is not None else SessionLocks()

    # ==================== Priors ====================

    def resume_priors(self, session_id: str) -> Dict[str, float]:
        """Priors for every catalog skill, or {} when the session has no resume data."""
        if self.resume_skills is None:
            return {}

        verified = self.resume_skills.verified_skills(session_id)
        if not verified:
            logger.debug("No resume data for session %s, using neutral priors", session_id)
            return {}

        return {
            skill.code: RESUME_PRESENT_PRIOR if matches_resume(skill.code, verified) else RESUME_ABSENT_PRIOR
            for skill in self.skill_catalog.list_all()
        }

    def prior_for(self, session_id: str, skill_code: str) -> float:
        if self.resume_skills is None:
            return NEUTRAL_BELIEF
        verified = self.resume_skills.verified_skills(session_id)
        if not verified:
            return NEUTRAL_BELIEF
        return RESUME_PRESENT_PRIOR if matches_resume(skill_code, verified) else RESUME_ABSENT_PRIOR

    # ==================== Updates ====================

    def record_evidence(self, session_id: str, skill_code: str, evidence: float,
                        response_id: Optional[str] = None) -> SkillBelief:
        """Apply direct evidence to a skill, creating its belief row if needed."""
        evidence = clamp(evidence)

        with self.locks.hold(session_id):
            row = self.store.get_belief(session_id, skill_code)

            if row is None:
                row = SkillBelief(skill_code=skill_code, belief=evidence, confidence=INITIAL_CONFIDENCE)
            else:
                b, c = row.belief, row.confidence
                row.belief = clamp((b * c + evidence * DIRECT_EVIDENCE_WEIGHT) / (c + DIRECT_EVIDENCE_WEIGHT))
                row.confidence = min(c + CONFIDENCE_STEP, 1.0)

            if response_id is not None:
                row.evidence_ids.append(response_id)

            self.store.save_belief(session_id, row)

        logger.debug(
            "Session %s skill %s: belief=%.3f confidence=%.2f",
            session_id, skill_code, row.belief, row.confidence,
        )
        return row

    def apply_propagated(self, session_id: str, skill_code: str, propagated: float) -> Optional[SkillBelief]:
        """Blend propagated evidence into an existing row. Never creates a row."""
        with self.locks.hold(session_id):
            row = self.store.get_belief(session_id, skill_code)
            if row is None:
                return None

            b, c = row.belief, row.confidence
            row.belief = clamp((b * c + propagated * PROPAGATED_EVIDENCE_WEIGHT) / (c + PROPAGATED_EVIDENCE_WEIGHT))
            self.store.save_belief(session_id, row)
            return row

    # ==================== Views ====================

    def snapshot(self, session_id: str) -> Dict[str, float]:
        """
        Posterior belief for every catalog skill.

        Starts from the prior; where a row exists its confidence decides how
        far the stored belief overrides the prior:
            posterior = prior * (1 - confidence) + belief * confidence
        """
        priors = self.resume_priors(session_id)
        rows = self.store.list_beliefs(session_id)

        beliefs: Dict[str, float] = {}
        for skill in self.skill_catalog.list_all():
            prior = priors.get(skill.code, NEUTRAL_BELIEF)
            row = rows.get(skill.code)
            if row is None:
                beliefs[skill.code] = prior
            else:
                beliefs[skill.code] = prior * (1 - row.confidence) + row.belief * row.confidence
        return beliefs

    def belief_of(self, session_id: str, skill_code: str) -> float:
        """
        Stored belief for one skill, or a flat 0.5.

        Unlike snapshot() this ignores resume priors and confidence, so the
        two views disagree for skills that have no row or a non-neutral prior.
        """
        row = self.store.get_belief(session_id, skill_code)
        return row.belief if row is not None else NEUTRAL_BELIEF

    def get_row(self, session_id: str, skill_code: str) -> Optional[SkillBelief]:
        return self.store.get_belief(session_id, skill_code)

    def high_confidence_skills(self, session_id: str, threshold: float) -> List[str]:
        """Skills with a stored belief at or above threshold."""
        rows = self.store.list_beliefs(session_id)
        return [code for code, row in rows.items() if row.belief >= threshold]

    def low_confidence_skills(self, session_id: str, threshold: float) -> List[str]:
        """Skills with a stored belief at or below threshold."""
        rows = self.store.list_beliefs(session_id)
        return [code for code, row in rows.items() if row.belief <= threshold]

    def skill_gaps(self, session_id: str) -> Dict[str, float]:
        """1 - stored belief for every catalog skill (0.5 where nothing is known)."""
        rows = self.store.list_beliefs(session_id)
        return {
            skill.code: 1.0 - (rows[skill.code].belief if skill.code in rows else NEUTRAL_BELIEF)
            for skill in self.skill_catalog.list_all()
        }
