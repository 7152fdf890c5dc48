"""
In-memory session, response and belief store.

Same interface as RedisStore; used by tests and single-process hosts.
"""

import threading
from typing import Dict, List, Optional

from .models import AssessmentSession, Response, SkillBelief


class InMemoryStore:

    def __init__(self):
        self._lock = threading.RLock()
        self._sessions: Dict[str, AssessmentSession] = {}
        self._responses: Dict[str, List[Response]] = {}
        self._beliefs: Dict[str, Dict[str, SkillBelief]] = {}

    # ==================== Session Management ====================

    def save_session(self, session: AssessmentSession):
        with self._lock:
            self._sessions[session.id] = session

    def get_session(self, session_id: str) -> Optional[AssessmentSession]:
        return self._sessions.get(session_id)

    def delete_session(self, session_id: str):
        """Delete a session together with its responses and beliefs."""
        with self._lock:
            self._sessions.pop(session_id, None)
            self._responses.pop(session_id, None)
            self._beliefs.pop(session_id, None)

    # ==================== Responses ====================

    def append_response(self, response: Response):
        with self._lock:
            self._responses.setdefault(response.session_id, []).append(response)
            session = self._sessions.get(response.session_id)
            if session is not None:
                session.mark_answered(response.question_id)

    def update_response(self, response: Response):
        with self._lock:
            responses = self._responses.get(response.session_id, [])
            for i, existing in enumerate(responses):
                if existing.id == response.id:
                    responses[i] = response
                    return
            responses.append(response)

    def responses_for(self, session_id: str) -> List[Response]:
        with self._lock:
            return list(self._responses.get(session_id, []))

    def answered_question_ids(self, session_id: str) -> List[str]:
        seen: List[str] = []
        for response in self.responses_for(session_id):
            if response.question_id not in seen:
                seen.append(response.question_id)
        return seen

    # ==================== Beliefs ====================

    def get_belief(self, session_id: str, skill_code: str) -> Optional[SkillBelief]:
        with self._lock:
            belief = self._beliefs.get(session_id, {}).get(skill_code)
            return SkillBelief.from_dict(belief.to_dict()) if belief else None

    def save_belief(self, session_id: str, belief: SkillBelief):
        with self._lock:
            self._beliefs.setdefault(session_id, {})[belief.skill_code] = SkillBelief.from_dict(belief.to_dict())

    def list_beliefs(self, session_id: str) -> Dict[str, SkillBelief]:
        with self._lock:
            return {
                code: SkillBelief.from_dict(belief.to_dict())
                for code, belief in self._beliefs.get(session_id, {}).items()
            }
