"""
Redis Store - Session, response and belief state management.

Key Structure:
    session:{session_id}:state     -> Hash (token, target_role, status, timestamps)
    session:{session_id}:answered  -> List (question ids, in answer order)
    session:{session_id}:responses -> List (JSON of each response)
    session:{session_id}:beliefs   -> Hash (skill_code -> JSON SkillBelief)
"""

import json
from datetime import datetime
from typing import Dict, List, Optional

import redis

from .config import EngineConfig, load_config
from .models import AssessmentSession, Response, SessionStatus, SkillBelief


def _response_to_json(response: Response) -> str:
    return json.dumps({
        "id": response.id,
        "question_id": response.question_id,
        "session_id": response.session_id,
        "answer_text": response.answer_text,
        "is_correct": response.is_correct,
        "specificity_score": response.specificity_score,
        "depth_score": response.depth_score,
        "word_count": response.word_count,
        "similarity_score": response.similarity_score,
        "think_time_seconds": response.think_time_seconds,
        "total_time_seconds": response.total_time_seconds,
        "answered_at": response.answered_at.isoformat(),
        "evidence": response.evidence,
    })


def _response_from_json(raw: str) -> Response:
    data = json.loads(raw)
    data["answered_at"] = datetime.fromisoformat(data["answered_at"])
    return Response(**data)


class RedisStore:
    def __init__(self, client: Optional[redis.Redis] = None, config: Optional[EngineConfig] = None):
        """Connect to Redis using config values (REDIS_HOST, REDIS_PORT, REDIS_PASSWORD)."""
        if client is None:
            config = config or load_config()
            client = redis.Redis(
                host=config.REDIS_HOST,
                port=config.REDIS_PORT,
                password=config.REDIS_PASSWORD,
                decode_responses=True  # Return strings instead of bytes
            )
        self.client = client

    # ==================== Key Builders ====================

    def _state_key(self, session_id: str) -> str:
        """Redis key for session state."""
        return f"session:{session_id}:state"

    def _answered_key(self, session_id: str) -> str:
        """Redis key for answered question ids."""
        return f"session:{session_id}:answered"

    def _responses_key(self, session_id: str) -> str:
        """Redis key for response history."""
        return f"session:{session_id}:responses"

    def _beliefs_key(self, session_id: str) -> str:
        """Redis key for skill beliefs."""
        return f"session:{session_id}:beliefs"

    # ==================== Session Management ====================

    def save_session(self, session: AssessmentSession):
        """
        Store session state and its answered question ids.

        Args:
            session: Session to store (overwrites any existing state)
        """
        state = {
            "token": session.token,
            "target_role": session.target_role or "",
            "status": session.status.value,
            "started_at": session.started_at.isoformat(),
            "completed_at": session.completed_at.isoformat() if session.completed_at else "",
        }
        answered_key = self._answered_key(session.id)

        pipe = self.client.pipeline()
        pipe.hset(self._state_key(session.id), mapping=state)
        pipe.delete(answered_key)
        if session.answered_question_ids:
            pipe.rpush(answered_key, *session.answered_question_ids)
        pipe.execute()

    def get_session(self, session_id: str) -> Optional[AssessmentSession]:
        """
        Retrieve a session from Redis.

        Args:
            session_id: Session to retrieve

        Returns:
            AssessmentSession, or None if not found
        """
        state = self.client.hgetall(self._state_key(session_id))
        if not state:
            return None

        completed_at = state.get("completed_at")
        return AssessmentSession(
            id=session_id,
            token=state.get("token", ""),
            target_role=state.get("target_role") or None,
            status=SessionStatus(state.get("status", SessionStatus.IN_PROGRESS.value)),
            answered_question_ids=self.client.lrange(self._answered_key(session_id), 0, -1),
            started_at=datetime.fromisoformat(state["started_at"]) if state.get("started_at") else datetime.now(),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
        )

    def delete_session(self, session_id: str):
        """
        Delete all data for a session, beliefs included.

        Args:
            session_id: Session to delete
        """
        self.client.delete(
            self._state_key(session_id),
            self._answered_key(session_id),
            self._responses_key(session_id),
            self._beliefs_key(session_id)
        )

    # ==================== Responses ====================

    def append_response(self, response: Response):
        """
        Append a response and mark its question answered.

        Args:
            response: Response to record
        """
        self.client.rpush(self._responses_key(response.session_id), _response_to_json(response))

        answered_key = self._answered_key(response.session_id)
        if response.question_id not in self.client.lrange(answered_key, 0, -1):
            self.client.rpush(answered_key, response.question_id)

    def update_response(self, response: Response):
        """Replace a stored response in place (matched by id), or append it."""
        key = self._responses_key(response.session_id)
        for index, raw in enumerate(self.client.lrange(key, 0, -1)):
            if json.loads(raw)["id"] == response.id:
                self.client.lset(key, index, _response_to_json(response))
                return
        self.client.rpush(key, _response_to_json(response))

    def responses_for(self, session_id: str) -> List[Response]:
        """Get all recorded responses for a session, oldest first."""
        raw = self.client.lrange(self._responses_key(session_id), 0, -1)
        return [_response_from_json(r) for r in raw]

    def answered_question_ids(self, session_id: str) -> List[str]:
        return self.client.lrange(self._answered_key(session_id), 0, -1)

    # ==================== Beliefs ====================

    def get_belief(self, session_id: str, skill_code: str) -> Optional[SkillBelief]:
        raw = self.client.hget(self._beliefs_key(session_id), skill_code)
        return SkillBelief.from_dict(json.loads(raw)) if raw else None

    def save_belief(self, session_id: str, belief: SkillBelief):
        self.client.hset(self._beliefs_key(session_id), belief.skill_code, json.dumps(belief.to_dict()))

    def list_beliefs(self, session_id: str) -> Dict[str, SkillBelief]:
        raw = self.client.hgetall(self._beliefs_key(session_id))
        return {code: SkillBelief.from_dict(json.loads(value)) for code, value in raw.items()}
