"""Tests for redis_store.py (against fakeredis)"""

import pytest

from skillmap.belief_store import BeliefStore
from skillmap.models import AssessmentSession, Response, SessionStatus, SkillBelief

fakeredis = pytest.importorskip("fakeredis")

from skillmap.redis_store import RedisStore  # noqa: E402


@pytest.fixture
def redis_store():
    return RedisStore(client=fakeredis.FakeRedis(decode_responses=True))


def test_session_round_trip(redis_store):
    session = AssessmentSession(id="test_session_123", token="tok", target_role="Data Engineer")
    redis_store.save_session(session)

    loaded = redis_store.get_session("test_session_123")
    assert loaded.token == "tok"
    assert loaded.target_role == "Data Engineer"
    assert loaded.status == SessionStatus.IN_PROGRESS
    assert loaded.completed_at is None

    assert redis_store.get_session("missing") is None


def test_responses_mark_questions_answered(redis_store):
    redis_store.save_session(AssessmentSession(id="s1", token="tok"))
    redis_store.append_response(Response(id="r1", question_id="q1", session_id="s1", is_correct=True))
    redis_store.append_response(Response(id="r2", question_id="q1", session_id="s1", is_correct=False))
    redis_store.append_response(Response(id="r3", question_id="q2", session_id="s1",
                                         answer_text="hello", total_time_seconds=42.0))

    assert redis_store.answered_question_ids("s1") == ["q1", "q2"]
    assert redis_store.get_session("s1").answered_question_ids == ["q1", "q2"]

    responses = redis_store.responses_for("s1")
    assert [r.id for r in responses] == ["r1", "r2", "r3"]
    assert responses[2].answer_text == "hello"
    assert responses[2].total_time_seconds == 42.0


def test_update_response_in_place(redis_store):
    response = Response(id="r1", question_id="q1", session_id="s1", answer_text="draft")
    redis_store.append_response(response)

    response.similarity_score = 0.8
    response.evidence = 0.6
    redis_store.update_response(response)

    stored = redis_store.responses_for("s1")
    assert len(stored) == 1
    assert stored[0].similarity_score == 0.8
    assert stored[0].evidence == 0.6


def test_beliefs(redis_store):
    assert redis_store.get_belief("s1", "sql") is None

    redis_store.save_belief("s1", SkillBelief(skill_code="sql", belief=0.7, confidence=0.6,
                                              evidence_ids=["r1", "r2"]))
    belief = redis_store.get_belief("s1", "sql")
    assert belief.belief == 0.7
    assert belief.evidence_ids == ["r1", "r2"]
    assert set(redis_store.list_beliefs("s1")) == {"sql"}


def test_delete_session_drops_everything(redis_store):
    redis_store.save_session(AssessmentSession(id="s1", token="tok"))
    redis_store.append_response(Response(id="r1", question_id="q1", session_id="s1"))
    redis_store.save_belief("s1", SkillBelief(skill_code="sql", belief=0.7, confidence=0.6))

    redis_store.delete_session("s1")

    assert redis_store.get_session("s1") is None
    assert redis_store.responses_for("s1") == []
    assert redis_store.list_beliefs("s1") == {}


def test_belief_store_on_redis(redis_store, skill_catalog):
    beliefs = BeliefStore(redis_store, skill_catalog)
    beliefs.record_evidence("s1", "python", 1.0, "r1")
    row = beliefs.record_evidence("s1", "python", 0.49, "r2")

    assert row.belief == pytest.approx(0.745)
    assert beliefs.snapshot("s1")["python"] == pytest.approx(0.5 * 0.4 + 0.745 * 0.6)
