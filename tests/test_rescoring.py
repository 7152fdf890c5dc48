"""Tests for similarity.py and rescoring.py"""

import random
import threading

import numpy as np
import pytest

from skillmap.config import EngineConfig
from skillmap.engine import AssessmentEngine
from skillmap.models import Response
from skillmap.similarity import EmbeddingSimilarityScorer, cosine_similarity


class FakeEmbeddings:
    def __init__(self, vectors=None, error=None):
        self.vectors = vectors or {}
        self.error = error
        self.calls = 0

    def embed_documents(self, texts):
        self.calls += 1
        if self.error:
            raise self.error
        return [self.vectors.get(t, [1.0, 0.0]) for t in texts]


class GatedSimilarity:
    """Blocks inside similarity() until released."""

    def __init__(self, value):
        self.value = value
        self.started = threading.Event()
        self.release = threading.Event()

    def similarity(self, expected, actual):
        self.started.set()
        self.release.wait(timeout=5)
        return self.value


class FixedSimilarity:
    def __init__(self, value):
        self.value = value
        self.calls = []

    def similarity(self, expected, actual):
        self.calls.append((expected, actual))
        return self.value


# ==================== Similarity ====================

def test_cosine_similarity():
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == 0.0
    assert cosine_similarity([1.0], [1.0, 0.0]) is None
    assert cosine_similarity([], []) is None
    assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


def test_cosine_similarity_accepts_arrays():
    a = np.array([3.0, 4.0])
    assert cosine_similarity(a, np.array([6.0, 8.0])) == pytest.approx(1.0)
    assert cosine_similarity(a, np.array([4.0, 3.0])) == pytest.approx(0.96)
    assert cosine_similarity(a, np.array([1.0, 2.0, 3.0])) is None


def test_embedding_similarity():
    embeddings = FakeEmbeddings({"expected": [1.0, 1.0], "actual": [1.0, 0.0]})
    scorer = EmbeddingSimilarityScorer(embeddings=embeddings)

    assert scorer.available
    assert scorer.similarity("expected", "actual") == pytest.approx(0.7071, abs=1e-3)


def test_blank_text_skips_provider():
    embeddings = FakeEmbeddings()
    scorer = EmbeddingSimilarityScorer(embeddings=embeddings)

    assert scorer.similarity("expected", "   ") is None
    assert scorer.similarity(None, "actual") is None
    assert embeddings.calls == 0


def test_provider_failure_returns_none():
    scorer = EmbeddingSimilarityScorer(embeddings=FakeEmbeddings(error=RuntimeError("rate limited")))
    assert scorer.similarity("expected", "actual") is None


def test_unavailable_without_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    scorer = EmbeddingSimilarityScorer.from_config(EngineConfig())

    assert not scorer.available
    assert scorer.similarity("expected", "actual") is None


# ==================== Background Rescoring ====================

@pytest.fixture
def rescoring_engine(skill_catalog, question_catalog, store, config, clock):
    similarity = FixedSimilarity(0.9)
    engine = AssessmentEngine(
        skill_catalog, question_catalog, store=store, similarity_scorer=similarity,
        config=config, rng=random.Random(7), clock=clock,
    )
    yield engine, similarity
    engine.shutdown()


def test_rescore_applies_authoritative_evidence(rescoring_engine):
    engine, similarity = rescoring_engine
    session = engine.start_session(session_id="s1")

    response = Response(id="r1", question_id="sql_text", session_id=session.id,
                        answer_text="x" * 200, specificity_score=0.6)
    # fast score: 0.6 * 0.3 + 0.4 * 0.4, no depth
    assert engine.record_response(response) == pytest.approx(0.34)
    engine.rescorer.drain(timeout=5)

    assert similarity.calls == [("sql in production", "x" * 200)]
    stored = engine.store.responses_for(session.id)[0]
    assert stored.similarity_score == 0.9
    # similarity stands in for depth: 0.34 + 0.9 * 0.3
    assert stored.evidence == pytest.approx(0.61)

    row = engine.beliefs.get_row(session.id, "sql")
    assert row.belief == pytest.approx((0.34 * 0.5 + 0.61 * 0.5) / 1.0)
    assert row.confidence == pytest.approx(0.6)
    assert row.evidence_ids == ["r1", "r1"]
    # the caller's response keeps the fast score
    assert response.evidence == pytest.approx(0.34)
    assert response.similarity_score is None


def test_record_response_returns_fast_score_while_rescoring(skill_catalog, question_catalog, store, config, clock):
    similarity = GatedSimilarity(0.9)
    engine = AssessmentEngine(
        skill_catalog, question_catalog, store=store, similarity_scorer=similarity,
        config=config, rng=random.Random(7), clock=clock,
    )
    try:
        session = engine.start_session(session_id="s1")
        response = Response(id="r1", question_id="sql_text", session_id=session.id,
                            answer_text="x" * 200, specificity_score=0.6)

        evidence = engine.record_response(response)
        assert similarity.started.wait(timeout=5)
        assert evidence == pytest.approx(0.34)

        similarity.release.set()
        engine.rescorer.drain(timeout=5)

        assert evidence == pytest.approx(0.34)
        assert response.evidence == pytest.approx(0.34)
        assert engine.store.responses_for(session.id)[0].evidence == pytest.approx(0.61)
    finally:
        similarity.release.set()
        engine.shutdown()


def test_rescore_keeps_fast_score_when_depth_known(rescoring_engine):
    engine, _ = rescoring_engine
    session = engine.start_session(session_id="s1")

    response = Response(id="r1", question_id="sql_text", session_id=session.id,
                        answer_text="x" * 200, specificity_score=0.6, depth_score=0.5)
    engine.record_response(response)
    engine.rescorer.drain(timeout=5)

    row = engine.beliefs.get_row(session.id, "sql")
    assert row.belief == pytest.approx(0.49)
    assert row.evidence_ids == ["r1"]
    assert engine.store.responses_for(session.id)[0].similarity_score == 0.9


def test_mcq_is_never_rescored(rescoring_engine):
    engine, similarity = rescoring_engine
    session = engine.start_session(session_id="s1")

    response = Response(id="r1", question_id="sql_mcq", session_id=session.id, is_correct=True)
    engine.record_response(response)

    assert engine.rescorer.submit(response, engine.question_catalog.find_by_id("sql_mcq")) is None
    engine.rescorer.drain(timeout=5)
    assert similarity.calls == []


def test_unavailable_similarity_keeps_fast_score(skill_catalog, question_catalog, store, config, clock):
    engine = AssessmentEngine(
        skill_catalog, question_catalog, store=store, similarity_scorer=FixedSimilarity(None),
        config=config, rng=random.Random(7), clock=clock,
    )
    try:
        session = engine.start_session(session_id="s1")
        response = Response(id="r1", question_id="sql_text", session_id=session.id,
                            answer_text="x" * 200, specificity_score=0.6)
        engine.record_response(response)
        engine.rescorer.drain(timeout=5)

        assert engine.beliefs.get_row(session.id, "sql").belief == pytest.approx(0.34)
        assert engine.store.responses_for(session.id)[0].similarity_score is None
    finally:
        engine.shutdown()
