"""Tests for scoring.py"""

import pytest

from skillmap.models import Question, QuestionType, Response
from skillmap.scoring import ResponseScorer, clamp

MCQ = Question(id="q1", skill_code="python", question_type=QuestionType.MCQ)
TEXT = Question(id="q2", skill_code="python", question_type=QuestionType.TEXT)


def _response(**kwargs):
    return Response(id="r1", question_id="q", session_id="s1", **kwargs)


@pytest.fixture
def scorer():
    return ResponseScorer()


def test_mcq_scores_on_correctness(scorer):
    assert scorer.score(_response(is_correct=True), MCQ) == 1.0
    assert scorer.score(_response(is_correct=False), MCQ) == 0.0
    assert scorer.score(_response(is_correct=None), MCQ) == 0.0


def test_text_blend(scorer):
    response = _response(answer_text="x" * 200, specificity_score=0.6, depth_score=0.5)
    # 0.3 * 0.6 + 0.4 * (200 / 500) + 0.3 * 0.5
    assert scorer.score(response, TEXT) == pytest.approx(0.49)


def test_text_length_caps_at_500_chars(scorer):
    response = _response(answer_text="x" * 2000)
    assert scorer.score(response, TEXT) == pytest.approx(0.4)


def test_text_metrics_are_clamped(scorer):
    response = _response(answer_text="x" * 500, specificity_score=3.0, depth_score=-1.0)
    assert scorer.score(response, TEXT) == pytest.approx(0.3 + 0.4)


def test_missing_text_scores_zero(scorer):
    assert scorer.score(_response(), TEXT) == 0.0
    assert scorer.score(_response(answer_text=""), TEXT) == 0.0


def test_malformed_text_scores_zero(scorer):
    assert scorer.score(_response(answer_text=12345), TEXT) == 0.0
    assert scorer.score(_response(answer_text="ok", specificity_score="high"), TEXT) == 0.0


def test_non_finite_metrics_score_zero(scorer):
    nan = float("nan")
    assert scorer.score(_response(specificity_score=nan, depth_score=nan), TEXT) == 0.0

    response = _response(answer_text="x" * 500, specificity_score=nan, depth_score=float("inf"))
    assert scorer.score(response, TEXT) == pytest.approx(0.4)
    assert scorer.authoritative_score(_response(answer_text="x" * 500), TEXT, similarity=nan) == pytest.approx(0.4)


def test_clamp_maps_non_finite_to_low():
    assert clamp(float("nan")) == 0.0
    assert clamp(float("-inf")) == 0.0
    assert clamp(float("inf"), low=0.2) == 0.2
    assert clamp(1.7) == 1.0


def test_similarity_stands_in_for_missing_depth(scorer):
    response = _response(answer_text="x" * 250, specificity_score=0.5)

    assert scorer.score(response, TEXT) == pytest.approx(0.15 + 0.2)
    assert scorer.authoritative_score(response, TEXT, similarity=0.8) == pytest.approx(0.15 + 0.2 + 0.24)


def test_similarity_does_not_override_depth(scorer):
    response = _response(answer_text="x" * 250, specificity_score=0.5, depth_score=0.1)
    assert scorer.authoritative_score(response, TEXT, similarity=0.9) == pytest.approx(0.15 + 0.2 + 0.03)


def test_authoritative_mcq_is_unchanged(scorer):
    assert scorer.authoritative_score(_response(is_correct=True), MCQ, similarity=0.1) == 1.0
