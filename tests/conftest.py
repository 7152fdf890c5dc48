"""
Shared fixtures: a small programming-centric skill catalog.

    python -> data_structures -> algorithms     (Programming)
    sql                                          (Data)
    docker                                       (Cloud)
"""

import random

import pytest

from skillmap.catalog import QuestionCatalog, SkillCatalog
from skillmap.config import EngineConfig
from skillmap.engine import AssessmentEngine
from skillmap.memory_store import InMemoryStore
from skillmap.models import AssessmentSession, Question, QuestionType, Skill, SkillDependency
from skillmap.skill_graph import GraphRegistry


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture(autouse=True)
def no_openai_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


@pytest.fixture
def skills():
    return [
        Skill(code="python", display_name="Python", category="Programming"),
        Skill(code="data_structures", display_name="Data Structures", category="Programming"),
        Skill(code="algorithms", display_name="Algorithms", category="Programming"),
        Skill(code="sql", display_name="SQL", category="Data"),
        Skill(code="docker", display_name="Docker", category="Cloud"),
    ]


@pytest.fixture
def dependencies():
    return [
        SkillDependency(parent_code="python", child_code="data_structures"),
        SkillDependency(parent_code="data_structures", child_code="algorithms"),
    ]


@pytest.fixture
def questions():
    qs = []
    for skill in ["python", "data_structures", "algorithms", "sql", "docker"]:
        qs.append(Question(id=f"{skill}_mcq", skill_code=skill, question_type=QuestionType.MCQ,
                           difficulty=0.5, text=f"Pick the right {skill} answer", topic="concepts"))
        qs.append(Question(id=f"{skill}_text", skill_code=skill, question_type=QuestionType.TEXT,
                           difficulty=0.75, text=f"Explain how you use {skill}",
                           context_hint=f"{skill} in production", topic="experience"))
    return qs


@pytest.fixture
def skill_catalog(skills, dependencies):
    return SkillCatalog(skills, dependencies)


@pytest.fixture
def question_catalog(questions):
    return QuestionCatalog(questions)


@pytest.fixture
def registry(skill_catalog):
    registry = GraphRegistry(skill_catalog)
    registry.rebuild()
    return registry


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def session(store):
    session = AssessmentSession(id="s1", token="tok")
    store.save_session(session)
    return session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def engine(skill_catalog, question_catalog, store, config, clock):
    engine = AssessmentEngine(
        skill_catalog, question_catalog, store=store, config=config,
        rng=random.Random(7), clock=clock,
    )
    yield engine
    engine.shutdown()
