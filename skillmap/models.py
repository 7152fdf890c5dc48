"""
Models - Reference data and per-session state.

Reference data (skills, dependencies, questions) is immutable within a
session. Per-session state (responses, beliefs, sessions) is owned by a store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class DependencyType(str, Enum):
    PREREQUISITE = "prerequisite"
    COMPLEMENTARY = "complementary"
    ADVANCED = "advanced"


class QuestionType(str, Enum):
    MCQ = "mcq"
    TEXT = "text"

    @classmethod
    def parse(cls, value) -> "QuestionType":
        """Accept enum members and loose strings ("MCQ", "choice", "text")."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text in ("mcq", "choice"):
            return cls.MCQ
        return cls.TEXT


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


# Categorical difficulty labels used by the question bank
DIFFICULTY_LABELS = {
    "easy": 0.25,
    "beginner": 0.25,
    "intermediate": 0.5,
    "medium": 0.5,
    "advanced": 0.75,
    "hard": 0.75,
}


def parse_difficulty(value) -> float:
    """Map a numeric or categorical difficulty onto [0, 1]. Unknown -> 0.5."""
    if value is None:
        return 0.5
    if isinstance(value, str):
        label = value.strip().lower()
        if label in DIFFICULTY_LABELS:
            return DIFFICULTY_LABELS[label]
        try:
            value = float(label)
        except ValueError:
            return 0.5
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class Skill:
    code: str
    display_name: str = ""
    category: Optional[str] = None
    importance_weight: float = 1.0
    description: str = ""
    keywords: tuple = ()


@dataclass(frozen=True)
class SkillDependency:
    """Directed relation parent -> child (the parent is a prerequisite of the child)."""
    parent_code: str
    child_code: str
    weight: float = 1.0
    dependency_type: DependencyType = DependencyType.PREREQUISITE


@dataclass(frozen=True)
class Question:
    id: str
    skill_code: str
    question_type: QuestionType = QuestionType.TEXT
    difficulty: float = 0.5
    text: str = ""
    options: tuple = ()
    correct_answer: Optional[str] = None
    context_hint: Optional[str] = None
    topic: Optional[str] = None

    @property
    def category(self) -> str:
        """Category used for type diversity: explicit topic, else question type."""
        return self.topic or self.question_type.value

    @property
    def is_mcq(self) -> bool:
        return self.question_type == QuestionType.MCQ


@dataclass
class Response:
    """A user's answer to one question, plus derived quality metrics."""
    id: str
    question_id: str
    session_id: str
    answer_text: Optional[str] = None
    is_correct: Optional[bool] = None
    specificity_score: Optional[float] = None
    depth_score: Optional[float] = None
    word_count: Optional[int] = None
    similarity_score: Optional[float] = None
    think_time_seconds: Optional[int] = None
    total_time_seconds: Optional[int] = None
    answered_at: datetime = field(default_factory=datetime.now)
    evidence: Optional[float] = None  # Last evidence value applied to beliefs


@dataclass
class SkillBelief:
    """Belief state for one skill within one session."""
    skill_code: str
    belief: float
    confidence: float
    evidence_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "skill_code": self.skill_code,
            "belief": self.belief,
            "confidence": self.confidence,
            "evidence_ids": list(self.evidence_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SkillBelief":
        return cls(
            skill_code=data["skill_code"],
            belief=float(data.get("belief", 0.5)),
            confidence=float(data.get("confidence", 0.5)),
            evidence_ids=list(data.get("evidence_ids", [])),
        )


@dataclass
class AssessmentSession:
    id: str
    token: str = ""
    target_role: Optional[str] = None
    status: SessionStatus = SessionStatus.IN_PROGRESS
    answered_question_ids: List[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    def mark_answered(self, question_id: str):
        if question_id not in self.answered_question_ids:
            self.answered_question_ids.append(question_id)
