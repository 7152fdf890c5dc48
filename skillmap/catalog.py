"""
Catalogs - Skill and question reference data.

Features:
    - In-memory skill / dependency / question providers
    - JSON catalog loading from a data directory
    - TTL cache over the question catalog with an injected clock
"""

import json
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .models import (
    DependencyType,
    Question,
    QuestionType,
    Skill,
    SkillDependency,
    parse_difficulty,
)

logger = logging.getLogger(__name__)


class SkillCatalog:

    def __init__(self, skills: Iterable[Skill] = (), dependencies: Iterable[SkillDependency] = ()):
        self._skills: Dict[str, Skill] = {s.code: s for s in skills}
        self._dependencies: List[SkillDependency] = list(dependencies)

    def list_all(self) -> List[Skill]:
        return list(self._skills.values())

    def find_by_code(self, code: str) -> Optional[Skill]:
        return self._skills.get(code)

    def find_by_category(self, category: str) -> List[Skill]:
        return [s for s in self._skills.values() if s.category == category]

    def list_dependencies(self) -> List[SkillDependency]:
        return list(self._dependencies)

    def add_skill(self, skill: Skill):
        self._skills[skill.code] = skill

    def add_dependency(self, dependency: SkillDependency):
        self._dependencies.append(dependency)


class QuestionCatalog:
    """Question provider. Mutations notify listeners (e.g. a QuestionCache)."""

    def __init__(self, questions: Iterable[Question] = ()):
        self._questions: Dict[str, Question] = {q.id: q for q in questions}
        self._listeners: List[Callable[[], None]] = []

    def list_all(self) -> List[Question]:
        return list(self._questions.values())

    def find_by_skill(self, skill_code: str) -> List[Question]:
        return [q for q in self._questions.values() if q.skill_code == skill_code]

    def find_by_id(self, question_id: str) -> Optional[Question]:
        return self._questions.get(question_id)

    def on_change(self, listener: Callable[[], None]):
        self._listeners.append(listener)

    def add(self, question: Question):
        self._questions[question.id] = question
        self._notify()

    def remove(self, question_id: str):
        if self._questions.pop(question_id, None) is not None:
            self._notify()

    def _notify(self):
        for listener in self._listeners:
            listener()


class QuestionCache:
    """
    TTL cache of the full question list.

    `clock` returns seconds (time.monotonic by default) so tests can drive
    expiry deterministically.
    """

    def __init__(self, catalog: QuestionCatalog, ttl: float = 300.0,
                 clock: Callable[[], float] = time.monotonic):
        self.catalog = catalog
        self.ttl = ttl
        self.clock = clock
        self._lock = threading.Lock()
        self._questions: Optional[List[Question]] = None
        self._loaded_at = 0.0

    def get(self) -> List[Question]:
        now = self.clock()
        with self._lock:
            if self._questions is None or (now - self._loaded_at) > self.ttl:
                logger.debug("Refreshing questions cache")
                self._questions = self.catalog.list_all()
                self._loaded_at = now
            return self._questions

    def invalidate(self):
        with self._lock:
            self._questions = None
            self._loaded_at = 0.0


# ==================== JSON Loading ====================

def _skill_from_dict(data: dict, category: Optional[str]) -> Skill:
    return Skill(
        code=data["code"],
        display_name=data.get("name", data["code"]),
        category=data.get("category", category),
        importance_weight=float(data.get("importance_weight", 1.0)),
        description=data.get("description", ""),
        keywords=tuple(data.get("keywords", [])),
    )


def _question_from_dict(data: dict, skill_code: str) -> Question:
    return Question(
        id=str(data["id"]),
        skill_code=data.get("skill_code", skill_code),
        question_type=QuestionType.parse(data.get("type", "text")),
        difficulty=parse_difficulty(data.get("difficulty")),
        text=data.get("text", ""),
        options=tuple(data.get("options", [])),
        correct_answer=data.get("correct_answer"),
        context_hint=data.get("context_hint"),
        topic=data.get("topic"),
    )


def _dependencies_from_dict(data: dict) -> List[SkillDependency]:
    deps = []
    for prereq in data.get("prerequisites", []):
        if isinstance(prereq, str):
            prereq = {"skill": prereq}
        deps.append(SkillDependency(
            parent_code=prereq["skill"],
            child_code=data["code"],
            weight=float(prereq.get("weight", 1.0)),
            dependency_type=DependencyType(prereq.get("type", "prerequisite")),
        ))
    return deps


def load_catalog(data_dir: str = "data/skills"):
    """
    Load skills, dependencies and questions from a data directory.

    Layout: one sub-directory per category holding JSON files, each either a
    single skill or {"skills": [...]}. A skill lists its prerequisites and
    its questions inline.

    Returns:
        (SkillCatalog, QuestionCatalog)
    """
    skills: List[Skill] = []
    dependencies: List[SkillDependency] = []
    questions: List[Question] = []

    root = Path(data_dir)
    if not root.exists():
        logger.warning("Catalog directory %s does not exist", root)
        return SkillCatalog(), QuestionCatalog()

    for category_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        for skill_file in sorted(category_dir.glob("*.json")):
            with open(skill_file, "r") as f:
                data = json.load(f)

            entries = data["skills"] if "skills" in data else [data]
            for entry in entries:
                skill = _skill_from_dict(entry, category_dir.name)
                skills.append(skill)
                dependencies.extend(_dependencies_from_dict(entry))
                questions.extend(_question_from_dict(q, skill.code) for q in entry.get("questions", []))

    logger.info(
        "Loaded %d skills, %d dependencies, %d questions from %s",
        len(skills), len(dependencies), len(questions), root,
    )
    return SkillCatalog(skills, dependencies), QuestionCatalog(questions)
