"""
Resume skills - Verified skills used as belief priors.

The resume parser itself lives outside this package; this module turns its
output into a normalized skill set and serves it per session.
"""

import json
import logging
import re
import threading
from typing import Dict, Iterable, Optional, Set

logger = logging.getLogger(__name__)

# Common tech skills to look for in raw resume text
COMMON_SKILLS = [
    "java", "python", "javascript", "react", "spring",
    "sql", "git", "docker", "aws", "kubernetes",
]

_QUOTED = re.compile(r'"(.*?)"')


def extract_verified_skills(extracted_skills: Optional[str] = None,
                            raw_text: Optional[str] = None) -> Set[str]:
    """
    Normalize parser output into a lowercase skill set.

    Args:
        extracted_skills: JSON array of skill names. Malformed JSON falls
            back to picking out quoted strings.
        raw_text: Resume text, scanned for COMMON_SKILLS.

    Returns:
        Set of lowercase skill names (empty when nothing was found)
    """
    skills: Set[str] = set()

    if extracted_skills:
        try:
            names = json.loads(extracted_skills)
            if not isinstance(names, list):
                raise ValueError("expected a JSON array")
            for name in names:
                if isinstance(name, str) and name.strip():
                    skills.add(name.strip().lower())
        except ValueError as e:
            logger.warning("Failed to parse extracted skills JSON: %s", e)
            for match in _QUOTED.findall(extracted_skills):
                if match.strip():
                    skills.add(match.strip().lower())

    if raw_text:
        text = raw_text.lower()
        skills.update(skill for skill in COMMON_SKILLS if skill in text)

    return skills


def matches_resume(skill_code: str, resume_skills: Iterable[str]) -> bool:
    """True when the skill code and a resume skill contain one another (case-insensitive)."""
    code = skill_code.lower()
    return any(s.lower() in code or code in s.lower() for s in resume_skills)


class ResumeSkillRegistry:
    """Per-session verified skills. Sessions without resume data get an empty set."""

    def __init__(self):
        self._lock = threading.Lock()
        self._skills: Dict[str, Set[str]] = {}

    def register(self, session_id: str, skills: Iterable[str]):
        normalized = {s.strip().lower() for s in skills if s and s.strip()}
        with self._lock:
            self._skills[session_id] = normalized
        logger.info("Registered %d resume skills for session %s", len(normalized), session_id)

    def register_resume(self, session_id: str, extracted_skills: Optional[str] = None,
                        raw_text: Optional[str] = None):
        self.register(session_id, extract_verified_skills(extracted_skills, raw_text))

    def verified_skills(self, session_id: str) -> Set[str]:
        return set(self._skills.get(session_id, set()))
