"""
Adaptive skill assessment engine.

Components:
    - skill_graph: Skill dependency DAG (prerequisites, dependents, levels)
    - correlation: Which skills share evidence, and how strongly
    - scoring: Response -> evidence in [0, 1]
    - similarity: Optional embedding similarity used for background rescoring
    - belief_store / belief_updater: Per-session beliefs and evidence propagation
    - question_selector: Warm-up + greedy information-value question choice
    - stopping_policy: When to end an assessment, and why
    - engine: The operations the surrounding application calls
"""

from .belief_store import BeliefStore, SessionLocks
from .belief_updater import BeliefUpdater
from .catalog import QuestionCache, QuestionCatalog, SkillCatalog, load_catalog
from .config import EngineConfig, configure_logging, load_config
from .correlation import CorrelationIndex
from .engine import AssessmentEngine, ProgressReport
from .errors import AssessmentError, DataError, ExternalProviderError, GraphCycleError, ScoringError
from .memory_store import InMemoryStore
from .models import (
    AssessmentSession,
    DependencyType,
    Question,
    QuestionType,
    Response,
    SessionStatus,
    Skill,
    SkillBelief,
    SkillDependency,
)
from .question_selector import QuestionSelector
from .resume import ResumeSkillRegistry, extract_verified_skills
from .scoring import ResponseScorer
from .similarity import EmbeddingSimilarityScorer, cosine_similarity
from .skill_graph import GraphRegistry, SkillGraph
from .stopping_policy import StoppingPolicy, StoppingStatus, StopReason

__all__ = [
    "AssessmentEngine",
    "AssessmentError",
    "AssessmentSession",
    "BeliefStore",
    "BeliefUpdater",
    "CorrelationIndex",
    "DataError",
    "DependencyType",
    "EmbeddingSimilarityScorer",
    "EngineConfig",
    "ExternalProviderError",
    "GraphCycleError",
    "GraphRegistry",
    "InMemoryStore",
    "ProgressReport",
    "Question",
    "QuestionCache",
    "QuestionCatalog",
    "QuestionSelector",
    "QuestionType",
    "Response",
    "ResponseScorer",
    "ResumeSkillRegistry",
    "ScoringError",
    "SessionLocks",
    "SessionStatus",
    "Skill",
    "SkillBelief",
    "SkillCatalog",
    "SkillDependency",
    "SkillGraph",
    "StopReason",
    "StoppingPolicy",
    "StoppingStatus",
    "configure_logging",
    "cosine_similarity",
    "extract_verified_skills",
    "load_catalog",
    "load_config",
]
