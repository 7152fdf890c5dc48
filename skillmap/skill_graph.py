"""
Skill Graph - Manages the skill dependency DAG.

Features:
    - Prerequisite relationships as directed edges (parent -> child)
    - Transitive prerequisite / dependent lookup
    - Topological ordering with cycle detection
    - Coarse structural "level" per skill
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Set, Tuple

import networkx as nx

from .correlation import CorrelationIndex
from .errors import GraphCycleError
from .models import Skill, SkillDependency

logger = logging.getLogger(__name__)


class SkillGraph:
    """
    Directed graph of skills.

    Each dependency record adds one edge from its parent skill to its child
    skill, so the prerequisites of a skill are its ancestors and the skills
    that build on it are its descendants. The graph is expected to be acyclic
    but this is not enforced; traversals still terminate on a cycle.
    """

    def __init__(self, skills: Iterable[Skill], dependencies: Iterable[SkillDependency] = ()):
        self.graph = nx.DiGraph()
        self.skills: Dict[str, Skill] = {}

        for skill in skills:
            self._add_skill(skill)

        for dependency in dependencies:
            self._add_dependency(dependency)

        logger.info(
            "Skill graph built with %d vertices and %d edges",
            self.graph.number_of_nodes(), self.graph.number_of_edges(),
        )

    def _add_skill(self, skill: Skill):
        self.skills[skill.code] = skill
        self.graph.add_node(skill.code, category=skill.category)

    def _add_dependency(self, dependency: SkillDependency):
        parent, child = dependency.parent_code, dependency.child_code
        if parent not in self.skills or child not in self.skills:
            logger.warning("Skipping dependency %s -> %s: unknown skill", parent, child)
            return
        self.graph.add_edge(
            parent, child,
            weight=dependency.weight,
            dependency_type=dependency.dependency_type.value,
        )

    # ==================== Query Methods ====================

    def get_skill(self, skill_code: str) -> Optional[Skill]:
        return self.skills.get(skill_code)

    def __contains__(self, skill_code: str) -> bool:
        return skill_code in self.skills

    def get_prerequisites(self, skill_code: str) -> List[str]:
        """Get immediate prerequisites (one level up)."""
        if skill_code not in self.graph:
            return []
        return list(self.graph.predecessors(skill_code))

    def prerequisites_of(self, skill_code: str) -> Set[str]:
        """Get ALL prerequisites recursively (walks incoming edges)."""
        if skill_code not in self.graph:
            return set()
        return nx.ancestors(self.graph, skill_code)

    def get_dependents(self, skill_code: str) -> List[str]:
        """Get skills that build on this one (one level down)."""
        if skill_code not in self.graph:
            return []
        return list(self.graph.successors(skill_code))

    def dependents_of(self, skill_code: str) -> Set[str]:
        """Get ALL dependents recursively (walks outgoing edges)."""
        if skill_code not in self.graph:
            return set()
        return nx.descendants(self.graph, skill_code)

    def level(self, skill_code: str) -> int:
        """
        Number of distinct prerequisites + 1.

        This is an approximation of how foundational a skill is, not its
        longest-path depth: a skill with two independent prerequisites gets
        level 3 even though it sits one step below them. Unknown skills get 0.
        """
        if skill_code not in self.graph:
            return 0
        return len(self.prerequisites_of(skill_code)) + 1

    def levels(self) -> Dict[str, int]:
        return {code: self.level(code) for code in self.graph.nodes}

    def skills_in_category(self, category: Optional[str]) -> List[str]:
        if category is None:
            return []
        return [code for code, skill in self.skills.items() if skill.category == category]

    # ==================== Ordering ====================

    def topological_order(self) -> List[str]:
        """Get all skill codes with prerequisites first. Raises GraphCycleError on a cycle."""
        try:
            return list(nx.topological_sort(self.graph))
        except nx.NetworkXUnfeasible:
            raise GraphCycleError(self.find_cycle()) from None

    def has_cycles(self) -> bool:
        return not nx.is_directed_acyclic_graph(self.graph)

    def find_cycle(self) -> list:
        """Return one cycle as a list of edges, or [] when the graph is acyclic."""
        try:
            return list(nx.find_cycle(self.graph))
        except nx.NetworkXNoCycle:
            return []

    # ==================== Statistics ====================

    def get_stats(self) -> dict:
        """Get graph statistics."""
        categories: Dict[str, int] = {}
        for skill in self.skills.values():
            key = skill.category or "uncategorized"
            categories[key] = categories.get(key, 0) + 1

        cyclic = self.has_cycles()
        return {
            "total_skills": self.graph.number_of_nodes(),
            "total_edges": self.graph.number_of_edges(),
            "skills_per_category": categories,
            "has_cycles": cyclic,
            "max_depth": 0 if cyclic or not self.skills else nx.dag_longest_path_length(self.graph),
        }


class GraphRegistry:
    """
    Holds the process-wide skill graph and its correlation index.

    `build()` is called explicitly at startup and `rebuild()` whenever the
    skill catalog changes. Both replace the published pair under one lock;
    readers grab the current pair without locking.
    """

    def __init__(self, skill_catalog=None):
        self.skill_catalog = skill_catalog
        self._lock = threading.Lock()
        self._state: Optional[Tuple[SkillGraph, CorrelationIndex]] = None

    def build(self, skills: Iterable[Skill], dependencies: Iterable[SkillDependency]):
        with self._lock:
            graph = SkillGraph(skills, dependencies)
            if graph.has_cycles():
                logger.error("Skill graph has cycles: %s", graph.find_cycle())
            correlations = CorrelationIndex.from_graph(graph)
            self._state = (graph, correlations)
        return graph

    def rebuild(self) -> SkillGraph:
        """Re-read the skill catalog and rebuild the graph and correlations."""
        if self.skill_catalog is None:
            raise RuntimeError("GraphRegistry.rebuild() needs a skill catalog")
        logger.info("Rebuilding skill graph from catalog")
        return self.build(self.skill_catalog.list_all(), self.skill_catalog.list_dependencies())

    def current(self) -> Tuple[SkillGraph, CorrelationIndex]:
        """The graph and correlation index published by the last build."""
        state = self._state
        if state is None:
            raise RuntimeError("Skill graph has not been built; call build() first")
        return state

    @property
    def graph(self) -> SkillGraph:
        return self.current()[0]

    @property
    def correlations(self) -> CorrelationIndex:
        return self.current()[1]

    @property
    def is_built(self) -> bool:
        return self._state is not None
