"""
Correlation Index - Which skills share evidence, and how strongly.

Derived once from the skill graph. Evidence observed on one skill is spread
to its prerequisites, its dependents and its same-category peers.
"""

from typing import Dict, Iterator, Tuple

PREREQUISITE_WEIGHT = 0.7
DEPENDENT_WEIGHT = 0.6
CATEGORY_PEER_WEIGHT = 0.4


class CorrelationIndex:

    def __init__(self, correlations: Dict[str, Dict[str, float]]):
        self._correlations = correlations

    @classmethod
    def from_graph(cls, graph) -> "CorrelationIndex":
        """
        Build correlations for every skill in a SkillGraph.

        Weights are assigned prerequisites first, then dependents, then
        category peers, so a peer that is also a prerequisite ends up at the
        peer weight.
        """
        correlations: Dict[str, Dict[str, float]] = {}

        for code, skill in graph.skills.items():
            related: Dict[str, float] = {}

            for prereq in graph.prerequisites_of(code):
                related[prereq] = PREREQUISITE_WEIGHT
            for dependent in graph.dependents_of(code):
                related[dependent] = DEPENDENT_WEIGHT
            for peer in graph.skills_in_category(skill.category):
                related[peer] = CATEGORY_PEER_WEIGHT

            related.pop(code, None)
            correlations[code] = related

        return cls(correlations)

    def get(self, skill_code: str) -> Dict[str, float]:
        return dict(self._correlations.get(skill_code, {}))

    def items_for(self, skill_code: str) -> Iterator[Tuple[str, float]]:
        return iter(self._correlations.get(skill_code, {}).items())

    def __contains__(self, skill_code: str) -> bool:
        return skill_code in self._correlations

    def __len__(self) -> int:
        return len(self._correlations)
