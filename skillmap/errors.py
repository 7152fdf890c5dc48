"""
Errors - Exception taxonomy for the assessment engine.

Most of these never reach a caller: the engine catches them where they occur
and substitutes a neutral value so an assessment can always progress or stop.
"""


class AssessmentError(Exception):
    """Base class for assessment engine errors."""


class GraphCycleError(AssessmentError):
    """The skill graph contains a cycle, so no topological order exists."""

    def __init__(self, cycle=None):
        self.cycle = cycle or []
        path = " -> ".join(str(u) for u, _ in self.cycle)
        super().__init__(f"Skill graph contains a cycle: {path}" if path else "Skill graph contains a cycle")


class DataError(AssessmentError):
    """A referenced skill, question or session does not exist."""


class ScoringError(AssessmentError):
    """Scoring a response or a candidate question failed."""


class ExternalProviderError(AssessmentError):
    """The similarity / embedding provider is unavailable or failed."""
