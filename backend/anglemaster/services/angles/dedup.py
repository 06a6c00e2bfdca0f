import logging
from typing import Optional, Set, Tuple

from .generator import ScenarioGenerator
from .scenario import Scenario


logger = logging.getLogger(__name__)

DEFAULT_DEDUP_ATTEMPTS = 20


def scenario_signature(scenario: Scenario) -> str:
    """Canonical key for a scenario, independent of reflector list order."""
    active = '|'.join(sorted(f"{r.row},{r.col},{r.type}" for r in scenario.reflectors))
    decoys = '|'.join(sorted(f"{d.row},{d.col}" for d in scenario.decoys))
    return f"{scenario.entry_edge}-{scenario.entry_index}-{active}-{decoys}"


class ScenarioDeduplicator:
    """Serves scenarios whose signature has not been seen in the current run."""

    def __init__(self, generator: Optional[ScenarioGenerator] = None, max_attempts: int = DEFAULT_DEDUP_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        self.generator = generator or ScenarioGenerator()
        self.max_attempts = max_attempts

    def next(
        self,
        reflector_count: int,
        decoy_count: int,
        used_signatures: Set[str],
        entry: Optional[Tuple[str, int]] = None,
    ) -> Scenario:
        """Generate until an unseen signature comes up; after the budget, return the last one anyway.

        ``used_signatures`` is only read; recording the served scenario is up to the caller.
        """
        scenario = None
        for _ in range(self.max_attempts):
            scenario = self.generator.generate(reflector_count, decoy_count, entry=entry)
            if scenario_signature(scenario) not in used_signatures:
                return scenario
        logger.debug("[scenario-duplicate] no fresh scenario after %s attempts", self.max_attempts)
        return scenario
