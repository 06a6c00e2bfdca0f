"""Procedural generation of reflector scenarios.

A scenario is built by walking a beam cell by cell from a random entry and
dropping reflectors along the way, so the exit is known by construction.
Generation never fails: after ``max_attempts`` dead ends at a given
reflector count the count is lowered by one and the search continues.
"""

import logging
import random
from typing import List, Optional, Tuple

from .geometry import EDGES, REFLECTOR_TYPES, GridGeometry, reflect
from .scenario import Reflector, Scenario


logger = logging.getLogger(__name__)

DEFAULT_PLACEMENT_PROBABILITY = 0.35
DEFAULT_MAX_ATTEMPTS = 100
DEFAULT_STEP_BUDGET = 30


class ScenarioGenerator:
    def __init__(
        self,
        geometry: Optional[GridGeometry] = None,
        rng: Optional[random.Random] = None,
        placement_probability: float = DEFAULT_PLACEMENT_PROBABILITY,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        step_budget: int = DEFAULT_STEP_BUDGET,
    ):
        self.geometry = geometry or GridGeometry()
        self.rng = rng or random.Random()
        if not 0.0 <= placement_probability <= 1.0:
            raise ValueError(f"placement_probability must be within [0, 1], got {placement_probability}")
        if max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        if step_budget < self.geometry.size:
            raise ValueError(f"step_budget must be at least the grid size ({self.geometry.size})")
        self.placement_probability = placement_probability
        self.max_attempts = max_attempts
        self.step_budget = step_budget

    def generate(self, reflector_count: int, decoy_count: int = 0, entry: Optional[Tuple[str, int]] = None) -> Scenario:
        """Return a scenario with ``reflector_count`` reflectors, or fewer if none could be built.

        ``entry`` pins the (edge, index) the beam comes in from; by default it is random.
        """
        count = max(0, int(reflector_count))
        decoys = max(0, int(decoy_count))
        while True:
            for _ in range(self.max_attempts):
                scenario = self._attempt(count, decoys, entry)
                if scenario is not None:
                    if count != reflector_count:
                        logger.debug("[scenario-degrade] requested=%s served=%s", reflector_count, count)
                    return scenario
            if count == 0:
                # A straight walk always exits within step_budget; unreachable with a valid entry.
                raise RuntimeError("Unable to generate a scenario without reflectors")
            count -= 1

    def _attempt(self, count: int, decoy_count: int, entry: Optional[Tuple[str, int]]) -> Optional[Scenario]:
        geo = self.geometry
        if entry is None:
            edge, index = self.rng.choice(EDGES), self.rng.randrange(geo.size)
        else:
            edge, index = entry
        row, col, direction = geo.entry_cell(edge, index)

        path: List[Tuple[int, int]] = []
        visited = set()
        board = {}
        reflectors: List[Reflector] = []
        zone = None

        for _ in range(self.step_budget):
            cell = (row, col)
            path.append(cell)
            kind = board.get(cell)
            if kind is not None:
                # Walked back into one of our own reflectors.
                direction = reflect(kind, direction)
            elif len(reflectors) < count and cell not in visited:
                about_to_exit = geo.exit_zone_for(row, col, direction) is not None
                if about_to_exit or self.rng.random() < self.placement_probability:
                    final = len(reflectors) == count - 1
                    kind = self._choose_type(row, col, direction, final)
                    if kind is not None:
                        board[cell] = kind
                        reflectors.append(Reflector(row, col, kind))
                        direction = reflect(kind, direction)
            visited.add(cell)
            zone = geo.exit_zone_for(row, col, direction)
            if zone is not None:
                break
            row, col = geo.step(row, col, direction)
        else:
            return None

        if len(reflectors) != count or not geo.is_valid_zone(zone):
            return None

        traced_path, traced_zone = geo.trace(edge, index, reflectors, max_steps=self.step_budget)
        if traced_path != path or traced_zone != zone:
            logger.debug("[scenario-reject] walk and replay disagree for entry=%s/%s", edge, index)
            return None

        return Scenario(
            entry_edge=edge,
            entry_index=index,
            reflectors=reflectors,
            path=path,
            exit_zone=zone,
            exit_direction=direction,
            decoys=self._place_decoys(visited, decoy_count),
        )

    def _choose_type(self, row: int, col: int, direction: str, final: bool) -> Optional[str]:
        candidates = list(REFLECTOR_TYPES)
        self.rng.shuffle(candidates)
        if final:
            return candidates[0]
        for kind in candidates:
            next_row, next_col = self.geometry.step(row, col, reflect(kind, direction))
            if self.geometry.inside(next_row, next_col):
                return kind
        return None

    def _place_decoys(self, used_cells, decoy_count: int) -> List[Reflector]:
        free = [cell for cell in self.geometry.cells() if cell not in used_cells]
        self.rng.shuffle(free)
        return [
            Reflector(row, col, self.rng.choice(REFLECTOR_TYPES), is_decoy=True)
            for row, col in free[:decoy_count]
        ]
