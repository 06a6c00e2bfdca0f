"""Grid coordinate math for the reflector board.

Cells are addressed by (row, col), zero based, rows growing downward and
columns growing rightward. Exit zones number the 4N perimeter slots
clockwise by edge: top (left to right), right (top to bottom), bottom
(left to right), left (top to bottom).
"""

from typing import Dict, Iterable, List, Optional, Tuple


UP = 'up'
DOWN = 'down'
LEFT = 'left'
RIGHT = 'right'

TOP_EDGE = 'top'
RIGHT_EDGE = 'right'
BOTTOM_EDGE = 'bottom'
LEFT_EDGE = 'left'
EDGES = (TOP_EDGE, RIGHT_EDGE, BOTTOM_EDGE, LEFT_EDGE)

BACKSLASH = '\\'
SLASH = '/'
REFLECTOR_TYPES = (BACKSLASH, SLASH)

DELTAS: Dict[str, Tuple[int, int]] = {
    UP: (-1, 0),
    DOWN: (1, 0),
    LEFT: (0, -1),
    RIGHT: (0, 1),
}

# '\' joins the up-left and down-right corners, '/' joins up-right and down-left.
REFLECTION_TABLE: Dict[str, Dict[str, str]] = {
    BACKSLASH: {RIGHT: DOWN, LEFT: UP, UP: LEFT, DOWN: RIGHT},
    SLASH: {RIGHT: UP, LEFT: DOWN, UP: RIGHT, DOWN: LEFT},
}

# Offset of entry/exit markers outside the grid, in cells.
MARKER_OFFSET = 0.15


def reflect(reflector_type: str, direction: str) -> str:
    """Return the outgoing direction after bouncing off a reflector."""
    return REFLECTION_TABLE[reflector_type][direction]


class GridGeometry:
    """Pure coordinate math for an N x N grid."""

    def __init__(self, size: int = 6):
        if size < 2:
            raise ValueError(f"Grid size must be at least 2, got {size}")
        self.size = size

    @property
    def zone_count(self) -> int:
        return 4 * self.size

    def inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def cells(self) -> Iterable[Tuple[int, int]]:
        for row in range(self.size):
            for col in range(self.size):
                yield row, col

    def is_valid_zone(self, zone) -> bool:
        return isinstance(zone, int) and not isinstance(zone, bool) and 0 <= zone < self.zone_count

    def cell_center(self, row: int, col: int, cell_size: float = 1.0) -> Tuple[float, float]:
        self._check_cell(row, col)
        return (col + 0.5) * cell_size, (row + 0.5) * cell_size

    reflect = staticmethod(reflect)

    def step(self, row: int, col: int, direction: str) -> Tuple[int, int]:
        dr, dc = DELTAS[direction]
        return row + dr, col + dc

    def exit_zone_for(self, row: int, col: int, direction: str) -> Optional[int]:
        """Zone reached if one more step in ``direction`` leaves the grid, else None."""
        self._check_cell(row, col)
        next_row, next_col = self.step(row, col, direction)
        n = self.size
        if next_row < 0:
            return col
        if next_col >= n:
            return n + row
        if next_row >= n:
            return 2 * n + col
        if next_col < 0:
            return 3 * n + row
        return None

    def entry_cell(self, edge: str, index: int) -> Tuple[int, int, str]:
        """First cell and travel direction for a beam entering from ``edge``."""
        if not 0 <= index < self.size:
            raise ValueError(f"Entry index {index} outside 0..{self.size - 1}")
        last = self.size - 1
        if edge == LEFT_EDGE:
            return index, 0, RIGHT
        if edge == RIGHT_EDGE:
            return index, last, LEFT
        if edge == TOP_EDGE:
            return 0, index, DOWN
        if edge == BOTTOM_EDGE:
            return last, index, UP
        raise ValueError(f"Unknown edge: {edge}")

    def zone_edge(self, zone: int) -> Tuple[str, int]:
        """Split a zone into (edge, index along that edge)."""
        if not self.is_valid_zone(zone):
            raise ValueError(f"Zone {zone} outside 0..{self.zone_count - 1}")
        return EDGES[zone // self.size], zone % self.size

    def default_zone(self) -> int:
        # Grid centre projected straight up onto the top edge.
        return self.size // 2

    def trace(
        self,
        entry_edge: str,
        entry_index: int,
        reflectors: Iterable,
        max_steps: Optional[int] = None,
    ) -> Tuple[List[Tuple[int, int]], Optional[int]]:
        """Replay a beam through ``reflectors``.

        ``reflectors`` holds objects with ``row``, ``col`` and ``type``. Returns
        the visited cells in order and the exit zone, or None for the zone if
        the beam was still inside the grid after ``max_steps`` cells.
        """
        board = {(r.row, r.col): r.type for r in reflectors}
        budget = max_steps if max_steps is not None else 4 * self.size * self.size
        row, col, direction = self.entry_cell(entry_edge, entry_index)
        visited: List[Tuple[int, int]] = []
        for _ in range(budget):
            visited.append((row, col))
            kind = board.get((row, col))
            if kind is not None:
                direction = reflect(kind, direction)
            zone = self.exit_zone_for(row, col, direction)
            if zone is not None:
                return visited, zone
            row, col = self.step(row, col, direction)
        return visited, None

    def entry_point(self, edge: str, index: int, cell_size: float = 1.0) -> Tuple[float, float]:
        offset = MARKER_OFFSET * cell_size
        along = (index + 0.5) * cell_size
        far = self.size * cell_size + offset
        if edge == LEFT_EDGE:
            return -offset, along
        if edge == RIGHT_EDGE:
            return far, along
        if edge == TOP_EDGE:
            return along, -offset
        if edge == BOTTOM_EDGE:
            return along, far
        raise ValueError(f"Unknown edge: {edge}")

    def zone_point(self, zone: int, cell_size: float = 1.0) -> Tuple[float, float]:
        edge, index = self.zone_edge(zone)
        return self.entry_point(edge, index, cell_size)

    def waypoints(self, scenario, cell_size: float = 1.0) -> List[Dict[str, object]]:
        """Ordered reveal path: entry marker, each visited cell centre, exit marker."""
        order = {(r.row, r.col): i for i, r in enumerate(scenario.reflectors)}
        x, y = self.entry_point(scenario.entry_edge, scenario.entry_index, cell_size)
        points: List[Dict[str, object]] = [
            {'x': x, 'y': y, 'row': None, 'col': None, 'reflector_index': None}
        ]
        for row, col in scenario.path:
            x, y = self.cell_center(row, col, cell_size)
            points.append({
                'x': x,
                'y': y,
                'row': row,
                'col': col,
                'reflector_index': order.get((row, col)),
            })
        x, y = self.zone_point(scenario.exit_zone, cell_size)
        points.append({'x': x, 'y': y, 'row': None, 'col': None, 'reflector_index': None})
        return points

    def _check_cell(self, row: int, col: int) -> None:
        if not self.inside(row, col):
            raise ValueError(f"Cell ({row}, {col}) outside {self.size}x{self.size} grid")
