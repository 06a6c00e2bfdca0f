from .geometry import BOTTOM_EDGE, LEFT_EDGE, RIGHT_EDGE, TOP_EDGE, GridGeometry
from .scenario import Scenario


ENTRY_ARROWS = {LEFT_EDGE: '>', RIGHT_EDGE: '<', TOP_EDGE: 'v', BOTTOM_EDGE: '^'}


def render_text(geometry: GridGeometry, scenario: Scenario) -> str:
    """Plain-text board for the CLI: ``\\`` ``/`` active reflectors, ``(\\)`` decoys, ``*`` beam path."""
    n = geometry.size
    cells = [[' . ' for _ in range(n)] for _ in range(n)]
    for row, col in scenario.path:
        cells[row][col] = ' * '
    for r in scenario.reflectors:
        cells[r.row][r.col] = f" {r.type} "
    for d in scenario.decoys:
        cells[d.row][d.col] = f"({d.type})"

    top = ['   '] * n
    bottom = ['   '] * n
    left = [' '] * n
    right = [' '] * n
    arrow = ENTRY_ARROWS[scenario.entry_edge]
    if scenario.entry_edge == TOP_EDGE:
        top[scenario.entry_index] = f" {arrow} "
    elif scenario.entry_edge == BOTTOM_EDGE:
        bottom[scenario.entry_index] = f" {arrow} "
    elif scenario.entry_edge == LEFT_EDGE:
        left[scenario.entry_index] = arrow
    else:
        right[scenario.entry_index] = arrow

    exit_edge, exit_index = geometry.zone_edge(scenario.exit_zone)
    if exit_edge == TOP_EDGE:
        top[exit_index] = ' X '
    elif exit_edge == BOTTOM_EDGE:
        bottom[exit_index] = ' X '
    elif exit_edge == LEFT_EDGE:
        left[exit_index] = 'X'
    else:
        right[exit_index] = 'X'

    lines = [' ' + ''.join(top)]
    for row in range(n):
        lines.append(left[row] + ''.join(cells[row]) + right[row])
    lines.append(' ' + ''.join(bottom))
    return '\n'.join(lines)
