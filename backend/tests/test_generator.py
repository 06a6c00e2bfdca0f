import random

import pytest

from anglemaster.services.angles.generator import ScenarioGenerator
from anglemaster.services.angles.geometry import RIGHT, GridGeometry, reflect


def _replay(geo, scenario):
    """Independent beam replay, written out rather than using GridGeometry.trace."""
    board = {(r.row, r.col): r.type for r in scenario.reflectors}
    row, col, direction = geo.entry_cell(scenario.entry_edge, scenario.entry_index)
    cells = []
    for _ in range(200):
        cells.append((row, col))
        if (row, col) in board:
            direction = reflect(board[(row, col)], direction)
        zone = geo.exit_zone_for(row, col, direction)
        if zone is not None:
            return cells, zone
        row, col = geo.step(row, col, direction)
    raise AssertionError('beam never left the grid')


def _check_invariants(geo, scenario):
    cells, zone = _replay(geo, scenario)
    assert cells == scenario.path
    assert zone == scenario.exit_zone
    assert geo.is_valid_zone(scenario.exit_zone)
    active = [r.cell for r in scenario.reflectors]
    decoys = [d.cell for d in scenario.decoys]
    assert len(set(active)) == len(active)
    assert len(set(decoys)) == len(decoys)
    assert not set(active) & set(decoys)
    assert not set(decoys) & set(scenario.path)
    assert all(not r.is_decoy for r in scenario.reflectors)
    assert all(d.is_decoy for d in scenario.decoys)
    # Every active reflector is actually on the path
    assert set(active) <= set(scenario.path)


@pytest.mark.parametrize('reflector_count', range(0, 19))
def test_generation_is_valid_for_every_requested_count(reflector_count):
    geo = GridGeometry(6)
    generator = ScenarioGenerator(geo, rng=random.Random(1000 + reflector_count))
    cells = geo.size * geo.size
    for decoy_count in sorted({0, 1, 3, cells - reflector_count}):
        scenario = generator.generate(reflector_count, decoy_count)
        assert scenario.reflector_count <= reflector_count
        _check_invariants(geo, scenario)
        free = cells - len(set(scenario.path))
        assert len(scenario.decoys) == min(decoy_count, free)


def test_small_counts_are_served_exactly():
    geo = GridGeometry(6)
    generator = ScenarioGenerator(geo, rng=random.Random(7))
    for count in range(0, 5):
        for _ in range(10):
            scenario = generator.generate(count, 2)
            assert scenario.reflector_count == count
            _check_invariants(geo, scenario)


def test_zero_reflectors_is_a_straight_line():
    geo = GridGeometry(6)
    generator = ScenarioGenerator(geo, rng=random.Random(3))
    scenario = generator.generate(0, 0, entry=('top', 4))
    assert scenario.reflectors == []
    assert scenario.path == [(r, 4) for r in range(6)]
    assert scenario.exit_zone == 12 + 4


def test_fixed_left_entry_first_reflector_sits_on_entry_row():
    geo = GridGeometry(6)
    generator = ScenarioGenerator(geo, rng=random.Random(42))
    for _ in range(25):
        scenario = generator.generate(3, 1, entry=('left', 2))
        assert scenario.entry_edge == 'left'
        assert scenario.entry_index == 2
        assert scenario.reflector_count == 3
        first = scenario.reflectors[0]
        assert first.row == 2
        assert first.col >= 0
        # The path walks right along row 2 up to the first reflector, then turns
        prefix = scenario.path[:first.col + 1]
        assert prefix == [(2, c) for c in range(first.col + 1)]
        assert reflect(first.type, RIGHT) != RIGHT
        assert len(scenario.decoys) == 1
        _check_invariants(geo, scenario)


def test_exhaustion_degrades_reflector_count():
    geo = GridGeometry(6)
    # A six-step walk cannot hold seven reflectors, so generation must step down.
    generator = ScenarioGenerator(geo, rng=random.Random(5), max_attempts=3, step_budget=6)
    scenario = generator.generate(7, 2)
    assert scenario.reflector_count < 7
    _check_invariants(geo, scenario)


def test_decoys_fill_free_cells_without_failing():
    geo = GridGeometry(6)
    generator = ScenarioGenerator(geo, rng=random.Random(11))
    scenario = generator.generate(2, 100)
    _check_invariants(geo, scenario)
    assert len(scenario.decoys) == 36 - len(set(scenario.path))


def test_same_seed_same_scenario():
    a = ScenarioGenerator(rng=random.Random(99)).generate(4, 2)
    b = ScenarioGenerator(rng=random.Random(99)).generate(4, 2)
    assert a == b


def test_invalid_tuning_is_rejected():
    with pytest.raises(ValueError):
        ScenarioGenerator(placement_probability=1.5)
    with pytest.raises(ValueError):
        ScenarioGenerator(max_attempts=0)
    with pytest.raises(ValueError):
        ScenarioGenerator(step_budget=3)


def test_memorize_placements_hide_decoy_flag():
    scenario = ScenarioGenerator(rng=random.Random(8)).generate(3, 2)
    placements = scenario.placements()
    assert len(placements) == scenario.reflector_count + len(scenario.decoys)
    assert all('is_decoy' not in p for p in placements)
    cells = [(p['row'], p['col']) for p in placements]
    assert cells == sorted(cells)
