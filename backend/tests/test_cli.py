from anglemaster.services.angles.geometry import BACKSLASH, SLASH, GridGeometry
from anglemaster.services.angles.render import render_text
from anglemaster.services.angles.scenario import Reflector, Scenario


def _scenario(geo):
    active = [Reflector(2, 3, BACKSLASH)]
    path, zone = geo.trace('left', 2, active)
    decoys = [Reflector(0, 0, BACKSLASH, True), Reflector(5, 5, SLASH, True)]
    return Scenario('left', 2, active, path, zone, 'down', decoys)


def test_render_text_marks_entry_exit_and_decoys():
    geo = GridGeometry(6)
    lines = render_text(geo, _scenario(geo)).split('\n')
    assert len(lines) == 8

    # Entry arrow on row 2 of the left edge
    assert lines[3].startswith('>')
    assert ' \\ ' in lines[3]
    assert lines[1].startswith(' (\\)')
    assert lines[6].endswith('(/) ')

    # Exit below column 3, lined up with that column's cells
    assert lines[-1].count('X') == 1
    assert lines[-1].index('X') == lines[5].index('*')


def test_preview_scenario_command(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['preview-scenario', '--seed', '1'])
    assert result.exit_code == 0, result.output
    assert 'exit zone:' in result.output
    assert 'entry:' in result.output


def test_preview_scenario_is_reproducible_with_a_seed(flask_app):
    runner = flask_app.test_cli_runner()
    args = ['preview-scenario', '--reflectors', '4', '--decoys', '2', '--seed', '7']
    assert runner.invoke(args=args).output == runner.invoke(args=args).output
