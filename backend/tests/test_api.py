from anglemaster.services.angles.registry import get_run


def _create(client, **body):
    res = client.post('/api/angle-master/runs', json=body)
    assert res.status_code == 201
    return res.get_json()


def _exit_zone(code):
    return get_run(code).controller.trial.scenario.exit_zone


def test_index_and_health(client):
    assert client.get('/').status_code == 200
    health = client.get('/health').get_json()
    assert health['status'] == 'ok'
    assert health['grid_size'] == 6


def test_levels_catalogue(client):
    levels = client.get('/api/angle-master/levels').get_json()
    assert len(levels) == 15
    assert levels[0]['level_number'] == 1
    assert levels[0]['reflector_count'] == 2
    assert levels[-1]['reward_points'] == 100


def test_create_run_starts_ready(client):
    data = _create(client, level_number=4)
    state = data['state']
    assert data['run_code']
    assert state['phase'] == 'ready'
    assert state['level_number'] == 4
    assert state['total_trials'] == 15
    assert state['current'] is None
    assert state['durations']['predict'] == 10000


def test_bad_config_is_rejected(client):
    res = client.post('/api/angle-master/runs', json={'level_number': 1, 'total_trials': 0})
    assert res.status_code == 400
    assert 'total_trials' in res.get_json()['error']
    res = client.post('/api/angle-master/runs', json={'level_number': 'abc'})
    assert res.status_code == 400


def test_unknown_run_is_404(client):
    assert client.get('/api/angle-master/runs/NOPE00/state').status_code == 404
    assert client.post('/api/angle-master/runs/NOPE00/guess', json={'zone': 1}).status_code == 404


def test_phase_flow_hides_and_reveals_board(client):
    code = _create(client, level_number=2)['run_code']
    state = client.post(f'/api/angle-master/runs/{code}/start').get_json()
    assert state['phase'] == 'memorize'
    assert state['current']['placements']
    assert 'waypoints' not in state['current']

    # Guessing while memorizing is ignored
    early = client.post(f'/api/angle-master/runs/{code}/guess', json={'zone': 0}).get_json()
    assert early['accepted'] is False
    assert early['phase'] == 'memorize'

    state = client.post(f'/api/angle-master/runs/{code}/advance').get_json()
    assert state['phase'] == 'predict'
    assert 'placements' not in state['current']

    bad = client.post(f'/api/angle-master/runs/{code}/guess', json={'zone': 99}).get_json()
    assert bad['accepted'] is False
    assert bad['phase'] == 'predict'

    zone = _exit_zone(code)
    state = client.post(f'/api/angle-master/runs/{code}/guess', json={'zone': zone}).get_json()
    assert state['accepted'] is True
    assert state['phase'] == 'reveal'
    current = state['current']
    assert current['outcome']['correct'] is True
    assert current['outcome']['points'] == 100
    assert current['waypoints']
    assert any(z['status'] == 'correct' and z['zone'] == zone for z in current['exit_zones'])

    state = client.post(f'/api/angle-master/runs/{code}/advance').get_json()
    assert state['phase'] == 'memorize'
    assert state['trial'] == 2
    assert state['streak'] == 1


def test_full_run_records_progress(client):
    code = _create(client, level_number=3, player_id=7, total_trials=3)['run_code']
    client.post(f'/api/angle-master/runs/{code}/start')
    for _ in range(3):
        client.post(f'/api/angle-master/runs/{code}/advance')
        client.post(f'/api/angle-master/runs/{code}/guess', json={'zone': _exit_zone(code)})
        state = client.post(f'/api/angle-master/runs/{code}/advance').get_json()
    assert state['phase'] == 'complete'
    result = state['result']
    assert result['level_completed'] is True
    assert result['is_perfect'] is True
    assert result['total_score'] == 100 + 125 + 150
    assert result['reward_earned'] == 30 + 10
    assert state['deadline'] is None

    res = client.post(f'/api/angle-master/runs/{code}/advance')
    assert res.status_code == 400

    progress = client.get('/api/angle-master/players/7/progress').get_json()
    assert progress['progress']['highest_level_completed'] == 3
    assert progress['progress']['current_level'] == 4
    assert progress['progress']['total_reward_earned'] == 40
    assert progress['progress']['best_scores'] == {'3': 375}
    assert len(progress['recent_sessions']) == 1
    assert progress['recent_sessions'][0]['accuracy_percentage'] == 100


def test_failed_run_keeps_level(client):
    code = _create(client, level_number=5, player_id=8, total_trials=2)['run_code']
    client.post(f'/api/angle-master/runs/{code}/start')
    for _ in range(2):
        client.post(f'/api/angle-master/runs/{code}/advance')
        wrong = (_exit_zone(code) + 1) % 24
        client.post(f'/api/angle-master/runs/{code}/guess', json={'zone': wrong})
        client.post(f'/api/angle-master/runs/{code}/advance')
    progress = client.get('/api/angle-master/players/8/progress').get_json()['progress']
    assert progress['current_level'] == 5
    assert progress['highest_level_completed'] == 0
    assert progress['total_reward_earned'] == 0
    assert progress['total_sessions'] == 1


def test_abandon_records_failed_session(client):
    code = _create(client, level_number=1, player_id=9)['run_code']
    client.post(f'/api/angle-master/runs/{code}/start')
    state = client.post(f'/api/angle-master/runs/{code}/abandon').get_json()
    assert state['phase'] == 'abandoned'
    assert state['result']['abandoned'] is True
    assert state['result']['level_completed'] is False
    # A second abandon does not record twice
    client.post(f'/api/angle-master/runs/{code}/abandon')
    sessions = client.get('/api/angle-master/players/9/progress').get_json()['recent_sessions']
    assert len(sessions) == 1
    assert sessions[0]['level_completed'] is False


def test_start_is_idempotent(client):
    code = _create(client, level_number=1)['run_code']
    first = client.post(f'/api/angle-master/runs/{code}/start').get_json()
    second = client.post(f'/api/angle-master/runs/{code}/start').get_json()
    assert first['phase'] == second['phase'] == 'memorize'
    assert second['trial'] == 1


def test_stored_level_row_overrides_defaults(flask_app, client):
    from anglemaster import db
    from anglemaster.models import GameLevel
    db.session.add(GameLevel(level_number=2, reflector_count=4, decoy_count=2, reward_points=99, total_trials=5))
    db.session.commit()
    state = _create(client, level_number=2)['state']
    assert state['total_trials'] == 5
    levels = client.get('/api/angle-master/levels').get_json()
    assert levels[1]['reflector_count'] == 4
    assert levels[1]['reward_points'] == 99


def test_stored_level_past_the_table_keeps_its_number(flask_app, client):
    from anglemaster import db
    from anglemaster.models import GameLevel
    db.session.add(GameLevel(level_number=20, reflector_count=2, decoy_count=0, reward_points=50, total_trials=1))
    db.session.commit()

    data = _create(client, level_number=20, player_id=9)
    code = data['run_code']
    assert data['state']['level_number'] == 20
    client.post(f'/api/angle-master/runs/{code}/start')
    client.post(f'/api/angle-master/runs/{code}/advance')
    client.post(f'/api/angle-master/runs/{code}/guess', json={'zone': _exit_zone(code)})
    state = client.post(f'/api/angle-master/runs/{code}/advance').get_json()
    assert state['phase'] == 'complete'

    body = client.get('/api/angle-master/players/9/progress').get_json()
    assert body['recent_sessions'][0]['level_number'] == 20
    assert body['progress']['highest_level_completed'] == 20
    # Stored row 20 is the top level, so the player stays on it
    assert body['progress']['current_level'] == 20


def test_unknown_level_without_row_plays_last_level(client):
    state = _create(client, level_number=40)['state']
    assert state['level_number'] == 15
