from flask import Blueprint, jsonify, request, current_app
from anglemaster.models import GAME_SLUG, GameLevel, PlayerGameProgress, GameSession
from anglemaster.services.angles.dedup import ScenarioDeduplicator
from anglemaster.services.angles.generator import ScenarioGenerator
from anglemaster.services.angles.geometry import GridGeometry
from anglemaster.services.angles.level import LevelController
from anglemaster.services.angles.levels import OVERRIDABLE_FIELDS, resolve_level
from anglemaster.services.angles.registry import create_run, get_run, prune_finished
from anglemaster.services.angles.scheduler import publish
import time


runs = Blueprint('runs', __name__)

_last_controller_action: dict[str, float] = {}


def _debounced(action: str, run_code: str) -> bool:
    try:
        debounce_ms = int(current_app.config.get('CONTROLLER_DEBOUNCE_MS', 0))
    except (TypeError, ValueError):
        debounce_ms = 0
    if debounce_ms <= 0:
        return False
    key = f"{action}:{run_code}"
    now = time.time() * 1000.0
    if now - _last_controller_action.get(key, 0) < debounce_ms:
        return True
    _last_controller_action[key] = now
    return False


def build_controller(level_number: int, overrides: dict = None) -> LevelController:
    """Assemble a LevelController from app config, a stored level row and request overrides."""
    cfg = current_app.config
    stored = GameLevel.query.filter_by(game_slug=GAME_SLUG, level_number=level_number, is_active=True).first()
    config = resolve_level(level_number, cfg, stored.to_dict() if stored else None, overrides)
    geometry = GridGeometry(int(cfg.get('GRID_SIZE', 6)))
    generator = ScenarioGenerator(
        geometry,
        placement_probability=float(cfg.get('REFLECTOR_PLACEMENT_PROBABILITY', 0.35)),
        max_attempts=int(cfg.get('GENERATION_MAX_ATTEMPTS', 100)),
        step_budget=int(cfg.get('GENERATION_STEP_BUDGET', 30)),
    )
    deduplicator = ScenarioDeduplicator(generator, max_attempts=int(cfg.get('DEDUP_MAX_ATTEMPTS', 20)))
    return LevelController(config, deduplicator, geometry)


def _run_or_404(run_code):
    handle = get_run(run_code)
    if not handle:
        return None, (jsonify({'error': 'Run not found'}), 404)
    return handle, None


def _state_payload(handle):
    payload = handle.to_dict()
    config = handle.controller.config
    payload['durations'] = {
        'memorize': config.memorize_duration_ms,
        'predict': config.predict_duration_ms,
        'reveal': config.reveal_duration_ms,
    }
    return payload


@runs.route('/levels', methods=['GET'])
def list_levels():
    from anglemaster.services.angles.levels import LEVEL_TABLE
    cfg = current_app.config
    stored = {
        lvl.level_number: lvl.to_dict()
        for lvl in GameLevel.query.filter_by(game_slug=GAME_SLUG, is_active=True).all()
    }
    numbers = sorted(set(LEVEL_TABLE) | set(stored))
    levels = []
    for number in numbers:
        config = resolve_level(number, cfg, stored.get(number))
        entry = config.to_dict()
        entry['level_number'] = number
        levels.append(entry)
    return jsonify(levels)


@runs.route('/runs', methods=['POST'])
def create_level_run():
    data = request.get_json(silent=True) or {}
    player_id = data.get('player_id')
    try:
        level_number = int(data.get('level_number') or 1)
        player_id = int(player_id) if player_id is not None else None
        overrides = {k: data[k] for k in OVERRIDABLE_FIELDS if data.get(k) is not None}
        controller = build_controller(level_number, overrides)
    except (TypeError, ValueError) as exc:
        return jsonify({'error': str(exc)}), 400

    prune_finished(float(current_app.config.get('RUN_RETENTION_SEC', 600)))
    handle = create_run(controller, player_id)
    current_app.logger.info(
        f"[run-create] run={handle.code} player={player_id} level={controller.config.level_number} "
        f"reflectors={controller.config.reflector_count} decoys={controller.config.decoy_count} trials={controller.config.total_trials}"
    )
    return jsonify({'run_code': handle.code, 'state': _state_payload(handle)}), 201


@runs.route('/runs/<string:run_code>/start', methods=['POST'])
def start_level_run(run_code):
    handle, error = _run_or_404(run_code)
    if error:
        return error
    if _debounced('start', handle.code):
        return jsonify({'message': 'debounced'}), 202
    with handle.lock:
        if handle.controller.finished:
            return jsonify({'error': 'Run already finished'}), 400
        # Idempotent start: a running run just reports its state
        actions = handle.controller.start()
    publish(current_app._get_current_object(), handle, actions)
    return jsonify(_state_payload(handle))


@runs.route('/runs/<string:run_code>/state', methods=['GET'])
def get_run_state(run_code):
    handle, error = _run_or_404(run_code)
    if error:
        return error
    return jsonify(_state_payload(handle))


@runs.route('/runs/<string:run_code>/guess', methods=['POST'])
def submit_guess(run_code):
    handle, error = _run_or_404(run_code)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    zone = data.get('zone')
    with handle.lock:
        accepted, actions = handle.controller.submit_guess(zone)
    if accepted:
        current_app.logger.info(f"[guess] run={handle.code} zone={zone} phase={handle.controller.phase}")
        publish(current_app._get_current_object(), handle, actions)
    payload = _state_payload(handle)
    payload['accepted'] = accepted
    return jsonify(payload)


@runs.route('/runs/<string:run_code>/advance', methods=['POST'])
def advance_run(run_code):
    """Fire the current phase's timer immediately."""
    handle, error = _run_or_404(run_code)
    if error:
        return error
    if _debounced('advance', handle.code):
        return jsonify({'message': 'debounced'}), 202
    with handle.lock:
        pending = handle.controller.pending_timer
        if pending is None:
            return jsonify({'error': 'No timed phase to advance'}), 400
        actions = handle.controller.on_timer(pending.token)
    publish(current_app._get_current_object(), handle, actions)
    return jsonify(_state_payload(handle))


@runs.route('/runs/<string:run_code>/abandon', methods=['POST'])
def abandon_run(run_code):
    handle, error = _run_or_404(run_code)
    if error:
        return error
    with handle.lock:
        result = handle.controller.abandon()
    if result is not None:
        publish(current_app._get_current_object(), handle, [])
    return jsonify(_state_payload(handle))


@runs.route('/players/<int:player_id>/progress', methods=['GET'])
def get_player_progress(player_id):
    progress = PlayerGameProgress.query.filter_by(player_id=player_id, game_slug=GAME_SLUG).first()
    sessions = (
        GameSession.query.filter_by(player_id=player_id, game_slug=GAME_SLUG)
        .order_by(GameSession.played_at.desc(), GameSession.id.desc())
        .limit(20)
        .all()
    )
    return jsonify({
        'progress': progress.to_dict() if progress else None,
        'recent_sessions': [s.to_dict() for s in sessions],
    })
