from flask import Blueprint, jsonify, current_app
from anglemaster.services.angles.registry import active_run_count

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Angle Master game server!'})

@main.route('/health')
def health():
    cfg = current_app.config
    return jsonify({
        'status': 'ok',
        'grid_size': int(cfg.get('GRID_SIZE', 6)),
        'active_runs': active_run_count(),
    })
