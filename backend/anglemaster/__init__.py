from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8081",
    "http://127.0.0.1:8081",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from anglemaster.main import main
    flask_app.register_blueprint(main)

    from anglemaster.api.runs import runs
    flask_app.register_blueprint(runs, url_prefix='/api/angle-master')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from anglemaster.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the level catalogue."""
        from anglemaster.models import GameLevel
        from anglemaster.services.angles.levels import LEVEL_TABLE
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for number, (reflectors, decoys, reward) in sorted(LEVEL_TABLE.items()):
                db.session.add(GameLevel(
                    level_number=number,
                    reflector_count=reflectors,
                    decoy_count=decoys,
                    reward_points=reward,
                ))

            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('preview-scenario')
    @click.option('--reflectors', default=3, show_default=True, help='Active reflectors to place.')
    @click.option('--decoys', default=1, show_default=True, help='Decoy reflectors to place.')
    @click.option('--seed', type=int, default=None, help='Seed for a reproducible board.')
    def preview_scenario_command(reflectors, decoys, seed):
        """Generate one board and print it as text."""
        import random
        from anglemaster.services.angles.generator import ScenarioGenerator
        from anglemaster.services.angles.geometry import GridGeometry
        from anglemaster.services.angles.render import render_text

        cfg = flask_app.config
        geometry = GridGeometry(int(cfg.get('GRID_SIZE', 6)))
        generator = ScenarioGenerator(
            geometry,
            rng=random.Random(seed),
            placement_probability=float(cfg.get('REFLECTOR_PLACEMENT_PROBABILITY', 0.35)),
            max_attempts=int(cfg.get('GENERATION_MAX_ATTEMPTS', 100)),
            step_budget=int(cfg.get('GENERATION_STEP_BUDGET', 30)),
        )
        scenario = generator.generate(reflectors, decoys)
        click.echo(render_text(geometry, scenario))
        edge, index = geometry.zone_edge(scenario.exit_zone)
        click.echo(f"entry: {scenario.entry_edge} {scenario.entry_index}")
        click.echo(f"exit zone: {scenario.exit_zone} ({edge} {index})")
        click.echo(f"reflectors: {scenario.reflector_count}/{reflectors}  decoys: {len(scenario.decoys)}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(preview_scenario_command)

    return flask_app
