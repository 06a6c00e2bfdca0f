import os
import sys
import pytest

# Ensure the backend root (containing the `anglemaster` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from anglemaster import create_app, db, socketio
from anglemaster.services.angles.registry import clear_runs


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    GRID_SIZE = 6
    MEMORIZE_DURATION_MS = 3000
    MIN_MEMORIZE_DURATION_MS = 1500
    PREDICT_DURATION_MS = 10000
    REVEAL_DURATION_MS = 1200
    TRIALS_PER_LEVEL = 15
    PASS_THRESHOLD_PERCENT = 67
    OWNER_DISCONNECT_GRACE_SEC = 0


class SchedulerTestConfig(TestConfig):
    ENABLE_SCHEDULER_IN_TESTS = True
    MEMORIZE_DURATION_MS = 0
    MIN_MEMORIZE_DURATION_MS = 0
    PREDICT_DURATION_MS = 0
    REVEAL_DURATION_MS = 0


def _make_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        # Ensure models are imported so tables are created
        import anglemaster.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
    clear_runs()


@pytest.fixture()
def flask_app():
    yield from _make_app(TestConfig)


@pytest.fixture()
def scheduled_app():
    yield from _make_app(SchedulerTestConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
