import os
import sys
import uuid
import pytest

# Ensure the backend root (containing the `rumble` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from rumble import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RUMBLE_STORAGE_KEY = 'royal-rumble-state'
    RUMBLE_CHANNEL = 'rumble_sync'
    RUMBLE_MAX_HISTORY = 20
    RUMBLE_MAX_LOGS = 50


class MemoryStore:
    """Stand-in for the SQL store that records every write."""

    def __init__(self, payload=None):
        self.payload = payload
        self.saves = []
        self.clears = 0

    def load(self):
        return self.payload

    def save(self, payload):
        self.payload = payload
        self.saves.append(payload)

    def clear(self):
        self.payload = None
        self.clears += 1


class Clock:
    """Deterministic millisecond clock, one tick per call."""

    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        self.now += 1
        return self.now


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import rumble.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


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
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def clock():
    return Clock()


@pytest.fixture()
def channel_name():
    return f"test-{uuid.uuid4()}"
