import os
import sys
import pytest

# Ensure the backend root (containing the `hundred` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from hundred import create_app, db, socketio
from hundred.services.rooms import RoomRegistry, MembershipManager, GameSynchronizer


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ALLOWED_ORIGINS = ['http://localhost:5173']
    ROOM_LIFETIME_SEC = 3 * 60 * 60
    ENFORCE_DECLARED_CAPACITY = False
    PERSISTENCE_RETRIES = 1
    PERSISTENCE_RETRY_DELAY_SEC = 0
    LOG_LEVEL = 'INFO'


class NoPersistenceConfig(TestConfig):
    SQLALCHEMY_DATABASE_URI = None


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import hundred.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def services(flask_app):
    return flask_app.extensions['rooms']


@pytest.fixture()
def sio_factory(flask_app):
    """Builds connected Socket.IO test clients; all are disconnected at teardown."""
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        test_client.get_received()  # flush 'connected'
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def registry():
    return RoomRegistry()


@pytest.fixture()
def membership(registry):
    return MembershipManager(registry)


@pytest.fixture()
def sync(registry):
    return GameSynchronizer(registry)
