import os
import sys
import pytest
import jwt

# Ensure the backend root (containing the `poker` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from poker import create_app, db
from poker.stores import RoomStore, ParticipantStore

JWT_SECRET = 'test-jwt-secret-0123456789abcdef0123456789'
START = 1_800_000_000


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ROOM_TTL_HOURS = 24
    ROOM_CODE_LENGTH = 6
    ROOM_CODE_MAX_ATTEMPTS = 5
    CORS_ORIGINS = ['http://localhost:5173']
    JWT_SECRET_KEY = JWT_SECRET
    JWT_VERIFY_SIGNATURE = True
    LOCAL_MEMBER_ID = None
    ADMIN_MEMBER_IDS = ['admin-1']


class FakeClock:
    """Settable clock; each call moves forward a little so votes keep their order."""

    def __init__(self, now=START, step=0.001):
        self.now = float(now)
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current

    def advance(self, seconds):
        self.now += seconds


class FixedCodes:
    """Code generator that hands out a scripted sequence of candidates."""

    def __init__(self, *codes):
        self.codes = list(codes)
        self.calls = 0

    def generate(self):
        code = self.codes[min(self.calls, len(self.codes) - 1)]
        self.calls += 1
        return code


def make_token(member_id, secret=JWT_SECRET, **claims):
    return jwt.encode({'sub': member_id, **claims}, secret, algorithm='HS256')


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # Left unpushed: each client request gets its own app context and identity
    with application.app_context():
        # Ensure models are imported so tables are created
        import poker.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def auth():
    def _headers(member_id):
        return {'Authorization': f'Bearer {make_token(member_id)}'}
    return _headers


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def stores(app_ctx, clock):
    return RoomStore(db.session, clock=clock), ParticipantStore(db.session)
