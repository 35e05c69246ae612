import os
import sys
from datetime import timedelta
from types import SimpleNamespace
import pytest

# Ensure the backend root (containing the `buzzboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from flask import has_app_context
from buzzboard import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    # Keep password hashing fast in tests
    BCRYPT_LOG_ROUNDS = 4


def _build_app(seed=True):
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import buzzboard.models  # noqa: F401
        db.create_all()
        if seed:
            from buzzboard.seed import seed_questions
            seed_questions()
    return application


def _drop(application):
    with application.app_context():
        db.session.remove()
        db.drop_all()


# HTTP and Socket.IO tests run without a pushed app context so every request
# gets its own `g` (and its own Flask-Login user).
@pytest.fixture()
def flask_app():
    application = _build_app()
    yield application
    _drop(application)


@pytest.fixture()
def unseeded_app():
    application = _build_app(seed=False)
    yield application
    _drop(application)


@pytest.fixture()
def app_ctx(flask_app):
    """Service-level tests call the game services directly inside one app context."""
    with flask_app.app_context():
        yield flask_app


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_user(app_ctx):
    """Create users straight in the database for service-level tests."""
    from buzzboard.models import User

    def _make(username):
        user = User(username=username, email=f'{username}@example.com', display_name=username.capitalize())
        user.set_password('password123')
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def make_client(flask_app):
    """Register a user and return a test client logged in as them."""

    def _make(username):
        test_client = flask_app.test_client()
        res = test_client.post('/register', json={
            'email': f'{username}@example.com',
            'username': username,
            'display_name': username.capitalize(),
            'password': 'password123',
        })
        assert res.status_code == 201, res.get_json()
        return test_client

    return _make


@pytest.fixture()
def expire_timer(flask_app):
    """Move a question's deadline into the past without touching its status."""
    from buzzboard.models import QuestionState, utcnow

    def _expire(question_state_id):
        with flask_app.app_context():
            state = db.session.get(QuestionState, question_state_id)
            state.timer_ends_at = utcnow() - timedelta(seconds=1)
            db.session.commit()
        if has_app_context():
            db.session.expire_all()

    return _expire


@pytest.fixture()
def sio_client_for(flask_app):
    created = []

    def _connect(flask_test_client):
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_test_client,
            namespace='/ws'
        )
        created.append(test_client)
        return test_client

    yield _connect
    for test_client in created:
        try:
            test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def game(make_user):
    """A lobby with an admin and three seated players."""
    from buzzboard.services.lobbies import create_lobby, join_lobby

    admin = make_user('host')
    players = [make_user(f'player{i}') for i in range(3)]
    lobby = create_lobby(admin.id, 'Friday Quiz')
    seats = [join_lobby(p.id, lobby.code)[1] for p in players]
    return SimpleNamespace(
        admin_id=admin.id,
        player_ids=[p.id for p in players],
        lobby_id=lobby.id,
        code=lobby.code,
        participant_ids=[s.id for s in seats],
    )


@pytest.fixture()
def find_state(app_ctx):
    from buzzboard.models import Question, QuestionState

    def _find(lobby_id, value, round_index=0, category_index=0):
        return (
            QuestionState.query.join(Question)
            .filter(
                QuestionState.lobby_id == lobby_id,
                QuestionState.round_index == round_index,
                QuestionState.value == value,
                Question.category_index == category_index,
            )
            .first()
        )

    return _find
