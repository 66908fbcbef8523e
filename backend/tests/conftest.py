import os
import random
import sys
import pytest

# Ensure the backend root (containing the `quizhost` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quizhost import create_app, db, socketio, get_domain
from quizhost.constants import TEAMS
from quizhost.services.defaults import seed_store
from quizhost.services.game.machine import GameStateMachine, match_settings
from quizhost.services.game.state import new_team_record
from quizhost.services.question_bank import QuestionBank
from quizhost.store import InMemoryStore


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    STORE_BACKEND = 'memory'
    LOG_LEVEL = 'DEBUG'
    QUESTIONS_PER_SET = 20
    MIN_TEAMS = 1
    IDEAL_MIN_TEAMS = 7
    MAX_TEAMS = 10
    MILESTONE_QUESTIONS = [5, 10, 15, 20]
    LIFELINE_PHONE_A_FRIEND_ENABLED = True
    LIFELINE_FIFTY_FIFTY_ENABLED = True
    PHONE_A_FRIEND_DURATION_SEC = 180
    FIFTY_FIFTY_CLEAR_SEC = 1
    TIMER_ENABLED = False
    TIMER_DURATION_SEC = 30
    DISPLAY_SHOW_PRIZE_LADDER = True
    DISPLAY_SHOW_TEAM_INFO = True
    DISPLAY_ANIMATION_DURATION_MS = 500
    CONTROLLER_DEBOUNCE_MS = 0
    SEED_HOST_USERNAME = 'host'
    SEED_HOST_PASSWORD = 'password'


APP_CONFIG = {k: getattr(TestConfig, k) for k in dir(TestConfig) if k.isupper()}


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start=1_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms=1000):
        self.now += ms
        return self.now


def make_questions(count, correct='B'):
    return [
        {
            'text': f'Question {n}?',
            'options': {'A': f'{n}-a', 'B': f'{n}-b', 'C': f'{n}-c', 'D': f'{n}-d'},
            'correctAnswer': correct,
        }
        for n in range(1, count + 1)
    ]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import quizhost.models  # noqa: F401
        from quizhost.models import User
        db.create_all()
        host = User(username='host')
        host.set_password('password')
        guest = User(username='guest')
        guest.set_password('password')
        db.session.add_all([host, guest])
        db.session.commit()
    yield application
    with application.app_context():
        get_domain(application).sync.detach()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def host_client(flask_app):
    test_client = flask_app.test_client()
    res = test_client.post('/login', json={'username': 'host', 'password': 'password'})
    assert res.status_code == 200
    return test_client


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


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store():
    memory_store = InMemoryStore()
    seed_store(memory_store, APP_CONFIG, hosts=['host'])
    return memory_store


@pytest.fixture()
def bank(store, clock):
    return QuestionBank(store, clock=clock)


@pytest.fixture()
def machine(store, bank, clock):
    return GameStateMachine(store, bank, match_settings(APP_CONFIG), clock=clock, rng=random.Random(7))


@pytest.fixture()
def add_team(store):
    def _add(team_id, name=None, participants='Ann & Bo', contact='+94 77 123 4567'):
        record = new_team_record(team_id, name or f'Team {team_id}', participants, contact)
        store.write(f'{TEAMS}/{team_id}', record)
        return record
    return _add


@pytest.fixture()
def ready_match(add_team, bank):
    """Teams plus one full question set each; correct answer is always B."""
    def _ready(team_count=1, set_count=None, questions=20):
        team_ids = [f't{i}' for i in range(1, team_count + 1)]
        for team_id in team_ids:
            add_team(team_id)
        for i in range(1, (set_count or team_count) + 1):
            bank.add_set(f'set-{i}', f'Set {i}', make_questions(questions))
        return team_ids
    return _ready
