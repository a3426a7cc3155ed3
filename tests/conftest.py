import base64
import os
import sys
import pytest

# Ensure the project root (containing `config` and `bingoquiz`) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from bingoquiz import create_app, db, quiz, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    QUIZ_DB_CONFIGURED = True
    ACTIVE_DURATION_SEC = 15
    CLOSED_DURATION_SEC = 5
    RESULT_DURATION_SEC = 5
    STREAM_HEARTBEAT_SEC = 30
    CARD_SIZE = 25
    ADMIN_USER = 'admin'
    ADMIN_PASS = 'secret'
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = []


class ManualTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.cancelled:
            return False
        self.fired = True
        self.callback()
        return True


class ManualTimers:
    """Timer factory that only fires when a test says so."""

    def __init__(self):
        self.created = []

    def __call__(self, delay, callback):
        timer = ManualTimer(delay, callback)
        self.created.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.created if not t.cancelled and not t.fired]

    def only_pending(self):
        pending = self.pending
        assert len(pending) == 1, f"expected one armed timer, got {len(pending)}"
        return pending[0]

    def fire_next(self):
        return self.only_pending().fire()


@pytest.fixture()
def timers():
    return ManualTimers()


@pytest.fixture()
def flask_app(timers):
    application = create_app(TestConfig)
    quiz.scheduler.timer_factory = timers
    with application.app_context():
        # Ensure models are imported so tables are created
        import bingoquiz.models  # noqa: F401
        db.create_all()
        yield application
        quiz.reset()
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
def admin_headers():
    token = base64.b64encode(b'admin:secret').decode('ascii')
    return {'Authorization': f'Basic {token}'}


@pytest.fixture()
def quiz_data(flask_app):
    """Five questions and ten choices.

    Correct answers: q1 -> 1, q3 -> 7, q4 -> {2, 3}, q5 -> 5; q2 has none.
    """
    from bingoquiz.models import Choice, CorrectAnswer, Question
    for n in range(1, 6):
        db.session.add(Question(id=n, content=f'Question {n}'))
    for n in range(1, 11):
        db.session.add(Choice(id=n, content=f'Choice {n}'))
    db.session.flush()
    for question_id, choice_id in [(1, 1), (3, 7), (4, 3), (4, 2), (5, 5)]:
        db.session.add(CorrectAnswer(question_id=question_id, choice_id=choice_id))
    db.session.commit()


@pytest.fixture()
def make_player(flask_app):
    from bingoquiz.models import Card, User

    def _make(username, punch='[]'):
        card = Card(size=25, punch=punch)
        db.session.add(card)
        db.session.flush()
        user = User(username=username, card_id=card.id)
        db.session.add(user)
        db.session.commit()
        return user.id, card.id

    return _make


@pytest.fixture()
def answer(flask_app):
    from bingoquiz.models import UserAnswer

    def _answer(user_id, question_id, choice_id):
        db.session.add(UserAnswer(user_id=user_id, question_id=question_id, choice_id=choice_id))
        db.session.commit()

    return _answer
