import os
import sys
import pytest
from flask import g
from flask.testing import FlaskClient

# Ensure the backend root (containing the `quizduel` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quizduel import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = 'DEBUG'
    MIN_PLAYERS = 2
    TURN_MAX_PLAYERS = 4
    LOBBY_MAX_PLAYERS = 8
    DEFAULT_DIFFICULTY_POINTS = 10
    QUESTIONS_PER_GAME = 10
    GAME_QUOTA_PER_MODE = 0
    STORAGE_URL = 'https://cdn.example.test'
    QUESTION_FILE_PREFIX = 'question/'
    ANSWER_FILE_PREFIX = 'answer/'


class SessionClient(FlaskClient):
    """Test client that resolves the signed-in user from its own session cookie.

    Requests reuse the app context the fixture keeps pushed, so Flask-Login's
    per-context user cache is dropped before each one.
    """

    def open(self, *args, **kwargs):
        g.pop('_login_user', None)
        return super().open(*args, **kwargs)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    application.test_client_class = SessionClient
    with application.app_context():
        # Ensure models are imported so tables are created
        import quizduel.models  # noqa: F401
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
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


# ---- Data helpers ----

def make_user(username, password='password'):
    from quizduel.models import User
    user = User(username=username)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def make_question(category, difficulty, text, answers, correct=0, question_type='multiple_choice', points=None):
    """Create a question with ``answers``; ``correct`` is the index of the right one."""
    from quizduel.models import Answer, Question
    question = Question(
        text=text,
        category_id=category.id,
        difficulty_id=difficulty.id,
        question_type=question_type,
        points=points if points is not None else (difficulty.points or 10),
    )
    db.session.add(question)
    db.session.flush()
    for index, answer in enumerate(answers):
        db.session.add(Answer(question_id=question.id, text=answer, is_correct=index == correct))
    db.session.commit()
    return question


@pytest.fixture()
def users(flask_app):
    return [make_user(name) for name in ('alice', 'bob', 'cara', 'dave', 'erin')]


@pytest.fixture()
def catalog(flask_app):
    """One category with an Easy (5 points) and a Medium (10 points) difficulty."""
    from quizduel.models import Category, Difficulty
    science = Category(name='Science')
    easy = Difficulty(name='Easy', points=5)
    medium = Difficulty(name='Medium', points=10)
    db.session.add_all([science, easy, medium])
    db.session.commit()
    easy_questions = [
        make_question(science, easy, f'Easy question {n}', [f'right {n}', f'wrong {n}']) for n in range(1, 4)
    ]
    medium_questions = [
        make_question(science, medium, f'Medium question {n}', [f'right {n}', f'wrong {n}']) for n in range(1, 7)
    ]
    return {
        'category': science,
        'easy': easy,
        'medium': medium,
        'easy_questions': easy_questions,
        'medium_questions': medium_questions,
    }


@pytest.fixture()
def login(client):
    """Sign the test client in as ``username`` (created on first use)."""
    def _login(username, password='password'):
        from quizduel.models import User
        if not User.query.filter_by(username=username).first():
            make_user(username, password)
        res = client.post('/login', json={'username': username, 'password': password})
        assert res.status_code == 200
        return res.get_json()['data']
    return _login


def setup_game(host, mode='TURN_BASED', guests=(), users=(), total_questions=None, start=False):
    """Create a game hosted by ``host`` and seat ``users`` then ``guests`` in order."""
    from quizduel.services.games import lobby, registry, turns
    game = lobby.create_game(host, mode=mode, total_questions=total_questions)
    for user in users:
        registry.add_player(game, user=user)
    for name in guests:
        registry.add_player(game, guest_name=name)
    if start:
        turns.start_game(game)
    db.session.commit()
    return game
