import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from study_app import create_app, db
from study_app.models import User
from config import Config


class FakeEvaluator:
    """Stands in for the LLM: records calls and returns canned feedback."""

    def __init__(self, feedback="Good start; also mention the withdrawal period."):
        self.feedback = feedback
        self.error = None
        self.calls = []

    def __call__(self, question, answer):
        self.calls.append((question, answer))
        if self.error is not None:
            raise self.error
        return self.feedback


def make_config(tmp_path, **overrides):
    attrs = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'study_test.db'}",
        'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-for-hs256-signing',
        'OPENAI_API_KEY': None,
        'EVALUATION_EAGER': True,
        'EVALUATE_ON_SUBMIT': True,
    }
    attrs.update(overrides)
    return type('TestConfig', (Config,), attrs)


@pytest.fixture
def app(tmp_path):
    app = create_app(make_config(tmp_path))
    app.extensions['feedback_evaluator'] = FakeEvaluator()
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
    app.extensions['evaluation_queue'].shutdown()


@pytest.fixture
def evaluator(app):
    return app.extensions['feedback_evaluator']


@pytest.fixture
def users(app):
    owner = User(email='owner@example.com', password_hash='unused')
    other = User(email='other@example.com', password_hash='unused')
    db.session.add_all([owner, other])
    db.session.commit()
    return owner.id, other.id


@pytest.fixture
def owner_id(users):
    return users[0]


@pytest.fixture
def other_id(users):
    return users[1]


def register(client, email, password='correct-horse-battery'):
    response = client.post('/auth/register', json={'email': email, 'password': password})
    assert response.status_code == 201, response.get_json()
    return response.get_json()


@pytest.fixture
def owner_client(app):
    client = app.test_client()
    register(client, 'alice@example.com')
    return client


@pytest.fixture
def other_client(app):
    client = app.test_client()
    register(client, 'bob@example.com')
    return client


@pytest.fixture
def anonymous_client(app):
    return app.test_client()
