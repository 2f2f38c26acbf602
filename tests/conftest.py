"""Shared fixtures: a fresh app bound to a temporary SQLite file per test."""
import pytest
from fastapi.testclient import TestClient

from miniurl import crud
from miniurl.config import Settings
from miniurl.main import create_app

BASE_URL = 'http://short.test'
FRONTEND_URL = 'http://front.test'
TEST_SECRET = 'test-jwt-secret'


@pytest.fixture
def settings(tmp_path):
    return Settings(
        jwt_secret=TEST_SECRET,
        database_url=f"sqlite:///{tmp_path / 'miniurl_test.db'}",
        environment='test',
        base_url=BASE_URL,
        frontend_base_url=FRONTEND_URL,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session(client, app):
    """Direct store access for seeding records the API cannot create."""
    sessions = app.state.db.session()
    session = next(sessions)
    yield session
    sessions.close()


def register_and_login(client, email='user@example.com', password='password123'):
    res = client.post('/api/auth/register', json={'email': email, 'password': password})
    assert res.status_code == 201
    user_id = res.json()['userId']
    res = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert res.status_code == 200
    return user_id, res.json()['token']


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def owner(client):
    user_id, token = register_and_login(client, 'owner@example.com')
    return {'id': user_id, 'token': token, 'headers': bearer(token)}


@pytest.fixture
def other_user(client):
    user_id, token = register_and_login(client, 'other@example.com')
    return {'id': user_id, 'token': token, 'headers': bearer(token)}


def seed_link(session, **overrides):
    fields = {
        'original_url': 'https://example.com',
        'short_code': crud.generate_code(),
        'custom_short_code': None,
        'password_hash': None,
        'description': None,
        'is_active': True,
        'user_id': None,
    }
    fields.update(overrides)
    return crud.create_link(session, **fields)
