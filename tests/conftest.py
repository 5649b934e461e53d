import os

# Settings are read on first import; keep tests off the real database
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from peerfusion.database import Database
from peerfusion.main import create_app

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    database = Database("sqlite://", engine=engine)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def test_db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def app(database):
    return create_app(database=database)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client):
    """Register a user through the API and return its id, token and auth headers."""

    def _make_user(email, first_name="Test", last_name="User", password=DEFAULT_PASSWORD):
        response = client.post(
            "/api/auth/register",
            json={
                "email": email,
                "password": password,
                "first_name": first_name,
                "last_name": last_name,
            },
        )
        assert response.status_code == 201, response.text
        payload = response.json()
        return {
            "id": payload["user"]["id"],
            "email": payload["user"]["email"],
            "token": payload["access_token"],
            "headers": {"Authorization": f"Bearer {payload['access_token']}"},
        }

    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user("alice@peerfusion.org", "Alice", "Archer")


@pytest.fixture
def bob(make_user):
    return make_user("bob@peerfusion.org", "Bob", "Baker")


@pytest.fixture
def carol(make_user):
    return make_user("carol@peerfusion.org", "Carol", "Chen")


@pytest.fixture
def send(client):
    """Send a message as `sender` and return the response payload."""

    def _send(sender, receiver_id, content, **extra):
        response = client.post(
            "/api/messages/send",
            json={"receiverId": receiver_id, "content": content, **extra},
            headers=sender["headers"],
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _send
