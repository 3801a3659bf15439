"""Pytest configuration for the store API tests."""

import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import init_db, make_engine
from main import create_app


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret-key",
        bcrypt_rounds=4,
    )


@pytest.fixture
def engine(settings):
    """A fresh seeded in-memory database per test."""
    engine = make_engine(settings.database_url, settings.db_timeout)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(settings, engine):
    return TestClient(create_app(settings, engine))


@pytest.fixture
def register(client):
    """Register a user and return (token, user) from the response."""

    def _register(name="Alice", email="a@x.com", password="pw123"):
        res = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert res.status_code == 201, res.text
        body = res.json()
        return body["token"], body["user"]

    return _register
