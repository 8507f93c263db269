"""Pytest configuration and fixtures for school portal tests."""

from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from schoolportal import auth
from schoolportal.api import create_app
from schoolportal.database import Database, Repository, seed_database
from schoolportal.session_manager import SessionStore


CREDENTIALS = {
    "admin": ("admin@school.edu", "admin123"),
    "professor": ("prof@school.edu", "prof123"),
    "student": ("student@school.edu", "student123"),
}


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, HTTP app)")


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    """Keep password hashing cheap; the iteration count is stored per hash."""
    monkeypatch.setattr(auth, "HASH_ITERATIONS", 1000)


@pytest.fixture
def db(tmp_path: Path) -> Generator[Database, None, None]:
    """Provide an empty database with the schema applied."""
    database = Database(tmp_path / "test.db")
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def repo(db: Database) -> Repository:
    return Repository(db)


@pytest.fixture
def seeded_repo(db: Database) -> Repository:
    """Repository over a database holding the demo data."""
    seed_database(db)
    return Repository(db)


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def client(db: Database, sessions: SessionStore) -> Generator[TestClient, None, None]:
    """HTTP client for an app seeded with the demo data."""
    app = create_app(db, sessions, seed=True)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client: TestClient) -> Callable[[str], dict]:
    """Log in as one of the demo users and return the auth header."""

    def _login(role: str) -> dict:
        email, password = CREDENTIALS[role]
        response = client.post("/api/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login
