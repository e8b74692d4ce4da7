"""
Pytest fixtures for archivist tests.
"""

import os
import tempfile
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from archivist import archive
from archivist.auth import acting_as, hash_password
from archivist.config import config, state
from archivist.database import Database, DBUser
from archivist.server import app
from archivist.tests.fakes import FakeUpstream

NEW_YORK = ZoneInfo("America/New_York")
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=NEW_YORK)

USERNAME = "reader"
PASSWORD = "correct horse battery"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Use the minimum bcrypt cost so hashing does not dominate test time."""
    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    # Cleanup
    if os.path.exists(f.name):
        os.unlink(f.name)


@pytest.fixture
def test_db(temp_db_path):
    """Create a test database instance."""
    db = Database(temp_db_path, instance=1)
    yield db


@pytest.fixture
def user(test_db):
    """A stored user."""
    return test_db.upsert_user(DBUser(name=USERNAME, password_hash=hash_password(PASSWORD)))


@pytest.fixture
def as_user(user):
    """Run the test on behalf of ``user``."""
    with acting_as(user):
        yield user


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def service(upstream, test_db):
    """The full archive chain over the fake upstream and a temp database."""
    return archive.default(upstream, test_db, now=lambda: NOW)


@pytest.fixture
def client(test_db, upstream, service, user):
    """Create a test client with an isolated database and fake upstream."""
    # Store original state
    original_db = state.db
    original_upstream = state.upstream
    original_archive = state.archive

    state.db = test_db
    state.upstream = upstream
    state.archive = service

    with TestClient(app, raise_server_exceptions=False) as test_client:
        test_client.auth = (USERNAME, PASSWORD)
        yield test_client

    # Restore original state
    state.db = original_db
    state.upstream = original_upstream
    state.archive = original_archive
