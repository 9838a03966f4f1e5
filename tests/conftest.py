"""Pytest configuration and shared fixtures."""

import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from fuelflow.auth import AuthService, SessionStore
from fuelflow.config import reset_config


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    dir_path = tempfile.mkdtemp()
    yield dir_path
    # Cleanup
    import shutil
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def user_payload():
    """A user object as returned by POST /api/auth/login."""
    return {
        "id": "u-1",
        "username": "admin",
        "fullName": "Station Admin",
        "role": "admin",
        "stationId": "1",
        "email": "admin@fuelflow.com",
    }


@pytest.fixture
def fake_client(user_payload):
    """A backend client that never touches the network."""
    client = MagicMock()
    client.login.return_value = user_payload
    client.get_station.return_value = {"id": "1", "name": "Main Station", "defaultCurrency": "USD"}
    return client


@pytest.fixture
def session_store(temp_dir):
    return SessionStore(Path(temp_dir) / "session.json")


@pytest.fixture
def auth(fake_client, session_store):
    """An initialised AuthService with no persisted session."""
    service = AuthService(fake_client, session_store)
    service.init()
    yield service
    service.dispose()


@pytest.fixture
def isolated_config(temp_dir, monkeypatch):
    """Point HOME at a temp dir so config, session and logs stay isolated."""
    config_dir = Path(temp_dir) / ".config" / "fuelflow"
    config_dir.mkdir(parents=True)

    monkeypatch.setenv("HOME", temp_dir)
    for var in ("FUELFLOW_API_URL", "FUELFLOW_API_TIMEOUT", "FUELFLOW_SESSION_PATH", "FUELFLOW_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    reset_config()

    yield config_dir

    reset_config()


# Markers for slow tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
