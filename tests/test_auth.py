"""Tests for the authentication service and guard."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from fuelflow.audit import ActionType, AuditLogger
from fuelflow.auth import AuthGuard, AuthService, SessionStore, require_auth
from fuelflow.errors import (
    APIError,
    AuthenticationError,
    NotAuthenticatedError,
    PermissionDeniedError,
)
from fuelflow.models import Role, Session


class TestLogin:
    """Test login behaviour."""

    def test_starts_unauthenticated(self, auth):
        assert auth.user is None
        assert auth.is_authenticated is False

    def test_login_success(self, auth, fake_client):
        session = auth.login("admin", "admin123")

        fake_client.login.assert_called_once_with("admin", "admin123")
        assert auth.is_authenticated is True
        assert auth.user == session
        assert session.username == "admin"
        assert session.station_id == "1"

    def test_login_persists_session(self, auth, session_store, user_payload):
        auth.login("admin", "admin123")
        assert session_store.read() == user_payload

    def test_session_survives_restart(self, auth, fake_client, session_store):
        session = auth.login("admin", "admin123")

        restarted = AuthService(fake_client, session_store)
        restarted.init()

        assert restarted.is_authenticated is True
        assert restarted.user == session

    def test_rejected_credentials(self, auth, fake_client):
        fake_client.login.side_effect = APIError("401 Invalid credentials", status_code=401)

        with pytest.raises(AuthenticationError) as exc_info:
            auth.login("admin", "wrong")

        assert isinstance(exc_info.value.__cause__, APIError)
        assert auth.is_authenticated is False

    def test_network_failure(self, auth, fake_client):
        fake_client.login.side_effect = APIError("connection refused")

        with pytest.raises(AuthenticationError):
            auth.login("admin", "admin123")

    def test_failed_login_keeps_existing_session(self, auth, fake_client, session_store):
        session = auth.login("admin", "admin123")
        fake_client.login.side_effect = APIError("401", status_code=401)

        with pytest.raises(AuthenticationError):
            auth.login("other", "nope")

        assert auth.user == session
        assert session_store.read()["username"] == "admin"

    def test_malformed_user_record(self, auth, fake_client):
        fake_client.login.return_value = {"username": "admin"}

        with pytest.raises(AuthenticationError):
            auth.login("admin", "admin123")
        assert auth.user is None


class TestLogout:
    """Test logout behaviour."""

    def test_logout_clears_memory_and_storage(self, auth, fake_client, session_store):
        auth.login("admin", "admin123")
        auth.logout()

        assert auth.is_authenticated is False
        assert session_store.read() is None

        restarted = AuthService(fake_client, session_store)
        assert restarted.init() is None
        assert restarted.is_authenticated is False

    def test_logout_is_idempotent(self, auth):
        auth.logout()
        auth.logout()
        assert auth.user is None


class TestRehydration:
    """Test session restore on init."""

    def test_corrupt_file_means_no_session(self, fake_client, session_store):
        session_store.path.write_text("{{{")
        service = AuthService(fake_client, session_store)

        assert service.init() is None
        assert service.is_authenticated is False

    def test_incomplete_record_means_no_session(self, fake_client, session_store):
        session_store.write({"username": "admin"})
        service = AuthService(fake_client, session_store)

        assert service.init() is None

    def test_restore_notifies_listeners(self, fake_client, session_store, user_payload):
        session_store.write(user_payload)
        service = AuthService(fake_client, session_store)
        seen = []
        service.subscribe(seen.append)

        service.init()

        assert len(seen) == 1
        assert seen[0].username == "admin"


class TestListeners:
    """Test synchronous change notification."""

    def test_listener_sees_login_and_logout(self, auth):
        seen = []
        auth.subscribe(seen.append)

        auth.login("admin", "admin123")
        auth.logout()

        assert [s.username if s else None for s in seen] == ["admin", None]

    def test_unsubscribe(self, auth):
        listener = MagicMock()
        unsubscribe = auth.subscribe(listener)
        unsubscribe()

        auth.login("admin", "admin123")
        listener.assert_not_called()

    def test_dispose_drops_listeners(self, auth):
        listener = MagicMock()
        auth.subscribe(listener)
        auth.dispose()

        auth.login("admin", "admin123")
        listener.assert_not_called()


class TestAudit:
    """Test audit trail of auth actions."""

    def test_login_and_logout_audited(self, fake_client, session_store, temp_dir):
        audit = AuditLogger(Path(temp_dir) / "audit.log")
        service = AuthService(fake_client, session_store, audit=audit)

        service.login("admin", "admin123")
        service.logout()

        kinds = [e.action_type for e in audit.get_recent_entries()]
        assert kinds == [ActionType.LOGIN.value, ActionType.LOGOUT.value]
        assert "admin123" not in (Path(temp_dir) / "audit.log").read_text()

    def test_failed_login_audited(self, fake_client, session_store):
        audit = AuditLogger(None)
        fake_client.login.side_effect = APIError("401", status_code=401)
        service = AuthService(fake_client, session_store, audit=audit)

        with pytest.raises(AuthenticationError):
            service.login("admin", "bad")

        entry = audit.get_recent_entries(action_type=ActionType.LOGIN_FAILED)[0]
        assert entry.success is False
        assert entry.user == "admin"


class TestAuthGuard:
    """Test route/operation gating."""

    def test_blocks_when_logged_out(self, auth):
        guard = AuthGuard(auth)
        assert guard.allows() is False
        with pytest.raises(NotAuthenticatedError):
            guard.check()

    def test_allows_when_logged_in(self, auth):
        auth.login("admin", "admin123")
        assert AuthGuard(auth).check().username == "admin"

    def test_role_restriction(self, auth, fake_client, user_payload):
        fake_client.login.return_value = dict(user_payload, role="cashier")
        auth.login("cashier1", "pw")

        guard = AuthGuard(auth, roles=[Role.ADMIN, Role.MANAGER])
        assert guard.allows() is False
        with pytest.raises(PermissionDeniedError):
            guard.check()

    def test_decorator(self, auth):
        @require_auth(auth, roles=["admin"])
        def close_shift():
            return "closed"

        with pytest.raises(NotAuthenticatedError):
            close_shift()

        auth.login("admin", "admin123")
        assert close_shift() == "closed"
