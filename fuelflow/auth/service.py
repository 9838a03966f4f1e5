"""
Authentication service: the single source of truth for who is logged in.

Holds at most one Session per process. Observers registered with
``subscribe`` are called synchronously after every change.
"""

import logging
import threading
from typing import Callable, List, Optional

from ..audit import AuditLogger
from ..errors import APIError, AuthenticationError, ErrorCategory, safe_execute
from ..models import Session
from .store import SessionStore

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[Session]], None]


class AuthService:
    """Login/logout and session persistence."""

    def __init__(
        self,
        client,
        store: SessionStore,
        audit: Optional[AuditLogger] = None,
    ):
        """
        Args:
            client: Backend client exposing ``login(username, password)``
            store: Where the session survives restarts
            audit: Optional audit logger
        """
        self.client = client
        self.store = store
        self.audit = audit
        self._session: Optional[Session] = None
        self._listeners: List[SessionListener] = []
        self._lock = threading.RLock()

    # -- State ----------------------------------------------------------------

    @property
    def user(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    # -- Lifecycle ------------------------------------------------------------

    def init(self) -> Optional[Session]:
        """Rehydrate the session from persisted storage.

        Absent or corrupt data leaves the service unauthenticated.
        """
        result = safe_execute(
            lambda: self._read_persisted(),
            "restore_session",
            default_category=ErrorCategory.STORAGE,
        )
        if result.is_err:
            logger.warning(
                f"Ignoring unreadable persisted session: {result.error.technical_message}"
            )
            return None

        session = result.value
        if session is not None:
            self._set_session(session)
            if self.audit:
                self.audit.log_session_restored(session.username)
        return session

    def _read_persisted(self) -> Optional[Session]:
        data = self.store.read()
        if data is None:
            return None
        return Session.from_dict(data)

    def dispose(self) -> None:
        """Drop observers. The persisted session is kept for the next start."""
        with self._lock:
            self._listeners.clear()

    # -- Operations -----------------------------------------------------------

    def login(self, username: str, password: str) -> Session:
        """
        Authenticate against the backend and start a session.

        Raises:
            AuthenticationError: credentials rejected or server unreachable.
                Any existing session is left as it was.
        """
        try:
            session = Session.from_dict(self.client.login(username, password))
        except APIError as e:
            if self.audit:
                self.audit.log_login_failed(username, str(e))
            raise AuthenticationError(
                "Login failed",
                suggested_action=e.suggested_action,
            ) from e
        except (KeyError, TypeError) as e:
            if self.audit:
                self.audit.log_login_failed(username, f"malformed user: {e}")
            raise AuthenticationError("Login failed: malformed user record") from e

        self.store.write(session.to_dict())
        self._set_session(session)

        if self.audit:
            self.audit.log_login(session.username, session.station_id)
        return session

    def logout(self) -> None:
        """End the session. Calling it with no session is a no-op."""
        previous = self._session
        self.store.clear()
        if previous is None:
            return

        self._set_session(None)
        if self.audit:
            self.audit.log_logout(previous.username)

    # -- Observers ------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _set_session(self, session: Optional[Session]) -> None:
        with self._lock:
            self._session = session
            listeners = list(self._listeners)
        for listener in listeners:
            listener(session)
