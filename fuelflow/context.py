"""
Application composition root.

Builds the services in provider order (auth, then currency, then station),
runs their ``init``/``dispose`` lifecycle, and registers the mounted
instance so ``use_auth()``/``use_currency()``/``use_station()`` can find it.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

from .api import BackendClient
from .audit import AuditLogger
from .auth import AuthService, create_session_store
from .config import FuelFlowConfig, get_config
from .currency import CurrencyService
from .errors import ConfigurationError, ContextNotMountedError
from .station import StationService

logger = logging.getLogger(__name__)


class AppContext:
    """
    Owns the FuelFlow services for one application run.

    Usage:
        with AppContext() as app:
            app.auth.login("admin", "admin123")
            print(use_currency().format_currency(1500))
    """

    def __init__(
        self,
        config: Optional[FuelFlowConfig] = None,
        client=None,
        store=None,
        audit: Optional[AuditLogger] = None,
    ):
        self.config = config or get_config()
        self.client = client or BackendClient.from_config(self.config)
        self.audit = audit or AuditLogger.from_config(self.config)

        self.auth = AuthService(
            self.client,
            store or create_session_store(self.config),
            audit=self.audit,
        )
        self.currency = CurrencyService(self.auth, self.client, audit=self.audit)
        self.station = StationService(
            self.auth, self.client, Path(self.config.station.cache_path)
        )
        self.mounted = False

    def mount(self) -> "AppContext":
        """Initialise the services and make this the active context."""
        global _active
        with _active_lock:
            if _active is not None and _active is not self:
                raise ConfigurationError("Another AppContext is already mounted")
            _active = self

        try:
            self.auth.init()
            self.currency.init()
            self.station.init()
        except Exception:
            self.mounted = True
            self.unmount()
            raise
        self.mounted = True
        logger.debug("AppContext mounted")
        return self

    def unmount(self) -> None:
        """Dispose the services in reverse order and deregister."""
        global _active
        if self.mounted:
            self.station.dispose()
            self.currency.dispose()
            self.auth.dispose()
            self.mounted = False

        with _active_lock:
            if _active is self:
                _active = None
        logger.debug("AppContext unmounted")

    def __enter__(self) -> "AppContext":
        return self.mount()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.unmount()
        return False


_active: Optional[AppContext] = None
_active_lock = threading.Lock()


def get_app() -> AppContext:
    """The mounted AppContext."""
    app = _active
    if app is None:
        raise ContextNotMountedError("AppContext")
    return app


def use_auth() -> AuthService:
    app = _active
    if app is None:
        raise ContextNotMountedError("use_auth")
    return app.auth


def use_currency() -> CurrencyService:
    app = _active
    if app is None:
        raise ContextNotMountedError("use_currency")
    return app.currency


def use_station() -> StationService:
    app = _active
    if app is None:
        raise ContextNotMountedError("use_station")
    return app.station
