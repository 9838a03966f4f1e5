"""
Active currency for the session.

The currency follows the logged-in user's station: whenever the session's
station id changes, the station record is fetched on a worker thread and
its ``defaultCurrency`` applied. Every fetch carries a generation number;
results from anything but the latest fetch are dropped.
"""

import logging
import threading
from typing import Optional

from ..errors import ErrorCategory, Result, format_error_for_log, safe_execute
from ..models import Session
from .formatting import Amount, format_amount, format_amount_compact
from .table import CurrencyInfo, DEFAULT_CURRENCY, get_currency_info, is_valid_currency

logger = logging.getLogger(__name__)


class CurrencyService:
    """Resolve, expose and format with the active currency."""

    def __init__(self, auth, client, audit=None):
        """
        Args:
            auth: AuthService whose session selects the station
            client: Backend client exposing ``get_station(station_id)``
            audit: Optional AuditLogger
        """
        self.auth = auth
        self.client = client
        self.audit = audit

        self._currency = DEFAULT_CURRENCY
        self._station_id: Optional[str] = None
        self._generation = 0
        self._loading = False
        self._fetch_thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._unsubscribe = None

        self.last_fetch_result: Optional[Result] = None

    # -- State ----------------------------------------------------------------

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def currency_config(self) -> CurrencyInfo:
        return get_currency_info(self._currency)

    @property
    def is_loading(self) -> bool:
        return self._loading

    # -- Lifecycle ------------------------------------------------------------

    def init(self) -> None:
        """Start following the auth session and resolve the current station."""
        self._unsubscribe = self.auth.subscribe(self._on_session_change)
        self._apply_station(self._station_of(self.auth.user), force=True)

    def dispose(self) -> None:
        """Stop following the session; any in-flight result is discarded."""
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        with self._lock:
            self._generation += 1
            self._loading = False

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the outstanding station fetch finishes.

        Returns False if it is still running after ``timeout`` seconds.
        """
        thread = self._fetch_thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # -- Station tracking -----------------------------------------------------

    @staticmethod
    def _station_of(session: Optional[Session]) -> Optional[str]:
        return session.station_id if session else None

    def _on_session_change(self, session: Optional[Session]) -> None:
        self._apply_station(self._station_of(session))

    def _apply_station(self, station_id: Optional[str], force: bool = False) -> None:
        with self._lock:
            if station_id == self._station_id and not force:
                return
            self._station_id = station_id
            self._generation += 1
            generation = self._generation

            if station_id is None:
                self._loading = False
                old = self._currency
                self._currency = DEFAULT_CURRENCY
            else:
                self._loading = True

        if station_id is None:
            self._record_change(old, DEFAULT_CURRENCY, "station")
            return

        thread = threading.Thread(
            target=self._fetch_station_currency,
            args=(station_id, generation),
            name=f"station-currency-{station_id}",
            daemon=True,
        )
        self._fetch_thread = thread
        thread.start()

    def _fetch_station_currency(self, station_id: str, generation: int) -> None:
        result = safe_execute(
            lambda: self.client.get_station(station_id),
            f"fetch_station:{station_id}",
            default_category=ErrorCategory.API,
        )

        with self._lock:
            if generation != self._generation:
                logger.debug(f"Dropping stale station response for {station_id}")
                return

            self.last_fetch_result = result
            self._loading = False
            old = self._currency

            if result.is_err:
                logger.warning(
                    "Failed to fetch station currency, using default\n"
                    + format_error_for_log(result.error)
                )
                self._currency = DEFAULT_CURRENCY
            else:
                code = result.value.get("defaultCurrency")
                if is_valid_currency(code):
                    self._currency = code
                elif code is not None:
                    logger.warning(f"Station {station_id} has unsupported currency {code!r}")
            new = self._currency

        self._record_change(old, new, "station")

    def _record_change(self, old: str, new: str, source: str) -> None:
        if old != new and self.audit:
            user = self.auth.user.username if self.auth.user else None
            self.audit.log_currency_change(old, new, source, user=user)

    # -- Operations -----------------------------------------------------------

    def set_currency(self, code: str) -> None:
        """Override the active currency for this process only.

        The station record on the server is not changed.
        """
        if not is_valid_currency(code):
            raise ValueError(f"Unsupported currency {code!r}")
        with self._lock:
            old = self._currency
            self._currency = code
        self._record_change(old, code, "local")

    def format_currency(
        self,
        amount: Amount,
        minimum_fraction_digits: Optional[int] = None,
        maximum_fraction_digits: Optional[int] = None,
    ) -> str:
        return format_amount(
            amount,
            self._currency,
            minimum_fraction_digits=minimum_fraction_digits,
            maximum_fraction_digits=maximum_fraction_digits,
        )

    def format_currency_compact(self, amount: Amount) -> str:
        return format_amount_compact(amount, self._currency)
