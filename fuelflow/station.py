"""
Station display settings (name, address, contact details, GST number).

Settings start from built-in defaults, are overlaid with the local cache,
then refreshed from the server for the session's station. Fetches run on
a worker thread; like the currency lookup, only the latest one applies.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from .errors import ErrorBoundary, ErrorCategory, format_error_for_log
from .models import Session, StationSettings

logger = logging.getLogger(__name__)


class StationService:
    """Keeps the current station's settings and a local copy of them."""

    def __init__(self, auth, client, cache_path: Path):
        self.auth = auth
        self.client = client
        self.cache_path = Path(cache_path).expanduser()
        self.settings = StationSettings()
        self._station_id: Optional[str] = None
        self._generation = 0
        self._loading = False
        self._fetch_thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._unsubscribe = None

    @property
    def is_loading(self) -> bool:
        return self._loading

    def init(self) -> StationSettings:
        """Load the cache and start fetching the session's station.

        Returns the cached settings; the fetched ones replace them later.
        """
        self.settings = self._load_cache()
        self._unsubscribe = self.auth.subscribe(self._on_session_change)
        self.refresh()
        return self.settings

    def dispose(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        with self._lock:
            self._generation += 1
            self._loading = False

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the outstanding fetch finishes; False on timeout."""
        thread = self._fetch_thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _on_session_change(self, session: Optional[Session]) -> None:
        self._apply_station(session.station_id if session else None)

    def refresh(self) -> None:
        """Re-fetch settings for the session's station in the background."""
        session = self.auth.user
        self._apply_station(session.station_id if session else None, force=True)

    def _apply_station(self, station_id: Optional[str], force: bool = False) -> None:
        with self._lock:
            if station_id == self._station_id and not force:
                return
            previous = self._station_id
            self._station_id = station_id
            self._generation += 1
            generation = self._generation

            if station_id is None:
                self._loading = False
                # Logged out: nothing left of the previous station
                if previous is not None:
                    self.settings = StationSettings()
                return
            self._loading = True

        thread = threading.Thread(
            target=self._fetch_settings,
            args=(station_id, generation),
            name=f"station-settings-{station_id}",
            daemon=True,
        )
        self._fetch_thread = thread
        thread.start()

    def _fetch_settings(self, station_id: str, generation: int) -> None:
        with ErrorBoundary(
            f"fetch_station:{station_id}", default_category=ErrorCategory.API
        ) as boundary:
            fetched = StationSettings.from_station(self.client.get_station(station_id))

        with self._lock:
            if generation != self._generation:
                logger.debug(f"Dropping stale station settings for {station_id}")
                return
            self._loading = False
            if boundary.has_error:
                logger.warning(
                    "Failed to load station data from API, using cached settings\n"
                    + format_error_for_log(boundary.error_context)
                )
                return
            self.settings = fetched

        self._save_cache()

    def update_settings(self, **changes) -> StationSettings:
        """Apply local edits (snake_case field names) and cache them."""
        unknown = [key for key in changes if key not in StationSettings._KEYS]
        if unknown:
            raise ValueError(f"Unknown station setting: {', '.join(unknown)}")
        with self._lock:
            for key, value in changes.items():
                setattr(self.settings, key, value)
        self._save_cache()
        return self.settings

    def _load_cache(self) -> StationSettings:
        try:
            with open(self.cache_path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            return StationSettings()
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable station cache {self.cache_path}: {e}")
            return StationSettings()

        if not isinstance(data, dict):
            return StationSettings()
        return StationSettings.from_dict(data)

    def _save_cache(self) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_path, "w") as f:
                json.dump(self.settings.to_dict(), f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save station cache: {e}")
