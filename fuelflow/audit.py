"""
Audit logging for FuelFlow.

Records session and currency changes as JSON lines for:
- Security auditing (who logged in, when, from which station)
- Troubleshooting station/currency resolution
"""

import json
import getpass
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, List
from dataclasses import dataclass, asdict


class ActionType(Enum):
    """Types of auditable actions."""
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    SESSION_RESTORED = "session_restored"
    CURRENCY_CHANGED = "currency_changed"
    ERROR = "error"


@dataclass
class AuditEntry:
    """A single audit log entry."""
    timestamp: str
    action_type: str
    description: str
    user: str
    success: bool
    details: dict
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        return cls(**data)


_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logging(level: str = "info") -> None:
    """Configure the ``fuelflow`` logger hierarchy for console output."""
    root = logging.getLogger("fuelflow")
    root.setLevel(_LEVELS.get(level, logging.INFO))

    if level == "debug" and not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        ))
        root.addHandler(handler)


class AuditLogger:
    """Logs FuelFlow session actions for auditing."""

    def __init__(self, log_path: Optional[Path] = None, enabled: bool = True):
        """
        Initialize the audit logger.

        Args:
            log_path: Path to the audit log file (JSON lines)
            enabled: Write entries to disk; recent entries are kept in memory either way
        """
        self.enabled = enabled and log_path is not None
        self.log_path = Path(log_path).expanduser() if log_path else None
        self.logger = logging.getLogger("fuelflow.audit")

        if self.enabled:
            self._ensure_log_directory()

        try:
            self.os_user = getpass.getuser()
        except (KeyError, OSError):
            self.os_user = "unknown"

        self._recent_entries: List[AuditEntry] = []
        self._max_recent = 100

    @classmethod
    def from_config(cls, config) -> "AuditLogger":
        return cls(Path(config.logging.path), enabled=config.logging.enabled)

    def _ensure_log_directory(self) -> None:
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.warning(f"Audit log disabled, cannot create {self.log_path.parent}: {e}")
            self.enabled = False

    def log(
        self,
        action_type: ActionType,
        description: str,
        user: Optional[str] = None,
        success: bool = True,
        details: Optional[dict] = None,
        error: Optional[str] = None,
    ) -> AuditEntry:
        """
        Log an action.

        Args:
            action_type: Type of action
            description: Human-readable description
            user: FuelFlow username, if any (falls back to the OS user)
            success: Whether the action succeeded
            details: Additional details, never credentials
            error: Error message if failed

        Returns:
            The created audit entry
        """
        entry = AuditEntry(
            timestamp=datetime.now().isoformat(),
            action_type=action_type.value,
            description=description,
            user=user or self.os_user,
            success=success,
            details=details or {},
            error=error,
        )

        self._recent_entries.append(entry)
        if len(self._recent_entries) > self._max_recent:
            self._recent_entries.pop(0)

        if success:
            self.logger.info(f"{action_type.value}: {description}")
        else:
            self.logger.warning(f"{action_type.value}: {description} - {error}")

        if self.enabled:
            self._write_entry(entry)

        return entry

    def _write_entry(self, entry: AuditEntry) -> None:
        try:
            with open(self.log_path, "a") as f:
                f.write(entry.to_json() + "\n")
        except OSError as e:
            self.logger.warning(f"Could not write to audit log: {e}")

    def log_login(self, username: str, station_id: Optional[str]) -> AuditEntry:
        return self.log(
            ActionType.LOGIN,
            f"Logged in: {username}",
            user=username,
            details={"station_id": station_id},
        )

    def log_login_failed(self, username: str, error: str) -> AuditEntry:
        return self.log(
            ActionType.LOGIN_FAILED,
            f"Login failed: {username}",
            user=username,
            success=False,
            error=error,
        )

    def log_logout(self, username: str) -> AuditEntry:
        return self.log(ActionType.LOGOUT, f"Logged out: {username}", user=username)

    def log_session_restored(self, username: str) -> AuditEntry:
        return self.log(
            ActionType.SESSION_RESTORED, f"Restored session: {username}", user=username
        )

    def log_currency_change(
        self, old: str, new: str, source: str, user: Optional[str] = None
    ) -> AuditEntry:
        """Log an active currency change (``source`` is "station" or "local")."""
        return self.log(
            ActionType.CURRENCY_CHANGED,
            f"Currency {old} -> {new} ({source})",
            user=user,
            details={"from": old, "to": new, "source": source},
        )

    def get_recent_entries(
        self,
        count: int = 10,
        action_type: Optional[ActionType] = None
    ) -> List[AuditEntry]:
        """Get recent audit entries."""
        entries = self._recent_entries

        if action_type:
            entries = [e for e in entries if e.action_type == action_type.value]

        return entries[-count:]
