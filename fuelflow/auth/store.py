"""
Persisted session storage.

A single file holds the serialized session: overwritten on login,
removed on logout, read once at startup. The encrypted variant wraps
the same JSON payload with Fernet using a key file next to it.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class CorruptSessionError(ValueError):
    """The persisted session exists but cannot be decoded."""


class SessionStore:
    """Plain JSON session file."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def read(self) -> Optional[Dict[str, Any]]:
        """
        Read the persisted session.

        Returns None when nothing is stored.

        Raises:
            CorruptSessionError: the file exists but is not a JSON object.
        """
        if not self.path.exists():
            return None

        raw = self.path.read_bytes()
        try:
            data = json.loads(self._decode(raw))
        except (ValueError, UnicodeDecodeError) as e:
            raise CorruptSessionError(f"Unreadable session file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise CorruptSessionError(f"Session file {self.path} does not hold an object")
        return data

    def write(self, data: Dict[str, Any]) -> None:
        """Replace the persisted session."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = self._encode(json.dumps(data).encode("utf-8"))

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "wb") as f:
            f.write(payload)
        # Secure file permissions (owner read/write only)
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        """Remove the persisted session. No-op when nothing is stored."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def _encode(self, payload: bytes) -> bytes:
        return payload

    def _decode(self, raw: bytes) -> str:
        return raw.decode("utf-8")


class EncryptedSessionStore(SessionStore):
    """Session file encrypted with a locally generated Fernet key."""

    def __init__(self, path: Path, key_path: Path):
        super().__init__(path)
        self.key_path = Path(key_path).expanduser()
        self._fernet: Optional[Fernet] = None

    def _get_fernet(self) -> Fernet:
        if self._fernet is None:
            if self.key_path.exists():
                key = self.key_path.read_bytes().strip()
            else:
                key = Fernet.generate_key()
                self.key_path.parent.mkdir(parents=True, exist_ok=True)
                self.key_path.write_bytes(key)
                os.chmod(self.key_path, 0o600)
                logger.debug("Generated session key at %s", self.key_path)
            self._fernet = Fernet(key)
        return self._fernet

    def _encode(self, payload: bytes) -> bytes:
        return self._get_fernet().encrypt(payload)

    def _decode(self, raw: bytes) -> str:
        try:
            return self._get_fernet().decrypt(raw).decode("utf-8")
        except (InvalidToken, ValueError) as e:
            raise CorruptSessionError(f"Cannot decrypt session file {self.path}") from e


def create_session_store(config) -> SessionStore:
    """Build the session store described by ``config.session``."""
    if config.session.encrypt:
        return EncryptedSessionStore(
            Path(config.session.store_path), Path(config.session.key_path)
        )
    return SessionStore(Path(config.session.store_path))
