"""
HTTP client for the FuelFlow REST backend.

Only the endpoints the client core needs are wrapped here. Every request
carries a bounded timeout; transport and HTTP failures are raised as
APIError so callers can decide whether to surface or recover.
"""

import logging
from typing import Any, Dict, Optional

import requests

from ..errors import APIError

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin wrapper around a requests.Session bound to one server."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    @classmethod
    def from_config(cls, config) -> "BackendClient":
        """Create a client from a FuelFlowConfig."""
        return cls(config.api.base_url, timeout=config.api.timeout)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise APIError(
                f"{method} {path} timed out after {self.timeout}s",
                user_message="The FuelFlow server did not respond in time.",
                suggested_action="Try again or increase api.timeout.",
            ) from e
        except requests.RequestException as e:
            raise APIError(
                f"{method} {path} failed: {e}",
                user_message="Could not reach the FuelFlow server.",
                suggested_action="Check the server URL and your network connection.",
            ) from e

        if not response.ok:
            raise APIError(
                f"{method} {path} returned {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                f"{method} {path} returned invalid JSON",
                status_code=response.status_code,
            ) from e

    def login(self, username: str, password: str) -> Dict[str, Any]:
        """POST /api/auth/login and return the ``user`` object."""
        data = self._request(
            "POST", "/api/auth/login",
            json={"username": username, "password": password},
        )
        if not isinstance(data, dict) or not isinstance(data.get("user"), dict):
            raise APIError("Login response did not include a user", status_code=200)
        return data["user"]

    def get_station(self, station_id: str) -> Dict[str, Any]:
        """GET /api/stations/{station_id}."""
        data = self._request("GET", f"/api/stations/{station_id}")
        if not isinstance(data, dict):
            raise APIError(f"Station {station_id} response was not an object", status_code=200)
        return data

    def close(self) -> None:
        self.session.close()


def _error_message(response: requests.Response) -> str:
    """Pull the backend's ``message`` field out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.reason or ""
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason or ""
