"""
Data models shared by the FuelFlow services.

Session and station records use the backend's camelCase keys on the wire
and snake_case attributes in Python.
"""

from enum import Enum
from typing import Any, Dict, Optional
from dataclasses import dataclass, field


class Role(Enum):
    """Known user roles. The backend may send others."""
    ADMIN = "admin"
    MANAGER = "manager"
    CASHIER = "cashier"


@dataclass(frozen=True)
class Session:
    """The authenticated identity for the current user."""
    id: str
    username: str
    full_name: str
    role: str
    station_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def has_role(self, *roles) -> bool:
        """Check the session role against names or Role members."""
        wanted = {r.value if isinstance(r, Role) else str(r) for r in roles}
        return self.role in wanted

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the backend's JSON shape."""
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "role": self.role,
        })
        if self.station_id is not None:
            data["stationId"] = self.station_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        """Create from the backend's JSON shape.

        Raises:
            KeyError: a required field is missing.
            TypeError: ``data`` is not a mapping.
        """
        if not isinstance(data, dict):
            raise TypeError(f"session data must be an object, got {type(data).__name__}")

        station_id = data.get("stationId")
        known = {"id", "username", "fullName", "role", "stationId"}
        return cls(
            id=str(data["id"]),
            username=data["username"],
            full_name=data.get("fullName") or data["username"],
            role=data["role"],
            station_id=str(station_id) if station_id not in (None, "") else None,
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class StationSettings:
    """Display settings for a station (receipts, headers)."""
    station_name: str = "FuelFlow Station"
    address: str = "Main Highway, Lahore"
    contact_number: str = "+92-300-1234567"
    email: str = "station@fuelflow.com"
    gst_number: str = "PAK-GST-123456789"
    logo_url: Optional[str] = None

    _KEYS = {
        "station_name": "stationName",
        "address": "address",
        "contact_number": "contactNumber",
        "email": "email",
        "gst_number": "gstNumber",
        "logo_url": "logoUrl",
    }

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in self._KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StationSettings":
        """Build from cached settings, keeping defaults for missing keys."""
        settings = cls()
        for attr, key in cls._KEYS.items():
            if key in data:
                setattr(settings, attr, data[key])
        return settings

    @classmethod
    def from_station(cls, station: Dict[str, Any]) -> "StationSettings":
        """Build from a ``/api/stations/{id}`` record.

        Empty values fall back to the defaults one field at a time.
        """
        defaults = cls()
        return cls(
            station_name=station.get("name") or defaults.station_name,
            address=station.get("address") or defaults.address,
            contact_number=station.get("contactNumber") or defaults.contact_number,
            email=station.get("email") or defaults.email,
            gst_number=station.get("gstNumber") or defaults.gst_number,
            logo_url=station.get("logoUrl"),
        )
