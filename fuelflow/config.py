"""
Configuration management for FuelFlow.

Loads configuration from multiple sources in order of priority:
1. Environment variables (FUELFLOW_*)
2. User config (~/.config/fuelflow/config.toml)
3. System config (/etc/fuelflow/config.toml)
4. Default config (bundled with package)
"""

import os
import sys
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pydantic import BaseModel, Field, field_validator


class APIConfig(BaseModel):
    """Backend connection configuration."""
    base_url: str = Field(default="http://localhost:5000", description="FuelFlow server URL")
    timeout: float = Field(default=10.0, description="Request timeout in seconds")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value


class SessionConfig(BaseModel):
    """Persisted session configuration."""
    store_path: str = Field(
        default="~/.config/fuelflow/session.json",
        description="Where the logged-in user is persisted"
    )
    encrypt: bool = Field(default=False, description="Encrypt the persisted session")
    key_path: str = Field(
        default="~/.config/fuelflow/session.key",
        description="Key file used when encrypt is enabled"
    )


class StationConfig(BaseModel):
    """Station settings cache configuration."""
    cache_path: str = Field(
        default="~/.config/fuelflow/station.json",
        description="Local cache of the station's display settings"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    enabled: bool = Field(default=True, description="Enable audit logging")
    path: str = Field(default="~/.config/fuelflow/logs/audit.log", description="Log file path")
    level: str = Field(default="info", description="Log level")


class UIConfig(BaseModel):
    """UI configuration."""
    use_colors: bool = Field(default=True, description="Use colors in output")


class FuelFlowConfig(BaseModel):
    """Main FuelFlow configuration."""
    api: APIConfig = Field(default_factory=APIConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    station: StationConfig = Field(default_factory=StationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    ui: UIConfig = Field(default_factory=UIConfig)


def user_config_dir() -> Path:
    """Directory holding the user's config, session and logs."""
    return Path.home() / ".config" / "fuelflow"


def get_config_paths() -> list[Path]:
    """Get configuration file paths in order of priority."""
    return [
        user_config_dir() / "config.toml",
        Path("/etc/fuelflow/config.toml"),
        Path(__file__).parent / "data" / "default.toml",
    ]


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    if path.exists():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def merge_configs(base: dict, override: dict) -> dict:
    """Deep merge two configuration dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_env_overrides() -> dict[str, Any]:
    """Load configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    base_url = os.environ.get("FUELFLOW_API_URL")
    if base_url:
        overrides.setdefault("api", {})["base_url"] = base_url

    timeout = os.environ.get("FUELFLOW_API_TIMEOUT")
    if timeout:
        overrides.setdefault("api", {})["timeout"] = timeout

    session_path = os.environ.get("FUELFLOW_SESSION_PATH")
    if session_path:
        overrides.setdefault("session", {})["store_path"] = session_path

    if os.environ.get("FUELFLOW_DEBUG"):
        overrides.setdefault("logging", {})["level"] = "debug"

    return overrides


def load_config() -> FuelFlowConfig:
    """Load configuration from all sources."""
    config_data: dict[str, Any] = {}

    # Lowest priority first
    for path in reversed(get_config_paths()):
        config_data = merge_configs(config_data, load_toml_config(path))

    config_data = merge_configs(config_data, load_env_overrides())

    # Keys written by the setup wizard that are not part of the model
    config_data.pop("setup_complete", None)

    return FuelFlowConfig(**config_data)


# Global config instance
_config: Optional[FuelFlowConfig] = None


def get_config() -> FuelFlowConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
