"""Application configuration, read from the environment."""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_API_URL = "http://localhost:8080"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for the album manager."""

    # Backend
    api_url: str = DEFAULT_API_URL
    api_timeout_sec: float = 30.0

    # Server
    host: str = "127.0.0.1"
    port: int = 8050
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls(
            api_url=os.getenv("ALBUM_API_URL", DEFAULT_API_URL),
            api_timeout_sec=float(os.getenv("ALBUM_API_TIMEOUT", "30")),
            host=os.getenv("ALBUM_MANAGER_HOST", "127.0.0.1"),
            port=int(os.getenv("ALBUM_MANAGER_PORT", "8050")),
            debug=_env_flag("ALBUM_MANAGER_DEBUG"),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Set the global settings instance (``None`` re-reads the environment)."""
    global _settings
    _settings = settings
