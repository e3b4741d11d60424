"""Configuration management utilities for PlanHaus tools.

Provides:
- A Config base class with dict/JSON round-tripping
- ClientConfig: settings for the sync layer (HTTP core, cache, uploads)
- ServerConfig: settings for the development backend

All env vars have sensible defaults so the client and dev server work out of
the box without any configuration.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary.

        Unknown keys are set as attributes as-is; known keys override the
        defaults computed by ``__init__``.
        """
        config = cls()
        for key, value in data.items():
            setattr(config, key, value)
        return config

    def save_json(self, path: Path) -> None:
        """Save configuration to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_json(cls, path: Path) -> "Config":
        """Load configuration from JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)


class ClientConfig(Config):
    """Sync-layer configuration loaded from environment variables.

    Environment variables:
        PLANHAUS_BASE_URL: Server origin prepended to API paths (default: http://127.0.0.1:8000)
        PLANHAUS_SESSION_FILE: JSON file holding the durable session (default: .planhaus/session.json)
        PLANHAUS_DEMO_FALLBACK: Silently log in as the demo user on 401 (default: true)
        PLANHAUS_TIMEOUT: Per-request timeout in seconds (default: 30)
        PLANHAUS_RETRIES: Read retries after the first attempt (default: 2)
        PLANHAUS_RETRY_BASE_DELAY: First backoff delay in seconds (default: 1.0)
        PLANHAUS_RETRY_MAX_DELAY: Backoff ceiling in seconds (default: 30.0)
        PLANHAUS_STALE_TIME: Default seconds before cached data is stale (default: 300)
        PLANHAUS_GC_TIME: Default seconds an unused entry is kept (default: 900)
        PLANHAUS_UPLOAD_MAX_MB: Max upload size for file analysis (default: 10)
        PLANHAUS_SEARCH_DEBOUNCE_MS: Debounce for search inputs (default: 300)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
    """

    def __init__(self) -> None:
        super().__init__()
        self.base_url = os.getenv("PLANHAUS_BASE_URL", "http://127.0.0.1:8000").rstrip("/")
        self.session_file = Path(os.getenv("PLANHAUS_SESSION_FILE", ".planhaus/session.json"))
        self.demo_fallback = _env_bool("PLANHAUS_DEMO_FALLBACK", True)
        self.timeout_seconds = float(os.getenv("PLANHAUS_TIMEOUT", "30"))
        self.max_retries = int(os.getenv("PLANHAUS_RETRIES", "2"))
        self.retry_base_delay = float(os.getenv("PLANHAUS_RETRY_BASE_DELAY", "1.0"))
        self.retry_max_delay = float(os.getenv("PLANHAUS_RETRY_MAX_DELAY", "30.0"))
        self.stale_time = float(os.getenv("PLANHAUS_STALE_TIME", "300"))
        self.gc_time = float(os.getenv("PLANHAUS_GC_TIME", "900"))
        self.upload_max_mb = float(os.getenv("PLANHAUS_UPLOAD_MAX_MB", "10"))
        self.search_debounce_ms = int(os.getenv("PLANHAUS_SEARCH_DEBOUNCE_MS", "300"))
        self.log_format = os.getenv("APP_LOG_FORMAT", "text")
        self.login_path = "/login"
        self.demo_login_path = "/api/auth/demo-login"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create a ClientConfig instance populated from environment variables."""
        return cls()


class ServerConfig(Config):
    """Development backend configuration loaded from environment variables.

    Environment variables:
        APP_HOST: Bind address (default: 127.0.0.1)
        APP_PORT: Port (default: 8000)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        APP_UPLOAD_MAX_MB: Max accepted upload size (default: 10)
    """

    def __init__(self) -> None:
        super().__init__()
        self.api_host = os.getenv("APP_HOST", "127.0.0.1")
        self.api_port = int(os.getenv("APP_PORT", "8000"))
        self.log_format = os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.upload_max_mb = float(os.getenv("APP_UPLOAD_MAX_MB", "10"))

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create a ServerConfig instance populated from environment variables."""
        return cls()
