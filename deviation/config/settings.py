"""Zabbix deviation service settings."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Process-level settings for the deviation service."""

    # Algorithm versioning - MUST be updated when comparison logic changes
    algorithm_version: str = "1.0.0"

    # Service identification
    service_name: str = "zabbix-deviation"
    service_version: str = "0.1.0"

    # Zabbix API access (override the YAML configuration when set)
    zabbix_url: str | None = None
    zabbix_username: str | None = None
    zabbix_password: str | None = None
    api_timeout_ms: int = 10000  # per JSON-RPC request

    # Comparison scheduling
    max_workers: int = 1  # items compared concurrently; 1 is sequential
    history_workers: int = 1  # concurrent history queries per item
    run_deadline_seconds: float | None = None

    # Run configuration file used by the HTTP surface
    config_path: str | None = None

    # API settings
    api_prefix: str = "/api/v1"
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        deadline = os.getenv("DEVIATION_RUN_DEADLINE_SECONDS")
        return cls(
            algorithm_version=os.getenv("ALGORITHM_VERSION", "1.0.0"),
            zabbix_url=os.getenv("ZABBIX_URL"),
            zabbix_username=os.getenv("ZABBIX_USERNAME"),
            zabbix_password=os.getenv("ZABBIX_PASSWORD"),
            api_timeout_ms=int(os.getenv("ZABBIX_TIMEOUT_MS", "10000")),
            max_workers=int(os.getenv("DEVIATION_MAX_WORKERS", "1")),
            history_workers=int(os.getenv("DEVIATION_HISTORY_WORKERS", "1")),
            run_deadline_seconds=float(deadline) if deadline else None,
            config_path=os.getenv("DEVIATION_CONFIG"),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure(settings: Settings) -> None:
    """Configure the global settings (primarily for testing)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to None (for testing)."""
    global _settings
    _settings = None
