"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for AssetVault happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. database_url -> DATABASE_URL). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. TLS needs both the certificate and the key;
      one without the other is a startup failure rather than a silent fallback
      to plain HTTP.

Session TTL is deliberately absent: it is fixed at 24 hours in auth/service.py.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or assets/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("assetvault.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'assetvault.db'}"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    # Any SQLAlchemy URL. SQLite file next to the project by default.
    database_url: str = _DEFAULT_DB_URL
    max_upload_bytes: int = 10 * 1024 * 1024  # 10 MiB

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    # How often the lifespan task deletes expired session rows.
    session_sweep_interval_seconds: int = 3600

    # ------------------------------------------------------------------
    # HTTP server (used by `main.py serve` only)
    # ------------------------------------------------------------------

    host: str = "0.0.0.0"  # nosec B104 -- container default
    port: int = 8443
    # Empty string means "not configured"; both empty -> plain HTTP.
    tls_cert_path: str = ""
    tls_key_path: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(sorted(_LOG_LEVELS))}")
        return level

    @model_validator(mode="after")
    def validate_tls_pair(self) -> "Settings":
        """Require TLS_CERT_PATH and TLS_KEY_PATH together or not at all."""
        if bool(self.tls_cert_path) != bool(self.tls_key_path):
            raise ValueError("TLS_CERT_PATH and TLS_KEY_PATH must be set together.")
        if self.max_upload_bytes <= 0:
            raise ValueError("MAX_UPLOAD_BYTES must be positive.")
        if self.session_sweep_interval_seconds <= 0:
            raise ValueError("SESSION_SWEEP_INTERVAL_SECONDS must be positive.")
        return self

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert_path and self.tls_key_path)


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.

    A configuration that fails validation is logged (field names only, never
    values) and the ValidationError propagates: startup must not continue.
    """
    try:
        return Settings()
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) or "settings" for err in exc.errors()})
        logger.error("Invalid configuration: %d error(s) in %s", exc.error_count(), ", ".join(fields))
        raise
