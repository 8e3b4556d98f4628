"""
tests/test_config.py -- Settings defaults and validation.
"""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings


def test_defaults(monkeypatch):
    for var in ("DATABASE_URL", "LOG_LEVEL", "TLS_CERT_PATH", "TLS_KEY_PATH", "MAX_UPLOAD_BYTES", "PORT"):
        monkeypatch.delenv(var, raising=False)
    settings = Settings(_env_file=None)
    assert settings.database_url.startswith("sqlite:///")
    assert settings.database_url.endswith("assetvault.db")
    assert settings.max_upload_bytes == 10 * 1024 * 1024
    assert settings.port == 8443
    assert settings.tls_enabled is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "2048")
    monkeypatch.setenv("SESSION_SWEEP_INTERVAL_SECONDS", "60")
    settings = Settings(_env_file=None)
    assert settings.max_upload_bytes == 2048
    assert settings.session_sweep_interval_seconds == 60


def test_log_level_normalized():
    assert Settings(_env_file=None, log_level=" debug ").log_level == "DEBUG"


def test_unknown_log_level_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_level="LOUD")


def test_tls_paths_must_come_together():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, tls_cert_path="/etc/vault/cert.pem")
    with pytest.raises(ValidationError):
        Settings(_env_file=None, tls_key_path="/etc/vault/key.pem")


def test_tls_enabled_with_both_paths():
    settings = Settings(_env_file=None, tls_cert_path="/etc/vault/cert.pem", tls_key_path="/etc/vault/key.pem")
    assert settings.tls_enabled is True


@pytest.mark.parametrize("field", ["max_upload_bytes", "session_sweep_interval_seconds"])
def test_non_positive_limits_rejected(field):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: 0})


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


def test_invalid_environment_is_logged_and_raised(monkeypatch, caplog):
    """get_settings() reports the failing field names on assetvault.config, not the values."""
    monkeypatch.setenv("LOG_LEVEL", "LOUD")
    monkeypatch.setenv("TLS_CERT_PATH", "/etc/vault/secret-cert.pem")
    get_settings.cache_clear()
    try:
        with caplog.at_level(logging.ERROR, logger="assetvault.config"):
            with pytest.raises(ValidationError):
                get_settings()
    finally:
        get_settings.cache_clear()

    records = [r for r in caplog.records if r.name == "assetvault.config"]
    assert len(records) == 1
    assert "log_level" in records[0].getMessage()
    assert "LOUD" not in records[0].getMessage()
