"""
Tests for environment settings and logging setup.
"""

from __future__ import annotations

import logging

import pytest
import structlog

from credential_envelope import Settings, SettingsError, configure_logging


def test_defaults():
    settings = Settings.from_env({})

    assert settings.database_url is None
    assert settings.pbkdf2_iterations == 100_000
    assert settings.log_level == "INFO"
    assert settings.log_json is False


def test_values_from_environment():
    settings = Settings.from_env(
        {
            "DATABASE_URL": "postgresql://localhost/credentials",
            "CREDENTIAL_PBKDF2_ITERATIONS": "600000",
            "LOG_LEVEL": "debug",
            "LOG_JSON": "true",
        }
    )

    assert settings.database_url == "postgresql://localhost/credentials"
    assert settings.pbkdf2_iterations == 600_000
    assert settings.log_level == "DEBUG"
    assert settings.log_json is True
    assert settings.build_codec().iterations == 600_000


@pytest.mark.parametrize(
    "environ",
    [
        {"CREDENTIAL_PBKDF2_ITERATIONS": "many"},
        {"CREDENTIAL_PBKDF2_ITERATIONS": "1000"},
        {"LOG_LEVEL": "LOUD"},
        {"LOG_JSON": "maybe"},
    ],
)
def test_invalid_values(environ):
    with pytest.raises(SettingsError):
        Settings.from_env(environ)


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    monkeypatch.delenv("CREDENTIAL_PBKDF2_ITERATIONS", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("CREDENTIAL_PBKDF2_ITERATIONS=200000\n")

    try:
        assert Settings.from_env(dotenv_path=env_file).pbkdf2_iterations == 200_000
    finally:
        monkeypatch.delenv("CREDENTIAL_PBKDF2_ITERATIONS", raising=False)


def test_configure_logging_json(capsys):
    try:
        configure_logging("INFO", json=True)
        structlog.get_logger("credential_envelope.test").info("config_saved", user_id="u1")
        level = logging.getLogger().level
    finally:
        logging.getLogger().handlers.clear()
        structlog.reset_defaults()

    err = capsys.readouterr().err
    assert '"event": "config_saved"' in err
    assert '"user_id": "u1"' in err
    assert level == logging.INFO
