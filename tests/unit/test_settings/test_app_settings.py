"""Unit tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from llxt.settings import AppSettings, get_settings


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test defaults when no LLXT_* variables are set."""
        for name in ("LLXT_TIMEOUT", "LLXT_RETRY_COUNT", "LLXT_VERBOSE"):
            monkeypatch.delenv(name, raising=False)

        settings = AppSettings(_env_file=None)  # type: ignore[call-arg]

        assert settings.timeout == 30.0
        assert settings.retry_count == 3
        assert settings.verbose is False
        assert settings.json_logs is False

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that LLXT_* variables override defaults."""
        monkeypatch.setenv("LLXT_TIMEOUT", "5")
        monkeypatch.setenv("LLXT_RETRY_COUNT", "1")
        monkeypatch.setenv("LLXT_VERBOSE", "true")

        settings = get_settings()

        assert settings.timeout == 5.0
        assert settings.retry_count == 1
        assert settings.verbose is True

    def test_invalid_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that invalid values fail validation."""
        monkeypatch.setenv("LLXT_TIMEOUT", "-1")

        with pytest.raises(ValidationError):
            get_settings()


class TestClientConfigConversion:
    """Tests for building ClientConfig from settings."""

    def test_settings_values(self) -> None:
        """Test that settings flow into the client config."""
        settings = AppSettings(timeout=12.0, retry_count=2, retry_wait=0.5)

        config = settings.client_config()

        assert config.timeout_seconds == 12.0
        assert config.retry_count == 2
        assert config.retry_wait_seconds == 0.5

    def test_explicit_overrides_win(self) -> None:
        """Test that explicit values override settings."""
        settings = AppSettings(timeout=12.0, retry_count=2, verbose=False)

        config = settings.client_config(timeout=3.0, retry_count=0, verbose=True)

        assert config.timeout_seconds == 3.0
        assert config.retry_count == 0
        assert config.verbose is True

    def test_inconsistent_backoff_rejected(self) -> None:
        """Test that ClientConfig validation still applies."""
        settings = AppSettings(retry_wait=5.0, retry_max_wait=1.0)

        with pytest.raises(ValidationError):
            settings.client_config()
