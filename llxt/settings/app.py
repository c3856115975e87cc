"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from llxt.fetch.config import ClientConfig
from llxt.fetch.constants import (
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_MAX_WAIT_SECONDS,
    DEFAULT_RETRY_WAIT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
)


class AppSettings(BaseSettings):
    """Centralized environment configuration (LLXT_* variables)."""

    model_config = SettingsConfigDict(
        env_prefix="LLXT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0.0)
    retry_count: int = Field(default=DEFAULT_RETRY_COUNT, ge=0)
    retry_wait: float = Field(default=DEFAULT_RETRY_WAIT_SECONDS, ge=0.0)
    retry_max_wait: float = Field(default=DEFAULT_RETRY_MAX_WAIT_SECONDS, ge=0.0)
    verbose: bool = False
    json_logs: bool = False

    def client_config(
        self,
        timeout: float | None = None,
        retry_count: int | None = None,
        verbose: bool | None = None,
    ) -> ClientConfig:
        """Build a client config, letting explicit CLI values win.

        Args:
            timeout: Timeout override in seconds.
            retry_count: Retry count override.
            verbose: Verbose flag override.

        Returns:
            Validated ClientConfig.
        """
        return ClientConfig(
            timeout_seconds=self.timeout if timeout is None else timeout,
            retry_count=self.retry_count if retry_count is None else retry_count,
            retry_wait_seconds=self.retry_wait,
            retry_max_wait_seconds=self.retry_max_wait,
            verbose=self.verbose if verbose is None else verbose,
        )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
