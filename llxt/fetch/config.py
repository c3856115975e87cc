"""Configuration models for the HTTP fetch layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from llxt.fetch.constants import (
    DEFAULT_CB_FAILURE_THRESHOLD,
    DEFAULT_CB_RESET_TIMEOUT_SECONDS,
    DEFAULT_CB_SUCCESS_THRESHOLD,
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_MAX_WAIT_SECONDS,
    DEFAULT_RETRY_WAIT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)
from llxt.fetch.models import RetryPolicy


class CircuitBreakerConfig(BaseModel):
    """Thresholds and timing for the client's circuit breaker."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    failure_threshold: Annotated[int, Field(ge=1, le=100)] = (
        DEFAULT_CB_FAILURE_THRESHOLD
    )
    success_threshold: Annotated[int, Field(ge=1, le=100)] = (
        DEFAULT_CB_SUCCESS_THRESHOLD
    )
    reset_timeout_seconds: Annotated[float, Field(ge=0.0, le=3600.0)] = (
        DEFAULT_CB_RESET_TIMEOUT_SECONDS
    )
    count_transport_errors: bool = Field(
        default=False,
        description="Count requests that produced no response as breaker failures",
    )


class ClientConfig(BaseModel):
    """Configuration for the resilient HTTP client.

    Immutable once constructed. Use ClientConfig.default() when the caller
    has nothing to override.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout_seconds: Annotated[float, Field(gt=0.0, le=600.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    retry_count: Annotated[int, Field(ge=0, le=20)] = DEFAULT_RETRY_COUNT
    retry_wait_seconds: Annotated[float, Field(ge=0.0, le=60.0)] = (
        DEFAULT_RETRY_WAIT_SECONDS
    )
    retry_max_wait_seconds: Annotated[float, Field(ge=0.0, le=300.0)] = (
        DEFAULT_RETRY_MAX_WAIT_SECONDS
    )
    verbose: bool = Field(
        default=False,
        description="Log full request/response details at debug level",
    )
    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)

    @model_validator(mode="after")
    def validate_backoff_bounds(self) -> "ClientConfig":
        """Ensure the base backoff does not exceed the maximum backoff."""
        if self.retry_wait_seconds > self.retry_max_wait_seconds:
            msg = (
                f"retry_wait_seconds ({self.retry_wait_seconds}) must be <= "
                f"retry_max_wait_seconds ({self.retry_max_wait_seconds})"
            )
            raise ValueError(msg)
        return self

    @classmethod
    def default(cls) -> "ClientConfig":
        """Return the default client configuration."""
        return cls()

    @property
    def retry_policy(self) -> RetryPolicy:
        """Build the retry policy described by this configuration."""
        return RetryPolicy(
            max_retries=self.retry_count,
            wait_seconds=self.retry_wait_seconds,
            max_wait_seconds=self.retry_max_wait_seconds,
        )
