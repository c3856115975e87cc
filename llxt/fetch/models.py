"""Data models and error types for the HTTP fetch layer."""

import random
from enum import Enum
from typing import Annotated

import httpx
from pydantic import BaseModel, ConfigDict, Field, model_validator

from llxt.fetch.constants import (
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_JITTER_FACTOR,
    DEFAULT_RETRY_MAX_WAIT_SECONDS,
    DEFAULT_RETRY_WAIT_SECONDS,
    HTTP_STATUS_SERVER_ERROR_MAX,
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_TOO_MANY_REQUESTS,
)


class FetchErrorKind(str, Enum):
    """Classification of a failed fetch.

    - NOT_FOUND: HTTP 404, nothing exists at the URL
    - RATE_LIMITED: HTTP 429, the caller should back off
    - SERVER_OR_CLIENT_ERROR: any other HTTP status >= 400
    - TRANSPORT: no HTTP response (DNS, connection, timeout, open breaker)
    """

    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_OR_CLIENT_ERROR = "SERVER_OR_CLIENT_ERROR"
    TRANSPORT = "TRANSPORT"


class FetchError(Exception):
    """Classified failure of a single logical fetch.

    Carries everything the caller needs to pick a message and exit status;
    the underlying exception, if any, is chained as ``__cause__``.
    """

    def __init__(  # noqa: PLR0913
        self,
        kind: FetchErrorKind,
        message: str,
        url: str,
        status_code: int | None = None,
        retry_after: str | None = None,
        hint: str | None = None,
        *,
        breaker_open: bool = False,
        cancelled: bool = False,
    ) -> None:
        """Initialize the fetch error.

        Args:
            kind: Classification of the failure.
            message: Human-readable error message.
            url: Target URL of the failed request.
            status_code: HTTP status code, if a response was received.
            retry_after: Raw Retry-After header value (429 only).
            hint: Advisory text for the caller.
            breaker_open: True if the circuit breaker rejected the request.
            cancelled: True if the caller cancelled the request.
        """
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.url = url
        self.status_code = status_code
        self.retry_after = retry_after
        self.hint = hint
        self.breaker_open = breaker_open
        self.cancelled = cancelled

    def to_dict(self) -> dict[str, str | int | bool | None]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "kind": self.kind.value,
            "message": self.message,
            "url": self.url,
            "status_code": self.status_code,
            "retry_after": self.retry_after,
            "hint": self.hint,
            "breaker_open": self.breaker_open,
            "cancelled": self.cancelled,
            "cause": repr(self.__cause__) if self.__cause__ else None,
        }


class CircuitOpenError(FetchError):
    """Raised without any network I/O when the circuit breaker is open."""

    def __init__(self, url: str) -> None:
        """Initialize the error.

        Args:
            url: URL of the rejected request.
        """
        super().__init__(
            kind=FetchErrorKind.TRANSPORT,
            message="Circuit breaker is open, request rejected",
            url=url,
            breaker_open=True,
        )


def is_retryable_status(status_code: int) -> bool:
    """Check whether a response status should be retried.

    Args:
        status_code: HTTP status code.

    Returns:
        True for 429 and 5xx responses.
    """
    if status_code == HTTP_STATUS_TOO_MANY_REQUESTS:
        return True
    return HTTP_STATUS_SERVER_ERROR_MIN <= status_code < HTTP_STATUS_SERVER_ERROR_MAX


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    Exponential backoff bounded between the base and maximum wait:
    delay = min(wait_seconds * 2 ^ attempt, max_wait_seconds), plus jitter.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: Annotated[int, Field(ge=0, le=20)] = DEFAULT_RETRY_COUNT
    wait_seconds: Annotated[float, Field(ge=0.0, le=60.0)] = (
        DEFAULT_RETRY_WAIT_SECONDS
    )
    max_wait_seconds: Annotated[float, Field(ge=0.0, le=300.0)] = (
        DEFAULT_RETRY_MAX_WAIT_SECONDS
    )
    jitter_factor: Annotated[float, Field(ge=0.0, le=1.0)] = (
        DEFAULT_RETRY_JITTER_FACTOR
    )

    @model_validator(mode="after")
    def validate_wait_bounds(self) -> "RetryPolicy":
        """Ensure the base wait does not exceed the maximum wait."""
        if self.wait_seconds > self.max_wait_seconds:
            msg = (
                f"wait_seconds ({self.wait_seconds}) must be <= "
                f"max_wait_seconds ({self.max_wait_seconds})"
            )
            raise ValueError(msg)
        return self

    def should_retry_response(self, response: httpx.Response, attempt: int) -> bool:
        """Determine if a response should be retried.

        Args:
            response: The response that was received.
            attempt: Current attempt number (0-indexed).

        Returns:
            True if another attempt should be made.
        """
        if attempt >= self.max_retries:
            return False
        return is_retryable_status(response.status_code)

    def should_retry_error(self, error: Exception, attempt: int) -> bool:
        """Determine if a transport-level exception should be retried.

        Args:
            error: The exception raised by the transport.
            attempt: Current attempt number (0-indexed).

        Returns:
            True if another attempt should be made.
        """
        if attempt >= self.max_retries:
            return False
        return isinstance(error, httpx.TransportError)

    def get_delay_seconds(self, attempt: int, retry_after: str | None = None) -> float:
        """Calculate delay before the next attempt.

        Args:
            attempt: Attempt number that just failed (0-indexed).
            retry_after: Raw Retry-After header value, if any.

        Returns:
            Delay in seconds, within [wait_seconds, max_wait_seconds].
        """
        delay = min(self.wait_seconds * (2**attempt), self.max_wait_seconds)

        jitter = delay * self.jitter_factor * random.random()  # noqa: S311
        delay += jitter

        if retry_after and retry_after.strip().isdigit():
            delay = max(delay, float(retry_after.strip()))

        return max(self.wait_seconds, min(delay, self.max_wait_seconds))
