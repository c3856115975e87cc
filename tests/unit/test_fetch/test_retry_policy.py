"""Unit tests for retry policy decisions."""

import httpx
import pytest
from pydantic import ValidationError

from llxt.fetch.models import RetryPolicy, is_retryable_status


class TestRetryPolicy:
    """Tests for RetryPolicy model."""

    def test_default_values(self) -> None:
        """Test default retry policy values."""
        policy = RetryPolicy()

        assert policy.max_retries == 3
        assert policy.wait_seconds == 0.1
        assert policy.max_wait_seconds == 2.0
        assert policy.jitter_factor == 0.1

    def test_wait_above_max_rejected(self) -> None:
        """Test that the base wait cannot exceed the maximum."""
        with pytest.raises(ValidationError):
            RetryPolicy(wait_seconds=5.0, max_wait_seconds=1.0)

    def test_policy_is_frozen(self) -> None:
        """Test that policies are immutable."""
        policy = RetryPolicy()

        with pytest.raises(ValidationError):
            policy.max_retries = 10  # type: ignore[misc]


class TestIsRetryableStatus:
    """Tests for retryable status classification."""

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable(self, status: int) -> None:
        """Test that 429 and 5xx are retried."""
        assert is_retryable_status(status) is True

    @pytest.mark.parametrize("status", [200, 204, 301, 400, 401, 403, 404])
    def test_not_retryable(self, status: int) -> None:
        """Test that success and other client errors are not retried."""
        assert is_retryable_status(status) is False


class TestShouldRetry:
    """Tests for retry decision logic."""

    @pytest.fixture
    def policy(self) -> RetryPolicy:
        """Create a standard retry policy."""
        return RetryPolicy(max_retries=3)

    def test_retry_on_server_error_until_max(self, policy: RetryPolicy) -> None:
        """Test that 5xx is retried until the retry budget is spent."""
        response = httpx.Response(503)

        assert policy.should_retry_response(response, attempt=0) is True
        assert policy.should_retry_response(response, attempt=2) is True
        assert policy.should_retry_response(response, attempt=3) is False

    def test_no_retry_on_not_found(self, policy: RetryPolicy) -> None:
        """Test that 404 is final."""
        assert policy.should_retry_response(httpx.Response(404), attempt=0) is False

    def test_retry_on_transport_errors(self, policy: RetryPolicy) -> None:
        """Test that transport exceptions are retried."""
        for error in (
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            httpx.RemoteProtocolError("bad"),
        ):
            assert policy.should_retry_error(error, attempt=0) is True
            assert policy.should_retry_error(error, attempt=3) is False

    def test_no_retry_on_other_errors(self, policy: RetryPolicy) -> None:
        """Test that non-transport exceptions are never retried."""
        assert policy.should_retry_error(ValueError("boom"), attempt=0) is False
        assert (
            policy.should_retry_error(httpx.TooManyRedirects("loop"), attempt=0)
            is False
        )

    def test_zero_retries(self) -> None:
        """Test that max_retries=0 never retries."""
        policy = RetryPolicy(max_retries=0)

        assert policy.should_retry_response(httpx.Response(503), attempt=0) is False
        assert policy.should_retry_error(httpx.ConnectError("x"), attempt=0) is False


class TestGetDelay:
    """Tests for backoff delay calculation."""

    def test_exponential_growth_without_jitter(self) -> None:
        """Test that the delay doubles per attempt."""
        policy = RetryPolicy(wait_seconds=0.1, max_wait_seconds=10.0, jitter_factor=0)

        assert policy.get_delay_seconds(0) == pytest.approx(0.1)
        assert policy.get_delay_seconds(1) == pytest.approx(0.2)
        assert policy.get_delay_seconds(2) == pytest.approx(0.4)

    def test_delay_capped_at_max(self) -> None:
        """Test that the delay never exceeds the maximum."""
        policy = RetryPolicy(wait_seconds=0.5, max_wait_seconds=2.0, jitter_factor=1.0)

        for attempt in range(10):
            assert policy.get_delay_seconds(attempt) <= 2.0

    def test_delay_never_below_base(self) -> None:
        """Test that jittered delays stay within [base, max]."""
        policy = RetryPolicy(wait_seconds=0.1, max_wait_seconds=2.0, jitter_factor=0.5)

        for attempt in range(6):
            delay = policy.get_delay_seconds(attempt)
            assert 0.1 <= delay <= 2.0

    def test_retry_after_extends_delay(self) -> None:
        """Test that a numeric Retry-After raises the delay."""
        policy = RetryPolicy(wait_seconds=0.1, max_wait_seconds=5.0, jitter_factor=0)

        assert policy.get_delay_seconds(0, retry_after="3") == pytest.approx(3.0)

    def test_retry_after_capped_at_max(self) -> None:
        """Test that Retry-After cannot exceed the maximum wait."""
        policy = RetryPolicy(wait_seconds=0.1, max_wait_seconds=2.0, jitter_factor=0)

        assert policy.get_delay_seconds(0, retry_after="120") == pytest.approx(2.0)

    def test_non_numeric_retry_after_ignored(self) -> None:
        """Test that HTTP-date Retry-After values fall back to backoff."""
        policy = RetryPolicy(wait_seconds=0.1, max_wait_seconds=2.0, jitter_factor=0)

        delay = policy.get_delay_seconds(0, retry_after="Wed, 21 Oct 2015 07:28:00 GMT")

        assert delay == pytest.approx(0.1)
