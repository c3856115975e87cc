"""Metrics collection for the HTTP fetch layer."""

from dataclasses import dataclass, field
from typing import ClassVar

from llxt.fetch.models import FetchErrorKind


@dataclass
class FetchMetrics:
    """Metrics for HTTP fetch operations.

    Singleton class that tracks attempts by status, retries, classified
    failures and circuit breaker rejections.
    """

    http_requests_total: dict[int, int] = field(default_factory=dict)
    http_retry_total: int = 0
    http_failures_total: dict[str, int] = field(default_factory=dict)
    http_transport_errors_total: int = 0
    http_breaker_rejections_total: int = 0
    http_bytes_total: int = 0
    http_duration_ms_total: float = 0.0
    fetch_count: int = 0

    _instance: ClassVar["FetchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_request(self, status_code: int, bytes_received: int) -> None:
        """Record one completed HTTP attempt.

        Args:
            status_code: HTTP status code.
            bytes_received: Number of body bytes received.
        """
        self.http_requests_total[status_code] = (
            self.http_requests_total.get(status_code, 0) + 1
        )
        self.http_bytes_total += bytes_received

    def record_transport_error(self) -> None:
        """Record an attempt that produced no response."""
        self.http_transport_errors_total += 1

    def record_retry(self) -> None:
        """Record a retry attempt."""
        self.http_retry_total += 1

    def record_breaker_rejection(self) -> None:
        """Record a request rejected by an open circuit breaker."""
        self.http_breaker_rejections_total += 1

    def record_failure(self, kind: FetchErrorKind) -> None:
        """Record a classified fetch failure.

        Args:
            kind: Classification of the failure.
        """
        key = kind.value
        self.http_failures_total[key] = self.http_failures_total.get(key, 0) + 1

    def record_fetch(self, duration_ms: float) -> None:
        """Record one logical fetch and its duration.

        Args:
            duration_ms: Duration in milliseconds, retries included.
        """
        self.fetch_count += 1
        self.http_duration_ms_total += duration_ms

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "http_requests_total": dict(self.http_requests_total),
            "http_retry_total": self.http_retry_total,
            "http_failures_total": dict(self.http_failures_total),
            "http_transport_errors_total": self.http_transport_errors_total,
            "http_breaker_rejections_total": self.http_breaker_rejections_total,
            "http_bytes_total": self.http_bytes_total,
            "http_duration_ms_total": self.http_duration_ms_total,
            "fetch_count": self.fetch_count,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Average duration of a logical fetch in milliseconds."""
        if self.fetch_count == 0:
            return 0.0
        return self.http_duration_ms_total / self.fetch_count
