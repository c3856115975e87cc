"""Resilient HTTP fetch layer for llms.txt documents.

This module provides:
- A resilient httpx client with bounded retries and exponential backoff
- A circuit breaker shared by all requests made through one client
- A fetcher classifying outcomes into a closed error taxonomy
- Header redaction for verbose logging
- Metrics collection for observability
"""

from llxt.fetch.circuit_breaker import (
    CircuitBreaker,
    CircuitState,
    CircuitStateError,
    server_error_policy,
)
from llxt.fetch.client import (
    AsyncResilientClient,
    ResilientClient,
    new_async_client,
    new_client,
)
from llxt.fetch.config import CircuitBreakerConfig, ClientConfig
from llxt.fetch.fetcher import AsyncFetcher, Fetcher, classify_response, select_url
from llxt.fetch.metrics import FetchMetrics
from llxt.fetch.models import (
    CircuitOpenError,
    FetchError,
    FetchErrorKind,
    RetryPolicy,
)


__all__ = [
    # Client
    "ResilientClient",
    "AsyncResilientClient",
    "new_client",
    "new_async_client",
    # Circuit breaker
    "CircuitBreaker",
    "CircuitState",
    "CircuitStateError",
    "server_error_policy",
    # Fetcher
    "Fetcher",
    "AsyncFetcher",
    "classify_response",
    "select_url",
    # Config
    "ClientConfig",
    "CircuitBreakerConfig",
    # Models
    "FetchError",
    "FetchErrorKind",
    "CircuitOpenError",
    "RetryPolicy",
    # Metrics
    "FetchMetrics",
]
