"""Resilient HTTP client with retries and a circuit breaker.

Wraps httpx so that every GET is subject to:
- A total per-attempt deadline covering connect, headers and body
- Bounded retries with exponential backoff on transport errors, 429 and 5xx
- A circuit breaker consulted before every attempt
- Optional verbose logging of full request/response details
"""

import asyncio
import threading
import time
from collections.abc import Callable

import httpx
import structlog

from llxt.fetch.circuit_breaker import CircuitBreaker
from llxt.fetch.config import ClientConfig
from llxt.fetch.constants import RETRY_AFTER_HEADER
from llxt.fetch.metrics import FetchMetrics
from llxt.fetch.models import CircuitOpenError, FetchError, FetchErrorKind
from llxt.fetch.redact import redact_headers, redact_url_credentials


logger = structlog.get_logger()


def _log_request(log: structlog.stdlib.BoundLogger, request: httpx.Request) -> None:
    log.debug(
        "http_request",
        method=request.method,
        url=redact_url_credentials(str(request.url)),
        headers=redact_headers(dict(request.headers)),
    )


def _log_response(log: structlog.stdlib.BoundLogger, response: httpx.Response) -> None:
    log.debug(
        "http_response",
        method=response.request.method,
        url=redact_url_credentials(str(response.request.url)),
        status_code=response.status_code,
        headers=redact_headers(dict(response.headers)),
        body=response.text,
    )


class _ResilienceCore:
    """Retry and circuit breaker bookkeeping shared by sync and async clients."""

    def __init__(
        self,
        config: ClientConfig | None,
        breaker: CircuitBreaker | None,
    ) -> None:
        self._config = config or ClientConfig.default()
        self._policy = self._config.retry_policy
        self._breaker = breaker or CircuitBreaker(self._config.breaker)
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch")

    @property
    def config(self) -> ClientConfig:
        """Get the client configuration."""
        return self._config

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        """Get the circuit breaker owned by this client."""
        return self._breaker

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._config.user_agent}

    def _before_attempt(
        self, url: str, attempt: int, log: structlog.stdlib.BoundLogger
    ) -> None:
        """Fail fast if the breaker is open.

        Raises:
            CircuitOpenError: If the breaker rejects the attempt.
        """
        if not self._breaker.allow_request():
            self._metrics.record_breaker_rejection()
            log.warning("request_rejected_circuit_open", attempt=attempt)
            raise CircuitOpenError(url)

    def _after_error(
        self,
        error: httpx.TransportError,
        attempt: int,
        log: structlog.stdlib.BoundLogger,
    ) -> float | None:
        """Account for a transport error.

        Returns:
            Seconds to wait before retrying, or None to give up.
        """
        self._metrics.record_transport_error()
        self._breaker.record_transport_error(error)
        if not self._policy.should_retry_error(error, attempt):
            log.debug("retries_exhausted", attempt=attempt, error=repr(error))
            return None
        delay = self._policy.get_delay_seconds(attempt)
        self._log_retry(log, attempt, delay, error=repr(error))
        return delay

    def _after_response(
        self,
        response: httpx.Response,
        attempt: int,
        log: structlog.stdlib.BoundLogger,
    ) -> float | None:
        """Account for a received response.

        Returns:
            Seconds to wait before retrying, or None to return the response.
        """
        self._metrics.record_request(response.status_code, len(response.content))
        self._breaker.record_response(response)
        if not self._policy.should_retry_response(response, attempt):
            return None
        delay = self._policy.get_delay_seconds(
            attempt, response.headers.get(RETRY_AFTER_HEADER)
        )
        self._log_retry(log, attempt, delay, status_code=response.status_code)
        return delay

    def _log_retry(
        self,
        log: structlog.stdlib.BoundLogger,
        attempt: int,
        delay: float,
        **fields: object,
    ) -> None:
        self._metrics.record_retry()
        log.debug(
            "retry_attempt",
            attempt=attempt + 1,
            max_retries=self._policy.max_retries,
            delay_s=round(delay, 3),
            **fields,
        )


class ResilientClient(_ResilienceCore):
    """Synchronous HTTP client with retry and circuit breaker protection.

    Retries are invisible to callers: get() returns the first acceptable
    response or the response of the final attempt, or raises the final
    transport error.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        breaker: CircuitBreaker | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration (defaults when None).
            breaker: Circuit breaker to use (built from config when None).
            transport: Optional httpx transport, mainly for testing.
            sleep: Backoff sleep used when no cancel event is given.
            clock: Monotonic time source for the per-attempt deadline.
        """
        super().__init__(config, breaker)
        self._sleep = sleep
        self._clock = clock

        # Responses are logged once their body has been read under the deadline
        event_hooks: dict[str, list[Callable[..., object]]] | None = None
        if self._config.verbose:
            event_hooks = {"request": [self._verbose_request]}

        self._client = httpx.Client(
            transport=transport,
            timeout=httpx.Timeout(self._config.timeout_seconds),
            follow_redirects=True,
            headers=self._headers(),
            event_hooks=event_hooks,
        )
        self._log.debug(
            "client_initialized",
            timeout_s=self._config.timeout_seconds,
            retry_count=self._config.retry_count,
            verbose=self._config.verbose,
        )

    def get(self, url: str, cancel: threading.Event | None = None) -> httpx.Response:
        """Issue a GET with retries, guarded by the circuit breaker.

        Args:
            url: Absolute URL to fetch.
            cancel: Optional event; once set, no further attempt starts,
                pending backoff waits are interrupted and the body read of
                the in-flight attempt stops at the next chunk.

        Returns:
            The final HTTP response, whatever its status, with its body read.

        Raises:
            CircuitOpenError: If the breaker rejects an attempt.
            FetchError: If the request is cancelled.
            httpx.TransportError: If every attempt failed without a response.
        """
        log = self._log.bind(url=redact_url_credentials(url))
        attempt = 0

        while True:
            self._check_cancelled(url, cancel)
            self._before_attempt(url, attempt, log)

            try:
                response = self._attempt(url, cancel)
            except httpx.TransportError as e:
                delay = self._after_error(e, attempt, log)
                if delay is None:
                    raise
            else:
                delay = self._after_response(response, attempt, log)
                if delay is None:
                    return response

            # No backoff when the breaker already rejects the next attempt
            self._before_attempt(url, attempt + 1, log)
            self._wait(delay, url, cancel)
            attempt += 1

    def _attempt(self, url: str, cancel: threading.Event | None) -> httpx.Response:
        """Run one attempt under a total deadline of timeout_seconds.

        httpx timeouts apply per connect, read and write operation, so the
        body is streamed and the deadline is checked between chunks.

        Raises:
            httpx.ReadTimeout: If the attempt outlives its deadline.
            FetchError: If the cancel event is set while reading.
        """
        timeout = self._config.timeout_seconds
        deadline = self._clock() + timeout
        request = self._client.build_request("GET", url)
        response = self._client.send(request, stream=True)

        # Bodies handed over in memory are already read
        if not response.is_stream_consumed:
            try:
                body = bytearray()
                chunks = response.iter_raw()
                while True:
                    self._check_cancelled(url, cancel)
                    if self._clock() > deadline:
                        msg = f"Attempt exceeded its {timeout}s deadline"
                        raise httpx.ReadTimeout(msg, request=request)
                    chunk = next(chunks, None)
                    if chunk is None:
                        break
                    body.extend(chunk)
            finally:
                response.close()

            # Raw bytes plus the original headers, so content decoding still applies
            response = httpx.Response(
                response.status_code,
                headers=response.headers,
                content=bytes(body),
                request=response.request,
                extensions=response.extensions,
            )

        if self._config.verbose:
            _log_response(self._log, response)
        return response

    def close(self) -> None:
        """Release pooled connections."""
        self._client.close()
        self._log.debug("client_closed")

    def __enter__(self) -> "ResilientClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _wait(self, delay: float, url: str, cancel: threading.Event | None) -> None:
        if cancel is None:
            self._sleep(delay)
        elif cancel.wait(delay):
            raise _cancelled_error(url)

    def _check_cancelled(self, url: str, cancel: threading.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise _cancelled_error(url)

    def _verbose_request(self, request: httpx.Request) -> None:
        _log_request(self._log, request)


class AsyncResilientClient(_ResilienceCore):
    """Asyncio counterpart of ResilientClient.

    Backoff waits are asyncio suspension points; cancelling the awaiting
    task aborts the in-flight attempt and prevents further retries.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        breaker: CircuitBreaker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration (defaults when None).
            breaker: Circuit breaker to use (built from config when None).
            transport: Optional httpx async transport, mainly for testing.
        """
        super().__init__(config, breaker)

        event_hooks: dict[str, list[Callable[..., object]]] | None = None
        if self._config.verbose:
            event_hooks = {
                "request": [self._verbose_request],
                "response": [self._verbose_response],
            }

        self._client = httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(self._config.timeout_seconds),
            follow_redirects=True,
            headers=self._headers(),
            event_hooks=event_hooks,
        )

    async def get(self, url: str) -> httpx.Response:
        """Issue a GET with retries, guarded by the circuit breaker.

        Args:
            url: Absolute URL to fetch.

        Returns:
            The final HTTP response, whatever its status.

        Raises:
            CircuitOpenError: If the breaker rejects an attempt.
            httpx.TransportError: If every attempt failed without a response.
        """
        log = self._log.bind(url=redact_url_credentials(url))
        attempt = 0

        while True:
            self._before_attempt(url, attempt, log)

            try:
                response = await self._attempt(url)
            except httpx.TransportError as e:
                delay = self._after_error(e, attempt, log)
                if delay is None:
                    raise
            else:
                delay = self._after_response(response, attempt, log)
                if delay is None:
                    return response
                await response.aclose()

            # No backoff when the breaker already rejects the next attempt
            self._before_attempt(url, attempt + 1, log)
            await asyncio.sleep(delay)
            attempt += 1

    async def _attempt(self, url: str) -> httpx.Response:
        """Run one attempt under a total deadline of timeout_seconds.

        Raises:
            httpx.ReadTimeout: If the attempt outlives its deadline.
        """
        timeout = self._config.timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                return await self._client.get(url)
        except TimeoutError as e:
            msg = f"Attempt exceeded its {timeout}s deadline"
            raise httpx.ReadTimeout(msg) from e

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()
        self._log.debug("client_closed")

    async def __aenter__(self) -> "AsyncResilientClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _verbose_request(self, request: httpx.Request) -> None:
        _log_request(self._log, request)

    async def _verbose_response(self, response: httpx.Response) -> None:
        await response.aread()
        _log_response(self._log, response)


def _cancelled_error(url: str) -> FetchError:
    return FetchError(
        kind=FetchErrorKind.TRANSPORT,
        message="Request cancelled",
        url=url,
        cancelled=True,
    )


def new_client(
    config: ClientConfig | None = None,
    transport: httpx.BaseTransport | None = None,
) -> ResilientClient:
    """Build a ready-to-use resilient client.

    Never fails; a missing config means defaults. Breaker transitions are
    logged through structlog.

    Args:
        config: Client configuration.
        transport: Optional httpx transport.

    Returns:
        Configured ResilientClient.
    """
    return ResilientClient(config=config, transport=transport)


def new_async_client(
    config: ClientConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncResilientClient:
    """Build a ready-to-use resilient asyncio client.

    Args:
        config: Client configuration.
        transport: Optional httpx async transport.

    Returns:
        Configured AsyncResilientClient.
    """
    return AsyncResilientClient(config=config, transport=transport)
