"""Single-document fetcher on top of the resilient client.

Performs one logical GET (retries are internal to the client) and maps the
terminal outcome to the body text or a classified FetchError.
"""

import threading
import time

import httpx
import structlog

from llxt.fetch.client import (
    AsyncResilientClient,
    ResilientClient,
    new_async_client,
    new_client,
)
from llxt.fetch.config import ClientConfig
from llxt.fetch.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_TOO_MANY_REQUESTS,
    RATE_LIMITED_HINT,
    RETRY_AFTER_HEADER,
)
from llxt.fetch.metrics import FetchMetrics
from llxt.fetch.models import FetchError, FetchErrorKind
from llxt.fetch.redact import redact_url_credentials


logger = structlog.get_logger()

# Failures below the HTTP layer; only TransportError is retried by the client
_NO_RESPONSE_ERRORS = (httpx.RequestError, httpx.InvalidURL)


def classify_response(url: str, response: httpx.Response) -> FetchError | None:
    """Classify a final HTTP response.

    Args:
        url: Requested URL.
        response: Final response after retries and redirects.

    Returns:
        FetchError for status >= 400, None for success.
    """
    status = response.status_code

    if status == HTTP_STATUS_NOT_FOUND:
        return FetchError(
            kind=FetchErrorKind.NOT_FOUND,
            message="Resource not found",
            url=url,
            status_code=status,
        )

    if status == HTTP_STATUS_TOO_MANY_REQUESTS:
        return FetchError(
            kind=FetchErrorKind.RATE_LIMITED,
            message="Rate limited by server",
            url=url,
            status_code=status,
            retry_after=response.headers.get(RETRY_AFTER_HEADER),
            hint=RATE_LIMITED_HINT,
        )

    if status >= HTTP_STATUS_BAD_REQUEST:
        return FetchError(
            kind=FetchErrorKind.SERVER_OR_CLIENT_ERROR,
            message=f"HTTP error: {status}",
            url=url,
            status_code=status,
        )

    return None


def select_url(
    primary_url: str, alternate_url: str | None, use_full: bool
) -> str:
    """Pick the llms.txt variant to fetch.

    Args:
        primary_url: URL of llms.txt.
        alternate_url: URL of llms-full.txt, if the source has one.
        use_full: Whether the caller asked for the full document.

    Returns:
        alternate_url when use_full is set and it is non-empty, else primary_url.
    """
    if use_full and alternate_url:
        return alternate_url
    return primary_url


def _transport_error(url: str, cause: Exception) -> FetchError:
    error = FetchError(
        kind=FetchErrorKind.TRANSPORT,
        message=f"Failed to fetch content: {cause}",
        url=url,
    )
    error.__cause__ = cause
    return error


def _reject_config_with_client(config: object, client: object) -> None:
    if config is not None and client is not None:
        msg = "Pass either config or client, not both; a client carries its own config"
        raise ValueError(msg)


def _record_outcome(
    metrics: FetchMetrics,
    start_time_ns: int,
    log: structlog.stdlib.BoundLogger,
    error: FetchError | None,
    response: httpx.Response | None = None,
) -> None:
    """Record fetch metrics and log the terminal outcome of one fetch."""
    duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
    metrics.record_fetch(duration_ms)

    if error is not None:
        metrics.record_failure(error.kind)
        log.warning(
            "fetch_failed",
            duration_ms=round(duration_ms, 2),
            **error.to_dict(),
        )
        return

    log.info(
        "fetch_complete",
        status_code=response.status_code if response else None,
        bytes=len(response.content) if response else 0,
        duration_ms=round(duration_ms, 2),
    )


class Fetcher:
    """Fetches llms.txt documents through a resilient client.

    Closing the fetcher releases the client. Calling fetch() after close()
    is a caller error and is not checked.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: ResilientClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Client configuration, used when no client is given.
            client: Pre-built client to use instead of building one.

        Raises:
            ValueError: If both config and client are given.
        """
        _reject_config_with_client(config, client)
        self._client = client or new_client(config)
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch")

    @property
    def client(self) -> ResilientClient:
        """Get the underlying resilient client."""
        return self._client

    def fetch(self, url: str, cancel: threading.Event | None = None) -> str:
        """Fetch a URL and return its body as text.

        Args:
            url: URL to fetch.
            cancel: Optional event that aborts pending retries and body reads.

        Returns:
            Response body text.

        Raises:
            FetchError: Classified failure.
        """
        start_time_ns = time.perf_counter_ns()
        log = self._log.bind(url=redact_url_credentials(url))

        try:
            response = self._client.get(url, cancel=cancel)
        except FetchError as e:
            _record_outcome(self._metrics, start_time_ns, log, error=e)
            raise
        except _NO_RESPONSE_ERRORS as e:
            error = _transport_error(url, e)
            _record_outcome(self._metrics, start_time_ns, log, error=error)
            raise error from e

        error = classify_response(url, response)
        _record_outcome(
            self._metrics, start_time_ns, log, error=error, response=response
        )
        if error is not None:
            raise error
        return response.text

    def fetch_llms_txt(
        self,
        primary_url: str,
        alternate_url: str | None = None,
        use_full: bool = False,
        cancel: threading.Event | None = None,
    ) -> str:
        """Fetch llms.txt, or llms-full.txt when requested and available.

        Args:
            primary_url: URL of llms.txt.
            alternate_url: URL of llms-full.txt, if any.
            use_full: Prefer the full document.
            cancel: Optional event that aborts pending retries and body reads.

        Returns:
            Document text.

        Raises:
            FetchError: Classified failure.
        """
        return self.fetch(select_url(primary_url, alternate_url, use_full), cancel)

    def close(self) -> None:
        """Release the underlying client."""
        self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class AsyncFetcher:
    """Asyncio counterpart of Fetcher."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: AsyncResilientClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Client configuration, used when no client is given.
            client: Pre-built async client to use instead of building one.

        Raises:
            ValueError: If both config and client are given.
        """
        _reject_config_with_client(config, client)
        self._client = client or new_async_client(config)
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch")

    @property
    def client(self) -> AsyncResilientClient:
        """Get the underlying resilient client."""
        return self._client

    async def fetch(self, url: str) -> str:
        """Fetch a URL and return its body as text.

        Raises:
            FetchError: Classified failure.
        """
        start_time_ns = time.perf_counter_ns()
        log = self._log.bind(url=redact_url_credentials(url))

        try:
            response = await self._client.get(url)
        except FetchError as e:
            _record_outcome(self._metrics, start_time_ns, log, error=e)
            raise
        except _NO_RESPONSE_ERRORS as e:
            error = _transport_error(url, e)
            _record_outcome(self._metrics, start_time_ns, log, error=error)
            raise error from e

        error = classify_response(url, response)
        _record_outcome(
            self._metrics, start_time_ns, log, error=error, response=response
        )
        if error is not None:
            raise error
        return response.text

    async def fetch_llms_txt(
        self,
        primary_url: str,
        alternate_url: str | None = None,
        use_full: bool = False,
    ) -> str:
        """Fetch llms.txt, or llms-full.txt when requested and available."""
        return await self.fetch(select_url(primary_url, alternate_url, use_full))

    async def aclose(self) -> None:
        """Release the underlying client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
