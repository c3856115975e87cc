"""Circuit breaker guarding the resilient HTTP client.

The breaker tracks consecutive request outcomes for the lifetime of one
client and stops issuing requests after repeated failures:

- CLOSED: Normal operation, requests pass through
- OPEN: Failure threshold reached, reject requests without network I/O
- HALF_OPEN: Reset timeout elapsed, allow trial requests

All counters and transitions are guarded by a single lock so concurrent
fetches through one client never lose updates.
"""

import threading
import time
from collections.abc import Callable, Sequence
from enum import Enum
from typing import ClassVar

import httpx
import structlog

from llxt.fetch.config import CircuitBreakerConfig
from llxt.fetch.constants import HTTP_STATUS_SERVER_ERROR_MIN


logger = structlog.get_logger()

FailurePolicy = Callable[[httpx.Response], bool]
StateChangeListener = Callable[["CircuitState", "CircuitState"], None]


def server_error_policy(response: httpx.Response) -> bool:
    """Treat any 5xx response as a breaker failure."""
    return response.status_code >= HTTP_STATUS_SERVER_ERROR_MIN


class CircuitState(str, Enum):
    """Circuit breaker states.

    State transitions:
        CLOSED -> OPEN: consecutive failures >= failure_threshold
        OPEN -> HALF_OPEN: reset timeout elapsed since entering OPEN
        HALF_OPEN -> CLOSED: consecutive successes >= success_threshold
        HALF_OPEN -> OPEN: any failure during the trial
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitStateError(Exception):
    """Raised when an invalid breaker state transition is attempted."""

    def __init__(self, from_state: CircuitState, to_state: CircuitState) -> None:
        """Initialize the error.

        Args:
            from_state: The current state.
            to_state: The attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid circuit breaker transition: {from_state.name} -> {to_state.name}"
        )


class CircuitBreaker:
    """Count-based circuit breaker with lazy OPEN -> HALF_OPEN recovery.

    Owned by exactly one client and mutated only by that client's
    request-completion path.
    """

    VALID_TRANSITIONS: ClassVar[dict[CircuitState, set[CircuitState]]] = {
        CircuitState.CLOSED: {CircuitState.OPEN},
        CircuitState.OPEN: {CircuitState.HALF_OPEN},
        CircuitState.HALF_OPEN: {CircuitState.CLOSED, CircuitState.OPEN},
    }

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        policies: Sequence[FailurePolicy] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the breaker in CLOSED state.

        Args:
            config: Thresholds and reset timeout (defaults when None).
            policies: Response classifiers; a response is a failure if any
                policy returns True. Defaults to server_error_policy.
            clock: Monotonic time source in seconds.
        """
        self._config = config or CircuitBreakerConfig()
        self._policies: tuple[FailurePolicy, ...] = tuple(
            policies or (server_error_policy,)
        )
        self._clock = clock
        self._listeners: list[StateChangeListener] = []

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_state_change = clock()

        self._lock = threading.Lock()
        self._log = logger.bind(component="circuit_breaker")

    @property
    def config(self) -> CircuitBreakerConfig:
        """Get the breaker configuration."""
        return self._config

    @property
    def state(self) -> CircuitState:
        """Get the current state, applying the OPEN -> HALF_OPEN timeout."""
        with self._lock:
            state, changes = self._current_state()
        self._notify(changes)
        return state

    def on_state_change(self, listener: StateChangeListener) -> "CircuitBreaker":
        """Register a callback invoked with (old_state, new_state).

        Exceptions raised by a listener are logged and do not propagate
        into the request path.

        Args:
            listener: Callback run after every transition.

        Returns:
            The breaker itself, for chaining.
        """
        self._listeners.append(listener)
        return self

    def allow_request(self) -> bool:
        """Check whether a request may be attempted.

        Returns:
            False only while OPEN and the reset timeout has not elapsed.
        """
        with self._lock:
            state, changes = self._current_state()
        self._notify(changes)

        if state == CircuitState.OPEN:
            self._log.debug("request_rejected", state=state.value)
            return False
        return True

    def is_failure(self, response: httpx.Response) -> bool:
        """Classify a response with the configured failure policies."""
        return any(policy(response) for policy in self._policies)

    def record_response(self, response: httpx.Response) -> None:
        """Feed a completed response into the breaker.

        Args:
            response: The HTTP response of one attempt.
        """
        if self.is_failure(response):
            self.record_failure()
        else:
            self.record_success()

    def record_transport_error(self, error: Exception) -> None:
        """Feed an attempt that produced no response into the breaker.

        Only counted when the config enables count_transport_errors.

        Args:
            error: The transport exception.
        """
        if self._config.count_transport_errors:
            self._log.debug("transport_error_counted", error=repr(error))
            self.record_failure()

    def record_success(self) -> None:
        """Record a non-failing outcome."""
        changes: list[tuple[CircuitState, CircuitState]] = []
        with self._lock:
            state, changes = self._current_state()
            if state == CircuitState.CLOSED:
                self._failure_count = 0
            elif state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self._config.success_threshold:
                    changes.append(self._transition(CircuitState.CLOSED))
        self._notify(changes)

    def record_failure(self) -> None:
        """Record a qualifying failure."""
        changes: list[tuple[CircuitState, CircuitState]] = []
        with self._lock:
            state, changes = self._current_state()
            if state == CircuitState.CLOSED:
                self._failure_count += 1
                if self._failure_count >= self._config.failure_threshold:
                    changes.append(self._transition(CircuitState.OPEN))
            elif state == CircuitState.HALF_OPEN:
                changes.append(self._transition(CircuitState.OPEN))
        self._notify(changes)

    def get_stats(self) -> dict[str, str | int | float]:
        """Get a consistent snapshot of breaker state for diagnostics.

        Returns:
            Dictionary with state, counters and thresholds.
        """
        with self._lock:
            state, changes = self._current_state()
            stats: dict[str, str | int | float] = {
                "state": state.value,
                "failure_count": self._failure_count,
                "success_count": self._success_count,
                "failure_threshold": self._config.failure_threshold,
                "success_threshold": self._config.success_threshold,
                "reset_timeout_seconds": self._config.reset_timeout_seconds,
                "seconds_in_state": round(self._clock() - self._last_state_change, 3),
            }
        self._notify(changes)
        return stats

    def _current_state(
        self,
    ) -> tuple[CircuitState, list[tuple[CircuitState, CircuitState]]]:
        """Resolve the current state.

        Must be called with the lock held.
        """
        changes: list[tuple[CircuitState, CircuitState]] = []
        if self._state == CircuitState.OPEN:
            elapsed = self._clock() - self._last_state_change
            if elapsed >= self._config.reset_timeout_seconds:
                changes.append(self._transition(CircuitState.HALF_OPEN))
        return self._state, changes

    def _transition(
        self, to_state: CircuitState
    ) -> tuple[CircuitState, CircuitState]:
        """Move to a new state and reset counters.

        Must be called with the lock held.

        Raises:
            CircuitStateError: If the transition is not allowed.
        """
        if to_state not in self.VALID_TRANSITIONS[self._state]:
            self._log.error(
                "invariant_violation",
                error_type="illegal_state_transition",
                from_state=self._state.name,
                to_state=to_state.name,
            )
            raise CircuitStateError(self._state, to_state)

        old_state = self._state
        self._state = to_state
        self._failure_count = 0
        self._success_count = 0
        self._last_state_change = self._clock()
        return old_state, to_state

    def _notify(self, changes: list[tuple[CircuitState, CircuitState]]) -> None:
        """Log transitions and run listeners outside the lock."""
        for old_state, new_state in changes:
            self._log.warning(
                "circuit_breaker_state_changed",
                from_state=old_state.value,
                to_state=new_state.value,
            )
            for listener in self._listeners:
                try:
                    listener(old_state, new_state)
                except Exception:
                    self._log.exception(
                        "state_listener_failed",
                        listener=repr(listener),
                        from_state=old_state.value,
                        to_state=new_state.value,
                    )
