"""User-facing messages for fetch and registry errors.

The fetch layer only produces structured errors; this module turns them into
short messages, hints and exit codes for the terminal.
"""

from typing import Final

from llxt.cli.exit_codes import (
    EXIT_NETWORK_ERROR,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
)
from llxt.fetch.models import FetchError, FetchErrorKind
from llxt.registry.errors import RegistryError


# Mapping of fetch error kinds to user-facing summaries
FETCH_ERROR_MESSAGES: Final[dict[FetchErrorKind, str]] = {
    FetchErrorKind.NOT_FOUND: "The llms.txt document does not exist at this URL.",
    FetchErrorKind.RATE_LIMITED: "The server is rate limiting requests.",
    FetchErrorKind.SERVER_OR_CLIENT_ERROR: "The server returned an error.",
    FetchErrorKind.TRANSPORT: "Could not reach the server.",
}

# Default hints when the error itself carries none
FETCH_ERROR_HINTS: Final[dict[FetchErrorKind, str]] = {
    FetchErrorKind.NOT_FOUND: "The source may have moved its llms.txt. Try without --full.",
    FetchErrorKind.SERVER_OR_CLIENT_ERROR: "Try again later.",
    FetchErrorKind.TRANSPORT: "Check your network connection or raise --timeout.",
}

BREAKER_OPEN_HINT: Final = (
    "Too many consecutive server failures; requests are paused. Try again later."
)

EXIT_CODES: Final[dict[FetchErrorKind, int]] = {
    FetchErrorKind.NOT_FOUND: EXIT_NOT_FOUND,
    FetchErrorKind.RATE_LIMITED: EXIT_RATE_LIMITED,
    FetchErrorKind.SERVER_OR_CLIENT_ERROR: EXIT_NETWORK_ERROR,
    FetchErrorKind.TRANSPORT: EXIT_NETWORK_ERROR,
}


def get_fetch_hint(error: FetchError) -> str | None:
    """Get the hint to show for a fetch error.

    Args:
        error: Classified fetch error.

    Returns:
        Hint text, or None if there is nothing useful to add.
    """
    if error.breaker_open:
        return BREAKER_OPEN_HINT
    if error.hint:
        return error.hint
    return FETCH_ERROR_HINTS.get(error.kind)


def format_fetch_error(error: FetchError, *, include_hint: bool = True) -> str:
    """Format a fetch error for stderr.

    Args:
        error: Classified fetch error.
        include_hint: Whether to include a hint line.

    Returns:
        Formatted message.
    """
    summary = FETCH_ERROR_MESSAGES[error.kind]
    lines = [f"Error: {summary}", f"  URL: {error.url}"]
    if error.status_code is not None:
        lines.append(f"  Status: {error.status_code}")
    if error.retry_after:
        lines.append(f"  Retry-After: {error.retry_after}")

    hint = get_fetch_hint(error) if include_hint else None
    if hint:
        lines.append(f"    Hint: {hint}")
    return "\n".join(lines)


def format_registry_error(error: RegistryError) -> str:
    """Format a registry error for stderr."""
    base = f"Error: {error.message}"
    if error.hint:
        return f"{base}\n    Hint: {error.hint}"
    return base


def exit_code_for(error: FetchError) -> int:
    """Map a fetch error to the process exit code."""
    return EXIT_CODES[error.kind]
