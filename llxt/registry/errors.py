"""Error types for registry lookups."""

from enum import Enum


class RegistryErrorClass(str, Enum):
    """Classification of registry errors.

    - NOT_FOUND: No entry for the requested key
    - INVALID_DATA: Registry data could not be parsed
    """

    NOT_FOUND = "NOT_FOUND"
    INVALID_DATA = "INVALID_DATA"


class RegistryError(Exception):
    """Structured registry error for logging and CLI reporting."""

    def __init__(
        self,
        error_class: RegistryErrorClass,
        message: str,
        key: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize the registry error.

        Args:
            error_class: Classification of the error.
            message: Human-readable error message.
            key: Registry key involved, if any.
            hint: Advisory text for the user.
        """
        super().__init__(message)
        self.error_class = error_class
        self.message = message
        self.key = key
        self.hint = hint

    def to_dict(self) -> dict[str, str | None]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "key": self.key,
            "hint": self.hint,
        }
