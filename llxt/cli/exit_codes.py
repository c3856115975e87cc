"""Process exit codes for the llxt CLI."""

from typing import Final


EXIT_SUCCESS: Final = 0
EXIT_GENERAL_ERROR: Final = 1
EXIT_NOT_FOUND: Final = 2
EXIT_NETWORK_ERROR: Final = 3
EXIT_CONFIG_ERROR: Final = 4
EXIT_INVALID_INPUT: Final = 5
EXIT_RATE_LIMITED: Final = 6
