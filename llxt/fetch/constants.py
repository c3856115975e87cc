"""HTTP constants for the fetch layer.

Centralizes status codes and client defaults shared across modules.
"""

# HTTP Status Codes
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Client defaults
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_WAIT_SECONDS = 0.1
DEFAULT_RETRY_MAX_WAIT_SECONDS = 2.0
DEFAULT_USER_AGENT = "llxt/0.1.0"

# Circuit breaker defaults
DEFAULT_CB_FAILURE_THRESHOLD = 3
DEFAULT_CB_SUCCESS_THRESHOLD = 1
DEFAULT_CB_RESET_TIMEOUT_SECONDS = 30.0

# Jitter added on top of the exponential backoff, as a fraction of the delay
DEFAULT_RETRY_JITTER_FACTOR = 0.1

RETRY_AFTER_HEADER = "Retry-After"
RATE_LIMITED_HINT = "Wait before retrying or use a different source"
