"""
Unified error handling for restpager.
"""


class RestPagerError(Exception):
    """Base exception for restpager errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}. {self.suggestion}"
        return self.message


class ConfigurationError(RestPagerError):
    """Configuration error."""
    pass


class AuthenticationError(RestPagerError):
    """Authentication or authorization error."""
    pass


class ApiError(RestPagerError):
    """The API answered with a non-success HTTP status."""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        suggestion: str | None = None,
    ):
        super().__init__(format_api_error(status_code, message), suggestion)
        self.status_code = status_code
        self.detail = message


class RateLimitError(ApiError):
    """HTTP 429 from the API."""

    def __init__(self, retry_after: float | None = None, message: str = ""):
        super().__init__(429, message)
        self.retry_after = retry_after


class PaginationError(RestPagerError):
    """Base exception for automatic pagination failures."""

    def __init__(self, message: str, offset: int):
        super().__init__(message)
        self.offset = offset


class PageFetchError(PaginationError):
    """The request function failed while fetching a page.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, offset: int, error: BaseException):
        super().__init__(f"Failed to fetch page at offset {offset}: {error}", offset)
        self.error = error


class StalledPaginationError(PaginationError):
    """A page announced a next page but carried no items."""

    def __init__(self, offset: int):
        super().__init__(
            f"Server returned an empty page with a next marker at offset {offset}",
            offset,
        )


def format_api_error(status_code: int, message: str = "") -> str:
    """Format an API error with appropriate message."""
    error_messages = {
        400: "Bad request. Please check your input parameters.",
        401: "Authentication required. The access token is missing or expired.",
        403: "Access denied. The token lacks the scopes for this resource.",
        404: "Resource not found. Please check the request path.",
        429: "Rate limit exceeded. Please wait before making more requests.",
        500: "Server error. Please try again later.",
        502: "Bad gateway. Please try again later.",
        503: "Service unavailable. Please try again later.",
    }

    default_message = f"API error (status {status_code})"
    base_message = error_messages.get(status_code, default_message)

    if message:
        return f"Error: {base_message} Details: {message}"
    return f"Error: {base_message}"
