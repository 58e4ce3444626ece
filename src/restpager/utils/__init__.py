"""
Utility functions and helpers for restpager.
"""

from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    PageFetchError,
    PaginationError,
    RateLimitError,
    RestPagerError,
    StalledPaginationError,
    format_api_error,
)
from .logging_config import get_logger, initialize_logging, setup_logging

__all__ = [
    # Errors
    "RestPagerError",
    "ConfigurationError",
    "AuthenticationError",
    "ApiError",
    "RateLimitError",
    "PaginationError",
    "PageFetchError",
    "StalledPaginationError",
    "format_api_error",
    # Logging
    "get_logger",
    "initialize_logging",
    "setup_logging",
]
