"""
Custom exceptions for the openjdk-api service.

This module defines domain-specific exceptions that carry enough context for
the HTTP layer to pick a status code and for the cache to decide whether an
upstream failure can be absorbed by stale data.
"""

from typing import Any, List, Optional


class OpenJdkApiError(Exception):
    """
    Base exception for all openjdk-api errors.

    All custom exceptions in openjdk-api should inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(OpenJdkApiError):
    """
    Exception raised when configuration is invalid.

    This includes:
    - Unreadable or malformed configuration files
    - Values of the wrong type or out of range
    """

    pass


# =============================================================================
# Request Errors
# =============================================================================


class RequestValidationError(OpenJdkApiError):
    """Exception raised when a path or query parameter fails validation."""

    status_code = 400


class NotFoundError(OpenJdkApiError):
    """Exception raised when a request matches no release or binary."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[str] = None):
        super().__init__(message, details)


class AmbiguousResultError(RequestValidationError):
    """
    Exception raised when a binary request resolves to more than one candidate.

    Attributes:
        candidates: The serialized releases or binaries that matched.
    """

    def __init__(self, message: str, candidates: List[Any]) -> None:
        super().__init__(message)
        self.candidates = candidates


# =============================================================================
# Upstream Errors
# =============================================================================


class UpstreamError(OpenJdkApiError):
    """
    Exception raised when the GitHub releases API cannot be read.

    Attributes:
        url: The URL that was being fetched.
        upstream_status: The HTTP status code returned by GitHub, if any.
        is_retryable: Whether the failure is transient.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        upstream_status: Optional[int] = None,
        is_retryable: bool = False,
        details: Optional[str] = None,
    ) -> None:
        """
        Initialize the upstream exception.

        Args:
            message: The primary error message.
            url: The URL that was being fetched.
            upstream_status: The HTTP status code returned by GitHub.
            is_retryable: Whether this error could be retried.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.url = url
        self.upstream_status = upstream_status
        self.is_retryable = is_retryable


class RateLimitError(UpstreamError):
    """
    Exception raised when the GitHub API rate limit is exceeded.

    Attributes:
        reset_time: When the rate limit will reset (Unix timestamp).
    """

    def __init__(
        self,
        message: str = "GitHub API rate limit exceeded",
        url: Optional[str] = None,
        reset_time: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            url=url,
            upstream_status=403,
            is_retryable=True,
            details=f"Resets at: {reset_time}" if reset_time else None,
        )
        self.reset_time = reset_time


class RepositoryNotFoundError(UpstreamError):
    """Exception raised when a releases repository does not exist (yet)."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message, url=url, upstream_status=404, is_retryable=False)
