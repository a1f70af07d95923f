"""
Tests for the openjdk-api exception hierarchy.

Covers message formatting, the HTTP status each error maps to, and the
upstream error attributes the cache relies on.
"""

import pytest

from openjdk_api.exceptions import (
    AmbiguousResultError,
    ConfigurationError,
    NotFoundError,
    OpenJdkApiError,
    RateLimitError,
    RepositoryNotFoundError,
    RequestValidationError,
    UpstreamError,
)

pytestmark = [pytest.mark.unit]


class TestBaseError:
    def test_message_only(self):
        error = OpenJdkApiError("Something failed")

        assert str(error) == "Something failed"
        assert error.details is None
        assert error.status_code == 500

    def test_message_with_details(self):
        error = OpenJdkApiError("Something failed", "more context")

        assert str(error) == "Something failed - more context"

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError,
            RequestValidationError,
            NotFoundError,
            UpstreamError,
            RateLimitError,
            RepositoryNotFoundError,
        ],
    )
    def test_hierarchy(self, error_class):
        assert issubclass(error_class, OpenJdkApiError)


class TestRequestErrors:
    def test_validation_error_is_bad_request(self):
        assert RequestValidationError("Unknown build type").status_code == 400

    def test_not_found_default_message(self):
        error = NotFoundError()

        assert error.message == "Not found"
        assert error.status_code == 404

    def test_ambiguous_result_carries_candidates(self):
        error = AmbiguousResultError("Multiple binaries match request: []", [{"a": 1}])

        assert error.status_code == 400
        assert error.candidates == [{"a": 1}]
        assert isinstance(error, RequestValidationError)


class TestUpstreamErrors:
    def test_upstream_error_attributes(self):
        error = UpstreamError(
            "HTTP error 502",
            url="https://api.github.com/repos/x/y/releases",
            upstream_status=502,
            is_retryable=True,
        )

        assert error.url.endswith("/releases")
        assert error.upstream_status == 502
        assert error.is_retryable is True
        assert error.status_code == 500

    def test_rate_limit_error(self):
        error = RateLimitError(url="https://api.github.com/x", reset_time=1700000000)

        assert error.upstream_status == 403
        assert error.is_retryable is True
        assert error.reset_time == 1700000000
        assert "Resets at: 1700000000" in str(error)

    def test_rate_limit_error_without_reset(self):
        assert str(RateLimitError()) == "GitHub API rate limit exceeded"

    def test_repository_not_found(self):
        error = RepositoryNotFoundError("missing", url="https://api.github.com/x")

        assert error.upstream_status == 404
        assert error.is_retryable is False
        assert isinstance(error, UpstreamError)
