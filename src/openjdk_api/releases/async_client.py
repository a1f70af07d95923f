"""
Async GitHub client for openjdk-api

This module fetches raw release listings from the GitHub API using aiohttp,
with session management, optional token authentication, pagination and
error classification for the release cache.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp
from aiohttp import ClientResponse, ClientSession, ClientTimeout, TCPConnector

from openjdk_api.constants import (
    DEFAULT_MAX_PAGES,
    DEFAULT_REQUEST_TIMEOUT,
    GITHUB_API_BASE,
    GITHUB_API_VERSION_HEADER,
    GITHUB_MAX_PER_PAGE,
    GITHUB_ORG,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_RETRY_THRESHOLD,
)
from openjdk_api.exceptions import (
    RateLimitError,
    RepositoryNotFoundError,
    UpstreamError,
)
from openjdk_api.log_utils import logger


class AsyncGitHubClient:
    """
    Asynchronous GitHub releases client using aiohttp.

    One call to get_releases() walks every page of a repository's releases
    endpoint, up to a page cap, and returns the raw JSON objects untouched.

    Example:
        async with AsyncGitHubClient(github_token="...") as client:
            releases = await client.get_releases("openjdk11-binaries")
    """

    def __init__(
        self,
        github_token: Optional[str] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        org: str = GITHUB_ORG,
        api_base: str = GITHUB_API_BASE,
        per_page: int = GITHUB_MAX_PER_PAGE,
        max_pages: int = DEFAULT_MAX_PAGES,
        connector_limit: int = 10,
    ) -> None:
        """
        Initialize the async GitHub client.

        Parameters:
            github_token (Optional[str]): GitHub personal access token for authentication.
            timeout (float): Per-request timeout in seconds.
            org (str): GitHub organisation owning the release repositories.
            api_base (str): Base URL of the GitHub API.
            per_page (int): Page size requested from GitHub (at most 100).
            max_pages (int): Maximum number of pages read per repository.
            connector_limit (int): Maximum total connections in the pool.
        """
        self.github_token = github_token
        self.timeout = ClientTimeout(total=timeout)
        self.org = org
        self.api_base = api_base.rstrip("/")
        self.per_page = max(1, min(int(per_page), GITHUB_MAX_PER_PAGE))
        self.max_pages = max(1, int(max_pages))
        self.connector_limit = max(1, int(connector_limit))
        self._session: Optional[ClientSession] = None
        self._closed: bool = False

        # Rate limit tracking
        self.rate_limit_remaining: Optional[int] = None
        self.rate_limit_reset: Optional[datetime] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.github_token)

    async def __aenter__(self) -> "AsyncGitHubClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> ClientSession:
        # Created on first use and again after close()
        if self._session is None or self._session.closed:
            connector = TCPConnector(
                limit=self.connector_limit,
                enable_cleanup_closed=True,
            )
            self._session = ClientSession(
                connector=connector,
                timeout=self.timeout,
                headers=self._get_default_headers(),
            )
            self._closed = False
        return self._session

    def _get_default_headers(self) -> Dict[str, str]:
        """Headers sent with every releases request; adds `Authorization: token ...` when a token is set."""
        from openjdk_api.utils import get_user_agent

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION_HEADER,
            "User-Agent": get_user_agent(),
        }
        if self.github_token:
            headers["Authorization"] = f"token {self.github_token}"
        return headers

    async def close(self) -> None:
        """Close the client session and release resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._closed = True

    def releases_url(self, repo: str) -> str:
        return f"{self.api_base}/repos/{self.org}/{repo}/releases"

    async def get_releases(self, repo: str) -> List[Dict[str, Any]]:
        """
        Fetch every release of a repository, following pagination.

        Pages are requested until GitHub returns a short page or `max_pages`
        pages have been read; in the latter case the partial list is returned.

        Parameters:
            repo (str): Repository name under the configured organisation.

        Returns:
            List[Dict[str, Any]]: Raw release objects, newest first as GitHub lists them.

        Raises:
            RateLimitError: GitHub answered 403, or the last response left no requests before the reset time.
            RepositoryNotFoundError: GitHub answered 404.
            UpstreamError: Any other HTTP, network, timeout or payload failure.
        """
        url = self.releases_url(repo)
        releases: List[Dict[str, Any]] = []

        for page in range(1, self.max_pages + 1):
            items = await self._get_page(url, page)
            releases.extend(item for item in items if isinstance(item, dict))
            if len(items) < self.per_page:
                break
        else:
            logger.warning(
                "Stopped paging %s after %d pages; caching partial result",
                url,
                self.max_pages,
            )

        logger.debug(f"Fetched {len(releases)} releases from {url}")
        return releases

    def _check_rate_limit(self, url: str) -> None:
        """
        Refuse to call GitHub while the last response reported an exhausted quota.

        Raises:
            RateLimitError: No requests remain and the reset time is still in the future.
        """
        reset = self.rate_limit_reset
        if self.rate_limit_remaining != 0 or reset is None:
            return
        if reset <= datetime.now(timezone.utc):
            self.rate_limit_remaining = None
            return
        logger.debug(f"Skipping request to {url}; rate limit resets at {reset.isoformat()}")
        raise RateLimitError(
            f"GitHub API rate limit exhausted for {url}",
            url=url,
            reset_time=int(reset.timestamp()),
        )

    async def _get_page(self, url: str, page: int) -> List[Any]:
        self._check_rate_limit(url)
        session = await self._ensure_session()
        params = {"per_page": self.per_page, "page": page}

        try:
            async with session.get(url, params=params) as response:
                self._update_rate_limits(response)

                if response.status == HTTP_STATUS_FORBIDDEN:
                    reset = self.rate_limit_reset
                    raise RateLimitError(
                        f"GitHub API rate limit exceeded for {url}",
                        url=url,
                        reset_time=int(reset.timestamp()) if reset else None,
                    )
                if response.status == HTTP_STATUS_NOT_FOUND:
                    raise RepositoryNotFoundError(
                        f"Repository releases not found: {url}", url=url
                    )

                response.raise_for_status()
                data = await response.json()

        except aiohttp.ClientResponseError as e:
            logger.error(f"HTTP error fetching releases from {url}: {e.status}")
            raise UpstreamError(
                f"HTTP error {e.status}: {e.message}",
                url=url,
                upstream_status=e.status,
                is_retryable=e.status >= HTTP_STATUS_RETRY_THRESHOLD,
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"Network error fetching releases from {url}: {e}")
            raise UpstreamError(
                f"Network error: {e}", url=url, is_retryable=True
            ) from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timed out fetching releases from {url}")
            raise UpstreamError(
                "Request timed out", url=url, is_retryable=True
            ) from e
        except ValueError as e:
            raise UpstreamError(
                f"Invalid JSON in releases response: {e}", url=url
            ) from e

        if not isinstance(data, list):
            raise UpstreamError(
                "Unexpected releases payload type",
                url=url,
                details=f"expected list, got {type(data).__name__}",
            )
        return data

    def _update_rate_limits(self, response: ClientResponse) -> None:
        """
        Record the rate-limit state reported by a GitHub response.

        Parameters:
            response (ClientResponse): HTTP response carrying `X-RateLimit-Remaining` and `X-RateLimit-Reset` headers.
        """
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining:
            try:
                self.rate_limit_remaining = int(remaining)
            except (ValueError, TypeError):
                pass

        if reset:
            try:
                self.rate_limit_reset = datetime.fromtimestamp(
                    int(reset), tz=timezone.utc
                )
            except (ValueError, TypeError, OSError):
                pass
