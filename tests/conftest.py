from unittest.mock import AsyncMock

import aiohttp
import platformdirs
import pytest

_ORIGINAL_SESSION_REQUEST = aiohttp.ClientSession.request

_ASYNC_NETWORK_BLOCK_MSG = (
    "Async network access is blocked during tests. Mock aiohttp.ClientSession."
)


async def _async_block_network(*_args, **_kwargs):
    """
    Prevent async network calls during tests by raising a RuntimeError.

    Raises:
        RuntimeError: `_ASYNC_NETWORK_BLOCK_MSG` suggesting to mock `aiohttp.ClientSession`.
    """
    raise RuntimeError(_ASYNC_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used across the test suite.

    Parameters:
        config: pytest.Config
    """
    config.addinivalue_line("markers", "asyncio: mark test as an asyncio test")
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests spanning several modules")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and the token lookup at an isolated temporary layout.

    Cache and config directories live under a fresh temp dir, `GITHUB_TOKEN`
    is cleared and the CI token file location is redirected to a path that
    does not exist, so no test picks up real credentials or snapshots.
    """
    base = tmp_path_factory.mktemp("openjdk_api")
    cache_dir = base / "cache"
    config_dir = base / "config"
    log_dir = base / "log"

    for path in (cache_dir, config_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)

    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )

    import openjdk_api.utils as utils

    monkeypatch.setattr(utils, "GITHUB_TOKEN_FILE", str(base / "missing-github.auth"))


def pytest_runtest_setup():
    """
    Prevent real network requests during tests.

    Replaces aiohttp's top-level request and ClientSession HTTP methods with an
    async blocker. Tests exercising the client mock the session instead.
    """
    aiohttp.request = _async_block_network
    aiohttp.ClientSession.request = _async_block_network  # type: ignore[assignment]
    aiohttp.ClientSession.get = _async_block_network  # type: ignore[assignment]


# =============================================================================
# Release Fixtures
# =============================================================================


def make_asset(
    name,
    size=100,
    download_count=0,
    updated_at="2018-11-01T10:00:00Z",
    base_url="https://github.com/AdoptOpenJDK/openjdk11-binaries/releases/download/tag",
):
    """Build one raw GitHub asset object."""
    return {
        "name": name,
        "browser_download_url": f"{base_url}/{name}",
        "size": size,
        "download_count": download_count,
        "updated_at": updated_at,
    }


def make_release(tag, assets, prerelease=False, published_at="2018-11-01T10:00:00Z"):
    """Build one raw GitHub release object from a tag and asset objects or names."""
    return {
        "tag_name": tag,
        "html_url": f"https://github.com/AdoptOpenJDK/releases/tag/{tag}",
        "published_at": published_at,
        "prerelease": prerelease,
        "assets": [make_asset(a) if isinstance(a, str) else a for a in assets],
    }


@pytest.fixture
def raw_asset():
    """Factory fixture for raw GitHub asset objects; see make_asset."""
    return make_asset


@pytest.fixture
def raw_release():
    """Factory fixture for raw GitHub release objects; see make_release."""
    return make_release


@pytest.fixture
def mock_github_client(mocker):
    """
    Provide a stand-in for AsyncGitHubClient.

    `get_releases` is an AsyncMock tests configure per repository; the client
    is unauthenticated unless a test sets `github_token`.
    """
    client = mocker.MagicMock()
    client.github_token = None
    client.get_releases = AsyncMock(return_value=[])
    client.close = AsyncMock()
    return client


@pytest.fixture
def settings(tmp_path):
    """ApiSettings writing snapshots into the test's tmp_path."""
    from openjdk_api.config import ApiSettings

    return ApiSettings(cache_dir=str(tmp_path / "cache"))


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def local_http(monkeypatch):
    """Re-enable aiohttp client requests for tests talking to an in-process TestServer."""
    monkeypatch.setattr(aiohttp.ClientSession, "request", _ORIGINAL_SESSION_REQUEST)
