"""
aiohttp.web adapter for the v2 release endpoints.

The handler only translates between HTTP and ReleaseAggregator.handle_request;
validation, caching and filtering all happen below it.
"""

import json
from functools import partial
from typing import Optional

from aiohttp import web

from openjdk_api.config import ApiSettings
from openjdk_api.constants import JSON_INDENT
from openjdk_api.log_utils import logger
from openjdk_api.releases.aggregator import ApiResponse, ReleaseAggregator
from openjdk_api.releases.async_client import AsyncGitHubClient
from openjdk_api.releases.cache import ReleaseCache

CACHE_KEY = web.AppKey("release_cache", ReleaseCache)
AGGREGATOR_KEY = web.AppKey("release_aggregator", ReleaseAggregator)


def build_cache(settings: ApiSettings) -> ReleaseCache:
    client = AsyncGitHubClient(
        github_token=settings.github_token,
        timeout=settings.request_timeout,
        org=settings.github_org,
        api_base=settings.api_base,
        per_page=settings.per_page,
        max_pages=settings.max_pages,
        connector_limit=settings.workers,
    )
    return ReleaseCache(client, settings)


def to_web_response(result: ApiResponse, pretty: bool = True) -> web.Response:
    """
    Convert an ApiResponse into an aiohttp response.

    Parameters:
        result (ApiResponse): Outcome of the request.
        pretty (bool): Indent JSON bodies.

    Returns:
        web.Response: JSON for data, a redirect for binary requests, plain text otherwise.
    """
    if result.location is not None:
        return web.Response(status=result.status, headers={"Location": result.location})
    if result.is_json:
        dumps = partial(json.dumps, indent=JSON_INDENT) if pretty else json.dumps
        return web.json_response(result.body, status=result.status, dumps=dumps)
    return web.Response(status=result.status, text=str(result.body or ""))


async def handle_v2(request: web.Request) -> web.Response:
    aggregator = request.app[AGGREGATOR_KEY]
    result = await aggregator.handle_request(
        request.match_info.get("requestType"),
        request.match_info.get("buildtype"),
        request.match_info.get("version"),
        request.query,
    )
    pretty = request.query.get("pretty", "true").lower() != "false"
    return to_web_response(result, pretty=pretty)


async def _start_cache(app: web.Application) -> None:
    await app[CACHE_KEY].start()


async def _close_cache(app: web.Application) -> None:
    await app[CACHE_KEY].close()


def create_app(
    settings: Optional[ApiSettings] = None, cache: Optional[ReleaseCache] = None
) -> web.Application:
    """
    Build the web application.

    The cache is started on application startup and closed on cleanup.

    Parameters:
        settings (Optional[ApiSettings]): Used to build the cache when none is given.
        cache (Optional[ReleaseCache]): Pre-built cache, mainly for tests.

    Returns:
        web.Application: Application serving `/v2/{requestType}/{buildtype}/{version}`.
    """
    if cache is None:
        cache = build_cache(settings or ApiSettings())

    app = web.Application()
    app[CACHE_KEY] = cache
    app[AGGREGATOR_KEY] = ReleaseAggregator(cache)

    # Shorter paths are routed too so a missing segment answers 404 "Not found"
    app.router.add_get("/v2/{requestType}/{buildtype}/{version}", handle_v2)
    app.router.add_get("/v2/{requestType}/{buildtype}", handle_v2)
    app.router.add_get("/v2/{requestType}", handle_v2)

    app.on_startup.append(_start_cache)
    app.on_cleanup.append(_close_cache)
    return app


def run_server(settings: ApiSettings) -> None:
    """Serve the API until interrupted."""
    app = create_app(settings)
    logger.info(f"Serving v2 API on http://{settings.host}:{settings.port}")
    web.run_app(app, host=settings.host, port=settings.port, print=None)
