"""
Aggregation, filtering and sorting of releases for the v2 endpoints.

For one feature version the releases live in up to three repositories:

    openjdk11-binaries          current naming, both implementations
    openjdk11-releases          legacy hotspot (also openjdk11-nightly)
    openjdk11-openj9-releases   legacy openj9 (also openjdk11-openj9-nightly)

The legs are read concurrently through the ReleaseCache, normalized, merged
and sorted by version. Filters then narrow the result per request.
"""

import asyncio
import json
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from openjdk_api.constants import (
    AMBER_VERSION,
    BINARY_FILTERS,
    LATEST_ASSET_KEY_FIELDS,
    LATEST_RELEASE,
    MSG_INTERNAL_ERROR,
    MSG_MULTIPLE_BINARIES,
    MSG_NOT_FOUND,
    NEW_REPO_SUFFIX,
    RELEASES_CHANNEL,
)
from openjdk_api.exceptions import (
    AmbiguousResultError,
    NotFoundError,
    OpenJdkApiError,
    UpstreamError,
)
from openjdk_api.log_utils import logger

from .cache import ReleaseCache
from .interfaces import Release
from .normalizer import normalize
from .query import (
    ABSENT,
    QueryValue,
    ReleaseQuery,
    validate_path_params,
    validate_query_params,
)
from .version import sort_releases


@dataclass(frozen=True)
class LegacyRepositories:
    """Which legacy per-implementation repositories exist for a feature version."""

    hotspot: bool
    openj9: bool


NO_LEGACY_REPOSITORIES = LegacyRepositories(hotspot=False, openj9=False)

LEGACY_REPOSITORIES: Dict[str, LegacyRepositories] = {
    f"openjdk{feature}": LegacyRepositories(hotspot=True, openj9=True)
    for feature in range(8, 13)
}
LEGACY_REPOSITORIES[AMBER_VERSION] = LegacyRepositories(hotspot=True, openj9=False)


@dataclass(frozen=True)
class RepositoryLeg:
    repo: str
    legacy: bool


@dataclass
class ApiResponse:
    """
    Transport-neutral result of a v2 request.

    `body` is JSON-ready data for 200 responses, plain text for errors and
    None for redirects, which carry `location` instead.
    """

    status: int
    body: Any = None
    location: Optional[str] = None

    @property
    def is_json(self) -> bool:
        return isinstance(self.body, (list, dict))


def filter_binaries(releases: List[Release], query: ReleaseQuery) -> List[Release]:
    """Keep matching binaries in each release and drop releases left without any."""
    filtered = []
    for release in releases:
        binaries = [
            binary
            for binary in release.binaries
            if all(
                query.get(param).matches(binary.attribute(attribute))
                for param, attribute in BINARY_FILTERS
            )
        ]
        if binaries:
            filtered.append(replace(release, binaries=binaries))
    return filtered


def filter_release_name(releases: List[Release], release: QueryValue) -> List[Release]:
    """
    Apply the `release` filter to version-sorted releases.

    `latest` selects the release sorting last; any other value matches the
    release name case-insensitively.
    """
    if not release.present or not releases:
        return releases
    if release.values[0].lower() == LATEST_RELEASE:
        return [releases[-1]]
    return [r for r in releases if release.matches(r.release_name)]


def latest_assets(releases: List[Release]) -> List[Dict[str, Any]]:
    """
    Newest binary per platform combination across all releases.

    Each binary is flattened with its release's name and link, ordered by its
    own `updated_at` descending, and only the first one per
    (os, architecture, binary_type, openjdk_impl, version, heap_size) is kept.
    """
    flattened: List[Tuple[Any, Dict[str, Any]]] = []
    for release in releases:
        for binary in release.binaries:
            asset = binary.to_dict()
            asset["timestamp"] = binary.updated_at
            asset["release_name"] = release.release_name
            asset["release_link"] = release.release_link
            flattened.append((binary.platform_key(LATEST_ASSET_KEY_FIELDS), asset))

    flattened.sort(key=lambda item: item[1].get("updated_at") or "", reverse=True)

    seen = set()
    assets = []
    for key, asset in flattened:
        if key in seen:
            continue
        seen.add(key)
        assets.append(asset)
    return assets


class ReleaseAggregator:
    """Answers info, binary and latestAssets requests from cached release data."""

    def __init__(self, cache: ReleaseCache) -> None:
        self.cache = cache

    @staticmethod
    def repositories_for(
        version: str, channel: str, openjdk_impl: Optional[QueryValue] = None
    ) -> List[RepositoryLeg]:
        """
        List the repositories holding releases of a version and channel.

        Legacy legs for an implementation the query excludes are skipped.
        """
        impl = openjdk_impl or ABSENT
        legacy = LEGACY_REPOSITORIES.get(version, NO_LEGACY_REPOSITORIES)
        legs = [RepositoryLeg(f"{version}{NEW_REPO_SUFFIX}", legacy=False)]
        if legacy.hotspot and impl.matches("hotspot"):
            legs.append(RepositoryLeg(f"{version}-{channel}", legacy=True))
        if legacy.openj9 and impl.matches("openj9"):
            legs.append(RepositoryLeg(f"{version}-openj9-{channel}", legacy=True))
        return legs

    async def get_releases(
        self, version: str, channel: str, openjdk_impl: Optional[QueryValue] = None
    ) -> List[Release]:
        """
        Merge, normalize and sort the releases of every repository leg.

        Legacy repositories did not set GitHub's prerelease flag reliably, so
        their releases take the flag from the channel they were read for.

        Raises:
            Exception: The first leg's error when every leg failed.
        """
        legs = self.repositories_for(version, channel, openjdk_impl)
        results = await asyncio.gather(
            *(self.cache.get(leg.repo) for leg in legs), return_exceptions=True
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            if isinstance(failure, asyncio.CancelledError):
                raise failure
        if failures and len(failures) == len(results):
            raise failures[0]

        is_release_channel = channel == RELEASES_CHANNEL
        releases: List[Release] = []
        for leg, result in zip(legs, results):
            if isinstance(result, BaseException):
                logger.warning(f"Ignoring unavailable repository {leg.repo}: {result}")
                continue
            for raw_release in result:
                if not isinstance(raw_release, dict):
                    continue
                release = normalize(raw_release, leg.legacy)
                if leg.legacy:
                    release.release = is_release_channel
                if release.release != is_release_channel or not release.binaries:
                    continue
                releases.append(release)

        return sort_releases(releases)

    async def get_info(
        self, version: str, channel: str, query: ReleaseQuery
    ) -> List[Release]:
        releases = await self.get_releases(version, channel, query.openjdk_impl)
        releases = filter_binaries(releases, query)
        return filter_release_name(releases, query.release)

    async def get_binary(self, version: str, channel: str, query: ReleaseQuery) -> str:
        """
        Resolve a request to exactly one binary link.

        Raises:
            NotFoundError: Nothing matched.
            AmbiguousResultError: More than one release, or more than one binary in the release, matched.
        """
        releases = await self.get_info(version, channel, query)
        if not releases:
            raise NotFoundError(MSG_NOT_FOUND)
        if len(releases) > 1:
            raise self._ambiguous([release.to_dict() for release in releases])

        binaries = releases[0].binaries
        if len(binaries) > 1:
            raise self._ambiguous([binary.to_dict() for binary in binaries])
        return binaries[0].binary_link

    async def get_latest_assets(
        self, version: str, channel: str, query: ReleaseQuery
    ) -> List[Dict[str, Any]]:
        # The release filter does not apply here; assets span releases
        releases = await self.get_releases(version, channel, query.openjdk_impl)
        return latest_assets(filter_binaries(releases, query))

    @staticmethod
    def _ambiguous(candidates: List[Dict[str, Any]]) -> AmbiguousResultError:
        return AmbiguousResultError(
            MSG_MULTIPLE_BINARIES.format(candidates=json.dumps(candidates, indent=2)),
            candidates,
        )

    async def handle_request(
        self,
        request_type: Optional[str],
        buildtype: Optional[str],
        version: Optional[str],
        query: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        """
        Validate and answer one v2 request.

        Parameters:
            request_type (Optional[str]): `info`, `binary` or `latestAssets`.
            buildtype (Optional[str]): `releases` or `nightly`.
            version (Optional[str]): `openjdk<N>` or `openjdk-amber`.
            query (Optional[Mapping[str, Any]]): Query parameters; a MultiDict keeps repeated keys.

        Returns:
            ApiResponse: 200 with JSON data, 302 with a location, or an error status with a text body.
            Unexpected failures become 500 `Internal error`; details only go to the log.
        """
        try:
            validate_path_params(request_type, buildtype, version)
            release_query = ReleaseQuery.from_mapping(query)
            validate_query_params(release_query)

            if request_type == "binary":
                link = await self.get_binary(version, buildtype, release_query)
                return ApiResponse(302, location=link)

            if request_type == "latestAssets":
                data: List[Dict[str, Any]] = await self.get_latest_assets(
                    version, buildtype, release_query
                )
            else:
                releases = await self.get_info(version, buildtype, release_query)
                data = [release.to_dict() for release in releases]

            if not data:
                raise NotFoundError(MSG_NOT_FOUND)
            return ApiResponse(200, data)

        except UpstreamError as e:
            logger.error(f"Upstream failure answering {request_type}/{buildtype}/{version}: {e}")
            return ApiResponse(500, MSG_INTERNAL_ERROR)
        except OpenJdkApiError as e:
            if e.status_code >= 500:
                logger.error(f"Error answering {request_type}/{buildtype}/{version}: {e}")
                return ApiResponse(500, MSG_INTERNAL_ERROR)
            return ApiResponse(e.status_code, e.message)
        except Exception:
            logger.exception(f"Unexpected error answering {request_type}/{buildtype}/{version}")
            return ApiResponse(500, MSG_INTERNAL_ERROR)
