"""
openjdk-api Release Subsystem

Reads OpenJDK release listings from GitHub through a TTL cache and turns them
into one normalized, filterable release/binary model.

Core Components:
- async_client: paginated GitHub releases fetcher
- cache: TTL cache with a bounded refresh worker pool and disk snapshots
- version: release name parsing and version ordering
- filenames: binary asset filename parsing across naming schemes
- normalizer: raw release to Release conversion
- query: path and query parameter validation
- aggregator: merging, filtering and the v2 request entry point
"""

from .aggregator import (
    LEGACY_REPOSITORIES,
    ApiResponse,
    LegacyRepositories,
    ReleaseAggregator,
)
from .async_client import AsyncGitHubClient
from .cache import ReleaseCache
from .filenames import parse_filename
from .interfaces import Binary, CacheEntry, PlatformInfo, Release, VersionData
from .normalizer import ReleaseNormalizer, normalize
from .query import Absent, Many, One, QueryValue, ReleaseQuery
from .version import VersionParser, parse_version, sort_releases, version_sort_key

__all__ = [
    # Interfaces
    "Binary",
    "CacheEntry",
    "PlatformInfo",
    "Release",
    "VersionData",
    # Upstream and cache
    "AsyncGitHubClient",
    "ReleaseCache",
    # Parsing and normalization
    "VersionParser",
    "parse_version",
    "version_sort_key",
    "sort_releases",
    "parse_filename",
    "ReleaseNormalizer",
    "normalize",
    # Queries
    "QueryValue",
    "Absent",
    "One",
    "Many",
    "ReleaseQuery",
    # Aggregation
    "ApiResponse",
    "LegacyRepositories",
    "LEGACY_REPOSITORIES",
    "ReleaseAggregator",
]
