"""
Constants and configuration values for openjdk-api.

This module contains the hardcoded values, URLs, timeouts, repository naming
rules and other constants used throughout the service.
"""

# GitHub API
GITHUB_API_BASE = "https://api.github.com"
GITHUB_ORG = "AdoptOpenJDK"
GITHUB_MAX_PER_PAGE = 100
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
GITHUB_TOKEN_FILE = "/home/jenkins/github.auth"
GITHUB_API_VERSION_HEADER = "2022-11-28"

# Network timeouts (in seconds)
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_MAX_PAGES = 10

# Refresh queue
# 3 covers the common case of one new repo and two legacy repos per request.
DEFAULT_REFRESH_WORKERS = 3

# Cache cooldowns (in seconds)
AUTHENTICATED_COOLDOWN = 15 * 60
UNAUTHENTICATED_COOLDOWN = 60 * 60
NOT_FOUND_COOLDOWN = 60 * 60
VERY_STALE_FACTOR = 4
RATE_LIMITED_BACKOFF_DIVISOR = 2

# Cache persistence
NEW_RELEASES_CACHE_FILE = "new_releases.json"
LEGACY_RELEASES_CACHE_FILE = "legacy_releases.json"
NEW_REPO_SUFFIX = "-binaries"

# HTTP status codes
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_RETRY_THRESHOLD = 500

# Request vocabulary
REQUEST_TYPES = ("info", "binary", "latestAssets")
BUILD_TYPES = ("releases", "nightly")
RELEASES_CHANNEL = "releases"
NIGHTLY_CHANNEL = "nightly"
JVM_IMPLEMENTATIONS = ("hotspot", "openj9")
IMAGE_TYPES = ("jdk", "jre")
HEAP_SIZES = ("large", "normal")
AMBER_VERSION = "openjdk-amber"
LATEST_RELEASE = "latest"

VERSION_PATH_PATTERN = r"openjdk(?:\d{1,2}|-amber)"
ALPHANUMERIC_PATTERN = r"[a-zA-Z0-9]+"
RELEASE_NAME_PATTERN = r"[a-z0-9_.+-]+"

# Query parameter name -> Binary attribute it filters on
BINARY_FILTERS = (
    ("os", "os"),
    ("arch", "architecture"),
    ("type", "binary_type"),
    ("openjdk_impl", "openjdk_impl"),
    ("heap_size", "heap_size"),
)

# Binary attributes identifying one platform combination in latestAssets
LATEST_ASSET_KEY_FIELDS = (
    "os",
    "architecture",
    "binary_type",
    "openjdk_impl",
    "version",
    "heap_size",
)

# Asset file extensions
ARCHIVE_EXTENSIONS = (".tar.gz", ".zip")
INSTALLER_EXTENSIONS = (".msi", ".pkg")
CHECKSUM_SUFFIX = ".sha256.txt"

# Response messages
MSG_NOT_FOUND = "Not found"
MSG_INTERNAL_ERROR = "Internal error"
MSG_MULTIPLE_BINARIES = "Multiple binaries match request: {candidates}"
MSG_MULTI_VALUE_RELEASE = 'Multi-value queries not supported for "release"'
MSG_UNKNOWN_PATH_PARAM = "Unknown {name} type"
MSG_UNKNOWN_QUERY_PARAM = 'Unknown {name} format "{value}"'

# Web server
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
JSON_INDENT = 2

# Logging configuration
LOGGER_NAME = "openjdk_api"
LOG_LEVEL_ENV_VAR = "OPENJDK_API_LOG_LEVEL"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "openjdk-api.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Configuration file
APP_NAME = "openjdk-api"
CONFIG_FILE_NAME = "openjdk-api.yaml"
