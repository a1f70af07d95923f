"""
Configuration loading for openjdk-api.

Settings come from an optional YAML file (by default `openjdk-api.yaml` in the
platform config directory); anything not set there keeps its default. The
GitHub token is resolved separately so it can come from the environment or the
CI credential file without being written into the config.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

import platformdirs
import yaml

from openjdk_api.constants import (
    APP_NAME,
    AUTHENTICATED_COOLDOWN,
    CONFIG_FILE_NAME,
    DEFAULT_HOST,
    DEFAULT_MAX_PAGES,
    DEFAULT_PORT,
    DEFAULT_REFRESH_WORKERS,
    DEFAULT_REQUEST_TIMEOUT,
    GITHUB_API_BASE,
    GITHUB_MAX_PER_PAGE,
    GITHUB_ORG,
    NOT_FOUND_COOLDOWN,
    UNAUTHENTICATED_COOLDOWN,
    VERY_STALE_FACTOR,
)
from openjdk_api.exceptions import ConfigurationError
from openjdk_api.log_utils import logger
from openjdk_api.utils import get_effective_github_token


def _default_cache_dir() -> str:
    return platformdirs.user_cache_dir(APP_NAME)


@dataclass
class ApiSettings:
    """Runtime settings for the release cache, the upstream client and the web server."""

    github_org: str = GITHUB_ORG
    api_base: str = GITHUB_API_BASE
    github_token: Optional[str] = None
    cache_dir: str = field(default_factory=_default_cache_dir)
    workers: int = DEFAULT_REFRESH_WORKERS
    max_pages: int = DEFAULT_MAX_PAGES
    per_page: int = GITHUB_MAX_PER_PAGE
    request_timeout: float = float(DEFAULT_REQUEST_TIMEOUT)
    authenticated_cooldown: float = float(AUTHENTICATED_COOLDOWN)
    unauthenticated_cooldown: float = float(UNAUTHENTICATED_COOLDOWN)
    very_stale_factor: float = float(VERY_STALE_FACTOR)
    not_found_cooldown: float = float(NOT_FOUND_COOLDOWN)
    refresh_interval: float = 0.0
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    def cooldown_for(self, authenticated: bool) -> float:
        """Seconds a freshly fetched repository stays fresh."""
        if authenticated:
            return self.authenticated_cooldown
        return self.unauthenticated_cooldown

    def very_stale_after_for(self, authenticated: bool) -> float:
        """Age in seconds beyond which readers wait for a refresh instead of taking stale data."""
        return self.cooldown_for(authenticated) * self.very_stale_factor

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ConfigurationError: If a count is below 1, a duration is negative, or per_page exceeds GitHub's maximum.
        """
        for name in ("workers", "max_pages", "per_page", "port"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be >= 1", f"got {getattr(self, name)!r}")
        if self.per_page > GITHUB_MAX_PER_PAGE:
            raise ConfigurationError(
                f"per_page must be <= {GITHUB_MAX_PER_PAGE}", f"got {self.per_page!r}"
            )
        for name in (
            "request_timeout",
            "authenticated_cooldown",
            "unauthenticated_cooldown",
            "very_stale_factor",
            "not_found_cooldown",
            "refresh_interval",
        ):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative", f"got {getattr(self, name)!r}")


def get_config_file_path() -> str:
    return os.path.join(platformdirs.user_config_dir(APP_NAME), CONFIG_FILE_NAME)


def _coerce(name: str, value: Any, default: Any) -> Any:
    if default is None or value is None:
        return value
    expected = type(default)
    if expected is float and isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, expected) and not (expected is int and isinstance(value, bool)):
        return value
    try:
        return expected(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value for {name}", f"expected {expected.__name__}, got {value!r}"
        ) from e


def settings_from_mapping(values: Dict[str, Any]) -> ApiSettings:
    """
    Build settings from a plain mapping, ignoring unknown keys.

    Keys are matched case-insensitively so upper-case YAML keys work as well.

    Raises:
        ConfigurationError: If a value cannot be converted or fails validation.
    """
    defaults = ApiSettings()
    known = {f.name: f for f in fields(ApiSettings)}
    kwargs: Dict[str, Any] = {}
    for raw_key, value in values.items():
        key = str(raw_key).lower()
        if key not in known:
            logger.warning(f"Ignoring unknown configuration key: {raw_key}")
            continue
        kwargs[key] = _coerce(key, value, getattr(defaults, key))

    settings = ApiSettings(**kwargs)
    settings.validate()
    return settings


def load_settings(
    path: Optional[str] = None, allow_env_token: bool = True
) -> ApiSettings:
    """
    Load settings from a YAML file and resolve the GitHub token.

    Parameters:
        path (Optional[str]): Config file to read. When None the platform config file is used if it exists.
        allow_env_token (bool): Whether the token may come from the credential file or `GITHUB_TOKEN`.

    Returns:
        ApiSettings: Validated settings.

    Raises:
        ConfigurationError: If an explicit file is missing, the YAML cannot be parsed, or a value is invalid.
    """
    config_path = path or get_config_file_path()
    values: Dict[str, Any] = {}

    if os.path.exists(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Could not read configuration file {config_path}", str(e)
            ) from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Configuration file {config_path} must contain a mapping"
            )
        values = loaded
        logger.debug(f"Loaded configuration from {config_path}")
    elif path:
        raise ConfigurationError(f"Configuration file not found: {path}")

    settings = settings_from_mapping(values)
    settings.github_token = get_effective_github_token(
        settings.github_token, allow_env_token=allow_env_token
    )
    return settings
