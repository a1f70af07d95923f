import importlib.metadata
import os
import re
from typing import List, Optional, Tuple, Union

from openjdk_api.constants import GITHUB_TOKEN_ENV_VAR, GITHUB_TOKEN_FILE
from openjdk_api.log_utils import logger

_USER_AGENT_CACHE: Optional[str] = None

_NATURAL_SPLIT_RX = re.compile(r"\d+|[A-Za-z]+")


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `openjdk-api/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("openjdk-api")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"openjdk-api/{app_version}"

    return _USER_AGENT_CACHE


def get_effective_github_token(
    github_token: Optional[str],
    allow_env_token: bool = True,
    token_file: Optional[str] = None,
) -> Optional[str]:
    """
    Determine the GitHub token to use, preferring the explicit argument over the environment.

    Resolution order is the explicit token, then the token file (the CI host's
    credential location), then the `GITHUB_TOKEN` environment variable.

    Parameters:
        github_token (Optional[str]): Explicit token to use; surrounding whitespace is ignored.
        allow_env_token (bool): If True, fall back to the token file and the environment variable.
        token_file (Optional[str]): Path of a file holding a token (defaults to the CI credential file); ignored when missing or unreadable.

    Returns:
        Optional[str]: The chosen token with surrounding whitespace removed, or `None` if no token is available.
    """
    candidate = (github_token or "").strip()
    if candidate:
        return candidate
    if not allow_env_token:
        return None

    token_file = token_file or GITHUB_TOKEN_FILE
    if os.path.exists(token_file):
        try:
            with open(token_file, "r", encoding="ascii") as f:
                file_token = f.read().strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read GitHub token file {token_file}: {e}")
        else:
            if file_token:
                logger.info("Using GitHub credentials from %s", token_file)
                return file_token

    env_token = os.environ.get(GITHUB_TOKEN_ENV_VAR)
    if env_token and env_token.strip():
        logger.info("Using GitHub credentials from %s", GITHUB_TOKEN_ENV_VAR)
        return env_token.strip()

    logger.warning("No GitHub credentials found; using unauthenticated API requests")
    return None


def natural_sort_key(value: Optional[str]) -> List[Tuple[int, Union[int, str]]]:
    """Produce a natural-sort key by splitting into digit and alphabetic runs."""
    parts = _NATURAL_SPLIT_RX.findall((value or "").lower())
    return [(1, int(p)) if p.isdigit() else (0, p) for p in parts]
