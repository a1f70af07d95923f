# src/openjdk_api/cli.py

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from openjdk_api import log_utils
from openjdk_api.config import ApiSettings, load_settings
from openjdk_api.constants import LEGACY_RELEASES_CACHE_FILE, NEW_RELEASES_CACHE_FILE
from openjdk_api.exceptions import ConfigurationError
from openjdk_api.utils import get_user_agent


def _load_settings(args: argparse.Namespace) -> ApiSettings:
    """
    Load settings and apply command line overrides.

    Exits with status 1 when the configuration is invalid.
    """
    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        log_utils.logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    if getattr(args, "host", None):
        settings.host = args.host
    if getattr(args, "port", None):
        settings.port = args.port
    if getattr(args, "log_level", None):
        settings.log_level = args.log_level
    if getattr(args, "refresh_interval", None) is not None:
        settings.refresh_interval = args.refresh_interval

    try:
        settings.validate()
    except ConfigurationError as e:
        log_utils.logger.error(f"Invalid settings: {e}")
        sys.exit(1)
    return settings


def run_serve(args: argparse.Namespace) -> None:
    settings = _load_settings(args)
    log_utils.set_log_level(settings.log_level)
    if args.log_dir:
        log_utils.add_file_logging(Path(args.log_dir), settings.log_level)

    # Imported here so `version` and `cache clear` do not pull in aiohttp.web
    from openjdk_api.web import run_server

    run_server(settings)


def run_cache_clear(args: argparse.Namespace) -> None:
    """Delete the persisted release snapshots."""
    settings = _load_settings(args)
    removed = 0
    for name in (NEW_RELEASES_CACHE_FILE, LEGACY_RELEASES_CACHE_FILE):
        path = os.path.join(settings.cache_dir, name)
        if not os.path.exists(path):
            continue
        try:
            os.remove(path)
        except OSError as e:
            log_utils.logger.error(f"Failed to delete {path}: {e}")
            continue
        log_utils.logger.info(f"Removed {path}")
        removed += 1
    if not removed:
        log_utils.logger.info("No cached release snapshots to remove.")


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the openjdk-api command-line interface.

    Subcommands: `serve` runs the HTTP API, `cache clear` removes the persisted
    release snapshots, and `version` prints the installed version.
    """
    parser = argparse.ArgumentParser(
        description="openjdk-api - cached AdoptOpenJDK release metadata service"
    )
    parser.add_argument(
        "--config",
        help="Path to a YAML configuration file (defaults to the user config directory)",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the v2 HTTP API")
    serve_parser.add_argument("--host", help="Interface to bind")
    serve_parser.add_argument("--port", type=int, help="Port to listen on")
    serve_parser.add_argument(
        "--log-level",
        dest="log_level",
        help="Log level name (DEBUG, INFO, WARNING, ...)",
    )
    serve_parser.add_argument(
        "--log-dir",
        dest="log_dir",
        help="Also write a rotating log file into this directory",
    )
    serve_parser.add_argument(
        "--refresh-interval",
        dest="refresh_interval",
        type=float,
        help="Seconds between background refreshes of every cached repository (0 disables)",
    )

    cache_parser = subparsers.add_parser(
        "cache",
        help="Manage cached data",
        description="Remove persisted release snapshots.",
    )
    cache_subparsers = cache_parser.add_subparsers(dest="cache_command", required=True)
    cache_subparsers.add_parser("clear", help="Delete persisted release snapshots")

    subparsers.add_parser("version", help="Display openjdk-api version")

    args = parser.parse_args(argv)

    if args.command == "serve":
        run_serve(args)
    elif args.command == "cache":
        run_cache_clear(args)
    elif args.command == "version":
        log_utils.logger.info(get_user_agent())
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
