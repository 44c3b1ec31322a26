"""Argument parsing functionality for pkgresolve."""

import argparse
from typing import List, Optional

from .versioning.models import LockingMode

LOCKING_MODES = [mode.value for mode in LockingMode]


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help="Local package cache directory (must exist)",
                        action="store", type=str,
                        required=True)
    parser.add_argument("--repository-url",
                        dest="REPOSITORY_URL",
                        help="Base URL of the remote repository; overrides the settings file",
                        action="store", type=str)
    parser.add_argument("--repository-id",
                        dest="REPOSITORY_ID",
                        help="Repository id to use from the settings file",
                        action="store", type=str)
    parser.add_argument("-s", "--settings",
                        dest="SETTINGS",
                        help="Path to the YAML settings file (proxy, repositories)",
                        action="store", type=str)
    parser.add_argument("--offline",
                        dest="OFFLINE",
                        help="Do not contact the remote repository",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: $PKGRESOLVE_LOG_LEVEL, else INFO)",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("-v", "--verbose",
                        dest="VERBOSE",
                        help="Print diagnostics for packages that cannot be fetched",
                        action="store_true")


def _add_locking(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-m", "--locking-mode",
                        dest="LOCKING_MODE",
                        help="Locking mode: hard, medium, soft or none (default: medium)",
                        action="store", type=str.lower,
                        choices=LOCKING_MODES,
                        default=LockingMode.MEDIUM.value)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with resolve, versions and imports commands."""
    parser = argparse.ArgumentParser(
        prog="pkgresolve",
        description="Resolve org-scoped package versions against a cache and a remote repository",
        add_help=True,
    )
    sub = parser.add_subparsers(dest="COMMAND", required=True)

    resolve = sub.add_parser("resolve", help="Resolve packages and their direct dependencies")
    resolve.add_argument("TOKENS", nargs="+", help="org/name[:version]")
    _add_common(resolve)
    _add_locking(resolve)

    versions = sub.add_parser("versions", help="List versions compatible with the locking mode")
    versions.add_argument("TOKENS", nargs=1, help="org/name[:version]")
    _add_common(versions)
    _add_locking(versions)

    imports = sub.add_parser("imports", help="Find the packages providing imported modules")
    imports.add_argument("TOKENS", nargs="+", help="org/module.path")
    _add_common(imports)

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
