"""Command line entry point for pkgresolve.

Prints one JSON document per line on stdout; logs go to stderr.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .args import parse_args
from .common.logging_utils import configure_logging
from .config import RepositoryConfig, Settings, load_settings
from .constants import Constants, ExitCodes
from .exceptions import RepositoryConfigError
from .repository.orchestrator import RemotePackageRepository
from .versioning.models import LockingMode, PackageMetadataResponse, ResolutionOptions
from .versioning.parser import parse_import_token, parse_package_token

logger = logging.getLogger(__name__)


def _select_repository(args, settings: Settings) -> RepositoryConfig:
    """Pick the repository from CLI flags, falling back to the settings file."""
    if args.REPOSITORY_ID:
        configured = settings.repository(args.REPOSITORY_ID)
    else:
        configured = settings.repositories[0] if settings.repositories else None
    repo_id = args.REPOSITORY_ID or (configured.id if configured else Constants.DEFAULT_REPOSITORY_ID)

    if args.REPOSITORY_URL:
        return RepositoryConfig(
            id=repo_id,
            url=args.REPOSITORY_URL,
            username=configured.username if configured else "",
            password=configured.password if configured else "",
        )
    return configured or RepositoryConfig(id=repo_id, url="")


def _metadata_to_dict(response: PackageMetadataResponse) -> Dict[str, Any]:
    request = response.request
    out: Dict[str, Any] = {
        "package": str(request.identity),
        "requested": str(request.version) if request.version else None,
        "resolved": response.resolved,
    }
    if response.resolved:
        descriptor = response.descriptor
        graph = response.dependency_graph
        out["version"] = str(descriptor.version)
        out["dependencies"] = sorted(
            str(dep) for dep in graph.direct_dependencies(graph.root)
        ) if graph is not None and graph.root is not None else []
    return out


def _emit(records: List[Dict[str, Any]]) -> None:
    for record in records:
        print(json.dumps(record, sort_keys=True))


def run(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return an exit code."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    try:
        settings = load_settings(args.SETTINGS)
        repository = _select_repository(args, settings)
        repo = RemotePackageRepository.from_config(
            Path(args.CACHE_DIR), repository, settings, verbose=args.VERBOSE
        )
    except RepositoryConfigError as exc:
        logger.error("%s", exc)
        return ExitCodes.FILE_ERROR.value

    locking_mode = LockingMode(getattr(args, "LOCKING_MODE", LockingMode.MEDIUM.value))
    options = ResolutionOptions(offline=args.OFFLINE, locking_mode=locking_mode)

    try:
        if args.COMMAND == "imports":
            requests = [parse_import_token(t) for t in args.TOKENS]
        else:
            requests = [parse_package_token(t, repository_name=repository.id) for t in args.TOKENS]
    except ValueError as exc:
        logger.error("Invalid package token: %s", exc)
        return ExitCodes.FILE_ERROR.value

    if args.COMMAND == "versions":
        versions = repo.get_package_versions(requests[0], options)
        _emit([{
            "package": str(requests[0].identity),
            "versions": [str(v) for v in sorted(versions)],
        }])
        return ExitCodes.SUCCESS.value if versions else ExitCodes.EXIT_UNRESOLVED.value

    if args.COMMAND == "imports":
        responses = repo.get_package_names(requests, options)
        _emit([
            {
                "module": f"{r.request.org}/{r.request.module_name}",
                "package": f"{r.descriptor.org}/{r.descriptor.name}",
                "version": str(r.descriptor.version),
            }
            for r in responses
        ])
        return ExitCodes.SUCCESS.value if len(responses) == len(set(requests)) else ExitCodes.EXIT_UNRESOLVED.value

    responses = repo.get_package_metadata(requests, options)
    _emit([_metadata_to_dict(r) for r in responses])
    if all(r.resolved for r in responses):
        return ExitCodes.SUCCESS.value
    return ExitCodes.EXIT_UNRESOLVED.value


def main() -> None:
    """Console script entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
