"""Cache-first package repository with a remote Maven-layout fallback.

The local cache always wins. The remote repository is consulted only when
the cache cannot answer, and every remote failure degrades to whatever the
cache holds instead of surfacing to the caller.
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Collection, Dict, Iterable, List, Optional, Set, TextIO, Tuple

from ..common.logging_utils import extra_context, is_debug_enabled
from ..config import RepositoryConfig, Settings
from ..constants import Constants
from ..exceptions import RemoteClientError, RepositoryConfigError
from ..graph import DependencyGraph
from ..versioning.models import (
    ImportModuleRequest,
    ImportModuleResponse,
    ModuleDescriptor,
    Package,
    PackageDependencyScope,
    PackageDescriptor,
    PackageMetadataResponse,
    PackageVersion,
    ResolutionOptions,
    ResolutionRequest,
)
from ..versioning.parser import possible_package_names
from ..versioning.range import compatible_range, filter_to_range, select_latest
from .cache_store import CacheStore, FileSystemCacheStore
from .installer import ArtifactInstaller
from .remote_client import MavenRemoteClient, RemoteClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteListing:
    """Remote version listing; ``error`` is set when the listing failed."""
    versions: Tuple[PackageVersion, ...] = field(default_factory=tuple)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _parse_versions(raw_versions: Iterable[str], package: str) -> Tuple[PackageVersion, ...]:
    parsed = []
    for raw in raw_versions:
        try:
            parsed.append(PackageVersion.from_string(raw))
        except ValueError:
            logger.debug("Skipping non-semver remote version %r of %s", raw, package)
    return tuple(parsed)


class RemotePackageRepository:
    """Resolves packages, versions, imports and metadata for one remote repository."""

    def __init__(
        self,
        cache_store: CacheStore,
        client: RemoteClient,
        repo_location: Path,
        verbose: bool = False,
        out: Optional[TextIO] = None,
    ):
        self._cache = cache_store
        self._client = client
        self._repo_location = Path(repo_location)
        self._installer = ArtifactInstaller(client, self._repo_location)
        self._verbose = verbose
        self._out = out

    @classmethod
    def from_config(
        cls,
        cache_dir: Path,
        repository: RepositoryConfig,
        settings: Optional[Settings] = None,
        client: Optional[MavenRemoteClient] = None,
        verbose: bool = False,
    ) -> "RemotePackageRepository":
        """Build a repository over ``cache_dir`` for ``repository``.

        Raises:
            RepositoryConfigError: If the cache directory does not exist or
                the repository URL is empty.
        """
        cache_dir = Path(cache_dir)
        if not cache_dir.exists():
            raise RepositoryConfigError(f"cache directory does not exist: {cache_dir}")
        if not repository.url:
            raise RepositoryConfigError("repository url is not provided")

        settings = settings or Settings()
        mvn_client = client or MavenRemoteClient()
        if repository.has_credentials:
            mvn_client.add_repository(repository.id, repository.url, repository.username, repository.password)
        else:
            mvn_client.add_repository(repository.id, repository.url)
        mvn_client.set_proxy(settings.proxy)

        repo_location = (cache_dir / Constants.BALA_DIR_NAME).absolute()
        return cls(FileSystemCacheStore(cache_dir), mvn_client, repo_location, verbose=verbose)

    @property
    def repo_location(self) -> Path:
        return self._repo_location

    def _notify(self, message: str) -> None:
        out = self._out or sys.stdout
        print(message, file=out)

    def get_package(self, request: ResolutionRequest, options: ResolutionOptions) -> Optional[Package]:
        """Return the package, pulling it from the remote when the cache misses."""
        cached_package = self._cache.get_package(request, options)
        if cached_package is not None:
            return cached_package

        if options.offline:
            return None

        if request.version is None:
            logger.debug("No version to fetch for %s", request.identity)
            if self._verbose:
                self._notify(f"Version not found for package [{request.org}/{request.name}]: ")
            return None

        result = self._installer.fetch_into_cache(request.org, request.name, str(request.version))
        if not result.ok:
            return cached_package

        return self._cache.get_package(request, options)

    def _list_remote_versions(self, org: str, name: str) -> RemoteListing:
        try:
            raw = self._client.list_versions(org, name, os.fspath(self._repo_location))
        except RemoteClientError as exc:
            logger.debug(
                "Remote version listing failed",
                extra=extra_context(event="list_versions", outcome="failure", package=f"{org}/{name}"),
            )
            return RemoteListing(error=str(exc))
        return RemoteListing(versions=_parse_versions(raw, f"{org}/{name}"))

    def get_package_versions(
        self, request: ResolutionRequest, options: ResolutionOptions
    ) -> Set[PackageVersion]:
        """Cached plus remote versions that fall inside the locking-mode range."""
        package_versions = set(self._cache.get_package_versions(request, options))

        if not options.offline:
            listing = self._list_remote_versions(request.org, request.name)
            if listing.ok:
                package_versions.update(listing.versions)

        version_range = compatible_range(request.version, options.locking_mode)
        compatible = filter_to_range(package_versions, version_range)
        if is_debug_enabled(logger):
            logger.debug(
                "Compatible versions for %s: %s",
                request.identity,
                sorted(str(v) for v in compatible),
                extra=extra_context(event="versions", action=version_range.kind.value),
            )
        return compatible

    def get_packages(self) -> Dict[str, List[str]]:
        """Only locally cached packages are listed."""
        return self._cache.get_packages()

    def get_package_names(
        self, requests: Collection[ImportModuleRequest], options: ResolutionOptions
    ) -> List[ImportModuleResponse]:
        """Map import statements to the packages that provide them.

        Remote hits replace cache hits for the same request. The first remote
        failure stops remote lookups for the rest of the batch.
        """
        responses: Dict[ImportModuleRequest, ImportModuleResponse] = {
            response.request: response
            for response in self._cache.get_package_names(requests, options)
        }
        if options.offline:
            return list(responses.values())

        for request in requests:
            resolved, error = self._resolve_import_remotely(request)
            if error is not None:
                logger.warning(
                    "Remote import resolution aborted at %s/%s: %s",
                    request.org,
                    request.module_name,
                    error,
                )
                break
            if resolved is not None:
                responses[request] = resolved
        return list(responses.values())

    def _resolve_import_remotely(
        self, request: ImportModuleRequest
    ) -> Tuple[Optional[ImportModuleResponse], Optional[str]]:
        """Try candidate package names, most specific first; first non-empty listing wins."""
        for package_name in possible_package_names(request.module_name):
            listing = self._list_remote_versions(request.org, package_name)
            if not listing.ok:
                return None, listing.error
            if not listing.versions:
                continue
            latest = select_latest(listing.versions)
            descriptor = PackageDescriptor(request.org, package_name, latest)
            return ImportModuleResponse(request, descriptor), None
        return None, None

    def get_package_metadata(
        self, requests: Collection[ResolutionRequest], options: ResolutionOptions
    ) -> List[PackageMetadataResponse]:
        """Resolve each request to its latest compatible version and dependency graph."""
        responses = []
        for request in requests:
            versions = self.get_package_versions(request, options)
            if not versions:
                logger.info("No compatible version of %s", request.identity)
                responses.append(PackageMetadataResponse.unresolved(request))
                continue
            latest = select_latest(versions)
            responses.append(self._create_metadata_response(request, latest))
        return responses

    def _create_metadata_response(
        self, request: ResolutionRequest, latest: PackageVersion
    ) -> PackageMetadataResponse:
        descriptor = PackageDescriptor(request.org, request.name, latest, request.repository_name)
        graph = self._get_dependency_graph(request.org, request.name, latest)
        return PackageMetadataResponse(request, descriptor, graph)

    def _get_dependency_graph(
        self, org: str, name: str, version: PackageVersion
    ) -> DependencyGraph[PackageDescriptor]:
        if not self.is_package_exists(org, name, version):
            request = ResolutionRequest.from_descriptor(
                PackageDescriptor(org, name, version), PackageDependencyScope.DEFAULT
            )
            if self.get_package(request, ResolutionOptions()) is None:
                return DependencyGraph.empty()
        return self._cache.get_dependency_graph(org, name, version)

    def get_modules(self, org: str, name: str, version: PackageVersion) -> Collection[ModuleDescriptor]:
        return self._cache.get_modules(org, name, version)

    def is_package_exists(self, org: str, name: str, version: PackageVersion) -> bool:
        return self._cache.is_package_exists(org, name, version)
