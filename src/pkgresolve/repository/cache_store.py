"""Local package cache.

Cached packages live under ``<cache_dir>/bala/<org>/<name>/<version>/<platform>/``
with a ``package.json`` manifest and an optional ``dependency-graph.json``.
"""
from __future__ import annotations

import abc
import json
import logging
from pathlib import Path
from typing import Any, Collection, Dict, Iterable, List, Optional, Set

from ..constants import Constants
from ..exceptions import ManifestError
from ..graph import DependencyGraph, DependencyGraphBuilder
from ..versioning.models import (
    ImportModuleRequest,
    ImportModuleResponse,
    ModuleDescriptor,
    Package,
    PackageDescriptor,
    PackageVersion,
    ResolutionOptions,
    ResolutionRequest,
)
from ..versioning.parser import possible_package_names
from ..versioning.range import select_latest

logger = logging.getLogger(__name__)


class CacheStore(abc.ABC):
    """Read access to packages already downloaded into the local cache."""

    @abc.abstractmethod
    def get_package(self, request: ResolutionRequest, options: ResolutionOptions) -> Optional[Package]:
        """Return the cached package for ``request`` or None."""

    @abc.abstractmethod
    def get_package_versions(self, request: ResolutionRequest, options: ResolutionOptions) -> Set[PackageVersion]:
        """Return every cached version of the requested package."""

    @abc.abstractmethod
    def get_packages(self) -> Dict[str, List[str]]:
        """Map ``org/name`` to the cached version strings."""

    @abc.abstractmethod
    def get_package_names(
        self, requests: Iterable[ImportModuleRequest], options: ResolutionOptions
    ) -> Set[ImportModuleResponse]:
        """Resolve import requests against cached packages only."""

    @abc.abstractmethod
    def get_dependency_graph(
        self, org: str, name: str, version: PackageVersion
    ) -> DependencyGraph[PackageDescriptor]:
        """Return the parsed dependency graph of a cached package."""

    @abc.abstractmethod
    def get_modules(self, org: str, name: str, version: PackageVersion) -> Collection[ModuleDescriptor]:
        """Return the modules a cached package exports."""

    @abc.abstractmethod
    def is_package_exists(self, org: str, name: str, version: PackageVersion) -> bool:
        """Return True if the package version is present locally."""


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise ManifestError(f"cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"{path} must contain a JSON object")
    return data


def _module_names(manifest: Dict[str, Any], package_name: str) -> List[str]:
    """Module names from a manifest; the default module shares the package name."""
    names = []
    for entry in manifest.get("modules") or []:
        if isinstance(entry, str):
            names.append(entry)
        elif isinstance(entry, dict) and entry.get("name"):
            names.append(str(entry["name"]))
    return names or [package_name]


class FileSystemCacheStore(CacheStore):
    """CacheStore backed by the on-disk bala layout."""

    def __init__(self, cache_dir: Path):
        self._cache_dir = Path(cache_dir)
        self._bala_root = self._cache_dir / Constants.BALA_DIR_NAME

    @property
    def bala_root(self) -> Path:
        return self._bala_root

    def _platform_dir(self, org: str, name: str, version: str) -> Optional[Path]:
        """Pick the platform directory for a version, preferring known platforms."""
        version_dir = self._bala_root / org / name / version
        if not version_dir.is_dir():
            return None
        available = {
            p.name: p for p in version_dir.iterdir()
            if p.is_dir() and (p / Constants.PACKAGE_JSON).is_file()
        }
        for platform in Constants.PLATFORM_PREFERENCE:
            if platform in available:
                return available[platform]
        if available:
            return available[min(available)]
        return None

    def _cached_versions(self, org: str, name: str) -> Set[PackageVersion]:
        package_dir = self._bala_root / org / name
        if not package_dir.is_dir():
            return set()
        versions = set()
        for entry in package_dir.iterdir():
            if not entry.is_dir():
                continue
            try:
                version = PackageVersion.from_string(entry.name)
            except ValueError:
                logger.debug("Skipping non-version directory %s", entry)
                continue
            if self._platform_dir(org, name, entry.name) is not None:
                versions.add(version)
        return versions

    def _load(self, org: str, name: str, version: PackageVersion) -> Optional[Package]:
        platform_dir = self._platform_dir(org, name, str(version))
        if platform_dir is None:
            return None
        try:
            manifest = _read_json(platform_dir / Constants.PACKAGE_JSON)
        except ManifestError as exc:
            logger.warning("Ignoring cached package %s/%s:%s: %s", org, name, version, exc)
            return None
        return Package(
            descriptor=PackageDescriptor(org, name, version),
            platform=str(manifest.get(Constants.PLATFORM) or platform_dir.name),
            path=platform_dir,
            manifest=manifest,
            modules=tuple(_module_names(manifest, name)),
        )

    def get_package(self, request: ResolutionRequest, options: ResolutionOptions) -> Optional[Package]:
        version = request.version
        if version is None:
            versions = self._cached_versions(request.org, request.name)
            if not versions:
                return None
            version = select_latest(versions)
        return self._load(request.org, request.name, version)

    def get_package_versions(self, request: ResolutionRequest, options: ResolutionOptions) -> Set[PackageVersion]:
        return self._cached_versions(request.org, request.name)

    def get_packages(self) -> Dict[str, List[str]]:
        packages: Dict[str, List[str]] = {}
        if not self._bala_root.is_dir():
            return packages
        for org_dir in sorted(p for p in self._bala_root.iterdir() if p.is_dir()):
            for name_dir in sorted(p for p in org_dir.iterdir() if p.is_dir()):
                versions = self._cached_versions(org_dir.name, name_dir.name)
                if versions:
                    packages[f"{org_dir.name}/{name_dir.name}"] = [str(v) for v in sorted(versions)]
        return packages

    def get_package_names(
        self, requests: Iterable[ImportModuleRequest], options: ResolutionOptions
    ) -> Set[ImportModuleResponse]:
        responses = set()
        for request in requests:
            for candidate in possible_package_names(request.module_name):
                versions = self._cached_versions(request.org, candidate)
                if not versions:
                    continue
                package = self._load(request.org, candidate, select_latest(versions))
                if package is None or request.module_name not in package.modules:
                    continue
                responses.add(ImportModuleResponse(request, package.descriptor))
                break
        return responses

    def get_dependency_graph(
        self, org: str, name: str, version: PackageVersion
    ) -> DependencyGraph[PackageDescriptor]:
        root = PackageDescriptor(org, name, version)
        platform_dir = self._platform_dir(org, name, str(version))
        if platform_dir is None:
            return DependencyGraph.empty()

        builder: DependencyGraphBuilder[PackageDescriptor] = DependencyGraphBuilder(root)
        graph_file = platform_dir / Constants.DEPENDENCY_GRAPH_JSON
        if not graph_file.is_file():
            return builder.build()

        try:
            data = _read_json(graph_file)
            for entry in data.get("packages") or []:
                node = self._descriptor_from(entry)
                builder.add_node(node)
                for dep in entry.get("dependencies") or []:
                    builder.add_dependency(node, self._descriptor_from(dep))
        except (ManifestError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed dependency graph for %s: %s", root, exc)
            return DependencyGraphBuilder(root).build()
        return builder.build()

    @staticmethod
    def _descriptor_from(entry: Dict[str, Any]) -> PackageDescriptor:
        return PackageDescriptor(
            org=str(entry["org"]),
            name=str(entry["name"]),
            version=PackageVersion.from_string(entry["version"]),
        )

    def get_modules(self, org: str, name: str, version: PackageVersion) -> Collection[ModuleDescriptor]:
        package = self._load(org, name, version)
        if package is None:
            return []
        return [ModuleDescriptor(package.descriptor, module) for module in package.modules]

    def is_package_exists(self, org: str, name: str, version: PackageVersion) -> bool:
        return self._platform_dir(org, name, str(version)) is not None
