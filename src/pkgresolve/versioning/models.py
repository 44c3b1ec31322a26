"""Data models for versioning and package resolution."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import semantic_version

if TYPE_CHECKING:
    from ..graph import DependencyGraph


class LockingMode(Enum):
    """How far a recorded version may drift during re-resolution."""
    HARD = "hard"
    MEDIUM = "medium"
    SOFT = "soft"
    NONE = "none"


class PackageDependencyScope(Enum):
    """Scope a dependency was declared in."""
    DEFAULT = "default"
    TEST_ONLY = "testOnly"


@dataclass(frozen=True)
class PackageIdentity:
    """Organization-scoped package name, used as a lookup key."""
    org: str
    name: str

    def __str__(self) -> str:
        return f"{self.org}/{self.name}"


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class PackageVersion:
    """A semantic version ordered by semver precedence.

    Equality and hashing use the normalized string form, so two instances
    parsed from the same text are interchangeable as set members. Versions
    of equal precedence that differ only in build metadata are ordered by
    their string form.
    """
    semver: semantic_version.Version

    @classmethod
    def from_string(cls, value: str) -> "PackageVersion":
        """Parse ``value``; raises ValueError for non-semver strings."""
        if value is None:
            raise ValueError("version must not be None")
        return cls(semantic_version.Version(str(value).strip()))

    @property
    def major(self) -> int:
        return self.semver.major

    @property
    def minor(self) -> int:
        return self.semver.minor

    @property
    def patch(self) -> int:
        return self.semver.patch

    @property
    def is_prerelease(self) -> bool:
        return bool(self.semver.prerelease)

    def __str__(self) -> str:
        return str(self.semver)

    def __repr__(self) -> str:
        return f"PackageVersion('{self}')"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    def __lt__(self, other: "PackageVersion") -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        if self.semver < other.semver:
            return True
        if other.semver < self.semver:
            return False
        # same precedence, differing build metadata: keep the order total
        return str(self) < str(other)


@dataclass(frozen=True)
class PackageDescriptor:
    """A resolved (org, name, version) triple, optionally tagged with its repository."""
    org: str
    name: str
    version: PackageVersion
    repository: Optional[str] = None

    @property
    def identity(self) -> PackageIdentity:
        return PackageIdentity(self.org, self.name)

    def __str__(self) -> str:
        return f"{self.org}/{self.name}:{self.version}"


@dataclass(frozen=True)
class ResolutionRequest:
    """Resolution input; ``version`` of None means resolve the best version."""
    identity: PackageIdentity
    version: Optional[PackageVersion] = None
    repository_name: Optional[str] = None
    scope: PackageDependencyScope = PackageDependencyScope.DEFAULT

    @classmethod
    def from_descriptor(
        cls,
        descriptor: PackageDescriptor,
        scope: PackageDependencyScope = PackageDependencyScope.DEFAULT,
    ) -> "ResolutionRequest":
        return cls(
            identity=descriptor.identity,
            version=descriptor.version,
            repository_name=descriptor.repository,
            scope=scope,
        )

    @property
    def org(self) -> str:
        return self.identity.org

    @property
    def name(self) -> str:
        return self.identity.name


@dataclass(frozen=True)
class ResolutionOptions:
    """Per-call resolution policy."""
    offline: bool = False
    locking_mode: LockingMode = LockingMode.MEDIUM


@dataclass(frozen=True)
class ModuleDescriptor:
    """A module exported by a resolved package."""
    package: PackageDescriptor
    module_name: str


@dataclass(frozen=True)
class Package:
    """A package materialized in the local cache."""
    descriptor: PackageDescriptor
    platform: str
    path: Path
    manifest: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    modules: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportModuleRequest:
    """An import statement naming only org and module path."""
    org: str
    module_name: str


@dataclass(frozen=True)
class ImportModuleResponse:
    """The package chosen to provide an imported module."""
    request: ImportModuleRequest
    descriptor: PackageDescriptor


@dataclass(frozen=True)
class PackageMetadataResponse:
    """Outcome of a metadata lookup; check ``resolved`` before reading fields."""
    request: ResolutionRequest
    descriptor: Optional[PackageDescriptor] = None
    dependency_graph: Optional["DependencyGraph[PackageDescriptor]"] = field(
        default=None, compare=False, hash=False
    )

    @classmethod
    def unresolved(cls, request: ResolutionRequest) -> "PackageMetadataResponse":
        return cls(request=request)

    @property
    def resolved(self) -> bool:
        return self.descriptor is not None
