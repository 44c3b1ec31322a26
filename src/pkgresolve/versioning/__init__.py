"""Version models, locking-mode ranges and token parsing."""

from .models import (
    ImportModuleRequest,
    ImportModuleResponse,
    LockingMode,
    ModuleDescriptor,
    Package,
    PackageDependencyScope,
    PackageDescriptor,
    PackageIdentity,
    PackageMetadataResponse,
    PackageVersion,
    ResolutionOptions,
    ResolutionRequest,
)
from .range import CompatibleRange, VersionRange, compatible_range, filter_to_range, select_latest

__all__ = [
    "CompatibleRange",
    "ImportModuleRequest",
    "ImportModuleResponse",
    "LockingMode",
    "ModuleDescriptor",
    "Package",
    "PackageDependencyScope",
    "PackageDescriptor",
    "PackageIdentity",
    "PackageMetadataResponse",
    "PackageVersion",
    "ResolutionOptions",
    "ResolutionRequest",
    "VersionRange",
    "compatible_range",
    "filter_to_range",
    "select_latest",
]
