"""Locking-mode compatibility ranges and latest-version selection.

Pure functions: no I/O and no state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Set

from .models import LockingMode, PackageVersion


class CompatibleRange(Enum):
    """Band of versions acceptable relative to a minimum version."""
    EXACT = "exact"
    LOCK_MINOR = "lock_minor"
    LOCK_MAJOR = "lock_major"
    LATEST = "latest"


_MODE_TO_RANGE = {
    LockingMode.HARD: CompatibleRange.EXACT,
    LockingMode.MEDIUM: CompatibleRange.LOCK_MINOR,
    LockingMode.SOFT: CompatibleRange.LOCK_MAJOR,
    LockingMode.NONE: CompatibleRange.LATEST,
}


@dataclass(frozen=True)
class VersionRange:
    """A compatibility band anchored at an optional minimum version."""
    kind: CompatibleRange
    minimum: Optional[PackageVersion] = None

    @property
    def unconstrained(self) -> bool:
        return self.kind == CompatibleRange.LATEST or self.minimum is None

    def contains(self, version: PackageVersion) -> bool:
        """Return True if ``version`` falls inside this range."""
        if self.unconstrained:
            return True
        minimum = self.minimum
        if self.kind == CompatibleRange.EXACT:
            return version == minimum
        if version.major != minimum.major or version < minimum:
            return False
        if self.kind == CompatibleRange.LOCK_MINOR:
            return version.minor == minimum.minor
        return True


def compatible_range(min_version: Optional[PackageVersion], mode: LockingMode) -> VersionRange:
    """Compute the acceptable range for ``mode`` anchored at ``min_version``.

    Without a minimum (no lock record) the range is unconstrained for every mode.
    """
    if min_version is None:
        return VersionRange(CompatibleRange.LATEST)
    return VersionRange(_MODE_TO_RANGE[mode], min_version)


def filter_to_range(candidates: Iterable[PackageVersion], version_range: VersionRange) -> Set[PackageVersion]:
    """Return the candidates inside ``version_range`` as a set."""
    return {v for v in candidates if version_range.contains(v)}


def select_latest(candidates: Iterable[PackageVersion]) -> PackageVersion:
    """Pick the highest version by semver precedence.

    Raises:
        ValueError: If ``candidates`` is empty.
    """
    versions = list(candidates)
    if not versions:
        raise ValueError("cannot select the latest version of an empty set")
    latest = versions[0]
    for candidate in versions[1:]:
        if candidate > latest:
            latest = candidate
    return latest
