"""Token parsing utilities for package resolution."""

from typing import List, Optional, Tuple

from .models import (
    ImportModuleRequest,
    PackageDependencyScope,
    PackageIdentity,
    PackageVersion,
    ResolutionRequest,
)


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule."""
    s = s.strip()
    if ':' not in s:
        return s, None
    identifier, spec_part = s.rsplit(':', 1)
    spec_part = spec_part.strip()
    return identifier.strip(), spec_part if spec_part else None


def _split_org(identifier: str) -> Tuple[str, str]:
    """Split ``org/rest`` and validate both halves are present."""
    if identifier.count('/') != 1:
        raise ValueError(f"expected 'org/name', got '{identifier}'")
    org, rest = (part.strip() for part in identifier.split('/', 1))
    if not org or not rest:
        raise ValueError(f"expected 'org/name', got '{identifier}'")
    return org, rest


def parse_package_token(
    token: str,
    repository_name: Optional[str] = None,
    scope: PackageDependencyScope = PackageDependencyScope.DEFAULT,
) -> ResolutionRequest:
    """Parse ``org/name[:version]`` into a ResolutionRequest.

    A missing version or the literal ``latest`` leaves the version unset.
    """
    id_part, spec = tokenize_rightmost_colon(token)
    org, name = _split_org(id_part)

    version = None
    if spec is not None and spec.lower() != 'latest':
        version = PackageVersion.from_string(spec)

    return ResolutionRequest(
        identity=PackageIdentity(org, name),
        version=version,
        repository_name=repository_name,
        scope=scope,
    )


def parse_import_token(token: str) -> ImportModuleRequest:
    """Parse ``org/module.path`` into an ImportModuleRequest."""
    org, module_name = _split_org(token.strip())
    return ImportModuleRequest(org=org, module_name=module_name)


def possible_package_names(module_name: str) -> List[str]:
    """List package names that could provide ``module_name``.

    A package may export sub-modules, so every dotted prefix of the module
    path is a candidate. Most specific first: ``a.b.c`` -> ``a.b.c, a.b, a``.
    """
    parts = [p for p in module_name.split('.') if p]
    return ['.'.join(parts[:i]) for i in range(len(parts), 0, -1)]
