"""Exception hierarchy for pkgresolve."""


class PkgResolveError(Exception):
    """Base exception for all pkgresolve errors."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)


class RepositoryConfigError(PkgResolveError):
    """Raised when a repository cannot be constructed from its configuration."""


class RemoteClientError(PkgResolveError):
    """Raised by a remote client on transport, auth or not-found failures."""


class ManifestError(PkgResolveError):
    """Raised when a cached package manifest is missing or malformed."""
