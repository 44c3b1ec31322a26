"""Local cache, remote client and the cache-first repository built on them."""

from .cache_store import CacheStore, FileSystemCacheStore
from .installer import ArtifactInstaller, FetchResult
from .orchestrator import RemotePackageRepository
from .remote_client import MavenRemoteClient, RemoteClient

__all__ = [
    "ArtifactInstaller",
    "CacheStore",
    "FetchResult",
    "FileSystemCacheStore",
    "MavenRemoteClient",
    "RemoteClient",
    "RemotePackageRepository",
]
