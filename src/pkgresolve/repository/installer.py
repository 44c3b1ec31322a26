"""Download, extract and relocate remote artifacts into the local cache."""
from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..common.logging_utils import Timer, extra_context
from ..constants import Constants
from ..exceptions import RemoteClientError
from .remote_client import RemoteClient, artifact_file_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a fetch; ``path`` is the cache directory on success."""
    ok: bool
    path: Optional[Path] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, path: Path) -> "FetchResult":
        return cls(ok=True, path=path)

    @classmethod
    def failure(cls, error: str) -> "FetchResult":
        return cls(ok=False, error=error)


class _ExtractionError(Exception):
    """Internal: archive content or manifest is unusable."""


def extract_archive(archive: Path, destination: Path) -> None:
    """Extract a zip archive, refusing members that escape ``destination``."""
    destination.mkdir(parents=True, exist_ok=True)
    root = destination.resolve()
    with zipfile.ZipFile(archive) as zf:
        for member in zf.namelist():
            target = (destination / member).resolve()
            if target != root and root not in target.parents:
                raise _ExtractionError(f"archive member escapes extraction dir: {member}")
        try:
            zf.extractall(destination)
        except (RuntimeError, NotImplementedError) as exc:
            # encrypted members, unsupported compression
            raise _ExtractionError(f"cannot extract {archive.name}: {exc}") from exc


def read_platform(manifest_path: Path) -> str:
    """Return the ``platform`` field of an extracted package manifest."""
    with open(manifest_path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    platform = data.get(Constants.PLATFORM) if isinstance(data, dict) else None
    if not platform or not isinstance(platform, str):
        raise _ExtractionError(f"{manifest_path} has no '{Constants.PLATFORM}' field")
    if "/" in platform or "\\" in platform or platform in (".", ".."):
        raise _ExtractionError(f"invalid platform {platform!r} in {manifest_path}")
    return platform


class ArtifactInstaller:
    """Turns a remote artifact into a cache-resident, platform-partitioned tree.

    Each fetch works in its own temporary directory, so concurrent fetches of
    different packages do not interfere. Temporary state is not cleaned up
    on failure.
    """

    def __init__(self, client: RemoteClient, repo_location: Path):
        self._client = client
        self._repo_location = Path(repo_location)

    @property
    def repo_location(self) -> Path:
        return self._repo_location

    def _make_temp_dir(self) -> Path:
        prefix = f"{Constants.TEMP_DIR_PREFIX}{time.time_ns()}-"
        return Path(tempfile.mkdtemp(prefix=prefix))

    def fetch_into_cache(self, org: str, name: str, version: str) -> FetchResult:
        """Pull ``org/name:version`` and copy it to ``<repo>/org/name/version/<platform>``."""
        with Timer() as timer:
            try:
                tmp_dir = self._make_temp_dir()
                self._client.pull(org, name, version, str(tmp_dir))

                version_dir = tmp_dir / org / name / version
                archive = version_dir / artifact_file_name(name, version)
                extraction_dir = version_dir / Constants.PLATFORM
                extract_archive(archive, extraction_dir)

                platform = read_platform(extraction_dir / Constants.PACKAGE_JSON)
                target = self._repo_location / org / name / version / platform
                if self._repo_location.resolve() not in target.resolve().parents:
                    raise _ExtractionError(f"install target escapes the cache: {target}")
                shutil.copytree(extraction_dir, target, dirs_exist_ok=True)
            except (RemoteClientError, _ExtractionError) as exc:
                return self._failed(org, name, version, str(exc))
            except (OSError, zipfile.BadZipFile, json.JSONDecodeError, UnicodeDecodeError) as exc:
                return self._failed(org, name, version, f"{type(exc).__name__}: {exc}")

        logger.info(
            "Fetched %s/%s:%s into cache",
            org,
            name,
            version,
            extra=extra_context(
                event="fetch",
                component="installer",
                outcome="success",
                target=os.fspath(target),
                duration_ms=timer.duration_ms(),
            ),
        )
        return FetchResult.success(target)

    def _failed(self, org: str, name: str, version: str, error: str) -> FetchResult:
        logger.warning(
            "Fetching %s/%s:%s failed: %s",
            org,
            name,
            version,
            error,
            extra=extra_context(event="fetch", component="installer", outcome="failure"),
        )
        return FetchResult.failure(error)
