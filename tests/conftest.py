"""Shared fixtures: on-disk cache builders and an in-memory remote client."""

import json
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from pkgresolve.exceptions import RemoteClientError
from pkgresolve.repository.remote_client import RemoteClient, artifact_file_name


def write_cached_package(
    bala_root: Path,
    org: str,
    name: str,
    version: str,
    platform: str = "any",
    modules: Optional[List[str]] = None,
    dependencies: Optional[Sequence[Tuple[str, str, str]]] = None,
) -> Path:
    """Lay out a cached package the way the installer leaves it."""
    pkg_dir = bala_root / org / name / version / platform
    pkg_dir.mkdir(parents=True, exist_ok=True)
    manifest = {"organization": org, "name": name, "version": version, "platform": platform}
    if modules is not None:
        manifest["modules"] = [{"name": m} for m in modules]
    (pkg_dir / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    if dependencies is not None:
        graph = {
            "packages": [
                {
                    "org": org,
                    "name": name,
                    "version": version,
                    "dependencies": [
                        {"org": d_org, "name": d_name, "version": d_version}
                        for d_org, d_name, d_version in dependencies
                    ],
                }
            ]
        }
        (pkg_dir / "dependency-graph.json").write_text(json.dumps(graph), encoding="utf-8")
    return pkg_dir


def write_bala(path: Path, manifest: Optional[Dict] = None, files: Optional[Dict[str, str]] = None) -> Path:
    """Create a .bala zip archive with an optional package.json and extra files."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        if manifest is not None:
            zf.writestr("package.json", json.dumps(manifest))
        for member, content in (files or {}).items():
            zf.writestr(member, content)
    return path


class FakeRemoteClient(RemoteClient):
    """In-memory remote: versions per package and artifacts per version."""

    def __init__(self):
        self.versions: Dict[Tuple[str, str], List[str]] = {}
        self.artifacts: Dict[Tuple[str, str, str], Dict] = {}
        self.failing_listings: set = set()
        self.failing_pulls: set = set()
        self.list_calls: List[Tuple[str, str]] = []
        self.pull_calls: List[Tuple[str, str, str]] = []

    def publish(self, org, name, version, platform="any", dependencies=None, modules=None):
        self.versions.setdefault((org, name), []).append(version)
        manifest = {"organization": org, "name": name, "version": version, "platform": platform}
        if modules is not None:
            manifest["modules"] = [{"name": m} for m in modules]
        self.artifacts[(org, name, version)] = {
            "manifest": manifest,
            "dependencies": dependencies,
        }

    def list_versions(self, org, name, cache_root_hint=None):
        self.list_calls.append((org, name))
        if (org, name) in self.failing_listings:
            raise RemoteClientError(f"listing {org}/{name} failed")
        return list(self.versions.get((org, name), []))

    def pull(self, org, name, version, destination_dir):
        self.pull_calls.append((org, name, version))
        key = (org, name, version)
        if key in self.failing_pulls or key not in self.artifacts:
            raise RemoteClientError(f"cannot pull {org}/{name}:{version}")
        artifact = self.artifacts[key]
        files = {}
        if artifact["dependencies"] is not None:
            files["dependency-graph.json"] = json.dumps({
                "packages": [{
                    "org": org,
                    "name": name,
                    "version": version,
                    "dependencies": [
                        {"org": o, "name": n, "version": v} for o, n, v in artifact["dependencies"]
                    ],
                }]
            })
        target = Path(destination_dir) / org / name / version / artifact_file_name(name, version)
        write_bala(target, artifact["manifest"], files)

    @property
    def remote_calls(self) -> int:
        return len(self.list_calls) + len(self.pull_calls)


@pytest.fixture
def cache_dir(tmp_path):
    """An existing, empty cache directory."""
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def bala_root(cache_dir):
    return cache_dir / "bala"


@pytest.fixture
def remote():
    return FakeRemoteClient()


@pytest.fixture(autouse=True)
def _isolated_tempdir(tmp_path, monkeypatch):
    """Keep installer temp directories inside the test's tmp_path."""
    tmp = tmp_path / "tmp"
    tmp.mkdir()
    monkeypatch.setenv("TMPDIR", os.fspath(tmp))
    monkeypatch.setattr(tempfile, "tempdir", os.fspath(tmp))
