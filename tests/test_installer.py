"""Tests for the artifact installer."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import FakeRemoteClient, write_bala

from pkgresolve.repository.installer import ArtifactInstaller, extract_archive


def set_member_flags(path, bits):
    """Set general purpose flag bits on every central directory entry of a zip."""
    data = bytearray(path.read_bytes())
    pos = data.find(b"PK\x01\x02")
    while pos != -1:
        data[pos + 8] |= bits
        pos = data.find(b"PK\x01\x02", pos + 4)
    path.write_bytes(bytes(data))


class ArchiveClient(FakeRemoteClient):
    """Remote that serves a hand-built archive for every pull."""

    def __init__(self, manifest=None, files=None, corrupt=False, flag_bits=0):
        super().__init__()
        self.flag_bits = flag_bits
        self.manifest = manifest
        self.files = files
        self.corrupt = corrupt
        self.destinations = []

    def pull(self, org, name, version, destination_dir):
        self.pull_calls.append((org, name, version))
        self.destinations.append(destination_dir)
        target = Path(destination_dir) / org / name / version / f"{name}-{version}.bala"
        if self.corrupt:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(b"not a zip")
            return
        write_bala(target, self.manifest, self.files)
        if self.flag_bits:
            set_member_flags(target, self.flag_bits)


@pytest.fixture
def repo_location(tmp_path):
    return tmp_path / "cache" / "bala"


class TestFetchIntoCache:
    """End-to-end fetch behavior."""

    def test_success_copies_to_platform_dir(self, remote, repo_location):
        remote.publish("acme", "http", "1.0.0", platform="java21", dependencies=[])
        result = ArtifactInstaller(remote, repo_location).fetch_into_cache("acme", "http", "1.0.0")

        target = repo_location / "acme" / "http" / "1.0.0" / "java21"
        assert result.ok
        assert result.error is None
        assert result.path == target
        manifest = json.loads((target / "package.json").read_text(encoding="utf-8"))
        assert manifest["platform"] == "java21"
        assert (target / "dependency-graph.json").is_file()

    def test_remote_error_is_reported_not_raised(self, remote, repo_location):
        result = ArtifactInstaller(remote, repo_location).fetch_into_cache("acme", "missing", "1.0.0")
        assert not result.ok
        assert "cannot pull" in result.error
        assert not repo_location.exists()

    def test_missing_platform_field_fails(self, repo_location):
        client = ArchiveClient(manifest={"name": "http"})
        result = ArtifactInstaller(client, repo_location).fetch_into_cache("acme", "http", "1.0.0")
        assert not result.ok
        assert "platform" in result.error

    def test_missing_manifest_fails(self, repo_location):
        client = ArchiveClient(manifest=None, files={"README.md": "hi"})
        result = ArtifactInstaller(client, repo_location).fetch_into_cache("acme", "http", "1.0.0")
        assert not result.ok
        assert "FileNotFoundError" in result.error

    def test_corrupt_archive_fails(self, repo_location):
        client = ArchiveClient(corrupt=True)
        result = ArtifactInstaller(client, repo_location).fetch_into_cache("acme", "http", "1.0.0")
        assert not result.ok
        assert "BadZipFile" in result.error

    def test_each_fetch_uses_a_fresh_temp_dir(self, repo_location):
        client = ArchiveClient(manifest={"platform": "any"})
        installer = ArtifactInstaller(client, repo_location)
        installer.fetch_into_cache("acme", "http", "1.0.0")
        installer.fetch_into_cache("acme", "http", "1.0.0")
        assert len(set(client.destinations)) == 2
        assert all(Path(d).name.startswith("pkgresolve-") for d in client.destinations)

    def test_refetch_overwrites_existing_copy(self, repo_location):
        client = ArchiveClient(manifest={"platform": "any"}, files={"src/a.txt": "new"})
        target = repo_location / "acme" / "http" / "1.0.0" / "any"
        target.mkdir(parents=True)
        (target / "stale.txt").write_text("old", encoding="utf-8")
        result = ArtifactInstaller(client, repo_location).fetch_into_cache("acme", "http", "1.0.0")
        assert result.ok
        assert (target / "src" / "a.txt").read_text(encoding="utf-8") == "new"

    def test_copy_failure_is_reported(self, remote, repo_location):
        remote.publish("acme", "http", "1.0.0")
        with patch("pkgresolve.repository.installer.shutil.copytree", side_effect=OSError("disk full")):
            result = ArtifactInstaller(remote, repo_location).fetch_into_cache("acme", "http", "1.0.0")
        assert not result.ok
        assert "disk full" in result.error

    @pytest.mark.parametrize("bits, reason", [
        (0x01, "encrypted"),
        (0x20, "compressed patched data"),
    ])
    def test_unsupported_archive_members_fail(self, repo_location, bits, reason):
        client = ArchiveClient(manifest={"platform": "any"}, flag_bits=bits)
        result = ArtifactInstaller(client, repo_location).fetch_into_cache("acme", "http", "1.0.0")
        assert not result.ok
        assert reason in result.error
        assert not repo_location.exists()

    @pytest.mark.parametrize("platform", ["../../../../escaped", "..", "java21/../..", "a\\b"])
    def test_platform_must_be_a_single_path_segment(self, tmp_path, repo_location, platform):
        client = ArchiveClient(manifest={"platform": platform})
        result = ArtifactInstaller(client, repo_location).fetch_into_cache("acme", "http", "1.0.0")
        assert not result.ok
        assert "invalid platform" in result.error
        assert not (tmp_path / "escaped").exists()
        assert not repo_location.exists()


class TestExtractArchive:
    """Archive extraction safety."""

    def test_rejects_path_traversal(self, tmp_path):
        archive = write_bala(tmp_path / "evil.bala", {"platform": "any"}, {"../escape.txt": "x"})
        with pytest.raises(Exception, match="escapes"):
            extract_archive(archive, tmp_path / "out")
        assert not (tmp_path / "escape.txt").exists()

    def test_path_traversal_fails_fetch(self, repo_location):
        client = ArchiveClient(manifest={"platform": "any"}, files={"../../escape.txt": "x"})
        result = ArtifactInstaller(client, repo_location).fetch_into_cache("acme", "http", "1.0.0")
        assert not result.ok
        assert "escapes" in result.error
