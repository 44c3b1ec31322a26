"""Remote artifact repository clients.

``MavenRemoteClient`` talks to a Maven-layout HTTP repository where packages
live at ``<url>/<org>/<name>/<version>/<name>-<version>.bala`` and the version
listing is ``<url>/<org>/<name>/maven-metadata.xml``.
"""
from __future__ import annotations

import abc
import logging
import os
import xml.etree.ElementTree as ET
from typing import List, Optional

import requests

from ..common import http_client
from ..common.logging_utils import extra_context, safe_url
from ..config import ProxyConfig, RepositoryConfig
from ..constants import Constants
from ..exceptions import RemoteClientError

logger = logging.getLogger(__name__)


class RemoteClient(abc.ABC):
    """Lists versions of and pulls artifacts from a remote repository."""

    @abc.abstractmethod
    def list_versions(self, org: str, name: str, cache_root_hint: Optional[str] = None) -> List[str]:
        """Return raw version strings; raises RemoteClientError on failure."""

    @abc.abstractmethod
    def pull(self, org: str, name: str, version: str, destination_dir: str) -> None:
        """Download the artifact to ``<dest>/<org>/<name>/<version>/<name>-<version>.bala``.

        Raises RemoteClientError on transport, auth or not-found failure.
        """


def artifact_file_name(name: str, version: str) -> str:
    return f"{name}-{version}{Constants.BALA_EXTENSION}"


def parse_maven_metadata(text: str) -> List[str]:
    """Extract ``versioning/versions/version`` entries from maven-metadata.xml.

    Raises:
        RemoteClientError: If the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise RemoteClientError(f"malformed {Constants.MAVEN_METADATA_XML}: {exc}") from exc

    versions = []
    versioning = root.find("versioning")
    if versioning is not None:
        versions_elem = versioning.find("versions")
        if versions_elem is not None:
            for version_elem in versions_elem.findall("version"):
                ver_text = version_elem.text
                if ver_text and ver_text.strip():
                    versions.append(ver_text.strip())
    return versions


class MavenRemoteClient(RemoteClient):
    """HTTP client for a single Maven-layout repository."""

    def __init__(self, session: Optional[requests.Session] = None):
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", Constants.USER_AGENT)
        self._repository: Optional[RepositoryConfig] = None

    @property
    def repository(self) -> Optional[RepositoryConfig]:
        return self._repository

    def add_repository(self, repo_id: str, url: str, username: str = "", password: str = "") -> None:
        """Register the repository, with basic auth only when both credentials are set."""
        self._repository = RepositoryConfig(id=repo_id, url=url.rstrip("/"), username=username, password=password)
        if self._repository.has_credentials:
            self._session.auth = (username, password)
        else:
            self._session.auth = None

    def set_proxy(self, proxy: ProxyConfig) -> None:
        """Route both http and https traffic through ``proxy`` when it is enabled."""
        proxy_url = proxy.url()
        if proxy_url is None:
            self._session.proxies.clear()
            return
        self._session.proxies.update({"http": proxy_url, "https": proxy_url})

    def _base_url(self) -> str:
        if self._repository is None or not self._repository.url:
            raise RemoteClientError("no remote repository configured")
        return self._repository.url

    def _package_url(self, org: str, name: str) -> str:
        return f"{self._base_url()}/{org}/{name}"

    def list_versions(self, org: str, name: str, cache_root_hint: Optional[str] = None) -> List[str]:
        url = f"{self._package_url(org, name)}/{Constants.MAVEN_METADATA_XML}"
        res = http_client.safe_get(self._session, url, context="maven")

        if res.status_code == 404:
            logger.debug(
                "No remote versions",
                extra=extra_context(event="list_versions", outcome="not_found", package=f"{org}/{name}"),
            )
            return []
        if res.status_code in (401, 403):
            raise RemoteClientError(f"not authorized to read {safe_url(url)} ({res.status_code})")
        if res.status_code != 200:
            raise RemoteClientError(f"unexpected status {res.status_code} from {safe_url(url)}")

        versions = parse_maven_metadata(res.text)
        if cache_root_hint:
            self._store_metadata(cache_root_hint, org, name, res.text)
        return versions

    def _store_metadata(self, cache_root: str, org: str, name: str, text: str) -> None:
        """Keep a copy of the last listing beside the cached packages."""
        target = os.path.join(cache_root, org, name, Constants.MAVEN_METADATA_XML)
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, "w", encoding="utf-8") as fh:
                fh.write(text)
        except OSError as exc:
            logger.debug("Could not store %s: %s", target, exc)

    def pull(self, org: str, name: str, version: str, destination_dir: str) -> None:
        file_name = artifact_file_name(name, version)
        url = f"{self._package_url(org, name)}/{version}/{file_name}"
        destination = os.path.join(destination_dir, org, name, version, file_name)
        written = http_client.download_file(self._session, url, destination, context="maven")
        logger.debug(
            "Pulled artifact",
            extra=extra_context(
                event="pull",
                outcome="success",
                package=f"{org}/{name}",
                version=version,
                target=safe_url(url),
                context=f"{written} bytes",
            ),
        )
