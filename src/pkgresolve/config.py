"""Repository and proxy settings.

Settings are read once from a YAML file and passed around as immutable values;
nothing here consults process-wide state after loading.

Example ``settings.yaml``::

    proxy:
      host: proxy.internal
      port: 3128
      username: alice
      password: secret
    repositories:
      - id: internal
        url: https://repo.example.com/maven2
        username: ci
        password: token
"""

from __future__ import annotations

import logging
import os
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import yaml

from .exceptions import RepositoryConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProxyConfig:
    """HTTP proxy settings; an empty host means no proxy."""
    host: str = ""
    port: int = 0
    username: str = ""
    password: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def url(self) -> Optional[str]:
        """Proxy URL usable as a ``requests`` proxies value, or None."""
        if not self.enabled:
            return None
        auth = ""
        if self.username and self.password:
            user = urllib.parse.quote(self.username, safe="")
            password = urllib.parse.quote(self.password, safe="")
            auth = f"{user}:{password}@"
        port = f":{self.port}" if self.port else ""
        return f"http://{auth}{self.host}{port}"


@dataclass(frozen=True)
class RepositoryConfig:
    """A remote artifact repository."""
    id: str
    url: str
    username: str = ""
    password: str = ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)


@dataclass(frozen=True)
class Settings:
    """User-level settings: proxy plus named repositories."""
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    repositories: Tuple[RepositoryConfig, ...] = ()

    def repository(self, repo_id: str) -> Optional[RepositoryConfig]:
        for repo in self.repositories:
            if repo.id == repo_id:
                return repo
        return None


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_proxy(data: Any) -> ProxyConfig:
    if not isinstance(data, dict):
        return ProxyConfig()
    try:
        port = int(data.get("port") or 0)
    except (TypeError, ValueError) as exc:
        raise RepositoryConfigError(f"invalid proxy port: {data.get('port')!r}") from exc
    return ProxyConfig(
        host=_as_str(data.get("host")),
        port=port,
        username=_as_str(data.get("username")),
        password=_as_str(data.get("password")),
    )


def _parse_repositories(data: Any) -> Tuple[RepositoryConfig, ...]:
    if not isinstance(data, list):
        return ()
    repos = []
    for entry in data:
        if not isinstance(entry, dict):
            logger.warning("Ignoring malformed repository entry: %r", entry)
            continue
        repos.append(
            RepositoryConfig(
                id=_as_str(entry.get("id")),
                url=_as_str(entry.get("url")),
                username=_as_str(entry.get("username")),
                password=_as_str(entry.get("password")),
            )
        )
    return tuple(repos)


def settings_from_dict(data: Dict[str, Any]) -> Settings:
    """Build Settings from an already-parsed mapping."""
    return Settings(
        proxy=_parse_proxy(data.get("proxy")),
        repositories=_parse_repositories(data.get("repositories")),
    )


def load_settings(path: Optional[str]) -> Settings:
    """Load settings from a YAML file.

    A missing path or file yields default settings; malformed YAML is fatal.

    Raises:
        RepositoryConfigError: If the file cannot be read or parsed.
    """
    if not path:
        return Settings()

    if not os.path.isfile(path):
        logger.warning("Settings file not found: %s", path)
        return Settings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise RepositoryConfigError(f"invalid settings file {path}: {exc}") from exc
    except OSError as exc:
        raise RepositoryConfigError(f"cannot read settings file {path}: {exc}") from exc

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise RepositoryConfigError(f"settings file {path} must contain a mapping")
    logger.debug("Loaded settings from: %s", path)
    return settings_from_dict(data)
