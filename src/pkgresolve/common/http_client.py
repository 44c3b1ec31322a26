"""Shared HTTP helpers used by remote repository clients.

Encapsulates request/timeout error handling so client modules avoid
duplicating try/except blocks. Transport failures surface as
``RemoteClientError``; there is no retry loop at this layer.
"""
from __future__ import annotations

import logging
import os
from typing import Any

import requests

from ..constants import Constants
from ..exceptions import RemoteClientError
from .logging_utils import Timer, extra_context, is_debug_enabled, safe_url

logger = logging.getLogger(__name__)


def safe_get(session: requests.Session, url: str, *, context: str, **kwargs: Any) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        session: Session carrying auth, proxies and default headers.
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "maven").
        **kwargs: Passed through to ``session.get``.

    Returns:
        requests.Response: The HTTP response object.

    Raises:
        RemoteClientError: On timeout or connection failure.
    """
    safe_target = safe_url(url)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            res = session.get(url, timeout=Constants.REQUEST_TIMEOUT, **kwargs)
        except requests.Timeout as exc:
            logger.warning(
                "%s request timed out after %s seconds",
                context,
                Constants.REQUEST_TIMEOUT,
            )
            raise RemoteClientError(f"{context} request timed out: {safe_target}") from exc
        except requests.RequestException as exc:  # includes ConnectionError
            logger.warning("%s connection error: %s", context, exc)
            raise RemoteClientError(f"{context} connection error: {exc}") from exc

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return res


def download_file(session: requests.Session, url: str, destination: str, *, context: str) -> int:
    """Stream ``url`` into ``destination``, creating parent directories.

    Returns:
        Number of bytes written.

    Raises:
        RemoteClientError: On transport failure, non-200 status or write error.
    """
    res = safe_get(session, url, context=context, stream=True)
    try:
        if res.status_code != 200:
            raise RemoteClientError(
                f"{context} download failed with status {res.status_code}: {safe_url(url)}"
            )
        written = 0
        try:
            os.makedirs(os.path.dirname(destination), exist_ok=True)
            with open(destination, "wb") as fh:
                for chunk in res.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
                        written += len(chunk)
        except requests.RequestException as exc:
            raise RemoteClientError(f"{context} download interrupted: {exc}") from exc
        except OSError as exc:
            raise RemoteClientError(f"{context} could not write {destination}: {exc}") from exc
        return written
    finally:
        res.close()
