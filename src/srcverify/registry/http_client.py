"""Shared async HTTP client utilities for the npm registry.

Provides a thin wrapper around ``httpx.AsyncClient`` with standardised
timeouts, user-agent headers, and error mapping. The metadata client and
the tarball downloader both go through this module so that HTTP behaviour
is consistent and testable.

Unlike a best-effort scanner, verification must not mistake a registry
outage for an empty answer: 404 raises ``NotFound`` and every other failure
raises ``RegistryError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from srcverify import __version__
from srcverify.exceptions import NotFound, RegistryError

logger = logging.getLogger(__name__)

# Timeout for all registry HTTP requests (seconds).
DEFAULT_TIMEOUT: float = 30.0

# User-Agent sent with every request.
USER_AGENT: str = f"srcverify/{__version__}"


def _client(timeout: float, transport: httpx.AsyncBaseTransport | None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


async def fetch_json(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Fetch a URL and parse the response as a JSON object.

    Args:
        url: The URL to fetch.
        timeout: Request timeout in seconds.
        transport: Optional transport override (used by tests).

    Returns:
        Parsed JSON object.

    Raises:
        NotFound: On HTTP 404.
        RegistryError: On any other HTTP error, timeouts, transport errors,
            or a body that is empty or not a JSON object.
    """
    try:
        async with _client(timeout, transport) as client:
            resp = await client.get(url)
    except httpx.TimeoutException as exc:
        logger.warning("Timeout fetching %s", url)
        raise RegistryError(f"timed out fetching {url}") from exc
    except httpx.RequestError as exc:
        logger.warning("Request error for %s: %s", url, exc)
        raise RegistryError(f"request to {url} failed: {exc}") from exc

    if resp.status_code == 404:
        raise NotFound(f"{url} is not in the registry")
    if resp.is_error:
        logger.warning("HTTP %d from %s", resp.status_code, url)
        raise RegistryError(f"registry returned HTTP {resp.status_code} for {url}")
    if not resp.content.strip():
        raise RegistryError(f"registry returned an empty response for {url}")
    try:
        data = resp.json()
    except ValueError as exc:
        raise RegistryError(f"registry returned invalid JSON for {url}") from exc
    if not isinstance(data, dict):
        raise RegistryError(f"registry returned unexpected JSON for {url}")
    return data


async def download_file(
    url: str,
    path: Path,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Stream ``url`` to ``path``.

    The body is written to a sibling ``.part`` file and renamed on
    completion, so an interrupted download never leaves a truncated file
    under the final name.

    Raises:
        NotFound: On HTTP 404.
        RegistryError: On any other HTTP or transport failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    partial = path.with_name(path.name + ".part")
    try:
        async with _client(timeout, transport) as client:
            async with client.stream("GET", url) as resp:
                if resp.status_code == 404:
                    raise NotFound(f"{url} is not in the registry")
                if resp.is_error:
                    raise RegistryError(f"HTTP {resp.status_code} downloading {url}")
                with partial.open("wb") as fh:
                    async for chunk in resp.aiter_bytes():
                        fh.write(chunk)
    except httpx.HTTPError as exc:
        partial.unlink(missing_ok=True)
        logger.warning("Failed to download %s: %s", url, exc)
        raise RegistryError(f"failed to download {url}: {exc}") from exc
    except RegistryError:
        partial.unlink(missing_ok=True)
        raise
    partial.replace(path)
