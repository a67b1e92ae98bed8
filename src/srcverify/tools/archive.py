"""Tarball download, extraction and checksumming.

The registry publishes a SHA-1 ``shasum`` for every tarball, so that is the
digest computed here. Extraction uses tarfile's ``data`` filter, which
rejects absolute paths, links escaping the target and device files.
Blocking work runs in a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import tarfile
from pathlib import Path

import httpx

from srcverify.exceptions import PackagingError
from srcverify.registry.http_client import DEFAULT_TIMEOUT, download_file
from srcverify.tools.base import ArchiveTool

logger = logging.getLogger(__name__)

CHECKSUM_ALGORITHM = "sha1"

_CHUNK = 1 << 16


class TarballTool(ArchiveTool):
    """``ArchiveTool`` for gzipped npm tarballs."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def download(self, url: str, path: Path) -> None:
        logger.info("Downloading %s", url)
        await download_file(url, path, timeout=self._timeout, transport=self._transport)

    async def unpack(self, archive: Path, directory: Path) -> None:
        await asyncio.to_thread(_extract, archive, directory)

    async def checksum(self, archive: Path) -> str:
        return await asyncio.to_thread(file_digest, archive)


def file_digest(path: Path, algorithm: str = CHECKSUM_ALGORITHM) -> str:
    """Hex digest of a file's contents."""
    digest = hashlib.new(algorithm)
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _extract(archive: Path, directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(archive, "r:*") as tar:
            tar.extractall(directory, filter="data")
    except (tarfile.TarError, OSError) as exc:
        raise PackagingError(f"could not unpack {archive.name}: {exc}") from exc
