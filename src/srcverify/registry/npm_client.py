"""npm registry metadata client.

Looks up the version document of a package (``/<name>/<version>``) and turns
it into ``PackageMetadata``. An identifier without a version is looked up
against the ``latest`` dist-tag, which is also how ``resolve`` pins an
unversioned identifier.

Usage::

    client = NpmMetadataClient()
    metadata = await client.fetch(parse_identifier("left-pad@1.3.0"))
    pinned = await client.resolve(parse_identifier("left-pad"))
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from urllib.parse import quote

import httpx

from srcverify.config import DEFAULT_REGISTRY_URL
from srcverify.core.identifier import PackageIdentifier
from srcverify.core.models import PackageMetadata
from srcverify.exceptions import NotFound, RegistryError
from srcverify.registry.http_client import DEFAULT_TIMEOUT, fetch_json

logger = logging.getLogger(__name__)

LATEST_TAG = "latest"


class MetadataClient(ABC):
    """Registry lookup used by the pipeline and the coordinator."""

    @abstractmethod
    async def fetch(self, identifier: PackageIdentifier) -> PackageMetadata:
        """Fetch metadata for ``identifier`` (``latest`` if unversioned).

        Raises:
            NotFound: If the package or version does not exist.
            RegistryError: For any other registry failure.
        """

    async def resolve(self, identifier: PackageIdentifier) -> PackageIdentifier:
        """Pin ``identifier`` to a concrete version.

        Identifiers that already carry an exact version are returned
        unchanged, so ``resolve`` is idempotent. Dist-tags and ranges are
        looked up in the registry.
        """
        if identifier.is_resolved:
            return identifier
        metadata = await self.fetch(identifier)
        return metadata.identifier


class NpmMetadataClient(MetadataClient):
    """``MetadataClient`` backed by the npm registry HTTP API."""

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._registry_url = registry_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def version_url(self, identifier: PackageIdentifier) -> str:
        """URL of the version document for ``identifier``."""
        version = identifier.version or LATEST_TAG
        return f"{self._registry_url}/{quote(identifier.name, safe='@')}/{quote(version, safe='')}"

    async def fetch(self, identifier: PackageIdentifier) -> PackageMetadata:
        url = self.version_url(identifier)
        try:
            document = await fetch_json(url, timeout=self._timeout, transport=self._transport)
        except NotFound:
            raise NotFound(f"{identifier} is not in the npm registry") from None
        try:
            return PackageMetadata.from_registry(document)
        except (KeyError, TypeError, AttributeError) as exc:
            raise RegistryError(f"malformed registry metadata for {identifier}: {exc}") from exc
