"""npm registry access: metadata lookup and tarball transfer.

Public API::

    from srcverify.registry import MetadataClient, NpmMetadataClient
"""

from __future__ import annotations

from srcverify.registry.npm_client import MetadataClient, NpmMetadataClient

__all__ = [
    "MetadataClient",
    "NpmMetadataClient",
]
