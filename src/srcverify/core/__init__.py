"""Core verification engine: data model, pipeline steps and coordination.

Submodules, leaf first:

- ``identifier``: ``name@version`` parsing.
- ``models``: ``PackageMetadata`` and ``VerificationResult``.
- ``workspace``: on-disk directory naming scheme.
- ``locator``, ``builder``, ``comparator``: the pipeline steps.
- ``pipeline``: step composition and domain-error capture.
- ``store``, ``cache``, ``coordinator``: persistence, LRU caching and job
  deduplication.
- ``dependencies``: transitive dependency listing.

Only the data model is re-exported here; import the steps from their
submodules.
"""

from srcverify.core.identifier import PackageIdentifier, parse_identifier, require_version
from srcverify.core.models import (
    Distribution,
    FileDiff,
    PackageMetadata,
    Repository,
    VerificationResult,
)

__all__ = [
    "Distribution",
    "FileDiff",
    "PackageIdentifier",
    "PackageMetadata",
    "Repository",
    "VerificationResult",
    "parse_identifier",
    "require_version",
]
