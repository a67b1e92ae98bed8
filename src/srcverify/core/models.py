"""Data models for the verification pipeline.

``PackageMetadata`` is the immutable input to a pipeline run, built from a
registry version document. ``VerificationResult`` is its output and the unit
persisted by the result store. Both are decoupled from the pipeline steps so
that the CLI and store can import them without pulling in tool code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from srcverify.core.identifier import PackageIdentifier


# ---------------------------------------------------------------------------
# Registry metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Repository:
    """Declared source repository of a package.

    Attributes:
        kind: Version control system, e.g. ``"git"``.
        url: Remote URL as published (may carry a ``git+`` prefix).
    """

    kind: str
    url: str

    @property
    def clone_url(self) -> str:
        """URL suitable for ``git clone``, without the npm ``git+`` prefix."""
        return self.url[4:] if self.url.startswith("git+") else self.url


@dataclass(frozen=True)
class Distribution:
    """Where the registry serves the published tarball and its SHA-1."""

    checksum: str
    archive_url: str


@dataclass(frozen=True)
class PackageMetadata:
    """Registry metadata for one concrete package version.

    Attributes:
        name: Package name.
        version: Concrete version.
        source_commit: Commit the package was published from (``gitHead``).
        scripts: Declared ``package.json`` scripts; read-only.
        repository: Declared source repository, if any.
        distribution: Published tarball location and checksum.
    """

    name: str
    version: str
    distribution: Distribution
    source_commit: str | None = None
    scripts: Mapping[str, str] = field(default_factory=dict)
    repository: Repository | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "scripts", MappingProxyType(dict(self.scripts)))

    @property
    def identifier(self) -> PackageIdentifier:
        """The resolved identifier this metadata describes."""
        return PackageIdentifier(self.name, self.version)

    @classmethod
    def from_registry(cls, document: Mapping[str, Any]) -> PackageMetadata:
        """Build metadata from an npm registry version document.

        A ``repository`` given as a bare string is taken to be a git URL,
        and missing ``scripts`` default to an empty mapping.
        """
        repo_raw = document.get("repository")
        repository: Repository | None = None
        if isinstance(repo_raw, str) and repo_raw:
            repository = Repository(kind="git", url=repo_raw)
        elif isinstance(repo_raw, Mapping) and repo_raw.get("url"):
            repository = Repository(
                kind=str(repo_raw.get("type", "")),
                url=str(repo_raw["url"]),
            )

        dist = document.get("dist") or {}
        scripts = document.get("scripts") or {}
        if not isinstance(scripts, Mapping):
            scripts = {}

        return cls(
            name=str(document["name"]),
            version=str(document["version"]),
            source_commit=document.get("gitHead") or None,
            scripts={str(k): str(v) for k, v in scripts.items()},
            repository=repository,
            distribution=Distribution(
                checksum=str(dist.get("shasum", "")),
                archive_url=str(dist.get("tarball", "")),
            ),
        )


# ---------------------------------------------------------------------------
# Verification results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileDiff:
    """Unified diff of a single file between rebuilt and published trees."""

    file: str
    diff: str


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying one package version.

    ``success=False`` with no diffs means the pipeline could not finish, for
    example because the source could not be located. ``errors`` tells the two
    cases apart.
    """

    package_identifier: str
    name: str
    version: str
    success: bool
    diffs: tuple[FileDiff, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def status(self) -> str:
        """Coarse ``success`` / ``fail`` label."""
        return "success" if self.success else "fail"

    @classmethod
    def failure(cls, metadata_or_id: PackageMetadata | PackageIdentifier,
                errors: list[str] | tuple[str, ...]) -> VerificationResult:
        """A pipeline failure: ``success=False`` and no diffs."""
        ident = (metadata_or_id.identifier
                 if isinstance(metadata_or_id, PackageMetadata) else metadata_or_id)
        return cls(
            package_identifier=str(ident),
            name=ident.name,
            version=ident.version or "",
            success=False,
            errors=tuple(errors),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk JSON shape."""
        return {
            "packageIdentifier": self.package_identifier,
            "name": self.name,
            "version": self.version,
            "success": self.success,
            "diffs": [{"file": d.file, "diff": d.diff} for d in self.diffs],
            "errors": list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VerificationResult:
        """Inverse of ``to_dict``."""
        return cls(
            package_identifier=str(data["packageIdentifier"]),
            name=str(data["name"]),
            version=str(data["version"]),
            success=bool(data["success"]),
            diffs=tuple(
                FileDiff(file=str(d["file"]), diff=str(d["diff"]))
                for d in data.get("diffs", [])
            ),
            errors=tuple(str(e) for e in data.get("errors", [])),
        )
