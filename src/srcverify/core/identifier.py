"""Parsing and formatting of npm package identifiers.

An identifier is ``name`` or ``name@version``. Scoped names keep their
leading ``@``: in ``@scope/name@1.0.0`` the first ``@`` belongs to the scope
and the next one separates the version.

Parsing never fails. The version part may be a dist-tag or a range; only an
exact semver version makes an identifier resolved. Callers that need one use
``require_version``, which raises ``MissingVersion``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from srcverify.exceptions import MissingVersion

# An exact semver version. Dist-tags (``latest``) and ranges (``^1.0.0``) are
# resolved through the registry instead.
_EXACT_VERSION = re.compile(r"\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?")


@dataclass(frozen=True)
class PackageIdentifier:
    """A package name with an optional version.

    Attributes:
        name: Package name, including any ``@scope/`` prefix.
        version: Exact version, dist-tag or range; None when absent.
    """

    name: str
    version: str | None = None

    @property
    def is_resolved(self) -> bool:
        """True when the version is an exact semver version."""
        return bool(self.version) and _EXACT_VERSION.fullmatch(self.version) is not None

    def __str__(self) -> str:
        if self.version:
            return f"{self.name}@{self.version}"
        return self.name


def parse_identifier(raw: str) -> PackageIdentifier:
    """Split ``raw`` into name and version.

    The separator is the first ``@`` after position 0, so a leading scope
    marker is never mistaken for it. An empty version (``"foo@"``) counts as
    absent.

    Args:
        raw: Identifier string such as ``left-pad@1.3.0`` or ``@types/node``.

    Returns:
        The parsed identifier. Malformed input yields ``name=raw``.
    """
    at = raw.find("@", 1)
    if at <= 0:
        return PackageIdentifier(name=raw)
    name, version = raw[:at], raw[at + 1:]
    if not name or name == "@":
        return PackageIdentifier(name=raw)
    return PackageIdentifier(name=name, version=version or None)


def require_version(identifier: PackageIdentifier | str) -> PackageIdentifier:
    """Return ``identifier`` parsed, raising if it lacks a version.

    Raises:
        MissingVersion: If no concrete version is present.
    """
    if isinstance(identifier, str):
        identifier = parse_identifier(identifier)
    if not identifier.is_resolved:
        raise MissingVersion(f"expected version in package identifier: {identifier}")
    return identifier
