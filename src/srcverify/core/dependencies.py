"""Dependency Lister: transitive production dependencies of a package.

The tree tool prints the root package followed by one line per dependency::

    └─ express@4.18.2
       ├─ accepts@1.3.8
       │  ├─ mime-types@2.1.35
       ...

Every line after the root is reduced to ``name@version``. Duplicates (a
package reached through several paths) collapse, and the list is sorted.
"""

from __future__ import annotations

import logging
import re

from srcverify.core.identifier import PackageIdentifier, require_version
from srcverify.exceptions import DependencyResolutionError
from srcverify.tools.base import DependencyTreeTool

logger = logging.getLogger(__name__)

TREE_ROOT_MARKER = "└─"

_TREE_LINE = re.compile(r"─ (@?)(.+)@(.+)")

DependencyList = tuple[str, ...]


def parse_tree(stdout: str) -> DependencyList:
    """Parse tree output into a sorted, de-duplicated identifier tuple.

    Raises:
        DependencyResolutionError: If the output does not start with the
            root marker or a dependency line cannot be parsed.
    """
    if not stdout.startswith(TREE_ROOT_MARKER):
        raise DependencyResolutionError(
            f"unexpected dependency tree output: {stdout[:200]!r}"
        )
    found: set[str] = set()
    for line in stdout.strip().splitlines()[1:]:
        if not line.strip():
            continue
        match = _TREE_LINE.search(line)
        if match is None:
            raise DependencyResolutionError(f"malformed dependency tree line: {line!r}")
        scope, name, version = match.groups()
        found.add(f"{scope}{name}@{version.strip()}")
    return tuple(sorted(found))


class DependencyLister:
    """Lists the dependencies of resolved identifiers."""

    def __init__(self, tool: DependencyTreeTool) -> None:
        self._tool = tool

    async def list_dependencies(self, identifier: PackageIdentifier | str) -> DependencyList:
        """Sorted unique dependency identifiers of ``identifier``.

        Raises:
            MissingVersion: If ``identifier`` is not resolved.
            DependencyResolutionError: If the tool fails or its output is
                malformed or truncated.
        """
        identifier = require_version(identifier)
        output = await self._tool.enumerate(str(identifier))
        if output.stderr.strip():
            raise DependencyResolutionError(output.stderr.strip())
        deps = parse_tree(output.stdout)
        logger.info("%s: %d dependencies", identifier, len(deps))
        return deps
