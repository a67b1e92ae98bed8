"""Verification Result Store: one JSON file per resolved identifier.

Files live under ``<work_dir>/results/`` and are named by the identifier
with ``/`` replaced (``@scope/pkg@1.0.0`` → ``@scope_pkg@1.0.0.json``).
Writes go to a temporary file that is renamed into place, so readers never
observe a half-written result.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from srcverify.core.identifier import PackageIdentifier, require_version
from srcverify.core.models import VerificationResult
from srcverify.core.workspace import Workspace

logger = logging.getLogger(__name__)


class ResultStore:
    """Durable result storage keyed by resolved identifier."""

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    def path_for(self, identifier: PackageIdentifier | str) -> Path:
        """Result file path; raises ``MissingVersion`` if unresolved."""
        return self._workspace.result_path(require_version(identifier))

    def has(self, identifier: PackageIdentifier | str) -> bool:
        return self.path_for(identifier).exists()

    def read(self, identifier: PackageIdentifier | str) -> VerificationResult | None:
        """Stored result, or None if nothing was stored.

        A result file that cannot be parsed is treated as absent, so the
        package is verified again and the file overwritten.
        """
        path = self.path_for(identifier)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable result file %s: %s", path, exc)
            return None
        try:
            return VerificationResult.from_dict(data)
        except (KeyError, TypeError) as exc:
            logger.warning("Ignoring malformed result file %s: %s", path, exc)
            return None

    def write(self, identifier: PackageIdentifier | str, result: VerificationResult) -> None:
        """Store ``result``, replacing any previous one."""
        path = self.path_for(identifier)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
