"""External tool capabilities used by the verification pipeline.

Public API::

    from srcverify.tools import (
        VersionControl, PackageManager, ArchiveTool, DiffTool, DependencyTreeTool,
    )
    from srcverify.tools.git import GitTool
    from srcverify.tools.npm import detect_package_manager
    from srcverify.tools.archive import TarballTool
    from srcverify.tools.diff import TreeDiffTool
    from srcverify.tools.remote_ls import NpmRemoteLs
"""

from __future__ import annotations

from srcverify.tools.base import (
    ArchiveTool,
    DependencyTreeTool,
    DiffTool,
    PackageManager,
    VersionControl,
)
from srcverify.tools.process import CommandOutput, run_command

__all__ = [
    "ArchiveTool",
    "CommandOutput",
    "DependencyTreeTool",
    "DiffTool",
    "PackageManager",
    "VersionControl",
    "run_command",
]
