"""Whitespace-insensitive tree and file diffs.

Mirrors ``diff -urNqw`` for the file list and ``diff -uNw`` for content:
files missing on one side compare as empty, and lines are matched with all
whitespace removed while the emitted hunks show the original text.
"""

from __future__ import annotations

import asyncio
import difflib
import os
import re
from pathlib import Path

from srcverify.tools.base import DiffTool

CONTEXT_LINES = 3

_WHITESPACE = re.compile(r"\s+")


class TreeDiffTool(DiffTool):
    """``DiffTool`` implemented with ``difflib``."""

    def __init__(self, *, context: int = CONTEXT_LINES) -> None:
        self._context = context

    async def changed_files(self, left: Path, right: Path) -> list[str]:
        return await asyncio.to_thread(changed_files, left, right)

    async def file_diff(self, left: Path, right: Path, label: str) -> str:
        return await asyncio.to_thread(unified_file_diff, left, right, label, self._context)


def list_files(root: Path) -> list[str]:
    """Relative POSIX paths of regular files under ``root``."""
    if not root.is_dir():
        return []
    found: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        for filename in filenames:
            found.append((base / filename).relative_to(root).as_posix())
    return found


def changed_files(left: Path, right: Path) -> list[str]:
    """Files that differ between two trees, in ``diff -r`` order.

    ``diff -r`` walks each directory's entries in sorted order, which is the
    same as sorting on path components.
    """
    paths = set(list_files(left)) | set(list_files(right))
    ordered = sorted(paths, key=lambda p: p.split("/"))
    return [p for p in ordered if not _same_ignoring_whitespace(left / p, right / p)]


def unified_file_diff(left: Path, right: Path, label: str, context: int = CONTEXT_LINES) -> str:
    """Unified diff from ``left`` to ``right`` ignoring whitespace changes."""
    a_bytes, b_bytes = _read(left), _read(right)
    if b"\0" in a_bytes or b"\0" in b_bytes:
        return f"Binary files a/{label} and b/{label} differ\n" if a_bytes != b_bytes else ""

    a_lines = a_bytes.decode("utf-8", errors="replace").splitlines(keepends=True)
    b_lines = b_bytes.decode("utf-8", errors="replace").splitlines(keepends=True)
    matcher = difflib.SequenceMatcher(
        None, [_squash(x) for x in a_lines], [_squash(x) for x in b_lines], autojunk=False
    )

    out: list[str] = []
    for group in matcher.get_grouped_opcodes(context):
        if not out:
            out.append(f"--- a/{label}\n")
            out.append(f"+++ b/{label}\n")
        first, last = group[0], group[-1]
        out.append(
            f"@@ -{_range(first[1], last[2])} +{_range(first[3], last[4])} @@\n"
        )
        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                out.extend(" " + _eol(line) for line in a_lines[i1:i2])
                continue
            if tag in ("replace", "delete"):
                out.extend("-" + _eol(line) for line in a_lines[i1:i2])
            if tag in ("replace", "insert"):
                out.extend("+" + _eol(line) for line in b_lines[j1:j2])
    return "".join(out)


def _read(path: Path) -> bytes:
    return path.read_bytes() if path.is_file() else b""


def _squash(line: str) -> str:
    return _WHITESPACE.sub("", line)


def _eol(line: str) -> str:
    return line if line.endswith("\n") else line + "\n\\ No newline at end of file\n"


def _range(start: int, stop: int) -> str:
    # Same convention as difflib.unified_diff / GNU diff.
    beginning = start + 1
    length = stop - start
    if length == 1:
        return f"{beginning}"
    if not length:
        beginning -= 1
    return f"{beginning},{length}"


def _same_ignoring_whitespace(left: Path, right: Path) -> bool:
    a_bytes, b_bytes = _read(left), _read(right)
    if a_bytes == b_bytes:
        return True
    if b"\0" in a_bytes or b"\0" in b_bytes:
        return False
    a_lines = a_bytes.decode("utf-8", errors="replace").splitlines()
    b_lines = b_bytes.decode("utf-8", errors="replace").splitlines()
    return [_squash(x) for x in a_lines] == [_squash(x) for x in b_lines]
