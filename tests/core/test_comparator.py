"""Tests for ArchiveComparator and the ignorable-file rules."""

from __future__ import annotations

import asyncio
import pathlib

import pytest

from srcverify.core.comparator import ArchiveComparator, classify, is_ignorable
from srcverify.core.models import FileDiff
from srcverify.core.workspace import Workspace
from srcverify.exceptions import CommandError, PackagingError
from srcverify.tools.diff import TreeDiffTool
from tests.fakes import FakeArchiveTool, FakePackageManager, RecordingDiffTool, make_metadata

PUBLISHED = {
    "package.json": '{"name": "left-pad", "version": "1.3.0"}\n',
    "index.js": "module.exports = leftPad;\n",
    "README.md": "# left-pad\n",
}


def _comparator(
    workspace: Workspace,
    archives: FakeArchiveTool,
    manager: FakePackageManager | None = None,
) -> tuple[ArchiveComparator, RecordingDiffTool]:
    differ = RecordingDiffTool(TreeDiffTool())
    manager = manager or FakePackageManager()
    return ArchiveComparator(archives, differ, lambda _p: manager, workspace), differ


@pytest.fixture
def checkout(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "checkout"
    path.mkdir()
    return path


class TestIgnorable:

    @pytest.mark.parametrize("path", [".npmignore", "README.md", "docs/CHANGELOG.md"])
    def test_ignorable(self, path: str) -> None:
        assert is_ignorable(path)

    @pytest.mark.parametrize("path", ["index.js", "lib/.npmignore", "package.json", "README.mdx"])
    def test_significant(self, path: str) -> None:
        assert not is_ignorable(path)

    def test_classify_stops_at_first_significant(self) -> None:
        diffs = [FileDiff("CHANGELOG.md", ""), FileDiff("index.js", ""), FileDiff("README.md", "")]
        assert classify(diffs) is False
        assert classify([FileDiff("CHANGELOG.md", ""), FileDiff(".npmignore", "")]) is True
        assert classify([]) is True


class TestCompare:

    def test_checksum_match_skips_unpack(self, workspace: Workspace, checkout: pathlib.Path) -> None:
        archives = FakeArchiveTool(checksums={b"rebuilt": "abc123"})
        comparator, differ = _comparator(workspace, archives)
        outcome = asyncio.run(comparator.compare(checkout, make_metadata(checksum="abc123")))
        assert outcome.success
        assert outcome.diffs == ()
        assert not any(call[0] == "unpack" for call in archives.calls)
        assert differ.calls == 0

    def test_source_change_fails(self, workspace: Workspace, checkout: pathlib.Path) -> None:
        rebuilt = dict(PUBLISHED, **{"index.js": "module.exports = somethingElse;\n"})
        archives = FakeArchiveTool(trees={b"published": PUBLISHED, b"rebuilt": rebuilt})
        comparator, _ = _comparator(workspace, archives)
        outcome = asyncio.run(comparator.compare(checkout, make_metadata()))
        assert not outcome.success
        assert [d.file for d in outcome.diffs] == ["index.js"]
        diff = outcome.diffs[0].diff
        assert "--- a/index.js" in diff
        assert "-module.exports = somethingElse;" in diff
        assert "+module.exports = leftPad;" in diff

    def test_markdown_only_difference_succeeds(self, workspace: Workspace, checkout: pathlib.Path) -> None:
        published = dict(PUBLISHED, **{"CHANGELOG.md": "## 1.3.0\n"})
        archives = FakeArchiveTool(trees={b"published": published, b"rebuilt": PUBLISHED})
        comparator, _ = _comparator(workspace, archives)
        outcome = asyncio.run(comparator.compare(checkout, make_metadata()))
        assert outcome.success
        assert [d.file for d in outcome.diffs] == ["CHANGELOG.md"]

    def test_whitespace_only_changes_are_not_diffs(self, workspace: Workspace, checkout: pathlib.Path) -> None:
        rebuilt = dict(PUBLISHED, **{"index.js": "module.exports  =  leftPad;\n"})
        archives = FakeArchiveTool(trees={b"published": PUBLISHED, b"rebuilt": rebuilt})
        comparator, _ = _comparator(workspace, archives)
        outcome = asyncio.run(comparator.compare(checkout, make_metadata()))
        assert outcome.success
        assert outcome.diffs == ()

    def test_all_diffs_kept_after_first_offender(self, workspace: Workspace, checkout: pathlib.Path) -> None:
        rebuilt = {"a.js": "1\n", "b.md": "x\n", "c.js": "3\n"}
        published = {"a.js": "one\n", "b.md": "y\n", "c.js": "three\n"}
        archives = FakeArchiveTool(trees={b"published": published, b"rebuilt": rebuilt})
        comparator, _ = _comparator(workspace, archives)
        outcome = asyncio.run(comparator.compare(checkout, make_metadata()))
        assert not outcome.success
        assert [d.file for d in outcome.diffs] == ["a.js", "b.md", "c.js"]

    def test_published_tarball_downloaded_once(self, workspace: Workspace, checkout: pathlib.Path) -> None:
        archives = FakeArchiveTool(checksums={b"rebuilt": "abc123"})
        comparator, _ = _comparator(workspace, archives)
        meta = make_metadata()
        asyncio.run(comparator.compare(checkout, meta))
        asyncio.run(comparator.compare(checkout, meta))
        downloads = [c for c in archives.calls if c[0] == "download"]
        assert downloads == [("download", meta.distribution.archive_url)]

    def test_pack_failure_becomes_packaging_error(
        self, workspace: Workspace, checkout: pathlib.Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        manager = FakePackageManager()

        async def _broken_pack(cwd: pathlib.Path, destination: pathlib.Path) -> pathlib.Path:
            raise CommandError(["npm", "pack"], 1, "EPACK")

        monkeypatch.setattr(manager, "pack", _broken_pack)
        comparator, _ = _comparator(workspace, FakeArchiveTool(), manager)
        with pytest.raises(PackagingError, match="npm pack failed"):
            asyncio.run(comparator.compare(checkout, make_metadata()))
