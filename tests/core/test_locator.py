"""Tests for SourceLocator: git replaced by an in-memory fake."""

from __future__ import annotations

import asyncio

import pytest

from srcverify.core.locator import SourceLocator, candidate_revisions
from srcverify.core.models import Repository
from srcverify.core.workspace import Workspace
from srcverify.exceptions import (
    MissingRepository,
    NoMatchingRevision,
    SourceFetchError,
    UnsupportedRepositoryKind,
)
from tests.fakes import FakeVersionControl, make_metadata


class TestCandidateRevisions:

    def test_with_source_commit(self) -> None:
        meta = make_metadata(version="1.2.3", source_commit="abc")
        assert candidate_revisions(meta) == ["abc", "v1.2.3", "1.2.3"]

    def test_without_source_commit(self) -> None:
        assert candidate_revisions(make_metadata(version="1.2.3")) == ["v1.2.3", "1.2.3"]


class TestLocate:
    """Mirror sync, revision selection and warnings."""

    def test_prefers_declared_commit(self, workspace: Workspace) -> None:
        vcs = FakeVersionControl(revisions={"abc", "v1.3.0"})
        checkout = asyncio.run(
            SourceLocator(vcs, workspace).locate(make_metadata(source_commit="abc"))
        )
        assert checkout.revision == "abc"
        assert checkout.warnings == []
        assert ("checkout", "abc") in vcs.calls
        assert vcs.calls[-1] == ("clean",)

    def test_falls_back_to_v_tag_with_warning(self, workspace: Workspace) -> None:
        vcs = FakeVersionControl(revisions={"v1.2.3", "1.2.3"})
        meta = make_metadata(version="1.2.3", source_commit="missingCommit")
        checkout = asyncio.run(SourceLocator(vcs, workspace).locate(meta))
        assert checkout.revision == "v1.2.3"
        assert checkout.warnings == [
            "package was published using unreachable git commit: missingCommit. "
            "Falling back to tag v1.2.3."
        ]
        tried = [c[1] for c in vcs.calls if c[0] == "rev-parse"]
        assert tried == ["missingCommit", "v1.2.3"]

    def test_only_bare_version_tag_exists(self, workspace: Workspace) -> None:
        vcs = FakeVersionControl(revisions={"1.2.3"})
        meta = make_metadata(version="1.2.3", source_commit="missingCommit")
        checkout = asyncio.run(SourceLocator(vcs, workspace).locate(meta))
        assert checkout.revision == "1.2.3"
        assert len(checkout.warnings) == 1
        assert "Falling back to tag 1.2.3." in checkout.warnings[0]

    def test_bare_version_tag_without_commit_has_no_warning(self, workspace: Workspace) -> None:
        vcs = FakeVersionControl(revisions={"1.3.0"})
        checkout = asyncio.run(SourceLocator(vcs, workspace).locate(make_metadata()))
        assert checkout.revision == "1.3.0"
        assert checkout.warnings == []

    def test_no_matching_revision(self, workspace: Workspace) -> None:
        vcs = FakeVersionControl(revisions=set())
        meta = make_metadata(version="1.2.3", source_commit="deadbeef")
        with pytest.raises(NoMatchingRevision, match="tried: deadbeef v1.2.3 1.2.3"):
            asyncio.run(SourceLocator(vcs, workspace).locate(meta))

    def test_missing_repository(self, workspace: Workspace) -> None:
        vcs = FakeVersionControl()
        with pytest.raises(MissingRepository, match="Missing repository in package metadata"):
            asyncio.run(SourceLocator(vcs, workspace).locate(make_metadata(repository=None)))
        assert vcs.calls == []

    def test_non_git_repository(self, workspace: Workspace) -> None:
        meta = make_metadata(repository=Repository("svn", "svn://example/x"))
        with pytest.raises(UnsupportedRepositoryKind):
            asyncio.run(SourceLocator(FakeVersionControl(), workspace).locate(meta))

    def test_clone_failure(self, workspace: Workspace) -> None:
        vcs = FakeVersionControl(fail_clone=True)
        with pytest.raises(SourceFetchError, match="could not fetch source repository"):
            asyncio.run(SourceLocator(vcs, workspace).locate(make_metadata()))

    def test_existing_mirror_is_fetched_not_cloned(self, workspace: Workspace) -> None:
        vcs = FakeVersionControl(revisions={"v1.3.0"})
        locator = SourceLocator(vcs, workspace)
        asyncio.run(locator.locate(make_metadata()))
        asyncio.run(locator.locate(make_metadata()))
        kinds = [c[0] for c in vcs.calls]
        assert kinds.count("clone") == 1
        assert kinds.count("fetch") == 1

    def test_clone_url_strips_git_plus(self, workspace: Workspace) -> None:
        vcs = FakeVersionControl(revisions={"v1.3.0"})
        meta = make_metadata(repository=Repository("git", "git+https://example/lp.git"))
        asyncio.run(SourceLocator(vcs, workspace).locate(meta))
        assert vcs.calls[0] == ("clone", "https://example/lp.git")
