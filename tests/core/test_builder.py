"""Tests for BuildOrchestrator and version stamping."""

from __future__ import annotations

import asyncio
import json
import pathlib

import pytest

from srcverify.core.builder import BuildOrchestrator, stamp_version
from srcverify.exceptions import CommandError, FallbackBuildFailure, PackagingError
from tests.fakes import FakePackageManager, make_metadata


@pytest.fixture
def checkout(tmp_path: pathlib.Path) -> pathlib.Path:
    root = tmp_path / "checkout"
    root.mkdir()
    (root / "package.json").write_text(
        json.dumps({"name": "left-pad", "version": "1.0.0", "main": "index.js"}, indent=2)
    )
    return root


def _build(checkout: pathlib.Path, manager: FakePackageManager, scripts: dict[str, str]) -> list[str]:
    builder = BuildOrchestrator(lambda _path: manager)
    return asyncio.run(builder.build(checkout, make_metadata(scripts=scripts)))


class TestLifecycleScripts:

    def test_prepare_only_installs(self, checkout: pathlib.Path) -> None:
        manager = FakePackageManager()
        errors = _build(checkout, manager, {"prepare": "tsc"})
        assert errors == []
        assert manager.calls == [("install",)]

    def test_prepublish_only_is_run_explicitly(self, checkout: pathlib.Path) -> None:
        manager = FakePackageManager()
        _build(checkout, manager, {"prepublishOnly": "npm run dist"})
        assert manager.calls == [("install",), ("run", "prepublishOnly")]

    def test_lifecycle_failure_is_recorded_not_raised(self, checkout: pathlib.Path) -> None:
        manager = FakePackageManager(failing_scripts={"prepublishOnly"})
        errors = _build(checkout, manager, {"prepublishOnly": "false"})
        assert len(errors) == 1
        assert errors[0].startswith("lifecycle script prepublishOnly failed")
        assert json.loads((checkout / "package.json").read_text())["version"] == "1.3.0"

    def test_install_failure_propagates(self, checkout: pathlib.Path) -> None:
        manager = FakePackageManager(fail_install=True)
        with pytest.raises(CommandError):
            _build(checkout, manager, {"prepack": "tsc"})


class TestFallbackBuild:

    def test_build_script_guessed(self, checkout: pathlib.Path) -> None:
        manager = FakePackageManager()
        errors = _build(checkout, manager, {"build": "tsc", "build-all": "make"})
        assert errors == [
            "lifecycle scripts were not found, so guessing that this script "
            "should be run instead: build"
        ]
        assert manager.calls == [("install",), ("run", "build")]

    def test_build_all_used_when_no_build(self, checkout: pathlib.Path) -> None:
        manager = FakePackageManager()
        _build(checkout, manager, {"build-all": "make"})
        assert ("run", "build-all") in manager.calls

    def test_fallback_failure_is_fatal(self, checkout: pathlib.Path) -> None:
        manager = FakePackageManager(failing_scripts={"build"})
        errors: list[str] = ["earlier warning"]
        builder = BuildOrchestrator(lambda _path: manager)
        with pytest.raises(FallbackBuildFailure, match="build script build failed"):
            asyncio.run(builder.build(checkout, make_metadata(scripts={"build": "tsc"}), errors))
        assert errors[0] == "earlier warning"
        assert errors[1].startswith("lifecycle scripts were not found")

    def test_no_scripts_does_nothing_but_stamp(self, checkout: pathlib.Path) -> None:
        manager = FakePackageManager()
        assert _build(checkout, manager, {"test": "jest"}) == []
        assert manager.calls == []
        assert json.loads((checkout / "package.json").read_text())["version"] == "1.3.0"


class TestStampVersion:

    def test_preserves_key_order(self, checkout: pathlib.Path) -> None:
        stamp_version(checkout / "package.json", "2.0.0")
        text = (checkout / "package.json").read_text()
        assert list(json.loads(text)) == ["name", "version", "main"]
        assert text.endswith("\n")

    def test_missing_manifest(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(PackagingError):
            stamp_version(tmp_path / "package.json", "1.0.0")

    def test_non_object_manifest(self, tmp_path: pathlib.Path) -> None:
        manifest = tmp_path / "package.json"
        manifest.write_text("[]")
        with pytest.raises(PackagingError, match="not a JSON object"):
            stamp_version(manifest, "1.0.0")
