"""Shared fixtures for srcverify tests."""

import pathlib

import pytest

from srcverify.core.workspace import Workspace


@pytest.fixture
def workspace(tmp_path: pathlib.Path) -> Workspace:
    """An initialised workspace under a temporary directory."""
    ws = Workspace(tmp_path / "work")
    ws.init()
    return ws


@pytest.fixture
def published_tree(tmp_path: pathlib.Path) -> pathlib.Path:
    """A small unpacked package as the registry would serve it."""
    root = tmp_path / "published" / "package"
    root.mkdir(parents=True)
    (root / "package.json").write_text('{\n  "name": "left-pad",\n  "version": "1.3.0"\n}\n')
    (root / "index.js").write_text("module.exports = leftPad;\n")
    (root / "README.md").write_text("# left-pad\n")
    return root
