"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


def _write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")


@pytest.fixture
def npm_workspace(tmp_path: Path) -> Path:
    """Create an npm workspace with two public packages and a private app."""
    _write_json(
        tmp_path / "package.json",
        {"name": "root", "private": True, "workspaces": ["packages/*", "apps/*"]},
    )
    _write_json(
        tmp_path / "packages" / "pkg-a" / "package.json",
        {"name": "pkg-a", "version": "1.0.0", "dependencies": {"lodash": "^4.17.21"}},
    )
    _write_json(
        tmp_path / "packages" / "pkg-b" / "package.json",
        {"name": "pkg-b", "version": "2.0.0"},
    )
    _write_json(
        tmp_path / "apps" / "web" / "package.json",
        {"name": "web", "version": "0.1.0", "private": True},
    )
    return tmp_path


@pytest.fixture
def changeset_dir(tmp_path: Path) -> Path:
    """Create an initialized .changeset directory and return the root."""
    directory = tmp_path / ".changeset"
    directory.mkdir()
    (directory / "README.md").write_text("# Changesets\n")
    (directory / "config.json").write_text("{}\n")
    return tmp_path
