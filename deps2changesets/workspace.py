"""Workspace package discovery.

Finds every package in a JavaScript monorepo and maps changed package.json
paths back to the package that owns them. Member directories come from, in
order of preference:

1. pnpm-workspace.yaml `packages:`
2. root package.json `workspaces` (npm / yarn / bun)
3. lerna.json `packages`

A repository with none of these is a single-package repo: only the root
package exists.
"""

from __future__ import annotations

import glob
import json
from collections.abc import Callable
from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import WorkspaceError
from .manifest import MANIFEST_FILENAME, parse_manifest
from .models import WorkspacePackage

PackageLister = Callable[
    [Path], tuple[list[WorkspacePackage], WorkspacePackage | None]
]


def _read_json(path: Path) -> dict:
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise WorkspaceError(f"Could not read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise WorkspaceError(f"{path} must contain a JSON object")
    return data


def get_member_globs(root: Path, root_manifest: dict) -> list[str]:
    """Return the workspace member glob patterns declared under root.

    Patterns starting with "!" are exclusions. Returns an empty list for a
    single-package repository.
    """
    pnpm = root / "pnpm-workspace.yaml"
    if pnpm.exists():
        try:
            doc = yaml.safe_load(pnpm.read_text()) or {}
        except yaml.YAMLError as exc:
            raise WorkspaceError(f"Could not parse {pnpm}: {exc}") from exc
        if not isinstance(doc, dict):
            raise WorkspaceError(f"{pnpm} must contain a mapping")
        packages = doc.get("packages") or []
        if not isinstance(packages, list):
            raise WorkspaceError(f"{pnpm}: packages must be a list of globs")
        return [str(p) for p in packages]

    workspaces = root_manifest.get("workspaces")
    # Yarn classic also accepts {"packages": [...], "nohoist": [...]}
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if isinstance(workspaces, list):
        return [str(p) for p in workspaces]

    lerna = root / "lerna.json"
    if lerna.exists():
        return [str(p) for p in _read_json(lerna).get("packages") or []]

    return []


def _expand_member_dirs(root: Path, patterns: list[str]) -> list[Path]:
    """Expand member globs into package directories, honouring "!" excludes."""
    included: dict[Path, None] = {}
    excluded: set[Path] = set()

    for pattern in patterns:
        negate = pattern.startswith("!")
        pattern = pattern.lstrip("!").rstrip("/")
        for match in sorted(glob.glob(str(root / pattern), recursive=True)):
            p = Path(match).resolve()
            if not p.is_relative_to(root):
                continue
            if "node_modules" in p.relative_to(root).parts:
                continue
            if not (p / MANIFEST_FILENAME).is_file():
                continue
            if negate:
                excluded.add(p)
            else:
                included[p] = None

    return [p for p in included if p not in excluded and p != root]


def _load_package(root: Path, directory: Path) -> WorkspacePackage:
    manifest_path = directory / MANIFEST_FILENAME
    try:
        manifest = parse_manifest(manifest_path.read_text())
    except (OSError, ValidationError) as exc:
        raise WorkspaceError(f"Invalid {manifest_path}: {exc}") from exc
    return WorkspacePackage(
        directory=directory,
        relative_directory=directory.relative_to(root),
        manifest=manifest,
    )


def list_workspace_packages(
    root: Path,
) -> tuple[list[WorkspacePackage], WorkspacePackage | None]:
    """List the packages of the workspace rooted at root.

    Returns:
        Tuple of (member packages, root package). Member packages are empty
        for a single-package repository.

    Raises:
        WorkspaceError: If root has no package.json or a manifest is invalid.
    """
    root = Path(root).resolve()
    root_manifest_path = root / MANIFEST_FILENAME
    if not root_manifest_path.is_file():
        raise WorkspaceError(f"No {MANIFEST_FILENAME} found in {root}")

    root_doc = _read_json(root_manifest_path)
    patterns = get_member_globs(root, root_doc)
    members = [_load_package(root, d) for d in _expand_member_dirs(root, patterns)]

    return members, _load_package(root, root)


class WorkspacePackages:
    """All packages of a workspace, root package included.

    Loaded once per run; lookups do not touch the filesystem.
    """

    def __init__(self, packages: list[WorkspacePackage], root: Path) -> None:
        self._packages = packages
        self._root = Path(root).resolve()

    @classmethod
    def load(
        cls, root: Path, lister: PackageLister = list_workspace_packages
    ) -> WorkspacePackages:
        """Query the workspace listing and build the package set.

        Errors from the lister propagate unchanged.
        """
        packages, root_package = lister(Path(root))
        all_packages = [root_package, *packages] if root_package else list(packages)

        seen: set[Path] = set()
        unique: list[WorkspacePackage] = []
        for pkg in all_packages:
            if pkg.directory not in seen:
                seen.add(pkg.directory)
                unique.append(pkg)
        return cls(unique, root)

    def __iter__(self):
        return iter(self._packages)

    def count(self) -> int:
        return len(self._packages)

    def find_by_manifest_path(self, file_path: str | Path) -> WorkspacePackage | None:
        """Find the package whose package.json is exactly file_path.

        file_path may be relative to the workspace root (as git reports it)
        or absolute. There is no suffix or prefix matching.
        """
        target = (self._root / file_path).resolve()
        for pkg in self._packages:
            if (pkg.directory / MANIFEST_FILENAME).resolve() == target:
                return pkg
        return None
