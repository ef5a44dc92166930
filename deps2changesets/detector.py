"""Dependency change detection over a git commit range.

The detector runs in one pass:
1. Ask git which files changed between the two refs
2. Keep only added or modified package.json files
3. Load the workspace packages (only if step 2 found anything)
4. For each manifest: find its package, skip private packages, fetch the
   manifest at both refs and diff the selected dependency scopes

The result is a list of PrivateRecord / PublicRecord, one per changed
package. Only PublicRecords need a changeset.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .errors import GitError
from .manifest import MANIFEST_FILENAME, diff_manifests, parse_manifest
from .models import (
    ChangedFile,
    ChangedPackageRecord,
    DependencyChange,
    DependencyScope,
    PrivateRecord,
    PublicRecord,
)
from .reporting import Reporter, SilentReporter
from .workspace import PackageLister, WorkspacePackages, list_workspace_packages

CONSIDERED_STATUSES = frozenset({"added", "modified"})


class GitAccess(Protocol):
    def get_changed_files(self, from_ref: str, to_ref: str) -> list[ChangedFile]: ...

    def get_file_content(self, path: str, ref: str) -> str: ...


class CommitLog(Protocol):
    def get_commits(self, from_ref: str, to_ref: str) -> list[dict[str, str]]: ...


def changed_manifest_files(files: Iterable[ChangedFile]) -> list[ChangedFile]:
    """Filter a changed-file list down to added or modified package.json files.

    Deleted manifests are dropped: a deleted package cannot be released.
    """
    return [
        f
        for f in files
        if f.path.endswith(MANIFEST_FILENAME) and f.status in CONSIDERED_STATUSES
    ]


def changeset_commit_exists(
    client: CommitLog, from_ref: str, to_ref: str, prefix: str
) -> bool:
    """Check whether any commit message in the range starts with prefix."""
    return any(
        c["message"].startswith(prefix) for c in client.get_commits(from_ref, to_ref)
    )


class ChangeDetector:
    """Finds workspace packages whose dependencies changed in a commit range.

    Args:
        client: Git access (see GitAccess).
        reporter: Progress reporter. Defaults to SilentReporter.
        lister: Workspace package listing, replaceable in tests.
    """

    def __init__(
        self,
        client: GitAccess,
        reporter: Reporter | None = None,
        lister: PackageLister = list_workspace_packages,
    ) -> None:
        self.client = client
        self.reporter = reporter or SilentReporter()
        self.lister = lister

    def detect(
        self,
        from_ref: str,
        to_ref: str,
        root: Path,
        scopes: Iterable[DependencyScope] = (DependencyScope.PROD,),
    ) -> list[ChangedPackageRecord]:
        """Detect changed packages between from_ref and to_ref.

        Raises:
            GitError: If the changed-file listing fails.
            WorkspaceError: If the workspace packages cannot be listed.
        """
        scopes = frozenset(scopes)
        self.reporter.step(f"Analyzing changes from {from_ref} to {to_ref}")

        files = self.client.get_changed_files(from_ref, to_ref)
        manifests = changed_manifest_files(files)
        self.reporter.info(
            f"{len(files)} changed file(s), "
            f"{len(manifests)} changed {MANIFEST_FILENAME}"
        )
        if not manifests:
            return []

        workspace = WorkspacePackages.load(root, lister=self.lister)
        self.reporter.info(f"{workspace.count()} package(s) in workspace")

        records: list[ChangedPackageRecord] = []
        with ThreadPoolExecutor(max_workers=2) as pool:
            for file in manifests:
                pkg = workspace.find_by_manifest_path(file.path)
                if pkg is None:
                    self.reporter.warn(f"Could not find package for {file.path}")
                    continue

                # Private packages are never released, no need to diff
                if pkg.is_private:
                    self.reporter.info(f"{pkg.name}: private, skipped")
                    records.append(PrivateRecord(package=pkg))
                    continue

                changes = self._analyze(pool, file.path, from_ref, to_ref, scopes)
                if not changes:
                    continue

                self.reporter.info(
                    f"{pkg.name}: {len(changes)} dependency change(s)"
                )
                records.append(PublicRecord(package=pkg, changes=tuple(changes)))

        return records

    def _analyze(
        self,
        pool: ThreadPoolExecutor,
        path: str,
        from_ref: str,
        to_ref: str,
        scopes: frozenset[DependencyScope],
    ) -> list[DependencyChange]:
        """Diff one manifest between the two refs.

        Fetch or parse failures count as "no changes" so one broken file
        does not stop the rest of the run.
        """
        base_future = pool.submit(self.client.get_file_content, path, from_ref)
        head_future = pool.submit(self.client.get_file_content, path, to_ref)
        try:
            base = parse_manifest(base_future.result())
            head = parse_manifest(head_future.result())
        except (GitError, ValidationError) as exc:
            self.reporter.warn(f"Failed to analyze {path}: {exc}")
            return []
        return diff_manifests(base, head, scopes)
