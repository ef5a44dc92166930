"""Data models for deps2changesets.

These Pydantic models represent the data passed between the detector, the
changeset writer and the CLI. All of them are frozen: a model is created
once per run and never mutated afterwards.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DependencyScope(str, Enum):
    """A dependency block of package.json, valued by its manifest key."""

    PROD = "dependencies"
    DEV = "devDependencies"
    PEER = "peerDependencies"
    OPTIONAL = "optionalDependencies"

    @classmethod
    def from_option(cls, value: str) -> DependencyScope:
        """Map a CLI spelling ("prod", "dev", "peer", "optional") to a scope."""
        try:
            return _SCOPE_OPTIONS[value.strip().lower()]
        except KeyError:
            raise ValueError(
                f"Unknown dependency type {value!r} "
                f"(expected one of: {', '.join(_SCOPE_OPTIONS)})"
            ) from None


_SCOPE_OPTIONS = {
    "prod": DependencyScope.PROD,
    "dev": DependencyScope.DEV,
    "peer": DependencyScope.PEER,
    "optional": DependencyScope.OPTIONAL,
}

# Fixed iteration order used by the differ
SCOPE_ORDER: tuple[DependencyScope, ...] = tuple(DependencyScope)


class ChangeKind(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


BumpType = Literal["patch", "minor", "major"]
# Changesets written by hand may also carry "none" (docs-only entries)
ReleaseType = Literal["patch", "minor", "major", "none"]


class ManifestSnapshot(BaseModel):
    """The parts of a package.json that dependency diffing cares about.

    Attributes:
        name: Package name ("" when the manifest has none, e.g. a bare root).
        version: Package version, defaulting to "0.0.0".
        private: Whether the package is flagged "private": true.
        dependencies / dev_dependencies / peer_dependencies /
        optional_dependencies: Maps of dependency name → version range.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = ""
    version: str = "0.0.0"
    private: bool = False
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="devDependencies"
    )
    peer_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="peerDependencies"
    )
    optional_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="optionalDependencies"
    )

    def block(self, scope: DependencyScope) -> dict[str, str]:
        """Return the dependency block for a scope."""
        return {
            DependencyScope.PROD: self.dependencies,
            DependencyScope.DEV: self.dev_dependencies,
            DependencyScope.PEER: self.peer_dependencies,
            DependencyScope.OPTIONAL: self.optional_dependencies,
        }[scope]


class DependencyChange(BaseModel):
    """A single dependency that was added, updated or removed.

    Added changes carry only new_version, removed changes only old_version,
    updated changes carry both and they differ.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: ChangeKind
    old_version: str | None = None
    new_version: str | None = None

    @model_validator(mode="after")
    def check_versions(self) -> DependencyChange:
        has_old = self.old_version is not None
        has_new = self.new_version is not None
        if self.kind is ChangeKind.ADDED and (has_old or not has_new):
            raise ValueError("added change must carry new_version only")
        if self.kind is ChangeKind.REMOVED and (has_new or not has_old):
            raise ValueError("removed change must carry old_version only")
        if self.kind is ChangeKind.UPDATED:
            if not (has_old and has_new):
                raise ValueError("updated change must carry both versions")
            if self.old_version == self.new_version:
                raise ValueError("updated change must change the version")
        return self

    @classmethod
    def added(cls, name: str, new_version: str) -> DependencyChange:
        return cls(name=name, kind=ChangeKind.ADDED, new_version=new_version)

    @classmethod
    def updated(
        cls, name: str, old_version: str, new_version: str
    ) -> DependencyChange:
        return cls(
            name=name,
            kind=ChangeKind.UPDATED,
            old_version=old_version,
            new_version=new_version,
        )

    @classmethod
    def removed(cls, name: str, old_version: str) -> DependencyChange:
        return cls(name=name, kind=ChangeKind.REMOVED, old_version=old_version)


class ChangedFile(BaseModel):
    """A path touched in a commit range and its git status.

    Status is one of "added", "modified", "deleted", "renamed", "copied".
    """

    model_config = ConfigDict(frozen=True)

    path: str
    status: str


class WorkspacePackage(BaseModel):
    """A package found in the workspace.

    Attributes:
        directory: Absolute path to the package directory.
        relative_directory: Path of the package directory relative to the
            workspace root ("." for the root package).
        manifest: Parsed package.json of the package as it is on disk.
    """

    model_config = ConfigDict(frozen=True)

    directory: Path
    relative_directory: Path
    manifest: ManifestSnapshot

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def is_private(self) -> bool:
        return self.manifest.private


class PrivateRecord(BaseModel):
    """A changed private package. It never gets a changeset."""

    model_config = ConfigDict(frozen=True)

    visibility: Literal["private"] = "private"
    package: WorkspacePackage


class PublicRecord(BaseModel):
    """A changed public package and the dependency changes that need a changeset."""

    model_config = ConfigDict(frozen=True)

    visibility: Literal["public"] = "public"
    package: WorkspacePackage
    changes: tuple[DependencyChange, ...]


ChangedPackageRecord = Annotated[
    Union[PrivateRecord, PublicRecord], Field(discriminator="visibility")
]


class Release(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: ReleaseType


class ChangesetRecord(BaseModel):
    """A changeset as stored in the .changeset directory."""

    model_config = ConfigDict(frozen=True)

    id: str
    summary: str
    releases: tuple[Release, ...] = ()


class WrittenChangeset(BaseModel):
    """Result of writing one changeset.

    Attributes:
        id: Id of the newly written changeset.
        package_name: Package the changeset releases.
        was_recreated: True if an earlier auto-generated changeset for the
            same package was removed to make room for this one.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    package_name: str
    was_recreated: bool = False


class RunConfig(BaseModel):
    """Validated options for a single run.

    Attributes:
        range: Git range, either "from..to" or a single ref compared to HEAD.
        release_type: Bump type written into every changeset.
        cwd: Workspace root.
        scopes: Dependency blocks to inspect. Always includes PROD.
        dry_run: Detect and report, but write nothing.
        skip_if_committed: If set, skip the run when a commit in the range
            has a message starting with this prefix.
    """

    model_config = ConfigDict(frozen=True)

    range: str = "HEAD~1..HEAD"
    release_type: BumpType = "patch"
    cwd: Path = Field(default_factory=Path.cwd)
    scopes: frozenset[DependencyScope] = frozenset({DependencyScope.PROD})
    dry_run: bool = False
    skip_if_committed: str | None = None

    @field_validator("scopes")
    @classmethod
    def always_include_prod(
        cls, scopes: frozenset[DependencyScope]
    ) -> frozenset[DependencyScope]:
        return frozenset(scopes) | {DependencyScope.PROD}

    def refs(self) -> tuple[str, str]:
        """Resolve the range into explicit (from_ref, to_ref)."""
        if ".." in self.range:
            from_ref, _, to_ref = self.range.partition("..")
            # Triple-dot ranges are compared like double-dot ones
            to_ref = to_ref.lstrip(".")
            return from_ref or "HEAD", to_ref or "HEAD"
        return self.range, "HEAD"


class RunReport(BaseModel):
    """Everything a run reports back to the CLI.

    Attributes:
        from_ref / to_ref: The resolved git range.
        records: Every changed package found, public and private.
        written: Changesets written (empty on a dry run).
        skipped_reason: Set when the run stopped early without detecting.
    """

    model_config = ConfigDict(frozen=True)

    from_ref: str
    to_ref: str
    records: tuple[ChangedPackageRecord, ...] = ()
    written: tuple[WrittenChangeset, ...] = ()
    dry_run: bool = False
    skipped_reason: str | None = None

    @property
    def public(self) -> list[PublicRecord]:
        return [r for r in self.records if isinstance(r, PublicRecord)]

    @property
    def private_count(self) -> int:
        return sum(1 for r in self.records if isinstance(r, PrivateRecord))
