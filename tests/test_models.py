"""Tests for deps2changesets.models."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from deps2changesets.models import (
    ChangeKind,
    DependencyChange,
    DependencyScope,
    ManifestSnapshot,
    PrivateRecord,
    PublicRecord,
    Release,
    RunConfig,
    RunReport,
    WorkspacePackage,
)


def _package(name: str, private: bool = False) -> WorkspacePackage:
    return WorkspacePackage(
        directory=Path("/test"),
        relative_directory=Path("."),
        manifest=ManifestSnapshot(name=name, version="1.0.0", private=private),
    )


class TestDependencyChange:
    def test_added_has_new_version_only(self) -> None:
        change = DependencyChange.added("axios", "^1.4.0")
        assert change.kind is ChangeKind.ADDED
        assert change.old_version is None
        assert change.new_version == "^1.4.0"

    def test_removed_has_old_version_only(self) -> None:
        change = DependencyChange.removed("left-pad", "^1.0.0")
        assert change.old_version == "^1.0.0"
        assert change.new_version is None

    def test_updated_requires_different_versions(self) -> None:
        with pytest.raises(ValidationError):
            DependencyChange.updated("lodash", "^4.17.21", "^4.17.21")

    def test_added_rejects_old_version(self) -> None:
        with pytest.raises(ValidationError):
            DependencyChange(
                name="axios", kind=ChangeKind.ADDED, old_version="1", new_version="2"
            )

    def test_is_frozen(self) -> None:
        change = DependencyChange.added("axios", "^1.4.0")
        with pytest.raises(ValidationError):
            change.name = "other"  # type: ignore[misc]


class TestManifestSnapshot:
    def test_reads_camel_case_blocks(self) -> None:
        manifest = ManifestSnapshot.model_validate(
            {"name": "pkg", "devDependencies": {"vitest": "^1.0.0"}}
        )
        assert manifest.block(DependencyScope.DEV) == {"vitest": "^1.0.0"}
        assert manifest.block(DependencyScope.PROD) == {}

    def test_defaults(self) -> None:
        manifest = ManifestSnapshot()
        assert manifest.name == ""
        assert manifest.version == "0.0.0"
        assert manifest.private is False


class TestDependencyScope:
    @pytest.mark.parametrize(
        ("option", "scope"),
        [
            ("prod", DependencyScope.PROD),
            ("dev", DependencyScope.DEV),
            (" Peer ", DependencyScope.PEER),
            ("optional", DependencyScope.OPTIONAL),
        ],
    )
    def test_from_option(self, option: str, scope: DependencyScope) -> None:
        assert DependencyScope.from_option(option) is scope

    def test_from_option_rejects_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown dependency type"):
            DependencyScope.from_option("bundled")


class TestRunConfig:
    def test_defaults(self) -> None:
        config = RunConfig(cwd=Path("/repo"))
        assert config.release_type == "patch"
        assert config.scopes == frozenset({DependencyScope.PROD})
        assert config.refs() == ("HEAD~1", "HEAD")

    def test_scopes_always_include_prod(self) -> None:
        config = RunConfig(cwd=Path("/repo"), scopes=frozenset({DependencyScope.DEV}))
        assert config.scopes == frozenset({DependencyScope.PROD, DependencyScope.DEV})

    def test_rejects_unknown_release_type(self) -> None:
        with pytest.raises(ValidationError):
            RunConfig(cwd=Path("/repo"), release_type="huge")

    @pytest.mark.parametrize(
        ("git_range", "refs"),
        [
            ("main..feature", ("main", "feature")),
            ("main..", ("main", "HEAD")),
            ("..feature", ("HEAD", "feature")),
            ("v1.0.0", ("v1.0.0", "HEAD")),
            ("main...feature", ("main", "feature")),
        ],
    )
    def test_refs(self, git_range: str, refs: tuple[str, str]) -> None:
        assert RunConfig(cwd=Path("/repo"), range=git_range).refs() == refs


class TestRelease:
    def test_accepts_none_release(self) -> None:
        assert Release(name="pkg-a", type="none").type == "none"

    def test_rejects_unknown_release(self) -> None:
        with pytest.raises(ValidationError):
            Release(name="pkg-a", type="huge")

    def test_run_config_rejects_none_release_type(self) -> None:
        with pytest.raises(ValidationError):
            RunConfig(cwd=Path("/repo"), release_type="none")


class TestRunReport:
    def test_partitions_records(self) -> None:
        public = PublicRecord(
            package=_package("pkg-a"),
            changes=(DependencyChange.added("axios", "^1.4.0"),),
        )
        private = PrivateRecord(package=_package("web", private=True))
        report = RunReport(from_ref="a", to_ref="b", records=(public, private))

        assert report.public == [public]
        assert report.private_count == 1
