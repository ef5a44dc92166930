"""Changeset rendering, storage and (re)writing.

Every summary this tool writes starts with AUTO_GENERATED_BANNER. On each
run, earlier changesets that carry the banner and release the same package
are removed before the new one is written, so re-running the tool replaces
its own output instead of piling up duplicates. Changesets without the
banner were written by people and are never touched.
"""

from __future__ import annotations

import random
import re
from collections.abc import Sequence
from pathlib import Path

import yaml

from .errors import ChangesetError
from .models import (
    BumpType,
    ChangeKind,
    ChangesetRecord,
    DependencyChange,
    PublicRecord,
    Release,
    WrittenChangeset,
)
from .reporting import Reporter, SilentReporter

AUTO_GENERATED_BANNER = "<!-- generated by deps2changesets -->"
CHANGESET_DIR = ".changeset"
FALLBACK_SUMMARY = "Updated dependencies"
MULTI_CHANGE_HEADING = "Dependencies updated"

_FRONT_MATTER = re.compile(
    r"\A---\r?\n(.*?)^---[ \t]*\r?\n?(.*)\Z", re.DOTALL | re.MULTILINE
)

# Word lists for human-readable ids like "brave-pandas-sing"
_ADJECTIVES = (
    "brave", "calm", "clever", "cuddly", "eager", "fair", "fancy", "fresh",
    "gentle", "giant", "happy", "honest", "jolly", "kind", "lazy", "lucky",
    "mighty", "modern", "nice", "odd", "polite", "proud", "quick", "quiet",
    "rare", "shy", "silly", "smart", "swift", "tall", "tidy", "witty",
)
_NOUNS = (
    "apples", "bats", "bears", "birds", "cats", "clouds", "cows", "crabs",
    "dogs", "doors", "eggs", "falcons", "foxes", "frogs", "geese", "hats",
    "keys", "lamps", "lions", "moons", "owls", "pandas", "pens", "plums",
    "rivers", "seals", "snakes", "stars", "tigers", "trees", "waves", "wolves",
)
_VERBS = (
    "bake", "beam", "bow", "build", "change", "clap", "cry", "dance",
    "dream", "drive", "fly", "glow", "grin", "hide", "hop", "jump",
    "kick", "laugh", "learn", "march", "move", "nod", "play", "relax",
    "rest", "rule", "run", "shine", "sing", "sleep", "swim", "wave",
)


def _describe(change: DependencyChange) -> str:
    if change.kind is ChangeKind.UPDATED:
        return f"Updated {change.name} ({change.old_version} -> {change.new_version})"
    if change.kind is ChangeKind.ADDED:
        return f"Added {change.name} ({change.new_version})"
    return f"Removed {change.name} ({change.old_version})"


def render_body(changes: Sequence[DependencyChange]) -> str:
    """Render the human-readable part of a summary.

    - no changes: a generic fallback line
    - one change: a single line, e.g. "Updated lodash (^4.17.19 -> ^4.17.21)"
    - several: a heading plus one bullet per change, updates first, then
      additions, then removals
    """
    if not changes:
        return FALLBACK_SUMMARY
    if len(changes) == 1:
        return _describe(changes[0])

    lines = [MULTI_CHANGE_HEADING, ""]
    for kind in (ChangeKind.UPDATED, ChangeKind.ADDED, ChangeKind.REMOVED):
        lines.extend(f"- {_describe(c)}" for c in changes if c.kind is kind)
    return "\n".join(lines)


def render_summary(changes: Sequence[DependencyChange]) -> str:
    """Render a full changeset summary, banner included."""
    return f"{AUTO_GENERATED_BANNER}\n\n{render_body(changes)}"


def is_auto_generated(changeset: ChangesetRecord) -> bool:
    return changeset.summary.startswith(AUTO_GENERATED_BANNER)


def find_stale_changesets(
    existing: Sequence[ChangesetRecord], package_name: str
) -> list[str]:
    """Ids of auto-generated changesets that release package_name."""
    return [
        c.id
        for c in existing
        if is_auto_generated(c) and any(r.name == package_name for r in c.releases)
    ]


def parse_changeset(changeset_id: str, content: str) -> ChangesetRecord:
    """Parse the text of a .changeset/<id>.md file.

    Release entries are only validated for changesets carrying
    AUTO_GENERATED_BANNER. A hand-written changeset with a release type this
    tool does not know is kept with no releases, since it is never touched.

    Raises:
        ChangesetError: If the front matter is missing or malformed, or an
            auto-generated changeset has an invalid release.
    """
    match = _FRONT_MATTER.match(content)
    if not match:
        raise ChangesetError(f"Changeset {changeset_id} has no front matter")
    front, summary = match.groups()
    summary = summary.strip()
    try:
        doc = yaml.safe_load(front) or {}
    except yaml.YAMLError as exc:
        raise ChangesetError(
            f"Changeset {changeset_id} has invalid front matter: {exc}"
        ) from exc
    if not isinstance(doc, dict):
        raise ChangesetError(
            f"Changeset {changeset_id} front matter must be a mapping"
        )
    try:
        releases = tuple(Release(name=name, type=bump) for name, bump in doc.items())
    except ValueError as exc:
        if summary.startswith(AUTO_GENERATED_BANNER):
            raise ChangesetError(
                f"Changeset {changeset_id} has an invalid release: {exc}"
            ) from exc
        releases = ()
    return ChangesetRecord(id=changeset_id, summary=summary, releases=releases)


def format_changeset(summary: str, releases: Sequence[Release]) -> str:
    """Render a changeset file in the changesets front-matter format."""
    front = "".join(f'"{r.name}": {r.type}\n' for r in releases)
    return f"---\n{front}---\n\n{summary}\n"


class ChangesetStore:
    """Changesets stored as markdown files in <root>/.changeset."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.directory = self.root / CHANGESET_DIR

    def exists(self) -> bool:
        return self.directory.is_dir()

    def _require_directory(self) -> None:
        if not self.exists():
            raise ChangesetError(
                f"No {CHANGESET_DIR} directory found in {self.root}. "
                "Please initialize changesets first with `npx @changesets/cli init`."
            )

    def read(self) -> list[ChangesetRecord]:
        """Read every changeset, sorted by id. README.md is not a changeset."""
        self._require_directory()
        return [
            parse_changeset(path.stem, path.read_text())
            for path in sorted(self.directory.glob("*.md"))
            if path.name.lower() != "readme.md"
        ]

    def _new_id(self) -> str:
        while True:
            changeset_id = "-".join(
                random.choice(words) for words in (_ADJECTIVES, _NOUNS, _VERBS)
            )
            if not (self.directory / f"{changeset_id}.md").exists():
                return changeset_id

    def write(self, summary: str, releases: Sequence[Release]) -> str:
        """Write a new changeset and return its id."""
        self._require_directory()
        changeset_id = self._new_id()
        path = self.directory / f"{changeset_id}.md"
        try:
            path.write_text(format_changeset(summary, releases))
        except OSError as exc:
            raise ChangesetError(f"Could not write {path}: {exc}") from exc
        return changeset_id

    def remove(self, changeset_id: str) -> None:
        path = self.directory / f"{changeset_id}.md"
        try:
            path.unlink()
        except OSError as exc:
            raise ChangesetError(f"Could not remove {path}: {exc}") from exc


def write_changesets(
    records: Sequence[PublicRecord],
    release_type: BumpType,
    root: Path,
    store: ChangesetStore | None = None,
    reporter: Reporter | None = None,
) -> list[WrittenChangeset]:
    """Write one changeset per changed public package.

    For each package, first work out which earlier auto-generated changesets
    release it, then remove those and write the new one. A failure midway
    leaves already-written packages in place; nothing is rolled back.

    Args:
        records: Packages to write changesets for.
        release_type: Bump type for every release entry.
        root: Workspace root holding the .changeset directory.
        store: Changeset storage. Defaults to ChangesetStore(root).
        reporter: Progress reporter. Defaults to SilentReporter.

    Returns:
        One WrittenChangeset per record, in record order.
    """
    if not records:
        return []

    store = store or ChangesetStore(root)
    reporter = reporter or SilentReporter()
    reporter.step(f"Writing {len(records)} changeset(s)")

    written: list[WrittenChangeset] = []
    for record in records:
        name = record.package.name
        summary = render_summary(record.changes)

        # Phase 1: find superseded changesets
        stale = find_stale_changesets(store.read(), name)

        # Phase 2: remove them, then write the replacement
        for changeset_id in stale:
            reporter.info(f"{name}: removing previous changeset {changeset_id}")
            store.remove(changeset_id)
        changeset_id = store.write(summary, [Release(name=name, type=release_type)])

        reporter.info(f"{name}: wrote {changeset_id} ({summary.splitlines()[-1]})")
        written.append(
            WrittenChangeset(
                id=changeset_id, package_name=name, was_recreated=bool(stale)
            )
        )

    return written
