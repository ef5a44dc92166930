"""CLI entry point for deps2changesets."""

from __future__ import annotations

from pathlib import Path

import click
from pydantic import ValidationError

from deps2changesets.changeset import ChangesetStore
from deps2changesets.errors import Deps2ChangesetsError
from deps2changesets.models import DependencyScope, RunConfig
from deps2changesets.pipeline import run
from deps2changesets.reporting import (
    ConsoleReporter,
    render_changed_packages,
    render_private_skipped,
    render_result,
)


def _parse_scopes(value: str | None) -> frozenset[DependencyScope]:
    scopes = {DependencyScope.PROD}
    if value:
        for item in value.split(","):
            if item.strip():
                scopes.add(DependencyScope.from_option(item))
    return frozenset(scopes)


@click.command()
@click.version_option(package_name="deps2changesets")
@click.option(
    "--range",
    "git_range",
    default="HEAD~1..HEAD",
    show_default=True,
    help='Git range to inspect, "from..to" or a single ref compared to HEAD.',
)
@click.option(
    "--release-type",
    type=click.Choice(["patch", "minor", "major"]),
    default="patch",
    show_default=True,
    help="Bump type written into each changeset.",
)
@click.option(
    "--cwd",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root.",
)
@click.option(
    "--include-deps",
    default=None,
    metavar="TYPES",
    help="Extra dependency types to inspect besides prod: dev,peer,optional.",
)
@click.option(
    "--dry-run", is_flag=True, help="Show changes without writing changesets."
)
@click.option(
    "--skip-if-committed",
    default=None,
    metavar="PREFIX",
    help="Do nothing if a commit in the range starts with PREFIX.",
)
@click.option("-q", "--quiet", is_flag=True, help="Only show the result and warnings.")
def cli(
    git_range: str,
    release_type: str,
    cwd: Path,
    include_deps: str | None,
    dry_run: bool,
    skip_if_committed: str | None,
    quiet: bool,
) -> None:
    """Generate changesets from dependency changes in Git commits."""
    try:
        config = RunConfig(
            range=git_range,
            release_type=release_type,
            cwd=cwd.resolve(),
            scopes=_parse_scopes(include_deps),
            dry_run=dry_run,
            skip_if_committed=skip_if_committed,
        )
    except (ValueError, ValidationError) as exc:
        raise click.UsageError(str(exc)) from exc

    store = ChangesetStore(config.cwd)
    if not store.exists():
        raise click.ClickException(
            "No .changeset directory found. "
            "Please initialize changesets first with `npx @changesets/cli init`."
        )

    try:
        report = run(config, store=store, reporter=ConsoleReporter(verbose=not quiet))
    except Deps2ChangesetsError as exc:
        raise click.ClickException(str(exc)) from exc

    if report.skipped_reason:
        click.echo(f"ℹ {report.skipped_reason}, skipping.")
        return

    render_private_skipped(report.private_count)
    render_changed_packages(report.public)
    render_result(len(report.public), report.dry_run, report.written)


if __name__ == "__main__":
    cli()
