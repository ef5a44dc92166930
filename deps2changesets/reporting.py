"""Progress reporting and terminal output.

Core components never print directly. They receive a Reporter and default
to SilentReporter, so library callers and tests get no output unless they
ask for it. The CLI passes a ConsoleReporter.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import click

from .models import ChangeKind, DependencyChange, PublicRecord, WrittenChangeset

NAME_WIDTH = 20


class Reporter(Protocol):
    def step(self, msg: str) -> None: ...

    def info(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...


class SilentReporter:
    """Reporter that discards everything."""

    def step(self, msg: str) -> None:
        pass

    def info(self, msg: str) -> None:
        pass

    def warn(self, msg: str) -> None:
        pass


class ConsoleReporter:
    """Reporter that writes progress to the terminal.

    Args:
        verbose: When False, step headers and info lines are suppressed and
            only warnings are shown.
    """

    def __init__(self, verbose: bool = True) -> None:
        self.verbose = verbose

    def step(self, msg: str) -> None:
        """Print a visually distinct step header."""
        if self.verbose:
            click.echo(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")

    def info(self, msg: str) -> None:
        if self.verbose:
            click.echo(f"  {msg}")

    def warn(self, msg: str) -> None:
        click.echo(click.style(f"  ⚠ {msg}", fg="yellow"), err=True)


def format_change(change: DependencyChange) -> str:
    """Format one dependency change as an aligned, coloured line.

    Examples:
        updated: "  ↑ lodash               ^4.17.19 → ^4.17.21"
        added:   "  + axios                ^1.4.0"
        removed: "  - left-pad             ^1.0.0"
    """
    name = change.name.ljust(NAME_WIDTH)
    if change.kind is ChangeKind.UPDATED:
        old = click.style(change.old_version, dim=True)
        arrow = click.style("↑", fg="cyan")
        return f"  {arrow} {name} {old} → {change.new_version}"
    if change.kind is ChangeKind.ADDED:
        return f"  {click.style('+', fg='green')} {name} {change.new_version}"
    old = click.style(change.old_version, dim=True)
    return f"  {click.style('-', fg='red')} {name} {old}"


def render_changed_packages(records: Sequence[PublicRecord]) -> None:
    """Print each changed package followed by its dependency changes."""
    if not records:
        return
    for record in records:
        click.echo(f"\n{click.style(record.package.name, bold=True)}")
        for change in record.changes:
            click.echo(format_change(change))
    click.echo()


def render_private_skipped(count: int) -> None:
    if count > 0:
        click.echo(f"ℹ Skipped {count} private package(s) (changesets not needed)")


def render_result(
    count: int, dry_run: bool, written: Sequence[WrittenChangeset] = ()
) -> None:
    """Print the final outcome line."""
    if count == 0:
        click.echo("No dependency changes detected.")
        return

    if dry_run:
        click.echo(f"ℹ Would create {count} changeset(s) (dry-run)")
        return

    for item in written:
        if item.was_recreated:
            click.echo(f"  ↻ Recreated changeset for {item.package_name} ({item.id})")
    click.echo(f"{click.style('✓', fg='green')} Created {count} changeset(s)")
