"""Run pipeline: resolve range → detect → write.

This module wires the pieces together for one run:
1. Resolve the git range into explicit refs
2. Optionally stop if a changeset commit already exists in the range
3. Detect changed packages (public and private)
4. Write changesets for the public ones, unless this is a dry run

Rendering is left to the caller; run() only returns a RunReport.
"""

from __future__ import annotations

from .changeset import ChangesetStore, write_changesets
from .detector import ChangeDetector, changeset_commit_exists
from .models import RunConfig, RunReport
from .reporting import Reporter, SilentReporter
from .shell import GitClient
from .workspace import PackageLister, list_workspace_packages


def run(
    config: RunConfig,
    *,
    client: GitClient | None = None,
    store: ChangesetStore | None = None,
    reporter: Reporter | None = None,
    lister: PackageLister = list_workspace_packages,
) -> RunReport:
    """Execute one detection (and, unless dry-running, writing) run.

    Args:
        config: Validated run options.
        client: Git access. Defaults to GitClient(config.cwd).
        store: Changeset storage. Defaults to ChangesetStore(config.cwd).
        reporter: Progress reporter. Defaults to SilentReporter.
        lister: Workspace package listing.

    Raises:
        Deps2ChangesetsError: On any fatal git, workspace or changeset error.
    """
    client = client or GitClient(config.cwd)
    store = store or ChangesetStore(config.cwd)
    reporter = reporter or SilentReporter()
    from_ref, to_ref = config.refs()

    if config.skip_if_committed and changeset_commit_exists(
        client, from_ref, to_ref, config.skip_if_committed
    ):
        return RunReport(
            from_ref=from_ref,
            to_ref=to_ref,
            dry_run=config.dry_run,
            skipped_reason=(
                f"A commit starting with {config.skip_if_committed!r} "
                f"already exists in {from_ref}..{to_ref}"
            ),
        )

    detector = ChangeDetector(client, reporter=reporter, lister=lister)
    records = detector.detect(from_ref, to_ref, config.cwd, config.scopes)
    report = RunReport(
        from_ref=from_ref, to_ref=to_ref, records=tuple(records), dry_run=config.dry_run
    )

    if config.dry_run or not report.public:
        return report

    written = write_changesets(
        report.public, config.release_type, config.cwd, store=store, reporter=reporter
    )
    return report.model_copy(update={"written": tuple(written)})
