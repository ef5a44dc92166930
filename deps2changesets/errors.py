"""Exceptions raised by deps2changesets.

Anything deriving from Deps2ChangesetsError means the run cannot produce a
trustworthy result. The CLI turns these into a single error message and a
non-zero exit.
"""

from __future__ import annotations


class Deps2ChangesetsError(RuntimeError):
    """Base class for fatal errors."""


class GitError(Deps2ChangesetsError):
    """A git command failed (bad ref, missing file at a ref, not a repo)."""


class WorkspaceError(Deps2ChangesetsError):
    """The workspace packages could not be listed."""


class ChangesetError(Deps2ChangesetsError):
    """The .changeset directory is missing or holds an unreadable changeset."""
