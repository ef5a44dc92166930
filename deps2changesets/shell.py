"""Git utilities.

Provides a thin wrapper around `git` subprocess calls and the GitClient
used by the change detector to list changed files, read files at a ref and
list commit messages.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from .errors import GitError
from .models import ChangedFile

# `git diff --name-status` letters → status names
_STATUS_NAMES = {
    "A": "added",
    "M": "modified",
    "T": "modified",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
}

# `git diff -z` and `git log --format=%B%x00` terminate fields with a NUL
_FIELD_SEPARATOR = "\x00"


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "diff", "--name-status").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise GitError on non-zero exit. Set to
               False for commands that may legitimately fail.

    Returns:
        Stdout from the git command with trailing whitespace removed.
    """
    try:
        result = subprocess.run(
            ["git", *args], capture_output=True, text=True, cwd=cwd, check=False
        )
    except FileNotFoundError as exc:
        raise GitError("git executable not found") from exc
    if check and result.returncode != 0:
        stderr = result.stderr.strip() or f"exit code {result.returncode}"
        raise GitError(f"git {' '.join(args)} failed: {stderr}")
    return result.stdout.rstrip()


def parse_name_status(output: str) -> list[ChangedFile]:
    """Parse `git diff --name-status -z` output.

    With -z, fields are NUL-terminated and paths are never quoted. Each entry
    is a status field followed by one path, or by two paths (old, new) for
    renames and copies. Renames and copies report the new path, since that
    is where the file lives at the head ref.

    Example:
        "M\\0packages/a/package.json\\0" → [ChangedFile(path=..., status="modified")]
    """
    fields = iter(output.split(_FIELD_SEPARATOR))
    files: list[ChangedFile] = []
    for code in fields:
        if not code:
            continue
        path = next(fields, "")
        if code[:1] in ("R", "C"):
            path = next(fields, path)
        if path:
            status = _STATUS_NAMES.get(code[:1], "modified")
            files.append(ChangedFile(path=path, status=status))
    return files


class GitClient:
    """Read-only access to a local git repository."""

    def __init__(self, cwd: Path) -> None:
        self.cwd = Path(cwd)

    def get_changed_files(self, from_ref: str, to_ref: str) -> list[ChangedFile]:
        """List files changed between two refs, with their status."""
        out = git("diff", "--name-status", "-z", from_ref, to_ref, cwd=self.cwd)
        return parse_name_status(out)

    def get_file_content(self, path: str, ref: str) -> str:
        """Return the content of path at ref.

        Raises:
            GitError: If the path does not exist at ref.
        """
        try:
            return git("show", f"{ref}:{path}", cwd=self.cwd)
        except GitError as exc:
            raise GitError(f"Failed to get content of {path} at {ref}: {exc}") from exc

    def get_commits(self, from_ref: str, to_ref: str) -> list[dict[str, str]]:
        """List commit messages in from_ref..to_ref, newest first."""
        out = git(
            "log", "--format=%B%x00", f"{from_ref}..{to_ref}", cwd=self.cwd
        )
        return [
            {"message": message.strip()}
            for message in out.split(_FIELD_SEPARATOR)
            if message.strip()
        ]
