"""Git repository guard and version-control collaborator.

sideko-cli never manipulates git internals itself. Everything it needs from
version control goes through a :class:`GitCollaborator`: a read-only
``status --porcelain`` check and a mutating ``apply <patch>``.
:class:`SystemGit` implements both by running the ``git`` binary.

:func:`validate_clean_repo` and :func:`extract_repo_id` are the checks the
update flow runs before any packaging or network work.
"""

from __future__ import annotations

import json
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from sideko_cli.exceptions import (
    DirtyWorkingTreeError,
    GitCommandError,
    GitUnavailableError,
    NotAGitRepoError,
    UnresolvableRepoIdentityError,
)
from sideko_cli.models import SDK_METADATA_FILENAME, SdkMetadata
from sideko_cli.output import debug

GIT_DIR_NAME = ".git"
_UNKNOWN_REPO_MSG = "Could not determine SDK ID of the repository. Is this a Sideko SDK?"


@dataclass(frozen=True)
class GitOutput:
    """Captured result of a git invocation."""

    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self, command: str) -> str:
        """Render exit status and captured streams for debug output."""
        stdout = self.stdout.decode("utf-8", errors="replace")
        stderr = self.stderr.decode("utf-8", errors="replace")
        return (
            f"`{command}` (exit status {self.returncode})\n"
            f"stdout:\n{stdout}\nstderr:\n{stderr}"
        )


class GitCollaborator(ABC):
    """The version-control operations the update flow depends on."""

    @abstractmethod
    def status_porcelain(self, repo: Path) -> GitOutput:
        """Run ``git status --porcelain`` in *repo*."""

    @abstractmethod
    def apply(self, repo: Path, patch_name: str) -> GitOutput:
        """Run ``git apply <patch_name>`` in *repo*."""


class SystemGit(GitCollaborator):
    """Runs the ``git`` executable found on ``PATH``.

    Args:
        executable: Name or path of the git binary.
    """

    def __init__(self, executable: str = "git") -> None:
        self._executable = executable

    def status_porcelain(self, repo: Path) -> GitOutput:
        return self._run(repo, ["status", "--porcelain"], "Failed to check git status")

    def apply(self, repo: Path, patch_name: str) -> GitOutput:
        return self._run(repo, ["apply", patch_name], "Failed to run git apply")

    def _run(self, repo: Path, args: list[str], failure: str) -> GitOutput:
        cmd = [self._executable, *args]
        debug(f"Running {' '.join(cmd)} in {repo}")
        try:
            proc = subprocess.run(cmd, cwd=repo, capture_output=True, check=False)
        except OSError as exc:
            raise GitUnavailableError(
                f"{failure}, is `git` installed?", debug=repr(exc)
            ) from exc
        return GitOutput(proc.returncode, proc.stdout, proc.stderr)


@dataclass(frozen=True)
class RepoHandle:
    """A validated, clean git working tree."""

    root: Path

    @property
    def git_dir(self) -> Path:
        return self.root / GIT_DIR_NAME

    @property
    def metadata_path(self) -> Path:
        return self.root / SDK_METADATA_FILENAME


def validate_clean_repo(path: Path, git: Optional[GitCollaborator] = None) -> RepoHandle:
    """Check that *path* is the root of a git repo with no uncommitted changes.

    Checks run in order: ``.git`` must be a directory, then
    ``git status --porcelain`` must print nothing.

    Raises:
        NotAGitRepoError: If ``path/.git`` is not a directory.
        GitUnavailableError: If the git binary cannot be launched.
        GitCommandError: If ``git status`` itself fails.
        DirtyWorkingTreeError: If there are staged, unstaged or untracked changes.
    """
    git = git or SystemGit()
    handle = RepoHandle(Path(path))

    if not handle.git_dir.is_dir():
        raise NotAGitRepoError(
            f"Path is not the root of a git repository, {handle.git_dir} not present"
        )

    status = git.status_porcelain(handle.root)
    if not status.ok:
        raise GitCommandError(
            "Failed to check git status", debug=status.describe("git status --porcelain")
        )
    if status.stdout.strip():
        raise DirtyWorkingTreeError(
            "Git working directory is not clean. "
            "Please commit or stash your changes before updating",
            debug=status.describe("git status --porcelain"),
        )
    return handle


def extract_repo_id(path: Path) -> str:
    """Return the SDK id recorded in ``.sdk.json`` at the root of *path*.

    Raises:
        UnresolvableRepoIdentityError: If the file is missing, unreadable, or
            does not contain a string ``id``.
    """
    md_path = Path(path) / SDK_METADATA_FILENAME
    if not md_path.is_file():
        raise UnresolvableRepoIdentityError(
            _UNKNOWN_REPO_MSG, debug=f"SDK metadata path does not exist in repo: {md_path}"
        )

    try:
        md_str = md_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise UnresolvableRepoIdentityError(
            _UNKNOWN_REPO_MSG, debug=f"Unable to read SDK metadata {md_path}: {exc!r}"
        ) from exc
    debug(f"Found sdk metadata: {md_str}")

    try:
        metadata = SdkMetadata.model_validate(json.loads(md_str))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise UnresolvableRepoIdentityError(
            _UNKNOWN_REPO_MSG, debug=f"Unable to deserialize SDK metadata {md_path}: {exc}"
        ) from exc
    return metadata.id
