"""Tests for the git repository guard and SDK identity lookup."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sideko_cli.exceptions import (
    DirtyWorkingTreeError,
    GitCommandError,
    GitUnavailableError,
    NotAGitRepoError,
    UnresolvableRepoIdentityError,
)
from sideko_cli.git import (
    GitCollaborator,
    GitOutput,
    RepoHandle,
    SystemGit,
    extract_repo_id,
    validate_clean_repo,
)


class ScriptedGit(GitCollaborator):
    """Returns canned outputs and records calls."""

    def __init__(self, status: GitOutput = GitOutput(0), apply: GitOutput = GitOutput(0)) -> None:
        self.status = status
        self.apply_result = apply
        self.calls: list[tuple[str, Path]] = []

    def status_porcelain(self, repo: Path) -> GitOutput:
        self.calls.append(("status", repo))
        return self.status

    def apply(self, repo: Path, patch_name: str) -> GitOutput:
        self.calls.append(("apply", repo))
        return self.apply_result


@pytest.fixture
def fake_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    return repo


# ---------------------------------------------------------------------------
# GitOutput
# ---------------------------------------------------------------------------


class TestGitOutput:
    def test_ok(self) -> None:
        assert GitOutput(0).ok
        assert not GitOutput(1).ok

    def test_describe(self) -> None:
        text = GitOutput(128, b"out", b"fatal: nope").describe("git apply x.patch")
        assert "`git apply x.patch` (exit status 128)" in text
        assert "stdout:\nout" in text
        assert "stderr:\nfatal: nope" in text


class TestGitCollaborator:
    def test_subclass_must_implement_both_operations(self) -> None:
        class StatusOnly(GitCollaborator):
            def status_porcelain(self, repo: Path) -> GitOutput:
                return GitOutput(0)

        with pytest.raises(TypeError):
            StatusOnly()

    def test_system_git_is_a_collaborator(self) -> None:
        assert isinstance(SystemGit(), GitCollaborator)


# ---------------------------------------------------------------------------
# validate_clean_repo with a scripted collaborator
# ---------------------------------------------------------------------------


class TestValidateCleanRepo:
    def test_missing_git_dir(self, tmp_path: Path) -> None:
        git = ScriptedGit()
        with pytest.raises(NotAGitRepoError, match="not the root of a git repository"):
            validate_clean_repo(tmp_path, git)
        assert git.calls == []

    def test_git_file_is_not_a_repo_root(self, tmp_path: Path) -> None:
        (tmp_path / ".git").write_text("gitdir: ../elsewhere\n")
        with pytest.raises(NotAGitRepoError):
            validate_clean_repo(tmp_path, ScriptedGit())

    def test_clean(self, fake_repo: Path) -> None:
        handle = validate_clean_repo(fake_repo, ScriptedGit())
        assert handle == RepoHandle(fake_repo)
        assert handle.git_dir == fake_repo / ".git"
        assert handle.metadata_path == fake_repo / ".sdk.json"

    def test_dirty(self, fake_repo: Path) -> None:
        git = ScriptedGit(status=GitOutput(0, b" M README.md\n"))
        with pytest.raises(DirtyWorkingTreeError, match="not clean") as exc_info:
            validate_clean_repo(fake_repo, git)
        assert "README.md" in (exc_info.value.debug or "")

    def test_status_failure(self, fake_repo: Path) -> None:
        git = ScriptedGit(status=GitOutput(128, b"", b"fatal: not a git repository"))
        with pytest.raises(GitCommandError) as exc_info:
            validate_clean_repo(fake_repo, git)
        assert "fatal: not a git repository" in (exc_info.value.debug or "")


# ---------------------------------------------------------------------------
# SystemGit against the real binary
# ---------------------------------------------------------------------------


class TestSystemGit:
    def test_missing_binary(self, fake_repo: Path) -> None:
        git = SystemGit(executable="definitely-not-git-7c1f")
        with pytest.raises(GitUnavailableError, match="is `git` installed"):
            validate_clean_repo(fake_repo, git)

    def test_clean_repo(self, sdk_repo: Path) -> None:
        assert validate_clean_repo(sdk_repo).root == sdk_repo

    def test_unstaged_change(self, sdk_repo: Path) -> None:
        (sdk_repo / "README.md").write_text("changed\n")
        with pytest.raises(DirtyWorkingTreeError):
            validate_clean_repo(sdk_repo)

    def test_staged_change(self, sdk_repo: Path, run_git) -> None:
        (sdk_repo / "new.py").write_text("x = 1\n")
        run_git(sdk_repo, "add", "new.py")
        with pytest.raises(DirtyWorkingTreeError):
            validate_clean_repo(sdk_repo)

    def test_untracked_file(self, sdk_repo: Path) -> None:
        (sdk_repo / "scratch.txt").write_text("tmp\n")
        with pytest.raises(DirtyWorkingTreeError):
            validate_clean_repo(sdk_repo)

    def test_apply(self, sdk_repo: Path, run_git) -> None:
        (sdk_repo / "README.md").write_text("hello\nworld\n")
        patch = run_git(sdk_repo, "diff").stdout
        run_git(sdk_repo, "checkout", "--", "README.md")
        (sdk_repo / "change.patch").write_bytes(patch)

        result = SystemGit().apply(sdk_repo, "change.patch")
        assert result.ok
        assert (sdk_repo / "README.md").read_text() == "hello\nworld\n"

    def test_apply_failure_is_reported_not_raised(self, sdk_repo: Path) -> None:
        (sdk_repo / "bad.patch").write_text("this is not a patch\n")
        result = SystemGit().apply(sdk_repo, "bad.patch")
        assert not result.ok
        assert result.stderr


# ---------------------------------------------------------------------------
# extract_repo_id
# ---------------------------------------------------------------------------


class TestExtractRepoId:
    def test_reads_id(self, tmp_path: Path) -> None:
        (tmp_path / ".sdk.json").write_text(json.dumps({"id": "abc123", "language": "python"}))
        assert extract_repo_id(tmp_path) == "abc123"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(UnresolvableRepoIdentityError, match="Is this a Sideko SDK") as exc_info:
            extract_repo_id(tmp_path)
        assert "does not exist" in (exc_info.value.debug or "")

    @pytest.mark.parametrize(
        "content",
        ["not json", "[]", json.dumps({"name": "x"}), json.dumps({"id": 42})],
    )
    def test_malformed(self, tmp_path: Path, content: str) -> None:
        (tmp_path / ".sdk.json").write_text(content)
        with pytest.raises(UnresolvableRepoIdentityError):
            extract_repo_id(tmp_path)
