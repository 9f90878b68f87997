"""Shared test fixtures for sideko-cli.

Provides config isolation (environment, ``$HOME`` and an in-memory keyring),
output state management, real git repositories for guard tests, and a CLI
runner. Discovered automatically by pytest.
"""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from typing import Optional

import pytest

from sideko_cli.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Keyring isolation
# ---------------------------------------------------------------------------


class FakeKeyring:
    """In-memory stand-in for the ``keyring`` module functions."""

    def __init__(self) -> None:
        self.entries: dict[tuple[str, str], str] = {}
        self.error: Optional[Exception] = None

    def get_password(self, service: str, username: str) -> Optional[str]:
        if self.error is not None:
            raise self.error
        return self.entries.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        if self.error is not None:
            raise self.error
        self.entries[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        from keyring.errors import PasswordDeleteError

        if self.error is not None:
            raise self.error
        if (service, username) not in self.entries:
            raise PasswordDeleteError("not found")
        del self.entries[(service, username)]


@pytest.fixture(autouse=True)
def fake_keyring(monkeypatch: pytest.MonkeyPatch) -> FakeKeyring:
    """Route every keyring call to an in-memory store so tests never touch the OS keychain."""
    import keyring

    fake = FakeKeyring()
    monkeypatch.setattr(keyring, "get_password", fake.get_password)
    monkeypatch.setattr(keyring, "set_password", fake.set_password)
    monkeypatch.setattr(keyring, "delete_password", fake.delete_password)
    return fake


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points ``$HOME`` and ``XDG_DATA_HOME`` into tmp_path, clears all
    ``SIDEKO_*`` environment variables, and returns the path of the config
    file the CLI will use (``<tmp>/home/.sideko``).
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["SIDEKO_API_KEY", "SIDEKO_BASE_URL", "SIDEKO_CONFIG_PATH"]:
        monkeypatch.delenv(var, raising=False)
    return home / ".sideko"


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Install a PLAIN-format, verbose OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, verbose=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Git fixtures
# ---------------------------------------------------------------------------


def git(repo: Path, *args: str) -> subprocess.CompletedProcess:
    """Run git in *repo* with a throwaway identity, failing the test on error."""
    return subprocess.run(
        [
            "git",
            "-c", "user.name=Sideko Tests",
            "-c", "user.email=tests@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def run_git():
    """The :func:`git` helper, for tests that need to edit repositories."""
    return git


@pytest.fixture
def sdk_repo(tmp_path: Path) -> Path:
    """A clean, committed git repo that looks like a generated SDK."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "my-sdk"
    repo.mkdir()
    git(repo, "init", "-q")
    (repo / ".sdk.json").write_text(json.dumps({"id": "abc123"}))
    (repo / "README.md").write_text("hello\n")
    git(repo, "add", ".")
    git(repo, "commit", "-q", "-m", "initial")
    return repo


@pytest.fixture
def sdk_config(tmp_path: Path) -> Path:
    """A minimal SDK config file."""
    path = tmp_path / "sdk-config.yaml"
    path.write_text("language: python\napi: petstore\n")
    return path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
