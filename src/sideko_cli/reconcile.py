"""Update reconciliation: bring a generated SDK repository up to date.

The flow is a straight line of states::

    START -> REPO_VALIDATED -> IDENTITY_RESOLVED -> PACKAGED
          -> REMOTE_REQUESTED -> NO_CHANGES
                              -> PATCH_WRITTEN -> APPLIED
                                               -> APPLY_FAILED

Repository checks run before anything is archived or uploaded, so a dirty
or foreign directory never costs a network round-trip. Only the ``.git``
directory is uploaded: the service rebuilds the previous SDK from its
history and answers with a patch against it.

On a successful ``git apply`` the patch file is removed. When ``git apply``
fails the patch file is kept at the repository root so the user can inspect
it or apply it by hand.
"""

from __future__ import annotations

import enum
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol

from sideko_cli.archive import pack_directory
from sideko_cli.exceptions import GitCommandError, LocalIOError
from sideko_cli.git import GitCollaborator, SystemGit, extract_repo_id, validate_clean_repo
from sideko_cli.models import UpdateRequest, UploadFile
from sideko_cli.output import debug, status, success, warning

PATCH_FILENAME = "sdk_update.patch"
GIT_ARCHIVE_FILENAME = "git.tar.gz"


class UpdateState(str, enum.Enum):
    START = "start"
    REPO_VALIDATED = "repo_validated"
    IDENTITY_RESOLVED = "identity_resolved"
    PACKAGED = "packaged"
    REMOTE_REQUESTED = "remote_requested"
    NO_CHANGES = "no_changes"
    PATCH_WRITTEN = "patch_written"
    APPLIED = "applied"
    APPLY_FAILED = "apply_failed"


class UpdateService(Protocol):
    def update_sdk(self, request: UpdateRequest) -> bytes: ...


Packer = Callable[[Path, Path], bytes]


@dataclass
class UpdateOutcome:
    """Result of a completed reconciliation.

    Attributes:
        state: ``NO_CHANGES`` or ``APPLIED``.
        elapsed: Seconds spent waiting on the remote update call.
        patch_path: Where the patch was written, ``None`` when there was
            nothing to apply.
    """

    state: UpdateState
    elapsed: float
    patch_path: Optional[Path] = None


class UpdateReconciler:
    """Runs the SDK update flow against one repository.

    Args:
        service: Anything with an ``update_sdk`` method, normally an open
            :class:`~sideko_cli.client.SidekoClient`.
        git: Version-control collaborator, defaults to :class:`SystemGit`.
        packer: Function archiving a directory into a path and returning
            the bytes, defaults to :func:`~sideko_cli.archive.pack_directory`.

    Example::

        with client_from_config() as client:
            outcome = UpdateReconciler(client).run(repo, config, "patch")
    """

    def __init__(
        self,
        service: UpdateService,
        git: Optional[GitCollaborator] = None,
        packer: Packer = pack_directory,
    ) -> None:
        self._service = service
        self._git = git or SystemGit()
        self._packer = packer
        self.state = UpdateState.START

    def run(
        self,
        repo: Path,
        config: Path,
        version: str,
        api_version: str = "latest",
    ) -> UpdateOutcome:
        """Update the SDK at *repo* using the SDK config at *config*.

        Args:
            repo: Root of the SDK git repository.
            config: SDK config file to generate from.
            version: New SDK version, either semver or a bump keyword
                (``patch``, ``minor``, ``major``, ``rc``). Not validated
                locally.
            api_version: API version from the config to generate against.

        Raises:
            NotAGitRepoError: *repo* has no ``.git`` directory.
            DirtyWorkingTreeError: *repo* has uncommitted changes.
            UnresolvableRepoIdentityError: ``.sdk.json`` is missing or invalid.
            GitUnavailableError: ``git`` could not be launched.
            GitCommandError: ``git apply`` rejected the patch. The patch file
                is left at the repository root.
            LocalIOError: Reading the config, archiving, or writing the patch
                failed.
            RemoteError: The update request failed.
        """
        self.state = UpdateState.START
        handle = validate_clean_repo(repo, self._git)
        self.state = UpdateState.REPO_VALIDATED

        prev_sdk_id = extract_repo_id(handle.root)
        self.state = UpdateState.IDENTITY_RESOLVED

        try:
            config_upload = UploadFile.from_path(config)
        except OSError as exc:
            raise LocalIOError(
                f"Failed reading config from path: {config}", debug=repr(exc)
            ) from exc

        with tempfile.TemporaryDirectory(prefix="sideko-") as tmp:
            debug(f"Created temp directory {tmp}")
            archive_path = Path(tmp) / GIT_ARCHIVE_FILENAME
            git_archive = self._packer(handle.git_dir, archive_path)
        self.state = UpdateState.PACKAGED

        request = UpdateRequest(
            config=config_upload,
            prev_sdk_git=UploadFile(filename=GIT_ARCHIVE_FILENAME, content=git_archive),
            prev_sdk_id=prev_sdk_id,
            sdk_version=version,
            api_version=api_version,
        )
        start = time.monotonic()
        with status("🪄  Updating SDK..."):
            patch_content = self._service.update_sdk(request)
        elapsed = time.monotonic() - start
        self.state = UpdateState.REMOTE_REQUESTED
        debug(f"Update generation took {elapsed:.0f}s")

        if not patch_content:
            self.state = UpdateState.NO_CHANGES
            warning("No updates to apply")
            return UpdateOutcome(self.state, elapsed)

        patch_path = handle.root / PATCH_FILENAME
        try:
            patch_path.write_bytes(patch_content)
        except OSError as exc:
            raise LocalIOError("Failed writing sdk git patch file", debug=repr(exc)) from exc
        self.state = UpdateState.PATCH_WRITTEN
        debug(f"Wrote {len(patch_content)} byte patch to {patch_path}")

        result = self._git.apply(handle.root, PATCH_FILENAME)
        if not result.ok:
            self.state = UpdateState.APPLY_FAILED
            raise GitCommandError(
                f"Failed to apply update, the patch was kept at {patch_path}",
                debug=result.describe(f"git apply {PATCH_FILENAME}"),
            )

        try:
            patch_path.unlink()
        except OSError as exc:
            raise LocalIOError(
                f"Update applied but the patch file could not be removed: {patch_path}",
                debug=repr(exc),
            ) from exc
        self.state = UpdateState.APPLIED
        success("🚀 Update applied!")
        return UpdateOutcome(self.state, elapsed, patch_path)
