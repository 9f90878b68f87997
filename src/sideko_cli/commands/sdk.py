"""SDK commands -- generate new SDKs and update existing ones.

``sideko sdk create`` uploads an SDK config, waits for the service to
generate the SDK, and unpacks the returned tarball into the output
directory.

``sideko sdk update`` runs the
:class:`~sideko_cli.reconcile.UpdateReconciler` against an SDK repository
previously produced by ``sdk create``.
"""

from __future__ import annotations

import time
from pathlib import Path

import typer

from sideko_cli.models import SdkLanguage
from sideko_cli.output import debug, info, status, success, suggest
from sideko_cli.validators import (
    config_file_option,
    dir_allow_dne_option,
    dir_option,
    semver_option,
)

sdk_app = typer.Typer(no_args_is_help=True)


@sdk_app.command("create")
def sdk_create(
    config: Path = typer.Option(
        ..., "--config", help="Path to SDK config (.json, .yml, .yaml).", callback=config_file_option
    ),
    lang: SdkLanguage = typer.Option(..., "--lang", help="Programming language to generate."),
    version: str = typer.Option(
        "0.1.0", "--version", help="Semantic version of generated SDK.", callback=semver_option
    ),
    api_version: str = typer.Option(
        "latest",
        "--api-version",
        help="Generate the SDK for a specific version of the API listed in the config (e.g. `2.1.5`).",
    ),
    gh_actions: bool = typer.Option(
        False,
        "--gh-actions",
        help="Include GitHub Actions for testing and publishing the SDK.",
    ),
    output: Path = typer.Option(
        Path("./"), "--output", help="Path to save SDK.", callback=dir_allow_dne_option
    ),
) -> None:
    """Create a new SDK.

    Example::

        sideko sdk create --config sdk.yaml --lang python --output ./sdks
    """
    from sideko_cli.archive import unpack_stream
    from sideko_cli.client import client_from_config
    from sideko_cli.exceptions import LocalIOError
    from sideko_cli.models import GenerateRequest, UploadFile

    try:
        config_upload = UploadFile.from_path(config)
    except OSError as exc:
        raise LocalIOError(f"Failed reading config from path: {config}", debug=repr(exc)) from exc

    request = GenerateRequest(
        config=config_upload,
        language=lang,
        sdk_version=version,
        api_version=api_version,
        github_actions=gh_actions,
    )

    with client_from_config() as client:
        start = time.monotonic()
        with status(f"🪄  Generating {lang.emoji} {lang.value} SDK..."):
            sdk = client.generate_sdk(request)
    success("🚀 SDK generated!")
    debug(f"Generation took {time.monotonic() - start:.0f}s")

    unpack_stream(sdk.content, output)

    dest = output
    if sdk.filename:
        dest = output / sdk.filename.removesuffix(".tar.gz")
    info(f"💾 Saved to {dest}")


@sdk_app.command("update")
def sdk_update(
    config: Path = typer.Option(
        ..., "--config", help="Path to SDK config (.json, .yml, .yaml).", callback=config_file_option
    ),
    repo: Path = typer.Option(..., "--repo", help="Path to root of SDK repo.", callback=dir_option),
    version: str = typer.Option(
        ...,
        "--version",
        help="Semantic version of the updated SDK (e.g. `2.1.5`) or version bump "
        "(`patch`, `minor`, `major`, `rc`).",
    ),
    api_version: str = typer.Option(
        "latest", "--api-version", help="API version to update SDK with (e.g. `2.1.5`)."
    ),
) -> None:
    """Update an SDK repository to match the latest API specification.

    The repository must be a clean git working tree created by
    ``sideko sdk create``. The update is applied with ``git apply``; if that
    fails the patch is left at ``sdk_update.patch`` in the repository root.

    Example::

        sideko sdk update --config sdk.yaml --repo ./my-sdk --version patch
    """
    from sideko_cli.client import client_from_config
    from sideko_cli.git import extract_repo_id, validate_clean_repo
    from sideko_cli.reconcile import PATCH_FILENAME, UpdateReconciler, UpdateState

    # Repository problems are reported before credentials are looked up.
    extract_repo_id(validate_clean_repo(repo).root)

    with client_from_config() as client:
        outcome = UpdateReconciler(client).run(repo, config, version, api_version)

    if outcome.state is UpdateState.APPLIED:
        suggest(f"Review the changes with `git -C {repo} diff` and commit them")
    else:
        debug(f"Nothing to apply, {PATCH_FILENAME} was not written")
