"""sideko-cli -- command-line client for the Sideko SDK generation service.

Generates SDKs from an API config and keeps generated SDK repositories up to
date by applying server-computed patches with ``git apply``.

Typical workflow::

    sideko config set api-key <KEY>
    sideko sdk create --config sdk.yaml --lang python
    sideko sdk update --config sdk.yaml --repo ./my-sdk --version minor

Modules:
    app: Typer application and CLI entry point.
    config: API key / base url storage across env, keyring and dotenv file.
    git: Repository guard and git collaborator.
    archive: Tarball packing and unpacking.
    reconcile: The SDK update flow.
    client: HTTP client for the Sideko API.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting and diagnostics.
"""

__version__ = "0.4.0"
