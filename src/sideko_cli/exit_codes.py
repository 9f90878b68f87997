"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~sideko_cli.exceptions.SidekoError` subclass.
Shell wrappers and CI scripts can inspect the exit code to determine the
failure class without parsing stderr.

Example::

    $ sideko sdk update --config sdk.yaml --repo ./my-sdk --version patch
    $ echo $?
    9   # EXIT_EXTERNAL_TOOL_FAILURE -- `git apply` rejected the patch
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or configuration could not be resolved."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or paths."""

EXIT_AUTH_FAILURE = 3
"""The Sideko API rejected the API key."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The Sideko API returned an error response."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_LOCAL_IO = 7
"""Reading or writing a local file or archive failed."""

EXIT_TOOL_UNAVAILABLE = 8
"""A required external tool (``git``) could not be launched."""

EXIT_EXTERNAL_TOOL_FAILURE = 9
"""An external tool (``git``) exited with a non-zero status."""

EXIT_INTERRUPTED = 130
"""The user interrupted the command with Ctrl-C."""
