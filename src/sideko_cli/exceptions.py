"""Exception hierarchy for sideko-cli.

All exceptions inherit from :class:`SidekoError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`sideko_cli.exit_codes`
and an optional ``debug`` string with diagnostic detail (captured process
output, the underlying exception, ...). The top-level handler in
:func:`sideko_cli.app.main` prints the message, prints the detail only when
``--verbose`` is active, and exits with the error's code.

Subclass hierarchy::

    SidekoError (exit 1)
    +-- InvalidUsageError              (exit 2)
    +-- ConfigError                    (exit 1)
    |   +-- UnresolvableRepoIdentityError
    +-- RepoStateError                 (exit 1)
    |   +-- NotAGitRepoError
    |   +-- DirtyWorkingTreeError
    +-- GitUnavailableError            (exit 8)
    +-- GitCommandError                (exit 9)
    +-- LocalIOError                   (exit 7)
    +-- RemoteError                    (exit 5)
        +-- AuthError                  (exit 3)
        +-- NotFoundError              (exit 4)
        +-- ServerError                (exit 5)
        +-- ConnectionError_           (exit 6)
"""

from __future__ import annotations

from typing import Optional

from sideko_cli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_EXTERNAL_TOOL_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_LOCAL_IO,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_TOOL_UNAVAILABLE,
)


class SidekoError(Exception):
    """Base exception for all sideko-cli errors.

    Args:
        message: Human-readable error description printed to stderr.
        debug: Optional diagnostic detail, printed only in verbose mode.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(
        self,
        message: str,
        debug: Optional[str] = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.debug = debug
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SidekoError):
    """Raised for invalid CLI arguments, paths, or extensions."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SidekoError):
    """Raised when configuration or metadata cannot be resolved."""

    exit_code = EXIT_GENERIC_FAILURE


class UnresolvableRepoIdentityError(ConfigError):
    """Raised when ``.sdk.json`` is missing or does not carry an SDK id."""


class RepoStateError(SidekoError):
    """Raised when a directory cannot be safely patched."""


class NotAGitRepoError(RepoStateError):
    """Raised when the directory is not the root of a git repository."""


class DirtyWorkingTreeError(RepoStateError):
    """Raised when the git working tree has uncommitted changes."""


class GitUnavailableError(SidekoError):
    """Raised when the ``git`` binary cannot be launched."""

    exit_code = EXIT_TOOL_UNAVAILABLE


class GitCommandError(SidekoError):
    """Raised when a ``git`` invocation exits with a non-zero status."""

    exit_code = EXIT_EXTERNAL_TOOL_FAILURE


class LocalIOError(SidekoError):
    """Raised on local filesystem or archive failures."""

    exit_code = EXIT_LOCAL_IO


class RemoteError(SidekoError):
    """Base class for failures reported by, or on the way to, the Sideko API."""

    exit_code = EXIT_SERVER_ERROR


class AuthError(RemoteError):
    """Raised when the API key is missing or rejected (HTTP 401/403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(RemoteError):
    """Raised when the API returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(RemoteError):
    """Raised when the API returns any other error status."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(RemoteError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR
