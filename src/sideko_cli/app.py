"""Typer application and CLI entry point for sideko-cli.

This module builds the root ``sideko`` Typer application, mounts the
``sdk``, ``config``, ``api`` and ``doc`` sub-commands, and provides :func:`main`,
the console-script entry point declared in ``pyproject.toml``.

:func:`main` maps :class:`~sideko_cli.exceptions.SidekoError` to a one-line
error message (plus debug detail under ``--verbose``) and the error's exit
code. Any other exception is written to a crash log under the data
directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from sideko_cli import __version__
from sideko_cli.commands.api import api_app
from sideko_cli.commands.config import config_app
from sideko_cli.commands.doc import doc_app
from sideko_cli.commands.sdk import sdk_app
from sideko_cli.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED

app = typer.Typer(
    name="sideko",
    help="Generate and update SDKs with Sideko.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.add_typer(sdk_app, name="sdk", help="Generate and update SDKs.")
app.add_typer(config_app, name="config", help="Manage the API key and base url.")
app.add_typer(api_app, name="api", help="Inspect APIs registered with Sideko.")
app.add_typer(doc_app, name="doc", help="List and deploy documentation websites.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"sideko {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~sideko_cli.output.OutputManager` and loads
    the config file into the environment.
    """
    from sideko_cli import config
    from sideko_cli.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    config.load()


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from sideko_cli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(exc)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``sideko`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from sideko_cli.exceptions import SidekoError
        from sideko_cli.output import debug, error

        if isinstance(exc, SidekoError):
            error(exc.message)
            if exc.debug:
                debug(exc.debug)
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
