"""Config commands -- view and persist the API key and base url.

The API key goes to the OS credential store by default; the base url goes
to the dotenv-style config file (``$SIDEKO_CONFIG_PATH`` or
``~/.sideko``). Either default can be overridden with ``--store``.
"""

from __future__ import annotations

from typing import Optional

import typer

from sideko_cli.output import info, print_data, print_table, success, warning

config_app = typer.Typer(no_args_is_help=True)


def _mask(value: str) -> str:
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key: 'api-key' or 'base-url'."),
    value: str = typer.Argument(help="Value to store."),
    store_in: Optional[str] = typer.Option(
        None,
        "--store",
        help="Where to store the value: 'keyring' or 'file'. "
        "Defaults to keyring for api-key and file for base-url.",
    ),
) -> None:
    """Store a configuration value.

    Example::

        sideko config set api-key sk_live_123
        sideko config set base-url http://localhost:8080/v1
        sideko config set api-key sk_live_123 --store file
    """
    from sideko_cli.config import ConfigKey, ConfigStore, Storage, get_config_path
    from sideko_cli.exceptions import InvalidUsageError

    config_key = ConfigKey.from_cli_name(key)
    storage: Optional[Storage] = None
    if store_in is not None:
        try:
            storage = Storage(store_in)
        except ValueError:
            raise InvalidUsageError(
                f"Unknown store `{store_in}` (choose from: keyring, file)"
            ) from None

    written = ConfigStore().set(config_key, value, storage)
    if written is Storage.KEYRING:
        success(f"Stored {config_key.cli_name} in the system keyring")
    else:
        success(f"Stored {config_key.cli_name} in {get_config_path()}")


@config_app.command("get")
def config_get(
    key: str = typer.Argument(help="Config key: 'api-key', 'base-url' or 'config-path'."),
) -> None:
    """Print the effective value of a configuration key.

    Exits with code 1 when the key is not set anywhere.
    """
    from sideko_cli.config import ConfigKey, ConfigStore, get_config_path

    config_key = ConfigKey.from_cli_name(key)
    if config_key is ConfigKey.CONFIG_PATH:
        print_data(str(get_config_path()))
        return

    value = ConfigStore().get(config_key)
    if value is None:
        warning(f"{config_key.cli_name} is not set")
        raise typer.Exit(code=1)
    print_data(value)


@config_app.command("unset")
def config_unset(
    key: str = typer.Argument(help="Config key: 'api-key' or 'base-url'."),
) -> None:
    """Remove a configuration value from the keyring and the config file.

    A value exported in the environment is left untouched.
    """
    from sideko_cli.config import ConfigKey, ConfigStore

    config_key = ConfigKey.from_cli_name(key)
    store = ConfigStore()
    removed_keyring = store.delete_keyring(config_key)
    removed_file = store.unset_file(config_key)
    if removed_keyring or removed_file:
        success(f"Removed {config_key.cli_name}")
    else:
        info(f"{config_key.cli_name} was not stored")


@config_app.command("path")
def config_path() -> None:
    """Print the path of the config file."""
    from sideko_cli.config import get_config_path

    print_data(str(get_config_path()))


@config_app.command("show")
def config_show() -> None:
    """Show every configuration value and where it came from.

    The API key is masked. Values read from the config file are reported
    with source ``env`` since the file is loaded into the environment at
    startup.
    """
    from sideko_cli.config import DEFAULT_BASE_URL, ConfigKey, ConfigStore, get_config_path

    store = ConfigStore()
    info(f"Config file: {get_config_path()}")

    rows = []
    for config_key in (ConfigKey.API_KEY, ConfigKey.API_BASE_URL):
        value, source = store.get_with_source(config_key)
        if value is None:
            if config_key is ConfigKey.API_BASE_URL:
                value, source = DEFAULT_BASE_URL, "default"
            else:
                value, source = "", "unset"
        elif config_key is ConfigKey.API_KEY:
            value = _mask(value)
        rows.append([config_key.cli_name, value, source])

    print_table(["Key", "Value", "Source"], rows, title="Sideko config")
