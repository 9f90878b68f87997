"""Configuration storage with environment, keyring, and dotenv-file tiers.

Every setting is identified by a :class:`ConfigKey`, and each key maps to a
fixed environment variable (``SIDEKO_API_KEY``, ``SIDEKO_BASE_URL``,
``SIDEKO_CONFIG_PATH``).

* **Reading** -- :class:`ConfigStore` walks an ordered list of
  :class:`ConfigResolver` objects and returns the first value found. The
  default chain is :class:`EnvResolver` followed by :class:`KeyringResolver`.
* **Config file** -- a dotenv-style ``KEY=value`` file at
  ``$SIDEKO_CONFIG_PATH`` (default ``$HOME/.sideko``). :func:`load` reads it
  into the process environment at startup without overriding variables that
  were already exported, so its values surface through the env tier.
* **Writing** -- :meth:`ConfigStore.set` routes a value either to the OS
  credential store (via :mod:`keyring`) or to the config file, where the
  ``KEY=`` line is replaced in place or appended.

File writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import enum
import os
import platform
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence

import keyring
from dotenv import load_dotenv
from keyring.errors import KeyringError, PasswordDeleteError

from sideko_cli.exceptions import ConfigError, InvalidUsageError, LocalIOError
from sideko_cli.output import debug, warning

_APP_NAME = "sideko"
KEYRING_SERVICE = "sideko"
DEFAULT_BASE_URL = "https://api.sideko.dev/v1"

_UNSAFE_VALUE_RE = re.compile(r"[^\w@%+=:,./-]")


class ConfigKey(enum.Enum):
    """A user-configurable setting, valued by its environment variable name."""

    API_KEY = "SIDEKO_API_KEY"
    API_BASE_URL = "SIDEKO_BASE_URL"
    CONFIG_PATH = "SIDEKO_CONFIG_PATH"

    def __str__(self) -> str:
        return self.value

    @property
    def cli_name(self) -> str:
        """Name used on the command line, e.g. ``api-key``."""
        return _CLI_NAMES[self]

    @classmethod
    def from_cli_name(cls, name: str) -> ConfigKey:
        for key, cli_name in _CLI_NAMES.items():
            if name in (cli_name, key.value):
                return key
        choices = ", ".join(_CLI_NAMES.values())
        raise InvalidUsageError(f"Unknown config key `{name}` (choose from: {choices})")


_CLI_NAMES = {
    ConfigKey.API_KEY: "api-key",
    ConfigKey.API_BASE_URL: "base-url",
    ConfigKey.CONFIG_PATH: "config-path",
}


class Storage(str, enum.Enum):
    """Where :meth:`ConfigStore.set` persists a value."""

    KEYRING = "keyring"
    FILE = "file"


# --- Resolvers ---


class ConfigResolver(ABC):
    """One tier of the read precedence chain."""

    name = "resolver"

    @abstractmethod
    def try_get(self, key: ConfigKey) -> Optional[str]:
        """Return the value for *key*, or ``None`` if this tier has none."""


class EnvResolver(ConfigResolver):
    """Reads the key's environment variable."""

    name = "env"

    def try_get(self, key: ConfigKey) -> Optional[str]:
        return os.environ.get(key.value)


class KeyringResolver(ConfigResolver):
    """Reads the key from the OS credential store.

    A missing entry is a normal outcome. Any other keyring failure (no
    backend, locked keychain, ...) is reported as a warning and treated as
    absent so that commands not needing the value keep working.
    """

    name = "keyring"

    def __init__(self, service: str = KEYRING_SERVICE) -> None:
        self._service = service

    def try_get(self, key: ConfigKey) -> Optional[str]:
        try:
            return keyring.get_password(self._service, key.value)
        except KeyringError as exc:
            warning(f"Failed retrieving keyring entry {key}")
            debug(repr(exc))
            return None


# --- Store ---


class ConfigStore:
    """Resolve and persist :class:`ConfigKey` values.

    Args:
        resolvers: Read tiers in precedence order. Defaults to environment
            variables, then the OS credential store.
        service: Keyring service name used for writes.

    Example::

        store = ConfigStore()
        store.set(ConfigKey.API_BASE_URL, "http://localhost:8080/v1")
        store.get(ConfigKey.API_KEY)
    """

    def __init__(
        self,
        resolvers: Optional[Sequence[ConfigResolver]] = None,
        service: str = KEYRING_SERVICE,
    ) -> None:
        if resolvers is None:
            resolvers = [EnvResolver(), KeyringResolver(service)]
        self._resolvers = list(resolvers)
        self._service = service

    def get(self, key: ConfigKey) -> Optional[str]:
        """Return the first value found for *key*, or ``None``."""
        return self.get_with_source(key)[0]

    def get_with_source(self, key: ConfigKey) -> tuple[Optional[str], Optional[str]]:
        """Like :meth:`get`, also returning the name of the tier that answered."""
        for resolver in self._resolvers:
            value = resolver.try_get(key)
            if value is not None:
                return value, resolver.name
        return None, None

    def set(self, key: ConfigKey, value: str, storage: Optional[Storage] = None) -> Storage:
        """Persist *value* for *key*.

        Args:
            key: Setting to store.
            value: New value.
            storage: Target tier. Defaults to the keyring for the API key
                and to the config file for everything else.

        Returns:
            The storage tier that was written.
        """
        if storage is None:
            storage = Storage.KEYRING if key is ConfigKey.API_KEY else Storage.FILE
        if storage is Storage.KEYRING:
            self.set_keyring(key, value)
        else:
            self.set_file(key, value)
        return storage

    def set_file(self, key: ConfigKey, value: str) -> Path:
        """Write ``KEY=value`` to the config file, replacing an existing entry.

        Values with characters outside a safe set are single-quoted with
        ``\\`` and ``'`` backslash-escaped, the form the dotenv loader reads
        back verbatim. Lines are ``\\n``-delimited; every line beginning with
        ``KEY=`` is replaced, otherwise the entry is appended.

        Returns:
            Path of the config file written.
        """
        if key is ConfigKey.CONFIG_PATH:
            raise InvalidUsageError(
                f"{key} selects the config file itself; export it in your shell instead"
            )

        entry = f"{key}={_quote_value(value)}"
        cfg_path = get_config_path()

        lines: list[str] = []
        if cfg_path.exists():
            try:
                lines = cfg_path.read_text(encoding="utf-8").split("\n")
            except OSError as exc:
                raise LocalIOError(
                    f"Failed loading sideko config file to update {key}: {cfg_path}",
                    debug=repr(exc),
                ) from exc

        replaced = False
        new_lines = []
        for line in lines:
            if line.startswith(f"{key}="):
                replaced = True
                new_lines.append(entry)
            else:
                new_lines.append(line)
        if not replaced:
            new_lines.append(entry)

        try:
            _atomic_write(cfg_path, "\n".join(new_lines))
        except OSError as exc:
            raise LocalIOError(
                f"Failed updating sideko config {key}: {cfg_path}", debug=repr(exc)
            ) from exc

        debug(f"Set dotenv config {key}: {cfg_path}")
        return cfg_path

    def unset_file(self, key: ConfigKey) -> bool:
        """Drop every ``KEY=`` line from the config file.

        Returns:
            ``True`` if the file contained the key.
        """
        cfg_path = get_config_path()
        if not cfg_path.is_file():
            return False
        try:
            lines = cfg_path.read_text(encoding="utf-8").split("\n")
            kept = [line for line in lines if not line.startswith(f"{key}=")]
            if len(kept) == len(lines):
                return False
            _atomic_write(cfg_path, "\n".join(kept))
        except OSError as exc:
            raise LocalIOError(
                f"Failed updating sideko config {key}: {cfg_path}", debug=repr(exc)
            ) from exc
        debug(f"Removed dotenv config {key}: {cfg_path}")
        return True

    def set_keyring(self, key: ConfigKey, value: str) -> None:
        """Store *value* in the OS credential store."""
        try:
            keyring.set_password(self._service, key.value, value)
        except KeyringError as exc:
            raise ConfigError(
                f"Failed storing {key} in the system keyring", debug=repr(exc)
            ) from exc
        debug(f"Set keyring entry {key}")

    def delete_keyring(self, key: ConfigKey) -> bool:
        """Remove *key* from the credential store.

        Returns:
            ``True`` if an entry was removed, ``False`` if none existed.
        """
        try:
            keyring.delete_password(self._service, key.value)
        except PasswordDeleteError:
            return False
        except KeyringError as exc:
            raise ConfigError(
                f"Failed removing {key} from the system keyring", debug=repr(exc)
            ) from exc
        debug(f"Deleted keyring entry {key}")
        return True


# --- Paths ---


def get_config_path() -> Path:
    """Return ``$SIDEKO_CONFIG_PATH``, defaulting to ``$HOME/.sideko``."""
    override = os.environ.get(ConfigKey.CONFIG_PATH.value)
    if override:
        return Path(override).expanduser()
    return get_default_config_path()


def get_default_config_path() -> Path:
    home = os.environ.get("HOME")
    if not home:
        raise ConfigError("Unable to build default config path: $HOME is not set")
    return Path(home) / f".{_APP_NAME}"


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/sideko/`` (default ``~/.local/share/sideko/``).
    Elsewhere: ``~/.sideko-data/``.
    """
    system = platform.system()
    if system == "Linux" or system.endswith("BSD"):
        base = os.environ.get("XDG_DATA_HOME", "")
        root = Path(base) if base else Path.home() / ".local" / "share"
        path = root / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}-data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _quote_value(value: str) -> str:
    """Render *value* for the right-hand side of a dotenv ``KEY=`` line."""
    if value and not _UNSAFE_VALUE_RE.search(value):
        return value
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Startup helpers ---


def load() -> None:
    """Load the config file into the process environment, if it exists.

    Variables already present in the environment win over file entries.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    cfg_path = get_config_path()
    if not cfg_path.is_file():
        return
    try:
        load_dotenv(cfg_path, override=False, interpolate=False, encoding="utf-8")
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        raise ConfigError(f"Failed loading sideko config: {cfg_path}", debug=repr(exc)) from exc
    debug(f"Loaded config: {cfg_path}")


def get_api_key(store: Optional[ConfigStore] = None) -> Optional[str]:
    """Return the API key from the environment or the keyring."""
    store = store or ConfigStore()
    value, source = store.get_with_source(ConfigKey.API_KEY)
    if value is not None:
        debug(f"Retrieved API key from {source}")
    return value


def get_base_url(store: Optional[ConfigStore] = None) -> str:
    """Return the Sideko API base url, defaulting to production."""
    store = store or ConfigStore()
    url = store.get(ConfigKey.API_BASE_URL) or DEFAULT_BASE_URL
    if not url.rstrip("/").endswith("/v1"):
        warning("Sideko API base url does not end with `/v1`, this probably means it is wrong")
    return url
