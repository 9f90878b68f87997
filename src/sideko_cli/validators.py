"""Pre-flight validation of CLI-supplied paths and versions.

The ``validate_*`` functions raise
:class:`~sideko_cli.exceptions.InvalidUsageError` so they can be used from
library code. The ``*_option`` variants are Typer option callbacks that turn
the same failures into :class:`typer.BadParameter`, so bad arguments are
rejected before any command body runs.
"""

from __future__ import annotations

import enum
import re
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import typer

from sideko_cli.exceptions import InvalidUsageError

CONFIG_EXTENSIONS = (".json", ".yml", ".yaml")

# https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

PathLike = Union[str, Path]


class PathKind(enum.Enum):
    FILE = "file"
    DIR = "dir"


def validate_path(raw_path: PathLike, kind: PathKind, allow_dne: bool = False) -> Path:
    """Validate the kind of *raw_path* and, unless *allow_dne*, that it exists.

    Args:
        raw_path: Path as given on the command line.
        kind: Whether a file or a directory is expected.
        allow_dne: Also accept a path that does not exist yet.

    Returns:
        The path as a :class:`~pathlib.Path`.

    Raises:
        InvalidUsageError: If the path does not satisfy the constraints.
    """
    if isinstance(raw_path, str) and not raw_path.strip():
        raise InvalidUsageError(f"Ill-formed path: {raw_path!r}")
    path = Path(raw_path)

    if kind is PathKind.FILE:
        if allow_dne:
            allowed = path.is_file() or not path.exists()
            msg = f"Path `{path}` must be a file or a non-existent path"
        else:
            allowed = path.is_file()
            msg = f"Path `{path}` must be an existing file"
    else:
        if allow_dne:
            allowed = path.is_dir() or not path.exists()
            msg = f"Path `{path}` must be a directory or a non-existent path"
        else:
            allowed = path.is_dir()
            msg = f"Path `{path}` must be an existing directory"

    if not allowed:
        raise InvalidUsageError(msg)
    return path


def validate_file_with_extension(raw_path: PathLike, extensions: Sequence[str]) -> Path:
    """Validate that *raw_path* is an existing file with one of *extensions*."""
    path = validate_path(raw_path, PathKind.FILE)
    if path.suffix.lower() not in extensions:
        raise InvalidUsageError(
            f"Path has incorrect extension, only {list(extensions)} are permitted"
        )
    return path


def validate_file(raw_path: PathLike) -> Path:
    """Validate path exists and is a file."""
    return validate_path(raw_path, PathKind.FILE)


def validate_file_json_yaml(raw_path: PathLike) -> Path:
    """Validate file path exists and is either JSON or YAML."""
    return validate_file_with_extension(raw_path, CONFIG_EXTENSIONS)


def validate_file_allow_dne(raw_path: PathLike) -> Path:
    """Validate path is a file or does not exist."""
    return validate_path(raw_path, PathKind.FILE, allow_dne=True)


def validate_dir(raw_path: PathLike) -> Path:
    """Validate path exists and is a directory."""
    return validate_path(raw_path, PathKind.DIR)


def validate_dir_allow_dne(raw_path: PathLike) -> Path:
    """Validate path is a directory or does not exist."""
    return validate_path(raw_path, PathKind.DIR, allow_dne=True)


def validate_semver(raw: str) -> str:
    """Validate *raw* is a semantic version such as ``1.2.3`` or ``1.0.0-rc.1``."""
    if not _SEMVER_RE.match(raw):
        raise InvalidUsageError(f"`{raw}` is not a valid semantic version (e.g. `0.1.0`)")
    return raw


# --- Typer callbacks ---


def _as_option(validator: Callable[..., object]) -> Callable[..., object]:
    def callback(value: Optional[object]) -> Optional[object]:
        if value is None:
            return value
        try:
            return validator(value)
        except InvalidUsageError as exc:
            raise typer.BadParameter(exc.message) from exc

    callback.__doc__ = validator.__doc__
    return callback


config_file_option = _as_option(validate_file_json_yaml)
dir_option = _as_option(validate_dir)
dir_allow_dne_option = _as_option(validate_dir_allow_dne)
semver_option = _as_option(validate_semver)
