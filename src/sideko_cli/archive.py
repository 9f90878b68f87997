"""Gzipped tarball packing and unpacking.

Thin wrappers around :mod:`tarfile` that map failures onto
:class:`~sideko_cli.exceptions.LocalIOError`.
"""

from __future__ import annotations

import io
import tarfile
from pathlib import Path

from sideko_cli.exceptions import LocalIOError
from sideko_cli.output import debug


def pack_directory(source_dir: Path, archive_path: Path) -> bytes:
    """Archive everything under *source_dir* into a ``.tar.gz`` at *archive_path*.

    Hidden entries are included. *source_dir* itself becomes ``.`` inside the
    archive so that extracting recreates its contents, not the directory.

    Args:
        source_dir: Directory to archive.
        archive_path: Where to write the archive, usually in a temporary
            directory owned by the caller.

    Returns:
        The archive bytes.

    Raises:
        LocalIOError: If the directory cannot be read or the archive written.
    """
    debug(f"Tarring {source_dir} into {archive_path}...")
    try:
        with tarfile.open(archive_path, mode="w:gz") as tar:
            tar.add(source_dir, arcname=".", recursive=True)
        data = archive_path.read_bytes()
    except (OSError, tarfile.TarError) as exc:
        raise LocalIOError(f"Failed archiving {source_dir}", debug=repr(exc)) from exc
    debug(f"Tar complete: {len(data)} bytes")
    return data


def unpack_stream(data: bytes, dest_dir: Path) -> None:
    """Extract a ``.tar.gz`` byte stream into *dest_dir*, creating it if absent.

    Extraction uses tarfile's ``data`` filter, which rejects absolute paths
    and members escaping *dest_dir*. On failure the partially extracted tree
    is left in place for inspection.

    Raises:
        LocalIOError: If the stream is not a valid archive or extraction fails.
    """
    debug(f"Unpacking archive to {dest_dir}: {len(data)} bytes")
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            tar.extractall(dest_dir, filter="data")
    except (OSError, tarfile.TarError, EOFError) as exc:
        raise LocalIOError(f"Failed unpacking archive into {dest_dir}", debug=repr(exc)) from exc
