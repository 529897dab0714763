"""Local filesystem adapter.

Lists, creates and deletes entries on the machine running the service.
Blocking calls are pushed to a worker thread so the event loop keeps
serving other sessions.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import string
import sys
from pathlib import Path

from sftpbridge.core.errors import MutationFailed
from sftpbridge.core.types import EntryType
from sftpbridge.server.models import FileEntry, timestamp_to_iso

logger = logging.getLogger(__name__)

# Names starting with these are hidden or system entries
HIDDEN_PREFIXES = (".", "$")


def is_hidden(name: str) -> bool:
    """Check whether an entry should be left out of listings."""
    return name.startswith(HIDDEN_PREFIXES)


def normalize_path(path: str) -> str:
    """Normalize a user-supplied local path."""
    return os.path.normpath(os.path.expanduser(path or "."))


def _scan_dir(directory: str) -> list[FileEntry]:
    """Read a directory, skipping hidden entries and unreadable ones."""
    entries: list[FileEntry] = []
    with os.scandir(directory) as it:
        for dirent in it:
            if is_hidden(dirent.name):
                continue
            try:
                # Follows symlinks, so a link to a directory lists as one
                st = os.stat(dirent.path)
                is_dir = dirent.is_dir()
            except OSError as e:
                logger.debug("Skipping %s: %s", dirent.path, e)
                continue
            entries.append(
                FileEntry(
                    name=dirent.name,
                    type=EntryType.DIRECTORY if is_dir else EntryType.FILE,
                    size=st.st_size,
                    modified_at=timestamp_to_iso(st.st_mtime),
                    permissions=st.st_mode,
                    path=os.path.join(directory, dirent.name),
                )
            )
    return entries


async def exists(path: str) -> bool:
    """Check whether a local path exists."""
    return await asyncio.to_thread(os.path.exists, path)


async def scan_dir(directory: str) -> list[FileEntry]:
    """List a local directory.

    Raises:
        OSError: If the directory itself cannot be read.
    """
    return await asyncio.to_thread(_scan_dir, directory)


async def make_dir(path: str) -> None:
    """Create a local directory and any missing parents."""
    try:
        await asyncio.to_thread(os.makedirs, path, exist_ok=True)
    except OSError as e:
        raise MutationFailed(f"Failed to create directory: {e}") from e


async def delete(path: str, entry_type: EntryType) -> None:
    """Delete a local file, or a directory tree."""

    def _delete() -> None:
        if entry_type == EntryType.DIRECTORY:
            shutil.rmtree(path)
        else:
            os.unlink(path)

    try:
        await asyncio.to_thread(_delete)
    except OSError as e:
        raise MutationFailed(f"Failed to delete: {e}") from e


def list_roots() -> list[str]:
    """Get the filesystem roots of this machine.

    Returns:
        Existing drive roots on Windows, ["/"] elsewhere.
    """
    if sys.platform == "win32":
        return [f"{letter}:\\" for letter in string.ascii_uppercase if Path(f"{letter}:\\").exists()]
    return ["/"]


async def get_roots() -> list[str]:
    """Async wrapper for list_roots (drive probing can block)."""
    return await asyncio.to_thread(list_roots)
