"""Directory listing unifier.

Produces the same Listing/FileEntry shape for local and remote
directories. Local listings fall back to the default directory; remote
listings report errors as they are.
"""

from __future__ import annotations

import logging
import os
import posixpath
import stat
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import asyncssh

from sftpbridge.core.errors import LocalListingFailed, NotConnected, RemoteListingFailed
from sftpbridge.core.types import EntryType, LogLevel
from sftpbridge.server import local_fs
from sftpbridge.server.models import FileEntry, Listing, timestamp_to_iso

if TYPE_CHECKING:
    from sftpbridge.server.transport import RemoteTransport

logger = logging.getLogger(__name__)

LogCallback = Callable[[str, LogLevel], None]


async def list_local(path: str, default_path: Path | str, log: LogCallback) -> Listing:
    """List a local directory.

    A missing path is replaced by default_path with a warning. A directory
    that exists but cannot be read also falls back to default_path.

    Args:
        path: Requested directory.
        default_path: Fallback directory.
        log: Session log callback.

    Returns:
        Listing of the directory actually read.

    Raises:
        LocalListingFailed: If the default directory itself cannot be read.
    """
    default = local_fs.normalize_path(str(default_path))
    resolved = local_fs.normalize_path(path)

    if not await local_fs.exists(resolved):
        log(f"Path not found: {resolved}, using default {default}", LogLevel.WARNING)
        resolved = default

    try:
        entries = await local_fs.scan_dir(resolved)
    except OSError as e:
        if resolved == default:
            raise LocalListingFailed(f"Failed to list directory: {e}") from e
        log(f"Failed to list {resolved}: {e}, falling back to {default}", LogLevel.WARNING)
        return await list_local(default, default, log)

    logger.debug("Found %d items in %s", len(entries), resolved)
    return Listing(path=resolved, entries=entries, parent=os.path.dirname(resolved))


def _remote_entry(directory: str, name: Any) -> FileEntry:
    """Convert an SFTPName into a FileEntry."""
    attrs = name.attrs
    longname = name.longname or ""
    if longname:
        is_dir = longname[0] == "d"
    else:
        is_dir = stat.S_ISDIR(attrs.permissions or 0)
    return FileEntry(
        name=name.filename,
        type=EntryType.DIRECTORY if is_dir else EntryType.FILE,
        size=attrs.size or 0,
        modified_at=timestamp_to_iso(attrs.mtime),
        permissions=attrs.permissions or 0,
        path=posixpath.join(directory, name.filename),
    )


async def list_remote(transport: RemoteTransport | None, path: str, log: LogCallback) -> Listing:
    """List a remote directory over SFTP.

    Raises:
        NotConnected: If there is no connected transport.
        RemoteListingFailed: If the directory cannot be read.
    """
    if transport is None:
        raise NotConnected()
    sftp = transport.sftp
    path = posixpath.normpath(path)

    log(f"Reading directory: {path}", LogLevel.INFO)
    try:
        names = await sftp.readdir(path)
    except (asyncssh.SFTPError, OSError) as e:
        raise RemoteListingFailed(f"Failed to list directory: {e}") from e

    entries = [_remote_entry(path, n) for n in names if n.filename not in (".", "..")]
    log(f"Found {len(entries)} items in {path}", LogLevel.SUCCESS)
    return Listing(path=path, entries=entries, parent=posixpath.dirname(path))
