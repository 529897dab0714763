"""Streamed transfers between local storage and SFTP.

This module provides:
- download: remote -> local, with progress
- upload: local file or inline content -> remote, with progress
- stage_content: materialize inline content under the staging directory

Both transfers are async generators yielding TransferProgress events and
ending with one TransferComplete. Failures raise a TransferError subclass
naming the file and direction. Progress only reaches 100 after the
destination was closed without error.

Partial downloads are left on disk. Staged upload files are always
removed.
"""

from __future__ import annotations

import asyncio
import logging
import os
import posixpath
import time
import uuid
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import TYPE_CHECKING

import asyncssh

from sftpbridge.core.config import DEFAULT_CHUNK_SIZE
from sftpbridge.core.errors import (
    LocalFileNotFound,
    NotConnected,
    RemoteFileNotFound,
    TransferStreamError,
)
from sftpbridge.core.types import LogLevel, TransferDirection
from sftpbridge.server.models import TransferComplete, TransferEvent, TransferJob

if TYPE_CHECKING:
    from sftpbridge.server.transport import RemoteTransport

logger = logging.getLogger(__name__)

LogCallback = Callable[[str, LogLevel], None]


def _noop_log(message: str, level: LogLevel) -> None:
    pass


async def stage_content(content: bytes, file_name: str, staging_dir: Path) -> Path:
    """Write inline upload content to a unique file under staging_dir.

    Returns:
        Path of the staged file.
    """
    safe_name = os.path.basename(file_name) or "upload"
    staged = staging_dir / f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_name}"

    def _write() -> None:
        staging_dir.mkdir(parents=True, exist_ok=True)
        staged.write_bytes(content)

    await asyncio.to_thread(_write)
    return staged


def _discard_staged(path: Path) -> None:
    """Remove a staged file, logging instead of raising."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove staged file %s: %s", path, e)


async def download(
    transport: RemoteTransport | None,
    remote_path: str,
    local_path: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    log: LogCallback = _noop_log,
) -> AsyncIterator[TransferEvent]:
    """Stream a remote file to a local path.

    Args:
        transport: Session transport (None if not connected).
        remote_path: File to read over SFTP.
        local_path: Destination on this machine.
        chunk_size: Bytes per read.
        log: Session log callback.

    Raises:
        NotConnected: If there is no connected transport.
        RemoteFileNotFound: If the remote file cannot be stat'ed.
        TransferStreamError: If reading or writing fails mid-stream.
    """
    if transport is None:
        raise NotConnected()
    sftp = transport.sftp
    direction = TransferDirection.DOWNLOAD
    file_name = posixpath.basename(remote_path)

    try:
        attrs = await sftp.stat(remote_path)
    except (asyncssh.SFTPError, OSError) as e:
        raise RemoteFileNotFound(f"File not found: {e}", file_name, direction) from e

    destination = os.path.normpath(os.path.expanduser(local_path))
    parent = os.path.dirname(destination)
    if parent:
        try:
            await asyncio.to_thread(os.makedirs, parent, exist_ok=True)
        except OSError as e:
            log(f"Could not create {parent}: {e}", LogLevel.WARNING)

    job = TransferJob(
        direction=direction,
        file_name=file_name,
        source_path=remote_path,
        destination_path=destination,
        total_bytes=attrs.size or 0,
    )
    log(f"Downloading {file_name} to {destination}", LogLevel.INFO)

    try:
        async with sftp.open(remote_path, "rb") as src:
            dst = await asyncio.to_thread(open, destination, "wb")
            try:
                while True:
                    chunk = await src.read(chunk_size)
                    if not chunk:
                        break
                    await asyncio.to_thread(dst.write, chunk)
                    progress = job.advance(len(chunk))
                    if progress:
                        yield progress
            finally:
                await asyncio.to_thread(dst.close)
    except (asyncssh.SFTPError, OSError) as e:
        raise TransferStreamError(f"Download failed: {e}", file_name, direction) from e

    job.finished = True
    final = job.advance()
    if final:
        yield final
    logger.info("Download complete: %s", destination)
    yield TransferComplete(file=file_name, direction=direction, destination_path=destination)


async def upload(
    transport: RemoteTransport | None,
    remote_path: str,
    local_path: str | None = None,
    content: bytes | None = None,
    file_name: str | None = None,
    staging_dir: Path | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    log: LogCallback = _noop_log,
) -> AsyncIterator[TransferEvent]:
    """Stream a local file, or inline content, to a remote path.

    Inline content is staged to a temporary file first so both sources go
    through the same stream. The staged file is removed on every exit path.

    Args:
        transport: Session transport (None if not connected).
        remote_path: Destination over SFTP.
        local_path: Source on this machine (ignored when content is given).
        content: Raw bytes supplied by the client.
        file_name: Display name, and staged name for inline content.
        staging_dir: Where inline content is staged.
        chunk_size: Bytes per read.
        log: Session log callback.

    Raises:
        NotConnected: If there is no connected transport.
        LocalFileNotFound: If the source does not exist.
        TransferStreamError: If reading or writing fails mid-stream.
    """
    if transport is None:
        raise NotConnected()
    sftp = transport.sftp
    direction = TransferDirection.UPLOAD
    name = file_name or posixpath.basename(remote_path)

    staged: Path | None = None
    try:
        if content is not None:
            if staging_dir is None:
                raise ValueError("staging_dir is required for inline content")
            try:
                staged = await stage_content(content, name, staging_dir)
            except OSError as e:
                raise TransferStreamError(f"Failed to stage upload: {e}", name, direction) from e
            source = str(staged)
        elif local_path:
            source = os.path.normpath(os.path.expanduser(local_path))
        else:
            raise LocalFileNotFound("Local file not found", name, direction)

        try:
            st = await asyncio.to_thread(os.stat, source)
        except OSError as e:
            raise LocalFileNotFound(f"Local file not found: {source}", name, direction) from e

        job = TransferJob(
            direction=direction,
            file_name=name,
            source_path=source,
            destination_path=remote_path,
            total_bytes=st.st_size,
        )
        log(f"Uploading {name} to {remote_path}", LogLevel.INFO)

        try:
            src = await asyncio.to_thread(open, source, "rb")
            try:
                async with sftp.open(remote_path, "wb") as dst:
                    while True:
                        chunk = await asyncio.to_thread(src.read, chunk_size)
                        if not chunk:
                            break
                        await dst.write(chunk)
                        progress = job.advance(len(chunk))
                        if progress:
                            yield progress
            finally:
                await asyncio.to_thread(src.close)
        except (asyncssh.SFTPError, OSError) as e:
            raise TransferStreamError(f"Upload failed: {e}", name, direction) from e

        job.finished = True
        final = job.advance()
        if final:
            yield final
        logger.info("Upload complete: %s", remote_path)
        yield TransferComplete(file=name, direction=direction, destination_path=remote_path)
    finally:
        if staged is not None:
            _discard_staged(staged)
