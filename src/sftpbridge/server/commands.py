"""Command dispatch for gateway sessions.

Each inbound frame is parsed into a Command and routed to one handler.
Handlers talk to the local adapter, the session transport, the listing
unifier or the transfer pipeline, and report back through Session.emit().

Mutations (upload, create-dir, delete) finish by emitting their result
event and then exactly one listing of the affected parent directory.
"""

from __future__ import annotations

import logging
import os
import posixpath
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from sftpbridge.core.config import BridgeConfig
from sftpbridge.core.errors import (
    BridgeError,
    InvalidTransition,
    NotConnected,
    SftpInitFailed,
    SshConnectFailed,
    TransferError,
)
from sftpbridge.core.types import LogLevel, Origin
from sftpbridge.server import listing, local_fs, transfers
from sftpbridge.server.models import (
    CommandComplete,
    CommandError,
    CommandOutput,
    TransferComplete,
    TransferEvent,
)
from sftpbridge.server.registry import Session
from sftpbridge.server.schemas import (
    ClearLogCommand,
    ConnectCommand,
    CreateDirCommand,
    DeleteCommand,
    DisconnectCommand,
    DownloadCommand,
    ExecCommand,
    GetLocalRootsCommand,
    ListLocalCommand,
    ListRemoteCommand,
    UploadCommand,
    parse_command,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Session, Any], Awaitable[None]]


def remote_parent(path: str) -> str:
    """Parent directory of a remote path."""
    return posixpath.dirname(posixpath.normpath(path))


def local_parent(path: str) -> str:
    """Parent directory of a local path."""
    return os.path.dirname(local_fs.normalize_path(path))


class CommandDispatcher:
    """Routes parsed commands to their handlers.

    Errors never escape dispatch(): bridge errors become scoped error
    events, anything else is logged with a traceback and reported as a
    generic error.
    """

    def __init__(self, config: BridgeConfig) -> None:
        """Initialize the dispatcher.

        Args:
            config: Bridge configuration.
        """
        self._config = config
        self._handlers: dict[type, Handler] = {
            ConnectCommand: self.connect,
            DisconnectCommand: self.disconnect,
            ListLocalCommand: self.list_local,
            ListRemoteCommand: self.list_remote,
            GetLocalRootsCommand: self.get_local_roots,
            DownloadCommand: self.download,
            UploadCommand: self.upload,
            CreateDirCommand: self.create_dir,
            DeleteCommand: self.delete,
            ExecCommand: self.exec,
            ClearLogCommand: self.clear_log,
        }

    async def dispatch(self, session: Session, raw: str | bytes) -> None:
        """Handle one inbound frame for a session."""
        try:
            command = parse_command(raw)
            await self._handlers[type(command)](session, command)
        except TransferError as e:
            session.log(str(e), LogLevel.ERROR)
            session.emit(
                "generic-error",
                message=str(e),
                file=e.file,
                direction=e.direction.value,
            )
        except BridgeError as e:
            session.log(str(e), LogLevel.ERROR)
            session.emit("generic-error", message=str(e))
        except Exception as e:
            logger.exception("Unhandled error in session %s: %s", session.id, e)
            session.emit("generic-error", message=f"Internal error: {e}")

    async def send_initial_state(self, session: Session) -> None:
        """Greet a new session: platform info, then the default local listing."""
        session.emit(
            "initial-setup",
            platform=sys.platform,
            default_path=str(self._config.default_local_path),
        )
        try:
            await self.refresh_local(session, str(self._config.default_local_path))
        except BridgeError as e:
            session.log(str(e), LogLevel.ERROR)
            session.emit("generic-error", message=str(e))

    # === Listing ===

    async def refresh_local(self, session: Session, path: str) -> None:
        """List a local directory and emit it."""
        result = await listing.list_local(path, self._config.default_local_path, session.log)
        session.emit("local-listing", **result.to_dict())

    async def refresh_remote(self, session: Session, path: str) -> None:
        """List a remote directory and emit it."""
        result = await listing.list_remote(session.transport, path, session.log)
        session.emit("remote-listing", **result.to_dict())

    async def list_local(self, session: Session, command: ListLocalCommand) -> None:
        await self.refresh_local(session, command.path or str(self._config.default_local_path))

    async def list_remote(self, session: Session, command: ListRemoteCommand) -> None:
        await self.refresh_remote(session, command.path)

    async def get_local_roots(self, session: Session, command: GetLocalRootsCommand) -> None:
        session.emit("local-roots", roots=await local_fs.get_roots())

    # === Connection ===

    async def connect(self, session: Session, command: ConnectCommand) -> None:
        """Connect, then list the user's home directory."""
        try:
            await session.remote.connect(
                command.host,
                command.username,
                command.private_key,
                port=command.port,
            )
        except (SshConnectFailed, SftpInitFailed, InvalidTransition) as e:
            session.log(str(e), LogLevel.ERROR)
            session.emit("connect-error", message=str(e))
            return

        session.emit("connected", host=command.host, username=command.username)
        initial_path = f"/home/{command.username}"
        session.log(f"Loading initial directory: {initial_path}")
        await self.refresh_remote(session, initial_path)

    async def disconnect(self, session: Session, command: DisconnectCommand) -> None:
        """Close the transport. Repeated calls are no-ops."""
        await session.remote.disconnect()

    # === Transfers ===

    def _emit_progress(self, session: Session, event: TransferEvent) -> TransferComplete | None:
        if isinstance(event, TransferComplete):
            return event
        session.emit("transfer-progress", **event.to_dict())
        return None

    async def download(self, session: Session, command: DownloadCommand) -> None:
        events = transfers.download(
            session.transport,
            command.remote_path,
            command.local_path,
            chunk_size=self._config.chunk_size,
            log=session.log,
        )
        async for event in events:
            done = self._emit_progress(session, event)
            if done:
                session.log(f"Downloaded {done.file}", LogLevel.SUCCESS)
                session.emit("download-complete", file=done.file, local_path=done.destination_path)

    async def upload(self, session: Session, command: UploadCommand) -> None:
        """Upload, then re-list the remote parent directory."""
        events = transfers.upload(
            session.transport,
            command.remote_path,
            local_path=command.local_path,
            content=command.content,
            file_name=command.file_name,
            staging_dir=self._config.staging_dir,
            chunk_size=self._config.chunk_size,
            log=session.log,
        )
        async for event in events:
            done = self._emit_progress(session, event)
            if done:
                session.log(f"Uploaded {done.file}", LogLevel.SUCCESS)
                session.emit("upload-complete", file=done.file)

        await self.refresh_remote(session, remote_parent(command.remote_path))

    # === Mutations ===

    async def create_dir(self, session: Session, command: CreateDirCommand) -> None:
        """Create a directory, then re-list its parent."""
        if command.origin == Origin.LOCAL:
            await local_fs.make_dir(command.path)
            session.emit("dir-created", path=command.path)
            await self.refresh_local(session, local_parent(command.path))
            return

        transport = session.transport
        if transport is None:
            raise NotConnected()
        await transport.make_dir(command.path)
        session.emit("dir-created", path=command.path)
        await self.refresh_remote(session, remote_parent(command.path))

    async def delete(self, session: Session, command: DeleteCommand) -> None:
        """Delete an entry, then re-list its parent."""
        if command.origin == Origin.LOCAL:
            await local_fs.delete(command.path, command.entry_type)
            session.emit("file-deleted", path=command.path)
            await self.refresh_local(session, local_parent(command.path))
            return

        transport = session.transport
        if transport is None:
            raise NotConnected()
        await transport.delete(command.path, command.entry_type)
        session.emit("file-deleted", path=command.path)
        await self.refresh_remote(session, remote_parent(command.path))

    # === Misc ===

    async def exec(self, session: Session, command: ExecCommand) -> None:
        """Stream a remote command's output to the session."""
        transport = session.transport
        if transport is None:
            raise NotConnected()
        session.log(f"$ {command.command}")
        async for event in transport.exec(command.command):
            if isinstance(event, CommandOutput):
                session.emit("command-output", chunk=event.chunk)
            elif isinstance(event, CommandError):
                session.emit("command-error", chunk=event.chunk)
            elif isinstance(event, CommandComplete):
                session.emit("command-complete", exit_code=event.exit_code, output=event.output)

    async def clear_log(self, session: Session, command: ClearLogCommand) -> None:
        session.clear_logs()
        session.emit("log-cleared")
