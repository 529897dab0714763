"""Remote transport session over SSH.

This module provides:
- RemoteTransport: One SSH connection plus its SFTP handle, driven by an
  explicit state machine
- BridgeSSHClient: asyncssh callbacks feeding events into the state machine

State machine:
    disconnected ──connect──► connecting ──ready──► connected
         ▲                        │                    │
         └────────error/end───────┘     disconnect ────┤
         ▲                                             ▼
         └───────────────end/error─────────────── disconnecting

Every event goes through RemoteTransport._transition(); an event with no
entry in the table is rejected, which is how exec or listing while
disconnected fail.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING, Any

import asyncssh

from sftpbridge.core.config import ENCRYPTION_ALGS, SERVER_HOST_KEY_ALGS, BridgeConfig
from sftpbridge.core.errors import (
    CommandExecFailed,
    InvalidTransition,
    MutationFailed,
    NotConnected,
    SftpInitFailed,
    SshConnectFailed,
)
from sftpbridge.core.types import EntryType, LogLevel, TransportEvent, TransportState
from sftpbridge.server.models import CommandComplete, CommandError, CommandEvent, CommandOutput

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

LogCallback = Callable[[str, LogLevel], None]
ClosedCallback = Callable[["RemoteTransport", Exception | None], None]

_S = TransportState
_E = TransportEvent

_TRANSITIONS: dict[tuple[TransportState, TransportEvent], TransportState] = {
    (_S.DISCONNECTED, _E.CONNECT): _S.CONNECTING,
    (_S.CONNECTING, _E.AUTH_CHALLENGE): _S.CONNECTING,
    (_S.CONNECTING, _E.READY): _S.CONNECTED,
    (_S.CONNECTING, _E.ERROR): _S.DISCONNECTED,
    (_S.CONNECTING, _E.END): _S.DISCONNECTED,
    (_S.CONNECTED, _E.ERROR): _S.DISCONNECTED,
    (_S.CONNECTED, _E.END): _S.DISCONNECTED,
    (_S.CONNECTED, _E.DISCONNECT): _S.DISCONNECTING,
    (_S.DISCONNECTING, _E.ERROR): _S.DISCONNECTED,
    (_S.DISCONNECTING, _E.END): _S.DISCONNECTED,
}


def _noop_log(message: str, level: LogLevel) -> None:
    pass


class BridgeSSHClient(asyncssh.SSHClient):
    """asyncssh client callbacks for a RemoteTransport."""

    def __init__(self, transport: RemoteTransport) -> None:
        self._transport = transport

    def auth_completed(self) -> None:
        self._transport.log("SSH connection established successfully", LogLevel.SUCCESS)

    def kbdint_auth_requested(self) -> str:
        # Empty submethods string: accept the challenge, answer it below
        return ""

    def kbdint_challenge_received(
        self,
        name: str,
        instructions: str,
        lang: str,
        prompts: Sequence[tuple[str, bool]],
    ) -> list[str]:
        self._transport.handle_auth_challenge()
        return []

    def connection_lost(self, exc: Exception | None) -> None:
        self._transport.handle_connection_lost(exc)


class RemoteTransport:
    """An SSH connection and its SFTP subsystem, owned by one session.

    The transport can be reused: after it returns to DISCONNECTED a new
    connect() starts a fresh connection.
    """

    def __init__(
        self,
        config: BridgeConfig,
        log: LogCallback | None = None,
        on_closed: ClosedCallback | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Bridge configuration (timeouts, keep-alive, known_hosts).
            log: Callback receiving session log lines.
            on_closed: Called once when a connected transport goes away.
        """
        self._config = config
        self._log = log or _noop_log
        self._on_closed = on_closed
        self._state = TransportState.DISCONNECTED
        self._conn: asyncssh.SSHClientConnection | None = None
        self._sftp: asyncssh.SFTPClient | None = None
        self.host: str | None = None
        self.port: int | None = None
        self.username: str | None = None

    @property
    def state(self) -> TransportState:
        """Current state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if both SSH and SFTP are up."""
        return self._state == TransportState.CONNECTED

    @property
    def sftp(self) -> asyncssh.SFTPClient:
        """Get the SFTP handle.

        Raises:
            NotConnected: If the transport is not connected.
        """
        if self._state != TransportState.CONNECTED or self._sftp is None:
            raise NotConnected()
        return self._sftp

    def log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        """Forward a line to the session log."""
        self._log(message, level)

    def _transition(self, event: TransportEvent) -> TransportState:
        """Apply an event to the state machine.

        Raises:
            InvalidTransition: If the event is not allowed in the current state.
        """
        new_state = _TRANSITIONS.get((self._state, event))
        if new_state is None:
            raise InvalidTransition(
                f"Cannot handle '{event.value}' while {self._state.value}"
            )
        if new_state != self._state:
            logger.debug("Transport %s -> %s (%s)", self._state.value, new_state.value, event.value)
        self._state = new_state
        return new_state

    def _connect_options(self, private_key: str) -> dict[str, Any]:
        """Build asyncssh.connect keyword arguments.

        Raises:
            SshConnectFailed: If the private key cannot be parsed.
        """
        try:
            key = asyncssh.import_private_key(private_key)
        except asyncssh.KeyImportError as e:
            raise SshConnectFailed(f"Invalid private key: {e}") from e

        options: dict[str, Any] = {
            "client_keys": [key],
            "agent_path": None,
            "preferred_auth": ("publickey", "keyboard-interactive"),
            "connect_timeout": self._config.connect_timeout,
            "keepalive_interval": self._config.keepalive_interval,
            "keepalive_count_max": self._config.keepalive_count_max,
            "server_host_key_algs": SERVER_HOST_KEY_ALGS,
            "encryption_algs": ENCRYPTION_ALGS,
        }
        if self._config.known_hosts is not None:
            options["known_hosts"] = self._config.known_hosts
        return options

    async def connect(self, host: str, username: str, private_key: str, port: int = 22) -> None:
        """Open the SSH connection and start SFTP.

        The transport is only CONNECTED once both steps succeed.

        Raises:
            InvalidTransition: If already connecting or connected.
            SshConnectFailed: If the connection or authentication fails.
            SftpInitFailed: If the SFTP subsystem cannot be started.
        """
        self._transition(TransportEvent.CONNECT)
        self.host, self.port, self.username = host, port, username
        self.log(f"Initiating SSH connection to {username}@{host}:{port}")

        try:
            options = self._connect_options(private_key)
            conn = await asyncssh.connect(
                host,
                port=port,
                username=username,
                client_factory=lambda: BridgeSSHClient(self),
                **options,
            )
        except SshConnectFailed:
            self._transition(TransportEvent.ERROR)
            raise
        except asyncio.CancelledError:
            self._transition(TransportEvent.ERROR)
            raise
        except Exception as e:
            # Includes resolver errors such as UnicodeError for malformed host names
            self._transition(TransportEvent.ERROR)
            raise SshConnectFailed(f"SSH connection failed: {e}") from e

        try:
            sftp = await conn.start_sftp_client()
        except asyncio.CancelledError:
            self._transition(TransportEvent.ERROR)
            conn.close()
            raise
        except Exception as e:
            self._transition(TransportEvent.ERROR)
            conn.close()
            raise SftpInitFailed(f"SFTP initialization failed: {e}") from e

        self._conn, self._sftp = conn, sftp
        self._transition(TransportEvent.READY)
        self.log("SFTP session initialized", LogLevel.SUCCESS)
        logger.info("Connected to %s@%s:%d", username, host, port)

    def handle_auth_challenge(self) -> None:
        """Keyboard-interactive challenge received during login."""
        self._transition(TransportEvent.AUTH_CHALLENGE)
        self.log("Keyboard-interactive authentication requested", LogLevel.WARNING)

    def handle_connection_lost(self, exc: Exception | None) -> None:
        """SSH connection closed, cleanly (end) or not (error).

        Losses while connecting are reported by connect() itself.
        """
        if self._state not in (TransportState.CONNECTED, TransportState.DISCONNECTING):
            return

        self._transition(TransportEvent.ERROR if exc else TransportEvent.END)
        self._conn = None
        self._sftp = None
        if exc:
            self.log(f"SSH connection error: {exc}", LogLevel.ERROR)
        else:
            self.log("SSH connection closed")
        logger.info("Connection to %s closed", self.host)

        if self._on_closed:
            self._on_closed(self, exc)

    async def disconnect(self) -> None:
        """Close the connection. No-op if not connected.

        Raises:
            InvalidTransition: If a connect is still in progress.
        """
        if self._state in (TransportState.DISCONNECTED, TransportState.DISCONNECTING):
            return

        self._transition(TransportEvent.DISCONNECT)
        conn = self._conn
        if conn is not None:
            conn.close()
            with contextlib.suppress(asyncssh.Error, OSError):
                await conn.wait_closed()

        # connection_lost normally got us here already
        if self._state == TransportState.DISCONNECTING:
            self.handle_connection_lost(None)

    async def make_dir(self, path: str) -> None:
        """Create a remote directory.

        Raises:
            NotConnected: If the transport is not connected.
            MutationFailed: If the SFTP server refuses.
        """
        sftp = self.sftp
        try:
            await sftp.mkdir(path)
        except (asyncssh.SFTPError, OSError) as e:
            raise MutationFailed(f"Failed to create directory: {e}") from e

    async def delete(self, path: str, entry_type: EntryType) -> None:
        """Remove a remote file, or an empty remote directory.

        Raises:
            NotConnected: If the transport is not connected.
            MutationFailed: If the SFTP server refuses.
        """
        sftp = self.sftp
        try:
            if entry_type == EntryType.DIRECTORY:
                await sftp.rmdir(path)
            else:
                await sftp.remove(path)
        except (asyncssh.SFTPError, OSError) as e:
            raise MutationFailed(f"Failed to delete: {e}") from e

    async def exec(self, command: str, chunk_size: int = 4096) -> AsyncIterator[CommandEvent]:
        """Run one remote command, streaming its output.

        Yields CommandOutput for stdout chunks and CommandError for stderr
        chunks as they arrive, then exactly one CommandComplete with the
        exit code and the full stdout.

        Raises:
            NotConnected: If the transport is not connected.
            CommandExecFailed: If the command cannot be started or read.
        """
        if self._state != TransportState.CONNECTED or self._conn is None:
            raise NotConnected()
        conn = self._conn

        try:
            # Undecodable bytes become U+FFFD instead of failing the channel
            process = await conn.create_process(command, errors="replace")
        except (asyncssh.Error, OSError) as e:
            raise CommandExecFailed(f"Failed to execute command: {e}") from e

        queue: asyncio.Queue[CommandEvent | None] = asyncio.Queue()

        async def pump(reader: asyncssh.SSHReader[str], wrap: type[CommandOutput] | type[CommandError]) -> None:
            try:
                while True:
                    chunk = await reader.read(chunk_size)
                    if not chunk:
                        break
                    queue.put_nowait(wrap(chunk))
            finally:
                queue.put_nowait(None)

        pumps = [
            asyncio.create_task(pump(process.stdout, CommandOutput)),
            asyncio.create_task(pump(process.stderr, CommandError)),
        ]
        output: list[str] = []
        try:
            open_streams = len(pumps)
            while open_streams:
                event = await queue.get()
                if event is None:
                    open_streams -= 1
                    continue
                if isinstance(event, CommandOutput):
                    output.append(event.chunk)
                yield event

            for result in await asyncio.gather(*pumps, return_exceptions=True):
                if isinstance(result, BaseException):
                    raise CommandExecFailed(f"Command stream failed: {result}") from result

            completed = await process.wait(check=False)
        finally:
            for task in pumps:
                task.cancel()
            process.close()

        yield CommandComplete(exit_code=completed.returncode, output="".join(output))
