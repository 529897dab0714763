"""Session registry.

This module provides:
- Session: Server-side state of one gateway connection (transport, log
  buffer, outbound event queue, in-flight command tasks)
- SessionRegistry: Table of live sessions, created at application start

Architecture:
    Browser ──ws──► gateway ──► SessionRegistry ──► Session ──► RemoteTransport
                                                       │
                                                  outbound queue ──ws──► Browser

Events for a session are queued in emission order and drained by one
sender, so a session's listener sees them in that order.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import deque
from collections.abc import Coroutine
from datetime import UTC, datetime
from typing import Any

from sftpbridge.core.config import BridgeConfig
from sftpbridge.core.errors import InvalidTransition
from sftpbridge.core.types import LogLevel
from sftpbridge.server.models import LogEntry
from sftpbridge.server.transport import RemoteTransport

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class Session:
    """State bound to one client connection.

    The session owns exactly one RemoteTransport, which is reused across
    connect/disconnect cycles. `transport` is only set while that transport
    is connected.
    """

    def __init__(self, session_id: str, config: BridgeConfig) -> None:
        """Initialize the session.

        Args:
            session_id: Opaque session identifier.
            config: Bridge configuration.
        """
        self.id = session_id
        self.config = config
        self.created_at = datetime.now(UTC)
        self.closed = False
        self._logs: deque[LogEntry] = deque(maxlen=config.log_buffer_size)
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._tasks: set[asyncio.Task[None]] = set()
        self._remote = RemoteTransport(config, log=self.log, on_closed=self._on_transport_closed)

    @property
    def remote(self) -> RemoteTransport:
        """The session's transport handle, whatever its state."""
        return self._remote

    @property
    def transport(self) -> RemoteTransport | None:
        """The attached transport, or None while disconnected."""
        return self._remote if self._remote.is_connected else None

    @property
    def logs(self) -> list[LogEntry]:
        """Snapshot of the log buffer, oldest first."""
        return list(self._logs)

    @property
    def pending_tasks(self) -> int:
        """Number of commands still running."""
        return len(self._tasks)

    def emit(self, event_type: str, **payload: Any) -> None:
        """Queue an outbound event for this session."""
        if self.closed:
            return
        self._outbox.put_nowait({"type": event_type, **payload})

    async def next_event(self) -> dict[str, Any]:
        """Wait for the next outbound event."""
        return await self._outbox.get()

    def log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        """Append to the session log and send it to the client."""
        entry = LogEntry(message=message, level=level)
        self._logs.append(entry)
        self.emit("log-entry", **entry.to_dict())
        logger.log(_LOG_LEVELS[level], "[%s] %s", self.id, message)

    def clear_logs(self) -> None:
        """Empty the log buffer."""
        self._logs.clear()

    def spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        """Run a command coroutine as a task owned by this session."""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _on_transport_closed(self, transport: RemoteTransport, exc: Exception | None) -> None:
        """Detach after the transport ended or failed."""
        if exc is not None:
            self.emit("connect-error", message=str(exc))
        self.emit("disconnected")

    async def close(self) -> None:
        """Tear the session down.

        Cancels running commands (transfers end abruptly, partial output
        stays), then closes the transport.
        """
        self.closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        try:
            await self._remote.disconnect()
        except InvalidTransition as e:
            logger.warning("Session %s: transport not closed cleanly: %s", self.id, e)
        self._logs.clear()


class SessionRegistry:
    """Owns every live Session, keyed by session id.

    Entries are only touched in response to events addressed to their own
    session id.
    """

    def __init__(self, config: BridgeConfig) -> None:
        """Initialize an empty registry.

        Args:
            config: Configuration handed to each new session.
        """
        self._config = config
        self._sessions: dict[str, Session] = {}

    def create(self) -> Session:
        """Register a new session."""
        session = Session(uuid.uuid4().hex, self._config)
        self._sessions[session.id] = session
        logger.info("Session created: %s (%d active)", session.id, len(self._sessions))
        return session

    def get(self, session_id: str) -> Session | None:
        """Get a session by id."""
        return self._sessions.get(session_id)

    async def destroy(self, session_id: str) -> None:
        """Close a session and drop it. No-op for unknown ids."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        await session.close()
        logger.info("Session destroyed: %s (%d active)", session_id, len(self._sessions))

    async def close_all(self) -> None:
        """Destroy every session (application shutdown)."""
        for session_id in list(self._sessions):
            await self.destroy(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
