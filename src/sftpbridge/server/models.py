"""Records shared by the listing, transfer and gateway layers.

This module provides:
- FileEntry, Listing: Unified directory record for local and remote origins
- LogEntry: One line of a session log
- TransferJob: State of a single streamed transfer
- TransferProgress, TransferComplete: Events yielded by the transfer pipeline
- CommandOutput, CommandError, CommandComplete: Events yielded by remote exec
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sftpbridge.core.types import EntryType, LogLevel, TransferDirection


def timestamp_to_iso(seconds: float | None) -> str:
    """Convert a POSIX timestamp to an ISO-8601 UTC string."""
    return datetime.fromtimestamp(seconds or 0, UTC).isoformat()


@dataclass
class FileEntry:
    """A single directory entry, local or remote.

    Attributes:
        name: Entry name without directory.
        type: File or directory.
        size: Size in bytes.
        modified_at: Last modification time (ISO-8601, UTC).
        permissions: Mode bits as reported by stat.
        path: Absolute path within its origin.
    """

    name: str
    type: EntryType
    size: int
    modified_at: str
    permissions: int
    path: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "name": self.name,
            "type": self.type.value,
            "size": self.size,
            "modified": self.modified_at,
            "permissions": self.permissions,
            "path": self.path,
        }


@dataclass
class Listing:
    """Result of listing one directory."""

    path: str
    entries: list[FileEntry]
    parent: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "path": self.path,
            "files": [entry.to_dict() for entry in self.entries],
            "parent": self.parent,
        }


@dataclass
class LogEntry:
    """One session log line."""

    message: str
    level: LogLevel = LogLevel.INFO
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, str]:
        """Convert to JSON-serializable dict."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "level": self.level.value,
        }


@dataclass
class TransferJob:
    """A streamed transfer in flight. Never stored outside its coroutine.

    Attributes:
        direction: Upload or download.
        file_name: Name reported in progress events.
        source_path: Where bytes are read from.
        destination_path: Where bytes are written to.
        total_bytes: Size of the source at start.
        transferred_bytes: Bytes written so far.
        finished: Set once the destination was closed successfully.
        reported_percent: Last percent handed out by advance().
    """

    direction: TransferDirection
    file_name: str
    source_path: str
    destination_path: str
    total_bytes: int
    transferred_bytes: int = 0
    finished: bool = False
    reported_percent: int = -1

    @property
    def percent(self) -> int:
        """Get progress percentage, rounded half up.

        Stays at 99 or below until the job is finished.
        """
        if self.finished:
            return 100
        if self.total_bytes <= 0:
            return 0
        percent = (self.transferred_bytes * 200 + self.total_bytes) // (self.total_bytes * 2)
        return min(percent, 99)

    def advance(self, nbytes: int = 0) -> TransferProgress | None:
        """Account for written bytes.

        Returns:
            A progress event if the percentage moved forward, else None.
        """
        self.transferred_bytes += nbytes
        percent = self.percent
        if percent <= self.reported_percent:
            return None
        self.reported_percent = percent
        return TransferProgress(
            file=self.file_name,
            percent=percent,
            direction=self.direction,
            transferred=self.transferred_bytes,
            total=self.total_bytes,
        )


@dataclass
class TransferProgress:
    """Progress event for a transfer."""

    file: str
    percent: int
    direction: TransferDirection
    transferred: int
    total: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "file": self.file,
            "percent": self.percent,
            "direction": self.direction.value,
            "transferred": self.transferred,
            "total": self.total,
        }


@dataclass
class TransferComplete:
    """Terminal event of a successful transfer."""

    file: str
    direction: TransferDirection
    destination_path: str


@dataclass
class CommandOutput:
    """A chunk of remote stdout."""

    chunk: str


@dataclass
class CommandError:
    """A chunk of remote stderr."""

    chunk: str


@dataclass
class CommandComplete:
    """Terminal event of a remote command."""

    exit_code: int | None
    output: str


CommandEvent = CommandOutput | CommandError | CommandComplete
TransferEvent = TransferProgress | TransferComplete
