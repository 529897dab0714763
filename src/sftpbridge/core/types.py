"""Shared types for sftpbridge.

This module defines enums used across the transport, listing,
transfer and gateway layers.
"""

from __future__ import annotations

from enum import Enum


class Origin(str, Enum):
    """Which side of the bridge a path belongs to."""

    LOCAL = "local"
    REMOTE = "remote"


class EntryType(str, Enum):
    """Kind of filesystem entry."""

    FILE = "file"
    DIRECTORY = "directory"


class LogLevel(str, Enum):
    """Severity of a session log entry."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class TransferDirection(str, Enum):
    """Direction of a transfer job.

    DOWNLOAD moves bytes remote -> local, UPLOAD local -> remote.
    """

    DOWNLOAD = "download"
    UPLOAD = "upload"


class TransportState(str, Enum):
    """Lifecycle state of a remote transport."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


class TransportEvent(str, Enum):
    """Events that drive the transport state machine."""

    CONNECT = "connect"
    READY = "ready"
    ERROR = "error"
    END = "end"
    DISCONNECT = "disconnect"
    AUTH_CHALLENGE = "auth_challenge"
