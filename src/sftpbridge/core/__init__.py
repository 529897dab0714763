"""Core module - Shared configuration, types and errors."""

from sftpbridge.core.config import BridgeConfig, platform_default_path
from sftpbridge.core.errors import (
    BridgeError,
    CommandExecFailed,
    InvalidCommand,
    InvalidTransition,
    LocalFileNotFound,
    LocalListingFailed,
    MutationFailed,
    NotConnected,
    RemoteFileNotFound,
    RemoteListingFailed,
    SftpInitFailed,
    SshConnectFailed,
    TransferError,
    TransferStreamError,
)
from sftpbridge.core.types import (
    EntryType,
    LogLevel,
    Origin,
    TransferDirection,
    TransportEvent,
    TransportState,
)

__all__ = [
    # Config
    "BridgeConfig",
    "platform_default_path",
    # Errors
    "BridgeError",
    "CommandExecFailed",
    "InvalidCommand",
    "InvalidTransition",
    "LocalFileNotFound",
    "LocalListingFailed",
    "MutationFailed",
    "NotConnected",
    "RemoteFileNotFound",
    "RemoteListingFailed",
    "SftpInitFailed",
    "SshConnectFailed",
    "TransferError",
    "TransferStreamError",
    # Types
    "EntryType",
    "LogLevel",
    "Origin",
    "TransferDirection",
    "TransportEvent",
    "TransportState",
]
