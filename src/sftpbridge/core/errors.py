"""Error taxonomy for sftpbridge.

Every failure that is reported back to a session derives from
BridgeError. The gateway turns these into scoped error events; none of
them end the session.
"""

from __future__ import annotations

from sftpbridge.core.types import TransferDirection


class BridgeError(Exception):
    """Base exception for bridge errors."""


class NotConnected(BridgeError):
    """A remote operation was attempted with no connected transport."""

    def __init__(self, message: str = "Not connected to SSH") -> None:
        super().__init__(message)


class InvalidTransition(BridgeError):
    """The transport state machine rejected an event."""


class InvalidCommand(BridgeError):
    """An inbound gateway message could not be parsed or validated."""


class SshConnectFailed(BridgeError):
    """SSH connection or authentication failed."""


class SftpInitFailed(BridgeError):
    """SSH succeeded but the SFTP subsystem could not be started."""


class RemoteListingFailed(BridgeError):
    """Reading a remote directory failed."""


class LocalListingFailed(BridgeError):
    """Reading a local directory failed, including the default fallback."""


class MutationFailed(BridgeError):
    """Creating or deleting an entry failed."""


class CommandExecFailed(BridgeError):
    """A remote command could not be started or its streams failed."""


class TransferError(BridgeError):
    """Base exception for transfer failures.

    Attributes:
        file: Name of the file being transferred.
        direction: Direction of the failed transfer.
    """

    def __init__(self, message: str, file: str, direction: TransferDirection) -> None:
        self.file = file
        self.direction = direction
        super().__init__(message)


class RemoteFileNotFound(TransferError):
    """The remote source of a download could not be stat'ed."""


class LocalFileNotFound(TransferError):
    """The local source of an upload does not exist."""


class TransferStreamError(TransferError):
    """Reading or writing failed mid-stream."""
