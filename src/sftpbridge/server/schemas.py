"""Pydantic schemas for gateway commands and HTTP responses."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Base64Bytes, BaseModel, Field, TypeAdapter, ValidationError, model_validator

from sftpbridge.core.errors import InvalidCommand
from sftpbridge.core.types import EntryType, Origin

# === Connection commands ===


class ConnectCommand(BaseModel):
    """Open an SSH connection with a private key."""

    type: Literal["connect"]
    host: str = Field(min_length=1)
    username: str = Field(min_length=1)
    private_key: str = Field(min_length=1)
    port: int = Field(default=22, ge=1, le=65535)


class DisconnectCommand(BaseModel):
    """Close the SSH connection."""

    type: Literal["disconnect"]


# === Listing commands ===


class ListLocalCommand(BaseModel):
    """List a local directory (default directory when path is omitted)."""

    type: Literal["list-local"]
    path: str | None = None


class ListRemoteCommand(BaseModel):
    """List a remote directory."""

    type: Literal["list-remote"]
    path: str = Field(min_length=1)


class GetLocalRootsCommand(BaseModel):
    """Request the local filesystem roots."""

    type: Literal["get-local-roots"]


# === Transfer commands ===


class DownloadCommand(BaseModel):
    """Copy a remote file to a local path."""

    type: Literal["download"]
    remote_path: str = Field(min_length=1)
    local_path: str = Field(min_length=1)


class UploadCommand(BaseModel):
    """Copy a local file, or base64 content, to a remote path."""

    type: Literal["upload"]
    remote_path: str = Field(min_length=1)
    local_path: str | None = None
    content: Base64Bytes | None = None
    file_name: str | None = None

    @model_validator(mode="after")
    def check_source(self) -> UploadCommand:
        """Require either a local path or inline content."""
        if self.content is None and not self.local_path:
            raise ValueError("upload needs local_path or content")
        return self


# === Mutation commands ===


class CreateDirCommand(BaseModel):
    """Create a directory on either side."""

    type: Literal["create-dir"]
    origin: Origin
    path: str = Field(min_length=1)


class DeleteCommand(BaseModel):
    """Delete a file or directory on either side."""

    type: Literal["delete"]
    origin: Origin
    path: str = Field(min_length=1)
    entry_type: EntryType = EntryType.FILE


class ExecCommand(BaseModel):
    """Run a command on the remote host."""

    type: Literal["exec"]
    command: str = Field(min_length=1)


class ClearLogCommand(BaseModel):
    """Empty the session log."""

    type: Literal["clear-log"]


Command = Annotated[
    ConnectCommand
    | DisconnectCommand
    | ListLocalCommand
    | ListRemoteCommand
    | GetLocalRootsCommand
    | DownloadCommand
    | UploadCommand
    | CreateDirCommand
    | DeleteCommand
    | ExecCommand
    | ClearLogCommand,
    Field(discriminator="type"),
]

command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(raw: str | bytes) -> Command:
    """Parse and validate one inbound gateway frame.

    Raises:
        InvalidCommand: If the frame is not valid JSON or not a known command.
    """
    try:
        return command_adapter.validate_json(raw)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'message'}: {err['msg']}" for err in e.errors()
        )
        raise InvalidCommand(f"Invalid command: {errors}") from e


# === HTTP schemas ===


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    sessions: int = 0
