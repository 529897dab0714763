"""Configuration for the sftpbridge service.

Settings come from environment variables with defaults, the same way the
server's storage and database paths are resolved at startup.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

# Modern algorithm allow-lists handed to the SSH transport.
SERVER_HOST_KEY_ALGS = [
    "ssh-ed25519",
    "ecdsa-sha2-nistp256",
    "ecdsa-sha2-nistp384",
    "ecdsa-sha2-nistp521",
    "rsa-sha2-512",
    "rsa-sha2-256",
]
ENCRYPTION_ALGS = [
    "aes128-gcm@openssh.com",
    "aes256-gcm@openssh.com",
    "aes128-ctr",
    "aes192-ctr",
    "aes256-ctr",
]

DEFAULT_CHUNK_SIZE = 32 * 1024
DEFAULT_LOG_BUFFER_SIZE = 500


def default_data_dir() -> Path:
    """Get the default data directory (~/SFTP-Bridge)."""
    return Path.home() / "SFTP-Bridge"


def platform_default_path() -> Path:
    """Get the platform default local directory.

    Returns:
        ~/Downloads on Windows, the home directory elsewhere.
    """
    home = Path.home()
    if sys.platform == "win32":
        return home / "Downloads"
    return home


@dataclass
class BridgeConfig:
    """Runtime settings for the bridge.

    Attributes:
        data_dir: Base directory for service-owned files.
        staging_dir: Where inline upload content is staged before streaming.
        downloads_dir: Directory served by the HTTP download endpoint.
        default_local_path: Fallback directory for local listings.
        log_path: Path of the service log file.
        log_buffer_size: Maximum log entries retained per session.
        chunk_size: Read size for streamed transfers, in bytes.
        known_hosts: known_hosts file for host key checks (None = SSH default).
        connect_timeout: Seconds allowed for connect plus authentication.
        keepalive_interval: Seconds between keep-alive probes.
        keepalive_count_max: Unanswered probes before the link is dropped.
    """

    data_dir: Path = field(default_factory=default_data_dir)
    staging_dir: Path | None = None
    downloads_dir: Path | None = None
    default_local_path: Path = field(default_factory=platform_default_path)
    log_path: Path = Path("sftpbridge.log")
    log_buffer_size: int = DEFAULT_LOG_BUFFER_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    known_hosts: str | None = None
    connect_timeout: float = 30.0
    keepalive_interval: float = 10.0
    keepalive_count_max: int = 3

    def __post_init__(self) -> None:
        """Derive staging and downloads directories from data_dir."""
        self.data_dir = Path(self.data_dir).expanduser()
        if self.staging_dir is None:
            self.staging_dir = self.data_dir / "temp"
        if self.downloads_dir is None:
            self.downloads_dir = self.data_dir / "downloads"
        if self.log_buffer_size < 1:
            raise ValueError("log_buffer_size must be at least 1")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")

    @classmethod
    def from_env(cls) -> BridgeConfig:
        """Build configuration from SFTPBRIDGE_* environment variables."""
        env = os.environ
        kwargs: dict[str, object] = {}
        if env.get("SFTPBRIDGE_DATA_DIR"):
            kwargs["data_dir"] = Path(env["SFTPBRIDGE_DATA_DIR"])
        if env.get("SFTPBRIDGE_STAGING_DIR"):
            kwargs["staging_dir"] = Path(env["SFTPBRIDGE_STAGING_DIR"])
        if env.get("SFTPBRIDGE_DOWNLOADS_DIR"):
            kwargs["downloads_dir"] = Path(env["SFTPBRIDGE_DOWNLOADS_DIR"])
        if env.get("SFTPBRIDGE_DEFAULT_LOCAL_PATH"):
            kwargs["default_local_path"] = Path(env["SFTPBRIDGE_DEFAULT_LOCAL_PATH"])
        if env.get("SFTPBRIDGE_LOG_PATH"):
            kwargs["log_path"] = Path(env["SFTPBRIDGE_LOG_PATH"])
        if env.get("SFTPBRIDGE_KNOWN_HOSTS"):
            kwargs["known_hosts"] = env["SFTPBRIDGE_KNOWN_HOSTS"]

        kwargs["log_buffer_size"] = int(
            env.get("SFTPBRIDGE_LOG_BUFFER_SIZE", str(DEFAULT_LOG_BUFFER_SIZE))
        )
        kwargs["chunk_size"] = int(env.get("SFTPBRIDGE_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE)))
        kwargs["connect_timeout"] = float(env.get("SFTPBRIDGE_CONNECT_TIMEOUT", "30"))
        kwargs["keepalive_interval"] = float(env.get("SFTPBRIDGE_KEEPALIVE_INTERVAL", "10"))
        kwargs["keepalive_count_max"] = int(env.get("SFTPBRIDGE_KEEPALIVE_COUNT_MAX", "3"))
        return cls(**kwargs)  # type: ignore[arg-type]
