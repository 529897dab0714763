"""Tests for core configuration classes."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from sftpbridge.core.config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LOG_BUFFER_SIZE,
    ENCRYPTION_ALGS,
    SERVER_HOST_KEY_ALGS,
    BridgeConfig,
    platform_default_path,
)


class TestBridgeConfig:
    """Tests for BridgeConfig class."""

    def test_init_defaults(self) -> None:
        """Should initialize with sensible defaults."""
        config = BridgeConfig()
        assert config.data_dir == Path.home() / "SFTP-Bridge"
        assert config.log_buffer_size == DEFAULT_LOG_BUFFER_SIZE
        assert config.chunk_size == DEFAULT_CHUNK_SIZE
        assert config.known_hosts is None
        assert config.connect_timeout == 30.0
        assert config.keepalive_interval == 10.0
        assert config.keepalive_count_max == 3

    def test_derived_directories(self, tmp_path: Path) -> None:
        """Staging and downloads dirs should live under data_dir."""
        config = BridgeConfig(data_dir=tmp_path)
        assert config.staging_dir == tmp_path / "temp"
        assert config.downloads_dir == tmp_path / "downloads"

    def test_explicit_directories_kept(self, tmp_path: Path) -> None:
        """Explicit staging/downloads dirs should not be overridden."""
        config = BridgeConfig(
            data_dir=tmp_path,
            staging_dir=tmp_path / "stage",
            downloads_dir=tmp_path / "dl",
        )
        assert config.staging_dir == tmp_path / "stage"
        assert config.downloads_dir == tmp_path / "dl"

    def test_rejects_empty_log_buffer(self) -> None:
        """A zero-sized log buffer is not allowed."""
        with pytest.raises(ValueError, match="log_buffer_size"):
            BridgeConfig(log_buffer_size=0)

    def test_rejects_zero_chunk_size(self) -> None:
        """A zero chunk size is not allowed."""
        with pytest.raises(ValueError, match="chunk_size"):
            BridgeConfig(chunk_size=0)

    def test_from_env(self, tmp_path: Path) -> None:
        """Should read SFTPBRIDGE_* variables."""
        env = {
            "SFTPBRIDGE_DATA_DIR": str(tmp_path),
            "SFTPBRIDGE_DEFAULT_LOCAL_PATH": str(tmp_path / "files"),
            "SFTPBRIDGE_LOG_BUFFER_SIZE": "50",
            "SFTPBRIDGE_CHUNK_SIZE": "1024",
            "SFTPBRIDGE_KNOWN_HOSTS": "/etc/ssh/ssh_known_hosts",
            "SFTPBRIDGE_KEEPALIVE_INTERVAL": "5",
        }
        with patch.dict("os.environ", env, clear=True):
            config = BridgeConfig.from_env()
        assert config.data_dir == tmp_path
        assert config.staging_dir == tmp_path / "temp"
        assert config.default_local_path == tmp_path / "files"
        assert config.log_buffer_size == 50
        assert config.chunk_size == 1024
        assert config.known_hosts == "/etc/ssh/ssh_known_hosts"
        assert config.keepalive_interval == 5.0

    def test_from_env_defaults(self) -> None:
        """Should fall back to defaults when nothing is set."""
        with patch.dict("os.environ", {}, clear=True):
            config = BridgeConfig.from_env()
        assert config.chunk_size == DEFAULT_CHUNK_SIZE
        assert config.known_hosts is None


class TestPlatformDefaultPath:
    """Tests for platform_default_path."""

    def test_home_on_posix(self) -> None:
        """Should be the home directory outside Windows."""
        with patch("sftpbridge.core.config.sys.platform", "linux"):
            assert platform_default_path() == Path.home()

    def test_downloads_on_windows(self) -> None:
        """Should be ~/Downloads on Windows."""
        with patch("sftpbridge.core.config.sys.platform", "win32"):
            assert platform_default_path() == Path.home() / "Downloads"


class TestAlgorithmAllowLists:
    """Tests for the SSH algorithm allow-lists."""

    def test_no_legacy_ciphers(self) -> None:
        """CBC, arcfour and 3DES must not be offered."""
        for alg in ENCRYPTION_ALGS:
            assert "cbc" not in alg
            assert "arcfour" not in alg
            assert "3des" not in alg

    def test_no_sha1_rsa_host_keys(self) -> None:
        """ssh-rsa (SHA-1) and DSA host keys must not be accepted."""
        assert "ssh-rsa" not in SERVER_HOST_KEY_ALGS
        assert "ssh-dss" not in SERVER_HOST_KEY_ALGS
        assert "ssh-ed25519" in SERVER_HOST_KEY_ALGS
