"""Shared fixtures: fake SSH transport, fake remote root, config, sessions."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import asyncssh
import pytest

from sftpbridge.core.config import BridgeConfig
from sftpbridge.server.registry import Session
from tests.fakes import FakeSFTPClient, FakeSSH


@pytest.fixture(scope="session")
def private_key() -> str:
    """A freshly generated OpenSSH private key."""
    key = asyncssh.generate_private_key("ssh-ed25519")
    exported: bytes = key.export_private_key()
    return exported.decode()


@pytest.fixture
def remote_root(tmp_path: Path) -> Path:
    """Directory standing in for the remote filesystem."""
    root = tmp_path / "remote"
    (root / "home" / "u").mkdir(parents=True)
    (root / "tmp").mkdir()
    return root


@pytest.fixture
def fake_sftp(remote_root: Path) -> FakeSFTPClient:
    """Fake SFTP client over remote_root."""
    return FakeSFTPClient(remote_root)


@pytest.fixture
def fake_ssh(fake_sftp: FakeSFTPClient) -> Generator[FakeSSH, None, None]:
    """Patch asyncssh.connect with a fake."""
    fake = FakeSSH(fake_sftp)
    with patch("sftpbridge.server.transport.asyncssh.connect", fake):
        yield fake


@pytest.fixture
def local_home(tmp_path: Path) -> Path:
    """Directory used as the default local path."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def config(tmp_path: Path, local_home: Path) -> BridgeConfig:
    """Config rooted in tmp_path, with tiny chunks so progress has steps."""
    return BridgeConfig(
        data_dir=tmp_path / "data",
        default_local_path=local_home,
        log_path=tmp_path / "sftpbridge.log",
        chunk_size=4,
    )


@pytest.fixture
def session(config: BridgeConfig) -> Session:
    """A standalone session (no gateway)."""
    return Session("test-session", config)
