"""Tests for FastAPI HTTP endpoints."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from sftpbridge.core.config import BridgeConfig
from sftpbridge.server.app import create_app
from sftpbridge.server.registry import SessionRegistry


@pytest.fixture
def registry(config: BridgeConfig) -> SessionRegistry:
    """Create a session registry."""
    return SessionRegistry(config)


@pytest.fixture
def client(config: BridgeConfig, registry: SessionRegistry) -> TestClient:
    """Create a test client with the app."""
    app = create_app(config, registry)
    return TestClient(app)


@pytest.fixture
def downloads_dir(config: BridgeConfig) -> Path:
    """Create the downloads directory."""
    assert config.downloads_dir is not None
    config.downloads_dir.mkdir(parents=True)
    return config.downloads_dir


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        """Health endpoint should return OK."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "sessions": 0}

    def test_health_counts_sessions(self, client: TestClient, registry: SessionRegistry) -> None:
        """Health endpoint should report live sessions."""
        registry.create()
        response = client.get("/health")
        assert response.json()["sessions"] == 1


class TestDownloadEndpoint:
    """Tests for /api/download/{filename}."""

    def test_download_file(self, client: TestClient, downloads_dir: Path) -> None:
        """Should send the file as an attachment."""
        (downloads_dir / "report.csv").write_bytes(b"a,b\n1,2\n")

        response = client.get("/api/download/report.csv")

        assert response.status_code == 200
        assert response.content == b"a,b\n1,2\n"
        assert "attachment" in response.headers["content-disposition"]
        assert "report.csv" in response.headers["content-disposition"]

    def test_missing_file(self, client: TestClient, downloads_dir: Path) -> None:
        """Unknown names should return 404."""
        response = client.get("/api/download/nope.txt")
        assert response.status_code == 404

    def test_directory_is_not_served(self, client: TestClient, downloads_dir: Path) -> None:
        """Only regular files are served."""
        (downloads_dir / "sub").mkdir()
        response = client.get("/api/download/sub")
        assert response.status_code == 404

    @pytest.mark.parametrize("name", ["..", "..%2Fsecret.txt", "sub%5C..%5Csecret.txt"])
    def test_traversal_rejected(
        self, client: TestClient, downloads_dir: Path, name: str
    ) -> None:
        """Names escaping the downloads directory should return 404."""
        (downloads_dir.parent / "secret.txt").write_text("secret")
        response = client.get(f"/api/download/{name}")
        assert response.status_code == 404
