"""Tests for the WebSocket gateway."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from sftpbridge.core.config import BridgeConfig
from sftpbridge.server.app import create_app
from sftpbridge.server.registry import Session, SessionRegistry
from sftpbridge.server.ws import pump_events


@pytest.fixture
def registry(config: BridgeConfig) -> SessionRegistry:
    """Create a session registry."""
    return SessionRegistry(config)


@pytest.fixture
def client(config: BridgeConfig, registry: SessionRegistry) -> TestClient:
    """Create a test client with the app."""
    return TestClient(create_app(config, registry))


def receive_until(ws: Any, event_type: str) -> dict[str, Any]:
    """Read events until one of the given type arrives."""
    while True:
        event: dict[str, Any] = ws.receive_json()
        if event["type"] == event_type:
            return event


class TestPumpEvents:
    """Tests for pump_events."""

    @pytest.mark.asyncio
    async def test_sends_in_order(self, session: Session) -> None:
        """Should send queued events as JSON text, oldest first."""
        websocket = MagicMock()
        websocket.client_state = WebSocketState.CONNECTED
        sent: list[dict[str, Any]] = []

        async def send_text(text: str) -> None:
            sent.append(json.loads(text))
            if len(sent) == 2:
                raise RuntimeError("socket closed")

        websocket.send_text = AsyncMock(side_effect=send_text)
        session.emit("first")
        session.emit("second")

        await asyncio.wait_for(pump_events(websocket, session), timeout=1)

        assert [e["type"] for e in sent] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_stops_when_socket_closed(self, session: Session) -> None:
        """Should stop without sending once the socket is gone."""
        websocket = MagicMock()
        websocket.client_state = WebSocketState.DISCONNECTED
        websocket.send_text = AsyncMock()
        session.emit("late")

        await asyncio.wait_for(pump_events(websocket, session), timeout=1)

        websocket.send_text.assert_not_called()


class TestWebSocketSession:
    """Tests for the /ws endpoint."""

    def test_initial_state(self, client: TestClient, local_home: Path) -> None:
        """A new session gets initial-setup, then the default local listing."""
        (local_home / "hello.txt").write_text("hi")
        with client.websocket_connect("/ws") as ws:
            setup = ws.receive_json()
            assert setup["type"] == "initial-setup"
            assert setup["default_path"] == str(local_home)

            listing = receive_until(ws, "local-listing")
            assert listing["path"] == str(local_home)
            assert [f["name"] for f in listing["files"]] == ["hello.txt"]

    def test_invalid_frame_keeps_session(self, client: TestClient) -> None:
        """A bad frame yields an error and the session keeps working."""
        with client.websocket_connect("/ws") as ws:
            receive_until(ws, "local-listing")

            ws.send_text("not json")
            error = receive_until(ws, "generic-error")
            assert error["message"].startswith("Invalid command")

            ws.send_text(json.dumps({"type": "clear-log"}))
            receive_until(ws, "log-cleared")

    def test_remote_listing_requires_connection(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            receive_until(ws, "local-listing")
            ws.send_text(json.dumps({"type": "list-remote", "path": "/tmp"}))
            error = receive_until(ws, "generic-error")
            assert error["message"] == "Not connected to SSH"

    def test_session_dropped_on_close(
        self, client: TestClient, registry: SessionRegistry
    ) -> None:
        """Closing the socket removes its session."""
        with client.websocket_connect("/ws") as ws:
            receive_until(ws, "local-listing")
            assert len(registry) == 1
        assert len(registry) == 0
