"""WebSocket gateway for bridge sessions.

This module provides:
- The /ws endpoint: one Session per connection
- Event pumping from the session queue to the socket

Architecture:
    Browser ──ws frame──► receive loop ──spawn──► CommandDispatcher
       ▲                                               │
       └────── sender task ◄── Session outbound queue ◄┘

Message format (client -> server):
    {"type": "list-remote", "path": "/home/user"}
    {"type": "upload", "remote_path": "/tmp/a.txt", "content": "aGVsbG8=", "file_name": "a.txt"}

Message format (server -> client):
    {"type": "remote-listing", "path": "/home/user", "files": [...], "parent": "/home"}
    {"type": "transfer-progress", "file": "a.txt", "percent": 42, ...}
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

if TYPE_CHECKING:
    from sftpbridge.server.commands import CommandDispatcher
    from sftpbridge.server.registry import Session, SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


async def pump_events(websocket: WebSocket, session: Session) -> None:
    """Send a session's events to its socket, in emission order."""
    while True:
        event = await session.next_event()
        if websocket.client_state != WebSocketState.CONNECTED:
            return
        try:
            await websocket.send_text(json.dumps(event))
        except Exception as e:
            logger.debug("Send failed for session %s: %s", session.id, e)
            return


@router.websocket("/ws")
async def websocket_session(websocket: WebSocket) -> None:
    """WebSocket endpoint for browser sessions.

    The session lives exactly as long as the socket. On disconnect its
    commands are cancelled, its transport closed and its state dropped.

    Args:
        websocket: The WebSocket connection.
    """
    registry: SessionRegistry = websocket.app.state.registry
    dispatcher: CommandDispatcher = websocket.app.state.dispatcher

    await websocket.accept()
    session = registry.create()
    logger.info("Client connected: %s", session.id)

    sender = asyncio.create_task(pump_events(websocket, session))
    session.spawn(dispatcher.send_initial_state(session))

    try:
        while True:
            raw = await websocket.receive_text()
            session.spawn(dispatcher.dispatch(session, raw))
    except WebSocketDisconnect:
        logger.info("Client disconnected: %s", session.id)
    except Exception as e:
        logger.exception("Error in session WebSocket: %s", e)
    finally:
        await registry.destroy(session.id)
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
