"""FastAPI dependencies for API routes."""

from __future__ import annotations

from fastapi import Request

from sftpbridge.core.config import BridgeConfig
from sftpbridge.server.registry import SessionRegistry


def get_config(request: Request) -> BridgeConfig:
    """Get bridge configuration from app state."""
    config: BridgeConfig = request.app.state.config
    return config


def get_registry(request: Request) -> SessionRegistry:
    """Get the session registry from app state."""
    registry: SessionRegistry = request.app.state.registry
    return registry
