"""FastAPI application for the SFTP bridge.

This module creates and configures the FastAPI application with:
- WebSocket gateway for browser sessions
- REST API for health and staged downloads

Usage:
    uvicorn sftpbridge.server.app:app_factory --factory --host 127.0.0.1 --port 3000
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from sftpbridge import __version__
from sftpbridge.core.config import BridgeConfig
from sftpbridge.server.api.router import router as api_router
from sftpbridge.server.commands import CommandDispatcher
from sftpbridge.server.registry import SessionRegistry
from sftpbridge.server.ws import router as ws_router

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Loggers that also write to the service log file
_FILE_ONLY_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "asyncssh")


def setup_logging(log_path: Path, level: int = logging.INFO) -> logging.Logger:
    """Send sftpbridge logs to stdout and to log_path.

    uvicorn and asyncssh records are copied into the same file. Calling
    this again only updates the level.

    Args:
        log_path: Path to the log file.
        level: Level for the sftpbridge logger.

    Returns:
        The configured "sftpbridge" logger.
    """
    bridge_logger = logging.getLogger("sftpbridge")
    bridge_logger.setLevel(level)
    if any(getattr(h, "_sftpbridge", False) for h in bridge_logger.handlers):
        return bridge_logger

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler(sys.stdout)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_file = logging.FileHandler(log_path, encoding="utf-8")
    for handler in (console, log_file):
        handler.setFormatter(formatter)
        handler._sftpbridge = True  # type: ignore[attr-defined]
        bridge_logger.addHandler(handler)

    for name in _FILE_ONLY_LOGGERS:
        logging.getLogger(name).addHandler(log_file)
    return bridge_logger


def create_app(config: BridgeConfig, registry: SessionRegistry | None = None) -> FastAPI:
    """Create FastAPI application with the given configuration.

    Args:
        config: Bridge configuration.
        registry: Optional pre-built session registry (tests inject their own).

    Returns:
        Configured FastAPI application.
    """
    session_registry = registry or SessionRegistry(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        # Startup
        logger.info("=" * 60)
        logger.info("SFTP Bridge Starting")
        logger.info("=" * 60)
        logger.info("  Default path: %s", config.default_local_path)
        logger.info("  Staging:      %s", config.staging_dir)
        logger.info("  Downloads:    %s", config.downloads_dir)
        logger.info("  Logs:         %s", config.log_path.absolute())
        logger.info("=" * 60)

        yield

        # Shutdown
        logger.info("SFTP Bridge shutting down (%d sessions)", len(session_registry))
        await session_registry.close_all()

    application = FastAPI(
        title="SFTP Bridge",
        description="Browse and transfer files between this machine and SSH hosts",
        version=__version__,
        lifespan=lifespan,
    )

    application.state.config = config
    application.state.registry = session_registry
    application.state.dispatcher = CommandDispatcher(config)

    application.include_router(api_router)
    application.include_router(ws_router)

    return application


def app_factory() -> FastAPI:
    """Factory function for uvicorn --factory mode."""
    config = BridgeConfig.from_env()
    level = LOG_LEVELS.get(os.environ.get("SFTPBRIDGE_LOG_LEVEL", "info").lower(), logging.INFO)
    setup_logging(config.log_path, level)
    return create_app(config)
