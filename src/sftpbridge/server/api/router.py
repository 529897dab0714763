"""Main API router that includes all sub-routers."""

from __future__ import annotations

from fastapi import APIRouter

from sftpbridge.server.api import downloads, health

router = APIRouter()

# Include all API routers
router.include_router(health.router)
router.include_router(downloads.router)
