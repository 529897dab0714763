"""Health check API route."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from sftpbridge.server.api.deps import get_registry
from sftpbridge.server.registry import SessionRegistry
from sftpbridge.server.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(registry: SessionRegistry = Depends(get_registry)) -> HealthResponse:
    """Check server health."""
    return HealthResponse(status="ok", sessions=len(registry))
