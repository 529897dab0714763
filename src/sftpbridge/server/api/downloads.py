"""Download API route.

Serves files previously placed in the downloads directory.
"""

from __future__ import annotations

import os

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from sftpbridge.core.config import BridgeConfig
from sftpbridge.server.api.deps import get_config

router = APIRouter(prefix="/api", tags=["downloads"])


@router.get("/download/{filename}")
def download_file(
    filename: str,
    config: BridgeConfig = Depends(get_config),
) -> FileResponse:
    """Send a file from the downloads directory as an attachment."""
    # Plain file names only, nothing that walks out of the directory
    if filename in ("", ".", "..") or os.path.basename(filename) != filename or "\\" in filename:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )
    path = config.downloads_dir / filename
    if not path.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )
    return FileResponse(path, filename=filename)
