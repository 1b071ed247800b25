"""Preview and streaming routes over the scratch cache."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse
from starlette.types import Receive, Scope, Send

from droidscope.api.deps import require_device
from droidscope.schemas.transfers import (
    StreamRequest,
    TransferPurpose,
    TransferResult,
    TransferState,
    TransferStatus,
)
from droidscope.services import get_transfer_manager
from droidscope.services.transfer_manager import ScratchFile

logger = logging.getLogger(__name__)
router = APIRouter()

# Strong references so running streams are not garbage collected
_stream_tasks: set[asyncio.Task] = set()


class ScratchFileResponse(FileResponse):
    """Sends a scratch copy and deletes it afterwards, even if sending fails."""

    def __init__(self, scratch: ScratchFile, **kwargs):
        super().__init__(scratch.path, filename=scratch.path.name, **kwargs)
        self.scratch = scratch

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.scratch.release()


@router.get("/preview")
async def preview_file(
    remote_path: str = Query(..., description="Remote file to pull"),
    _device=Depends(require_device),
):
    """Pull a file into scratch space and send it; the copy is deleted after sending."""
    fetched = await get_transfer_manager().fetch_preview(remote_path)
    if isinstance(fetched, TransferResult):
        if fetched.status == TransferState.BUSY:
            raise HTTPException(status.HTTP_409_CONFLICT, fetched.message)
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, fetched.message)

    return ScratchFileResponse(fetched)


@router.post("/stream", status_code=status.HTTP_202_ACCEPTED)
async def start_stream(body: StreamRequest, _device=Depends(require_device)):
    """Start buffered playback in the viewer; poll /transfers/status for the outcome."""
    manager = get_transfer_manager()
    if manager.is_busy(TransferPurpose.STREAM):
        raise HTTPException(status.HTTP_409_CONFLICT, "A stream is already in progress")

    task = asyncio.create_task(manager.stream_file(body.remote_path))
    _stream_tasks.add(task)
    task.add_done_callback(_stream_tasks.discard)
    logger.info("Stream of %s started", body.remote_path)
    return {"status": "started", "remote_path": body.remote_path}


@router.post("/stream/cancel")
async def cancel_stream():
    return {"cancelled": get_transfer_manager().cancel_stream()}


@router.get("/status", response_model=TransferStatus)
async def transfer_status():
    return get_transfer_manager().status()
