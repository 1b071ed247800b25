"""Remote filesystem routes - browsing, mutations, pull/push."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from droidscope.api.deps import require_device
from droidscope.schemas.files import (
    MoveRequest,
    NavigatorState,
    PathRequest,
    SortKey,
    SortOrder,
    SystemAccessRequest,
    TransferRequest,
)
from droidscope.schemas.operations import OpResult
from droidscope.services import get_file_navigator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=NavigatorState)
async def list_files(
    path: str | None = Query(None, description="Remote directory, defaults to the current one"),
    sort: SortKey | None = Query(None, description="Sort key, kept for later listings"),
    order: SortOrder | None = Query(None),
    _device=Depends(require_device),
):
    """List a remote directory and make it the current one."""
    navigator = get_file_navigator()
    if sort is not None or order is not None:
        navigator.set_sort(sort or navigator.state.sort_key, order or navigator.state.sort_order)
    target = path or navigator.current_path
    state = await navigator.list_directory(target)
    if navigator.is_blocked(target):
        raise HTTPException(status.HTTP_403_FORBIDDEN, state.error_message)
    return state


@router.get("/state", response_model=NavigatorState)
async def navigator_state():
    return get_file_navigator().state


@router.post("/parent", response_model=NavigatorState)
async def go_to_parent(_device=Depends(require_device)):
    return await get_file_navigator().to_parent()


@router.post("/refresh", response_model=NavigatorState)
async def refresh_listing(_device=Depends(require_device)):
    return await get_file_navigator().refresh()


@router.put("/system-access", response_model=NavigatorState)
async def set_system_access(body: SystemAccessRequest):
    return get_file_navigator().set_system_access(body.enabled)


@router.post("/mkdir", response_model=OpResult)
async def create_directory(body: PathRequest, _device=Depends(require_device)):
    return await get_file_navigator().create_directory(body.path)


@router.delete("", response_model=OpResult)
async def delete_item(
    path: str = Query(...),
    is_directory: bool = Query(False),
    _device=Depends(require_device),
):
    return await get_file_navigator().delete_item(path, is_directory)


@router.post("/rename", response_model=OpResult)
async def rename_item(body: MoveRequest, _device=Depends(require_device)):
    return await get_file_navigator().rename_item(body.source_path, body.destination_path)


@router.post("/copy", response_model=OpResult)
async def copy_item(body: MoveRequest, _device=Depends(require_device)):
    return await get_file_navigator().copy_item(
        body.source_path, body.destination_path, body.is_directory
    )


@router.post("/pull", response_model=OpResult)
async def pull_file(body: TransferRequest, _device=Depends(require_device)):
    """Download a remote file to a path on this host."""
    return await get_file_navigator().pull_file(body.remote_path, body.local_path)


@router.post("/push", response_model=OpResult)
async def push_file(body: TransferRequest, _device=Depends(require_device)):
    """Upload a file from this host to the device."""
    return await get_file_navigator().push_file(body.local_path, body.remote_path)
