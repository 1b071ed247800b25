"""Device routes - connection state and properties."""

from __future__ import annotations

from fastapi import APIRouter

from droidscope.schemas.device import DeviceInfo
from droidscope.services import get_device_registry

router = APIRouter()


@router.get("", response_model=DeviceInfo)
async def device_info():
    """Last known device record, without querying adb."""
    return get_device_registry().info


@router.post("/refresh", response_model=DeviceInfo)
async def refresh_device():
    return await get_device_registry().refresh()
