"""FastAPI dependency injection - device gating."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from droidscope.schemas.device import DeviceInfo
from droidscope.services import get_device_registry

logger = logging.getLogger(__name__)


async def require_device() -> DeviceInfo:
    """Return the connected device, re-checking adb once before giving up."""
    registry = get_device_registry()
    if registry.is_connected:
        return registry.info

    info = await registry.refresh()
    if not info.is_connected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No device connected",
        )
    return info
