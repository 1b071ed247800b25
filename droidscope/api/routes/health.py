"""Health check."""

from fastapi import APIRouter

from droidscope import __version__
from droidscope.schemas.system import HealthResponse
from droidscope.services import get_device_registry, get_executor

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Service liveness plus the last known device state; never touches adb."""
    return HealthResponse(
        version=__version__,
        adb_path=get_executor().adb_path,
        device_connected=get_device_registry().is_connected,
    )


@router.get("/ping")
async def ping():
    """Ultra-lightweight ping."""
    return {"status": "ok"}
