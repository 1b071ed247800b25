"""Health schemas."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    service: str = "droidscope"
    adb_path: str
    device_connected: bool = False
