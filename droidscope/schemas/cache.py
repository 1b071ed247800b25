"""Scratch cache statistics schemas."""

from pydantic import BaseModel


class CacheStats(BaseModel):
    """Local scratch cache usage."""
    root: str
    total_files: int
    total_size_bytes: int
    disk_free_bytes: int
    disk_usage_percent: float
    active_transfers: int
