"""Scratch cache statistics routes."""

from fastapi import APIRouter

from droidscope.schemas.cache import CacheStats
from droidscope.services import get_transfer_manager

router = APIRouter()


@router.get("/cache", response_model=CacheStats)
async def cache_stats():
    """Scratch cache usage and free space on the host disk."""
    return get_transfer_manager().cache_stats()
