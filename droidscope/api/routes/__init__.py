"""API route registration."""

from fastapi import APIRouter

from droidscope.api.routes import cache, device, files, health, storage, transfers

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(device.router, prefix="/device", tags=["device"])
api_router.include_router(files.router, prefix="/files", tags=["files"])
api_router.include_router(storage.router, prefix="/storage", tags=["storage"])
api_router.include_router(transfers.router, prefix="/transfers", tags=["transfers"])
api_router.include_router(cache.router, prefix="/transfers", tags=["transfers"])
