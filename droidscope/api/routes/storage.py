"""Storage dashboard routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from droidscope.api.deps import require_device
from droidscope.schemas.dashboard import DashboardSnapshot, LargeFilesPage
from droidscope.schemas.files import FileEntry
from droidscope.schemas.storage import StorageCategory
from droidscope.services import get_storage_analyzer

router = APIRouter()


@router.post("/analyze", response_model=DashboardSnapshot)
async def analyze_storage(_device=Depends(require_device)):
    """Run the stats and category phases; the large-file scan continues in the background."""
    return await get_storage_analyzer().analyze()


@router.get("/dashboard", response_model=DashboardSnapshot)
async def dashboard():
    return get_storage_analyzer().snapshot


@router.get("/large-files", response_model=LargeFilesPage)
async def large_files(
    offset: int = Query(0),
    limit: int = Query(20),
):
    analyzer = get_storage_analyzer()
    return LargeFilesPage(
        offset=offset,
        limit=limit,
        total=len(analyzer.snapshot.large_files),
        files=analyzer.get_large_files(offset, limit),
    )


@router.get("/categories/{category}/files", response_model=list[FileEntry])
async def category_files(category: StorageCategory, _device=Depends(require_device)):
    return await get_storage_analyzer().get_files_for_category(category)
