"""Storage dashboard snapshot schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from droidscope.schemas.files import FileEntry
from droidscope.schemas.storage import CategoryStats, StorageStats


class DashboardSnapshot(BaseModel):
    """Published state of the storage analyzer; replaced, never mutated."""

    model_config = ConfigDict(frozen=True)

    is_analyzing: bool = False
    is_analyzing_large_files: bool = False
    is_ready: bool = False
    storage_stats: StorageStats | None = None
    category_breakdown: tuple[CategoryStats, ...] = ()
    large_files: tuple[FileEntry, ...] = ()
    error_message: str | None = None
    analyzed_at: datetime | None = None
    version: int = 0


class LargeFilesPage(BaseModel):
    offset: int
    limit: int
    total: int
    files: list[FileEntry]
