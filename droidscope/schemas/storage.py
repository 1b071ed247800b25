"""Storage usage and category schemas."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, computed_field

from droidscope.utils.formatting import format_category_size, format_gb


class StorageCategory(str, Enum):
    PHOTOS = "Photos"
    VIDEOS = "Videos"
    AUDIO = "Audio"
    DOCUMENTS = "Documents"
    APPS = "Apps"
    OTHER = "Other"


class StorageStats(BaseModel):
    """Primary data partition usage in bytes."""

    model_config = ConfigDict(frozen=True)

    total_storage: int
    used_storage: int
    free_storage: int

    @computed_field
    @property
    def usage_percentage(self) -> float:
        if self.total_storage <= 0:
            return 0.0
        return self.used_storage / self.total_storage * 100

    @computed_field
    @property
    def formatted_total(self) -> str:
        return format_gb(self.total_storage)

    @computed_field
    @property
    def formatted_used(self) -> str:
        return format_gb(self.used_storage)

    @computed_field
    @property
    def formatted_free(self) -> str:
        return format_gb(self.free_storage)


class CategoryStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: StorageCategory
    size: int
    file_count: int = 0
    estimated: bool = False  # size derived from remainder arithmetic, not measured

    @computed_field
    @property
    def formatted_size(self) -> str:
        return format_category_size(self.size)
