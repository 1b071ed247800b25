"""Device schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, computed_field

NOT_AVAILABLE = "N/A"


class DeviceInfo(BaseModel):
    """Composite device record, rebuilt wholesale on every refresh."""

    model_config = ConfigDict(frozen=True)

    is_connected: bool
    serial: str | None = None
    model: str
    manufacturer: str
    android_version: str
    total_storage_gb: float
    available_storage_gb: float

    @computed_field
    @property
    def used_storage_gb(self) -> float:
        return self.total_storage_gb - self.available_storage_gb

    @computed_field
    @property
    def storage_used_percentage(self) -> float:
        if self.total_storage_gb <= 0:
            return 0.0
        return self.used_storage_gb / self.total_storage_gb * 100

    @classmethod
    def disconnected(cls) -> "DeviceInfo":
        return cls(
            is_connected=False,
            model=NOT_AVAILABLE,
            manufacturer=NOT_AVAILABLE,
            android_version=NOT_AVAILABLE,
            total_storage_gb=0.0,
            available_storage_gb=0.0,
        )
