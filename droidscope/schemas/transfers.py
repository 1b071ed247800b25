"""Preview / streaming transfer schemas."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class TransferPurpose(str, Enum):
    PREVIEW = "preview"
    STREAM = "stream"


class TransferState(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    BUSY = "busy"
    CANCELLED = "cancelled"


class TransferResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: TransferState
    purpose: TransferPurpose
    remote_path: str
    local_path: str | None = None
    pull_completed: bool = False
    message: str | None = None


class TransferStatus(BaseModel):
    active: list[TransferPurpose] = []
    last_stream: TransferResult | None = None


class StreamRequest(BaseModel):
    remote_path: str
