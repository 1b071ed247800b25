"""Best-effort results for operations whose success is inferred from tool text."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, computed_field


class OpOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"  # output neither confirms nor refutes success


class OpResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: OpOutcome
    output: str = ""
    message: str | None = None

    @computed_field
    @property
    def succeeded(self) -> bool:
        return self.outcome == OpOutcome.SUCCESS

    @computed_field
    @property
    def failed(self) -> bool:
        return self.outcome == OpOutcome.FAILURE
