"""Conflict models produced by the detector."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .common import ConflictType, Severity


class Conflict(BaseModel):
    """A detected problem in a day plan. Never mutated once produced."""

    model_config = ConfigDict(frozen=True)

    type: ConflictType = Field(description="Type of conflict")
    severity: Severity = Field(description="Priority tier")
    activities: list[int] = Field(description="Indices of the activities involved")
    message: str = Field(description="Human-readable summary")
    details: dict[str, Any] = Field(
        default_factory=dict, description="Type-specific details"
    )

    @property
    def blocking(self) -> bool:
        """Critical and high conflicts must be repaired before a day is final."""
        return self.severity in (Severity.critical, Severity.high)
