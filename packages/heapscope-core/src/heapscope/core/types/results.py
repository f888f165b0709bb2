from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ExportOutcome(Enum):
    """How a report run ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ExportResult(BaseModel):
    """Summary of a single report run."""

    outcome: ExportOutcome
    items_scanned: int = 0
    rows_written: int = 0

    @property
    def completed(self) -> bool:
        return self.outcome is ExportOutcome.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.outcome is ExportOutcome.CANCELLED
