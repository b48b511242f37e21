from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .candidate import CandidateRecord, RegistrationStatus

"""Registration result models for the CHP bulk onboarding tool.

RowOutcome is the per-row event streamed by the registration sequencer;
RegistrationSummary aggregates a whole run for the SUMMARY line and exit code.
"""


class RegistrationOutcome(Enum):
    """Final classification of a registration run."""
    ALL_SUCCEEDED = "all_succeeded"
    PARTIAL = "partial"


@dataclass(frozen=True)
class RowOutcome:
    """Result of one registration attempt (emitted once per attempted record)."""
    index: int  # 0-based position within the attempted set
    total: int  # Size of the attempted set
    record: CandidateRecord
    status: RegistrationStatus  # success | failed
    error_message: str | None = None

    @property
    def percent(self) -> float:
        return (self.index + 1) / self.total * 100 if self.total else 100.0


@dataclass(frozen=True)
class RegistrationSummary:
    """Aggregated results of one registration run."""
    success_count: int
    failure_count: int
    skipped_already_registered: int  # Records left alone because they were already SUCCESS
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    outcomes: list[RowOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.success_count + self.failure_count

    @property
    def outcome(self) -> RegistrationOutcome:
        if self.failure_count == 0:
            return RegistrationOutcome.ALL_SUCCEEDED
        return RegistrationOutcome.PARTIAL
