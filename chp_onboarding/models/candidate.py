from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Candidate domain models for the CHP bulk onboarding tool.

CandidateRecord is created by the validation pass and then mutated in place by
conflict resolution (rename / invalidate) and by the registration sequencer
(status transitions). ValidationResult owns the ordered set of records.
"""

__all__ = [
    "USERNAME_EXISTS_ERROR",
    "RegistrationStatus",
    "CandidateRecord",
    "ValidationResult",
]

USERNAME_EXISTS_ERROR = "Username already exists"


class RegistrationStatus(Enum):
    """Registration lifecycle of a single candidate.

    State transitions: unset -> pending -> (success | failed)

    Only a fresh registration run moves a FAILED record back to PENDING.
    SUCCESS is terminal.
    """
    UNSET = "unset"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class CandidateRecord:
    """One roster row on its way to becoming a registered CHP account."""
    row_number: int  # Spreadsheet row, used for error attribution
    full_name: str  # Trimmed
    phone_number: str  # Normalized to international form
    original_username: str  # Derived from full_name
    final_username: str  # Equals original_username unless renamed
    errors: list[str] = field(default_factory=list)
    is_valid: bool = True
    username_exists: bool = False  # Result of the last directory check on final_username
    registration_status: RegistrationStatus = RegistrationStatus.UNSET
    error_message: str | None = None  # Diagnostic text of the last failed registration

    def __post_init__(self) -> None:
        self.refresh_validity()

    @property
    def renamed(self) -> bool:
        return self.final_username != self.original_username

    def refresh_validity(self) -> None:
        """Recompute is_valid from the current error list."""
        self.is_valid = not self.errors

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.refresh_validity()

    def remove_error(self, message: str) -> None:
        self.errors = [e for e in self.errors if e != message]
        self.refresh_validity()


@dataclass
class ValidationResult:
    """Aggregate of one validation pass.

    Counts are derived from ``data`` by :meth:`recount` so that
    ``valid_count + invalid_count == total_count`` always holds.
    """
    data: list[CandidateRecord] = field(default_factory=list)
    username_conflicts: int = 0  # Rows still carrying an unresolved username conflict
    valid_count: int = 0
    invalid_count: int = 0
    total_count: int = 0

    def __post_init__(self) -> None:
        self.recount()

    def recount(self) -> None:
        self.total_count = len(self.data)
        self.valid_count = sum(1 for r in self.data if r.is_valid)
        self.invalid_count = self.total_count - self.valid_count

    @property
    def valid_records(self) -> list[CandidateRecord]:
        return [r for r in self.data if r.is_valid]

    @property
    def conflicting_records(self) -> list[CandidateRecord]:
        return [r for r in self.data if r.username_exists]
