"""Domain models for the CHP bulk onboarding tool."""

from .candidate import USERNAME_EXISTS_ERROR, CandidateRecord, RegistrationStatus, ValidationResult
from .error_record import ErrorRecord
from .registration_result import RegistrationOutcome, RegistrationSummary, RowOutcome
from .row_data import RowData

__all__ = [
    # Roster input
    "RowData",
    # Validation
    "CandidateRecord",
    "RegistrationStatus",
    "ValidationResult",
    "USERNAME_EXISTS_ERROR",
    # Registration
    "RegistrationOutcome",
    "RegistrationSummary",
    "RowOutcome",
    # Error log
    "ErrorRecord",
]
