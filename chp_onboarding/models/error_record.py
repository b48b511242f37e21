from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for error logging.

This module defines the ErrorRecord dataclass used for structured error logging
during a bulk onboarding run. It supports row=-1 as a sentinel value for
file-level errors where no specific row applies (unreadable workbook, empty
sheet, wrong extension).

Known error_type values:
    FILE_FORMAT_ERROR    upload rejected before any row was processed
    VALIDATION_ERROR     missing / malformed field on a row
    USERNAME_CONFLICT    candidate username already taken in the directory
    REGISTRATION_FAILED  registration endpoint rejected the row or was unreachable
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Roster filename being processed
        sheet: Sheet name within the file
        row: Row number (1-based). Use -1 for file-level errors where row is unknown
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Validation message or remote diagnostic text
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int  # -1 for file-level errors
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize ErrorRecord to JSON Lines format (fixed key set)."""
        return json.dumps(asdict(self), ensure_ascii=False)
