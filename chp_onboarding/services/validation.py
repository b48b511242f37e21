from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from ..api.client import DirectoryLookup
from ..models.candidate import USERNAME_EXISTS_ERROR, CandidateRecord, ValidationResult
from ..models.row_data import RowData
from .normalization import normalize_phone_number, normalize_username, validate_phone_number
from .progress import ProgressCallback

"""Validation pass over parsed roster rows.

Rows are processed strictly in input order with at most one directory lookup
in flight, so per-row error attribution and the progress percentage stay
deterministic. Validation owns the first half (0-50 %) of the overall upload
progress indicator; the second half belongs to the steps after it.
"""

__all__ = [
    "FULL_NAME_REQUIRED",
    "FULL_NAME_UNUSABLE",
    "PHONE_REQUIRED",
    "PHONE_INVALID",
    "VALIDATION_PROGRESS_SHARE",
    "RowValidated",
    "build_candidate",
    "iter_validation",
    "validate",
]

logger = logging.getLogger(__name__)

FULL_NAME_REQUIRED = "Full name is required"
FULL_NAME_UNUSABLE = "Full name must contain letters or digits"
PHONE_REQUIRED = "Phone number is required"
PHONE_INVALID = "Invalid phone number format"

VALIDATION_PROGRESS_SHARE = 50.0


@dataclass(frozen=True)
class RowValidated:
    index: int  # 0-based position in the input
    total: int
    record: CandidateRecord

    @property
    def percent(self) -> float:
        """Progress on the overall upload indicator (0-50)."""
        return (self.index + 1) / self.total * VALIDATION_PROGRESS_SHARE


def build_candidate(row: RowData, directory: DirectoryLookup) -> CandidateRecord:
    """Normalize one row and run its single directory lookup."""
    full_name = row.full_name.strip()
    phone_number = normalize_phone_number(row.phone_number)
    errors: list[str] = []

    if not full_name:
        errors.append(FULL_NAME_REQUIRED)
    if not phone_number:
        errors.append(PHONE_REQUIRED)
    elif not validate_phone_number(phone_number):
        errors.append(PHONE_INVALID)

    username = normalize_username(full_name)
    exists = False
    if username:
        exists = directory.username_exists(username)
        if exists:
            errors.append(USERNAME_EXISTS_ERROR)
    elif full_name:
        errors.append(FULL_NAME_UNUSABLE)

    return CandidateRecord(
        row_number=row.row_number,
        full_name=full_name,
        phone_number=phone_number,
        original_username=username,
        final_username=username,
        errors=errors,
        username_exists=exists,
    )


def iter_validation(rows: Sequence[RowData], directory: DirectoryLookup) -> Iterator[RowValidated]:
    total = len(rows)
    for index, row in enumerate(rows):
        record = build_candidate(row, directory)
        if not record.is_valid:
            logger.debug(f"row {record.row_number} invalid: {', '.join(record.errors)}")
        yield RowValidated(index=index, total=total, record=record)


def validate(
    rows: Sequence[RowData],
    directory: DirectoryLookup,
    progress: ProgressCallback | None = None,
) -> ValidationResult:
    """Validate every row and aggregate the counts.

    Args:
        rows: Parsed roster rows in spreadsheet order
        directory: Username lookup used once per row with a usable name
        progress: Optional observer receiving the overall upload percentage (0-50)

    Returns:
        ValidationResult with records in input order
    """
    records: list[CandidateRecord] = []
    conflicts = 0
    for event in iter_validation(rows, directory):
        records.append(event.record)
        if event.record.username_exists:
            conflicts += 1
        if progress is not None:
            progress(event.percent)
    result = ValidationResult(data=records, username_conflicts=conflicts)
    logger.debug(
        f"validation done total={result.total_count} valid={result.valid_count} conflicts={conflicts}"
    )
    return result
