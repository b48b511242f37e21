from __future__ import annotations

import logging
from enum import Enum

from ..api.client import DirectoryLookup
from ..models.candidate import USERNAME_EXISTS_ERROR, ValidationResult
from .progress import ProgressCallback
from .unique_name import DEFAULT_MAX_ATTEMPTS, resolve_unique_username

"""Username conflict resolution.

Offered to the operator only when validation found usernames that are already
taken. username_conflicts always counts records whose username_exists flag is
still set: skipping leaves the flag (and the count) in place, renaming clears it.
"""

__all__ = [
    "USERNAME_UNRESOLVED_ERROR",
    "ConflictAction",
    "skip_conflicts",
    "auto_rename_conflicts",
    "apply_conflict_action",
]

logger = logging.getLogger(__name__)

USERNAME_UNRESOLVED_ERROR = "No available username could be generated"


class ConflictAction(Enum):
    SKIP = "skip"
    AUTO_RENAME = "rename"
    REUPLOAD = "reupload"


def skip_conflicts(result: ValidationResult) -> ValidationResult:
    """Exclude every conflicting record from registration; errors stay as they are."""
    for record in result.conflicting_records:
        record.is_valid = False
    result.recount()
    logger.info(f"skipped {result.username_conflicts} conflicting rows")
    return result


def auto_rename_conflicts(
    result: ValidationResult,
    directory: DirectoryLookup,
    progress: ProgressCallback | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> ValidationResult:
    """Give every conflicting record the first free dotted-suffix username.

    Records are processed one after another; a name handed out earlier in the
    pass is not given to a later record with the same base. When the attempt
    cutoff is hit the record keeps the last probed name, stays flagged as
    existing and is marked invalid with USERNAME_UNRESOLVED_ERROR.
    """
    conflicting = result.conflicting_records
    total = len(conflicting)
    assigned: set[str] = set()
    for index, record in enumerate(conflicting):
        resolution = resolve_unique_username(
            record.original_username, directory, max_attempts, reserved=assigned
        )
        if resolution.available:
            assigned.add(resolution.username)
        record.final_username = resolution.username
        record.username_exists = not resolution.available
        record.remove_error(USERNAME_EXISTS_ERROR)
        if not resolution.available:
            record.add_error(USERNAME_UNRESOLVED_ERROR)
        logger.debug(
            f"row {record.row_number}: {record.original_username!r} -> {record.final_username!r}"
        )
        if progress is not None:
            progress((index + 1) / total * 100)

    result.username_conflicts = len(result.conflicting_records)
    result.recount()
    logger.info(f"renamed {total} conflicting usernames")
    return result


def apply_conflict_action(
    result: ValidationResult,
    action: ConflictAction,
    directory: DirectoryLookup,
    progress: ProgressCallback | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> ValidationResult | None:
    """Apply the operator's decision; returns None for REUPLOAD (caller must reset)."""
    if action is ConflictAction.SKIP:
        return skip_conflicts(result)
    if action is ConflictAction.AUTO_RENAME:
        return auto_rename_conflicts(result, directory, progress, max_attempts)
    return None
