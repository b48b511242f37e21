from __future__ import annotations

import logging
import random
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from ..api.client import DirectoryLookup, RegistrationEndpoint
from ..config.loader import OnboardingConfig
from ..excel.reader import FileFormatError, RosterSheet, read_roster_bytes, read_roster_file
from ..logging.error_log import ErrorLogBuffer
from ..models.candidate import ValidationResult
from ..models.registration_result import RegistrationSummary
from .conflicts import ConflictAction, apply_conflict_action
from .progress import ProgressCallback
from .registration import register_all
from .validation import validate

"""Bulk upload session.

Holds the in-memory state of one upload (selected file, validation result,
conflict decision, registration progress) and enforces the order of phases:

    IDLE --load--> VALIDATED --(resolve)--> READY --register--> REGISTERED
      ^                                                            |
      +------------------------- reset / reupload ----------------+

A reset bumps the session generation. A phase that was started before the
reset stops as soon as it notices the change and its results are never
attached to the new state.
"""

__all__ = [
    "SessionState",
    "SessionStateError",
    "StaleSessionError",
    "UploadSession",
]

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"  # waiting for a file
    VALIDATED = "validated"  # conflicts found, waiting for a decision
    READY = "ready"  # ready to register
    REGISTERED = "registered"  # at least one registration run finished


class SessionStateError(Exception):
    """Operation invoked in a state that does not allow it."""


class StaleSessionError(SessionStateError):
    """The session was reset while a phase was running."""


class UploadSession:
    """State holder for one operator-driven bulk upload."""

    def __init__(
        self,
        config: OnboardingConfig,
        directory: DirectoryLookup,
        endpoint: RegistrationEndpoint,
        error_log: ErrorLogBuffer | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.directory = directory
        self.endpoint = endpoint
        self.error_log = error_log if error_log is not None else ErrorLogBuffer(Path(config.error_log_dir))
        self.rng = rng
        self.generation = 0
        self.state = SessionState.IDLE
        self.sheet: RosterSheet | None = None
        self.result: ValidationResult | None = None
        self.last_summary: RegistrationSummary | None = None

    # -- lifecycle -----------------------------------------------------

    def reset(self) -> None:
        """Discard everything and go back to file selection."""
        self.generation += 1
        self.state = SessionState.IDLE
        self.sheet = None
        self.result = None
        self.last_summary = None
        logger.debug(f"session reset (generation={self.generation})")

    def _guard(self, generation: int, progress: ProgressCallback | None) -> ProgressCallback:
        """Wrap a progress observer so a reset during the phase aborts it."""
        def observe(percent: float) -> None:
            if generation != self.generation:
                raise StaleSessionError("session was reset while a phase was running")
            if progress is not None:
                progress(percent)
                if generation != self.generation:
                    raise StaleSessionError("session was reset while a phase was running")
        return observe

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(f"operation not allowed in state '{self.state.value}' (needs {allowed})")

    # -- phases --------------------------------------------------------

    def load_bytes(
        self, content: bytes, file_name: str, progress: ProgressCallback | None = None
    ) -> ValidationResult:
        """Parse and validate a new upload; any previous state is discarded first.

        FileFormatError propagates unchanged (nothing is kept).
        """
        self.reset()
        return self._validate_sheet(file_name, lambda: read_roster_bytes(content, file_name), progress)

    def load_file(self, path: Path, progress: ProgressCallback | None = None) -> ValidationResult:
        self.reset()
        return self._validate_sheet(path.name, lambda: read_roster_file(path), progress)

    def _validate_sheet(
        self,
        file_name: str,
        read: Callable[[], RosterSheet],
        progress: ProgressCallback | None,
    ) -> ValidationResult:
        generation = self.generation
        try:
            sheet = read()
        except FileFormatError as e:
            self.error_log.record_file_error(file_name, str(e))
            raise
        observe = self._guard(generation, progress)
        result = validate(sheet.rows, self.directory, observe)
        observe(100.0)

        self.sheet = sheet
        self.result = result
        self.state = SessionState.VALIDATED if result.username_conflicts > 0 else SessionState.READY
        self.error_log.record_validation(sheet.file_name, sheet.sheet_name, result.data)
        logger.info(
            f"{sheet.file_name}: {result.total_count} records "
            f"({result.valid_count} valid, {result.invalid_count} invalid)"
        )
        return result

    @property
    def needs_conflict_decision(self) -> bool:
        return self.state is SessionState.VALIDATED

    def resolve_conflicts(
        self, action: ConflictAction, progress: ProgressCallback | None = None
    ) -> ValidationResult | None:
        """Apply the operator's conflict decision; REUPLOAD resets and returns None."""
        self._require(SessionState.VALIDATED)
        if self.result is None:
            raise SessionStateError("no validation result to resolve")
        if action is ConflictAction.REUPLOAD:
            self.reset()
            return None
        generation = self.generation
        result = apply_conflict_action(
            self.result,
            action,
            self.directory,
            self._guard(generation, progress),
            self.config.max_username_attempts,
        )
        self.state = SessionState.READY
        return result

    def register(self, progress: ProgressCallback | None = None) -> RegistrationSummary:
        """Register every valid record not yet registered (re-runs retry only failures)."""
        self._require(SessionState.READY, SessionState.REGISTERED)
        if self.result is None or self.sheet is None:
            raise SessionStateError("no validated roster to register")
        generation = self.generation
        summary = register_all(
            self.result.valid_records,
            self.endpoint,
            self.config.registration,
            self._guard(generation, progress),
            self.rng,
        )
        self.last_summary = summary
        self.state = SessionState.REGISTERED
        self.error_log.record_registration(
            self.sheet.file_name, self.sheet.sheet_name, [o.record for o in summary.outcomes]
        )
        return summary
