from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.candidate import USERNAME_EXISTS_ERROR, CandidateRecord, RegistrationStatus
from ..models.error_record import ErrorRecord

"""Error log generation & buffering.

- JSON Lines with a fixed key set (see ErrorRecord)
- One file per run: `<logs_dir>/errors-YYYYMMDD-HHMMSS.log` (UTC), created lazily
- Records are buffered in memory and written once on flush()
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines.

    - flush() appends every buffered record to the run's file in one go
    - the file path is fixed on first access
    - no thread safety (the tool runs strictly sequentially)
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def record_file_error(self, file: str, message: str) -> None:
        self.append(ErrorRecord.create(file, "<FILE_LEVEL>", -1, "FILE_FORMAT_ERROR", message))

    def record_validation(self, file: str, sheet: str, records: list[CandidateRecord]) -> None:
        """Buffer one entry per row-level validation error."""
        for rec in records:
            for err in rec.errors:
                error_type = "USERNAME_CONFLICT" if err == USERNAME_EXISTS_ERROR else "VALIDATION_ERROR"
                self.append(ErrorRecord.create(file, sheet, rec.row_number, error_type, err))

    def record_registration(self, file: str, sheet: str, records: list[CandidateRecord]) -> None:
        """Buffer one entry per failed registration."""
        for rec in records:
            if rec.registration_status is RegistrationStatus.FAILED:
                self.append(
                    ErrorRecord.create(
                        file, sheet, rec.row_number, "REGISTRATION_FAILED", rec.error_message or ""
                    )
                )

    def flush(self) -> Path | None:
        """Write buffered records; returns the file path, or None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
