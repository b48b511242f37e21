from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RowData model for the CHP bulk onboarding tool.

RowData is the strongly-typed form of one spreadsheet data row. Header aliases
(fullName / name / phone / ...) are resolved once in excel.reader, so nothing
downstream needs fallback chains over raw column names.
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """Logical representation of a single roster row after header resolution.

    row_number is the 1-based spreadsheet row (header = row 1, first data row = 2).
    """
    row_number: int  # Spreadsheet row number (first data row = 2)
    full_name: str  # Raw full name cell, "" when empty
    phone_number: str  # Raw phone cell rendered as text, "" when empty
    raw_values: dict[str, Any] | None = None  # Original header -> cell mapping for diagnostics
