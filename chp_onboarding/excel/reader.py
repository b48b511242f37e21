from __future__ import annotations

import io
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.row_data import RowData

"""Roster spreadsheet reader.

- .xlsx / .xls only; the first worksheet is the roster, other sheets are ignored
- Row 1 is the header, rows 2+ are data; fully empty rows are dropped
- Header names are matched against a declared alias list per logical field,
  ignoring case, spaces, '_' and '-'
- Any problem with the file as a whole raises FileFormatError before a single
  row is processed
"""

__all__ = [
    "ALLOWED_EXTENSIONS",
    "FIELD_ALIASES",
    "FileFormatError",
    "UnsupportedFileTypeError",
    "UnreadableWorkbookError",
    "EmptySheetError",
    "MissingColumnsError",
    "RosterSheet",
    "read_roster_bytes",
    "read_roster_file",
    "normalize_roster",
]

ALLOWED_EXTENSIONS = (".xlsx", ".xls")

# Logical field -> accepted header spellings (compared after _header_key())
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "full_name": ("fullName", "FullName", "FULLNAME", "full_name", "Full Name", "name", "Name", "NAME"),
    "phone_number": (
        "phoneNumber", "PhoneNumber", "PHONENUMBER", "phone_number", "Phone Number",
        "phone", "Phone", "PHONE",
    ),
}

_HEADER_NOISE = re.compile(r"[\s_\-]")


class FileFormatError(Exception):
    """Upload rejected as a whole; the operator has to pick another file."""


class UnsupportedFileTypeError(FileFormatError):
    pass


class UnreadableWorkbookError(FileFormatError):
    pass


class EmptySheetError(FileFormatError):
    pass


class MissingColumnsError(FileFormatError):
    """Raised when no roster column (name or phone) is present in the header."""


@dataclass
class RosterSheet:
    file_name: str
    sheet_name: str
    columns: list[str]
    rows: list[RowData]


def _header_key(name: Any) -> str:
    return _HEADER_NOISE.sub("", str(name)).lower()


_ALIAS_KEYS: dict[str, set[str]] = {
    field: {_header_key(a) for a in aliases} for field, aliases in FIELD_ALIASES.items()
}


def _resolve_columns(columns: list[str]) -> dict[str, int | None]:
    """Map each logical field to the index of the first matching header column."""
    resolved: dict[str, int | None] = {field: None for field in FIELD_ALIASES}
    for idx, col in enumerate(columns):
        key = _header_key(col)
        for field, keys in _ALIAS_KEYS.items():
            if resolved[field] is None and key in keys:
                resolved[field] = idx
    return resolved


def _cell_text(value: Any) -> str:
    """Render a cell as trimmed text; numbers lose a spurious trailing '.0'."""
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).replace("\xa0", " ").strip()


def normalize_roster(df: pd.DataFrame, sheet_name: str, file_name: str = "") -> RosterSheet:
    """Turn a raw (header=None) DataFrame into typed roster rows.

    Steps:
    1. First row is the header; a sheet without it, or without data rows, is empty
    2. Resolve the name / phone columns through FIELD_ALIASES
    3. Every non-empty data row becomes a RowData (row_number = spreadsheet row)
    """
    if df.shape[0] < 1:
        raise EmptySheetError(f"sheet '{sheet_name}' has no header row")
    columns = [_cell_text(c) for c in df.iloc[0].tolist()]
    resolved = _resolve_columns(columns)
    if all(idx is None for idx in resolved.values()):
        raise MissingColumnsError(
            f"sheet '{sheet_name}' has neither a full name nor a phone number column; "
            f"found columns: {columns}"
        )

    name_idx = resolved["full_name"]
    phone_idx = resolved["phone_number"]
    rows: list[RowData] = []
    for pos in range(1, df.shape[0]):
        raw = df.iloc[pos]
        if raw.isna().all():
            continue
        values = raw.tolist()
        rows.append(
            RowData(
                row_number=pos + 1,
                full_name=_cell_text(values[name_idx]) if name_idx is not None else "",
                phone_number=_cell_text(values[phone_idx]) if phone_idx is not None else "",
                raw_values={col: val for col, val in zip(columns, values, strict=False) if col},
            )
        )
    if not rows:
        raise EmptySheetError(f"sheet '{sheet_name}' contains no data rows")
    return RosterSheet(file_name=file_name, sheet_name=sheet_name, columns=columns, rows=rows)


def _check_extension(file_name: str) -> None:
    suffix = Path(file_name).suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"unsupported file type '{suffix or file_name}': please upload an Excel file (.xlsx or .xls)"
        )


def read_roster_bytes(content: bytes, file_name: str) -> RosterSheet:
    """Parse an uploaded roster (first worksheet only)."""
    _check_extension(file_name)
    if not content:
        raise EmptySheetError(f"file '{file_name}' is empty")
    try:
        xls = pd.ExcelFile(io.BytesIO(content))
        sheet_name = str(xls.sheet_names[0])
        df = xls.parse(xls.sheet_names[0], header=None, dtype=object)
    except Exception as e:
        raise UnreadableWorkbookError(f"failed to read '{file_name}': {e}") from e
    return normalize_roster(df, sheet_name, file_name)


def read_roster_file(path: Path) -> RosterSheet:
    _check_extension(path.name)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise UnreadableWorkbookError(f"failed to read '{path}': {e}") from e
    return read_roster_bytes(content, path.name)
