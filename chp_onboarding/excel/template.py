from __future__ import annotations

from pathlib import Path

import pandas as pd

"""Roster template export for operators preparing an upload."""

TEMPLATE_SHEET_NAME = "CHP Template"
TEMPLATE_FILE_NAME = "chp-template.xlsx"

TEMPLATE_ROWS = [
    {"fullName": "John Doe", "phoneNumber": "0701234567"},
    {"fullName": "Jane Smith", "phoneNumber": "0709876543"},
    {"fullName": "Michael Johnson", "phoneNumber": "0705555555"},
]


def write_template(path: Path) -> Path:
    """Write the example roster; phone numbers are stored as text to keep the leading 0."""
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(TEMPLATE_ROWS, columns=["fullName", "phoneNumber"])
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=TEMPLATE_SHEET_NAME, index=False)
    return path
