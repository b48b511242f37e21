#!/usr/bin/env python3
"""Sample roster generator for manual and load testing of the onboarding CLI.

Generates an Excel roster in the format the reader expects:
- Row 1: Header row (fullName, phoneNumber)
- Row 2+: One CHP per row

A configurable share of rows is deliberately broken (blank names, malformed
phone numbers, repeated names) so every validation path gets exercised.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

FIRST_NAMES = ["Achieng", "Wanjiru", "Kamau", "Otieno", "Njeri", "Mwangi", "Chebet", "Kiprop", "Amina", "Baraka"]
LAST_NAMES = ["Odhiambo", "Mutua", "Kariuki", "Wafula", "Kiptoo", "Omondi", "Nyambura", "Hassan", "Ochieng", "Muriuki"]


def generate_roster(rows: int, error_rate: float = 0.1, seed: int = 42) -> pd.DataFrame:
    """Generate a roster DataFrame with a share of invalid / colliding rows.

    Args:
        rows: Number of data rows to generate
        error_rate: Share of rows (0-1) that get a validation problem
        seed: Random seed for reproducible data

    Returns:
        DataFrame with fullName and phoneNumber columns (phone numbers as text)
    """
    rng = np.random.default_rng(seed)

    names = [
        f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        for _ in range(rows)
    ]
    phones = [f"07{rng.integers(10_000_000, 99_999_999)}" for _ in range(rows)]

    broken = rng.random(rows) < error_rate
    for i in np.flatnonzero(broken):
        kind = rng.integers(0, 3)
        if kind == 0:
            names[i] = ""
        elif kind == 1:
            phones[i] = "12-ab"
        else:
            # Same name as another row -> same candidate username
            names[i] = names[int(rng.integers(0, rows))]

    return pd.DataFrame({"fullName": names, "phoneNumber": phones})


def create_roster_file(output_path: Path, rows: int, error_rate: float, seed: int) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = generate_roster(rows, error_rate, seed)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="CHPs", index=False)

    print(f"Created roster: {output_path}")
    print(f"  Rows: {rows} (+ 1 header row)")
    print(f"  Error rate: {error_rate:.0%}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic CHP roster spreadsheet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s roster.xlsx
  %(prog)s big_roster.xlsx --rows 2000 --error-rate 0.05 --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=50, help="Number of data rows (default: 50)")
    parser.add_argument("--error-rate", type=float, default=0.1, help="Share of broken rows (default: 0.1)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.error_rate <= 1:
        print("Error: --error-rate must be between 0 and 1", file=sys.stderr)
        return 1
    if args.output.suffix.lower() != ".xlsx":
        print("Error: output file must have .xlsx extension", file=sys.stderr)
        return 1

    try:
        create_roster_file(args.output, args.rows, args.error_rate, args.seed)
    except Exception as e:
        print(f"Error creating roster: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
