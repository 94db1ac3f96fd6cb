# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for SMB Ledger.

Statement builders expose long-format DataFrames (one line per statement row
and period, see ``to_frame()``). This module turns them into the tables that
are printed by the CLI or written to CSV files:

- monthly statements (P&L, Cash Flow) are pivoted to a wide layout: one line
  per statement row, one column per month plus a 'Total' column;
- the Balance Sheet is already one line per item;
- schedules (depreciation, amortization) are converted to plain tables.

Two detail levels are supported:

- detailed: every row, including one row per category;
- summary:  only computed rows (subtotals, totals, balances, ratios).
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal

import pandas as pd

from .money import ZERO
from .rows import TOTAL_LABEL
from .schedules import LoanPayment

VIEWS = ("detailed", "summary")
NOT_APPLICABLE = "n/a"


def statement_to_wide(frame: pd.DataFrame, view: str = "detailed") -> pd.DataFrame:
    """Pivot a long-format monthly statement into one line per row.

    Steps:
      1) filter by view ('summary' drops category rows),
      2) pivot period labels to columns, keeping the statement row order,
      3) order columns: label, months (chronological), Total.

    Not-applicable values stay NaN; rows without a Total (balances) have NaN
    in the Total column.
    """
    if view == "summary":
        df = frame[frame["kind"] != "category"]
    else:
        df = frame

    if df.empty:
        return pd.DataFrame(columns=["label"])

    # Sections and keys identify a row; the same category can appear both in
    # receipts and payments of the Cash Flow.
    df = df.assign(row_id=df["section"] + "|" + df["key"])
    row_order = list(dict.fromkeys(df["row_id"]))
    labels = df.drop_duplicates("row_id").set_index("row_id")["label"]

    periods = [p for p in dict.fromkeys(df["period_label"]) if p != TOTAL_LABEL]
    columns = periods + ([TOTAL_LABEL] if (df["period_label"] == TOTAL_LABEL).any() else [])

    wide = df.pivot(index="row_id", columns="period_label", values="amount")
    wide = wide.reindex(index=row_order, columns=columns)
    wide.insert(0, "label", labels.reindex(row_order).values)
    wide = wide.reset_index(drop=True)
    wide.columns.name = None
    return wide


def balance_sheet_view(frame: pd.DataFrame, view: str = "detailed") -> pd.DataFrame:
    """Select the Balance Sheet lines to display.

    'summary' drops per-category, per-asset and per-loan detail lines.
    """
    if view == "summary":
        frame = frame[~frame["key"].str.contains(":", regex=False)]
    return frame[["section", "label", "amount"]].reset_index(drop=True)


def _format_amount(value: object) -> str:
    if value is None or pd.isna(value):
        return NOT_APPLICABLE
    return f"{float(value):,.2f}"


def format_for_display(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with float columns rendered as text ('1,234.56', 'n/a')."""
    out = df.copy()
    for col in out.columns:
        if not pd.api.types.is_float_dtype(out[col]):
            continue
        out[col] = out[col].map(_format_amount)
    return out


def depreciation_to_dataframe(schedule: Mapping[pd.Period, Decimal]) -> pd.DataFrame:
    """
    Convert a depreciation schedule into a DataFrame.

    Columns: month, depreciation, accumulated.
    """
    rows: list[dict[str, object]] = []
    accumulated = ZERO
    for month, amount in schedule.items():
        accumulated += amount
        rows.append(
            {
                "month": str(month),
                "depreciation": float(amount),
                "accumulated": float(accumulated),
            }
        )
    return pd.DataFrame(rows, columns=["month", "depreciation", "accumulated"])


def amortization_to_dataframe(schedule: Iterable[LoanPayment]) -> pd.DataFrame:
    """
    Convert an amortization schedule into a DataFrame.

    Columns: number, month, payment, principal, interest, ending_balance,
    skipped.
    """
    columns = [
        "number",
        "month",
        "payment",
        "principal",
        "interest",
        "ending_balance",
        "skipped",
    ]
    rows = [
        {
            "number": p.number,
            "month": str(p.month),
            "payment": float(p.payment),
            "principal": float(p.principal),
            "interest": float(p.interest),
            "ending_balance": float(p.ending_balance),
            "skipped": p.skipped,
        }
        for p in schedule
    ]
    return pd.DataFrame(rows, columns=columns)
