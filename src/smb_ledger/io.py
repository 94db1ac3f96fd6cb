# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB Ledger.

This module exports transactions to CSV and reads them back.

CSV layout
----------
One line per transaction, with the following header (fixed order):

    Entry Date, Category, Type, Amount, Pretax Amount, Status,
    Month Due, Month Paid, Date Processed, Payment For, Notes

- ``Entry Date`` / ``Date Processed``: ISO dates (YYYY-MM-DD)
- ``Category``: category name (empty if the category is unknown)
- ``Type``: receivable | payable
- ``Amount`` / ``Pretax Amount``: decimal amounts with two decimals
- ``Status``: pending | paid | received
- ``Month Due`` / ``Month Paid`` / ``Payment For``: months, written as
  YYYY-MM (default) or as short labels such as 'Jan 2025'

Rows are written newest first (entry date, then id, descending). Fields that
contain a comma, a double quote or a newline are quoted, with internal quotes
doubled (standard CSV quoting).

On import, column names are case-insensitive, both month styles are
accepted and category names are resolved against the known categories.
"""

import csv
import os
from collections.abc import Iterable
from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

from .errors import InvalidMonthFormat, InvalidRecord
from .months import parse_month
from .records import Category, LedgerSnapshot, Transaction

EXPORT_COLUMNS = [
    "Entry Date",
    "Category",
    "Type",
    "Amount",
    "Pretax Amount",
    "Status",
    "Month Due",
    "Month Paid",
    "Date Processed",
    "Payment For",
    "Notes",
]

REQUIRED_COLUMNS = {"entry date", "category", "type", "amount"}

PathLike = Union[str, "os.PathLike[str]"]


def _month_label(month: Optional[pd.Period], month_style: str) -> str:
    if month is None:
        return ""
    if month_style == "short":
        return month.strftime("%b %Y")
    return str(month)


def transactions_to_dataframe(
    snapshot: LedgerSnapshot, month_style: str = "iso"
) -> pd.DataFrame:
    """
    Build the export table of all transactions of a snapshot.

    Parameters
    ----------
    snapshot:
        Records to export.
    month_style:
        'iso' writes months as YYYY-MM; 'short' writes 'Jan 2025'.

    Returns
    -------
    pandas.DataFrame
        One row per transaction with the ``EXPORT_COLUMNS`` columns, all
        values as text, newest entry first.
    """
    if month_style not in ("iso", "short"):
        raise ValueError(f"Unknown month style {month_style!r}, expected 'iso' or 'short'.")

    names = {c.id: c.name for c in snapshot.categories}
    ordered = sorted(
        snapshot.transactions, key=lambda t: (t.entry_date, t.id), reverse=True
    )

    rows = [
        {
            "Entry Date": t.entry_date.isoformat(),
            "Category": names.get(t.category_id, ""),
            "Type": t.transaction_type,
            "Amount": f"{t.amount:.2f}",
            "Pretax Amount": "" if t.pretax_amount is None else f"{t.pretax_amount:.2f}",
            "Status": t.status,
            "Month Due": _month_label(t.month_due, month_style),
            "Month Paid": _month_label(t.month_paid, month_style),
            "Date Processed": t.date_processed.isoformat() if t.date_processed else "",
            "Payment For": _month_label(t.payment_for_month, month_style),
            "Notes": t.notes or "",
        }
        for t in ordered
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_transactions_csv(
    snapshot: LedgerSnapshot,
    path: Optional[PathLike] = None,
    month_style: str = "iso",
) -> Optional[str]:
    """
    Write all transactions as CSV.

    Returns the CSV text when ``path`` is None, otherwise writes the file and
    returns None.
    """
    df = transactions_to_dataframe(snapshot, month_style=month_style)
    return df.to_csv(path, index=False, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)


def _parse_csv_month(value: str, column: str, line: int) -> Optional[pd.Period]:
    text = value.strip()
    if not text:
        return None
    try:
        return parse_month(text)
    except InvalidMonthFormat:
        pass
    try:
        return parse_month(datetime.strptime(text, "%b %Y"))
    except ValueError as exc:
        raise InvalidMonthFormat(
            f"Line {line}: invalid month {text!r} in column {column!r}, "
            "expected YYYY-MM or 'Mon YYYY'."
        ) from exc


def _parse_csv_date(value: str, column: str, line: int) -> Optional[date]:
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise InvalidRecord(
            f"Line {line}: invalid date {text!r} in column {column!r}, expected YYYY-MM-DD."
        ) from exc


def read_transactions_csv(
    path: PathLike, categories: Iterable[Category]
) -> list[Transaction]:
    """
    Read transactions from a CSV file in the export layout.

    Parameters
    ----------
    path:
        CSV file to read.
    categories:
        Known categories; the 'Category' column is matched against their
        names (case-insensitive).

    Returns
    -------
    list[Transaction]
        Transactions in file order, with provisional ids 1..n (the database
        assigns the final ids on insert).

    Raises
    ------
    ValueError
        If required columns are missing.
    InvalidRecord
        If a category is unknown or a field is invalid.
    InvalidMonthFormat
        If a month cannot be parsed.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False)

    # Normalize column names to lowercase (to make the check case-insensitive)
    df.columns = [c.lower().strip() for c in df.columns]
    missing = REQUIRED_COLUMNS.difference(df.columns)
    if missing:
        raise ValueError(
            "Invalid transactions CSV structure, missing column(s): "
            + ", ".join(sorted(missing))
            + ". Expected: "
            + ", ".join(EXPORT_COLUMNS)
        )

    by_name = {c.name.strip().lower(): c.id for c in categories}

    def cell(row: dict, column: str) -> str:
        return str(row.get(column, "") or "")

    out: list[Transaction] = []
    for i, row in enumerate(df.to_dict("records"), start=1):
        line = i + 1  # header is line 1
        category_name = cell(row, "category").strip()
        category_id = by_name.get(category_name.lower())
        if category_id is None:
            raise InvalidRecord(f"Line {line}: unknown category {category_name!r}.")

        entry_date = _parse_csv_date(cell(row, "entry date"), "Entry Date", line)
        if entry_date is None:
            raise InvalidRecord(f"Line {line}: 'Entry Date' is required.")

        pretax = cell(row, "pretax amount").strip()
        out.append(
            Transaction(
                id=i,
                entry_date=entry_date,
                category_id=category_id,
                amount=cell(row, "amount").strip(),
                transaction_type=cell(row, "type").strip().lower(),
                status=(cell(row, "status").strip().lower() or "pending"),
                pretax_amount=pretax or None,
                month_due=_parse_csv_month(cell(row, "month due"), "Month Due", line),
                month_paid=_parse_csv_month(cell(row, "month paid"), "Month Paid", line),
                date_processed=_parse_csv_date(
                    cell(row, "date processed"), "Date Processed", line
                ),
                payment_for_month=_parse_csv_month(
                    cell(row, "payment for"), "Payment For", line
                ),
                notes=cell(row, "notes") or None,
            )
        )
    return out
