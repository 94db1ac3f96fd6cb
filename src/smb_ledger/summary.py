# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Ledger summaries for SMB Ledger.

Three read-only views of a snapshot's transactions, independent of the
statements:

- ``ledger_summary``  : cash balance (received receivables minus paid
                        payables), open accounts receivable and open
                        accounts payable;
- ``late_payments``   : settled amounts whose month paid is after their
                        month due, per side;
- ``monthly_summary`` : one row per entry-date month, newest first, with
                        received, paid and pending amounts and the number
                        of entries.

Only the transaction type, status, amount and months are read; categories
play no part, so transactions of unknown categories are counted too.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

import pandas as pd

from .money import ZERO
from .records import LedgerSnapshot, Transaction

MONTHLY_SUMMARY_COLUMNS = [
    "month",
    "received",
    "paid",
    "pending_receivables",
    "pending_payables",
    "total_entries",
]


@dataclass(frozen=True)
class LedgerSummary:
    """Balances over every transaction of a snapshot."""

    cash_balance: Decimal
    accounts_receivable: Decimal
    accounts_payable: Decimal


@dataclass(frozen=True)
class LatePayments:
    """Settled amounts paid or received after the month they were due."""

    late_received: Decimal
    late_paid: Decimal

    @property
    def has_late_receivables(self) -> bool:
        return self.late_received > 0

    @property
    def has_late_payables(self) -> bool:
        return self.late_paid > 0


def _is_received(t: Transaction) -> bool:
    return t.transaction_type == "receivable" and t.status == "received"


def _is_paid(t: Transaction) -> bool:
    return t.transaction_type == "payable" and t.status == "paid"


def _is_pending(t: Transaction, transaction_type: str) -> bool:
    return t.transaction_type == transaction_type and t.status == "pending"


def _total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def ledger_summary(snapshot: LedgerSnapshot) -> LedgerSummary:
    """Cash balance and open receivables/payables of a snapshot."""
    transactions = snapshot.transactions
    received = _total(t for t in transactions if _is_received(t))
    paid = _total(t for t in transactions if _is_paid(t))
    receivable = _total(t for t in transactions if _is_pending(t, "receivable"))
    payable = _total(t for t in transactions if _is_pending(t, "payable"))
    return LedgerSummary(
        cash_balance=received - paid,
        accounts_receivable=receivable,
        accounts_payable=payable,
    )


def _is_late(t: Transaction) -> bool:
    if t.month_due is None or t.month_paid is None:
        return False
    return t.month_paid > t.month_due


def late_payments(snapshot: LedgerSnapshot) -> LatePayments:
    """Amounts settled after their due month.

    A transaction without a month due or a month paid is never late.
    """
    transactions = snapshot.transactions
    return LatePayments(
        late_received=_total(t for t in transactions if _is_received(t) and _is_late(t)),
        late_paid=_total(t for t in transactions if _is_paid(t) and _is_late(t)),
    )


def monthly_summary(snapshot: LedgerSnapshot) -> pd.DataFrame:
    """
    Group transactions by the month of their entry date.

    Returns
    -------
    pandas.DataFrame
        Columns ``MONTHLY_SUMMARY_COLUMNS``, one row per entry month (as
        'YYYY-MM'), newest month first. Amounts are floats.
    """
    by_month: dict[pd.Period, list[Transaction]] = {}
    for t in snapshot.transactions:
        entry_month = pd.Period(t.entry_date, freq="M")
        by_month.setdefault(entry_month, []).append(t)

    records = []
    for entry_month in sorted(by_month, reverse=True):
        group = by_month[entry_month]
        records.append(
            {
                "month": str(entry_month),
                "received": float(_total(t for t in group if _is_received(t))),
                "paid": float(_total(t for t in group if _is_paid(t))),
                "pending_receivables": float(
                    _total(t for t in group if _is_pending(t, "receivable"))
                ),
                "pending_payables": float(
                    _total(t for t in group if _is_pending(t, "payable"))
                ),
                "total_entries": len(group),
            }
        )
    return pd.DataFrame(records, columns=MONTHLY_SUMMARY_COLUMNS)
