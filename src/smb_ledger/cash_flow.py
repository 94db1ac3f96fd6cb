# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Cash Flow statement builder.

The Cash Flow is computed on the cash basis: settled transactions grouped by
the month they were paid or received. For every displayed month:

    Beginning Balance = previous month's Ending Balance (0 for the first)
    Receipts          = sum of resolved receivable category cells
    Payments          = sum of resolved payable category cells
    Net Cash Flow     = Receipts - Payments
    Ending Balance    = Beginning Balance + Net Cash Flow

Category cells go through the override/projection resolver with the
cash-flow override map. Only receipts, payments and net cash flow have a
Total; balances are running state.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import pandas as pd

from .aggregation import cash_basis
from .money import ZERO
from .months import MonthLike, parse_month, parse_optional_month
from .records import LedgerSnapshot
from .rows import StatementRow, category_rows, computed_row, rows_to_frame, sum_by_month

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CashFlow:
    """
    Monthly Cash Flow statement.

    Attributes
    ----------
    months:
        Displayed months, in chronological order.
    rows:
        Statement lines in display order: beginning balance, receipt
        categories, total receipts, payment categories, total payments,
        net cash flow, ending balance.
    beginning, receipts, payments, net, ending:
        Month -> value of the corresponding line.
    """

    months: tuple[pd.Period, ...]
    rows: tuple[StatementRow, ...]
    beginning: dict[pd.Period, Decimal]
    receipts: dict[pd.Period, Decimal]
    payments: dict[pd.Period, Decimal]
    net: dict[pd.Period, Decimal]
    ending: dict[pd.Period, Decimal]
    current_month: Optional[pd.Period] = None

    def row(self, key: str) -> StatementRow:
        for r in self.rows:
            if r.key == key:
                return r
        raise KeyError(key)

    def ending_balance(self, as_of: MonthLike) -> Decimal:
        """Ending balance of the last displayed month on or before ``as_of``."""
        as_of = parse_month(as_of)
        balance = ZERO
        for m in self.months:
            if m > as_of:
                break
            balance = self.ending[m]
        return balance

    def to_frame(self) -> pd.DataFrame:
        return rows_to_frame(self.rows, self.months)


def build_cash_flow(
    snapshot: LedgerSnapshot,
    current_month: Optional[MonthLike] = None,
    months: Optional[Iterable[MonthLike]] = None,
) -> CashFlow:
    """Build the monthly Cash Flow of a snapshot.

    Args:
        snapshot: Records and cash-flow overrides.
        current_month: Last month of actuals (None disables projection).
        months: Months to display. Defaults to every month in which a
            transaction was settled.
    """
    current = parse_optional_month(current_month)
    basis = cash_basis(snapshot)

    if months is None:
        period_list = basis.months
    else:
        period_list = tuple(sorted({parse_month(m) for m in months}))

    overrides = snapshot.cashflow_overrides
    receipt_rows = category_rows(basis.receipts, "receipts", period_list, current, overrides)
    payment_rows = category_rows(basis.payments, "payments", period_list, current, overrides)

    receipts = sum_by_month(receipt_rows, period_list)
    payments = sum_by_month(payment_rows, period_list)
    net = {m: receipts[m] - payments[m] for m in period_list}

    beginning: dict[pd.Period, Decimal] = {}
    ending: dict[pd.Period, Decimal] = {}
    balance = ZERO
    for m in period_list:
        beginning[m] = balance
        balance = balance + net[m]
        ending[m] = balance

    rows: list[StatementRow] = [
        computed_row(
            "beginning_balance", "Beginning Balance", "balance", beginning, "balance", additive=False
        )
    ]
    rows += receipt_rows
    rows.append(computed_row("receipts_total", "Total Receipts", "receipts", receipts, "subtotal"))
    rows += payment_rows
    rows.append(computed_row("payments_total", "Total Payments", "payments", payments, "subtotal"))
    rows.append(computed_row("net_cash_flow", "Net Cash Flow", "balance", net, "total"))
    rows.append(
        computed_row(
            "ending_balance", "Ending Balance", "balance", ending, "balance", additive=False
        )
    )

    logger.debug(
        "Cash flow built: %d months, %d receipt rows, %d payment rows",
        len(period_list),
        len(receipt_rows),
        len(payment_rows),
    )
    return CashFlow(
        months=period_list,
        rows=tuple(rows),
        beginning=beginning,
        receipts=receipts,
        payments=payments,
        net=net,
        ending=ending,
        current_month=current,
    )
