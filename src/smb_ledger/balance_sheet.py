# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Balance Sheet builder.

The Balance Sheet is a point-in-time view at the end of one month. It is
assembled from the other statements and schedules:

Assets
    - Cash                : Cash Flow ending balance, computed over every
                            month from the first settled transaction up to
                            the as-of month
    - Accounts Receivable : receivables due by the as-of month and not yet
                            received at that date, by category
    - Fixed Assets        : purchase cost of assets bought by the as-of
                            month, less accumulated depreciation

Liabilities
    - Accounts Payable    : payables due and not yet paid, by category
                            (sales-tax categories excluded)
    - Sales Tax Payable   : outstanding payables of sales-tax categories
    - Loans Payable       : outstanding principal of every loan

Equity
    - Common Stock        : par x shares, from its effective month
    - APIC                : from its effective month
    - Retained Earnings   : P&L cumulative net income through the as-of
                            month

The statement reports the signed difference
``total_assets - (total_liabilities + total_equity)`` and is considered
balanced when it is below one cent in absolute value.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

import pandas as pd

from .aggregation import cash_basis
from .cash_flow import build_cash_flow
from .money import CENT, ZERO
from .months import MonthLike, month_of, month_range, parse_month, parse_optional_month
from .profit_loss import build_profit_and_loss, default_months
from .projection import is_future
from .records import LedgerSnapshot
from .schedules import accumulated_depreciation, balance_as_of, loan_schedule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryBalance:
    """Outstanding amount of one category."""

    category_id: int
    name: str
    amount: Decimal


@dataclass(frozen=True)
class AssetBalance:
    """Carrying value of one fixed asset."""

    asset_id: int
    name: str
    cost: Decimal
    accumulated_depreciation: Decimal

    @property
    def net(self) -> Decimal:
        return self.cost - self.accumulated_depreciation


@dataclass(frozen=True)
class LoanBalance:
    """Outstanding principal of one loan."""

    loan_id: int
    name: str
    balance: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    """
    Balance Sheet at the end of ``as_of``.

    Attributes
    ----------
    difference:
        total_assets - total_liabilities_and_equity (signed).
    is_balanced:
        True when ``abs(difference)`` is below one cent.
    is_projected:
        True when ``as_of`` lies after the current month, i.e. some of the
        figures come from projected cells.
    """

    as_of: pd.Period
    cash: Decimal
    receivables: tuple[CategoryBalance, ...]
    fixed_assets: tuple[AssetBalance, ...]
    payables: tuple[CategoryBalance, ...]
    sales_tax_payable: Decimal
    loans: tuple[LoanBalance, ...]
    common_stock: Decimal
    apic: Decimal
    retained_earnings: Decimal
    is_projected: bool = False

    @property
    def accounts_receivable(self) -> Decimal:
        return sum((line.amount for line in self.receivables), ZERO)

    @property
    def total_fixed_asset_cost(self) -> Decimal:
        return sum((a.cost for a in self.fixed_assets), ZERO)

    @property
    def accumulated_depreciation(self) -> Decimal:
        return sum((a.accumulated_depreciation for a in self.fixed_assets), ZERO)

    @property
    def net_fixed_assets(self) -> Decimal:
        return self.total_fixed_asset_cost - self.accumulated_depreciation

    @property
    def total_assets(self) -> Decimal:
        return self.cash + self.accounts_receivable + self.net_fixed_assets

    @property
    def accounts_payable(self) -> Decimal:
        return sum((line.amount for line in self.payables), ZERO)

    @property
    def total_loans(self) -> Decimal:
        return sum((loan.balance for loan in self.loans), ZERO)

    @property
    def total_liabilities(self) -> Decimal:
        return self.accounts_payable + self.sales_tax_payable + self.total_loans

    @property
    def total_equity(self) -> Decimal:
        return self.common_stock + self.apic + self.retained_earnings

    @property
    def total_liabilities_and_equity(self) -> Decimal:
        return self.total_liabilities + self.total_equity

    @property
    def difference(self) -> Decimal:
        return self.total_assets - self.total_liabilities_and_equity

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < CENT

    def to_frame(self) -> pd.DataFrame:
        """Long-format DataFrame with columns section, key, label, amount."""
        lines: list[tuple[str, str, str, Decimal]] = [
            ("assets", "cash", "Cash", self.cash)
        ]
        for r in self.receivables:
            lines.append(("assets", f"receivable:{r.category_id}", r.name, r.amount))
        lines.append(
            ("assets", "accounts_receivable", "Total Accounts Receivable", self.accounts_receivable)
        )
        for a in self.fixed_assets:
            lines.append(("assets", f"fixed_asset:{a.asset_id}", a.name, a.cost))
        lines += [
            ("assets", "fixed_asset_cost", "Total Fixed Assets (cost)", self.total_fixed_asset_cost),
            (
                "assets",
                "accumulated_depreciation",
                "Less Accumulated Depreciation",
                -self.accumulated_depreciation,
            ),
            ("assets", "net_fixed_assets", "Net Fixed Assets", self.net_fixed_assets),
            ("assets", "total_assets", "Total Assets", self.total_assets),
        ]
        for p in self.payables:
            lines.append(("liabilities", f"payable:{p.category_id}", p.name, p.amount))
        lines += [
            ("liabilities", "accounts_payable", "Total Accounts Payable", self.accounts_payable),
            ("liabilities", "sales_tax_payable", "Sales Tax Payable", self.sales_tax_payable),
        ]
        for loan in self.loans:
            lines.append(("liabilities", f"loan:{loan.loan_id}", loan.name, loan.balance))
        lines += [
            ("liabilities", "total_loans", "Total Loans Payable", self.total_loans),
            ("liabilities", "total_liabilities", "Total Liabilities", self.total_liabilities),
            ("equity", "common_stock", "Common Stock", self.common_stock),
            ("equity", "apic", "Additional Paid-In Capital", self.apic),
            ("equity", "retained_earnings", "Retained Earnings", self.retained_earnings),
            ("equity", "total_equity", "Total Equity", self.total_equity),
            (
                "equity",
                "total_liabilities_and_equity",
                "Total Liabilities & Equity",
                self.total_liabilities_and_equity,
            ),
            ("check", "difference", "Difference", self.difference),
        ]
        return pd.DataFrame(
            [
                {"section": s, "key": k, "label": label, "amount": float(amount)}
                for s, k, label, amount in lines
            ],
            columns=["section", "key", "label", "amount"],
        )


def _outstanding_by_category(
    snapshot: LedgerSnapshot,
    as_of: pd.Period,
    transaction_type: str,
    sales_tax: Optional[bool] = None,
) -> list[CategoryBalance]:
    """Outstanding amounts by category, sorted by name.

    ``sales_tax`` restricts the result to (True) or excludes (False) sales-tax
    categories; None keeps every category.
    """
    by_id = snapshot.category_by_id()
    totals: dict[int, Decimal] = {}
    for t in snapshot.transactions:
        if t.transaction_type != transaction_type or not t.outstanding_as_of(as_of):
            continue
        category = by_id.get(t.category_id)
        if category is None:
            continue
        if sales_tax is not None and category.is_sales_tax != sales_tax:
            continue
        totals[category.id] = totals.get(category.id, ZERO) + t.amount

    lines = [
        CategoryBalance(category_id, by_id[category_id].name, amount)
        for category_id, amount in totals.items()
        if amount != 0
    ]
    return sorted(lines, key=lambda line: (line.name, line.category_id))


def _counts_at(effective: Optional[date], as_of: pd.Period) -> bool:
    return effective is None or month_of(effective) <= as_of


def _cash_as_of(
    snapshot: LedgerSnapshot, as_of: pd.Period, current: Optional[pd.Period]
) -> Decimal:
    cash_months = cash_basis(snapshot).months
    if not cash_months or cash_months[0] > as_of:
        return ZERO
    flow = build_cash_flow(snapshot, current, months=month_range(cash_months[0], as_of))
    return flow.ending_balance(as_of)


def _retained_earnings(
    snapshot: LedgerSnapshot, as_of: pd.Period, current: Optional[pd.Period]
) -> Decimal:
    pl_months = default_months(snapshot)
    if not pl_months or pl_months[0] > as_of:
        return ZERO
    pl = build_profit_and_loss(snapshot, current, months=month_range(pl_months[0], as_of))
    return pl.cumulative_net_income(as_of)


def build_balance_sheet(
    snapshot: LedgerSnapshot,
    as_of: MonthLike,
    current_month: Optional[MonthLike] = None,
) -> BalanceSheet:
    """Build the Balance Sheet at the end of ``as_of``.

    Args:
        snapshot: Records, overrides, equity configuration and tax mode.
        as_of: Month of the snapshot ('YYYY-MM', date or Period).
        current_month: Last month of actuals, passed to the Cash Flow and
            P&L computations.

    Raises:
        InvalidMonthFormat: if ``as_of`` or ``current_month`` is malformed.
    """
    as_of = parse_month(as_of)
    current = parse_optional_month(current_month)

    fixed_assets = tuple(
        AssetBalance(
            asset_id=asset.id,
            name=asset.name,
            cost=asset.purchase_cost,
            accumulated_depreciation=accumulated_depreciation(asset, as_of),
        )
        for asset in snapshot.fixed_assets
        if month_of(asset.purchase_date) <= as_of
    )

    loans = tuple(
        LoanBalance(loan.id, loan.name, balance_as_of(loan, loan_schedule(loan, snapshot), as_of))
        for loan in snapshot.loans
    )

    sales_tax_payable = sum(
        (
            line.amount
            for line in _outstanding_by_category(snapshot, as_of, "payable", sales_tax=True)
        ),
        ZERO,
    )

    equity = snapshot.equity
    common_stock = (
        equity.common_stock if _counts_at(equity.seed_effective_date, as_of) else ZERO
    )
    apic = equity.apic if _counts_at(equity.apic_effective_date, as_of) else ZERO

    sheet = BalanceSheet(
        as_of=as_of,
        cash=_cash_as_of(snapshot, as_of, current),
        receivables=tuple(
            _outstanding_by_category(snapshot, as_of, "receivable")
        ),
        fixed_assets=fixed_assets,
        payables=tuple(_outstanding_by_category(snapshot, as_of, "payable", sales_tax=False)),
        sales_tax_payable=sales_tax_payable,
        loans=loans,
        common_stock=common_stock,
        apic=apic,
        retained_earnings=_retained_earnings(snapshot, as_of, current),
        is_projected=is_future(as_of, current),
    )

    if not sheet.is_balanced:
        logger.info(
            "Balance sheet at %s is unbalanced by %s", as_of, sheet.difference
        )
    return sheet
