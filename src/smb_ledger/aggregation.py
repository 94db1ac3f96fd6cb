# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Category aggregation for SMB Ledger.

This module groups transactions by category and by month. Two independent
passes exist, one per statement basis:

1. Cash basis (Cash Flow statement)
   ---------------------------------
   ``cash_basis(snapshot)`` keeps settled transactions (status 'paid' or
   'received'), groups them by ``month_paid`` and splits them into
   receipts (receivables) and payments (payables). Categories with
   cash-flow overrides but no settled transactions still get a row.

2. Accrual basis (Profit & Loss)
   ------------------------------
   ``accrual_basis(snapshot)`` keeps every transaction with a ``month_due``,
   whatever its status, and sorts categories into four buckets:

   - revenue      : receivables of non-COGS categories, using the pre-tax
                    amount when one was recorded;
   - cogs         : categories flagged is_cogs;
   - opex         : payables of categories that are neither COGS,
                    depreciation nor sales tax;
   - depreciation : every depreciation category, with no totals, since their
                    values are entered as overrides only.

   Categories suppressed from the P&L (``Category.show_on_pl``) are left out
   of revenue, COGS and opex.

Both passes return ordered mappings {category_id -> CategoryTotals} in
(cashflow_sort_order, name) order so that statement rows are deterministic.
Transactions referring to an unknown category contribute nothing.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

import pandas as pd

from .money import ZERO
from .records import TAX_OVERRIDE_CATEGORY_ID, Category, LedgerSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryTotals:
    """
    Monthly totals of one category.

    Attributes
    ----------
    category_id:
        Identifier of the category.
    name:
        Category name, used as row label.
    totals:
        Month -> summed amount, sorted by month. Months without transactions
        are absent.
    """

    category_id: int
    name: str
    totals: dict[pd.Period, Decimal] = field(default_factory=dict)

    def amount(self, month: pd.Period) -> Decimal:
        return self.totals.get(month, ZERO)


CategoryBreakdown = dict[int, CategoryTotals]


@dataclass(frozen=True)
class CashBasis:
    """Cash-basis aggregation: settled amounts grouped by month paid."""

    receipts: CategoryBreakdown
    payments: CategoryBreakdown
    months: tuple[pd.Period, ...]


@dataclass(frozen=True)
class AccrualBasis:
    """Accrual-basis aggregation: amounts grouped by month due."""

    revenue: CategoryBreakdown
    cogs: CategoryBreakdown
    opex: CategoryBreakdown
    depreciation: CategoryBreakdown
    months: tuple[pd.Period, ...]


def ordered_categories(categories: Iterable[Category]) -> list[Category]:
    """Categories in cash-flow display order: sort order, then name."""
    return sorted(categories, key=lambda c: (c.cashflow_sort_order, c.name))


def _add(
    buckets: dict[int, dict[pd.Period, Decimal]],
    category_id: int,
    month: pd.Period,
    amount: Decimal,
) -> None:
    per_month = buckets.setdefault(category_id, {})
    per_month[month] = per_month.get(month, ZERO) + amount


def _breakdown(
    buckets: Mapping[int, Mapping[pd.Period, Decimal]],
    order: list[Category],
    include_empty: Iterable[int] = (),
) -> CategoryBreakdown:
    """Turn raw buckets into CategoryTotals following the category order."""
    wanted = set(buckets) | set(include_empty)
    out: CategoryBreakdown = {}
    for category in order:
        if category.id not in wanted:
            continue
        totals = dict(sorted(buckets.get(category.id, {}).items()))
        out[category.id] = CategoryTotals(category.id, category.name, totals)
    return out


def _cash_direction(category: Category, folder_types: Mapping[int, str]) -> str:
    """Side of the Cash Flow on which a category without settled
    transactions is shown: its default type, else its folder's type,
    else payable."""
    if category.default_type is not None:
        return category.default_type
    if category.folder_id is not None and category.folder_id in folder_types:
        return folder_types[category.folder_id]
    return "payable"


def cash_basis(snapshot: LedgerSnapshot) -> CashBasis:
    """Group settled transactions by category and month paid.

    Categories that only carry cash-flow overrides are included with empty
    totals, on the side given by their default type (or their folder's
    type), so that the overridden values still reach the statement.

    Args:
        snapshot: Records to aggregate.

    Returns:
        A CashBasis with receipts (receivables) and payments (payables), and
        the sorted list of months that carry at least one settled
        transaction or cash-flow override.
    """
    by_id = snapshot.category_by_id()
    receipts: dict[int, dict[pd.Period, Decimal]] = {}
    payments: dict[int, dict[pd.Period, Decimal]] = {}
    months: set[pd.Period] = set()

    for t in snapshot.transactions:
        if t.status == "pending" or t.month_paid is None:
            continue
        if t.category_id not in by_id:
            logger.debug(
                "Transaction %s skipped: unknown category %s", t.id, t.category_id
            )
            continue

        target = receipts if t.transaction_type == "receivable" else payments
        _add(target, t.category_id, t.month_paid, t.amount)
        months.add(t.month_paid)

    folder_types = {f.id: f.folder_type for f in snapshot.folders}
    override_receipts: set[int] = set()
    override_payments: set[int] = set()
    for category_id, month in snapshot.cashflow_overrides:
        category = by_id.get(category_id)
        if category is None:
            logger.debug("Cash flow override skipped: unknown category %s", category_id)
            continue
        months.add(month)
        if category_id in receipts or category_id in payments:
            continue
        if _cash_direction(category, folder_types) == "receivable":
            override_receipts.add(category_id)
        else:
            override_payments.add(category_id)

    order = ordered_categories(snapshot.categories)
    return CashBasis(
        receipts=_breakdown(receipts, order, include_empty=override_receipts),
        payments=_breakdown(payments, order, include_empty=override_payments),
        months=tuple(sorted(months)),
    )


def _is_opex_category(category: Category) -> bool:
    return not (
        category.is_cogs
        or category.is_depreciation
        or category.is_sales_tax
        or category.suppressed_from_pl
    )


def accrual_basis(snapshot: LedgerSnapshot) -> AccrualBasis:
    """Group transactions by category and month due into P&L buckets.

    Opex-eligible categories that have P&L overrides but no transactions are
    included as opex rows with empty totals, so that their overridden values
    still reach the statement.
    """
    by_id = snapshot.category_by_id()
    revenue: dict[int, dict[pd.Period, Decimal]] = {}
    cogs: dict[int, dict[pd.Period, Decimal]] = {}
    opex: dict[int, dict[pd.Period, Decimal]] = {}
    months: set[pd.Period] = set()

    for t in snapshot.transactions:
        if t.month_due is None:
            continue
        category = by_id.get(t.category_id)
        if category is None:
            logger.debug(
                "Transaction %s skipped: unknown category %s", t.id, t.category_id
            )
            continue
        months.add(t.month_due)

        if category.suppressed_from_pl:
            continue

        if category.is_cogs:
            _add(cogs, category.id, t.month_due, t.amount)
        elif t.transaction_type == "receivable":
            amount = t.pretax_amount if t.pretax_amount is not None else t.amount
            _add(revenue, category.id, t.month_due, amount)
        elif _is_opex_category(category):
            _add(opex, category.id, t.month_due, t.amount)

    depreciation_ids = [c.id for c in snapshot.categories if c.is_depreciation]
    seen = set(revenue) | set(cogs) | set(opex) | set(depreciation_ids)
    override_only = {
        category_id
        for (category_id, _month) in snapshot.pl_overrides
        if category_id != TAX_OVERRIDE_CATEGORY_ID
        and category_id not in seen
        and category_id in by_id
        and _is_opex_category(by_id[category_id])
    }

    order = ordered_categories(snapshot.categories)
    return AccrualBasis(
        revenue=_breakdown(revenue, order),
        cogs=_breakdown(cogs, order),
        opex=_breakdown(opex, order, include_empty=override_only),
        depreciation=_breakdown({}, order, include_empty=depreciation_ids),
        months=tuple(sorted(months)),
    )
