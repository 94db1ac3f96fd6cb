# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Profit & Loss statement builder.

``build_profit_and_loss()`` turns a :class:`LedgerSnapshot` into a monthly
P&L on the accrual basis:

- Revenue            = sum of resolved revenue category cells
- COGS               = sum of resolved COGS category cells
- Gross Profit       = Revenue - COGS
- Gross Margin %     = Gross Profit / Revenue x 100 (None when Revenue = 0)
- Operating Expenses = opex categories + depreciation categories
                       + fixed-asset depreciation + loan interest
- NIBT               = Gross Profit - Operating Expenses
- Income Tax         = corporate: 21% of positive NIBT, or the override
                       stored under ``TAX_OVERRIDE_CATEGORY_ID``;
                       passthrough: always 0
- NIAT               = NIBT - Income Tax
- Cumulative NI      = running sum of NIAT across the displayed months

Every category cell is resolved through
:func:`smb_ledger.projection.resolve_cell`, so overrides and run-rate
projections are reflected in all subtotals. The Total column sums each
monthly line; the gross margin total is recomputed from the summed gross
profit and revenue, and the cumulative line has no total.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import pandas as pd

from .aggregation import AccrualBasis, accrual_basis
from .money import ZERO, cents
from .months import MonthLike, parse_month, parse_optional_month
from .projection import Cell
from .records import TAX_OVERRIDE_CATEGORY_ID, LedgerSnapshot, TaxMode
from .rows import StatementRow, category_rows, computed_row, rows_to_frame, sum_by_month
from .schedules import depreciation_by_month, interest_by_month

logger = logging.getLogger(__name__)

CORPORATE_TAX_RATE = Decimal("0.21")


@dataclass(frozen=True)
class ProfitAndLoss:
    """
    Monthly Profit & Loss statement.

    Attributes
    ----------
    months:
        Displayed months, in chronological order.
    rows:
        Every statement line in display order (category rows, computed
        rows, subtotals).
    tax_mode:
        'corporate' or 'passthrough'.
    current_month:
        Months strictly after it are projected.
    """

    months: tuple[pd.Period, ...]
    rows: tuple[StatementRow, ...]
    tax_mode: TaxMode
    current_month: Optional[pd.Period] = None

    def row(self, key: str) -> StatementRow:
        for r in self.rows:
            if r.key == key:
                return r
        raise KeyError(key)

    def section(self, name: str) -> list[StatementRow]:
        """Category rows of one section ('revenue', 'cogs' or 'opex')."""
        return [r for r in self.rows if r.section == name and r.kind == "category"]

    def value(self, key: str, month: MonthLike) -> Optional[Decimal]:
        return self.row(key).value(parse_month(month))

    def total(self, key: str) -> Optional[Decimal]:
        return self.row(key).total

    @property
    def tax_editable(self) -> bool:
        return self.tax_mode == "corporate"

    def cumulative_net_income(self, through: MonthLike) -> Decimal:
        """Running net income at ``through`` (0 before the first month)."""
        through = parse_month(through)
        running = self.row("cumulative_net_income")
        value = ZERO
        for m in self.months:
            if m > through:
                break
            value = running.value(m)
        return value

    def to_frame(self) -> pd.DataFrame:
        """Long-format DataFrame (see :func:`smb_ledger.rows.rows_to_frame`)."""
        return rows_to_frame(self.rows, self.months)


def _override_months(snapshot: LedgerSnapshot, accrual: AccrualBasis) -> set[pd.Period]:
    """Months of P&L overrides that land on a statement row."""
    row_ids = {TAX_OVERRIDE_CATEGORY_ID} if snapshot.tax_mode == "corporate" else set()
    for breakdown in (accrual.revenue, accrual.cogs, accrual.opex, accrual.depreciation):
        row_ids.update(breakdown)
    return {m for (category_id, m) in snapshot.pl_overrides if category_id in row_ids}


def _statement_months(
    accrual_months: Iterable[pd.Period],
    depreciation: dict[pd.Period, Decimal],
    interest: dict[pd.Period, Decimal],
    override_months: Iterable[pd.Period] = (),
) -> tuple[pd.Period, ...]:
    return tuple(
        sorted(
            set(accrual_months) | set(depreciation) | set(interest) | set(override_months)
        )
    )


def default_months(snapshot: LedgerSnapshot) -> tuple[pd.Period, ...]:
    """Months displayed by default: any month with accrual activity,
    depreciation, collected loan interest or a P&L override."""
    accrual = accrual_basis(snapshot)
    return _statement_months(
        accrual.months,
        depreciation_by_month(snapshot.fixed_assets),
        interest_by_month(snapshot),
        _override_months(snapshot, accrual),
    )


def _gross_margin(gross: Decimal, revenue: Decimal) -> Optional[Decimal]:
    if revenue == 0:
        return None
    return cents(gross / revenue * 100)


def _income_tax_cells(
    snapshot: LedgerSnapshot,
    months: Iterable[pd.Period],
    nibt: dict[pd.Period, Decimal],
) -> dict[pd.Period, Cell]:
    cells: dict[pd.Period, Cell] = {}
    for m in months:
        if snapshot.tax_mode != "corporate":
            cells[m] = Cell(ZERO)
            continue
        key = (TAX_OVERRIDE_CATEGORY_ID, m)
        if key in snapshot.pl_overrides:
            cells[m] = Cell(snapshot.pl_overrides[key], "override")
        elif nibt[m] > 0:
            cells[m] = Cell(cents(nibt[m] * CORPORATE_TAX_RATE))
        else:
            cells[m] = Cell(ZERO)
    return cells


def build_profit_and_loss(
    snapshot: LedgerSnapshot,
    current_month: Optional[MonthLike] = None,
    months: Optional[Iterable[MonthLike]] = None,
) -> ProfitAndLoss:
    """Build the monthly Profit & Loss of a snapshot.

    Args:
        snapshot: Records, P&L overrides and tax mode.
        current_month: Last month of actuals; later months with no computed
            value are projected from the run-rate. None disables projection.
        months: Months to display. Defaults to every month carrying a
            transaction due, a depreciation entry, collected loan interest or
            a P&L override.

    Returns:
        A ProfitAndLoss whose rows are, in order: revenue categories, total
        revenue, COGS categories, total COGS, gross profit, gross margin,
        operating-expense rows, total operating expenses, NIBT, income tax,
        NIAT and cumulative net income.
    """
    current = parse_optional_month(current_month)
    accrual = accrual_basis(snapshot)
    depreciation = depreciation_by_month(snapshot.fixed_assets)
    interest = interest_by_month(snapshot)

    if months is None:
        period_list = _statement_months(
            accrual.months, depreciation, interest, _override_months(snapshot, accrual)
        )
    else:
        period_list = tuple(sorted({parse_month(m) for m in months}))

    overrides = snapshot.pl_overrides

    revenue_rows = category_rows(accrual.revenue, "revenue", period_list, current, overrides)
    cogs_rows = category_rows(accrual.cogs, "cogs", period_list, current, overrides)
    opex_rows = category_rows(accrual.opex, "opex", period_list, current, overrides)
    opex_rows += category_rows(
        accrual.depreciation, "opex", period_list, current, overrides
    )
    if depreciation:
        opex_rows.append(
            computed_row(
                "fixed_asset_depreciation",
                "Depreciation (Fixed Assets)",
                "opex",
                {m: depreciation.get(m, ZERO) for m in period_list},
            )
        )
    if interest:
        opex_rows.append(
            computed_row(
                "loan_interest",
                "Interest Expense (Loans)",
                "opex",
                {m: interest.get(m, ZERO) for m in period_list},
            )
        )

    revenue = sum_by_month(revenue_rows, period_list)
    cogs = sum_by_month(cogs_rows, period_list)
    opex = sum_by_month(opex_rows, period_list)
    gross = {m: revenue[m] - cogs[m] for m in period_list}
    nibt = {m: gross[m] - opex[m] for m in period_list}

    tax_cells = _income_tax_cells(snapshot, period_list, nibt)
    tax = {m: cell.value for m, cell in tax_cells.items()}
    niat = {m: nibt[m] - tax[m] for m in period_list}

    cumulative: dict[pd.Period, Decimal] = {}
    running = ZERO
    for m in period_list:
        running += niat[m]
        cumulative[m] = running

    revenue_total = sum(revenue.values(), ZERO)
    gross_total = sum(gross.values(), ZERO)

    rows: list[StatementRow] = []
    rows += revenue_rows
    rows.append(computed_row("revenue_total", "Total Revenue", "revenue", revenue, "subtotal"))
    rows += cogs_rows
    rows.append(computed_row("cogs_total", "Total COGS", "cogs", cogs, "subtotal"))
    rows.append(computed_row("gross_profit", "Gross Profit", "gross_profit", gross, "total"))
    rows.append(
        computed_row(
            "gross_margin_pct",
            "Gross Margin %",
            "gross_profit",
            {m: _gross_margin(gross[m], revenue[m]) for m in period_list},
            "ratio",
            total=_gross_margin(gross_total, revenue_total),
            additive=False,
        )
    )
    rows += opex_rows
    rows.append(
        computed_row("operating_expenses", "Total Operating Expenses", "opex", opex, "subtotal")
    )
    rows.append(
        computed_row("nibt", "Net Income Before Tax", "net_income", nibt, "total")
    )
    rows.append(
        StatementRow(
            key="income_tax",
            label="Income Tax",
            section="net_income",
            kind="tax",
            cells=tax_cells,
            total=sum(tax.values(), ZERO),
            category_id=TAX_OVERRIDE_CATEGORY_ID,
        )
    )
    rows.append(
        computed_row("niat", "Net Income After Tax", "net_income", niat, "total")
    )
    rows.append(
        computed_row(
            "cumulative_net_income",
            "Cumulative Net Income",
            "net_income",
            cumulative,
            "balance",
            additive=False,
        )
    )

    logger.debug(
        "Profit & Loss built: %d months, %d category rows, tax mode %s",
        len(period_list),
        len(revenue_rows) + len(cogs_rows) + len(opex_rows),
        snapshot.tax_mode,
    )
    return ProfitAndLoss(
        months=period_list,
        rows=tuple(rows),
        tax_mode=snapshot.tax_mode,
        current_month=current,
    )
