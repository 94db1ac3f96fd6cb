# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Override and run-rate projection resolution.

Every cell of a category row goes through :func:`resolve` before it is
displayed or summed, with the following precedence:

1. a user override for (category, month) always wins;
2. a month after the current month whose computed value is zero is
   projected as the average of the category's non-zero totals in months up
   to the current month (the run-rate);
3. otherwise the computed value is used as is.

Statement subtotals are sums of resolved cells, so overrides and
projections always flow into the totals.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Optional

import pandas as pd

from .money import ZERO, cents

CellSource = Literal["computed", "override", "projected"]


@dataclass(frozen=True)
class Cell:
    """Resolved value of one statement cell and where it comes from.

    ``value`` is None only for ratio cells that cannot be computed.
    """

    value: Optional[Decimal]
    source: CellSource = "computed"

    @property
    def is_override(self) -> bool:
        return self.source == "override"

    @property
    def is_projected(self) -> bool:
        return self.source == "projected"


def is_future(month: pd.Period, current_month: Optional[pd.Period]) -> bool:
    """True if month is strictly after the current month.

    Without a current month nothing is considered future.
    """
    return current_month is not None and month > current_month


def run_rate(
    history: Mapping[pd.Period, Decimal], current_month: Optional[pd.Period]
) -> Decimal:
    """Average of the non-zero totals at months up to the current month.

    Returns 0 when there is no current month or no such total.
    """
    if current_month is None:
        return ZERO
    past = [amount for month, amount in history.items() if month <= current_month and amount != 0]
    if not past:
        return ZERO
    return cents(sum(past, ZERO) / len(past))


def resolve_cell(
    category_id: int,
    month: pd.Period,
    computed_baseline: Decimal,
    history: Mapping[pd.Period, Decimal],
    current_month: Optional[pd.Period],
    overrides: Mapping[tuple[int, pd.Period], Decimal],
) -> Cell:
    """Resolve one cell and report whether it was overridden or projected.

    Args:
        category_id: Category of the row (or the tax sentinel).
        month: Column month.
        computed_baseline: Value aggregated from transactions.
        history: The category's totals by month, used for projection.
        current_month: Boundary between actual and projected months.
        overrides: (category_id, month) -> user-entered amount.
    """
    key = (category_id, month)
    if key in overrides:
        return Cell(overrides[key], "override")

    if is_future(month, current_month) and computed_baseline == 0:
        return Cell(run_rate(history, current_month), "projected")

    return Cell(computed_baseline, "computed")


def resolve(
    category_id: int,
    month: pd.Period,
    computed_baseline: Decimal,
    history: Mapping[pd.Period, Decimal],
    current_month: Optional[pd.Period],
    overrides: Mapping[tuple[int, pd.Period], Decimal],
) -> Decimal:
    """Effective value of one cell (see :func:`resolve_cell`)."""
    return resolve_cell(
        category_id, month, computed_baseline, history, current_month, overrides
    ).value
