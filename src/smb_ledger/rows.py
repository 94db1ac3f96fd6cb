# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Row model shared by the monthly statements (Profit & Loss, Cash Flow).

A statement is an ordered list of :class:`StatementRow` objects. Each row
holds one resolved :class:`~smb_ledger.projection.Cell` per month and an
optional total. Rows can be flattened into a long-format DataFrame (one line
per row and period) with :func:`rows_to_frame`; the "Total" column uses the
period label ``TOTAL_LABEL``.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal, Optional

import pandas as pd

from .aggregation import CategoryTotals
from .money import ZERO
from .projection import Cell, resolve_cell

RowKind = Literal["category", "computed", "subtotal", "total", "ratio", "tax", "balance"]

TOTAL_LABEL = "Total"

FRAME_COLUMNS = [
    "period_label",
    "section",
    "key",
    "label",
    "kind",
    "category_id",
    "amount",
    "source",
]


@dataclass(frozen=True)
class StatementRow:
    """
    One line of a monthly statement.

    Attributes
    ----------
    key:
        Stable identifier ('revenue_total', 'category:12', ...).
    label:
        Human-readable label.
    section:
        Statement section the row belongs to ('revenue', 'receipts', ...).
    kind:
        'category' rows carry resolved category cells; other kinds are
        computed from them.
    cells:
        Month -> resolved cell. A cell value of None means "not applicable"
        (gross margin without revenue).
    total:
        Value of the Total column, or None when the row is not additive
        (balances, not-applicable ratios).
    category_id:
        Category of 'category' rows.
    """

    key: str
    label: str
    section: str
    kind: RowKind
    cells: dict[pd.Period, Cell] = field(default_factory=dict)
    total: Optional[Decimal] = None
    category_id: Optional[int] = None

    def value(self, month: pd.Period) -> Optional[Decimal]:
        cell = self.cells.get(month)
        return cell.value if cell is not None else None


def computed_row(
    key: str,
    label: str,
    section: str,
    values: Mapping[pd.Period, Optional[Decimal]],
    kind: RowKind = "computed",
    total: Optional[Decimal] = None,
    additive: bool = True,
) -> StatementRow:
    """Build a row from plain monthly values.

    When ``additive`` is true and no total is given, the total is the sum of
    the monthly values.
    """
    if total is None and additive:
        total = sum((v for v in values.values() if v is not None), ZERO)
    return StatementRow(
        key=key,
        label=label,
        section=section,
        kind=kind,
        cells={m: Cell(v) for m, v in values.items()},
        total=total,
    )


def sum_by_month(
    rows: Iterable[StatementRow], months: Sequence[pd.Period]
) -> dict[pd.Period, Decimal]:
    """Month -> sum of the given rows' cell values."""
    totals = {m: ZERO for m in months}
    for row in rows:
        for m in months:
            value = row.value(m)
            if value is not None:
                totals[m] += value
    return totals


def _as_float(value: Optional[Decimal]) -> float:
    return float("nan") if value is None else float(value)


def rows_to_frame(
    rows: Sequence[StatementRow], months: Sequence[pd.Period]
) -> pd.DataFrame:
    """Flatten statement rows into a long-format DataFrame.

    Columns: period_label, section, key, label, kind, category_id, amount,
    source. Amounts are floats; NaN marks not-applicable values. Each row
    contributes one line per month, plus one 'Total' line when the row has
    a total.
    """
    out: list[dict[str, object]] = []
    for row in rows:
        for m in months:
            cell = row.cells.get(m)
            out.append(
                {
                    "period_label": str(m),
                    "section": row.section,
                    "key": row.key,
                    "label": row.label,
                    "kind": row.kind,
                    "category_id": row.category_id,
                    "amount": _as_float(cell.value if cell else None),
                    "source": cell.source if cell else "computed",
                }
            )
        if row.total is not None:
            out.append(
                {
                    "period_label": TOTAL_LABEL,
                    "section": row.section,
                    "key": row.key,
                    "label": row.label,
                    "kind": row.kind,
                    "category_id": row.category_id,
                    "amount": _as_float(row.total),
                    "source": "computed",
                }
            )

    if not out:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    return pd.DataFrame(out, columns=FRAME_COLUMNS)


def category_rows(
    breakdown: Mapping[int, CategoryTotals],
    section: str,
    months: Sequence[pd.Period],
    current_month: Optional[pd.Period],
    overrides: Mapping[tuple[int, pd.Period], Decimal],
) -> list[StatementRow]:
    """Resolve every cell of the given category rows.

    The category's full history (not only the displayed months) feeds the
    run-rate projection. Row totals are sums of the resolved cells.
    """
    out: list[StatementRow] = []
    for category_id, totals in breakdown.items():
        cells = {
            m: resolve_cell(
                category_id,
                m,
                totals.amount(m),
                totals.totals,
                current_month,
                overrides,
            )
            for m in months
        }
        out.append(
            StatementRow(
                key=f"category:{category_id}",
                label=totals.name,
                section=section,
                kind="category",
                cells=cells,
                total=sum((c.value for c in cells.values()), ZERO),
                category_id=category_id,
            )
        )
    return out
