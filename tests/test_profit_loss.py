from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from smb_ledger.profit_loss import build_profit_and_loss, default_months
from smb_ledger.records import (
    TAX_OVERRIDE_CATEGORY_ID,
    Category,
    FixedAsset,
    LedgerSnapshot,
    Loan,
    Transaction,
)
from smb_ledger.rows import FRAME_COLUMNS, TOTAL_LABEL


def month(value: str) -> pd.Period:
    return pd.Period(value, freq="M")


CATEGORIES = [
    Category(id=1, name="Sales", cashflow_sort_order=1),
    Category(id=2, name="Materials", cashflow_sort_order=2, is_cogs=True),
    Category(id=3, name="Rent", cashflow_sort_order=3),
    Category(id=4, name="Sales Tax", cashflow_sort_order=4, is_sales_tax=True),
    Category(id=5, name="Owner Draws", cashflow_sort_order=5, show_on_pl=True),
    Category(id=6, name="Depreciation", cashflow_sort_order=6, is_depreciation=True),
]


def tx(tx_id, category_id, amount, transaction_type, due, pretax=None) -> Transaction:
    return Transaction(
        id=tx_id,
        entry_date=date(2025, 1, 1),
        category_id=category_id,
        amount=amount,
        transaction_type=transaction_type,
        pretax_amount=pretax,
        month_due=due,
    )


BASE_TRANSACTIONS = [
    tx(1, 1, "1080", "receivable", "2025-01", pretax="1000"),
    tx(2, 2, "300", "payable", "2025-01"),
    tx(3, 3, "200", "payable", "2025-01"),
    tx(4, 1, "500", "receivable", "2025-02"),
    tx(5, 3, "200", "payable", "2025-02"),
    tx(6, 4, "80", "payable", "2025-01"),
    tx(7, 5, "1000", "payable", "2025-01"),
]


def make_snapshot(transactions=None, **kwargs) -> LedgerSnapshot:
    return LedgerSnapshot(
        transactions=BASE_TRANSACTIONS if transactions is None else transactions,
        categories=CATEGORIES,
        **kwargs,
    )


def test_corporate_profit_and_loss_lines() -> None:
    pl = build_profit_and_loss(make_snapshot())

    assert pl.months == (month("2025-01"), month("2025-02"))

    assert pl.value("revenue_total", "2025-01") == Decimal("1000.00")
    assert pl.value("cogs_total", "2025-01") == Decimal("300.00")
    assert pl.value("gross_profit", "2025-01") == Decimal("700.00")
    assert pl.value("gross_margin_pct", "2025-01") == Decimal("70.00")
    assert pl.value("operating_expenses", "2025-01") == Decimal("200.00")
    assert pl.value("nibt", "2025-01") == Decimal("500.00")
    assert pl.value("income_tax", "2025-01") == Decimal("105.00")
    assert pl.value("niat", "2025-01") == Decimal("395.00")

    assert pl.value("gross_margin_pct", "2025-02") == Decimal("100.00")
    assert pl.value("income_tax", "2025-02") == Decimal("63.00")
    assert pl.value("cumulative_net_income", "2025-02") == Decimal("632.00")

    assert pl.total("revenue_total") == Decimal("1500.00")
    assert pl.total("gross_margin_pct") == Decimal("80.00")
    assert pl.total("income_tax") == Decimal("168.00")
    assert pl.total("niat") == Decimal("632.00")
    assert pl.total("cumulative_net_income") is None
    assert pl.tax_editable


def test_sections_exclude_sales_tax_and_suppressed_categories() -> None:
    pl = build_profit_and_loss(make_snapshot())

    assert [r.key for r in pl.section("revenue")] == ["category:1"]
    assert [r.key for r in pl.section("cogs")] == ["category:2"]
    assert [r.key for r in pl.section("opex")] == ["category:3", "category:6"]
    with pytest.raises(KeyError):
        pl.row("category:4")


def test_net_income_identity_holds_every_month_and_in_total() -> None:
    snapshot = make_snapshot(
        pl_overrides={(TAX_OVERRIDE_CATEGORY_ID, "2025-02"): "12.34"},
        fixed_assets=[
            FixedAsset(
                id=1,
                name="Van",
                purchase_cost="1200",
                useful_life_months=12,
                purchase_date=date(2025, 1, 1),
            )
        ],
    )
    pl = build_profit_and_loss(snapshot)

    for m in pl.months:
        assert pl.value("niat", m) == pl.value("nibt", m) - pl.value("income_tax", m)
    assert pl.total("niat") == pl.total("nibt") - pl.total("income_tax")


def test_gross_margin_not_applicable_without_revenue() -> None:
    snapshot = make_snapshot([tx(1, 3, "100", "payable", "2025-03")])
    pl = build_profit_and_loss(snapshot)

    assert pl.value("gross_margin_pct", "2025-03") is None
    assert pl.total("gross_margin_pct") is None
    assert pl.value("nibt", "2025-03") == Decimal("-100.00")
    # No tax on a loss.
    assert pl.value("income_tax", "2025-03") == Decimal("0.00")

    frame = pl.to_frame()
    margin = frame[(frame["key"] == "gross_margin_pct") & (frame["period_label"] == "2025-03")]
    assert margin["amount"].isna().all()


def test_tax_override_replaces_computed_tax() -> None:
    snapshot = make_snapshot(pl_overrides={(TAX_OVERRIDE_CATEGORY_ID, "2025-01"): "50"})
    pl = build_profit_and_loss(snapshot)

    tax_row = pl.row("income_tax")
    assert tax_row.cells[month("2025-01")].is_override
    assert pl.value("income_tax", "2025-01") == Decimal("50.00")
    assert pl.value("niat", "2025-01") == Decimal("450.00")


def test_passthrough_mode_has_no_tax() -> None:
    snapshot = make_snapshot(
        tax_mode="passthrough",
        pl_overrides={(TAX_OVERRIDE_CATEGORY_ID, "2025-01"): "50"},
    )
    pl = build_profit_and_loss(snapshot)

    assert not pl.tax_editable
    assert pl.total("income_tax") == Decimal("0")
    assert pl.total("niat") == pl.total("nibt") == Decimal("800.00")


def test_fixed_asset_depreciation_and_loan_interest_rows() -> None:
    snapshot = make_snapshot(
        fixed_assets=[
            FixedAsset(
                id=1,
                name="Van",
                purchase_cost="1200",
                useful_life_months=12,
                purchase_date=date(2025, 1, 1),
            )
        ],
        loans=[
            Loan(
                id=1,
                name="Bank loan",
                principal="10000",
                annual_rate="12",
                term_months=12,
                start_date=date(2025, 1, 1),
            )
        ],
    )
    pl = build_profit_and_loss(snapshot, months=["2025-02", "2025-01"])

    assert pl.months == (month("2025-01"), month("2025-02"))
    assert pl.value("fixed_asset_depreciation", "2025-01") == Decimal("100.00")
    assert pl.value("loan_interest", "2025-01") == Decimal("0")
    assert pl.value("loan_interest", "2025-02") == Decimal("100.00")
    assert pl.value("operating_expenses", "2025-01") == Decimal("300.00")
    assert pl.value("operating_expenses", "2025-02") == Decimal("400.00")

    # Default months follow the loan schedule and the depreciation schedule.
    default = build_profit_and_loss(snapshot)
    assert default.months[-1] == month("2026-01")


def test_computed_rows_absent_without_assets_or_loans() -> None:
    pl = build_profit_and_loss(make_snapshot())

    keys = [r.key for r in pl.rows]
    assert "fixed_asset_depreciation" not in keys
    assert "loan_interest" not in keys


def test_overrides_and_projection_flow_into_totals() -> None:
    snapshot = make_snapshot(pl_overrides={(3, "2025-01"): "250", (6, "2025-01"): "40"})
    pl = build_profit_and_loss(
        snapshot, current_month="2025-01", months=["2025-01", "2025-02", "2025-03"]
    )

    assert pl.value("category:3", "2025-01") == Decimal("250.00")
    assert pl.value("category:6", "2025-01") == Decimal("40.00")
    assert pl.value("operating_expenses", "2025-01") == Decimal("290.00")

    # February COGS is zero and after the current month: projected from January.
    cogs_feb = pl.row("category:2").cells[month("2025-02")]
    assert cogs_feb.is_projected
    assert cogs_feb.value == Decimal("300.00")

    # February rent has a real value and is kept; March is projected from the
    # computed January history (the override does not feed the run-rate).
    assert pl.value("category:3", "2025-02") == Decimal("200.00")
    assert pl.value("category:3", "2025-03") == Decimal("200.00")
    assert pl.row("category:3").cells[month("2025-03")].is_projected

    assert pl.value("revenue_total", "2025-03") == Decimal("1000.00")
    assert pl.total("category:3") == Decimal("650.00")


def test_cumulative_net_income_lookup() -> None:
    pl = build_profit_and_loss(make_snapshot())

    assert pl.cumulative_net_income("2024-12") == Decimal("0")
    assert pl.cumulative_net_income("2025-01") == Decimal("395.00")
    assert pl.cumulative_net_income("2025-06") == Decimal("632.00")


def test_to_frame_layout() -> None:
    frame = build_profit_and_loss(make_snapshot()).to_frame()

    assert list(frame.columns) == FRAME_COLUMNS
    totals = frame[frame["period_label"] == TOTAL_LABEL]
    assert "cumulative_net_income" not in set(totals["key"])
    niat_total = totals.loc[totals["key"] == "niat", "amount"].iloc[0]
    assert niat_total == pytest.approx(632.0)


def test_override_months_are_displayed_by_default() -> None:
    snapshot = make_snapshot(
        pl_overrides={
            (6, "2025-04"): "40",
            (TAX_OVERRIDE_CATEGORY_ID, "2025-05"): "12",
            (4, "2025-06"): "1",
            (99, "2025-07"): "1",
        }
    )

    pl = build_profit_and_loss(snapshot)

    # Sales tax and unknown categories have no P&L row: their months stay out.
    assert pl.months == (
        month("2025-01"),
        month("2025-02"),
        month("2025-04"),
        month("2025-05"),
    )
    assert default_months(snapshot) == pl.months
    assert pl.value("category:6", "2025-04") == Decimal("40.00")
    assert pl.value("operating_expenses", "2025-04") == Decimal("40.00")
    assert pl.value("income_tax", "2025-05") == Decimal("12.00")
    assert pl.value("niat", "2025-05") == Decimal("-12.00")


def test_tax_override_month_ignored_in_passthrough_mode() -> None:
    snapshot = make_snapshot(
        tax_mode="passthrough",
        pl_overrides={(TAX_OVERRIDE_CATEGORY_ID, "2025-05"): "12"},
    )

    assert build_profit_and_loss(snapshot).months == (month("2025-01"), month("2025-02"))
