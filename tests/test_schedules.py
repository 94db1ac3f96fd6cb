from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from smb_ledger.errors import InvalidLoanParameters
from smb_ledger.records import FixedAsset, LedgerSnapshot, Loan, SkippedPayment
from smb_ledger.schedules import (
    accumulated_depreciation,
    amortization_schedule,
    balance_as_of,
    collected_interest,
    depreciation_by_month,
    depreciation_schedule,
    interest_by_month,
    level_payment,
    loan_schedule,
    periodic_rate,
    total_interest,
    total_paid,
)


def month(value: str) -> pd.Period:
    return pd.Period(value, freq="M")


def make_asset(**overrides) -> FixedAsset:
    values = {
        "id": 1,
        "name": "Laptop",
        "purchase_cost": "12000",
        "useful_life_months": 12,
        "purchase_date": date(2025, 1, 15),
    }
    values.update(overrides)
    return FixedAsset(**values)


def make_loan(**overrides) -> Loan:
    values = {
        "id": 1,
        "name": "Bank loan",
        "principal": "10000",
        "annual_rate": "12",
        "term_months": 12,
        "start_date": date(2025, 1, 1),
    }
    values.update(overrides)
    return Loan(**values)


# ---------------------------------------------------------------------------
# Depreciation
# ---------------------------------------------------------------------------


def test_straight_line_even_split() -> None:
    """12000 over 12 months with no salvage: 1000.00 every month."""
    schedule = depreciation_schedule(make_asset())

    assert list(schedule) == [month("2025-01") + i for i in range(12)]
    assert set(schedule.values()) == {Decimal("1000.00")}
    assert accumulated_depreciation(make_asset(), month("2026-06")) == Decimal("12000.00")
    assert accumulated_depreciation(make_asset(), month("2024-12")) == Decimal("0")


def test_straight_line_final_month_absorbs_remainder() -> None:
    schedule = depreciation_schedule(
        make_asset(purchase_cost="1000", useful_life_months=3)
    )

    assert list(schedule.values()) == [
        Decimal("333.33"),
        Decimal("333.33"),
        Decimal("333.34"),
    ]


def test_straight_line_never_negative_when_rounding_up() -> None:
    """1.00 over 40 months rounds to 0.03/month, which would overshoot."""
    schedule = depreciation_schedule(
        make_asset(purchase_cost="1.00", useful_life_months=40)
    )

    assert len(schedule) == 40
    assert all(v >= 0 for v in schedule.values())
    assert sum(schedule.values()) == Decimal("1.00")


def test_straight_line_honours_salvage_and_start_date() -> None:
    asset = make_asset(
        purchase_cost="5000",
        salvage_value="500",
        useful_life_months=36,
        dep_start_date=date(2025, 4, 1),
    )
    schedule = depreciation_schedule(asset)

    assert next(iter(schedule)) == month("2025-04")
    assert len(schedule) == 36
    assert sum(schedule.values()) == Decimal("4500.00")


@pytest.mark.parametrize(
    "overrides",
    [
        {"depreciation_method": "none"},
        {"is_depreciable": False},
        {"useful_life_months": 0},
        {"purchase_cost": "100", "salvage_value": "100"},
    ],
)
def test_depreciation_schedule_empty_cases(overrides) -> None:
    assert depreciation_schedule(make_asset(**overrides)) == {}


def test_double_declining_stays_above_salvage() -> None:
    asset = make_asset(
        purchase_cost="10000",
        salvage_value="1000",
        useful_life_months=12,
        depreciation_method="double_declining",
    )
    schedule = depreciation_schedule(asset)

    assert len(schedule) <= 12
    # First month: 10000 x 2/12
    assert schedule[month("2025-01")] == Decimal("1666.67")

    book_value = asset.purchase_cost
    for amount in schedule.values():
        assert amount > 0
        book_value -= amount
        assert book_value >= asset.salvage_value

    amounts = list(schedule.values())
    assert amounts == sorted(amounts, reverse=True)


def test_depreciation_by_month_sums_assets() -> None:
    assets = [
        make_asset(id=1, purchase_cost="1200"),
        make_asset(id=2, purchase_cost="600", purchase_date=date(2025, 6, 1)),
    ]
    totals = depreciation_by_month(assets, through=month("2025-07"))

    assert totals[month("2025-05")] == Decimal("100.00")
    assert totals[month("2025-06")] == Decimal("150.00")
    assert max(totals) == month("2025-07")


# ---------------------------------------------------------------------------
# Amortization
# ---------------------------------------------------------------------------


def test_level_payment_example() -> None:
    """10000 at 12% over 12 monthly payments."""
    rate = periodic_rate("12", 12)

    assert rate == Decimal("0.01")
    assert level_payment("10000", rate, 12) == Decimal("888.49")


def test_amortization_schedule_first_row_and_payoff() -> None:
    schedule = amortization_schedule("10000", "12", 12, 12, date(2025, 1, 1))

    first = schedule[0]
    assert first.number == 1
    assert first.month == month("2025-02")
    assert first.payment == Decimal("888.49")
    assert first.interest == Decimal("100.00")
    assert first.principal == Decimal("788.49")
    assert first.ending_balance == Decimal("9211.51")

    assert len(schedule) == 12
    assert schedule[-1].month == month("2026-01")
    assert schedule[-1].ending_balance == Decimal("0.00")
    assert sum(p.principal for p in schedule) == Decimal("10000.00")


def test_zero_rate_loan_has_no_interest() -> None:
    schedule = amortization_schedule("1200", "0", 12, 12, date(2025, 1, 1))

    assert {p.payment for p in schedule} == {Decimal("100.00")}
    assert total_interest(schedule) == Decimal("0")
    assert schedule[-1].ending_balance == Decimal("0.00")


def test_quarterly_payments_fall_every_three_months() -> None:
    schedule = amortization_schedule("4000", "8", 12, 4, date(2025, 1, 10))

    assert [str(p.month) for p in schedule] == ["2025-04", "2025-07", "2025-10", "2026-01"]
    assert schedule[0].interest == Decimal("80.00")
    assert schedule[-1].ending_balance == Decimal("0.00")


def test_skipped_payment_extends_schedule_and_costs_interest() -> None:
    base = amortization_schedule("10000", "12", 12, 12, date(2025, 1, 1))
    skipped = amortization_schedule(
        "10000", "12", 12, 12, date(2025, 1, 1), skipped=[3]
    )

    assert len(skipped) == 13
    row = skipped[2]
    assert row.skipped is True
    assert row.payment == Decimal("0")
    assert row.principal == Decimal("0")
    assert row.ending_balance == skipped[1].ending_balance

    assert skipped[-1].ending_balance == Decimal("0.00")
    assert sum(p.principal for p in skipped) == Decimal("10000.00")
    assert total_interest(skipped) > total_interest(base)
    # Interest of the skipped period is reported but never collected.
    assert collected_interest(skipped) == total_interest(skipped) - row.interest


def test_payment_override_reduces_balance_faster() -> None:
    schedule = amortization_schedule(
        "10000", "12", 12, 12, date(2025, 1, 1), payment_overrides={1: "2000"}
    )

    assert schedule[0].payment == Decimal("2000.00")
    assert schedule[0].principal == Decimal("1900.00")
    assert schedule[0].ending_balance == Decimal("8100.00")
    assert schedule[-1].ending_balance == Decimal("0.00")
    assert total_paid(schedule) == Decimal("10000.00") + total_interest(schedule)


@pytest.mark.parametrize(
    "rate, term, per_year",
    [("-1", 12, 12), ("5", 0, 12), ("5", 12, 0), ("5", 12, 5), ("5", 5, 4)],
)
def test_invalid_loan_parameters(rate, term, per_year) -> None:
    with pytest.raises(InvalidLoanParameters):
        amortization_schedule("1000", rate, term, per_year, date(2025, 1, 1))


def test_balance_as_of_follows_schedule() -> None:
    loan = make_loan()
    schedule = loan_schedule(loan)

    assert balance_as_of(loan, schedule, month("2024-12")) == Decimal("0")
    assert balance_as_of(loan, schedule, month("2025-01")) == Decimal("10000.00")
    assert balance_as_of(loan, schedule, month("2025-02")) == Decimal("9211.51")
    assert balance_as_of(loan, schedule, month("2027-01")) == Decimal("0.00")


def test_loan_schedule_and_interest_use_snapshot_skips() -> None:
    loan = make_loan()
    snapshot = LedgerSnapshot(
        loans=[loan],
        skipped_payments=[SkippedPayment(loan_id=1, payment_number=1)],
    )

    schedule = loan_schedule(loan, snapshot)
    assert schedule[0].skipped is True

    interest = interest_by_month(snapshot)
    assert month("2025-02") not in interest
    assert interest[month("2025-03")] == Decimal("100.00")
    assert interest_by_month(snapshot, through=month("2025-03")) == {
        month("2025-03"): Decimal("100.00")
    }
