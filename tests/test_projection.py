from decimal import Decimal

import pandas as pd

from smb_ledger.projection import is_future, resolve, resolve_cell, run_rate


def month(value: str) -> pd.Period:
    return pd.Period(value, freq="M")


HISTORY = {
    month("2025-01"): Decimal("100.00"),
    month("2025-02"): Decimal("0"),
    month("2025-03"): Decimal("200.00"),
    month("2025-05"): Decimal("999.00"),
}


def test_override_always_wins() -> None:
    overrides = {(1, month("2025-02")): Decimal("42.00"), (1, month("2025-06")): Decimal("7.00")}

    past = resolve_cell(1, month("2025-02"), Decimal("10"), HISTORY, month("2025-03"), overrides)
    future = resolve_cell(1, month("2025-06"), Decimal("0"), HISTORY, month("2025-03"), overrides)

    assert past.value == Decimal("42.00")
    assert past.is_override
    assert future.value == Decimal("7.00")
    assert future.source == "override"


def test_future_zero_baseline_is_projected_from_past_non_zero_months() -> None:
    cell = resolve_cell(1, month("2025-06"), Decimal("0"), HISTORY, month("2025-03"), {})

    # (100 + 200) / 2; February (zero) and May (after current) are ignored.
    assert cell.value == Decimal("150.00")
    assert cell.is_projected


def test_future_non_zero_baseline_is_kept() -> None:
    value = resolve(1, month("2025-05"), Decimal("999.00"), HISTORY, month("2025-03"), {})

    assert value == Decimal("999.00")


def test_past_zero_stays_zero() -> None:
    cell = resolve_cell(1, month("2025-02"), Decimal("0"), HISTORY, month("2025-03"), {})

    assert cell.value == Decimal("0")
    assert cell.source == "computed"


def test_no_current_month_disables_projection() -> None:
    assert not is_future(month("2030-01"), None)
    assert resolve(1, month("2030-01"), Decimal("0"), HISTORY, None, {}) == Decimal("0")


def test_run_rate_rounds_to_cents() -> None:
    history = {
        month("2025-01"): Decimal("100"),
        month("2025-02"): Decimal("100"),
        month("2025-03"): Decimal("101"),
    }

    assert run_rate(history, month("2025-03")) == Decimal("100.33")
    assert run_rate({}, month("2025-03")) == Decimal("0")
