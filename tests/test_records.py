from decimal import Decimal

import pandas as pd
import pytest

from smb_ledger.errors import InvalidRecord
from smb_ledger.records import Category, LedgerSnapshot


def make_snapshot() -> LedgerSnapshot:
    return LedgerSnapshot(
        categories=[Category(id=1, name="Sales")],
        pl_overrides={(1, "2025-01"): "10"},
        cashflow_overrides={(1, "2025-02"): 20},
        loan_payment_overrides={(3, 1): "99.999"},
    )


def test_snapshot_is_hashable_by_identity() -> None:
    first = make_snapshot()
    second = make_snapshot()

    cache = {first: "cached"}

    assert hash(first) == hash(first)
    assert cache[first] == "cached"
    assert second not in cache


def test_snapshot_override_maps_are_read_only() -> None:
    snapshot = make_snapshot()
    jan = pd.Period("2025-01", freq="M")

    with pytest.raises(TypeError):
        snapshot.pl_overrides[(1, jan)] = Decimal("1")
    with pytest.raises(TypeError):
        snapshot.cashflow_overrides.clear()
    with pytest.raises(TypeError):
        snapshot.loan_payment_overrides[(3, 2)] = Decimal("1")

    assert snapshot.pl_overrides == {(1, jan): Decimal("10.00")}
    assert snapshot.loan_payment_overrides == {(3, 1): Decimal("100.00")}


def test_snapshot_does_not_alias_caller_dicts() -> None:
    overrides = {(1, "2025-01"): "10"}
    snapshot = LedgerSnapshot(pl_overrides=overrides)

    overrides[(1, "2025-02")] = "5"

    assert len(snapshot.pl_overrides) == 1


def test_snapshot_rejects_unknown_tax_mode() -> None:
    with pytest.raises(InvalidRecord):
        LedgerSnapshot(tax_mode="sole-trader")
