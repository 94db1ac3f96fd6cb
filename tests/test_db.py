from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from smb_ledger.db import (
    DatabaseConfig,
    delete_transaction,
    get_transaction_by_id,
    init_database,
    insert_category,
    insert_fixed_asset,
    insert_folder,
    insert_loan,
    insert_transaction,
    latest_version,
    list_versions,
    load_snapshot,
    push_version,
    set_cashflow_override,
    set_equity_config,
    set_loan_payment_override,
    set_pl_override,
    set_tax_mode,
    toggle_skipped_payment,
    update_transaction_status,
)
from smb_ledger.errors import InvalidRecord, VersionConflict
from smb_ledger.records import (
    TAX_OVERRIDE_CATEGORY_ID,
    Category,
    EquityConfig,
    FixedAsset,
    Folder,
    Loan,
    Transaction,
)


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "db" / "test_db.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


def add_sales_category(cfg: DatabaseConfig) -> Category:
    folder = insert_folder(cfg, Folder(id=0, name="Income", folder_type="receivable"))
    return insert_category(
        cfg,
        Category(id=0, name="Sales", folder_id=folder.id, cashflow_sort_order=2),
    )


def add_sale(cfg: DatabaseConfig, category_id: int, amount: str = "1080") -> Transaction:
    return insert_transaction(
        cfg,
        Transaction(
            id=0,
            entry_date=date(2025, 1, 5),
            category_id=category_id,
            amount=amount,
            transaction_type="receivable",
            pretax_amount="1000",
            month_due="2025-01",
            notes="Invoice #1",
        ),
    )


def test_init_database_creates_file_and_schema(tmp_path):
    """init_database should create the SQLite file (and its directory)."""
    cfg = make_tmp_db_cfg(tmp_path)

    assert not cfg.path.exists()
    init_database(cfg)
    init_database(cfg)  # idempotent
    assert cfg.path.exists()

    snapshot = load_snapshot(cfg)
    assert snapshot.transactions == ()
    assert snapshot.tax_mode == "corporate"


def test_unsupported_engine_is_rejected(tmp_path):
    cfg = DatabaseConfig(engine="postgres", path=tmp_path / "x.sqlite")

    with pytest.raises(ValueError, match="Unsupported database engine"):
        init_database(cfg)


def test_insert_and_load_snapshot_round_trip(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    category = add_sales_category(cfg)
    sale = add_sale(cfg, category.id)

    asset = insert_fixed_asset(
        cfg,
        FixedAsset(
            id=0,
            name="Van",
            purchase_cost="24000",
            useful_life_months=60,
            purchase_date=date(2025, 2, 1),
            salvage_value="4000",
            depreciation_method="double_declining",
        ),
    )
    loan = insert_loan(
        cfg,
        Loan(
            id=0,
            name="Bank loan",
            principal="10000",
            annual_rate="6.25",
            term_months=24,
            start_date=date(2025, 1, 1),
        ),
    )

    snapshot = load_snapshot(cfg)

    assert sale.id == 1
    assert snapshot.transactions[0] == sale
    assert sale.amount == Decimal("1080.00")
    assert sale.pretax_amount == Decimal("1000.00")
    assert sale.month_due == pd.Period("2025-01", freq="M")

    assert snapshot.categories[0].name == "Sales"
    assert snapshot.categories[0].folder_id == snapshot.folders[0].id
    assert snapshot.fixed_assets == (asset,)
    assert snapshot.loans[0].annual_rate == Decimal("6.25")
    assert snapshot.loans[0].id == loan.id


def test_update_transaction_status_settle_and_reopen(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    category = add_sales_category(cfg)
    sale = add_sale(cfg, category.id)

    received = update_transaction_status(
        cfg, sale.id, "received", month_paid="2025-02", date_processed=date(2025, 2, 3)
    )
    assert received.month_paid == pd.Period("2025-02", freq="M")
    assert get_transaction_by_id(cfg, sale.id) == received

    reopened = update_transaction_status(cfg, sale.id, "pending")
    assert reopened.month_paid is None
    assert reopened.date_processed is None

    with pytest.raises(InvalidRecord):
        update_transaction_status(cfg, sale.id, "received")  # no month paid
    with pytest.raises(InvalidRecord):
        update_transaction_status(cfg, sale.id, "paid", month_paid="2025-02")
    with pytest.raises(KeyError):
        update_transaction_status(cfg, 999, "pending")


def test_delete_transaction(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    category = add_sales_category(cfg)
    sale = add_sale(cfg, category.id)

    delete_transaction(cfg, sale.id)

    assert get_transaction_by_id(cfg, sale.id) is None
    with pytest.raises(KeyError):
        delete_transaction(cfg, sale.id)


def test_overrides_are_stored_and_removed(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    category = add_sales_category(cfg)

    set_pl_override(cfg, category.id, "2025-03", "150.5")
    set_pl_override(cfg, TAX_OVERRIDE_CATEGORY_ID, "2025-03", "20")
    set_cashflow_override(cfg, category.id, "2025-04", "99")
    set_cashflow_override(cfg, category.id, "2025-04", "100")  # replaces

    snapshot = load_snapshot(cfg)
    march = pd.Period("2025-03", freq="M")
    assert snapshot.pl_overrides == {
        (category.id, march): Decimal("150.50"),
        (TAX_OVERRIDE_CATEGORY_ID, march): Decimal("20.00"),
    }
    assert snapshot.cashflow_overrides == {
        (category.id, pd.Period("2025-04", freq="M")): Decimal("100.00")
    }

    set_pl_override(cfg, category.id, "2025-03", None)
    assert (category.id, march) not in load_snapshot(cfg).pl_overrides


def test_skipped_payments_and_payment_overrides(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    loan = insert_loan(
        cfg,
        Loan(
            id=0,
            name="Bank loan",
            principal="10000",
            annual_rate="12",
            term_months=12,
            start_date=date(2025, 1, 1),
        ),
    )

    assert toggle_skipped_payment(cfg, loan.id, 3) is True
    set_loan_payment_override(cfg, loan.id, 5, "1500")

    snapshot = load_snapshot(cfg)
    assert snapshot.skipped_for(loan.id) == frozenset({3})
    assert snapshot.payment_overrides_for(loan.id) == {5: Decimal("1500.00")}

    assert toggle_skipped_payment(cfg, loan.id, 3) is False
    set_loan_payment_override(cfg, loan.id, 5, None)
    snapshot = load_snapshot(cfg)
    assert snapshot.skipped_for(loan.id) == frozenset()
    assert snapshot.payment_overrides_for(loan.id) == {}

    with pytest.raises(InvalidRecord):
        toggle_skipped_payment(cfg, loan.id, 0)


def test_equity_and_tax_mode(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    equity = EquityConfig(
        common_stock_par="0.001",
        common_stock_shares=10_000_000,
        apic="25000",
        seed_received_date=date(2025, 1, 2),
    )

    set_equity_config(cfg, equity)
    set_tax_mode(cfg, "passthrough")

    snapshot = load_snapshot(cfg)
    assert snapshot.equity == equity
    assert snapshot.equity.common_stock == Decimal("10000.00")
    assert snapshot.tax_mode == "passthrough"
    assert load_snapshot(cfg, tax_mode="corporate").tax_mode == "corporate"

    with pytest.raises(InvalidRecord):
        set_tax_mode(cfg, "llc")


def test_push_version_detects_conflicts(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)

    assert latest_version(cfg) == 0
    assert push_version(cfg, 0, "alice") == 1

    # A second writer still based on version 0 must reload first.
    with pytest.raises(VersionConflict) as excinfo:
        push_version(cfg, 0, "bob")
    assert excinfo.value.base_version == 0
    assert excinfo.value.current_version == 1

    assert push_version(cfg, 1, "bob") == 2

    versions = list_versions(cfg)
    assert list(versions.columns) == ["version", "saved_by", "saved_at"]
    assert list(versions["version"]) == [2, 1]
    assert list(versions["saved_by"]) == ["bob", "alice"]
