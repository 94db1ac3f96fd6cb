# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for SMB Ledger.

This module stores every ledger record in a SQLite database and turns the
stored rows back into an immutable :class:`LedgerSnapshot` for the engine.
It is responsible for:

- Initializing the database schema.
- Inserting folders, categories, transactions, fixed assets and loans.
- Updating transaction status (settling a receivable or payable).
- Storing P&L and Cash Flow overrides, skipped loan payments and loan
  payment overrides.
- Storing the equity configuration and the tax mode.
- Loading one consistent snapshot of all of the above.
- Recording saved versions with optimistic locking.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

Amounts are stored as signed integers in cents (``*_cents`` columns); rates
and par values, which may carry more than two decimals, are stored as text.
Months are stored as 'YYYY-MM' text and dates as ISO 'YYYY-MM-DD' text.

1) category_folders        id, name, folder_type, sort_order
2) categories              id, name, folder_id, is_monthly,
                           default_amount_cents, default_type,
                           cashflow_sort_order, show_on_pl, is_cogs,
                           is_depreciation, is_sales_tax
3) transactions            id, entry_date, category_id, item_description,
                           amount_cents, pretax_amount_cents,
                           transaction_type, status, date_processed,
                           month_due, month_paid, payment_for_month, notes
4) pl_overrides            (category_id, month) -> amount_cents
5) cashflow_overrides      (category_id, month) -> amount_cents
6) fixed_assets            id, name, purchase_cost_cents,
                           useful_life_months, purchase_date,
                           salvage_value_cents, depreciation_method,
                           dep_start_date, is_depreciable, notes
7) loans                   id, name, principal_cents, annual_rate,
                           term_months, payments_per_year, start_date, notes
8) loan_skipped_payments   (loan_id, payment_number)
9) loan_payment_overrides  (loan_id, payment_number) -> amount_cents
10) app_meta               key -> value ('equity_config' as JSON,
                           'tax_mode')
11) versions               version, saved_by, saved_at

------------------------------------------------------------------------------
Versioning
------------------------------------------------------------------------------

``push_version(cfg, base_version, saved_by)`` records a new version only if
``base_version`` is still the latest stored version; otherwise it raises
:class:`VersionConflict`. The check and the insert run in one immediate
transaction so two writers cannot both succeed from the same base.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd

from .errors import InvalidRecord, VersionConflict
from .money import Number, from_cents_int, to_cents_int
from .months import MonthLike, parse_month
from .records import (
    TAX_MODES,
    Category,
    EquityConfig,
    FixedAsset,
    Folder,
    LedgerSnapshot,
    Loan,
    SkippedPayment,
    Transaction,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for SMB Ledger.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection with foreign keys enabled.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    conn = sqlite3.connect(cfg.path)
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create tables and indexes if they do not exist yet.

    This function is idempotent and can be called multiple times safely.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS category_folders (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            name        TEXT    NOT NULL UNIQUE,
            folder_type TEXT    NOT NULL DEFAULT 'payable',
            sort_order  INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS categories (
            id                   INTEGER PRIMARY KEY AUTOINCREMENT,
            name                 TEXT    NOT NULL UNIQUE,
            folder_id            INTEGER,
            is_monthly           INTEGER NOT NULL DEFAULT 0,
            default_amount_cents INTEGER,
            default_type         TEXT,
            cashflow_sort_order  INTEGER NOT NULL DEFAULT 0,
            show_on_pl           INTEGER NOT NULL DEFAULT 0,
            is_cogs              INTEGER NOT NULL DEFAULT 0,
            is_depreciation      INTEGER NOT NULL DEFAULT 0,
            is_sales_tax         INTEGER NOT NULL DEFAULT 0,

            FOREIGN KEY (folder_id) REFERENCES category_folders(id)
        );

        CREATE TABLE IF NOT EXISTS transactions (
            id                  INTEGER PRIMARY KEY AUTOINCREMENT,
            entry_date          TEXT    NOT NULL,  -- ISO date 'YYYY-MM-DD'
            category_id         INTEGER NOT NULL,
            item_description    TEXT,
            amount_cents        INTEGER NOT NULL,
            pretax_amount_cents INTEGER,
            transaction_type    TEXT    NOT NULL,
            status              TEXT    NOT NULL DEFAULT 'pending',
            date_processed      TEXT,
            month_due           TEXT,              -- 'YYYY-MM'
            month_paid          TEXT,
            payment_for_month   TEXT,
            notes               TEXT,
            updated_at          TEXT,

            FOREIGN KEY (category_id) REFERENCES categories(id)
        );

        CREATE TABLE IF NOT EXISTS pl_overrides (
            category_id  INTEGER NOT NULL,
            month        TEXT    NOT NULL,
            amount_cents INTEGER NOT NULL,
            PRIMARY KEY (category_id, month)
        );

        CREATE TABLE IF NOT EXISTS cashflow_overrides (
            category_id  INTEGER NOT NULL,
            month        TEXT    NOT NULL,
            amount_cents INTEGER NOT NULL,
            PRIMARY KEY (category_id, month)
        );

        CREATE TABLE IF NOT EXISTS fixed_assets (
            id                  INTEGER PRIMARY KEY AUTOINCREMENT,
            name                TEXT    NOT NULL,
            purchase_cost_cents INTEGER NOT NULL,
            useful_life_months  INTEGER NOT NULL,
            purchase_date       TEXT    NOT NULL,
            salvage_value_cents INTEGER NOT NULL DEFAULT 0,
            depreciation_method TEXT    NOT NULL DEFAULT 'straight_line',
            dep_start_date      TEXT,
            is_depreciable      INTEGER NOT NULL DEFAULT 1,
            notes               TEXT
        );

        CREATE TABLE IF NOT EXISTS loans (
            id                INTEGER PRIMARY KEY AUTOINCREMENT,
            name              TEXT    NOT NULL,
            principal_cents   INTEGER NOT NULL,
            annual_rate       TEXT    NOT NULL,
            term_months       INTEGER NOT NULL,
            payments_per_year INTEGER NOT NULL DEFAULT 12,
            start_date        TEXT    NOT NULL,
            notes             TEXT
        );

        CREATE TABLE IF NOT EXISTS loan_skipped_payments (
            loan_id        INTEGER NOT NULL,
            payment_number INTEGER NOT NULL,
            PRIMARY KEY (loan_id, payment_number),
            FOREIGN KEY (loan_id) REFERENCES loans(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS loan_payment_overrides (
            loan_id        INTEGER NOT NULL,
            payment_number INTEGER NOT NULL,
            amount_cents   INTEGER NOT NULL,
            PRIMARY KEY (loan_id, payment_number),
            FOREIGN KEY (loan_id) REFERENCES loans(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS app_meta (
            key   TEXT PRIMARY KEY,
            value TEXT
        );

        CREATE TABLE IF NOT EXISTS versions (
            version  INTEGER PRIMARY KEY,
            saved_by TEXT    NOT NULL,
            saved_at TEXT    NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_transactions_month_due
            ON transactions(month_due);

        CREATE INDEX IF NOT EXISTS idx_transactions_month_paid
            ON transactions(month_paid);
        """
    )
    conn.commit()


def _to_iso_date(value) -> Optional[str]:
    """Convert a date-like value to ISO 'YYYY-MM-DD' string (None stays None)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(str(value)).isoformat()


def _from_iso_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)


def _month_text(value) -> Optional[str]:
    return None if value is None else str(value)


def _optional_cents(value) -> Optional[int]:
    return None if value is None else to_cents_int(value)


def _optional_amount(value: Optional[int]) -> Optional[Decimal]:
    return None if value is None else from_cents_int(value)


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _get_meta(conn: sqlite3.Connection, key: str) -> Optional[str]:
    row = conn.execute("SELECT value FROM app_meta WHERE key = ?;", (key,)).fetchone()
    return None if row is None else row[0]


def _set_meta(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO app_meta (key, value) VALUES (?, ?);", (key, value)
    )


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------

_TRANSACTION_COLUMNS = """
    id, entry_date, category_id, amount_cents, transaction_type, status,
    pretax_amount_cents, month_due, month_paid, date_processed,
    payment_for_month, notes, item_description
"""


def _row_to_transaction(row: tuple) -> Transaction:
    (
        tx_id,
        entry_date,
        category_id,
        amount_cents,
        transaction_type,
        status,
        pretax_cents,
        month_due,
        month_paid,
        date_processed,
        payment_for_month,
        notes,
        item_description,
    ) = row
    return Transaction(
        id=int(tx_id),
        entry_date=date.fromisoformat(entry_date),
        category_id=int(category_id),
        amount=from_cents_int(amount_cents),
        transaction_type=transaction_type,
        status=status,
        pretax_amount=_optional_amount(pretax_cents),
        month_due=month_due,
        month_paid=month_paid,
        date_processed=_from_iso_date(date_processed),
        payment_for_month=payment_for_month,
        notes=notes,
        item_description=item_description,
    )


def _row_to_category(row: tuple) -> Category:
    (
        cat_id,
        name,
        folder_id,
        is_monthly,
        default_cents,
        default_type,
        sort_order,
        show_on_pl,
        is_cogs,
        is_depreciation,
        is_sales_tax,
    ) = row
    return Category(
        id=int(cat_id),
        name=name,
        folder_id=folder_id,
        is_monthly=bool(is_monthly),
        default_amount=_optional_amount(default_cents),
        default_type=default_type,
        cashflow_sort_order=int(sort_order),
        show_on_pl=bool(show_on_pl),
        is_cogs=bool(is_cogs),
        is_depreciation=bool(is_depreciation),
        is_sales_tax=bool(is_sales_tax),
    )


def _row_to_fixed_asset(row: tuple) -> FixedAsset:
    (
        asset_id,
        name,
        cost_cents,
        life,
        purchase_date,
        salvage_cents,
        method,
        dep_start_date,
        is_depreciable,
        notes,
    ) = row
    return FixedAsset(
        id=int(asset_id),
        name=name,
        purchase_cost=from_cents_int(cost_cents),
        useful_life_months=int(life),
        purchase_date=date.fromisoformat(purchase_date),
        salvage_value=from_cents_int(salvage_cents),
        depreciation_method=method,
        dep_start_date=_from_iso_date(dep_start_date),
        is_depreciable=bool(is_depreciable),
        notes=notes,
    )


def _row_to_loan(row: tuple) -> Loan:
    loan_id, name, principal_cents, rate, term, ppy, start_date, notes = row
    return Loan(
        id=int(loan_id),
        name=name,
        principal=from_cents_int(principal_cents),
        annual_rate=Decimal(rate),
        term_months=int(term),
        start_date=date.fromisoformat(start_date),
        payments_per_year=int(ppy),
        notes=notes,
    )


def _equity_to_json(equity: EquityConfig) -> str:
    return json.dumps(
        {
            "common_stock_par": str(equity.common_stock_par),
            "common_stock_shares": equity.common_stock_shares,
            "apic_cents": to_cents_int(equity.apic),
            "seed_expected_date": _to_iso_date(equity.seed_expected_date),
            "seed_received_date": _to_iso_date(equity.seed_received_date),
            "apic_expected_date": _to_iso_date(equity.apic_expected_date),
            "apic_received_date": _to_iso_date(equity.apic_received_date),
        }
    )


def _equity_from_json(raw: Optional[str]) -> EquityConfig:
    if not raw:
        return EquityConfig()
    data = json.loads(raw)
    return EquityConfig(
        common_stock_par=Decimal(data.get("common_stock_par") or "0"),
        common_stock_shares=int(data.get("common_stock_shares") or 0),
        apic=from_cents_int(data.get("apic_cents") or 0),
        seed_expected_date=_from_iso_date(data.get("seed_expected_date")),
        seed_received_date=_from_iso_date(data.get("seed_received_date")),
        apic_expected_date=_from_iso_date(data.get("apic_expected_date")),
        apic_received_date=_from_iso_date(data.get("apic_received_date")),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file (and its parent directory) if it does not exist.
    - Creates all tables and indexes if they are missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def insert_folder(cfg: DatabaseConfig, folder: Folder) -> Folder:
    """Insert a folder and return it with its database id (``folder.id`` is ignored)."""
    init_database(cfg)
    conn = _connect(cfg)
    try:
        cur = conn.execute(
            """
            INSERT INTO category_folders (name, folder_type, sort_order)
            VALUES (?, ?, ?);
            """,
            (folder.name, folder.folder_type, folder.sort_order),
        )
        conn.commit()
        folder_id = cur.lastrowid
    finally:
        conn.close()
    return replace(folder, id=int(folder_id))


def insert_category(cfg: DatabaseConfig, category: Category) -> Category:
    """Insert a category and return it with its database id."""
    init_database(cfg)
    conn = _connect(cfg)
    try:
        cur = conn.execute(
            """
            INSERT INTO categories (
                name, folder_id, is_monthly, default_amount_cents, default_type,
                cashflow_sort_order, show_on_pl, is_cogs, is_depreciation,
                is_sales_tax
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                category.name,
                category.folder_id,
                int(category.is_monthly),
                _optional_cents(category.default_amount),
                category.default_type,
                category.cashflow_sort_order,
                int(category.show_on_pl),
                int(category.is_cogs),
                int(category.is_depreciation),
                int(category.is_sales_tax),
            ),
        )
        conn.commit()
        category_id = cur.lastrowid
    finally:
        conn.close()
    return replace(category, id=int(category_id))


def insert_transaction(cfg: DatabaseConfig, transaction: Transaction) -> Transaction:
    """
    Insert a transaction and return it as reloaded from the database.

    The record is validated at construction, so only valid transactions can
    reach the database. ``transaction.id`` is ignored.
    """
    init_database(cfg)
    conn = _connect(cfg)
    try:
        cur = conn.execute(
            """
            INSERT INTO transactions (
                entry_date, category_id, item_description, amount_cents,
                pretax_amount_cents, transaction_type, status, date_processed,
                month_due, month_paid, payment_for_month, notes, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, NULL);
            """,
            (
                _to_iso_date(transaction.entry_date),
                transaction.category_id,
                transaction.item_description,
                to_cents_int(transaction.amount),
                _optional_cents(transaction.pretax_amount),
                transaction.transaction_type,
                transaction.status,
                _to_iso_date(transaction.date_processed),
                _month_text(transaction.month_due),
                _month_text(transaction.month_paid),
                _month_text(transaction.payment_for_month),
                transaction.notes,
            ),
        )
        conn.commit()
        tx_id = cur.lastrowid
    finally:
        conn.close()

    result = get_transaction_by_id(cfg, int(tx_id))
    if result is None:
        msg = f"Transaction #{tx_id} was just inserted but could not be reloaded."
        raise RuntimeError(msg)
    return result


def get_transaction_by_id(cfg: DatabaseConfig, transaction_id: int) -> Transaction | None:
    """Load one transaction, or None if it does not exist."""
    init_database(cfg)
    conn = _connect(cfg)
    try:
        row = conn.execute(
            f"SELECT {_TRANSACTION_COLUMNS} FROM transactions WHERE id = ?;",
            (transaction_id,),
        ).fetchone()
    finally:
        conn.close()
    return None if row is None else _row_to_transaction(row)


def update_transaction_status(
    cfg: DatabaseConfig,
    transaction_id: int,
    status: str,
    *,
    month_paid: Optional[MonthLike] = None,
    date_processed: Optional[date] = None,
) -> Transaction:
    """
    Change the status of a transaction.

    Settling ('paid' / 'received') requires ``month_paid``; moving back to
    'pending' clears month_paid and date_processed.

    Raises
    ------
    KeyError
        If the transaction does not exist.
    InvalidRecord
        If the new status is not valid for the transaction.
    """
    current = get_transaction_by_id(cfg, transaction_id)
    if current is None:
        raise KeyError(f"Transaction #{transaction_id} not found.")

    if status == "pending":
        updated = replace(current, status="pending", month_paid=None, date_processed=None)
    else:
        updated = replace(
            current,
            status=status,
            month_paid=month_paid,
            date_processed=date_processed,
        )

    conn = _connect(cfg)
    try:
        conn.execute(
            """
            UPDATE transactions
               SET status = ?, month_paid = ?, date_processed = ?, updated_at = ?
             WHERE id = ?;
            """,
            (
                updated.status,
                _month_text(updated.month_paid),
                _to_iso_date(updated.date_processed),
                _now_utc_iso(),
                transaction_id,
            ),
        )
        conn.commit()
    finally:
        conn.close()

    logger.info("Transaction #%s set to %s", transaction_id, updated.status)
    return updated


def delete_transaction(cfg: DatabaseConfig, transaction_id: int) -> None:
    """Permanently delete a transaction. Missing ids raise KeyError."""
    init_database(cfg)
    conn = _connect(cfg)
    try:
        cur = conn.execute("DELETE FROM transactions WHERE id = ?;", (transaction_id,))
        conn.commit()
        deleted = cur.rowcount
    finally:
        conn.close()
    if deleted == 0:
        raise KeyError(f"Transaction #{transaction_id} not found.")


def insert_fixed_asset(cfg: DatabaseConfig, asset: FixedAsset) -> FixedAsset:
    """Insert a fixed asset and return it with its database id."""
    init_database(cfg)
    conn = _connect(cfg)
    try:
        cur = conn.execute(
            """
            INSERT INTO fixed_assets (
                name, purchase_cost_cents, useful_life_months, purchase_date,
                salvage_value_cents, depreciation_method, dep_start_date,
                is_depreciable, notes
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                asset.name,
                to_cents_int(asset.purchase_cost),
                asset.useful_life_months,
                _to_iso_date(asset.purchase_date),
                to_cents_int(asset.salvage_value),
                asset.depreciation_method,
                _to_iso_date(asset.dep_start_date),
                int(asset.is_depreciable),
                asset.notes,
            ),
        )
        conn.commit()
        asset_id = cur.lastrowid
    finally:
        conn.close()
    return replace(asset, id=int(asset_id))


def insert_loan(cfg: DatabaseConfig, loan: Loan) -> Loan:
    """Insert a loan and return it with its database id."""
    init_database(cfg)
    conn = _connect(cfg)
    try:
        cur = conn.execute(
            """
            INSERT INTO loans (
                name, principal_cents, annual_rate, term_months,
                payments_per_year, start_date, notes
            )
            VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            (
                loan.name,
                to_cents_int(loan.principal),
                str(loan.annual_rate),
                loan.term_months,
                loan.payments_per_year,
                _to_iso_date(loan.start_date),
                loan.notes,
            ),
        )
        conn.commit()
        loan_id = cur.lastrowid
    finally:
        conn.close()
    return replace(loan, id=int(loan_id))


def _set_override(
    cfg: DatabaseConfig,
    table: str,
    category_id: int,
    month: MonthLike,
    amount: Optional[Number],
) -> None:
    period = str(parse_month(month))
    init_database(cfg)
    conn = _connect(cfg)
    try:
        if amount is None:
            conn.execute(
                f"DELETE FROM {table} WHERE category_id = ? AND month = ?;",
                (int(category_id), period),
            )
        else:
            conn.execute(
                f"""
                INSERT OR REPLACE INTO {table} (category_id, month, amount_cents)
                VALUES (?, ?, ?);
                """,
                (int(category_id), period, to_cents_int(amount)),
            )
        conn.commit()
    finally:
        conn.close()


def set_pl_override(
    cfg: DatabaseConfig, category_id: int, month: MonthLike, amount: Optional[Number]
) -> None:
    """
    Store (or remove, when ``amount`` is None) a P&L override.

    Use ``TAX_OVERRIDE_CATEGORY_ID`` as category id to override the income
    tax of a month.
    """
    _set_override(cfg, "pl_overrides", category_id, month, amount)


def set_cashflow_override(
    cfg: DatabaseConfig, category_id: int, month: MonthLike, amount: Optional[Number]
) -> None:
    """Store (or remove, when ``amount`` is None) a Cash Flow override."""
    _set_override(cfg, "cashflow_overrides", category_id, month, amount)


def toggle_skipped_payment(cfg: DatabaseConfig, loan_id: int, payment_number: int) -> bool:
    """
    Mark a loan payment as skipped, or unmark it if it already was.

    Returns
    -------
    bool
        True if the payment is skipped after the call.
    """
    if payment_number < 1:
        raise InvalidRecord(f"Invalid payment number {payment_number}.")

    init_database(cfg)
    conn = _connect(cfg)
    try:
        key = (int(loan_id), int(payment_number))
        exists = conn.execute(
            """
            SELECT 1 FROM loan_skipped_payments
             WHERE loan_id = ? AND payment_number = ?;
            """,
            key,
        ).fetchone()
        if exists:
            conn.execute(
                """
                DELETE FROM loan_skipped_payments
                 WHERE loan_id = ? AND payment_number = ?;
                """,
                key,
            )
        else:
            conn.execute(
                """
                INSERT INTO loan_skipped_payments (loan_id, payment_number)
                VALUES (?, ?);
                """,
                key,
            )
        conn.commit()
    finally:
        conn.close()
    return not exists


def set_loan_payment_override(
    cfg: DatabaseConfig, loan_id: int, payment_number: int, amount: Optional[Number]
) -> None:
    """Store (or remove, when ``amount`` is None) the amount paid for one payment."""
    init_database(cfg)
    conn = _connect(cfg)
    try:
        if amount is None:
            conn.execute(
                """
                DELETE FROM loan_payment_overrides
                 WHERE loan_id = ? AND payment_number = ?;
                """,
                (int(loan_id), int(payment_number)),
            )
        else:
            conn.execute(
                """
                INSERT OR REPLACE INTO loan_payment_overrides
                    (loan_id, payment_number, amount_cents)
                VALUES (?, ?, ?);
                """,
                (int(loan_id), int(payment_number), to_cents_int(amount)),
            )
        conn.commit()
    finally:
        conn.close()


def set_equity_config(cfg: DatabaseConfig, equity: EquityConfig) -> None:
    init_database(cfg)
    conn = _connect(cfg)
    try:
        _set_meta(conn, "equity_config", _equity_to_json(equity))
        conn.commit()
    finally:
        conn.close()


def set_tax_mode(cfg: DatabaseConfig, tax_mode: str) -> None:
    if tax_mode not in TAX_MODES:
        raise InvalidRecord(
            f"Invalid tax mode {tax_mode!r}, expected one of {', '.join(TAX_MODES)}."
        )
    init_database(cfg)
    conn = _connect(cfg)
    try:
        _set_meta(conn, "tax_mode", tax_mode)
        conn.commit()
    finally:
        conn.close()


def load_snapshot(cfg: DatabaseConfig, tax_mode: Optional[str] = None) -> LedgerSnapshot:
    """
    Load every stored record into one immutable snapshot.

    All tables are read inside a single read transaction, so the snapshot is
    consistent even if another process writes concurrently.

    Parameters
    ----------
    cfg:
        Database configuration.
    tax_mode:
        Optional tax mode overriding the stored one (e.g. from the config
        file).
    """
    init_database(cfg)
    conn = _connect(cfg)
    try:
        conn.execute("BEGIN;")
        folders = tuple(
            Folder(id=int(r[0]), name=r[1], folder_type=r[2], sort_order=int(r[3]))
            for r in conn.execute(
                "SELECT id, name, folder_type, sort_order FROM category_folders ORDER BY id;"
            )
        )
        categories = tuple(
            _row_to_category(r)
            for r in conn.execute(
                """
                SELECT id, name, folder_id, is_monthly, default_amount_cents,
                       default_type, cashflow_sort_order, show_on_pl, is_cogs,
                       is_depreciation, is_sales_tax
                  FROM categories
                 ORDER BY id;
                """
            )
        )
        transactions = tuple(
            _row_to_transaction(r)
            for r in conn.execute(
                f"SELECT {_TRANSACTION_COLUMNS} FROM transactions ORDER BY id;"
            )
        )
        fixed_assets = tuple(
            _row_to_fixed_asset(r)
            for r in conn.execute(
                """
                SELECT id, name, purchase_cost_cents, useful_life_months,
                       purchase_date, salvage_value_cents, depreciation_method,
                       dep_start_date, is_depreciable, notes
                  FROM fixed_assets
                 ORDER BY id;
                """
            )
        )
        loans = tuple(
            _row_to_loan(r)
            for r in conn.execute(
                """
                SELECT id, name, principal_cents, annual_rate, term_months,
                       payments_per_year, start_date, notes
                  FROM loans
                 ORDER BY id;
                """
            )
        )
        skipped = tuple(
            SkippedPayment(loan_id=int(r[0]), payment_number=int(r[1]))
            for r in conn.execute(
                "SELECT loan_id, payment_number FROM loan_skipped_payments "
                "ORDER BY loan_id, payment_number;"
            )
        )
        payment_overrides = {
            (int(r[0]), int(r[1])): from_cents_int(r[2])
            for r in conn.execute(
                "SELECT loan_id, payment_number, amount_cents FROM loan_payment_overrides;"
            )
        }
        pl_overrides = {
            (int(r[0]), r[1]): from_cents_int(r[2])
            for r in conn.execute("SELECT category_id, month, amount_cents FROM pl_overrides;")
        }
        cashflow_overrides = {
            (int(r[0]), r[1]): from_cents_int(r[2])
            for r in conn.execute(
                "SELECT category_id, month, amount_cents FROM cashflow_overrides;"
            )
        }
        equity = _equity_from_json(_get_meta(conn, "equity_config"))
        stored_tax_mode = _get_meta(conn, "tax_mode") or "corporate"
        conn.rollback()
    finally:
        conn.close()

    snapshot = LedgerSnapshot(
        transactions=transactions,
        categories=categories,
        folders=folders,
        fixed_assets=fixed_assets,
        loans=loans,
        skipped_payments=skipped,
        loan_payment_overrides=payment_overrides,
        pl_overrides=pl_overrides,
        cashflow_overrides=cashflow_overrides,
        equity=equity,
        tax_mode=tax_mode or stored_tax_mode,
    )
    logger.debug(
        "Snapshot loaded from %s: %d transactions, %d categories, %d assets, %d loans",
        cfg.path,
        len(transactions),
        len(categories),
        len(fixed_assets),
        len(loans),
    )
    return snapshot


def latest_version(cfg: DatabaseConfig) -> int:
    """Latest saved version number (0 when nothing was saved yet)."""
    init_database(cfg)
    conn = _connect(cfg)
    try:
        row = conn.execute("SELECT COALESCE(MAX(version), 0) FROM versions;").fetchone()
    finally:
        conn.close()
    return int(row[0])


def push_version(cfg: DatabaseConfig, base_version: int, saved_by: str) -> int:
    """
    Record a new saved version on top of ``base_version``.

    Returns
    -------
    int
        The new version number (``base_version + 1``).

    Raises
    ------
    VersionConflict
        If another save happened since ``base_version`` was read.
    """
    init_database(cfg)
    conn = _connect(cfg)
    try:
        conn.execute("BEGIN IMMEDIATE;")
        row = conn.execute("SELECT COALESCE(MAX(version), 0) FROM versions;").fetchone()
        current = int(row[0])
        if current != base_version:
            conn.rollback()
            logger.warning(
                "Version conflict for %s: base %s, latest %s", saved_by, base_version, current
            )
            raise VersionConflict(base_version, current)

        new_version = current + 1
        conn.execute(
            "INSERT INTO versions (version, saved_by, saved_at) VALUES (?, ?, ?);",
            (new_version, saved_by, _now_utc_iso()),
        )
        conn.commit()
    finally:
        conn.close()
    return new_version


def list_versions(cfg: DatabaseConfig, limit: int = 20) -> pd.DataFrame:
    """
    Return the most recent saved versions as a DataFrame.

    Columns: version, saved_by, saved_at (newest first).
    """
    init_database(cfg)
    conn = _connect(cfg)
    try:
        df = pd.read_sql_query(
            """
            SELECT version, saved_by, saved_at
              FROM versions
             ORDER BY version DESC
             LIMIT ?;
            """,
            conn,
            params=(int(limit),),
        )
    finally:
        conn.close()
    return df
