# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB Ledger.

This module wires together the main building blocks of SMB Ledger:

- global configuration (database, reporting options, display options),
- the SQLite snapshot store,
- CSV import/export of transactions,
- statement builders (Profit & Loss, Cash Flow, Balance Sheet),
- schedule generators (depreciation, amortization),
- view helpers (wide tables, number formatting).

The CLI is intentionally thin: it does not implement accounting logic
itself. Every reporting command loads one snapshot from the database, runs
the engine on it and renders the result as console tables and/or CSV files
depending on the display mode.


Commands
--------

    init-db                          create the database schema
    add-folder NAME [--type T]       create a category folder
    add-category NAME [flags]        create a category (--cogs, --depreciation,
                                     --sales-tax, --hide-from-pl, ...)
    add-asset NAME COST LIFE DATE    create a fixed asset
    add-loan NAME PRINCIPAL RATE TERM DATE
                                     create an amortizing loan
    set-equity [--par ...]           update the equity settings
    set-tax-mode MODE                store the tax mode (corporate, passthrough)
    import CSV_PATH                  import transactions from a CSV file
    export-csv [--file PATH]         export all transactions as CSV
    pnl                              monthly Profit & Loss
    cashflow                         monthly Cash Flow
    balance-sheet --as-of YYYY-MM    Balance Sheet at the end of a month
    schedule {loan,asset} ID         amortization / depreciation schedule
    set-status ID STATUS             settle (or reopen) a transaction
    override {pl,cashflow} CAT MONTH [AMOUNT]
                                     set (or clear) an override
    skip-payment LOAN_ID NUMBER      toggle a skipped loan payment
    loan-payment LOAN_ID NUMBER [AMOUNT]
                                     set (or clear) the amount actually paid
    summary                          cash balance, AR/AP, late payments and
                                     a monthly summary by entry date
    save --user NAME --base-version N
                                     record a new version (optimistic lock)
    versions                         list saved versions


Configuration and overrides
---------------------------

By default, the CLI reads the main configuration from a TOML file named
``smb_ledger_config.toml`` in the current working directory. You can
override this path using:

    --config PATH

Reporting options of the configuration can be overridden per run with
``--current-month``, ``--from`` / ``--to``, ``--display-mode`` and
``--output``.

Errors raised by the engine (invalid months, invalid records, invalid loan
parameters, version conflicts) are reported through the argument parser,
which prints the message and exits with status 2.
"""

import argparse
import logging
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .balance_sheet import build_balance_sheet
from .cash_flow import build_cash_flow
from .config import AppConfig, load_app_config
from .db import (
    DatabaseConfig,
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
from .errors import LedgerError
from .io import export_transactions_csv, read_transactions_csv
from .months import month_range, parse_month, parse_optional_month
from .profit_loss import build_profit_and_loss
from .records import (
    DEPRECIATION_METHODS,
    TAX_MODES,
    TRANSACTION_STATUSES,
    TRANSACTION_TYPES,
    Category,
    FixedAsset,
    Folder,
    LedgerSnapshot,
    Loan,
)
from .schedules import depreciation_schedule, loan_schedule, total_interest, total_paid
from .summary import late_payments, ledger_summary, monthly_summary
from .views import (
    VIEWS,
    amortization_to_dataframe,
    balance_sheet_view,
    depreciation_to_dataframe,
    format_for_display,
    statement_to_wide,
)

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="smb-ledger",
        description=(
            "SMB Ledger - Receivable/payable ledger & financial statements for "
            "SMBs. Stores transactions, fixed assets and loans, and renders the "
            "Profit & Loss, Cash Flow and Balance Sheet with overrides and "
            "run-rate projections."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_ledger and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. "
            "If omitted, 'smb_ledger_config.toml' in the current directory is used."
        ),
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v: info, -vv: debug).",
    )

    # Reporting options
    ap.add_argument(
        "--current-month",
        dest="current_month",
        help=(
            "Last month of actuals (YYYY-MM). Later months are projected. "
            "Overrides [reporting].current_month."
        ),
    )
    ap.add_argument(
        "--from",
        dest="from_month",
        help="First displayed month (YYYY-MM). Overrides [reporting].timeline_start.",
    )
    ap.add_argument(
        "--to",
        dest="to_month",
        help="Last displayed month (YYYY-MM). Overrides [reporting].timeline_end.",
    )
    ap.add_argument(
        "--view",
        choices=list(VIEWS),
        default="detailed",
        help="'detailed' shows category rows; 'summary' only totals.",
    )

    # Display options
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. Overrides [display].output_dir."
        ),
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    subparsers.add_parser("init-db", help="Create the database schema if needed.")

    import_parser = subparsers.add_parser(
        "import", help="Import transactions from a CSV file (export layout)."
    )
    import_parser.add_argument("csv_path", metavar="CSV_PATH")

    export_parser = subparsers.add_parser(
        "export-csv", help="Export all transactions as CSV."
    )
    export_parser.add_argument(
        "--file",
        dest="export_path",
        help="Destination file. If omitted, the CSV is printed to stdout.",
    )
    export_parser.add_argument(
        "--month-style",
        choices=["iso", "short"],
        default="iso",
        help="Write months as YYYY-MM (iso) or as 'Jan 2025' (short).",
    )

    subparsers.add_parser("pnl", help="Monthly Profit & Loss.")
    subparsers.add_parser("cashflow", help="Monthly Cash Flow.")

    bs_parser = subparsers.add_parser("balance-sheet", help="Balance Sheet.")
    bs_parser.add_argument(
        "--as-of",
        dest="as_of",
        help="Month of the Balance Sheet (YYYY-MM). Defaults to the current month.",
    )

    schedule_parser = subparsers.add_parser(
        "schedule", help="Show a loan amortization or asset depreciation schedule."
    )
    schedule_parser.add_argument("kind", choices=["loan", "asset"])
    schedule_parser.add_argument("record_id", type=int, metavar="ID")

    status_parser = subparsers.add_parser(
        "set-status", help="Change the status of a transaction."
    )
    status_parser.add_argument("transaction_id", type=int, metavar="ID")
    status_parser.add_argument("status", choices=list(TRANSACTION_STATUSES))
    status_parser.add_argument(
        "--month-paid",
        dest="month_paid",
        help="Month the transaction was settled (YYYY-MM). Required to settle.",
    )
    status_parser.add_argument(
        "--date-processed",
        dest="date_processed",
        help="Date the transaction was processed (YYYY-MM-DD).",
    )

    override_parser = subparsers.add_parser(
        "override", help="Set or clear a P&L / Cash Flow cell override."
    )
    override_parser.add_argument("statement", choices=["pl", "cashflow"])
    override_parser.add_argument(
        "category_id",
        type=int,
        metavar="CATEGORY_ID",
        help="Category id (-1 is the P&L income tax row).",
    )
    override_parser.add_argument("month", metavar="MONTH")
    override_parser.add_argument(
        "amount",
        nargs="?",
        metavar="AMOUNT",
        help="Override amount. Omit it to remove the override.",
    )

    skip_parser = subparsers.add_parser(
        "skip-payment", help="Toggle a skipped loan payment."
    )
    skip_parser.add_argument("loan_id", type=int, metavar="LOAN_ID")
    skip_parser.add_argument("payment_number", type=int, metavar="NUMBER")

    save_parser = subparsers.add_parser(
        "save", help="Record a new version of the ledger (optimistic locking)."
    )
    save_parser.add_argument("--user", dest="saved_by", required=True)
    save_parser.add_argument(
        "--base-version",
        dest="base_version",
        type=int,
        help="Version the edits were based on. Defaults to the latest version.",
    )

    subparsers.add_parser("versions", help="List saved versions.")

    subparsers.add_parser(
        "summary", help="Cash balance, open receivables/payables and late payments."
    )

    folder_parser = subparsers.add_parser("add-folder", help="Create a category folder.")
    folder_parser.add_argument("name", metavar="NAME")
    folder_parser.add_argument(
        "--type",
        dest="folder_type",
        choices=list(TRANSACTION_TYPES),
        default="payable",
        help="Side of the ledger the folder groups (default: payable).",
    )
    folder_parser.add_argument("--sort-order", dest="sort_order", type=int, default=0)

    category_parser = subparsers.add_parser("add-category", help="Create a category.")
    category_parser.add_argument("name", metavar="NAME")
    category_parser.add_argument("--folder-id", dest="folder_id", type=int)
    category_parser.add_argument(
        "--default-type",
        dest="default_type",
        choices=list(TRANSACTION_TYPES),
        help="Default transaction type; also places override-only Cash Flow rows.",
    )
    category_parser.add_argument("--default-amount", dest="default_amount")
    category_parser.add_argument(
        "--monthly",
        action="store_true",
        help="Recurring monthly category (transactions carry a payment month).",
    )
    category_parser.add_argument(
        "--sort-order",
        dest="sort_order",
        type=int,
        default=0,
        help="Position of the category rows in the statements.",
    )
    category_parser.add_argument("--cogs", action="store_true", help="Cost of goods sold.")
    category_parser.add_argument(
        "--depreciation",
        action="store_true",
        help="Depreciation category (P&L values are entered as overrides).",
    )
    category_parser.add_argument(
        "--sales-tax",
        dest="sales_tax",
        action="store_true",
        help="Sales tax collected (kept off the P&L).",
    )
    category_parser.add_argument(
        "--hide-from-pl",
        dest="hide_from_pl",
        action="store_true",
        help="Leave the category out of the Profit & Loss.",
    )

    asset_parser = subparsers.add_parser("add-asset", help="Create a fixed asset.")
    asset_parser.add_argument("name", metavar="NAME")
    asset_parser.add_argument("purchase_cost", metavar="COST")
    asset_parser.add_argument("useful_life_months", type=int, metavar="LIFE_MONTHS")
    asset_parser.add_argument("purchase_date", metavar="PURCHASE_DATE", help="YYYY-MM-DD")
    asset_parser.add_argument("--salvage", dest="salvage_value", default="0")
    asset_parser.add_argument(
        "--method",
        dest="depreciation_method",
        choices=list(DEPRECIATION_METHODS),
        default="straight_line",
    )
    asset_parser.add_argument(
        "--dep-start",
        dest="dep_start_date",
        help="First depreciation date (YYYY-MM-DD). Defaults to the purchase date.",
    )
    asset_parser.add_argument(
        "--not-depreciable", dest="not_depreciable", action="store_true"
    )
    asset_parser.add_argument("--notes")

    loan_parser = subparsers.add_parser("add-loan", help="Create an amortizing loan.")
    loan_parser.add_argument("name", metavar="NAME")
    loan_parser.add_argument("principal", metavar="PRINCIPAL")
    loan_parser.add_argument("annual_rate", metavar="RATE", help="Annual rate in percent.")
    loan_parser.add_argument("term_months", type=int, metavar="TERM_MONTHS")
    loan_parser.add_argument("start_date", metavar="START_DATE", help="YYYY-MM-DD")
    loan_parser.add_argument(
        "--payments-per-year", dest="payments_per_year", type=int, default=12
    )
    loan_parser.add_argument("--notes")

    payment_parser = subparsers.add_parser(
        "loan-payment", help="Set or clear the amount actually paid for a loan payment."
    )
    payment_parser.add_argument("loan_id", type=int, metavar="LOAN_ID")
    payment_parser.add_argument("payment_number", type=int, metavar="NUMBER")
    payment_parser.add_argument(
        "amount",
        nargs="?",
        metavar="AMOUNT",
        help="Amount paid. Omit it to go back to the scheduled payment.",
    )

    equity_parser = subparsers.add_parser(
        "set-equity",
        help="Update the equity settings. Options left out keep their stored value.",
    )
    equity_parser.add_argument("--par", dest="common_stock_par", help="Par value per share.")
    equity_parser.add_argument("--shares", dest="common_stock_shares", type=int)
    equity_parser.add_argument("--apic", help="Additional paid-in capital.")
    for flag in ("seed-expected", "seed-received", "apic-expected", "apic-received"):
        equity_parser.add_argument(
            f"--{flag}",
            dest=f"{flag.replace('-', '_')}_date",
            metavar="YYYY-MM-DD",
        )

    tax_parser = subparsers.add_parser(
        "set-tax-mode", help="Store the income tax mode of the business."
    )
    tax_parser.add_argument("tax_mode", choices=list(TAX_MODES))

    return ap


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """Parse an optional YYYY-MM-DD string into a date."""
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise LedgerError(f"Invalid date {value!r}, expected YYYY-MM-DD.") from exc


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _current_month(args: argparse.Namespace, config: AppConfig) -> pd.Period:
    return parse_optional_month(args.current_month) or config.reporting.current_month


def _displayed_months(
    args: argparse.Namespace, config: AppConfig
) -> Optional[list[pd.Period]]:
    """Explicit month range from CLI / config, or None for the default range."""
    start = parse_optional_month(args.from_month) or config.reporting.timeline_start
    end = parse_optional_month(args.to_month) or config.reporting.timeline_end
    if start is None or end is None:
        if start is not None or end is not None:
            logger.info("Timeline needs both a start and an end; using default months.")
        return None
    if end < start:
        raise LedgerError(f"Timeline end {end} is before start {start}.")
    return month_range(start, end)


def _render(
    df: pd.DataFrame,
    title: str,
    file_stem: str,
    display_mode: str,
    output_dir: Path,
) -> None:
    """Print a table and/or write it as CSV, depending on the display mode."""
    if display_mode in {"table", "both"}:
        print()
        print(f"=== {title} ===")
        if df.empty:
            print("(no data)")
        else:
            print(format_for_display(df).to_string(index=False))

    if display_mode in {"csv", "both"}:
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        path = output_dir / f"{file_stem}_{timestamp}.csv"
        df.to_csv(path, index=False)
        print(f"Wrote {path} ({len(df)} rows)")


def _handle_import(args: argparse.Namespace, config: AppConfig) -> None:
    csv_path = Path(args.csv_path)
    if not csv_path.is_file():
        raise FileNotFoundError(f"CSV file for import not found: {csv_path}")

    snapshot = load_snapshot(config.database)
    transactions = read_transactions_csv(csv_path, snapshot.categories)
    print(f"Importing {len(transactions)} transactions from {csv_path}...")
    for t in transactions:
        insert_transaction(config.database, t)
    print(f"Imported {len(transactions)} transactions.")


def _handle_schedule(
    args: argparse.Namespace, snapshot: LedgerSnapshot, display_mode: str, output_dir: Path
) -> None:
    if args.kind == "loan":
        loan = next((x for x in snapshot.loans if x.id == args.record_id), None)
        if loan is None:
            raise LedgerError(f"Loan #{args.record_id} not found.")
        schedule = loan_schedule(loan, snapshot)
        _render(
            amortization_to_dataframe(schedule),
            f"Amortization schedule - {loan.name}",
            f"loan_{loan.id}_schedule",
            display_mode,
            output_dir,
        )
        print(
            f"Total paid: {total_paid(schedule):,.2f} | "
            f"Total interest: {total_interest(schedule):,.2f}"
        )
        return

    asset = next((x for x in snapshot.fixed_assets if x.id == args.record_id), None)
    if asset is None:
        raise LedgerError(f"Fixed asset #{args.record_id} not found.")
    _render(
        depreciation_to_dataframe(depreciation_schedule(asset)),
        f"Depreciation schedule - {asset.name}",
        f"asset_{asset.id}_schedule",
        display_mode,
        output_dir,
    )


def _handle_create(args: argparse.Namespace, db: DatabaseConfig) -> None:
    """Create one folder, category, fixed asset or loan from the arguments."""
    command = args.command

    if command == "add-folder":
        folder = insert_folder(
            db,
            Folder(
                id=0,
                name=args.name,
                folder_type=args.folder_type,
                sort_order=args.sort_order,
            ),
        )
        print(f"Folder #{folder.id} created: {folder.name} ({folder.folder_type})")
        return

    if command == "add-category":
        if args.folder_id is not None:
            folders = {f.id for f in load_snapshot(db).folders}
            if args.folder_id not in folders:
                raise LedgerError(f"Folder #{args.folder_id} not found.")
        category = insert_category(
            db,
            Category(
                id=0,
                name=args.name,
                folder_id=args.folder_id,
                is_monthly=args.monthly,
                default_amount=args.default_amount,
                default_type=args.default_type,
                cashflow_sort_order=args.sort_order,
                show_on_pl=args.hide_from_pl,
                is_cogs=args.cogs,
                is_depreciation=args.depreciation,
                is_sales_tax=args.sales_tax,
            ),
        )
        print(f"Category #{category.id} created: {category.name}")
        return

    if command == "add-asset":
        asset = insert_fixed_asset(
            db,
            FixedAsset(
                id=0,
                name=args.name,
                purchase_cost=args.purchase_cost,
                useful_life_months=args.useful_life_months,
                purchase_date=_parse_optional_date(args.purchase_date),
                salvage_value=args.salvage_value,
                depreciation_method=args.depreciation_method,
                dep_start_date=_parse_optional_date(args.dep_start_date),
                is_depreciable=not args.not_depreciable,
                notes=args.notes,
            ),
        )
        print(
            f"Fixed asset #{asset.id} created: {asset.name} "
            f"({asset.purchase_cost:,.2f} over {asset.useful_life_months} months)"
        )
        return

    loan = insert_loan(
        db,
        Loan(
            id=0,
            name=args.name,
            principal=args.principal,
            annual_rate=args.annual_rate,
            term_months=args.term_months,
            start_date=_parse_optional_date(args.start_date),
            payments_per_year=args.payments_per_year,
            notes=args.notes,
        ),
    )
    print(
        f"Loan #{loan.id} created: {loan.name} "
        f"({loan.principal:,.2f} at {loan.annual_rate}% over {loan.term_months} months)"
    )


def _handle_set_equity(args: argparse.Namespace, db: DatabaseConfig) -> None:
    """Merge the given equity options into the stored equity settings."""
    changes: dict[str, object] = {}
    for name in ("common_stock_par", "common_stock_shares", "apic"):
        value = getattr(args, name)
        if value is not None:
            changes[name] = value
    for name in (
        "seed_expected_date",
        "seed_received_date",
        "apic_expected_date",
        "apic_received_date",
    ):
        value = _parse_optional_date(getattr(args, name))
        if value is not None:
            changes[name] = value

    equity = replace(load_snapshot(db).equity, **changes)
    set_equity_config(db, equity)
    print(
        f"Equity: common stock {equity.common_stock:,.2f} "
        f"({equity.common_stock_shares} shares), APIC {equity.apic:,.2f}"
    )


def _print_summary(
    snapshot: LedgerSnapshot, currency: str, display_mode: str, output_dir: Path
) -> None:
    totals = ledger_summary(snapshot)
    late = late_payments(snapshot)
    print(f"Cash balance ({currency}): {totals.cash_balance:,.2f}")
    print(f"Accounts receivable: {totals.accounts_receivable:,.2f}")
    print(f"Accounts payable: {totals.accounts_payable:,.2f}")
    if late.has_late_receivables:
        print(f"Received late: {late.late_received:,.2f}")
    if late.has_late_payables:
        print(f"Paid late: {late.late_paid:,.2f}")
    _render(
        monthly_summary(snapshot),
        "Monthly summary (by entry date)",
        "monthly_summary",
        display_mode,
        output_dir,
    )


def _run_command(args: argparse.Namespace, config: AppConfig) -> None:
    """Dispatch one subcommand. Engine errors propagate to ``main``."""
    db = config.database
    display_mode = args.display_mode or config.display_mode
    output_dir = Path(args.output_dir) if args.output_dir else config.output_dir
    command = args.command

    if command == "init-db":
        print(f"Database ready: {db.path}")
        return

    if command == "import":
        _handle_import(args, config)
        return

    if command in {"add-folder", "add-category", "add-asset", "add-loan"}:
        _handle_create(args, db)
        return

    if command == "set-equity":
        _handle_set_equity(args, db)
        return

    if command == "set-tax-mode":
        set_tax_mode(db, args.tax_mode)
        print(f"Tax mode set to {args.tax_mode}.")
        if config.reporting.tax_mode not in (None, args.tax_mode):
            print(
                f"Note: [reporting].tax_mode = {config.reporting.tax_mode!r} "
                "in the configuration takes precedence."
            )
        return

    if command == "loan-payment":
        if args.loan_id not in {x.id for x in load_snapshot(db).loans}:
            raise LedgerError(f"Loan #{args.loan_id} not found.")
        set_loan_payment_override(db, args.loan_id, args.payment_number, args.amount)
        action = "scheduled amount" if args.amount is None else f"paid {args.amount}"
        print(f"Loan #{args.loan_id}, payment {args.payment_number}: {action}.")
        return

    if command == "set-status":
        t = update_transaction_status(
            db,
            args.transaction_id,
            args.status,
            month_paid=args.month_paid,
            date_processed=_parse_optional_date(args.date_processed),
        )
        month = t.month_paid if t.month_paid is not None else "-"
        print(f"Transaction #{t.id}: {t.status} (month paid: {month})")
        return

    if command == "override":
        setter = set_pl_override if args.statement == "pl" else set_cashflow_override
        setter(db, args.category_id, args.month, args.amount)
        action = "removed" if args.amount is None else f"set to {args.amount}"
        print(
            f"{args.statement} override for category {args.category_id}, "
            f"{parse_month(args.month)} {action}."
        )
        return

    if command == "skip-payment":
        skipped = toggle_skipped_payment(db, args.loan_id, args.payment_number)
        state = "skipped" if skipped else "scheduled"
        print(f"Loan #{args.loan_id}, payment {args.payment_number}: {state}.")
        return

    if command == "save":
        base = args.base_version if args.base_version is not None else latest_version(db)
        version = push_version(db, base, args.saved_by)
        print(f"Saved version {version} by {args.saved_by}.")
        return

    if command == "versions":
        df = list_versions(db)
        if df.empty:
            print("No saved versions.")
        else:
            print(df.to_string(index=False))
        return

    snapshot = load_snapshot(db, tax_mode=config.reporting.tax_mode)
    current = _current_month(args, config)

    if command == "export-csv":
        text = export_transactions_csv(
            snapshot, args.export_path, month_style=args.month_style
        )
        if text is None:
            print(f"Wrote {args.export_path} ({len(snapshot.transactions)} rows)")
        else:
            print(text, end="")
        return

    if command == "pnl":
        pl = build_profit_and_loss(snapshot, current, months=_displayed_months(args, config))
        _render(
            statement_to_wide(pl.to_frame(), args.view),
            f"Profit & Loss ({snapshot.tax_mode}, {config.currency})",
            "profit_and_loss",
            display_mode,
            output_dir,
        )
        return

    if command == "cashflow":
        cf = build_cash_flow(snapshot, current, months=_displayed_months(args, config))
        _render(
            statement_to_wide(cf.to_frame(), args.view),
            f"Cash Flow ({config.currency})",
            "cash_flow",
            display_mode,
            output_dir,
        )
        return

    if command == "balance-sheet":
        as_of = parse_optional_month(args.as_of) or current
        bs = build_balance_sheet(snapshot, as_of, current)
        suffix = " - projected" if bs.is_projected else ""
        _render(
            balance_sheet_view(bs.to_frame(), args.view),
            f"Balance Sheet as of {bs.as_of}{suffix} ({config.currency})",
            "balance_sheet",
            display_mode,
            output_dir,
        )
        status = "balanced" if bs.is_balanced else f"UNBALANCED by {bs.difference:,.2f}"
        print(f"Check: {status}")
        return

    if command == "summary":
        _print_summary(snapshot, config.currency, display_mode, output_dir)
        return

    if command == "schedule":
        _handle_schedule(args, snapshot, display_mode, output_dir)
        return


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the SMB Ledger CLI.

    This function parses command-line arguments, loads the application
    configuration, initializes the database and runs the requested command.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"smb_ledger version {__version__}")
        return

    _configure_logging(args.verbose)

    if args.command is None:
        parser.error("a command is required (see --help).")

    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    init_database(config.database)

    try:
        _run_command(args, config)
    except (LedgerError, KeyError, FileNotFoundError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        message = exc.args[0] if isinstance(exc, KeyError) and exc.args else str(exc)
        parser.error(str(message))


if __name__ == "__main__":
    main()
