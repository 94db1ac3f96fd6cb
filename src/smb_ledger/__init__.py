# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB Ledger
----------

A Python-based bookkeeping and reporting application for Small and
Medium-sized Businesses (SMBs). Receivable and payable transactions, fixed
assets and loans are turned into financial statements by a pure,
deterministic computation engine.

Main capabilities:
- depreciation schedules (straight-line, double-declining balance),
- loan amortization schedules with skipped payments and payment overrides,
- accrual-basis and cash-basis aggregation per category and month,
- user overrides of computed cells and run-rate projection of future months,
- Profit & Loss, Cash Flow and Balance Sheet statements, including the
  balance invariant (assets = liabilities + equity),
- a SQLite snapshot store with optimistic versioning,
- CSV import/export of transactions,
- ledger summaries (cash balance, open receivables/payables, late payments),
- a command-line interface printing statements as tables or CSV files.

SMB Ledger separates computation (schedules, aggregation, projection,
statements), configuration (TOML), storage (SQLite) and presentation (CLI),
making it suitable for scripting and automation.


Version: 0.1.0

Usage:
    python -m smb_ledger.cli --help
"""

__all__ = [
    "schedules",
    "aggregation",
    "projection",
    "profit_loss",
    "cash_flow",
    "balance_sheet",
    "views",
    "io",
    "db",
    "summary",
]

__version__ = "0.1.0"
