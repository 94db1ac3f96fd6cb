# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Ledger records for SMB Ledger.

This module defines one frozen dataclass per entity consumed by the engine:

- ``Folder``           : grouping label for categories (display only),
- ``Category``         : classification of transactions and P&L flags,
- ``Transaction``      : one receivable or payable,
- ``FixedAsset``       : depreciable asset,
- ``Loan``             : amortizing loan,
- ``SkippedPayment``   : scheduled loan payment marked as not made,
- ``EquityConfig``     : common stock, APIC and their effective dates,
- ``LedgerSnapshot``   : one consistent set of all of the above, plus the
                         P&L / cash-flow override maps and the tax mode.

Field constraints are enforced at construction: amounts are normalized to
Decimal cents, months to monthly ``pandas.Period`` values, and invalid
combinations raise :class:`InvalidRecord` (or :class:`InvalidMonthFormat`
for malformed months). The engine never mutates records.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Literal, Mapping, Optional

import pandas as pd

from .errors import InvalidRecord
from .money import ZERO, Number, cents, to_decimal
from .months import parse_optional_month

TransactionType = Literal["receivable", "payable"]
TransactionStatus = Literal["pending", "paid", "received"]
DepreciationMethod = Literal["straight_line", "double_declining", "none"]
TaxMode = Literal["corporate", "passthrough"]

TRANSACTION_TYPES: tuple[str, ...] = ("receivable", "payable")
TRANSACTION_STATUSES: tuple[str, ...] = ("pending", "paid", "received")
DEPRECIATION_METHODS: tuple[str, ...] = ("straight_line", "double_declining", "none")
TAX_MODES: tuple[str, ...] = ("corporate", "passthrough")

# Reserved category id of the income-tax row in the P&L override map.
TAX_OVERRIDE_CATEGORY_ID = -1

OverrideMap = Mapping[tuple[int, pd.Period], Decimal]
"""(category_id, month) -> user-entered amount."""


def _set(obj, name: str, value) -> None:
    object.__setattr__(obj, name, value)


def _optional_cents(value: Optional[Number]) -> Optional[Decimal]:
    if value is None:
        return None
    return cents(value)


@dataclass(frozen=True)
class Folder:
    """Grouping label for categories.

    Its folder_type places override-only categories on the Cash Flow.
    """

    id: int
    name: str
    folder_type: str = "payable"
    sort_order: int = 0

    def __post_init__(self) -> None:
        if self.folder_type not in TRANSACTION_TYPES:
            raise InvalidRecord(
                f"Folder {self.id}: invalid folder_type {self.folder_type!r}."
            )


@dataclass(frozen=True)
class Category:
    """
    Transaction category.

    Attributes
    ----------
    show_on_pl:
        Literal flag kept from the source data model. Despite its name,
        True *suppresses* the category from the Profit & Loss.
    is_depreciation:
        Depreciation categories are never aggregated from transactions;
        their P&L values come from overrides only.
    default_amount, default_type:
        Form defaults, ignored by the engine.
    """

    id: int
    name: str
    folder_id: Optional[int] = None
    is_monthly: bool = False
    default_amount: Optional[Decimal] = None
    default_type: Optional[str] = None
    cashflow_sort_order: int = 0
    show_on_pl: bool = False
    is_cogs: bool = False
    is_depreciation: bool = False
    is_sales_tax: bool = False

    def __post_init__(self) -> None:
        if not str(self.name).strip():
            raise InvalidRecord(f"Category {self.id}: name cannot be empty.")
        if self.default_type is not None and self.default_type not in TRANSACTION_TYPES:
            raise InvalidRecord(
                f"Category {self.id}: invalid default_type {self.default_type!r}."
            )
        _set(self, "default_amount", _optional_cents(self.default_amount))

    @property
    def suppressed_from_pl(self) -> bool:
        """True when the category is hidden from the P&L."""
        return bool(self.show_on_pl)


@dataclass(frozen=True)
class Transaction:
    """
    Receivable or payable transaction.

    Month fields accept 'YYYY-MM' strings, dates or Periods and are stored as
    monthly ``pandas.Period`` values. ``payment_for_month`` is only
    meaningful for monthly categories.
    """

    id: int
    entry_date: date
    category_id: int
    amount: Decimal
    transaction_type: TransactionType
    status: TransactionStatus = "pending"
    pretax_amount: Optional[Decimal] = None
    month_due: Optional[pd.Period] = None
    month_paid: Optional[pd.Period] = None
    date_processed: Optional[date] = None
    payment_for_month: Optional[pd.Period] = None
    notes: Optional[str] = None
    item_description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.transaction_type not in TRANSACTION_TYPES:
            raise InvalidRecord(
                f"Transaction {self.id}: invalid type {self.transaction_type!r}."
            )
        if self.status not in TRANSACTION_STATUSES:
            raise InvalidRecord(
                f"Transaction {self.id}: invalid status {self.status!r}."
            )
        if self.status == "paid" and self.transaction_type != "payable":
            raise InvalidRecord(
                f"Transaction {self.id}: status 'paid' is only valid for payables."
            )
        if self.status == "received" and self.transaction_type != "receivable":
            raise InvalidRecord(
                f"Transaction {self.id}: status 'received' is only valid "
                "for receivables."
            )

        _set(self, "amount", cents(self.amount))
        _set(self, "pretax_amount", _optional_cents(self.pretax_amount))
        _set(self, "month_due", parse_optional_month(self.month_due))
        _set(self, "month_paid", parse_optional_month(self.month_paid))
        _set(self, "payment_for_month", parse_optional_month(self.payment_for_month))

        if self.status != "pending" and self.month_paid is None:
            raise InvalidRecord(
                f"Transaction {self.id}: month_paid is required when status "
                f"is {self.status!r}."
            )

    @property
    def is_settled(self) -> bool:
        return self.status != "pending"

    def outstanding_as_of(self, as_of: pd.Period) -> bool:
        """True if the transaction was due by ``as_of`` and not yet settled then."""
        if self.month_due is None or self.month_due > as_of:
            return False
        if self.status == "pending":
            return True
        return self.month_paid is not None and self.month_paid > as_of


@dataclass(frozen=True)
class FixedAsset:
    """
    Fixed asset record.

    ``dep_start_date`` (optional) moves the first depreciation month away
    from the purchase month. Non-depreciable assets keep their cost on the
    balance sheet and never depreciate.
    """

    id: int
    name: str
    purchase_cost: Decimal
    useful_life_months: int
    purchase_date: date
    salvage_value: Decimal = ZERO
    depreciation_method: DepreciationMethod = "straight_line"
    dep_start_date: Optional[date] = None
    is_depreciable: bool = True
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.depreciation_method not in DEPRECIATION_METHODS:
            raise InvalidRecord(
                f"Fixed asset {self.id}: invalid depreciation method "
                f"{self.depreciation_method!r}."
            )
        try:
            life = int(self.useful_life_months)
        except (TypeError, ValueError) as exc:
            raise InvalidRecord(
                f"Fixed asset {self.id}: useful_life_months must be an integer."
            ) from exc
        _set(self, "useful_life_months", life)
        _set(self, "purchase_cost", cents(self.purchase_cost))
        _set(self, "salvage_value", cents(self.salvage_value))
        if self.purchase_cost < 0 or self.salvage_value < 0:
            raise InvalidRecord(
                f"Fixed asset {self.id}: cost and salvage value cannot be negative."
            )

    @property
    def depreciation_start(self) -> date:
        return self.dep_start_date or self.purchase_date


@dataclass(frozen=True)
class Loan:
    """
    Amortizing loan.

    ``annual_rate`` is a percentage (12 means 12% per year). Parameter
    validation happens when the schedule is generated, so an invalid loan
    can still be loaded and displayed.
    """

    id: int
    name: str
    principal: Decimal
    annual_rate: Decimal
    term_months: int
    start_date: date
    payments_per_year: int = 12
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        _set(self, "principal", cents(self.principal))
        _set(self, "annual_rate", to_decimal(self.annual_rate))


@dataclass(frozen=True)
class SkippedPayment:
    """Scheduled loan payment marked as not made."""

    loan_id: int
    payment_number: int


@dataclass(frozen=True)
class EquityConfig:
    """
    Owner equity settings.

    The expected/received dates are informational in the source
    application; here they also define from which month the common stock
    (seed money) and APIC count on the balance sheet. The received date wins
    over the expected date; without any date the amount always counts.
    """

    common_stock_par: Decimal = ZERO
    common_stock_shares: int = 0
    apic: Decimal = ZERO
    seed_expected_date: Optional[date] = None
    seed_received_date: Optional[date] = None
    apic_expected_date: Optional[date] = None
    apic_received_date: Optional[date] = None

    def __post_init__(self) -> None:
        _set(self, "common_stock_par", to_decimal(self.common_stock_par))
        _set(self, "apic", cents(self.apic))

    @property
    def common_stock(self) -> Decimal:
        return cents(self.common_stock_par * self.common_stock_shares)

    @property
    def seed_effective_date(self) -> Optional[date]:
        return self.seed_received_date or self.seed_expected_date

    @property
    def apic_effective_date(self) -> Optional[date]:
        return self.apic_received_date or self.apic_expected_date


@dataclass(frozen=True, eq=False)
class LedgerSnapshot:
    """
    One consistent, read-only view of every record used by the engine.

    Statement builders only read from a snapshot; callers that share a
    mutable store must build a fresh snapshot before each computation pass.
    Override maps are exposed as read-only mappings and snapshots hash by
    identity, so they can be used as cache keys.

    Attributes
    ----------
    pl_overrides, cashflow_overrides:
        User-entered cell values keyed by (category_id, month). The income
        tax row of the P&L uses ``TAX_OVERRIDE_CATEGORY_ID``.
    loan_payment_overrides:
        (loan_id, payment_number) -> amount actually paid.
    """

    transactions: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = ()
    folders: tuple[Folder, ...] = ()
    fixed_assets: tuple[FixedAsset, ...] = ()
    loans: tuple[Loan, ...] = ()
    skipped_payments: tuple[SkippedPayment, ...] = ()
    loan_payment_overrides: Mapping[tuple[int, int], Decimal] = field(
        default_factory=dict
    )
    pl_overrides: OverrideMap = field(default_factory=dict)
    cashflow_overrides: OverrideMap = field(default_factory=dict)
    equity: EquityConfig = field(default_factory=EquityConfig)
    tax_mode: TaxMode = "corporate"

    def __post_init__(self) -> None:
        if self.tax_mode not in TAX_MODES:
            raise InvalidRecord(f"Invalid tax mode {self.tax_mode!r}.")
        for name in (
            "transactions",
            "categories",
            "folders",
            "fixed_assets",
            "loans",
            "skipped_payments",
        ):
            _set(self, name, tuple(getattr(self, name)))
        for name in ("pl_overrides", "cashflow_overrides"):
            overrides = normalize_overrides(getattr(self, name))
            _set(self, name, MappingProxyType(overrides))
        payments = {
            (int(loan_id), int(number)): cents(amount)
            for (loan_id, number), amount in self.loan_payment_overrides.items()
        }
        _set(self, "loan_payment_overrides", MappingProxyType(payments))

    def category_by_id(self) -> dict[int, Category]:
        return {c.id: c for c in self.categories}

    def skipped_for(self, loan_id: int) -> frozenset[int]:
        return frozenset(
            s.payment_number for s in self.skipped_payments if s.loan_id == loan_id
        )

    def payment_overrides_for(self, loan_id: int) -> dict[int, Decimal]:
        return {
            number: amount
            for (lid, number), amount in self.loan_payment_overrides.items()
            if lid == loan_id
        }


def normalize_overrides(overrides) -> dict[tuple[int, pd.Period], Decimal]:
    """Validate an override mapping and normalize its keys and amounts.

    Keys are (category_id, month) pairs; the month may be given in any form
    accepted by :func:`smb_ledger.months.parse_month`.
    """
    out: dict[tuple[int, pd.Period], Decimal] = {}
    for (category_id, month), amount in dict(overrides).items():
        period = parse_optional_month(month)
        if period is None:
            raise InvalidRecord(f"Override for category {category_id} has no month.")
        out[(int(category_id), period)] = cents(amount)
    return out
