# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Depreciation and loan amortization schedules.

Both generators are pure functions of one record:

1. Depreciation
   -------------
   ``depreciation_schedule(asset)`` returns an ordered mapping
   {month -> depreciation amount}:

   - straight_line    : constant monthly amount over the useful life, the
                        final month absorbing the rounding remainder so the
                        lifetime total is exactly cost - salvage;
   - double_declining : book value x (2 / useful_life_months) every month,
                        never depreciating below the salvage value;
   - none             : empty mapping.

2. Amortization
   -------------
   ``amortization_schedule(...)`` returns the list of scheduled payments of
   a level-payment loan. Skipped payments leave the balance untouched and
   push the payoff past the nominal term; payment overrides replace the
   level payment for one payment number.

Helpers aggregate schedules across all assets/loans of a snapshot, which is
what the statement builders consume.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

import pandas as pd

from .errors import InvalidLoanParameters
from .money import CENT, ZERO, Number, cents, cents_down, to_decimal
from .months import month_of
from .records import FixedAsset, LedgerSnapshot, Loan

# ---------------------------------------------------------------------------
# Depreciation
# ---------------------------------------------------------------------------


def depreciation_schedule(asset: FixedAsset) -> dict[pd.Period, Decimal]:
    """Monthly depreciation of one asset, ordered by month.

    The schedule starts in the month of ``asset.depreciation_start`` (the
    purchase month unless a dedicated start date is set). Assets that are not
    depreciable, use the 'none' method, have no useful life or cost no more
    than their salvage value produce an empty schedule.
    """
    if not asset.is_depreciable or asset.depreciation_method == "none":
        return {}

    life = asset.useful_life_months
    cost = asset.purchase_cost
    salvage = asset.salvage_value
    if life <= 0 or cost <= salvage:
        return {}

    start = month_of(asset.depreciation_start)
    if asset.depreciation_method == "double_declining":
        return _double_declining(cost, salvage, life, start)
    return _straight_line(cost - salvage, life, start)


def _straight_line(
    depreciable: Decimal, life: int, start: pd.Period
) -> dict[pd.Period, Decimal]:
    monthly = cents(depreciable / life)
    if monthly * (life - 1) > depreciable:
        # Rounding up would leave a negative final month.
        monthly = cents_down(depreciable / life)

    schedule = {start + i: monthly for i in range(life - 1)}
    schedule[start + (life - 1)] = depreciable - monthly * (life - 1)
    return schedule


def _double_declining(
    cost: Decimal, salvage: Decimal, life: int, start: pd.Period
) -> dict[pd.Period, Decimal]:
    rate = Decimal(2) / life
    book_value = cost
    schedule: dict[pd.Period, Decimal] = {}

    for i in range(life):
        amount = cents(book_value * rate)
        if book_value - amount < salvage:
            amount = book_value - salvage
        if amount < CENT:
            break
        schedule[start + i] = amount
        book_value -= amount

    return schedule


def depreciation_by_month(
    assets: Iterable[FixedAsset], through: Optional[pd.Period] = None
) -> dict[pd.Period, Decimal]:
    """Total depreciation per month across assets, sorted by month.

    Args:
        assets: Fixed assets to include.
        through: If given, months after it are left out.
    """
    totals: dict[pd.Period, Decimal] = {}
    for asset in assets:
        for month, amount in depreciation_schedule(asset).items():
            if through is not None and month > through:
                continue
            totals[month] = totals.get(month, ZERO) + amount
    return dict(sorted(totals.items()))


def accumulated_depreciation(asset: FixedAsset, as_of: pd.Period) -> Decimal:
    """Depreciation recorded for the asset in months up to and including as_of."""
    return sum(
        (amount for month, amount in depreciation_schedule(asset).items() if month <= as_of),
        ZERO,
    )


# ---------------------------------------------------------------------------
# Amortization
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoanPayment:
    """
    One row of an amortization schedule.

    Attributes
    ----------
    number:
        1-based payment number.
    month:
        Month in which the payment is scheduled.
    payment:
        Amount paid (0 for a skipped payment).
    principal:
        Part of the payment reducing the balance (0 when skipped).
    interest:
        Interest for the period. For a skipped payment this is the interest
        that would have been collected; it is reported but not paid.
    ending_balance:
        Outstanding principal after this row.
    skipped:
        True when the payment was marked as not made.
    """

    number: int
    month: pd.Period
    payment: Decimal
    principal: Decimal
    interest: Decimal
    ending_balance: Decimal
    skipped: bool = False


def periodic_rate(annual_rate: Number, payments_per_year: int) -> Decimal:
    """Interest rate per payment period from an annual percentage."""
    return to_decimal(annual_rate) / Decimal(100) / Decimal(payments_per_year)


def level_payment(principal: Number, rate: Decimal, count: int) -> Decimal:
    """Fixed payment retiring ``principal`` in ``count`` periods at ``rate``."""
    principal = to_decimal(principal)
    if rate == 0:
        return cents(principal / count)
    return cents(principal * rate / (1 - (1 + rate) ** -count))


def _validate_loan_parameters(
    annual_rate: Decimal, term_months: int, payments_per_year: int
) -> int:
    """Validate loan parameters and return the nominal number of payments."""
    if annual_rate < 0:
        raise InvalidLoanParameters(
            f"Annual rate cannot be negative (got {annual_rate})."
        )
    if term_months <= 0:
        raise InvalidLoanParameters(
            f"Term must be a positive number of months (got {term_months})."
        )
    if payments_per_year <= 0:
        raise InvalidLoanParameters(
            f"Payments per year must be positive (got {payments_per_year})."
        )
    if 12 % payments_per_year != 0:
        raise InvalidLoanParameters(
            "Payments per year must divide 12 so that payments fall on whole "
            f"months (got {payments_per_year})."
        )
    if (term_months * payments_per_year) % 12 != 0:
        raise InvalidLoanParameters(
            f"A term of {term_months} months does not hold a whole number of "
            f"payments at {payments_per_year} payments per year."
        )
    return term_months * payments_per_year // 12


def amortization_schedule(
    principal: Number,
    annual_rate: Number,
    term_months: int,
    payments_per_year: int,
    start_date: date,
    skipped: Iterable[int] = (),
    payment_overrides: Optional[Mapping[int, Number]] = None,
) -> list[LoanPayment]:
    """Build the payment schedule of a level-payment loan.

    Args:
        principal: Amount borrowed.
        annual_rate: Annual interest rate, in percent.
        term_months: Nominal term of the loan.
        payments_per_year: Payment frequency (must divide 12).
        start_date: Loan start; payment i falls i periods after its month.
        skipped: Payment numbers marked as not made.
        payment_overrides: Payment number -> amount actually paid.

    Returns:
        Schedule rows in payment order. Without skipped payments the last
        row is the n-th payment and its ending balance is exactly zero. Each
        skipped payment keeps the balance unchanged and extends the schedule
        by one period.

    Raises:
        InvalidLoanParameters: negative rate, non-positive term or frequency,
            or a frequency/term that does not give whole-month payments.
    """
    rate_pct = to_decimal(annual_rate)
    count = _validate_loan_parameters(rate_pct, int(term_months), int(payments_per_year))

    rate = periodic_rate(rate_pct, payments_per_year)
    payment = level_payment(principal, rate, count)
    step = 12 // payments_per_year
    start = month_of(start_date)
    skipped_numbers = frozenset(int(n) for n in skipped)
    overrides = {int(k): cents(v) for k, v in (payment_overrides or {}).items()}

    balance = cents(principal)
    rows: list[LoanPayment] = []
    number = 0
    skipped_seen = 0

    while balance > 0:
        number += 1
        month = start + number * step
        interest = cents(balance * rate)

        if number in skipped_numbers:
            skipped_seen += 1
            rows.append(
                LoanPayment(
                    number=number,
                    month=month,
                    payment=ZERO,
                    principal=ZERO,
                    interest=interest,
                    ending_balance=balance,
                    skipped=True,
                )
            )
            continue

        amount = overrides.get(number, payment)
        is_final = number >= count + skipped_seen
        if is_final or amount >= balance + interest:
            principal_part = balance
            amount = balance + interest
        else:
            principal_part = amount - interest

        balance = balance - principal_part
        rows.append(
            LoanPayment(
                number=number,
                month=month,
                payment=amount,
                principal=principal_part,
                interest=interest,
                ending_balance=balance,
            )
        )

    return rows


def loan_schedule(loan: Loan, snapshot: Optional[LedgerSnapshot] = None) -> list[LoanPayment]:
    """Amortization schedule of a loan record.

    When a snapshot is given, its skipped payments and payment overrides
    for this loan are applied.
    """
    skipped: frozenset[int] = frozenset()
    overrides: dict[int, Decimal] = {}
    if snapshot is not None:
        skipped = snapshot.skipped_for(loan.id)
        overrides = snapshot.payment_overrides_for(loan.id)

    return amortization_schedule(
        principal=loan.principal,
        annual_rate=loan.annual_rate,
        term_months=loan.term_months,
        payments_per_year=loan.payments_per_year,
        start_date=loan.start_date,
        skipped=skipped,
        payment_overrides=overrides,
    )


def interest_by_month(
    snapshot: LedgerSnapshot, through: Optional[pd.Period] = None
) -> dict[pd.Period, Decimal]:
    """Interest actually collected per month across all loans of a snapshot.

    Skipped payments contribute nothing: their interest is never paid.
    """
    totals: dict[pd.Period, Decimal] = {}
    for loan in snapshot.loans:
        for row in loan_schedule(loan, snapshot):
            if row.skipped:
                continue
            if through is not None and row.month > through:
                continue
            totals[row.month] = totals.get(row.month, ZERO) + row.interest
    return dict(sorted(totals.items()))


def balance_as_of(loan: Loan, schedule: list[LoanPayment], as_of: pd.Period) -> Decimal:
    """Outstanding principal of a loan at the end of ``as_of``.

    Before the loan's start month nothing is owed. Between the start and the
    first payment the full principal is owed. Afterwards the ending balance
    of the last payment on or before ``as_of`` applies.
    """
    if as_of < month_of(loan.start_date):
        return ZERO

    balance = loan.principal
    for row in schedule:
        if row.month > as_of:
            break
        balance = row.ending_balance
    return balance


def total_interest(schedule: Iterable[LoanPayment]) -> Decimal:
    """Effective interest cost of a schedule, including skipped periods."""
    return sum((row.interest for row in schedule), ZERO)


def collected_interest(schedule: Iterable[LoanPayment]) -> Decimal:
    """Interest actually paid (skipped payments excluded)."""
    return sum((row.interest for row in schedule if not row.skipped), ZERO)


def total_paid(schedule: Iterable[LoanPayment]) -> Decimal:
    return sum((row.payment for row in schedule), ZERO)
