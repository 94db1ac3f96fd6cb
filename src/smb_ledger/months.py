# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Month helpers for SMB Ledger.

Every month in the engine is a ``pandas.Period`` with a monthly frequency.
Periods sort chronologically, support month arithmetic (``month + 3``) and
render as 'YYYY-MM' through ``str()``.

Month identifiers coming from the outside world (CSV files, the database,
the configuration or the command line) are validated here: anything that is
not a strict 'YYYY-MM' value raises :class:`InvalidMonthFormat` instead of
being coerced.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

from .errors import InvalidMonthFormat

MonthLike = Union[str, date, datetime, pd.Period]

_MONTH_RE = re.compile(r"([0-9]{4})-(0[1-9]|1[0-2])")


def parse_month(value: MonthLike) -> pd.Period:
    """
    Convert a month identifier into a monthly ``pandas.Period``.

    Accepted inputs:
        - a 'YYYY-MM' string,
        - a ``date`` / ``datetime`` (the month containing it),
        - a ``pandas.Period`` (converted to a monthly frequency).

    Raises
    ------
    InvalidMonthFormat
        If a string does not match 'YYYY-MM' or the value type is unsupported.
    """
    if isinstance(value, pd.Period):
        return value.asfreq("M")

    if isinstance(value, (date, datetime)):
        return pd.Period(year=value.year, month=value.month, freq="M")

    if isinstance(value, str):
        match = _MONTH_RE.fullmatch(value)
        if match is None:
            raise InvalidMonthFormat(
                f"Invalid month {value!r}, expected YYYY-MM format."
            )
        return pd.Period(year=int(match.group(1)), month=int(match.group(2)), freq="M")

    raise InvalidMonthFormat(f"Unsupported month value: {value!r}")


def parse_optional_month(value: Optional[MonthLike]) -> Optional[pd.Period]:
    """Same as :func:`parse_month`, but None and blank strings map to None."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return parse_month(value)


def month_of(day: date) -> pd.Period:
    """Month containing the given date."""
    return pd.Period(year=day.year, month=day.month, freq="M")


def add_months(month: pd.Period, count: int) -> pd.Period:
    """Shift a month forward (or backward for negative counts)."""
    return month + count


def month_range(start: pd.Period, end: pd.Period) -> list[pd.Period]:
    """Contiguous list of months from start to end, both inclusive.

    Returns an empty list when end is before start.
    """
    if end < start:
        return []
    return list(pd.period_range(start=start, end=end, freq="M"))


def this_month() -> pd.Period:
    """Current calendar month (isolated for easier testing)."""
    return month_of(datetime.today().date())
