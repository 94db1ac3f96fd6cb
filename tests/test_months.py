from datetime import date

import pandas as pd
import pytest

from smb_ledger.errors import InvalidMonthFormat, LedgerError
from smb_ledger.months import month_range, parse_month, parse_optional_month


def test_parse_month_accepts_strings_dates_and_periods() -> None:
    expected = pd.Period("2025-03", freq="M")

    assert parse_month("2025-03") == expected
    assert parse_month(date(2025, 3, 31)) == expected
    assert parse_month(pd.Period("2025-03-17", freq="D")) == expected


@pytest.mark.parametrize(
    "value",
    [
        "2025-13",
        "2025-3",
        "March 2025",
        "2025/03",
        "",
        " 2025-03 ",
        "2025-03\n",
        "2025-03-01",
        202503,
    ],
)
def test_parse_month_rejects_malformed_values(value) -> None:
    with pytest.raises(InvalidMonthFormat):
        parse_month(value)


def test_invalid_month_is_a_value_error() -> None:
    """Callers handling ValueError keep working."""
    with pytest.raises(ValueError):
        parse_month("2025-00")
    assert issubclass(InvalidMonthFormat, LedgerError)


def test_parse_optional_month_maps_blank_to_none() -> None:
    assert parse_optional_month(None) is None
    assert parse_optional_month("  ") is None
    assert parse_optional_month("2024-12") == pd.Period("2024-12", freq="M")


def test_month_range_is_inclusive_and_crosses_years() -> None:
    months = month_range(parse_month("2024-11"), parse_month("2025-02"))

    assert [str(m) for m in months] == ["2024-11", "2024-12", "2025-01", "2025-02"]
    assert month_range(parse_month("2025-02"), parse_month("2025-01")) == []
