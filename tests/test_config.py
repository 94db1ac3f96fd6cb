import pandas as pd
import pytest

from smb_ledger.config import load_app_config
from smb_ledger.errors import InvalidMonthFormat


def write_config(tmp_path, text: str):
    path = tmp_path / "smb_ledger_config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_full_config_resolves_paths(tmp_path) -> None:
    path = write_config(
        tmp_path,
        """
[database]
engine = "sqlite"
path = "data/ledger.sqlite"

[reporting]
current_month = "2025-06"
tax_mode = "passthrough"
timeline_start = "2025-01"
timeline_end = "2025-12"

[accounting]
currency = "EUR"

[display]
mode = "both"
output_dir = "reports"
""",
    )

    cfg = load_app_config(str(path))

    assert cfg.database.engine == "sqlite"
    assert cfg.database.path == (tmp_path / "data" / "ledger.sqlite").resolve()
    assert cfg.reporting.current_month == pd.Period("2025-06", freq="M")
    assert cfg.reporting.tax_mode == "passthrough"
    assert cfg.reporting.timeline_start == pd.Period("2025-01", freq="M")
    assert cfg.reporting.timeline_end == pd.Period("2025-12", freq="M")
    assert cfg.currency == "EUR"
    assert cfg.display_mode == "both"
    assert cfg.output_dir == (tmp_path / "reports").resolve()


def test_defaults_for_empty_config(tmp_path) -> None:
    cfg = load_app_config(str(write_config(tmp_path, "")))

    assert cfg.database.path == (tmp_path / "data" / "db" / "smb_ledger.sqlite").resolve()
    assert cfg.reporting.tax_mode is None
    assert cfg.reporting.timeline_start is None
    assert isinstance(cfg.reporting.current_month, pd.Period)
    assert cfg.currency == "USD"
    assert cfg.display_mode == "table"
    assert cfg.output_dir == (tmp_path / "out").resolve()


def test_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "nope.toml"))


@pytest.mark.parametrize(
    "text",
    [
        "[display]\nmode = 'html'\n",
        "[reporting]\ntax_mode = 'llc'\n",
        "[reporting]\ntimeline_start = '2025-06'\ntimeline_end = '2025-01'\n",
        "[reporting\n",
    ],
)
def test_invalid_values_raise_value_error(tmp_path, text) -> None:
    with pytest.raises(ValueError):
        load_app_config(str(write_config(tmp_path, text)))


def test_malformed_current_month(tmp_path) -> None:
    path = write_config(tmp_path, "[reporting]\ncurrent_month = '2025-6'\n")

    with pytest.raises(InvalidMonthFormat):
        load_app_config(str(path))
