# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB Ledger.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating reporting options (current month, tax mode, timeline),
- exposing typed dataclasses used by the rest of the application.
"""

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from .db import DatabaseConfig
from .months import parse_optional_month, this_month
from .records import TAX_MODES

DEFAULT_CONFIG_FILE = "smb_ledger_config.toml"
DISPLAY_MODES = ("table", "csv", "both")


@dataclass(frozen=True)
class ReportingConfig:
    """
    Reporting options.

    Attributes
    ----------
    current_month:
        Last month of actuals; later months are projected.
    tax_mode:
        Optional tax mode overriding the one stored in the database.
    timeline_start, timeline_end:
        Optional bounds of the months displayed by the monthly statements.
    """

    current_month: pd.Period
    tax_mode: Optional[str]
    timeline_start: Optional[pd.Period]
    timeline_end: Optional[pd.Period]


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB Ledger.

    This aggregates:
    - the database configuration (where records are stored),
    - reporting options,
    - the presentation currency,
    - display options for the CLI.
    """

    database: DatabaseConfig
    reporting: ReportingConfig
    currency: str
    display_mode: str
    output_dir: Path


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        return {}
    return value


def _parse_reporting(raw: Mapping[str, Any]) -> ReportingConfig:
    """
    Extract and validate the [reporting] section.

    Raises:
        InvalidMonthFormat: if a month is not 'YYYY-MM'.
        ValueError: if the tax mode is unknown or the timeline is reversed.
    """
    section = _section(raw, "reporting")

    current_month = parse_optional_month(section.get("current_month")) or this_month()

    tax_mode = section.get("tax_mode") or None
    if tax_mode is not None and tax_mode not in TAX_MODES:
        raise ValueError(
            f"Invalid [reporting].tax_mode {tax_mode!r}, expected one of "
            f"{', '.join(TAX_MODES)}."
        )

    start = parse_optional_month(section.get("timeline_start"))
    end = parse_optional_month(section.get("timeline_end"))
    if start is not None and end is not None and end < start:
        raise ValueError("[reporting].timeline_end cannot be before timeline_start.")

    return ReportingConfig(
        current_month=current_month,
        tax_mode=tax_mode,
        timeline_start=start,
        timeline_end=end,
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB Ledger application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [database]
        Database engine and SQLite file path.

    [reporting]
        current_month (YYYY-MM, defaults to today's month), tax_mode
        ("corporate" | "passthrough", optional), timeline_start and
        timeline_end (YYYY-MM, optional).

    [accounting]
        Presentation currency.

    [display]
        Output mode of the CLI ("table", "csv" or "both") and the directory
        where CSV files are written.

    All file paths in the TOML are resolved relative to the directory of the
    TOML file itself.

    Parameters
    ----------
    config_path:
        Path to the TOML configuration file. Defaults to
        ``smb_ledger_config.toml`` in the working directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or "data/db/smb_ledger.sqlite"
    database_config = DatabaseConfig(
        engine=db_engine, path=(base_dir / str(db_path_raw)).resolve()
    )

    # 2) Reporting section
    reporting = _parse_reporting(raw)

    # 3) Accounting section
    currency = str(_section(raw, "accounting").get("currency") or "USD")

    # 4) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid [display].mode {display_mode!r}, expected one of "
            f"{', '.join(DISPLAY_MODES)}."
        )
    output_dir = (base_dir / str(display_section.get("output_dir") or "out")).resolve()

    return AppConfig(
        database=database_config,
        reporting=reporting,
        currency=currency,
        display_mode=display_mode,
        output_dir=output_dir,
    )
