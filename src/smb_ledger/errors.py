# SMB Ledger - Receivable/payable ledger & financial statements for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""Error types raised by SMB Ledger."""


class LedgerError(ValueError):
    """Base class for SMB Ledger errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for callers that already handle ValueError.
    """


class InvalidMonthFormat(LedgerError):
    """A month identifier is not a valid 'YYYY-MM' year-month."""


class InvalidLoanParameters(LedgerError):
    """Loan parameters cannot produce an amortization schedule."""


class InvalidRecord(LedgerError):
    """A ledger record violates one of its field constraints."""


class VersionConflict(LedgerError):
    """A snapshot push was based on an outdated version.

    Attributes
    ----------
    base_version:
        Version the caller believed to be the latest.
    current_version:
        Latest version actually stored.
    """

    def __init__(self, base_version: int, current_version: int):
        self.base_version = base_version
        self.current_version = current_version
        super().__init__(
            f"Version conflict: push based on version {base_version}, "
            f"but the latest stored version is {current_version}. "
            "Reload the snapshot and retry."
        )
