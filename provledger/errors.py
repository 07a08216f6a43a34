"""
Error types raised by provledger.

Every error derives from ProvLedgerError so the dispatch shell can turn any
of them into a plain failure message.
"""

from __future__ import annotations


class ProvLedgerError(Exception):
    """Base class for all provledger failures."""


class ArgumentError(ProvLedgerError):
    """Malformed or insufficient request arguments."""


class UnknownFunctionError(ArgumentError):
    """Dispatch received a function name it does not route."""


class TimestampFormatError(ProvLedgerError):
    """A generation time does not match YYYY-MM-DDTHH:MM:SS.sssZ."""

    def __init__(self, value: str):
        super().__init__(f"Invalid timestamp {value!r}: expected YYYY-MM-DDTHH:MM:SS.sssZ")
        self.value = value


class NotFoundError(ProvLedgerError):
    """Read of a key that has no current value."""

    def __init__(self, key: str):
        super().__init__(f"Hash not found: {key}")
        self.key = key


class StoreError(ProvLedgerError):
    """The underlying ledger failed on get/put/delete."""


class HistoryUnavailable(ProvLedgerError):
    """The history query failed. Never aborts a read."""


class DocumentFormatError(ProvLedgerError):
    """A stored PROV-XML document could not be parsed."""
