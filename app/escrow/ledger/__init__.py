"""
Ledger - append-only token bookkeeping.

Every movement debits one account and credits another. Balances are the
replay of entries; nothing else stores a balance.

Public API:
    Models:
        LedgerAccount, LedgerEntry, AccountType, EntryType
    Service:
        ledger - Singleton instance of LedgerService
    Types:
        RecordEntryParams, WalletBalance
    Exceptions:
        LedgerError, AccountNotFound, InsufficientBalance, InactiveAccount

Note:
    Importing this package imports models; do it after the app registry
    is ready.
"""

from .exceptions import (
    AccountNotFound,
    InactiveAccount,
    InsufficientBalance,
    LedgerError,
)
from .models import AccountType, EntryType, LedgerAccount, LedgerEntry
from .services import LedgerService, ledger
from .types import RecordEntryParams, WalletBalance

__all__ = [
    "LedgerAccount",
    "LedgerEntry",
    "AccountType",
    "EntryType",
    "ledger",
    "LedgerService",
    "RecordEntryParams",
    "WalletBalance",
    "LedgerError",
    "AccountNotFound",
    "InsufficientBalance",
    "InactiveAccount",
]
