"""
Ledger exceptions.

Exception Hierarchy:
    LedgerError (base)
    ├── AccountNotFound - Account lookup failures
    ├── InsufficientBalance - Wallet would go below zero
    └── InactiveAccount - Frozen wallet or retired platform account
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    import uuid
    from typing import Any


class LedgerError(BaseApplicationError):
    default_error_code: str = "LEDGER_ERROR"


class AccountNotFound(LedgerError):
    default_error_code: str = "ACCOUNT_NOT_FOUND"


class InsufficientBalance(LedgerError):
    """
    Raised when a debit would take an account below zero.

    Attributes:
        account_id: The account with insufficient tokens
        required: Tokens the entry needed
        available: Tokens the account holds
    """

    default_error_code: str = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        account_id: uuid.UUID,
        required: int,
        available: int,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.account_id = account_id
        self.required = required
        self.available = available

        full_details = {
            "account_id": str(account_id),
            "required_tokens": required,
            "available_tokens": available,
        }
        if details:
            full_details.update(details)

        super().__init__(
            message=(
                f"Account {account_id} has insufficient balance: "
                f"required {required} tokens, available {available} tokens"
            ),
            error_code=error_code,
            details=full_details,
        )


class InactiveAccount(LedgerError):
    default_error_code: str = "INACTIVE_ACCOUNT"
