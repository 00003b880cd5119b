"""
Wallet service.

Token purchases are completed by an external payment provider; once paid,
the provider callback issues tokens here. Issuance debits the
TOKEN_ISSUANCE account, which is the only account allowed to go negative,
so the total supply is the negative of its balance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.services import BaseService, ServiceResult
from escrow.ledger import (
    AccountType,
    EntryType,
    InactiveAccount,
    LedgerEntry,
    RecordEntryParams,
    ledger,
)

if TYPE_CHECKING:
    from accounts.models import User


class WalletService(BaseService):
    @classmethod
    def issue_tokens(
        cls,
        user: User,
        tokens: int,
        reference: str,
    ) -> ServiceResult[LedgerEntry]:
        """
        Credit a user's wallet with purchased tokens.

        Args:
            user: Wallet owner
            tokens: Positive number of tokens
            reference: Payment provider reference; repeated calls with the
                same reference do not issue twice
        """
        if tokens <= 0:
            return ServiceResult.failure(
                "Token amount must be positive", error_code="INVALID_AMOUNT"
            )
        if not reference:
            return ServiceResult.failure(
                "A purchase reference is required", error_code="MISSING_REFERENCE"
            )

        try:
            entry = ledger.record_entry(
                RecordEntryParams(
                    debit_account_id=ledger.get_platform_account(
                        AccountType.TOKEN_ISSUANCE
                    ).id,
                    credit_account_id=ledger.get_wallet(user.pk).id,
                    amount_tokens=tokens,
                    entry_type=EntryType.TOKEN_PURCHASE,
                    idempotency_key=f"purchase:{reference}",
                    reference_type="purchase",
                    description=f"Token purchase {reference}",
                    metadata={"reference": reference},
                    created_by="wallet_service",
                )
            )
        except InactiveAccount as e:
            return ServiceResult.failure(e.message, error_code="WALLET_FROZEN")

        cls.get_logger().info(
            "Tokens issued",
            extra={"user_id": str(user.pk), "tokens": tokens, "reference": reference},
        )
        return ServiceResult.success(entry)

    @staticmethod
    def get_balance(user: User) -> int:
        return ledger.get_wallet_balance(user.pk)

    @staticmethod
    def get_entries(user: User, limit: int = 50, offset: int = 0) -> list[LedgerEntry]:
        wallet = ledger.get_wallet(user.pk)
        return ledger.get_entries_for_account(wallet.id, limit=limit, offset=offset)
