"""
Ledger service layer.

All ledger writes go through LedgerService so that account locking, balance
validation and idempotency are applied the same way everywhere.

Usage:
    from escrow.ledger.services import ledger

    wallet = ledger.get_wallet(user.id)
    entries = ledger.record_entries([
        RecordEntryParams(
            debit_account_id=wallet.id,
            credit_account_id=ledger.get_platform_account(AccountType.PLATFORM_ESCROW).id,
            amount_tokens=1000,
            entry_type=EntryType.ESCROW_HOLD,
            idempotency_key=f"escrow:{escrow_id}:hold",
        ),
    ])
"""

from __future__ import annotations

import logging
import uuid

from django.db import IntegrityError, transaction
from django.db.models import Q

from .exceptions import AccountNotFound, InactiveAccount, InsufficientBalance
from .models import AccountType, LedgerAccount, LedgerEntry
from .types import RecordEntryParams, WalletBalance

logger = logging.getLogger(__name__)

# Platform accounts that may go negative
_NEGATIVE_ALLOWED = {AccountType.TOKEN_ISSUANCE}


class LedgerService:
    """
    Service class for ledger operations.

    Key features:
    - Atomic transactions for multi-entry operations
    - Idempotency via unique keys (safe to retry)
    - Balance validation before debits
    - Account rows locked in id order to avoid deadlocks
    """

    @staticmethod
    def get_or_create_account(
        account_type: AccountType | str,
        owner_id: uuid.UUID | None = None,
    ) -> LedgerAccount:
        account, created = LedgerAccount.objects.get_or_create(
            type=account_type,
            owner_id=owner_id,
            defaults={"allow_negative": account_type in _NEGATIVE_ALLOWED},
        )
        if created:
            logger.info(
                "Opened ledger account",
                extra={"account_id": str(account.id), "type": account_type},
            )
        return account

    @staticmethod
    def get_wallet(user_id: uuid.UUID) -> LedgerAccount:
        """Get (or open) the token wallet of a user."""
        return LedgerService.get_or_create_account(AccountType.USER_WALLET, user_id)

    @staticmethod
    def get_platform_account(account_type: AccountType | str) -> LedgerAccount:
        """Get (or open) one of the ownerless platform accounts."""
        return LedgerService.get_or_create_account(account_type, None)

    @staticmethod
    def get_account(account_id: uuid.UUID) -> LedgerAccount:
        """
        Raises:
            AccountNotFound: If account doesn't exist
        """
        try:
            return LedgerAccount.objects.get(id=account_id)
        except LedgerAccount.DoesNotExist:
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={"account_id": str(account_id)},
            )

    @staticmethod
    def _validate_account_for_debit(account: LedgerAccount, amount_tokens: int) -> None:
        if not account.is_active:
            raise InactiveAccount(
                f"Account {account.id} is inactive",
                details={"account_id": str(account.id)},
            )

        if not account.allow_negative:
            current_balance = account.get_balance()
            if current_balance < amount_tokens:
                raise InsufficientBalance(
                    account_id=account.id,
                    required=amount_tokens,
                    available=current_balance,
                )

    @staticmethod
    def _validate_account_for_credit(account: LedgerAccount) -> None:
        if not account.is_active:
            raise InactiveAccount(
                f"Account {account.id} is inactive",
                details={"account_id": str(account.id)},
            )

    @staticmethod
    def record_entry(params: RecordEntryParams) -> LedgerEntry:
        """Record a single entry. See record_entries."""
        return LedgerService.record_entries([params])[0]

    @staticmethod
    def record_entries(entries: list[RecordEntryParams]) -> list[LedgerEntry]:
        """
        Record multiple ledger entries atomically.

        All entries succeed or all fail. Entries are processed in order, so
        a later entry's balance check sees the earlier entries of the batch.
        An entry whose idempotency key already exists is returned unchanged.

        Raises:
            AccountNotFound: If any account doesn't exist
            InactiveAccount: If any account is inactive
            InsufficientBalance: If any debit account lacks tokens
        """
        if not entries:
            return []

        results: list[LedgerEntry] = []

        with transaction.atomic():
            account_ids: set[uuid.UUID] = set()
            for params in entries:
                account_ids.add(params.debit_account_id)
                account_ids.add(params.credit_account_id)

            # Lock in a consistent order so concurrent batches cannot deadlock
            accounts = {
                acc.id: acc
                for acc in LedgerAccount.objects.filter(id__in=account_ids)
                .select_for_update()
                .order_by("id")
            }

            for account_id in account_ids:
                if account_id not in accounts:
                    raise AccountNotFound(
                        f"Account {account_id} not found",
                        details={"account_id": str(account_id)},
                    )

            for params in entries:
                debit_account = accounts[params.debit_account_id]
                credit_account = accounts[params.credit_account_id]

                # Idempotency before validation: a replayed entry must not
                # be rejected by a balance it already moved
                existing = LedgerEntry.objects.filter(
                    idempotency_key=params.idempotency_key
                ).first()
                if existing is not None:
                    results.append(existing)
                    continue

                LedgerService._validate_account_for_debit(
                    debit_account, params.amount_tokens
                )
                LedgerService._validate_account_for_credit(credit_account)

                try:
                    with transaction.atomic():
                        entry = LedgerEntry.objects.create(
                            idempotency_key=params.idempotency_key,
                            debit_account=debit_account,
                            credit_account=credit_account,
                            amount_tokens=params.amount_tokens,
                            entry_type=params.entry_type,
                            reference_id=params.reference_id,
                            reference_type=params.reference_type,
                            description=params.description,
                            metadata=params.metadata or {},
                            created_by=params.created_by,
                        )
                except IntegrityError:
                    # Another process wrote the same key between check and create
                    entry = LedgerEntry.objects.get(
                        idempotency_key=params.idempotency_key
                    )
                results.append(entry)

        return results

    @staticmethod
    def get_balance(account_id: uuid.UUID) -> WalletBalance:
        account = LedgerService.get_account(account_id)
        return WalletBalance(account_id=account.id, tokens=account.get_balance())

    @staticmethod
    def get_wallet_balance(user_id: uuid.UUID) -> int:
        """Replay a user's wallet; users without a wallet hold 0 tokens."""
        account = LedgerAccount.objects.filter(
            type=AccountType.USER_WALLET, owner_id=user_id
        ).first()
        if account is None:
            return 0
        return account.get_balance()

    @staticmethod
    def get_entries_for_account(
        account_id: uuid.UUID,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """Entries debiting or crediting the account, newest first."""
        return list(
            LedgerEntry.objects.filter(
                Q(debit_account_id=account_id) | Q(credit_account_id=account_id)
            )
            .select_related("debit_account", "credit_account")
            .order_by("-created_at")[offset : offset + limit]
        )

    @staticmethod
    def get_entries_by_reference(
        reference_type: str,
        reference_id: uuid.UUID,
    ) -> list[LedgerEntry]:
        """All entries for a business entity, oldest first."""
        return list(
            LedgerEntry.objects.filter(
                reference_type=reference_type,
                reference_id=reference_id,
            ).order_by("created_at")
        )

    @staticmethod
    def set_account_active(account_id: uuid.UUID, is_active: bool) -> LedgerAccount:
        """Freeze or unfreeze an account. History is preserved either way."""
        account = LedgerService.get_account(account_id)
        account.is_active = is_active
        account.save(update_fields=["is_active"])
        logger.info(
            "Ledger account active flag changed",
            extra={"account_id": str(account_id), "is_active": is_active},
        )
        return account


ledger = LedgerService()
