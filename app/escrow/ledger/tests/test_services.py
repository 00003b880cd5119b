"""
Tests for LedgerService.
"""

import uuid

import pytest

from escrow.ledger.exceptions import (
    AccountNotFound,
    InactiveAccount,
    InsufficientBalance,
)
from escrow.ledger.models import AccountType, EntryType, LedgerEntry
from escrow.ledger.services import LedgerService
from escrow.ledger.tests.factories import (
    IssuanceAccountFactory,
    LedgerAccountFactory,
    LedgerEntryFactory,
)
from escrow.ledger.types import RecordEntryParams


def _params(debit, credit, amount, key, entry_type=EntryType.ADJUSTMENT):
    return RecordEntryParams(
        debit_account_id=debit.id,
        credit_account_id=credit.id,
        amount_tokens=amount,
        entry_type=entry_type,
        idempotency_key=key,
    )


class TestGetOrCreateAccount:
    """Tests for LedgerService.get_or_create_account()."""

    def test_returns_same_platform_account(self, db):
        """Should not duplicate ownerless platform accounts."""
        first = LedgerService.get_platform_account(AccountType.PLATFORM_ESCROW)
        second = LedgerService.get_platform_account(AccountType.PLATFORM_ESCROW)

        assert first.id == second.id

    def test_issuance_account_may_go_negative(self, db):
        """Should open the issuance account with allow_negative set."""
        account = LedgerService.get_platform_account(AccountType.TOKEN_ISSUANCE)

        assert account.allow_negative is True

    def test_wallets_are_per_user(self, db):
        """Should open one wallet per user."""
        a = LedgerService.get_wallet(uuid.uuid4())
        b = LedgerService.get_wallet(uuid.uuid4())

        assert a.id != b.id
        assert a.allow_negative is False


class TestGetAccount:
    def test_raises_account_not_found(self, db):
        """Should raise AccountNotFound for an unknown id."""
        missing = uuid.uuid4()

        with pytest.raises(AccountNotFound) as exc_info:
            LedgerService.get_account(missing)

        assert str(missing) in str(exc_info.value)


class TestRecordEntries:
    """Tests for LedgerService.record_entries()."""

    def test_moves_tokens_between_accounts(self, db):
        """Should debit one account and credit the other."""
        issuance = IssuanceAccountFactory()
        wallet = LedgerAccountFactory()

        LedgerService.record_entry(_params(issuance, wallet, 500, "k1"))

        assert wallet.get_balance() == 500
        assert issuance.get_balance() == -500

    def test_rejects_overdraft(self, db):
        """Should raise InsufficientBalance when the wallet is short."""
        wallet = LedgerAccountFactory()
        other = LedgerAccountFactory()

        with pytest.raises(InsufficientBalance) as exc_info:
            LedgerService.record_entry(_params(wallet, other, 10, "k2"))

        assert exc_info.value.required == 10
        assert exc_info.value.available == 0
        assert LedgerEntry.objects.count() == 0

    def test_rejects_inactive_credit_account(self, db):
        """Should refuse to credit a frozen account."""
        issuance = IssuanceAccountFactory()
        frozen = LedgerAccountFactory(is_active=False)

        with pytest.raises(InactiveAccount):
            LedgerService.record_entry(_params(issuance, frozen, 10, "k3"))

    def test_idempotent_replay_returns_original(self, db):
        """Should return the existing entry for a repeated key."""
        issuance = IssuanceAccountFactory()
        wallet = LedgerAccountFactory()

        first = LedgerService.record_entry(_params(issuance, wallet, 100, "same"))
        second = LedgerService.record_entry(_params(issuance, wallet, 100, "same"))

        assert first.id == second.id
        assert wallet.get_balance() == 100

    def test_batch_is_all_or_nothing(self, db):
        """Should roll back earlier entries when a later one fails."""
        issuance = IssuanceAccountFactory()
        wallet = LedgerAccountFactory()
        other = LedgerAccountFactory()

        with pytest.raises(InsufficientBalance):
            LedgerService.record_entries([
                _params(issuance, wallet, 100, "b1"),
                _params(wallet, other, 150, "b2"),
            ])

        assert wallet.get_balance() == 0
        assert LedgerEntry.objects.count() == 0

    def test_batch_sees_earlier_entries(self, db):
        """Should let a later entry spend tokens credited earlier in the batch."""
        issuance = IssuanceAccountFactory()
        wallet = LedgerAccountFactory()
        other = LedgerAccountFactory()

        LedgerService.record_entries([
            _params(issuance, wallet, 100, "c1"),
            _params(wallet, other, 60, "c2"),
        ])

        assert wallet.get_balance() == 40
        assert other.get_balance() == 60

    def test_unknown_account_raises(self, db):
        wallet = LedgerAccountFactory()
        ghost = LedgerAccountFactory.build()

        with pytest.raises(AccountNotFound):
            LedgerService.record_entry(_params(ghost, wallet, 1, "ghost"))


class TestRecordEntryParams:
    @pytest.mark.parametrize("amount", [0, -5])
    def test_rejects_non_positive_amount(self, amount):
        """Should reject zero and negative amounts."""
        with pytest.raises(ValueError):
            RecordEntryParams(uuid.uuid4(), uuid.uuid4(), amount, "adjustment", "k")

    def test_rejects_same_account(self):
        same = uuid.uuid4()
        with pytest.raises(ValueError):
            RecordEntryParams(same, same, 10, "adjustment", "k")

    def test_requires_idempotency_key(self):
        with pytest.raises(ValueError):
            RecordEntryParams(uuid.uuid4(), uuid.uuid4(), 10, "adjustment", "")


class TestQueries:
    def test_wallet_balance_without_wallet_is_zero(self, db):
        """Should report 0 for users who never held tokens."""
        assert LedgerService.get_wallet_balance(uuid.uuid4()) == 0

    def test_entries_by_reference(self, db):
        """Should return entries tagged with a business reference, oldest first."""
        reference = uuid.uuid4()
        first = LedgerEntryFactory(reference_type="escrow", reference_id=reference)
        second = LedgerEntryFactory(reference_type="escrow", reference_id=reference)
        LedgerEntryFactory()

        entries = LedgerService.get_entries_by_reference("escrow", reference)

        assert {e.id for e in entries} == {first.id, second.id}

    def test_frozen_account_rejects_debits(self, db):
        issuance = IssuanceAccountFactory()
        wallet = LedgerAccountFactory()
        LedgerService.record_entry(_params(issuance, wallet, 50, "fund"))
        LedgerService.set_account_active(wallet.id, False)

        with pytest.raises(InactiveAccount):
            LedgerService.record_entry(_params(wallet, issuance, 10, "spend"))


class TestImmutability:
    def test_entries_cannot_be_updated(self, db):
        entry = LedgerEntryFactory()
        entry.amount_tokens = 1

        with pytest.raises(ValueError):
            entry.save()

    def test_entries_cannot_be_deleted(self, db):
        entry = LedgerEntryFactory()

        with pytest.raises(ValueError):
            entry.delete()
