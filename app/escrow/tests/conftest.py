"""
Fixtures for escrow tests.

Redis is mocked project-wide (see app/conftest.py), so settlement locks are
always acquired.
"""

import pytest

from accounts.tests.factories import CreatorFactory, StaffFactory, UserFactory
from escrow.ledger import AccountType, ledger
from escrow.services import EscrowService, WalletService
from escrow.state_machines import TransactionType
from escrow.types import OpenEscrowParams


@pytest.fixture
def payer(db):
    return UserFactory()


@pytest.fixture
def creator(db):
    return CreatorFactory()


@pytest.fixture
def staff(db):
    return StaffFactory()


@pytest.fixture
def fund(db):
    """Issue tokens to a user: fund(user, 5000)."""

    counter = {"n": 0}

    def _fund(user, tokens):
        counter["n"] += 1
        result = WalletService.issue_tokens(user, tokens, reference=f"test-{user.pk}-{counter['n']}")
        assert result.success, result.error
        return result.data

    return _fund


@pytest.fixture
def open_escrow(fund):
    """
    Fund the payer and open an escrow through the service.

    open_escrow(payer, creator, 1000, TransactionType.MESSAGE)
    """

    def _open(payer, recipient, total_tokens=1000, transaction_type=TransactionType.MESSAGE, **kwargs):
        fund(payer, total_tokens)
        result = EscrowService.open_escrow(
            OpenEscrowParams(
                payer=payer,
                recipient=recipient,
                total_tokens=total_tokens,
                transaction_type=transaction_type,
                **kwargs,
            )
        )
        assert result.success, result.error
        return result.data

    return _open


@pytest.fixture
def balances():
    """Snapshot of the balances a settlement touches."""

    def _balances(escrow):
        return {
            "payer": ledger.get_wallet_balance(escrow.payer_id),
            "recipient": ledger.get_wallet_balance(escrow.recipient_id),
            "platform": ledger.get_platform_account(AccountType.PLATFORM_REVENUE).get_balance(),
            "escrow": ledger.get_platform_account(AccountType.PLATFORM_ESCROW).get_balance(),
        }

    return _balances
