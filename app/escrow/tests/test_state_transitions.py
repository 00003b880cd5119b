"""
Tests for escrow and refund request state machines.
"""

import pytest
from django_fsm import TransitionNotAllowed

from escrow.models import EscrowRecord, RefundRequest
from escrow.state_machines import (
    EscrowState,
    RefundOutcome,
    RefundRequestState,
    RefundTier,
)
from escrow.tests.factories import EscrowRecordFactory, RefundRequestFactory


class TestEscrowTransitions:
    def test_release_from_held(self, db):
        escrow = EscrowRecordFactory()

        escrow.release()
        escrow.save()

        reloaded = EscrowRecord.objects.get(pk=escrow.pk)
        assert reloaded.state == EscrowState.RELEASED
        assert reloaded.released_at is not None
        assert reloaded.version == 2

    def test_release_from_disputed(self, db):
        escrow = EscrowRecordFactory(state=EscrowState.DISPUTED)

        escrow.release()

        assert escrow.state == EscrowState.RELEASED

    @pytest.mark.parametrize("terminal", [EscrowState.RELEASED, EscrowState.REFUNDED])
    def test_terminal_states_are_final(self, db, terminal):
        escrow = EscrowRecordFactory(state=terminal)

        with pytest.raises(TransitionNotAllowed):
            escrow.release()
        with pytest.raises(TransitionNotAllowed):
            escrow.refund(10)
        with pytest.raises(TransitionNotAllowed):
            escrow.dispute()

    def test_refund_records_amount(self, db):
        escrow = EscrowRecordFactory()

        escrow.refund(400)

        assert escrow.state == EscrowState.REFUNDED
        assert escrow.refunded_tokens == 400

    def test_dispute_only_from_held(self, db):
        escrow = EscrowRecordFactory(state=EscrowState.DISPUTED)

        with pytest.raises(TransitionNotAllowed):
            escrow.dispute()

    def test_state_is_protected(self, db):
        escrow = EscrowRecordFactory()

        with pytest.raises(AttributeError):
            escrow.state = EscrowState.RELEASED

    def test_refund_window(self, db):
        assert EscrowRecordFactory().refund_window_open
        assert not EscrowRecordFactory(state=EscrowState.DISPUTED).refund_window_open


class TestRefundRequestTransitions:
    def test_queue_sets_tier_two(self, db):
        request = RefundRequestFactory()

        request.queue_for_review()

        assert request.state == RefundRequestState.QUEUED_FOR_REVIEW
        assert request.tier == RefundTier.ASSISTED

    def test_resolve_from_awaiting_human(self, db):
        request = RefundRequestFactory()
        request.await_human()

        request.resolve(outcome=RefundOutcome.PARTIAL, refund_tokens=500, notes="split")

        assert request.state == RefundRequestState.RESOLVED
        assert request.was_approved
        assert not request.is_open

    def test_reject_only_from_pending(self, db):
        request = RefundRequestFactory()
        request.queue_for_review()

        with pytest.raises(TransitionNotAllowed):
            request.reject()

    def test_cannot_resolve_rejected(self, db):
        request = RefundRequestFactory()
        request.reject(notes="fraud")

        with pytest.raises(TransitionNotAllowed):
            request.resolve(outcome=RefundOutcome.FULL, refund_tokens=100)

    def test_creator_wins_is_not_approved(self, db):
        request = RefundRequestFactory()
        request.resolve(outcome=RefundOutcome.CREATOR_WINS, refund_tokens=0)

        assert not request.was_approved

    def test_one_open_request_per_escrow(self, db):
        from django.db import IntegrityError, transaction

        first = RefundRequestFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            RefundRequest.objects.create(
                escrow=first.escrow, requester=first.requester, reason=first.reason
            )
