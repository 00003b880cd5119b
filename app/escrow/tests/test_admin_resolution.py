"""
Tests for AdminResolutionService.
"""

import uuid

from escrow.models import EscrowRecord, RefundRequest
from escrow.services import AdminResolutionService, RefundService
from escrow.state_machines import (
    EscrowState,
    RefundOutcome,
    RefundReason,
    RefundRequestState,
)
from escrow.types import RefundRequestParams


def _queued(escrow, payer, reason=RefundReason.QUALITY_ISSUE):
    result = RefundService.request_refund(
        RefundRequestParams(escrow_id=escrow.id, requester=payer, reason=reason)
    )
    return RefundRequest.objects.get(pk=result.data.request.pk)


class TestResolve:
    def test_full_refund_of_queued_request(self, payer, creator, staff, open_escrow, balances):
        """Should let staff override a tier 2 request."""
        escrow = open_escrow(payer, creator, 1000)
        request = _queued(escrow, payer)

        result = AdminResolutionService.resolve(
            request.pk, staff, RefundOutcome.FULL, expected_version=request.version, notes="Agreed"
        )

        assert result.success
        resolved = RefundRequest.objects.get(pk=request.pk)
        assert resolved.state == RefundRequestState.RESOLVED
        assert resolved.resolved_by == staff
        assert resolved.resolution_notes == "Agreed"
        assert resolved.resolved_at is not None
        assert balances(escrow)["payer"] == 1000

    def test_custom_partial_amount(self, payer, creator, staff, open_escrow, balances):
        escrow = open_escrow(payer, creator, 1000)
        request = _queued(escrow, payer)

        result = AdminResolutionService.resolve(
            request.pk,
            staff,
            RefundOutcome.PARTIAL,
            expected_version=request.version,
            refund_tokens=200,
        )

        assert result.data.refund_tokens == 200
        after = balances(escrow)
        assert after["payer"] == 200
        assert after["recipient"] == 520
        assert after["platform"] == 280

    def test_creator_wins_on_disputed_escrow(self, payer, creator, staff, open_escrow, balances):
        """Should release a disputed escrow to the creator."""
        escrow = open_escrow(payer, creator, 1000)
        request = _queued(escrow, payer, RefundReason.HARASSMENT)
        assert EscrowRecord.objects.get(pk=escrow.pk).state == EscrowState.DISPUTED

        result = AdminResolutionService.resolve(
            request.pk, staff, RefundOutcome.CREATOR_WINS, expected_version=request.version
        )

        assert result.success
        assert balances(escrow)["recipient"] == 650
        assert EscrowRecord.objects.get(pk=escrow.pk).state == EscrowState.RELEASED

    def test_stale_version(self, payer, creator, staff, open_escrow):
        """Should refuse a decision made on an outdated view of the request."""
        escrow = open_escrow(payer, creator)
        request = _queued(escrow, payer)

        result = AdminResolutionService.resolve(
            request.pk, staff, RefundOutcome.FULL, expected_version=request.version - 1
        )

        assert result.error_code == "STALE_RECORD"
        assert RefundRequest.objects.get(pk=request.pk).is_open

    def test_cannot_resolve_twice(self, payer, creator, staff, open_escrow):
        escrow = open_escrow(payer, creator)
        request = _queued(escrow, payer)
        AdminResolutionService.resolve(
            request.pk, staff, RefundOutcome.FULL, expected_version=request.version
        )
        current = RefundRequest.objects.get(pk=request.pk)

        result = AdminResolutionService.resolve(
            request.pk, staff, RefundOutcome.FULL, expected_version=current.version
        )

        assert result.error_code == "INVALID_STATE"

    def test_requires_staff(self, payer, creator, open_escrow):
        escrow = open_escrow(payer, creator)
        request = _queued(escrow, payer)

        result = AdminResolutionService.resolve(
            request.pk, payer, RefundOutcome.FULL, expected_version=request.version
        )

        assert result.error_code == "PERMISSION_DENIED"

    def test_custom_amount_only_for_partial(self, payer, creator, staff, open_escrow):
        escrow = open_escrow(payer, creator)
        request = _queued(escrow, payer)

        result = AdminResolutionService.resolve(
            request.pk,
            staff,
            RefundOutcome.FULL,
            expected_version=request.version,
            refund_tokens=10,
        )

        assert result.error_code == "INVALID_AMOUNT"

    def test_unknown_request(self, staff):
        result = AdminResolutionService.resolve(
            uuid.uuid4(), staff, RefundOutcome.FULL, expected_version=1
        )

        assert result.error_code == "REFUND_REQUEST_NOT_FOUND"
