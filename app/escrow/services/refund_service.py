"""
Refund request service.

Order of checks in request_refund:
    1. Disallowed reason -> REASON_NOT_REFUNDABLE (nothing is read)
    2. Escrow exists, requester is the payer
    3. Escrow is HELD and the refund window is open
    4. No other open request for the escrow
    5. Fraud rules; a blocking hit rejects the request and penalises the
       requester's payment-ethics score, an escalating hit forces tier 3
    6. Tier routing: 1 settles now, 2 waits in the review queue,
       3 disputes the escrow and waits for staff
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.db.models import QuerySet
from django.utils import timezone

from core.services import BaseService, ServiceResult
from escrow.fraud import RefundFraudDetector
from escrow.models import EscrowRecord, RefundRequest
from escrow.services.escrow_service import EscrowService
from escrow.services.refund_router import auto_evaluate, is_refundable_reason, route
from escrow.services.splits import refund_amount
from escrow.state_machines import EscrowState, RefundRequestState, RefundTier
from escrow.types import RefundDecision, RefundRequestParams
from safety.services import SafetyService
from safety.types import SafetyDimension, SafetyEventType

if TYPE_CHECKING:
    from accounts.models import User

FRAUD_PENALTY_IMPACT = -20


class _SettlementFailed(Exception):
    """Rolls back a tier 1 request whose escrow could not be settled."""

    def __init__(self, result: ServiceResult):
        super().__init__(result.error)
        self.result = result


class RefundService(BaseService):
    @classmethod
    def request_refund(cls, params: RefundRequestParams) -> ServiceResult[RefundDecision]:
        logger = cls.get_logger()

        if not is_refundable_reason(params.reason):
            return ServiceResult.failure(
                f"Reason '{params.reason}' is not eligible for a refund",
                error_code="REASON_NOT_REFUNDABLE",
            )

        escrow = EscrowRecord.objects.filter(pk=params.escrow_id).first()
        if escrow is None:
            return ServiceResult.failure(
                f"Escrow {params.escrow_id} not found", error_code="ESCROW_NOT_FOUND"
            )
        if escrow.payer_id != params.requester.pk:
            return ServiceResult.failure(
                "Only the payer can request a refund", error_code="PERMISSION_DENIED"
            )
        if escrow.state != EscrowState.HELD:
            return ServiceResult.failure(
                f"Escrow {escrow.id} is not HELD (current state: {escrow.state})",
                error_code="INVALID_STATE",
            )
        if timezone.now() >= escrow.auto_release_at:
            return ServiceResult.failure(
                "The refund window for this escrow has closed",
                error_code="REFUND_WINDOW_CLOSED",
            )
        if RefundRequest.objects.filter(
            escrow=escrow, state__in=RefundRequestState.open_states()
        ).exists():
            return ServiceResult.failure(
                "A refund request for this escrow is already pending",
                error_code="REFUND_ALREADY_PENDING",
            )

        try:
            with cls.atomic():
                request = RefundRequest.objects.create(
                    escrow=escrow,
                    requester=params.requester,
                    reason=params.reason,
                    details=params.details,
                )
                result = cls._screen_and_route(request, escrow)
        except IntegrityError:
            # Lost a race against another request for the same escrow
            return ServiceResult.failure(
                "A refund request for this escrow is already pending",
                error_code="REFUND_ALREADY_PENDING",
            )
        except _SettlementFailed as e:
            logger.warning(
                "Automatic refund settlement failed",
                extra={"escrow_id": str(escrow.id), "error_code": e.result.error_code},
            )
            return ServiceResult.failure(e.result.error, error_code=e.result.error_code)

        return result

    @classmethod
    def _screen_and_route(
        cls, request: RefundRequest, escrow: EscrowRecord
    ) -> ServiceResult[RefundDecision]:
        logger = cls.get_logger()
        tier = route(request.reason)

        verdict = RefundFraudDetector().check(request)
        if verdict is not None:
            request.fraud_flagged = True
            request.fraud_pattern = verdict.hit.rule

            if verdict.blocks_refund:
                request.reject(notes=f"Blocked by fraud rule {verdict.hit.rule}")
                request.save()
                SafetyService.record_event(
                    request.requester,
                    event_type=SafetyEventType.REFUND_FRAUD,
                    dimension=SafetyDimension.PAYMENT_ETHICS,
                    impact=FRAUD_PENALTY_IMPACT,
                    source=f"refund_request:{request.pk}",
                    metadata={"pattern": verdict.hit.rule, "confidence": verdict.hit.confidence},
                )
                return ServiceResult.failure(
                    "Refund request blocked by fraud checks",
                    error_code="REFUND_BLOCKED",
                )
            if verdict.forces_human_review:
                tier = RefundTier.HUMAN

        decision = RefundDecision(
            request=request,
            tier=tier,
            fraud_pattern=request.fraud_pattern or None,
        )

        if tier == RefundTier.AUTO:
            outcome = auto_evaluate(escrow)
            tokens = refund_amount(escrow.total_tokens, outcome)
            settlement = EscrowService.settle_outcome(escrow.id, outcome, tokens)
            if not settlement.success:
                raise _SettlementFailed(settlement)
            request.tier = RefundTier.AUTO
            request.resolve(outcome=outcome, refund_tokens=tokens, notes="Automatic evaluation")
            decision.outcome = outcome
            decision.refund_tokens = tokens
        elif tier == RefundTier.ASSISTED:
            request.queue_for_review()
        else:
            request.await_human()
            disputed = EscrowService.mark_disputed(escrow.id)
            if not disputed.success:
                raise _SettlementFailed(disputed)

        request.save()
        logger.info(
            "Refund request routed",
            extra={
                "refund_request_id": str(request.pk),
                "escrow_id": str(escrow.id),
                "tier": int(tier),
                "state": request.state,
                "outcome": decision.outcome,
            },
        )
        return ServiceResult.success(decision)

    # ==========================================================================
    # Queries
    # ==========================================================================

    @staticmethod
    def list_for_requester(user: User) -> QuerySet[RefundRequest]:
        return RefundRequest.objects.filter(requester=user).select_related("escrow")

    @staticmethod
    def review_queue() -> QuerySet[RefundRequest]:
        """Open tier 2 and tier 3 requests, oldest first."""
        return (
            RefundRequest.objects.filter(
                state__in=[
                    RefundRequestState.QUEUED_FOR_REVIEW,
                    RefundRequestState.AWAITING_HUMAN,
                ]
            )
            .select_related("escrow", "requester")
            .order_by("created_at")
        )
