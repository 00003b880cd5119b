"""
Staff resolution of refund requests.

Staff may apply any outcome to any open request, including tier 2 requests
waiting in the review queue. The caller passes the version it read; a
request changed in the meantime fails with STALE_RECORD instead of being
overwritten.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import NotFoundError
from core.services import BaseService, ServiceResult
from escrow.exceptions import StaleRecordError
from escrow.locks import check_version
from escrow.models import RefundRequest
from escrow.services.escrow_service import EscrowService
from escrow.services.splits import refund_amount
from escrow.state_machines import RefundOutcome
from escrow.types import RefundDecision

if TYPE_CHECKING:
    from accounts.models import User


class _ResolutionAborted(Exception):
    def __init__(self, result: ServiceResult):
        super().__init__(result.error)
        self.result = result


class AdminResolutionService(BaseService):
    @classmethod
    def resolve(
        cls,
        request_id,
        staff: User,
        outcome: str,
        expected_version: int,
        refund_tokens: int | None = None,
        notes: str = "",
    ) -> ServiceResult[RefundDecision]:
        """
        Apply a staff decision and settle the escrow.

        Args:
            request_id: RefundRequest primary key
            staff: Resolving staff member
            outcome: RefundOutcome value
            expected_version: Version of the request the staff member saw
            refund_tokens: Custom amount, only for partial outcomes
            notes: Resolution notes stored on the request
        """
        logger = cls.get_logger()

        if not staff.is_staff:
            return ServiceResult.failure(
                "Only staff can resolve refund requests",
                error_code="PERMISSION_DENIED",
            )
        if outcome not in RefundOutcome.values:
            return ServiceResult.failure(
                f"Unknown outcome: {outcome}", error_code="INVALID_OUTCOME"
            )
        if refund_tokens is not None and outcome != RefundOutcome.PARTIAL:
            return ServiceResult.failure(
                "A custom amount is only allowed for partial refunds",
                error_code="INVALID_AMOUNT",
            )

        try:
            with cls.atomic():
                request = check_version(RefundRequest, request_id, expected_version)
                if not request.is_open:
                    return ServiceResult.failure(
                        f"Refund request {request.pk} is already {request.state}",
                        error_code="INVALID_STATE",
                    )

                escrow = request.escrow
                if refund_tokens is None:
                    tokens = refund_amount(escrow.total_tokens, outcome)
                elif 0 < refund_tokens <= escrow.total_tokens:
                    tokens = refund_tokens
                else:
                    return ServiceResult.failure(
                        f"Refund must be between 1 and {escrow.total_tokens} tokens",
                        error_code="INVALID_AMOUNT",
                    )

                settlement = EscrowService.settle_outcome(escrow.id, outcome, tokens)
                if not settlement.success:
                    raise _ResolutionAborted(settlement)

                request.resolve(
                    outcome=outcome,
                    refund_tokens=tokens,
                    resolved_by=staff,
                    notes=notes,
                )
                request.save()
        except NotFoundError as e:
            return ServiceResult.failure(e.message, error_code="REFUND_REQUEST_NOT_FOUND")
        except StaleRecordError as e:
            return ServiceResult.from_exception(e)
        except _ResolutionAborted as e:
            return ServiceResult.failure(e.result.error, error_code=e.result.error_code)

        logger.info(
            "Refund request resolved by staff",
            extra={
                "refund_request_id": str(request.pk),
                "staff_id": str(staff.pk),
                "outcome": outcome,
                "refund_tokens": tokens,
            },
        )
        return ServiceResult.success(
            RefundDecision(
                request=request,
                tier=request.tier,
                outcome=outcome,
                refund_tokens=tokens,
                fraud_pattern=request.fraud_pattern or None,
            )
        )
