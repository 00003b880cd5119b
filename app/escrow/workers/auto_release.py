"""
Auto-release worker for escrows whose refund window has closed.

Tasks:
- process_due_escrows: Hourly scan that queues due escrows
- release_single_escrow: Releases one escrow through EscrowService

Usage:
    # Typically called via celery-beat schedule
    from escrow.workers import process_due_escrows

    process_due_escrows.delay()
    release_single_escrow.delay(str(escrow.id))
"""

from __future__ import annotations

import logging
from uuid import UUID

from celery import shared_task
from django.conf import settings
from django.db.models import Exists, OuterRef
from django.utils import timezone

from escrow.exceptions import SettlementFailedError
from escrow.models import EscrowRecord, RefundRequest
from escrow.state_machines import EscrowState, RefundRequestState

logger = logging.getLogger(__name__)


# =============================================================================
# Periodic Task: Scan for Due Escrows
# =============================================================================


@shared_task(bind=True)
def process_due_escrows(self) -> dict:
    """
    Queue a release task for every HELD escrow past auto_release_at.

    Escrows with an open refund request and DISPUTED escrows are skipped.
    Running it twice is harmless: the release re-checks state under the
    settlement lock.

    Returns:
        Dict with queued_count
    """
    logger.info("Starting escrow auto-release scan")

    open_request = RefundRequest.objects.filter(
        escrow=OuterRef("pk"),
        state__in=RefundRequestState.open_states(),
    )
    due = (
        EscrowRecord.objects.filter(
            state=EscrowState.HELD,
            auto_release_at__lte=timezone.now(),
        )
        .exclude(Exists(open_request))
        .order_by("auto_release_at")
        .values_list("id", flat=True)[: settings.ESCROW_RELEASE_BATCH_SIZE]
    )

    queued_count = 0
    for escrow_id in due:
        try:
            release_single_escrow.delay(str(escrow_id))
            queued_count += 1
        except Exception as e:
            logger.error(
                f"Failed to queue escrow for release: {e}",
                extra={"escrow_id": str(escrow_id), "error": str(e)},
            )

    logger.info(
        f"Escrow auto-release scan complete: queued {queued_count} escrows",
        extra={"queued_count": queued_count},
    )
    return {"queued_count": queued_count}


# =============================================================================
# Individual Release Task
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": 3},
    acks_late=True,
)
def release_single_escrow(self, escrow_id: str) -> dict:
    """
    Release one due escrow.

    Lock contention and failed settlements raise SettlementFailedError and
    are retried with backoff; the settlement rolls back as a whole, so a
    retry starts from a HELD escrow.

    Returns:
        Dict with status, one of "released", "not_found", "skipped";
        skipped results carry the error_code that explains why.
    """
    from escrow.services import EscrowService

    try:
        escrow_uuid = UUID(str(escrow_id))
    except ValueError:
        logger.error(f"Invalid escrow_id format: {escrow_id}")
        return {"status": "not_found", "escrow_id": escrow_id}

    result = EscrowService.release_escrow(escrow_uuid, actor=None, automatic=True)

    if result.success:
        return {
            "status": "released",
            "escrow_id": str(escrow_uuid),
            "recipient_tokens": result.data.recipient_tokens,
            "platform_tokens": result.data.platform_tokens,
        }

    if result.error_code == "ESCROW_NOT_FOUND":
        status = "not_found"
    elif result.error_code == "LOCK_CONTENTION":
        status = "lock_failed"
    elif result.error_code in ("INVALID_STATE", "REFUND_PENDING", "RELEASE_WINDOW_NOT_REACHED"):
        status = "skipped"
    else:
        status = "release_failed"

    if status in ("lock_failed", "release_failed"):
        logger.warning(
            f"Escrow auto-release failed, will retry: {result.error}",
            extra={
                "escrow_id": str(escrow_uuid),
                "status": status,
                "error_code": result.error_code,
                "retries": self.request.retries,
            },
        )
        raise SettlementFailedError(
            result.error,
            error_code=result.error_code,
            details={"escrow_id": str(escrow_uuid), "status": status},
        )

    logger.info(
        f"Escrow auto-release not completed: {result.error}",
        extra={
            "escrow_id": str(escrow_uuid),
            "status": status,
            "error_code": result.error_code,
        },
    )
    return {
        "status": status,
        "escrow_id": str(escrow_uuid),
        "error": result.error,
        "error_code": result.error_code,
    }
