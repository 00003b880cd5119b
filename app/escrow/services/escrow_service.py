"""
Escrow service: opening, releasing, refunding and cancelling escrows.

Ledger Flow:
    Open:
        Debit USER_WALLET[payer], Credit PLATFORM_ESCROW (total)
    Release:
        Debit PLATFORM_ESCROW, Credit USER_WALLET[recipient] (recipient share)
        Debit PLATFORM_ESCROW, Credit PLATFORM_REVENUE (platform share)
    Refund / cancellation:
        Debit PLATFORM_ESCROW, Credit USER_WALLET[payer] (refund)
        remainder split recipient / platform as on release
    Voluntary refund after release:
        Debit USER_WALLET[recipient], Credit USER_WALLET[payer] (refund)

Every settlement moves exactly total_tokens out of escrow, runs under the
escrow's distributed lock and re-checks the state after a row lock, so a
second release of the same escrow fails with INVALID_STATE.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError
from django.utils import timezone

from core.services import BaseService, ServiceResult
from escrow.exceptions import LockAcquisitionError
from escrow.ledger import (
    AccountType,
    EntryType,
    InactiveAccount,
    InsufficientBalance,
    RecordEntryParams,
    ledger,
)
from escrow.locks import settlement_lock
from escrow.models import EscrowRecord, RefundRequest
from escrow.services.cancellation_policy import CancelledBy, quote_cancellation
from escrow.services.splits import (
    DEFAULT_RECIPIENT_SHARE,
    SUPPORTED_RECIPIENT_SHARES,
    compute_split,
    distribute_remainder,
    refund_amount,
)
from escrow.signals import escrow_settled
from escrow.state_machines import (
    BookingStatus,
    EscrowState,
    RefundRequestState,
    TransactionType,
)
from escrow.types import OpenEscrowParams, SettlementResult

if TYPE_CHECKING:
    from accounts.models import User

REFERENCE_TYPE = "escrow"


class EscrowService(BaseService):
    """
    Stateless escrow operations. Expected failures come back as
    ServiceResult.failure with one of:

        INVALID_AMOUNT, INVALID_SPLIT, INVALID_TRANSACTION_TYPE, SELF_PAYMENT,
        RECIPIENT_INACTIVE, INSUFFICIENT_BALANCE, ESCROW_NOT_FOUND,
        PERMISSION_DENIED, RELEASE_WINDOW_NOT_REACHED, INVALID_STATE,
        REFUND_PENDING, LOCK_CONTENTION, NO_CANCELLATION_POLICY,
        SETTLEMENT_FAILED, INVALID_PERCENT, ALREADY_REFUNDED, WALLET_FROZEN
    """

    # ==========================================================================
    # Open
    # ==========================================================================

    @classmethod
    def open_escrow(cls, params: OpenEscrowParams) -> ServiceResult[EscrowRecord]:
        logger = cls.get_logger()

        if params.idempotency_key:
            existing = EscrowRecord.objects.filter(
                idempotency_key=params.idempotency_key, payer=params.payer
            ).first()
            if existing is not None:
                return ServiceResult.success(existing)

        if params.total_tokens <= 0:
            return ServiceResult.failure(
                "Escrow amount must be positive", error_code="INVALID_AMOUNT"
            )
        if params.transaction_type not in TransactionType.values:
            return ServiceResult.failure(
                f"Unknown transaction type: {params.transaction_type}",
                error_code="INVALID_TRANSACTION_TYPE",
            )
        if params.payer.pk == params.recipient.pk:
            return ServiceResult.failure(
                "Payer and recipient must be different users",
                error_code="SELF_PAYMENT",
            )
        if not params.recipient.is_active:
            return ServiceResult.failure(
                "Recipient account is inactive", error_code="RECIPIENT_INACTIVE"
            )

        share = params.recipient_share_percent
        if share is None:
            share = DEFAULT_RECIPIENT_SHARE[params.transaction_type]
        if share not in SUPPORTED_RECIPIENT_SHARES:
            return ServiceResult.failure(
                f"Unsupported split: {share}/{100 - share}",
                error_code="INVALID_SPLIT",
            )

        split = compute_split(params.total_tokens, share)
        now = timezone.now()

        try:
            with cls.atomic():
                escrow = EscrowRecord.objects.create(
                    payer=params.payer,
                    recipient=params.recipient,
                    transaction_type=params.transaction_type,
                    reference=params.reference,
                    total_tokens=split.total_tokens,
                    recipient_share_percent=share,
                    recipient_tokens=split.recipient_tokens,
                    platform_tokens=split.platform_tokens,
                    release_after=now + timedelta(hours=settings.ESCROW_RELEASE_WINDOW_HOURS),
                    auto_release_at=now + timedelta(hours=settings.ESCROW_AUTO_RELEASE_HOURS),
                    scheduled_start=params.scheduled_start,
                    idempotency_key=params.idempotency_key or None,
                    metadata=params.metadata,
                )
                ledger.record_entry(
                    RecordEntryParams(
                        debit_account_id=ledger.get_wallet(params.payer.pk).id,
                        credit_account_id=ledger.get_platform_account(
                            AccountType.PLATFORM_ESCROW
                        ).id,
                        amount_tokens=split.total_tokens,
                        entry_type=EntryType.ESCROW_HOLD,
                        idempotency_key=f"escrow:{escrow.id}:hold",
                        reference_type=REFERENCE_TYPE,
                        reference_id=escrow.id,
                        description=f"{params.transaction_type} escrow hold",
                        created_by="escrow_service",
                    )
                )
        except InsufficientBalance as e:
            logger.info(
                "Escrow rejected: insufficient balance",
                extra={"payer_id": str(params.payer.pk), "required": e.required},
            )
            return ServiceResult.failure(e.message, error_code="INSUFFICIENT_BALANCE")
        except InactiveAccount as e:
            return ServiceResult.failure(e.message, error_code="WALLET_FROZEN")
        except IntegrityError:
            # Concurrent open with the same client key
            existing = EscrowRecord.objects.filter(
                idempotency_key=params.idempotency_key
            ).first()
            if existing is None:
                raise
            return ServiceResult.success(existing)

        logger.info(
            "Escrow opened",
            extra={
                "escrow_id": str(escrow.id),
                "payer_id": str(params.payer.pk),
                "recipient_id": str(params.recipient.pk),
                "total_tokens": escrow.total_tokens,
                "transaction_type": escrow.transaction_type,
            },
        )
        return ServiceResult.success(escrow)

    # ==========================================================================
    # Release
    # ==========================================================================

    @classmethod
    def release_escrow(
        cls,
        escrow_id,
        actor: User | None = None,
        *,
        automatic: bool = False,
    ) -> ServiceResult[SettlementResult]:
        """
        Release an escrow to its recipient.

        Who may release:
            payer: any time while HELD
            recipient: once release_after has passed
            staff: any time, including DISPUTED escrows
            automatic sweep (actor=None, automatic=True): after
                auto_release_at, HELD only

        Nobody can release while a refund request on the escrow is open;
        that request is settled through the refund flow instead.
        """
        escrow = EscrowRecord.objects.filter(pk=escrow_id).first()
        if escrow is None:
            return cls._not_found(escrow_id)

        denial = cls._check_release_allowed(escrow, actor, automatic)
        if denial is not None:
            return denial

        return cls._settle(
            escrow.id,
            payer_tokens=0,
            recipient_tokens=escrow.recipient_tokens,
            platform_tokens=escrow.platform_tokens,
            action="release",
            allow_disputed=actor is not None and actor.is_staff,
            refuse_open_refund=True,
        )

    @classmethod
    def _check_release_allowed(
        cls, escrow: EscrowRecord, actor: User | None, automatic: bool
    ) -> ServiceResult | None:
        now = timezone.now()

        if escrow.state != EscrowState.HELD and not (
            escrow.state == EscrowState.DISPUTED and actor is not None and actor.is_staff
        ):
            return cls._not_held(escrow)

        if automatic:
            if now < escrow.auto_release_at:
                return ServiceResult.failure(
                    "Auto-release time not reached",
                    error_code="RELEASE_WINDOW_NOT_REACHED",
                )
        elif actor is None:
            return ServiceResult.failure(
                "Release requires an actor", error_code="PERMISSION_DENIED"
            )
        elif actor.pk == escrow.recipient_id and not actor.is_staff:
            if now < escrow.release_after:
                return ServiceResult.failure(
                    "Recipient cannot release before the release window",
                    error_code="RELEASE_WINDOW_NOT_REACHED",
                )
        elif not (actor.is_staff or actor.pk == escrow.payer_id):
            return ServiceResult.failure(
                "Only the payer, recipient or staff can release this escrow",
                error_code="PERMISSION_DENIED",
            )

        # Open requests are settled through the refund flow, staff included
        if cls._has_open_refund(escrow):
            return cls._refund_pending()
        return None

    # ==========================================================================
    # Refund
    # ==========================================================================

    @classmethod
    def refund_escrow(cls, escrow_id, refund_tokens: int) -> ServiceResult[SettlementResult]:
        """
        Return refund_tokens to the payer; split any remainder between
        recipient and platform with the escrow's own ratio.

        Called by the refund router and admin resolution, never directly
        from a view.
        """
        escrow = EscrowRecord.objects.filter(pk=escrow_id).first()
        if escrow is None:
            return cls._not_found(escrow_id)

        if not 0 < refund_tokens <= escrow.total_tokens:
            return ServiceResult.failure(
                f"Refund must be between 1 and {escrow.total_tokens} tokens",
                error_code="INVALID_AMOUNT",
            )

        remainder = distribute_remainder(
            escrow.total_tokens - refund_tokens, escrow.recipient_share_percent
        )
        return cls._settle(
            escrow.id,
            payer_tokens=refund_tokens,
            recipient_tokens=remainder.recipient_tokens,
            platform_tokens=remainder.platform_tokens,
            action="refund",
            allow_disputed=True,
        )

    # ==========================================================================
    # Outcomes
    # ==========================================================================

    @classmethod
    def settle_outcome(
        cls,
        escrow_id,
        outcome: str,
        refund_tokens: int | None = None,
    ) -> ServiceResult[SettlementResult]:
        """
        Settle an escrow according to a refund outcome.

        creator_wins releases to the recipient; full and partial refund the
        payer. refund_tokens overrides the computed amount for partial
        outcomes chosen by staff. A refund that rounds down to zero tokens
        is a release.
        """
        escrow = EscrowRecord.objects.filter(pk=escrow_id).first()
        if escrow is None:
            return cls._not_found(escrow_id)

        if refund_tokens is None:
            refund_tokens = refund_amount(escrow.total_tokens, outcome)

        if refund_tokens == 0:
            return cls._settle(
                escrow.id,
                payer_tokens=0,
                recipient_tokens=escrow.recipient_tokens,
                platform_tokens=escrow.platform_tokens,
                action="release",
                allow_disputed=True,
            )
        return cls.refund_escrow(escrow.id, refund_tokens)

    # ==========================================================================
    # Dispute & Delivery
    # ==========================================================================

    @classmethod
    def mark_disputed(cls, escrow_id) -> ServiceResult[EscrowRecord]:
        with cls.atomic():
            escrow = EscrowRecord.objects.select_for_update().filter(pk=escrow_id).first()
            if escrow is None:
                return cls._not_found(escrow_id)
            if escrow.state == EscrowState.DISPUTED:
                return ServiceResult.success(escrow)
            if escrow.state != EscrowState.HELD:
                return cls._not_held(escrow)
            escrow.dispute()
            escrow.save()

        cls.get_logger().info("Escrow disputed", extra={"escrow_id": str(escrow.id)})
        return ServiceResult.success(escrow)

    @classmethod
    def update_delivery(
        cls,
        escrow_id,
        actor: User,
        *,
        message_delivered: bool | None = None,
        call_duration_seconds: int | None = None,
        booking_status: str | None = None,
    ) -> ServiceResult[EscrowRecord]:
        """Record delivery evidence. Only the recipient or staff may do this."""
        with cls.atomic():
            escrow = EscrowRecord.objects.select_for_update().filter(pk=escrow_id).first()
            if escrow is None:
                return cls._not_found(escrow_id)
            if not (actor.is_staff or actor.pk == escrow.recipient_id):
                return ServiceResult.failure(
                    "Only the recipient can record delivery",
                    error_code="PERMISSION_DENIED",
                )
            if escrow.is_settled:
                return cls._not_held(escrow)

            update_fields = ["updated_at"]
            if message_delivered is not None:
                escrow.message_delivered = message_delivered
                update_fields.append("message_delivered")
            if call_duration_seconds is not None:
                escrow.call_duration_seconds = call_duration_seconds
                update_fields.append("call_duration_seconds")
            if booking_status is not None:
                escrow.booking_status = booking_status
                update_fields.append("booking_status")
            escrow.save(update_fields=update_fields)

        return ServiceResult.success(escrow)

    # ==========================================================================
    # Cancellation
    # ==========================================================================

    @classmethod
    def cancel_booking(cls, escrow_id, actor: User) -> ServiceResult[SettlementResult]:
        """Apply the meeting/event cancellation policy and settle."""
        escrow = EscrowRecord.objects.filter(pk=escrow_id).first()
        if escrow is None:
            return cls._not_found(escrow_id)

        if actor.pk == escrow.payer_id:
            cancelled_by = CancelledBy.PAYER
        elif actor.pk == escrow.recipient_id:
            cancelled_by = CancelledBy.RECIPIENT
        else:
            return ServiceResult.failure(
                "Only the payer or recipient can cancel",
                error_code="PERMISSION_DENIED",
            )

        if escrow.state != EscrowState.HELD:
            return cls._not_held(escrow)
        if cls._has_open_refund(escrow):
            return cls._refund_pending()

        try:
            quote = quote_cancellation(
                transaction_type=escrow.transaction_type,
                recipient_tokens=escrow.recipient_tokens,
                platform_tokens=escrow.platform_tokens,
                cancelled_by=cancelled_by,
                scheduled_start=escrow.scheduled_start,
                now=timezone.now(),
            )
        except ValueError as e:
            return ServiceResult.failure(str(e), error_code="NO_CANCELLATION_POLICY")

        cls.get_logger().info(
            "Booking cancelled",
            extra={
                "escrow_id": str(escrow.id),
                "cancelled_by": cancelled_by,
                "policy": quote.policy,
                "refund_tokens": quote.refund_tokens,
            },
        )
        return cls._settle(
            escrow.id,
            payer_tokens=quote.refund_tokens,
            recipient_tokens=quote.recipient_tokens,
            platform_tokens=quote.platform_tokens,
            action="cancel",
            booking_status=BookingStatus.CANCELLED,
            refuse_open_refund=True,
        )

    # ==========================================================================
    # Voluntary Refund
    # ==========================================================================

    @classmethod
    def voluntary_refund(
        cls,
        escrow_id,
        actor: User,
        percent: int,
        reason: str = "",
    ) -> ServiceResult[SettlementResult]:
        """
        Let the recipient give back part of their own share.

        refund = recipient_tokens * percent // 100; the platform share is
        never refunded. A HELD escrow settles with the refund going to the
        payer. A RELEASED escrow moves the refund from the recipient's
        wallet to the payer's, once per escrow.

        The result carries the final split: recipient_tokens is what the
        recipient keeps.
        """
        escrow = EscrowRecord.objects.filter(pk=escrow_id).first()
        if escrow is None:
            return cls._not_found(escrow_id)
        if actor.pk != escrow.recipient_id:
            return ServiceResult.failure(
                "Only the recipient can issue a voluntary refund",
                error_code="PERMISSION_DENIED",
            )
        if not 0 <= percent <= 100:
            return ServiceResult.failure(
                "Refund percent must be between 0 and 100",
                error_code="INVALID_PERCENT",
            )

        refund_tokens = escrow.recipient_tokens * percent // 100
        if refund_tokens == 0:
            return ServiceResult.failure(
                "Refund rounds down to zero tokens", error_code="INVALID_AMOUNT"
            )

        cls.get_logger().info(
            "Voluntary refund requested",
            extra={
                "escrow_id": str(escrow.id),
                "percent": percent,
                "refund_tokens": refund_tokens,
                "reason": reason,
            },
        )

        if escrow.state == EscrowState.HELD:
            return cls._settle(
                escrow.id,
                payer_tokens=refund_tokens,
                recipient_tokens=escrow.recipient_tokens - refund_tokens,
                platform_tokens=escrow.platform_tokens,
                action="voluntary_refund",
                refuse_open_refund=True,
            )
        if escrow.state == EscrowState.RELEASED:
            return cls._return_released_share(escrow.id, refund_tokens, reason)
        return cls._not_held(escrow)

    @classmethod
    def _return_released_share(
        cls, escrow_id, refund_tokens: int, reason: str
    ) -> ServiceResult[SettlementResult]:
        logger = cls.get_logger()
        try:
            with settlement_lock(escrow_id), cls.atomic():
                escrow = EscrowRecord.objects.select_for_update().get(pk=escrow_id)
                if escrow.state != EscrowState.RELEASED:
                    return cls._not_held(escrow)
                if escrow.refunded_tokens > 0:
                    return ServiceResult.failure(
                        "A voluntary refund was already issued for this escrow",
                        error_code="ALREADY_REFUNDED",
                    )

                ledger.record_entry(
                    RecordEntryParams(
                        debit_account_id=ledger.get_wallet(escrow.recipient_id).id,
                        credit_account_id=ledger.get_wallet(escrow.payer_id).id,
                        amount_tokens=refund_tokens,
                        entry_type=EntryType.VOLUNTARY_REFUND,
                        idempotency_key=f"escrow:{escrow.id}:voluntary_refund",
                        reference_type=REFERENCE_TYPE,
                        reference_id=escrow.id,
                        description=reason or "Voluntary refund",
                        created_by="escrow_service",
                    )
                )
                escrow.refunded_tokens = refund_tokens
                escrow.save(update_fields=["refunded_tokens", "updated_at"])
        except LockAcquisitionError:
            return ServiceResult.failure(
                "Escrow is being settled by another request",
                error_code="LOCK_CONTENTION",
            )
        except InsufficientBalance as e:
            return ServiceResult.failure(e.message, error_code="INSUFFICIENT_BALANCE")
        except InactiveAccount as e:
            return ServiceResult.failure(e.message, error_code="WALLET_FROZEN")

        logger.info(
            "Released share returned to payer",
            extra={"escrow_id": str(escrow.id), "refund_tokens": refund_tokens},
        )
        return ServiceResult.success(
            SettlementResult(
                escrow=escrow,
                payer_tokens=refund_tokens,
                recipient_tokens=escrow.recipient_tokens - refund_tokens,
                platform_tokens=escrow.platform_tokens,
            )
        )

    # ==========================================================================
    # Settlement
    # ==========================================================================

    @classmethod
    def _settle(
        cls,
        escrow_id,
        *,
        payer_tokens: int,
        recipient_tokens: int,
        platform_tokens: int,
        action: str,
        allow_disputed: bool = False,
        booking_status: str | None = None,
        refuse_open_refund: bool = False,
    ) -> ServiceResult[SettlementResult]:
        logger = cls.get_logger()
        try:
            with settlement_lock(escrow_id):
                return cls._execute_settlement(
                    escrow_id,
                    payer_tokens=payer_tokens,
                    recipient_tokens=recipient_tokens,
                    platform_tokens=platform_tokens,
                    action=action,
                    allow_disputed=allow_disputed,
                    booking_status=booking_status,
                    refuse_open_refund=refuse_open_refund,
                )
        except LockAcquisitionError:
            logger.warning(
                "Escrow settlement lock contention",
                extra={"escrow_id": str(escrow_id), "action": action},
            )
            return ServiceResult.failure(
                "Escrow is being settled by another request",
                error_code="LOCK_CONTENTION",
            )
        except Exception:
            logger.error(
                "Escrow settlement failed",
                extra={"escrow_id": str(escrow_id), "action": action},
                exc_info=True,
            )
            return ServiceResult.failure(
                "Escrow settlement failed", error_code="SETTLEMENT_FAILED"
            )

    @classmethod
    def _execute_settlement(
        cls,
        escrow_id,
        *,
        payer_tokens: int,
        recipient_tokens: int,
        platform_tokens: int,
        action: str,
        allow_disputed: bool,
        booking_status: str | None,
        refuse_open_refund: bool = False,
    ) -> ServiceResult[SettlementResult]:
        with cls.atomic():
            escrow = EscrowRecord.objects.select_for_update().get(pk=escrow_id)

            # Double-check after the row lock
            allowed = [EscrowState.HELD]
            if allow_disputed:
                allowed.append(EscrowState.DISPUTED)
            if escrow.state not in allowed:
                return cls._not_held(escrow)
            if refuse_open_refund and cls._has_open_refund(escrow):
                return cls._refund_pending()

            if payer_tokens + recipient_tokens + platform_tokens != escrow.total_tokens:
                raise ValueError(
                    f"Settlement of escrow {escrow.id} does not add up to its total"
                )

            escrow_account = ledger.get_platform_account(AccountType.PLATFORM_ESCROW)
            key_prefix = f"escrow:{escrow.id}:{action}"
            movements = [
                (payer_tokens, ledger.get_wallet(escrow.payer_id), EntryType.REFUND, "payer"),
                (
                    recipient_tokens,
                    ledger.get_wallet(escrow.recipient_id),
                    EntryType.ESCROW_RELEASE,
                    "recipient",
                ),
                (
                    platform_tokens,
                    ledger.get_platform_account(AccountType.PLATFORM_REVENUE),
                    EntryType.PLATFORM_FEE,
                    "fee",
                ),
            ]
            ledger.record_entries([
                RecordEntryParams(
                    debit_account_id=escrow_account.id,
                    credit_account_id=account.id,
                    amount_tokens=amount,
                    entry_type=entry_type,
                    idempotency_key=f"{key_prefix}:{suffix}",
                    reference_type=REFERENCE_TYPE,
                    reference_id=escrow.id,
                    created_by="escrow_service",
                )
                for amount, account, entry_type, suffix in movements
                if amount > 0
            ])

            if payer_tokens > 0:
                escrow.refund(payer_tokens)
            else:
                escrow.release()
            if booking_status is not None:
                escrow.booking_status = booking_status
            escrow.save()

            escrow_settled.send(
                sender=EscrowRecord,
                escrow=escrow,
                payer_tokens=payer_tokens,
                recipient_tokens=recipient_tokens,
                platform_tokens=platform_tokens,
            )

        cls.get_logger().info(
            "Escrow settled",
            extra={
                "escrow_id": str(escrow.id),
                "action": action,
                "state": escrow.state,
                "payer_tokens": payer_tokens,
                "recipient_tokens": recipient_tokens,
                "platform_tokens": platform_tokens,
            },
        )
        return ServiceResult.success(
            SettlementResult(
                escrow=escrow,
                payer_tokens=payer_tokens,
                recipient_tokens=recipient_tokens,
                platform_tokens=platform_tokens,
            )
        )

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @staticmethod
    def _has_open_refund(escrow: EscrowRecord) -> bool:
        return RefundRequest.objects.filter(
            escrow=escrow, state__in=RefundRequestState.open_states()
        ).exists()

    @staticmethod
    def _refund_pending() -> ServiceResult:
        return ServiceResult.failure(
            "Escrow has an open refund request", error_code="REFUND_PENDING"
        )

    @staticmethod
    def _not_found(escrow_id) -> ServiceResult:
        return ServiceResult.failure(
            f"Escrow {escrow_id} not found", error_code="ESCROW_NOT_FOUND"
        )

    @staticmethod
    def _not_held(escrow: EscrowRecord) -> ServiceResult:
        return ServiceResult.failure(
            f"Escrow {escrow.id} is not HELD (current state: {escrow.state})",
            error_code="INVALID_STATE",
        )
