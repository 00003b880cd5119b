"""
Escrow-specific exceptions.

Exception Hierarchy:
    BaseApplicationError
    ├── EscrowError - Base for escrow domain errors
    │   └── SettlementFailedError - Settlement failure seen by a worker
    └── ConflictError
        ├── StaleRecordError - Optimistic lock version mismatch
        └── LockAcquisitionError - Distributed lock contention

Services catch these and return ServiceResult failures; they do not reach
the views. Celery workers raise SettlementFailedError so the task's retry
policy applies.
"""

from core.exceptions import BaseApplicationError, ConflictError


class EscrowError(BaseApplicationError):
    default_error_code: str = "ESCROW_ERROR"


class SettlementFailedError(EscrowError):
    """
    Raised by a worker when a settlement failed for a reason that can clear
    up on a later attempt: lock contention or a database error in the ledger.
    """

    default_error_code: str = "SETTLEMENT_FAILED"


class StaleRecordError(ConflictError):
    """
    Raised when a record was modified after the caller read it.

    Example:
        raise StaleRecordError(
            "RefundRequest 123 has been modified",
            details={"expected_version": 3, "current_version": 4},
        )
    """

    default_error_code: str = "STALE_RECORD"


class LockAcquisitionError(ConflictError):
    """Raised when a distributed lock cannot be acquired in time."""

    default_error_code: str = "LOCK_CONTENTION"
