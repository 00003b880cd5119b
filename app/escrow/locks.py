"""
Concurrency control for escrow settlement.

1. DistributedLock: Redis mutual exclusion across web and worker processes,
   so a payer release, an auto-release sweep and a refund cannot settle the
   same escrow at once.
2. check_version: Optimistic locking for staff resolutions, which are made
   from a screen that may be stale.

Usage:
    with DistributedLock(f"escrow:settle:{escrow.id}", ttl=60):
        settle()

    with transaction.atomic():
        request = check_version(RefundRequest, request_id, expected_version=3)
"""

from __future__ import annotations

import time
import uuid as uuid_module
from typing import TYPE_CHECKING, TypeVar

from django.db import models, transaction
from django_redis import get_redis_connection

from core.exceptions import NotFoundError
from escrow.exceptions import LockAcquisitionError, StaleRecordError

if TYPE_CHECKING:
    from typing import Any

    from redis import Redis

T = TypeVar("T", bound=models.Model)


# =============================================================================
# Distributed Locks
# =============================================================================


class DistributedLock:
    """
    Redis lock with a TTL and an ownership token.

    Args:
        key: Lock identifier (prefixed with "lock:")
        ttl: Seconds before Redis drops the lock on its own
        blocking: Wait for the lock instead of failing immediately
        timeout: Maximum wait in seconds when blocking

    Raises:
        LockAcquisitionError: From acquire()/__enter__ when not obtained
    """

    # Delete only if we still own the key
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    RETRY_INTERVAL = 0.05

    def __init__(
        self,
        key: str,
        ttl: int = 30,
        blocking: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    def _try_acquire(self, redis: Redis) -> bool:
        return bool(redis.set(self.key, self._token, nx=True, ex=self.ttl))

    def acquire(self) -> bool:
        self._token = str(uuid_module.uuid4())
        redis = self._get_redis()

        if not self.blocking:
            if self._try_acquire(redis):
                return True
            self._token = None
            raise LockAcquisitionError(
                f"Lock '{self.key}' is already held",
                details={"key": self.key},
            )

        deadline = time.monotonic() + self.timeout
        while True:
            if self._try_acquire(redis):
                return True
            if time.monotonic() >= deadline:
                self._token = None
                raise LockAcquisitionError(
                    f"Failed to acquire lock '{self.key}' within {self.timeout}s",
                    details={"key": self.key, "timeout": self.timeout},
                )
            time.sleep(self.RETRY_INTERVAL)

    def release(self) -> bool:
        """Release if we hold it. Safe to call more than once."""
        if self._token is None:
            return False

        result = self._get_redis().eval(self.RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        return bool(result)

    @property
    def is_held(self) -> bool:
        return self._token is not None

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False


def settlement_lock(escrow_id: Any, **kwargs) -> DistributedLock:
    """Lock shared by every path that moves tokens out of one escrow."""
    options = {"ttl": 60, "blocking": True, "timeout": 10.0}
    options.update(kwargs)
    return DistributedLock(f"escrow:settle:{escrow_id}", **options)


# =============================================================================
# Optimistic Locking
# =============================================================================


def check_version(
    model_class: type[T],
    pk: Any,
    expected_version: int,
) -> T:
    """
    Lock a row for update if it still has the expected version.

    Must be called inside a transaction; the row lock is held until it ends.

    Raises:
        NotFoundError: If the record doesn't exist
        StaleRecordError: If the version moved on
    """
    model_name = model_class.__name__
    with transaction.atomic():
        instance = (
            model_class.objects.select_for_update()
            .filter(pk=pk, version=expected_version)
            .first()
        )

        if instance is None:
            current = model_class.objects.filter(pk=pk).values_list("version", flat=True).first()
            if current is None:
                raise NotFoundError(
                    f"{model_name} {pk} not found",
                    error_code=f"{model_name.upper()}_NOT_FOUND",
                    details={"pk": str(pk)},
                )
            raise StaleRecordError(
                f"{model_name} {pk} has been modified "
                f"(expected version {expected_version}, current {current})",
                details={
                    "pk": str(pk),
                    "expected_version": expected_version,
                    "current_version": current,
                },
            )

        return instance


__all__ = [
    "DistributedLock",
    "check_version",
    "settlement_lock",
]
