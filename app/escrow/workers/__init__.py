"""
Celery workers for escrow settlement.

Usage:
    from escrow.workers import process_due_escrows, release_single_escrow
"""

from escrow.workers.auto_release import process_due_escrows, release_single_escrow

__all__ = [
    "process_due_escrows",
    "release_single_escrow",
]
