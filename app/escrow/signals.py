"""
Escrow signals.

escrow_settled fires inside the settlement transaction, after the ledger
entries are written. Receivers run in the same transaction, so a failing
receiver rolls the settlement back.

Keyword arguments:
    escrow: The settled EscrowRecord
    payer_tokens: Tokens returned to the payer
    recipient_tokens: Tokens credited to the recipient
    platform_tokens: Tokens credited to platform revenue
"""

from django.dispatch import Signal

escrow_settled = Signal()
