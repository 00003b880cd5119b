"""
Escrow services.

- EscrowService: open, release, refund, dispute, delivery, cancellation
- RefundService: refund requests and tier routing
- AdminResolutionService: staff overrides
- WalletService: token issuance and balances
"""

from escrow.services.admin_resolution_service import AdminResolutionService
from escrow.services.escrow_service import EscrowService
from escrow.services.refund_service import RefundService
from escrow.services.wallet_service import WalletService

__all__ = [
    "AdminResolutionService",
    "EscrowService",
    "RefundService",
    "WalletService",
]
