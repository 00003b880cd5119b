"""
Escrow app configuration.

Token ledger, escrow holds, tiered refund routing and fraud gating.
"""

from django.apps import AppConfig


class EscrowConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "escrow"
    verbose_name = "Escrow"
