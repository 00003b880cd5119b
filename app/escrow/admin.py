"""
Escrow admin configuration.

Ledger entries and escrow amounts are read-only here; corrections go
through new ledger entries or the admin resolution service.
"""

from django.contrib import admin

from escrow.ledger import ledger
from escrow.ledger.models import LedgerAccount, LedgerEntry
from escrow.models import EscrowRecord, FraudDetectionRecord, RefundRequest


@admin.register(LedgerAccount)
class LedgerAccountAdmin(admin.ModelAdmin):
    list_display = ["id", "type", "owner_id", "balance_display", "is_active", "created_at"]
    list_filter = ["type", "is_active", "allow_negative"]
    search_fields = ["id", "owner_id"]
    readonly_fields = ["id", "created_at", "balance_display"]
    ordering = ["-created_at"]
    actions = ["freeze_accounts", "unfreeze_accounts"]

    def balance_display(self, obj: LedgerAccount) -> str:
        return f"{obj.get_balance()} tokens"

    balance_display.short_description = "Balance"

    @admin.action(description="Freeze selected accounts")
    def freeze_accounts(self, request, queryset):
        """Frozen wallets can neither pay into escrow nor receive tokens."""
        count = self._set_active(queryset, False)
        self.message_user(request, f"Froze {count} accounts.")

    @admin.action(description="Unfreeze selected accounts")
    def unfreeze_accounts(self, request, queryset):
        count = self._set_active(queryset, True)
        self.message_user(request, f"Unfroze {count} accounts.")

    @staticmethod
    def _set_active(queryset, is_active: bool) -> int:
        changed = queryset.exclude(is_active=is_active).values_list("id", flat=True)
        account_ids = list(changed)
        for account_id in account_ids:
            ledger.set_account_active(account_id, is_active)
        return len(account_ids)


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    """Immutable: no add, change or delete."""

    list_display = [
        "id",
        "entry_type",
        "amount_tokens",
        "debit_account",
        "credit_account",
        "reference_type",
        "reference_id",
        "created_at",
    ]
    list_filter = ["entry_type", "reference_type"]
    search_fields = ["id", "idempotency_key", "reference_id"]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EscrowRecord)
class EscrowRecordAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "transaction_type",
        "payer",
        "recipient",
        "total_tokens",
        "state",
        "auto_release_at",
        "created_at",
    ]
    list_filter = ["state", "transaction_type"]
    search_fields = ["id", "payer__email", "recipient__email", "reference"]
    readonly_fields = [
        "id",
        "payer",
        "recipient",
        "total_tokens",
        "recipient_share_percent",
        "recipient_tokens",
        "platform_tokens",
        "refunded_tokens",
        "state",
        "released_at",
        "refunded_at",
        "disputed_at",
        "version",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]


@admin.register(RefundRequest)
class RefundRequestAdmin(admin.ModelAdmin):
    list_display = ["id", "escrow", "reason", "tier", "state", "outcome", "fraud_flagged", "created_at"]
    list_filter = ["state", "tier", "reason", "fraud_flagged"]
    search_fields = ["id", "requester__email", "escrow__id"]
    readonly_fields = ["id", "state", "outcome", "refund_tokens", "resolved_by", "resolved_at", "version"]
    ordering = ["-created_at"]


@admin.register(FraudDetectionRecord)
class FraudDetectionRecordAdmin(admin.ModelAdmin):
    list_display = ["id", "user", "pattern", "confidence", "severity", "action", "created_at"]
    list_filter = ["pattern", "severity", "action"]
    search_fields = ["user__email", "pattern"]
    ordering = ["-created_at"]
