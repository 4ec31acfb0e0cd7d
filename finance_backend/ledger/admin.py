# ledger/admin.py

from django.contrib import admin

from ledger.models import ConfirmationRequest, DebtPairLock, LedgerEntry


# ======================================================
# LEDGER ENTRY ADMIN
# ======================================================


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "owner",
        "kind",
        "amount",
        "counterparty_kind",
        "confirmation_state",
        "is_settled",
        "is_proxy",
        "date",
    )
    readonly_fields = (
        "linked_entry",
        "created_at",
        "updated_at",
    )
    search_fields = ("owner__email", "owner__username", "description", "counterparty_guest_name")
    list_filter = ("kind", "confirmation_state", "settlement_state", "is_settled", "is_proxy")
    raw_id_fields = ("owner", "counterparty_user", "counterparty_contact")


# ======================================================
# CONFIRMATION REQUEST ADMIN
# ======================================================


@admin.register(ConfirmationRequest)
class ConfirmationRequestAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "request_kind",
        "initiator",
        "recipient",
        "amount",
        "state",
        "created_at",
    )
    readonly_fields = (
        "request_kind",
        "initiator",
        "recipient",
        "target_entry",
        "amount",
        "created_at",
        "resolved_at",
    )
    list_filter = ("request_kind", "state")
    search_fields = ("initiator__email", "recipient__email", "description")


@admin.register(DebtPairLock)
class DebtPairLockAdmin(admin.ModelAdmin):
    list_display = ("user_low", "user_high", "created_at")
    readonly_fields = ("user_low", "user_high", "created_at")
