# settlements/admin.py

from django.contrib import admin

from settlements.models import ContactAlias, Settlement


@admin.register(Settlement)
class SettlementAdmin(admin.ModelAdmin):
    list_display = ("group", "payer_kind", "payer_user", "payee_kind", "payee_user", "amount", "date")
    readonly_fields = ("recorded_by", "created_at")
    list_filter = ("payer_kind", "payee_kind")
    search_fields = ("group__name", "payer_guest_name", "payee_guest_name")


@admin.register(ContactAlias)
class ContactAliasAdmin(admin.ModelAdmin):
    list_display = ("display_name", "owner", "user", "confirmed", "created_at")
    list_filter = ("confirmed",)
    search_fields = ("display_name", "owner__email", "user__email")
