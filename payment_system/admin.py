from django.contrib import admin
from django.utils.html import format_html

from .models import ExchangeRate, LedgerEntry, PaymentTracker, SellerWallet


@admin.register(PaymentTracker)
class PaymentTrackerAdmin(admin.ModelAdmin):
    """Terminal payment outcomes per checkout"""

    list_display = ["checkout_id", "buyer_id", "status_badge", "amount_display", "payment_reference", "created_at"]
    list_filter = ["status", "currency", "provider", "created_at"]
    search_fields = ["checkout_id", "buyer_id", "payment_reference"]
    readonly_fields = ["created_at", "updated_at"]

    fieldsets = (
        ("Checkout", {"fields": ("checkout_id", "buyer_id", "provider")}),
        ("Outcome", {"fields": ("status", "payment_reference", "amount_minor", "currency")}),
        ("Failure", {"fields": ("failure_code", "failure_reason"), "classes": ("collapse",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )

    def status_badge(self, obj):
        color = "green" if obj.is_succeeded else "red"
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, obj.get_status_display())

    status_badge.short_description = "Status"

    def amount_display(self, obj):
        return f"{obj.amount_minor} {obj.currency} (minor units)"

    amount_display.short_description = "Amount"


@admin.register(SellerWallet)
class SellerWalletAdmin(admin.ModelAdmin):
    list_display = ["seller_id", "available_balance", "pending_balance", "currency", "version", "updated_at"]
    search_fields = ["seller_id"]
    # Balances only move through settlement
    readonly_fields = ["available_balance", "pending_balance", "version", "created_at", "updated_at"]


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = ["order_id", "seller_id", "amount", "seller_amount", "admin_fees", "currency", "created_at"]
    list_filter = ["entry_type", "status", "currency"]
    search_fields = ["order_id", "checkout_id", "seller_id", "buyer_id", "payment_reference"]

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ExchangeRate)
class ExchangeRateAdmin(admin.ModelAdmin):
    list_display = ["base_currency", "target_currency", "rate", "source", "is_active", "created_at"]
    list_filter = ["base_currency", "target_currency", "is_active", "source"]
    ordering = ["-created_at"]
