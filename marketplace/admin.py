from django.contrib import admin

from .models import Cart, CartItem, Order, OrderItem, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "seller_id", "category", "price", "stock_quantity", "is_active", "created_at")
    list_filter = ("is_active", "category", "created_at")
    search_fields = ("name", "description", "seller_id")
    readonly_fields = ("id", "version", "created_at", "updated_at")

    fieldsets = (
        ("Basic Information", {"fields": ("id", "name", "description", "seller_id", "category")}),
        ("Pricing & Inventory", {"fields": ("price", "stock_quantity", "version")}),
        ("Status", {"fields": ("is_active",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    fields = ("product", "quantity", "added_at")
    readonly_fields = ("added_at",)


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("buyer_id", "created_at", "updated_at")
    search_fields = ("buyer_id",)
    inlines = [CartItemInline]


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("product_id", "product_name", "category", "quantity", "unit_price", "total_price")
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "buyer_id", "seller_id", "status", "subtotal", "seller_amount", "currency", "created_at")
    list_filter = ("status", "currency", "created_at")
    search_fields = ("id", "checkout_id", "buyer_id", "seller_id", "payment_reference")
    readonly_fields = (
        "id",
        "checkout_id",
        "buyer_id",
        "seller_id",
        "subtotal",
        "handling_fee",
        "buyer_protection_fee",
        "tax_fee",
        "admin_amount",
        "seller_amount",
        "currency",
        "payment_reference",
        "shipping_details",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline]
