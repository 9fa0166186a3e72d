"""Coupin admin (CORE only).

Contrib models have their own admin in their respective modules:
- coupin.contrib.loyalty.admin: LoyaltyProgramAdmin, LoyaltyMembershipAdmin, ...
- coupin.contrib.regional.admin: CurrencyAdmin, RegionAdmin
- coupin.contrib.pricing.admin: PricingPlanAdmin
- coupin.contrib.timeline.admin: TimelineEntryAdmin
"""

from django.contrib import admin
from django.utils.html import format_html

from coupin.models import (
    Business,
    Coupon,
    Customer,
    CustomerCoupon,
    ProcessedEvent,
    Redemption,
)
from coupin.utils import format_phone_with_spaces


def _customer_link(customer):
    from django.urls import reverse

    url = reverse("admin:coupin_customer_change", args=[customer.pk])
    return format_html('<a href="{}">{}</a>', url, customer.code)


# ===========================================
# Business Admin
# ===========================================


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "name",
        "industry",
        "currency",
        "tier_badge",
        "subscription_status",
        "customer_count",
        "is_active",
    ]
    list_filter = ["subscription_tier", "subscription_status", "is_active", "currency"]
    search_fields = ["code", "name", "email", "owner_uid"]
    readonly_fields = ["created_at", "updated_at"]

    fieldsets = [
        ("Identification", {"fields": ["code", "name", "owner_uid", "industry", "description"]}),
        ("Contact", {"fields": ["email", "phone", "website", "address"]}),
        ("Regional", {"fields": ["currency", "timezone"]}),
        ("Subscription", {"fields": ["subscription_tier", "subscription_status"]}),
        (
            "System",
            {"fields": ["is_active", "created_at", "updated_at"], "classes": ["collapse"]},
        ),
    ]

    def tier_badge(self, obj):
        colors = {
            "free": "#6c757d",
            "basic": "#0d6efd",
            "premium": "#7c3aed",
            "enterprise": "#111827",
        }
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            colors.get(obj.subscription_tier, "#6c757d"),
            obj.get_subscription_tier_display(),
        )

    tier_badge.short_description = "Tier"

    def customer_count(self, obj):
        return obj.customers.count()

    customer_count.short_description = "Customers"


# ===========================================
# Inline Classes (must be defined before CustomerAdmin)
# ===========================================


class CustomerCouponInline(admin.TabularInline):
    model = CustomerCoupon
    extra = 0
    fields = ["coupon", "allocated_at", "expires_at", "used", "used_at"]
    readonly_fields = ["allocated_at", "used_at"]
    raw_id_fields = ["coupon"]


class RedemptionInline(admin.TabularInline):
    model = Redemption
    fk_name = "customer"
    extra = 0
    fields = ["coupon", "amount", "discount", "reference", "redeemed_at"]
    readonly_fields = ["coupon", "amount", "discount", "reference", "redeemed_at"]
    max_num = 10
    verbose_name_plural = "Redemptions (last 10)"

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ===========================================
# Customer Admin
# ===========================================


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "name",
        "business",
        "phone_display",
        "total_visits",
        "total_spent",
        "linked_badge",
        "is_active",
    ]
    list_filter = ["business", "is_active"]
    search_fields = ["code", "first_name", "last_name", "phone", "email", "user_uid"]
    list_editable = ["is_active"]
    raw_id_fields = ["business"]
    readonly_fields = ["uuid", "joined_at", "updated_at"]
    inlines = [CustomerCouponInline, RedemptionInline]

    fieldsets = [
        ("Identification", {"fields": ["business", "code", "uuid", "first_name", "last_name", "birthdate"]}),
        ("Contact", {"fields": ["email", "phone", "user_uid"]}),
        ("Activity", {"fields": ["last_visit_at", "total_visits", "total_spent", "tags", "notes"]}),
        (
            "System",
            {
                "fields": ["is_active", "metadata", "joined_at", "updated_at"],
                "classes": ["collapse"],
            },
        ),
    ]

    def phone_display(self, obj):
        return format_phone_with_spaces(obj.phone) if obj.phone else ""

    phone_display.short_description = "Phone"

    def linked_badge(self, obj):
        if obj.user_uid:
            return format_html('<span style="color: green;">V</span>')
        return format_html('<span style="color: gray;">o</span>')

    linked_badge.short_description = "Account"


# ===========================================
# Coupon Admin
# ===========================================


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "title",
        "business",
        "coupon_type",
        "value",
        "usage_display",
        "status_badge",
        "ends_at",
    ]
    list_filter = ["coupon_type", "is_active", "first_time_only", "birthday_only"]
    search_fields = ["code", "title", "business__code", "business__name"]
    raw_id_fields = ["business"]
    readonly_fields = ["usage_count", "distribution_count", "created_at", "updated_at"]
    date_hierarchy = "created_at"

    fieldsets = [
        (None, {"fields": ["business", "code", "title", "description", "terms"]}),
        (
            "Discount",
            {
                "fields": [
                    "coupon_type",
                    "value",
                    "buy_quantity",
                    "get_quantity",
                    "free_item",
                    "min_purchase",
                    "max_discount",
                ]
            },
        ),
        ("Validity", {"fields": ["is_active", "starts_at", "ends_at"]}),
        (
            "Limits",
            {
                "fields": [
                    "usage_limit",
                    "usage_count",
                    "distribution_count",
                    "customer_limit",
                    "first_time_only",
                    "birthday_only",
                ]
            },
        ),
        ("Timestamps", {"fields": ["created_at", "updated_at"], "classes": ["collapse"]}),
    ]

    def usage_display(self, obj):
        if obj.usage_limit is None:
            return f"{obj.usage_count} / -"
        return f"{obj.usage_count} / {obj.usage_limit}"

    usage_display.short_description = "Used"

    def status_badge(self, obj):
        if not obj.is_active:
            color, label = "#6c757d", "inactive"
        elif obj.is_running():
            color, label = "#28a745", "running"
        else:
            color, label = "#ffc107", "scheduled/ended"
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            color,
            label,
        )

    status_badge.short_description = "Status"


# ===========================================
# Redemption Admin
# ===========================================


@admin.register(Redemption)
class RedemptionAdmin(admin.ModelAdmin):
    list_display = ["redeemed_at", "coupon", "customer_link", "business", "amount", "discount", "reference"]
    list_filter = ["business"]
    search_fields = ["coupon__code", "customer__code", "reference"]
    readonly_fields = ["coupon", "customer", "business", "amount", "discount", "reference", "redeemed_at"]
    date_hierarchy = "redeemed_at"

    def has_add_permission(self, request):
        return False

    def customer_link(self, obj):
        return _customer_link(obj.customer)

    customer_link.short_description = "Customer"


@admin.register(ProcessedEvent)
class ProcessedEventAdmin(admin.ModelAdmin):
    list_display = ["nonce", "provider", "processed_at"]
    list_filter = ["provider"]
    search_fields = ["nonce"]
    readonly_fields = ["nonce", "provider", "processed_at"]
