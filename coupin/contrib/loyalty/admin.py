"""Loyalty admin."""

from django.contrib import admin
from django.utils.html import format_html

from coupin.contrib.loyalty.models import (
    LoyaltyMembership,
    LoyaltyProgram,
    LoyaltyReward,
    LoyaltyTier,
    LoyaltyTransaction,
    VisitRecord,
)


class LoyaltyTierInline(admin.TabularInline):
    model = LoyaltyTier
    extra = 0
    fields = ["name", "threshold", "multiplier", "benefits"]


class LoyaltyRewardInline(admin.TabularInline):
    model = LoyaltyReward
    extra = 0
    fk_name = "program"
    fields = ["name", "reward_type", "points_cost", "visits_cost", "tier_required", "is_active"]


@admin.register(LoyaltyProgram)
class LoyaltyProgramAdmin(admin.ModelAdmin):
    list_display = ["name", "business", "program_type", "member_count", "is_active", "created_at"]
    list_filter = ["program_type", "is_active"]
    search_fields = ["name", "business__code", "business__name"]
    raw_id_fields = ["business"]
    inlines = [LoyaltyTierInline, LoyaltyRewardInline]

    def member_count(self, obj):
        return obj.memberships.count()

    member_count.short_description = "Members"


class LoyaltyTransactionInline(admin.TabularInline):
    model = LoyaltyTransaction
    extra = 0
    readonly_fields = ["transaction_type", "points", "balance_after", "description", "reference", "created_at"]
    ordering = ["-created_at"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LoyaltyMembership)
class LoyaltyMembershipAdmin(admin.ModelAdmin):
    list_display = [
        "customer_link",
        "program",
        "points_balance",
        "lifetime_points",
        "visits",
        "tier",
        "is_active",
        "enrolled_at",
    ]
    list_filter = ["is_active", "program__program_type"]
    search_fields = ["customer__code", "customer__first_name", "customer__phone"]
    raw_id_fields = ["customer", "program"]
    readonly_fields = ["enrolled_at", "updated_at"]
    inlines = [LoyaltyTransactionInline]

    def customer_link(self, obj):
        from django.urls import reverse

        url = reverse("admin:coupin_customer_change", args=[obj.customer.pk])
        return format_html('<a href="{}">{}</a>', url, obj.customer.code)

    customer_link.short_description = "Customer"


@admin.register(LoyaltyTransaction)
class LoyaltyTransactionAdmin(admin.ModelAdmin):
    list_display = [
        "created_at",
        "customer_code",
        "transaction_type",
        "points_display",
        "balance_after",
        "description",
    ]
    list_filter = ["transaction_type"]
    search_fields = ["membership__customer__code", "description", "reference"]
    readonly_fields = [
        "membership",
        "transaction_type",
        "points",
        "balance_after",
        "description",
        "reference",
        "created_at",
        "created_by",
    ]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def customer_code(self, obj):
        return obj.membership.customer.code

    customer_code.short_description = "Customer"

    def points_display(self, obj):
        if obj.points > 0:
            return format_html('<span style="color:green">+{}</span>', obj.points)
        return format_html('<span style="color:red">{}</span>', obj.points)

    points_display.short_description = "Points"


@admin.register(VisitRecord)
class VisitRecordAdmin(admin.ModelAdmin):
    list_display = ["visited_at", "business", "customer_code", "amount_spent", "points_earned", "source"]
    list_filter = ["source"]
    search_fields = ["membership__customer__code", "business__code", "notes"]
    readonly_fields = ["visited_at"]
    raw_id_fields = ["membership", "business"]
    date_hierarchy = "visited_at"

    def customer_code(self, obj):
        return obj.membership.customer.code

    customer_code.short_description = "Customer"
