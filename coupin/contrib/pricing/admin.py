"""Pricing admin."""

from django.contrib import admin
from django.utils.html import format_html

from coupin.contrib.pricing.models import PricingPlan
from coupin.contrib.pricing.service import PricingService


@admin.register(PricingPlan)
class PricingPlanAdmin(admin.ModelAdmin):
    list_display = ["name", "price_display", "billing_cycle", "popular_badge", "sort_order", "is_active"]
    list_editable = ["sort_order", "is_active"]
    list_filter = ["is_active", "billing_cycle"]
    search_fields = ["name"]
    readonly_fields = ["created_at", "updated_at"]
    actions = ["reset_to_defaults"]

    def price_display(self, obj):
        return PricingService.format_price(obj.price, obj.currency)

    price_display.short_description = "Price"

    def popular_badge(self, obj):
        if not obj.is_popular:
            return ""
        return format_html(
            '<span style="background:#7c3aed; color:#fff; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            "popular",
        )

    popular_badge.short_description = "Popular"

    @admin.action(description="Replace all plans with the defaults")
    def reset_to_defaults(self, request, queryset):
        created = PricingService.force_refresh()
        self.message_user(request, f"{created} default plans created.")
