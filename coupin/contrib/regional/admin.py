"""Regional admin."""

from django.contrib import admin
from django.utils.html import format_html

from coupin.contrib.regional.models import Currency, Region, RegionalPreference


@admin.register(Currency)
class CurrencyAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "symbol", "region", "status_badge", "updated_at", "updated_by"]
    list_filter = ["is_active", "region"]
    search_fields = ["code", "name"]
    readonly_fields = ["updated_at"]

    def status_badge(self, obj):
        color = "#28a745" if obj.is_active else "#6c757d"
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            color,
            "active" if obj.is_active else "inactive",
        )

    status_badge.short_description = "Status"

    def save_model(self, request, obj, form, change):
        obj.updated_by = request.user.get_username()
        super().save_model(request, obj, form, change)


@admin.register(Region)
class RegionAdmin(admin.ModelAdmin):
    list_display = ["code", "flag", "name", "currencies", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["code", "name"]


@admin.register(RegionalPreference)
class RegionalPreferenceAdmin(admin.ModelAdmin):
    list_display = ["user_key", "region", "currency", "explicit_currency_choice", "updated_at"]
    list_filter = ["explicit_currency_choice", "region", "currency"]
    search_fields = ["user_key"]
    readonly_fields = ["created_at", "updated_at"]
