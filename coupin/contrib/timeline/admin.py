"""Timeline admin."""

from django.contrib import admin

from coupin.contrib.timeline.models import TimelineEntry


@admin.register(TimelineEntry)
class TimelineEntryAdmin(admin.ModelAdmin):
    list_display = ["year", "title", "sort_order", "is_published", "updated_at"]
    list_editable = ["sort_order", "is_published"]
    list_filter = ["is_published", "year"]
    search_fields = ["title", "description"]
    readonly_fields = ["created_at", "updated_at"]
