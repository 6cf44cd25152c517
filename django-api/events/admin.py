from django.contrib import admin

from events.models import Event, EventTranslation


class EventTranslationInline(admin.TabularInline):
    model = EventTranslation
    extra = 1


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = [
        "title",
        "pricing_type",
        "ticket_price",
        "capacity",
        "is_published",
        "start_at",
    ]
    list_filter = ["is_published", "pricing_type"]
    search_fields = ["title", "location"]
    inlines = [EventTranslationInline]
