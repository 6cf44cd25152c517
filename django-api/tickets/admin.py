from django.contrib import admin

from tickets.models import Ticket, TicketCheckinLog


class TicketCheckinLogInline(admin.TabularInline):
    model = TicketCheckinLog
    extra = 0
    readonly_fields = ["admin", "created_at"]
    can_delete = False


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = [
        "ticket_code",
        "full_name",
        "email",
        "event",
        "status",
        "checkin_status",
        "total_price",
        "created_at",
    ]
    list_filter = ["status", "checkin_status", "event"]
    search_fields = ["ticket_code", "full_name", "email", "whatsapp"]
    readonly_fields = ["ticket_code", "qr_url", "checked_in_at", "created_at", "updated_at"]
    inlines = [TicketCheckinLogInline]


@admin.register(TicketCheckinLog)
class TicketCheckinLogAdmin(admin.ModelAdmin):
    list_display = ["ticket", "admin", "created_at"]
    list_select_related = ["ticket", "admin"]
