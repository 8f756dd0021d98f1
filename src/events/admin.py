import typing as t

from django.contrib import admin
from django.http import HttpRequest
from django.urls import reverse
from django.utils.html import format_html

from . import models


class UserLinkMixin:
    """Mixin to add a link to the attendee of a ticket."""

    def attendee_link(self, obj: models.Ticket) -> str:
        url = reverse("admin:accounts_doorlistuser_change", args=[obj.attendee_id])
        return format_html('<a href="{}">{}</a>', url, obj.attendee.username)

    attendee_link.short_description = "Attendee"  # type: ignore[attr-defined]


class TicketInline(admin.TabularInline):  # type: ignore[type-arg]
    model = models.Ticket
    extra = 0
    fields = ["ticket_number", "attendee", "status", "is_checked_in", "checked_in_at", "checked_in_by"]
    readonly_fields = fields
    can_delete = False
    show_change_link = True


@admin.register(models.Event)
class EventAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["title", "host", "status", "start", "capacity", "tickets_sold"]
    list_filter = ["status", "is_free", "start"]
    search_fields = ["title", "venue", "host__username"]
    date_hierarchy = "start"
    filter_horizontal = ["assigned_staff"]
    readonly_fields = ["tickets_sold", "created_at", "updated_at"]
    inlines = [TicketInline]


@admin.register(models.Ticket)
class TicketAdmin(admin.ModelAdmin, UserLinkMixin):  # type: ignore[type-arg]
    list_display = ["ticket_number", "event", "attendee_link", "status", "is_checked_in", "checked_in_at"]
    list_filter = ["status", "is_checked_in"]
    search_fields = ["ticket_number", "attendee__username", "attendee__email", "event__title"]
    list_select_related = ["event", "attendee"]
    readonly_fields = [
        "ticket_number",
        "is_checked_in",
        "checked_in_at",
        "checked_in_by",
        "cancelled_at",
        "created_at",
        "updated_at",
    ]


@admin.register(models.ScanAttempt)
class ScanAttemptAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Read-only view of the scan log."""

    list_display = ["created_at", "event", "ticket_number", "outcome", "actor", "actor_role"]
    list_filter = ["outcome", "actor_role"]
    search_fields = ["ticket_number", "actor__username", "event__title"]
    list_select_related = ["event", "actor"]

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    def has_change_permission(self, request: HttpRequest, obj: t.Any = None) -> bool:
        return False

    def has_delete_permission(self, request: HttpRequest, obj: t.Any = None) -> bool:
        return False
