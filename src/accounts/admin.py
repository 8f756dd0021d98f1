from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from accounts.models import DoorlistUser


@admin.register(DoorlistUser)
class DoorlistUserAdmin(UserAdmin):  # type: ignore[type-arg]
    list_display = ["username", "email", "first_name", "last_name", "role", "is_active"]
    list_filter = ["role", "is_active", "is_staff"]
    search_fields = ["username", "email", "first_name", "last_name"]
    fieldsets = (
        *(UserAdmin.fieldsets or ()),
        ("Platform", {"fields": ("role", "phone_number")}),
    )
