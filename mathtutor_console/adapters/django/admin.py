"""Admin for stored console values (mathtutor_console Django adapter)."""
from django.contrib import admin

from mathtutor_console.adapters.django.models import StoredValue


@admin.register(StoredValue)
class StoredValueAdmin(admin.ModelAdmin):
    """Admin interface for StoredValue (one row per storage key)."""

    list_display = ("key", "value_size", "updated_at")
    search_fields = ("key",)
    readonly_fields = ("created_at", "updated_at")
    ordering = ["key"]

    @admin.display(description="Size")
    def value_size(self, obj):
        return len(obj.value or "")
