# apps/core/admin.py

from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from .models import School


@admin.register(School)
class SchoolAdmin(admin.ModelAdmin):
    """
    Admin interface for School model.
    """
    list_display = ('code', 'name', 'category', 'is_active', 'is_deleted')
    list_filter = ('category', 'is_active', 'is_deleted')
    search_fields = ('code', 'name')
    readonly_fields = ('created_at', 'updated_at', 'deleted_at')

    fieldsets = (
        (_('School Details'), {
            'fields': ('code', 'name', 'category')
        }),
        (_('Contact'), {
            'fields': ('address', 'contact_email', 'contact_phone'),
            'classes': ('collapse',)
        }),
        (_('System Metadata'), {
            'fields': ('is_active', 'is_deleted', 'deleted_at', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        """Make code read-only for existing schools."""
        if obj:
            return self.readonly_fields + ('code',)
        return self.readonly_fields
