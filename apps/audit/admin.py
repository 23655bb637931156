# apps/audit/admin.py
from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """
    Admin interface for AuditLog model.
    """
    list_display = ('action', 'model_name', 'object_id', 'user', 'timestamp')
    list_filter = ('action', 'model_name', 'timestamp')
    search_fields = ('user__email', 'model_name', 'object_id')
    readonly_fields = ('user', 'action', 'model_name', 'object_id', 'details',
                      'timestamp', 'created_at', 'updated_at')
    date_hierarchy = 'timestamp'

    fieldsets = (
        (_('Audit Information'), {
            'fields': ('user', 'action', 'model_name', 'object_id', 'timestamp')
        }),
        (_('Details'), {
            'fields': ('details',),
        }),
        (_('System Metadata'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def has_add_permission(self, request):
        """Audit events are written by the services only."""
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        """Allow deletion only for superusers."""
        return request.user.is_superuser
