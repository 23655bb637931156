# apps/users/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Custom admin interface for User model.
    """
    list_display = ('email', 'full_name', 'role', 'school', 'graduated', 'is_active', 'is_deleted')
    list_filter = ('role', 'school', 'graduated', 'is_active', 'is_deleted')
    search_fields = ('email', 'first_name', 'last_name', 'registration_number')
    ordering = ('-date_joined',)
    readonly_fields = ('last_login', 'date_joined', 'graduation_date')

    fieldsets = (
        (None, {
            'fields': ('email', 'password')
        }),
        (_('Personal Info'), {
            'fields': ('first_name', 'last_name', 'registration_number')
        }),
        (_('School'), {
            'fields': ('role', 'school', 'graduated', 'graduation_date')
        }),
        (_('Permissions'), {
            'fields': ('is_active', 'is_deleted', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',)
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined'),
            'classes': ('collapse',)
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'first_name', 'last_name', 'role', 'school'),
        }),
    )

    def full_name(self, obj):
        return obj.full_name
    full_name.short_description = _('Full Name')
