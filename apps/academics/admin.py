# apps/academics/admin.py

from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from django.contrib import messages

from .models import Class, Enrollment, PromotionLog, Subject, Term, Trade


@admin.register(Trade)
class TradeAdmin(admin.ModelAdmin):
    """
    Admin interface for Trade model.
    """
    list_display = ('code', 'name', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('code', 'name', 'description')
    readonly_fields = ('created_at', 'updated_at')


@admin.register(Subject)
class SubjectAdmin(admin.ModelAdmin):
    """
    Admin interface for Subject model.
    """
    list_display = ('name', 'school', 'teacher', 'credits', 'is_active')
    list_filter = ('school', 'is_active', 'created_at')
    search_fields = ('name', 'description', 'teacher__email')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('teacher',)

    fieldsets = (
        (_('Subject Information'), {
            'fields': ('name', 'school', 'teacher', 'credits', 'is_active')
        }),
        (_('Description'), {
            'fields': ('description',),
            'classes': ('collapse',)
        }),
        (_('System Metadata'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


class EnrollmentInline(admin.TabularInline):
    """
    Inline admin for Class enrollments.
    """
    model = Enrollment
    extra = 0
    fields = ('student', 'term', 'promotion_status', 'is_active')
    readonly_fields = ('student', 'term', 'promotion_status', 'is_active')
    verbose_name_plural = _('Active Enrollments')
    max_num = 0

    def get_queryset(self, request):
        """Only show active enrollments."""
        return super().get_queryset(request).filter(
            is_active=True,
            is_deleted=False,
        ).select_related('student', 'term')


@admin.register(Class)
class ClassAdmin(admin.ModelAdmin):
    """
    Admin interface for Class model.
    """
    list_display = ('name', 'year', 'school', 'capacity', 'is_active')
    list_filter = ('level', 'trade', 'year', 'school')
    search_fields = ('trade__code', 'trade__name')
    readonly_fields = ('created_at', 'updated_at')
    filter_horizontal = ('subjects',)

    fieldsets = (
        (_('Class Information'), {
            'fields': ('level', 'trade', 'year', 'school', 'capacity', 'is_active')
        }),
        (_('Subjects'), {
            'fields': ('subjects',),
            'classes': ('collapse',)
        }),
        (_('System Metadata'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    inlines = [EnrollmentInline]


@admin.register(Term)
class TermAdmin(admin.ModelAdmin):
    list_display = ('name', 'academic_year', 'school', 'start_date', 'end_date')
    list_filter = ('academic_year', 'term_number', 'school')
    readonly_fields = ('created_at', 'updated_at')


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    """
    Admin interface for Enrollment model.
    """
    list_display = ('student', 'class_enrolled', 'term', 'promotion_status', 'is_active')
    list_filter = ('promotion_status', 'is_active', 'term__academic_year', 'class_enrolled__level')
    search_fields = ('student__email', 'student__registration_number', 'student__last_name')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('student',)

    fieldsets = (
        (_('Enrollment Information'), {
            'fields': ('student', 'class_enrolled', 'term', 'school', 'promotion_status', 'is_active')
        }),
        (_('Enrollment Details'), {
            'fields': ('transferred_from_school', 'remarks')
        }),
        (_('System Metadata'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['mark_as_withdrawn']

    def mark_as_withdrawn(self, request, queryset):
        """Admin action to mark enrollments as withdrawn."""
        updated = queryset.update(promotion_status=Enrollment.PromotionStatus.WITHDRAWN)
        self.message_user(request, f'{updated} enrollments marked as withdrawn.', messages.WARNING)
    mark_as_withdrawn.short_description = _('Mark selected enrollments as withdrawn')


@admin.register(PromotionLog)
class PromotionLogAdmin(admin.ModelAdmin):
    """
    Read-only admin for promotion decisions; log rows cannot be changed.
    """
    list_display = ('student', 'status', 'academic_year', 'from_class', 'to_class', 'promotion_date', 'cron_job')
    list_filter = ('status', 'academic_year', 'cron_job', 'school')
    search_fields = ('student__email', 'student__last_name', 'remarks')
    date_hierarchy = 'promotion_date'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
