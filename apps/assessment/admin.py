# apps/assessment/admin.py

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import (
    AnswerScore, Exam, Question, ReportCard, ReportCardResult, Submission, TeacherPerformance
)


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0
    fields = ['order', 'question_type', 'text', 'max_score']


class ExamAdmin(admin.ModelAdmin):
    list_display = ['title', 'exam_type', 'subject', 'school', 'teacher', 'total_points', 'is_active']
    list_filter = ['exam_type', 'school', 'subject', 'is_active']
    search_fields = ['title', 'subject__name', 'teacher__email']
    readonly_fields = ['total_points', 'created_at', 'updated_at']
    filter_horizontal = ['classes']
    raw_id_fields = ['teacher']
    inlines = [QuestionInline]

    fieldsets = (
        (_('Basic Information'), {
            'fields': ('title', 'exam_type', 'school', 'subject', 'teacher', 'classes')
        }),
        (_('Marks'), {
            'fields': ('total_points',)
        }),
        (_('System Metadata'), {
            'fields': ('is_active', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


class AnswerScoreInline(admin.TabularInline):
    model = AnswerScore
    extra = 0
    fields = ['position', 'question', 'score', 'graded', 'feedback']
    raw_id_fields = ['question']


class SubmissionAdmin(admin.ModelAdmin):
    list_display = ['student', 'exam', 'status', 'total_score', 'percentage', 'submitted_at']
    list_filter = ['status', 'exam__exam_type', 'exam__school']
    search_fields = ['student__email', 'student__last_name', 'exam__title']
    readonly_fields = ['total_score', 'percentage']
    raw_id_fields = ['student', 'enrollment']
    inlines = [AnswerScoreInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('student', 'exam')


class ReportCardResultInline(admin.TabularInline):
    model = ReportCardResult
    extra = 0
    fields = ['subject', 'total', 'max_total', 'percentage', 'decision']
    readonly_fields = fields
    can_delete = False


class ReportCardAdmin(admin.ModelAdmin):
    list_display = ['student', 'class_enrolled', 'academic_year', 'term', 'total_score', 'average', 'rank']
    list_filter = ['academic_year', 'term__term_number', 'school', 'class_enrolled__level']
    search_fields = ['student__email', 'student__last_name', 'student__registration_number']
    readonly_fields = ['total_score', 'average', 'rank', 'created_at', 'updated_at']
    raw_id_fields = ['student']
    inlines = [ReportCardResultInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related(
            'student', 'class_enrolled__trade', 'term'
        )


class TeacherPerformanceAdmin(admin.ModelAdmin):
    list_display = ['teacher', 'academic_year', 'term', 'total_students', 'average_score', 'competency_rate', 'rank']
    list_filter = ['academic_year', 'school']
    search_fields = ['teacher__email', 'teacher__last_name']
    readonly_fields = ['total_students', 'average_score', 'competency_rate', 'rank']


admin.site.register(Exam, ExamAdmin)
admin.site.register(Submission, SubmissionAdmin)
admin.site.register(ReportCard, ReportCardAdmin)
admin.site.register(TeacherPerformance, TeacherPerformanceAdmin)
