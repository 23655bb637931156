# apps/assessment/serializers.py

from rest_framework import serializers
from .models import ReportCard, ReportCardResult, TeacherPerformance


class ReportCardResultSerializer(serializers.ModelSerializer):
    """
    Serializer for one subject line of a report card.
    """
    subject_name = serializers.CharField(source='subject.name', read_only=True)

    class Meta:
        model = ReportCardResult
        fields = [
            'subject', 'subject_name',
            'assessment1', 'assessment1_max', 'assessment2', 'assessment2_max',
            'test', 'test_max', 'exam', 'exam_max',
            'total', 'max_total', 'percentage', 'decision',
        ]
        read_only_fields = fields


class ReportCardSerializer(serializers.ModelSerializer):
    """
    Serializer for ReportCard model with display fields for student, class and term.
    """
    student_name = serializers.CharField(source='student.full_name', read_only=True)
    registration_number = serializers.CharField(source='student.registration_number', read_only=True)
    class_name = serializers.CharField(source='class_enrolled.name', read_only=True)
    term_number = serializers.IntegerField(source='term.term_number', read_only=True)
    results = ReportCardResultSerializer(many=True, read_only=True)

    class Meta:
        model = ReportCard
        fields = [
            'id', 'student', 'student_name', 'registration_number',
            'class_enrolled', 'class_name', 'academic_year', 'term', 'term_number',
            'school', 'results', 'total_score', 'average', 'rank',
            'passing_threshold', 'remarks', 'updated_at',
        ]
        read_only_fields = fields


class TeacherPerformanceSerializer(serializers.ModelSerializer):
    teacher_name = serializers.CharField(source='teacher.full_name', read_only=True)

    class Meta:
        model = TeacherPerformance
        fields = [
            'id', 'teacher', 'teacher_name', 'academic_year', 'term',
            'total_students', 'average_score', 'competency_rate', 'rank', 'remarks',
        ]
        read_only_fields = fields


class ReportRequestSerializer(serializers.Serializer):
    """
    Parameters accepted by the report generation endpoints.
    Which ones are required depends on the scope.
    """
    school_id = serializers.UUIDField()
    academic_year = serializers.IntegerField(min_value=1900)
    term_id = serializers.UUIDField(required=False, allow_null=True)
    student_id = serializers.UUIDField(required=False, allow_null=True)
    class_id = serializers.UUIDField(required=False, allow_null=True)
    subject_id = serializers.UUIDField(required=False, allow_null=True)
    trade_id = serializers.UUIDField(required=False, allow_null=True)
    assessment_type = serializers.CharField(required=False, allow_blank=True)
    passing_threshold = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, allow_null=True
    )


class ManualResultSerializer(serializers.Serializer):
    subject = serializers.UUIDField()
    scores = serializers.DictField(child=serializers.DecimalField(max_digits=6, decimal_places=2))


class ManualReportCardSerializer(serializers.Serializer):
    """
    A report card entered by hand.
    """
    school_id = serializers.UUIDField()
    academic_year = serializers.IntegerField(min_value=1900)
    term_id = serializers.UUIDField()
    student_id = serializers.UUIDField()
    class_id = serializers.UUIDField()
    results = ManualResultSerializer(many=True)
