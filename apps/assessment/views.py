# apps/assessment/views.py

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.academics.promotion import PromotionService
from apps.core.exceptions import PreconditionError
from apps.core.mixins import ServiceErrorMixin

from .serializers import (
    ManualReportCardSerializer,
    ReportCardSerializer,
    ReportRequestSerializer,
    TeacherPerformanceSerializer,
)
from .services import ReportService


class GenerateReportView(ServiceErrorMixin, APIView):
    """
    POST /api/reports/<scope>/generate/

    Generates (or regenerates) the report for one scope and returns the
    persisted, ranked report cards or the computed report rows.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, scope):
        handler = getattr(self, 'generate_' + scope.replace('-', '_'), None)
        if handler is None:
            raise PreconditionError(f"Unknown report scope '{scope}'")
        data = self.validated_data(ReportRequestSerializer, request.data)
        return handler(ReportService(user=request.user), data)

    def generate_student(self, service, data):
        card = service.generate_student_report(
            data['school_id'], data['academic_year'], data.get('term_id'), data.get('student_id'),
            passing_threshold=data.get('passing_threshold'),
        )
        if card is None:
            return Response(
                {'message': 'No graded submissions found for this student and term.', 'report_card': None},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({
            'message': 'Student report generated successfully.',
            'report_card': ReportCardSerializer(card).data,
        })

    def _cards(self, label, cards):
        return Response({
            'message': f'{label} report generated successfully.',
            'report_cards': ReportCardSerializer(cards, many=True).data,
        })

    def generate_class(self, service, data):
        cards = service.generate_class_report(
            data['school_id'], data['academic_year'], data.get('term_id'), data.get('class_id'),
            passing_threshold=data.get('passing_threshold'),
        )
        return self._cards('Class', cards)

    def generate_term(self, service, data):
        cards = service.generate_term_report(
            data['school_id'], data['academic_year'], data.get('term_id'),
            passing_threshold=data.get('passing_threshold'),
        )
        return self._cards('Term', cards)

    def generate_school(self, service, data):
        cards = service.generate_school_report(
            data['school_id'], data['academic_year'],
            passing_threshold=data.get('passing_threshold'),
        )
        return self._cards('School', cards)

    def generate_subject(self, service, data):
        cards = service.generate_subject_report(
            data['school_id'], data['academic_year'], data.get('term_id'), data.get('subject_id'),
            passing_threshold=data.get('passing_threshold'),
        )
        return self._cards('Subject', cards)

    def generate_trade(self, service, data):
        cards = service.generate_trade_report(
            data['school_id'], data['academic_year'], data.get('term_id'), data.get('trade_id'),
            passing_threshold=data.get('passing_threshold'),
        )
        return self._cards('Trade', cards)

    def generate_teacher(self, service, data):
        records = service.generate_teacher_report(data['school_id'], data['academic_year'], data.get('term_id'))
        return Response({
            'message': 'Teacher performance report generated successfully.',
            'report': TeacherPerformanceSerializer(records, many=True).data,
        })

    def generate_class_performance(self, service, data):
        rows = service.generate_class_performance_report(
            data['school_id'], data['academic_year'], data.get('term_id'),
        )
        return Response({'message': 'Class performance report generated successfully.', 'report': rows})

    def generate_assessment(self, service, data):
        rows = service.generate_assessment_report(
            data['school_id'], data['academic_year'], data.get('term_id'), data.get('assessment_type'),
            student=data.get('student_id'), klass=data.get('class_id'),
        )
        category = data.get('assessment_type')
        return Response({'message': f'{category} report generated successfully.', 'report': rows})

    def generate_promotion_eligibility(self, service, data):
        rows = PromotionService().eligibility_report(data['school_id'], data['academic_year'])
        return Response({'message': 'Promotion eligibility report generated successfully.', 'report': rows})


class CreateReportCardView(ServiceErrorMixin, APIView):
    """
    POST /api/reports/create/
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        data = self.validated_data(ManualReportCardSerializer, request.data)
        card = ReportService(user=request.user).create_report_card(
            data['school_id'],
            data['academic_year'],
            data['term_id'],
            data['student_id'],
            data['class_id'],
            [dict(entry) for entry in data['results']],
        )
        return Response(
            {'message': 'Report card created successfully.', 'report_card': ReportCardSerializer(card).data},
            status=status.HTTP_201_CREATED,
        )
