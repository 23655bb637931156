# apps/academics/views.py

from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.mixins import ServiceErrorMixin

from .promotion import PromotionService
from .serializers import PromotionRequestSerializer, TermTransitionRequestSerializer


class PromoteStudentsView(ServiceErrorMixin, APIView):
    """
    POST /api/promotion/promote/

    Runs the year-end promotion for a school. Only a summary is returned;
    per-student decisions are in the promotion log.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        data = self.validated_data(PromotionRequestSerializer, request.data)
        summary = PromotionService().promote_students(
            data['school_id'], data['academic_year'], cron_job=data['cron_job'], user=request.user,
        )
        if summary.already_processed:
            message = 'Promotion already processed for this academic year.'
        else:
            message = 'Promotion process completed successfully.'
        return Response({'message': message, 'summary': summary.as_dict()})


class TransitionTermView(ServiceErrorMixin, APIView):
    """
    POST /api/promotion/transition/
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        data = self.validated_data(TermTransitionRequestSerializer, request.data)
        term_number = data['current_term_number']
        summary = PromotionService().transition_students_to_next_term(
            data['school_id'], data['academic_year'], term_number,
            cron_job=data['cron_job'], user=request.user,
        )
        if summary.already_processed:
            message = f'Term {term_number} already processed for transition.'
        else:
            message = f'Students successfully transitioned to Term {term_number + 1}.'
        return Response({'message': message, 'summary': summary.as_dict()})
