# apps/assessment/services.py
"""
Report generation services.

Each public method is one unit of work: reference data is validated first,
scores are aggregated, report cards are upserted on their natural key with
their content fully replaced, and the result is ranked.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

from apps.academics.models import Enrollment
from apps.academics.validators import (
    validate_academic_year,
    validate_class,
    validate_school,
    validate_student,
    validate_subject,
    validate_term,
    validate_trade,
)
from apps.audit.models import AuditLog
from apps.core.exceptions import PreconditionError

from .aggregation import (
    CATEGORIES,
    ZERO,
    aggregate,
    decision_for,
    get_scope,
    percentage_of,
    round_half_up,
)
from .models import ReportCard, ReportCardResult, TeacherPerformance
from .ranking import rank_entities

logger = logging.getLogger(__name__)
User = get_user_model()

DEFAULT_CATEGORY_MAXIMA = {'assessment1': 15, 'assessment2': 15, 'test': 10, 'exam': 60}

REPORT_REMARKS = {
    'student': 'Generated for single student.',
    'class': 'Generated for class report.',
    'term': 'Generated for term report.',
    'school': 'Generated for school-wide report.',
    'subject': 'Generated for subject report.',
    'trade': 'Generated for trade report.',
}


class ReportService:
    """
    Service class for generating, persisting and ranking report cards.
    """

    def __init__(self, user=None):
        self.user = user

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _context(self, school, academic_year, term=None):
        school = validate_school(school)
        academic_year = validate_academic_year(academic_year)
        if term is None:
            return school, academic_year, None
        term = validate_term(term, school)
        if term.academic_year != academic_year:
            raise PreconditionError("Invalid term or mismatch with academic year.")
        return school, academic_year, term

    def _passing_threshold(self, passing_threshold):
        if passing_threshold in (None, ''):
            return Decimal('50')
        try:
            value = Decimal(str(passing_threshold))
        except InvalidOperation:
            raise PreconditionError("Passing threshold must be a number.")
        if not Decimal('0') <= value <= Decimal('100'):
            raise PreconditionError("Passing threshold must be between 0 and 100.")
        return value

    def _report_key(self, row, school, academic_year, year_wide):
        """(class_id, term_id) a student row is persisted against."""
        if year_wide:
            enrollment = (
                Enrollment.objects
                .filter(
                    student_id=row['student_id'],
                    school=school,
                    term__academic_year=academic_year,
                    is_active=True,
                    is_deleted=False,
                )
                .order_by('-term__term_number', '-created_at')
                .first()
            )
            if enrollment is not None:
                return enrollment.class_enrolled_id, enrollment.term_id
        return row['class_id'], row['term_id']

    def _persist(self, rows, scope, school, academic_year, passing_threshold, year_wide=False):
        cards = []
        for row in rows:
            class_id, term_id = self._report_key(row, school, academic_year, year_wide)
            card, created = ReportCard.objects.update_or_create(
                student_id=row['student_id'],
                class_enrolled_id=class_id,
                academic_year=academic_year,
                term_id=term_id,
                school=school,
                defaults={
                    'total_score': row['total_score'],
                    'average': row['average'],
                    'rank': None,
                    'passing_threshold': passing_threshold,
                    'remarks': REPORT_REMARKS.get(scope, ''),
                    'is_deleted': False,
                    'deleted_at': None,
                },
            )
            card.results.all().delete()
            ReportCardResult.objects.bulk_create([
                self._result_row(card, result) for result in row['results']
            ])
            cards.append(card)
        logger.info("Persisted %s %s report card(s) for %s", len(cards), scope, school)
        return cards

    def _result_row(self, card, result):
        scores = result['scores']
        maxima = result['max_scores']
        return ReportCardResult(
            report_card=card,
            subject_id=result['subject_id'],
            assessment1=scores.get('assessment1', ZERO),
            assessment1_max=maxima.get('assessment1', ZERO),
            assessment2=scores.get('assessment2', ZERO),
            assessment2_max=maxima.get('assessment2', ZERO),
            test=scores.get('test', ZERO),
            test_max=maxima.get('test', ZERO),
            exam=scores.get('exam', ZERO),
            exam_max=maxima.get('exam', ZERO),
            total=result['total'],
            max_total=result['max_total'],
            percentage=result['percentage'],
            decision=result['decision'],
        )

    def _generate(self, scope, rank_scope, school, academic_year, passing_threshold, **params):
        passing_threshold = self._passing_threshold(passing_threshold)
        rows = aggregate(scope, school, academic_year, **params)
        cards = self._persist(rows, scope, school, academic_year, passing_threshold,
                              get_scope(scope).year_wide)
        cards = rank_entities(cards, rank_scope, school=school)
        AuditLog.record(
            AuditLog.ActionType.GENERATE_REPORT,
            school,
            details={'scope': scope, 'academic_year': academic_year, 'report_cards': len(cards)},
            user=self.user,
        )
        return self._reload(cards)

    def _reload(self, cards):
        return list(
            ReportCard.objects
            .filter(pk__in=[card.pk for card in cards])
            .select_related('student', 'class_enrolled__trade', 'term', 'school')
            .prefetch_related('results__subject')
            .order_by('class_enrolled__level', 'rank', 'student__last_name')
        )

    # ------------------------------------------------------------------
    # Report cards
    # ------------------------------------------------------------------

    @transaction.atomic
    def generate_student_report(self, school, academic_year, term, student,
                                passing_threshold=None) -> Optional[ReportCard]:
        school, academic_year, term = self._context(school, academic_year, term)
        student = validate_student(student, school)
        cards = self._generate('student', 'student', school, academic_year, passing_threshold,
                               student=student, term=term)
        return cards[0] if cards else None

    @transaction.atomic
    def generate_class_report(self, school, academic_year, term, klass,
                              passing_threshold=None) -> List[ReportCard]:
        school, academic_year, term = self._context(school, academic_year, term)
        klass = validate_class(klass, school)
        return self._generate('class', 'student', school, academic_year, passing_threshold,
                              term=term, **{'class': klass})

    @transaction.atomic
    def generate_term_report(self, school, academic_year, term, passing_threshold=None) -> List[ReportCard]:
        school, academic_year, term = self._context(school, academic_year, term)
        return self._generate('term', 'term', school, academic_year, passing_threshold, term=term)

    @transaction.atomic
    def generate_school_report(self, school, academic_year, passing_threshold=None) -> List[ReportCard]:
        school, academic_year, _ = self._context(school, academic_year)
        return self._generate('school', 'school', school, academic_year, passing_threshold)

    @transaction.atomic
    def generate_subject_report(self, school, academic_year, term, subject,
                                passing_threshold=None) -> List[ReportCard]:
        school, academic_year, term = self._context(school, academic_year, term)
        subject = validate_subject(subject, school)
        return self._generate('subject', 'subject', school, academic_year, passing_threshold,
                              term=term, subject=subject)

    @transaction.atomic
    def generate_trade_report(self, school, academic_year, term, trade,
                              passing_threshold=None) -> List[ReportCard]:
        school, academic_year, term = self._context(school, academic_year, term)
        trade = validate_trade(trade)
        return self._generate('trade', 'trade', school, academic_year, passing_threshold,
                              term=term, trade=trade)

    # ------------------------------------------------------------------
    # Other aggregates
    # ------------------------------------------------------------------

    @transaction.atomic
    def generate_teacher_report(self, school, academic_year, term) -> List[TeacherPerformance]:
        """Persist one TeacherPerformance per teacher with graded work this term, ranked within the school."""
        school, academic_year, term = self._context(school, academic_year, term)
        rows = aggregate('teacher', school, academic_year, term=term)
        teachers = User.objects.active_teachers(school).in_bulk([row['teacher_id'] for row in rows])

        records = []
        for row in rows:
            teacher = teachers.get(row['teacher_id'])
            if teacher is None:
                logger.warning("Skipping performance for %s: not an active teacher of %s",
                               row['teacher_id'], school)
                continue
            record, _ = TeacherPerformance.objects.update_or_create(
                teacher=teacher,
                school=school,
                academic_year=academic_year,
                term=term,
                defaults={
                    'total_students': row['total_students'],
                    'average_score': row['average_score'],
                    'competency_rate': row['competency_rate'],
                    'rank': None,
                    'remarks': 'Generated for teacher performance.',
                    'is_deleted': False,
                },
            )
            records.append(record)

        rank_entities(records, 'teacher', school=school)
        AuditLog.record(
            AuditLog.ActionType.GENERATE_REPORT,
            school,
            details={'scope': 'teacher', 'academic_year': academic_year, 'teachers': len(records)},
            user=self.user,
        )
        return sorted(records, key=lambda record: record.rank)

    @transaction.atomic
    def generate_class_performance_report(self, school, academic_year, term=None) -> List[dict]:
        """Class aggregates ranked within the school. The ranks are not stored."""
        school, academic_year, term = self._context(school, academic_year, term)
        rows = aggregate('class_performance', school, academic_year, term=term)
        return rank_entities(rows, 'class', school=school, persist=False)

    @transaction.atomic
    def generate_assessment_report(self, school, academic_year, term, category,
                                   student=None, klass=None) -> List[dict]:
        """Scores of a single assessment category; returned, not persisted."""
        school, academic_year, term = self._context(school, academic_year, term)
        if student not in (None, ''):
            student = validate_student(student, school)
        if klass not in (None, ''):
            klass = validate_class(klass, school)
        return aggregate('assessment', school, academic_year, term=term, category=category,
                         student=student or None, **{'class': klass or None})

    # ------------------------------------------------------------------
    # Manual entry
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_report_card(self, school, academic_year, term, student, klass, results) -> ReportCard:
        """
        Record a report card entered by hand. ``results`` is a list of
        ``{'subject': <id>, 'scores': {category: points}}``; each category is
        scored out of MANUAL_CATEGORY_MAXIMA.
        """
        school, academic_year, term = self._context(school, academic_year, term)
        student = validate_student(student, school)
        klass = validate_class(klass, school)
        if not isinstance(results, list):
            raise PreconditionError("Results must be a list.")

        maxima = getattr(settings, 'MANUAL_CATEGORY_MAXIMA', DEFAULT_CATEGORY_MAXIMA)
        rows = [self._manual_result(entry, school, maxima) for entry in results]
        total_score = sum((row['total'] for row in rows), ZERO)
        average = round_half_up(total_score / len(rows)) if rows else round_half_up(ZERO)

        card, _ = ReportCard.objects.update_or_create(
            student=student,
            class_enrolled=klass,
            academic_year=academic_year,
            term=term,
            school=school,
            defaults={
                'total_score': total_score,
                'average': average,
                'rank': None,
                'remarks': 'Manually created report card.',
                'is_deleted': False,
                'deleted_at': None,
            },
        )
        card.results.all().delete()
        ReportCardResult.objects.bulk_create([self._result_row(card, row) for row in rows])

        classmates = list(ReportCard.objects.filter(
            class_enrolled=klass, academic_year=academic_year, term=term, school=school, is_deleted=False,
        ))
        rank_entities(classmates, 'student', school=school)
        AuditLog.record(AuditLog.ActionType.CREATE, card, details={'manual': True}, user=self.user)
        return self._reload([card])[0]

    def _manual_result(self, entry, school, maxima) -> Dict:
        if not isinstance(entry, dict):
            raise PreconditionError("Each result must be an object with a subject and scores.")
        subject = validate_subject(entry.get('subject'), school)
        raw_scores = entry.get('scores') or {}

        scores, max_scores = {}, {}
        for category in CATEGORIES:
            try:
                value = Decimal(str(raw_scores.get(category, 0)))
            except InvalidOperation:
                raise PreconditionError(f"{category} score for {subject} must be a number.")
            limit = Decimal(str(maxima[category]))
            if not ZERO <= value <= limit:
                raise PreconditionError(f"{category} score for {subject} must be between 0 and {limit}.")
            scores[category] = value
            max_scores[category] = limit

        total = sum(scores.values(), ZERO)
        max_total = sum(max_scores.values(), ZERO)
        percentage = percentage_of(total, max_total)
        return {
            'subject_id': subject.pk,
            'scores': scores,
            'max_scores': max_scores,
            'total': total,
            'max_total': max_total,
            'percentage': percentage,
            'decision': decision_for(percentage),
        }
