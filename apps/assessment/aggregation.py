# apps/assessment/aggregation.py
"""
Score aggregation over graded submissions.

Every report scope (student, class, term, school, subject, trade, single
assessment category, teacher, class performance) is served by one function,
``aggregate``, driven by a ScopeDescriptor. A descriptor names the parameters
the scope needs, how each one narrows the submission queryset and what the
rows are grouped by.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import Avg, Count, Q, Sum

from apps.academics.models import Class
from apps.core.exceptions import AggregationError, PreconditionError

from .models import AssessmentCategory, Decision, Submission

logger = logging.getLogger(__name__)
User = get_user_model()

CATEGORIES = [choice.value for choice in AssessmentCategory]
SINGLE_ASSESSMENT_CATEGORIES = (AssessmentCategory.ASSESSMENT1, AssessmentCategory.ASSESSMENT2)

TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0')


def round_half_up(value, places=TWO_PLACES) -> Decimal:
    return Decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def percentage_of(total, max_total) -> Decimal:
    """round(total / max_total * 100, 2); 0 when there is nothing to score against."""
    if not max_total:
        return round_half_up(ZERO)
    return round_half_up(Decimal(total) / Decimal(max_total) * 100)


def decision_for(percentage) -> str:
    threshold = Decimal(str(getattr(settings, 'COMPETENCY_THRESHOLD', 70)))
    if Decimal(percentage) >= threshold:
        return Decision.COMPETENT
    return Decision.NOT_YET_COMPETENT


class ScopeDescriptor:
    """
    Describes one aggregation scope.

    ``filters`` maps a parameter name to the Submission lookup it constrains.
    ``required`` lists the parameters that must be supplied.
    ``group_by`` is one of 'student', 'teacher' or 'class'.
    """

    def __init__(self, name, filters, required=(), group_by='student', single_category=False,
                 year_wide=False):
        self.name = name
        self.filters = filters
        self.required = tuple(required)
        self.group_by = group_by
        self.single_category = single_category
        self.year_wide = year_wide

    def __repr__(self):
        return f"ScopeDescriptor({self.name!r})"

    def check_params(self, params):
        missing = [name for name in self.required if params.get(name) in (None, '')]
        if missing:
            raise PreconditionError(
                f"{self.name} report requires: {', '.join(missing)}",
                scope=self.name,
            )
        unknown = {name for name, value in params.items() if value not in (None, '')} - set(self.filters)
        if unknown:
            raise PreconditionError(
                f"{self.name} report does not accept: {', '.join(sorted(unknown))}",
                scope=self.name,
            )
        if self.single_category and params.get('category') not in SINGLE_ASSESSMENT_CATEGORIES:
            raise PreconditionError(
                "Assessment type must be 'assessment1' or 'assessment2'",
                scope=self.name,
            )

    def apply(self, queryset, params):
        lookups = {
            self.filters[name]: value
            for name, value in params.items()
            if value not in (None, '')
        }
        return queryset.filter(**lookups)


TERM = 'enrollment__term'

SCOPES: Dict[str, ScopeDescriptor] = {
    'student': ScopeDescriptor(
        'student',
        {'student': 'student', 'term': TERM},
        required=('student', 'term'),
    ),
    'class': ScopeDescriptor(
        'class',
        {'class': 'enrollment__class_enrolled', 'term': TERM},
        required=('class', 'term'),
    ),
    'term': ScopeDescriptor(
        'term',
        {'term': TERM},
        required=('term',),
    ),
    'school': ScopeDescriptor(
        'school',
        {},
        year_wide=True,
    ),
    'subject': ScopeDescriptor(
        'subject',
        {'subject': 'exam__subject', 'term': TERM},
        required=('subject', 'term'),
    ),
    'trade': ScopeDescriptor(
        'trade',
        {'trade': 'enrollment__class_enrolled__trade', 'term': TERM},
        required=('trade', 'term'),
    ),
    'assessment': ScopeDescriptor(
        'assessment',
        {
            'category': 'exam__exam_type',
            'term': TERM,
            'student': 'student',
            'class': 'enrollment__class_enrolled',
        },
        required=('term', 'category'),
        single_category=True,
    ),
    'teacher': ScopeDescriptor(
        'teacher',
        {'term': TERM},
        required=('term',),
        group_by='teacher',
    ),
    'class_performance': ScopeDescriptor(
        'class_performance',
        {'term': TERM},
        group_by='class',
        year_wide=True,
    ),
}


def get_scope(name) -> ScopeDescriptor:
    try:
        return SCOPES[name]
    except KeyError:
        raise PreconditionError(f"Unknown report scope '{name}'", scope=name)


def graded_submissions(school, academic_year):
    """Submissions every scope starts from."""
    return Submission.objects.filter(
        status=Submission.Status.GRADED,
        is_deleted=False,
        enrollment__is_active=True,
        enrollment__is_deleted=False,
        enrollment__school=school,
        enrollment__term__academic_year=academic_year,
        exam__school=school,
        exam__is_deleted=False,
    )


def _skip_subjectless(queryset, scope):
    orphaned = queryset.filter(exam__subject__isnull=True)
    skipped = orphaned.count()
    if skipped:
        logger.warning(
            "Skipping %s graded submission(s) whose exam has no subject (%s scope)",
            skipped, scope.name,
        )
    return queryset.filter(exam__subject__isnull=False)


def aggregate(scope_name, school, academic_year, **params) -> List[dict]:
    """
    Aggregate graded submissions for a scope.

    Student-grouped scopes return one dict per student:
    ``{student_id, student_name, class_id, term_id, results, total_score, average}``
    where ``results`` holds one dict per subject. Teacher and class
    performance scopes return their own row shapes.
    """
    scope = get_scope(scope_name)
    scope.check_params(params)

    try:
        queryset = scope.apply(graded_submissions(school, academic_year), params)
        queryset = _skip_subjectless(queryset, scope)

        if scope.group_by == 'teacher':
            rows = _teacher_rows(queryset, school)
        elif scope.group_by == 'class':
            rows = _class_rows(queryset)
        else:
            rows = _student_rows(queryset, scope, params.get('category'))
    except DatabaseError as exc:
        logger.exception("Aggregation failed for %s scope", scope.name)
        raise AggregationError(f"Failed to aggregate {scope.name} scores: {exc}", scope=scope.name)

    logger.info("Aggregated %s %s row(s) for school %s, year %s",
                len(rows), scope.name, school, academic_year)
    return rows


def _student_rows(queryset, scope, category=None):
    categories = [category] if scope.single_category else CATEGORIES
    annotations = {}
    for cat in categories:
        annotations[cat] = Sum('total_score', filter=Q(exam__exam_type=cat))
        annotations[f'{cat}_max'] = Sum('exam__total_points', filter=Q(exam__exam_type=cat))

    grouped = (
        queryset
        .values(
            'student', 'exam__subject', 'exam__subject__name',
            'enrollment__class_enrolled', 'enrollment__term', 'enrollment__term__term_number',
        )
        .annotate(**annotations)
        .order_by('student', 'exam__subject__name')
    )

    students: Dict[object, dict] = {}
    for row in grouped:
        student = students.setdefault(row['student'], {
            'student_id': row['student'],
            'class_id': row['enrollment__class_enrolled'],
            'term_id': row['enrollment__term'],
            'term_number': row['enrollment__term__term_number'],
            'subjects': {},
        })
        # Year-wide rows report against the student's latest term
        if row['enrollment__term__term_number'] > student['term_number']:
            student['class_id'] = row['enrollment__class_enrolled']
            student['term_id'] = row['enrollment__term']
            student['term_number'] = row['enrollment__term__term_number']

        subject = student['subjects'].setdefault(row['exam__subject'], {
            'subject_id': row['exam__subject'],
            'subject_name': row['exam__subject__name'],
            'scores': {cat: ZERO for cat in categories},
            'max_scores': {cat: ZERO for cat in categories},
        })
        for cat in categories:
            subject['scores'][cat] += row[cat] or ZERO
            subject['max_scores'][cat] += row[f'{cat}_max'] or ZERO

    names = _student_names(students.keys())
    rows = []
    for student_id, student in students.items():
        results = [_finish_subject(subject) for subject in student['subjects'].values()]
        total_score = sum((result['total'] for result in results), ZERO)
        average = round_half_up(total_score / len(results)) if results else round_half_up(ZERO)
        rows.append({
            'student_id': student_id,
            'student_name': names.get(student_id, ''),
            'class_id': student['class_id'],
            'term_id': student['term_id'],
            'results': results,
            'total_score': round_half_up(total_score),
            'average': average,
        })
    return rows


def _finish_subject(subject):
    total = sum(subject['scores'].values(), ZERO)
    max_total = sum(subject['max_scores'].values(), ZERO)
    percentage = percentage_of(total, max_total)
    return {
        'subject_id': subject['subject_id'],
        'subject_name': subject['subject_name'],
        'scores': subject['scores'],
        'max_scores': subject['max_scores'],
        'total': total,
        'max_total': max_total,
        'percentage': percentage,
        'decision': decision_for(percentage),
    }


def _student_names(student_ids):
    return {
        user.pk: user.full_name or user.email
        for user in User.objects.filter(pk__in=list(student_ids))
    }


def _teacher_rows(queryset, school):
    competent_score = getattr(settings, 'TEACHER_COMPETENT_SCORE', 70)
    grouped = (
        queryset
        .filter(exam__subject__school=school, exam__subject__teacher__isnull=False)
        .values('exam__subject__teacher')
        .annotate(
            total_students=Count('id'),
            average_score=Avg('total_score'),
            competent=Count('id', filter=Q(total_score__gte=competent_score)),
        )
        .order_by('exam__subject__teacher')
    )
    grouped = list(grouped)
    teachers = User.objects.in_bulk([row['exam__subject__teacher'] for row in grouped])

    rows = []
    for row in grouped:
        teacher = teachers.get(row['exam__subject__teacher'])
        total = row['total_students']
        rows.append({
            'teacher_id': row['exam__subject__teacher'],
            'teacher_name': (teacher.full_name or teacher.email) if teacher else '',
            'total_students': total,
            'average_score': round_half_up(row['average_score'] or ZERO),
            'competency_rate': round_half_up(Decimal(row['competent']) / total * 100) if total else round_half_up(ZERO),
        })
    return rows


def _class_rows(queryset):
    grouped = list(
        queryset
        .values('enrollment__class_enrolled')
        .annotate(
            student_count=Count('student', distinct=True),
            total_score=Sum('total_score'),
        )
        .order_by('enrollment__class_enrolled')
    )
    classes = Class.objects.select_related('trade').in_bulk(
        [row['enrollment__class_enrolled'] for row in grouped]
    )

    rows = []
    for row in grouped:
        klass = classes.get(row['enrollment__class_enrolled'])
        total_score = row['total_score'] or ZERO
        count = row['student_count']
        rows.append({
            'class_id': row['enrollment__class_enrolled'],
            'class_name': klass.name if klass else '',
            'student_count': count,
            'total_score': round_half_up(total_score),
            'average_score': round_half_up(total_score / count) if count else round_half_up(ZERO),
        })
    return rows
