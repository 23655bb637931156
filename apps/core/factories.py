# apps/core/factories.py
"""
Builders for the records the test suites need: schools, people, a full
academic year, classes, enrollments and graded work.
"""

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model

from .models import School

User = get_user_model()

TERM_DATES = {
    1: ((1, 8), (4, 5)),
    2: ((4, 22), (7, 26)),
    3: ((9, 2), (11, 29)),
}


def make_school(code='TSS', name=None):
    return School.objects.create(code=code, name=name or f'{code} Technical School')


def make_user(school, email, role, first_name='', last_name='', **extra):
    return User.objects.create_user(
        email=email,
        password='testpass123',
        role=role,
        school=school,
        first_name=first_name,
        last_name=last_name,
        **extra
    )


def make_student(school, email, first_name='Student', last_name=''):
    return make_user(school, email, User.Role.STUDENT, first_name, last_name or email.split('@')[0])


def make_teacher(school, email, first_name='Teacher', last_name=''):
    return make_user(school, email, User.Role.TEACHER, first_name, last_name or email.split('@')[0])


def make_term(school, academic_year, term_number):
    from apps.academics.models import Term

    (start_month, start_day), (end_month, end_day) = TERM_DATES[term_number]
    return Term.objects.create(
        school=school,
        academic_year=academic_year,
        term_number=term_number,
        start_date=date(academic_year, start_month, start_day),
        end_date=date(academic_year, end_month, end_day),
    )


def make_year(school, academic_year, numbers=(1, 2, 3)):
    """Terms of a year keyed by term number."""
    return {number: make_term(school, academic_year, number) for number in numbers}


def make_trade(code='SOD', name='Software Development'):
    from apps.academics.models import Trade

    return Trade.objects.create(code=code, name=name)


def make_class(school, trade, level, year, capacity=30):
    from apps.academics.models import Class

    return Class.objects.create(school=school, trade=trade, level=level, year=year, capacity=capacity)


def make_subject(school, name, teacher=None):
    from apps.academics.models import Subject

    return Subject.objects.create(school=school, name=name, teacher=teacher)


def enroll(student, klass, term, **extra):
    from apps.academics.models import Enrollment

    return Enrollment.objects.create(
        student=student,
        class_enrolled=klass,
        term=term,
        school=klass.school,
        **extra
    )


def grade(enrollment, subject, category, score, max_score=100, teacher=None):
    """
    Record one graded submission: an exam of ``category`` worth ``max_score``
    on ``subject`` where the student earned ``score``.
    """
    from apps.assessment.models import AnswerScore, Exam, Question, Submission

    exam = Exam.objects.create(
        title=f'{subject} {category}',
        school=enrollment.school,
        subject=subject,
        teacher=teacher or (subject.teacher if subject is not None else None),
        exam_type=category,
    )
    exam.classes.add(enrollment.class_enrolled)
    question = Question.objects.create(exam=exam, text='Answer the question', max_score=Decimal(max_score))
    submission = Submission.objects.create(
        exam=exam,
        student=enrollment.student,
        enrollment=enrollment,
        status=Submission.Status.GRADED,
    )
    AnswerScore.objects.create(submission=submission, question=question, score=Decimal(score), graded=True)
    submission.refresh_from_db()
    return submission
