# apps/academics/validators.py
"""
Explicit precondition checks for reference data.

The reporting and promotion services call these before aggregating or
mutating anything, instead of relying on validation hidden in model saves.
"""

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError

from apps.core.exceptions import ConsistencyError, PreconditionError
from apps.core.models import School

from .models import Class, Subject, Term, Trade

User = get_user_model()


def _lookup(model, label, pk, **filters):
    if isinstance(pk, model):
        instance = pk
        for field, value in filters.items():
            if getattr(instance, field) != value:
                raise PreconditionError(f"Invalid {label} or not associated with the school.")
        return instance
    if pk in (None, ''):
        raise PreconditionError(f"{label.capitalize()} is required.")
    try:
        return model.objects.get(pk=pk, **filters)
    except (model.DoesNotExist, ValidationError, ValueError):
        raise PreconditionError(f"Invalid {label} or not associated with the school.")


def validate_school(school_id) -> School:
    """The school must exist and not be soft-deleted."""
    return _lookup(School, 'school', school_id, is_deleted=False)


def validate_term(term_id, school) -> Term:
    return _lookup(Term, 'term', term_id, school_id=school.pk, is_deleted=False)


def validate_class(class_id, school) -> Class:
    return _lookup(Class, 'class', class_id, school_id=school.pk, is_deleted=False)


def validate_subject(subject_id, school) -> Subject:
    return _lookup(Subject, 'subject', subject_id, school_id=school.pk, is_deleted=False)


def validate_trade(trade_id) -> Trade:
    return _lookup(Trade, 'trade', trade_id, is_deleted=False)


def validate_student(student_id, school):
    return _lookup(User, 'student', student_id, school_id=school.pk, role=User.Role.STUDENT)


def validate_academic_year(academic_year) -> int:
    try:
        year = int(academic_year)
    except (TypeError, ValueError):
        raise PreconditionError("Academic year must be a number.")
    if year < 1900:
        raise PreconditionError("Academic year is out of range.")
    return year


def require_complete_year(school, academic_year):
    """
    Return the school's terms for the year keyed by term number.
    All three terms must exist.
    """
    terms = {
        term.term_number: term
        for term in Term.objects.filter(school=school, academic_year=academic_year, is_deleted=False)
    }
    if len(terms) < 3:
        raise PreconditionError(
            f"Cannot promote: incomplete academic year terms "
            f"({len(terms)} of 3 recorded for {academic_year})."
        )
    return terms


def check_enrollment_consistency(student, klass, term, school, transferred_from=None):
    """
    An enrollment must tie a student to a class and term of the same school.
    Raises ConsistencyError describing the first mismatch found.
    """
    if getattr(student, 'role', None) != User.Role.STUDENT:
        raise ConsistencyError("Enrollment student must be a user with role 'student'.")
    if klass.school_id != school.pk:
        raise ConsistencyError("Class must belong to the enrollment's school.")
    if term.school_id != school.pk:
        raise ConsistencyError("Term must belong to the enrollment's school.")
    if student.school_id != school.pk and transferred_from is None:
        raise ConsistencyError(
            "School must match the student's school or specify the school they transferred from."
        )
