# apps/academics/promotion.py
"""
Year-end promotion and in-year term transition.

Each run is one database transaction. Every student is handled in its own
savepoint so a student that cannot be processed (a concurrent run already
logged them, or the target class is inconsistent) is rolled back and skipped
without failing the batch.
"""

import calendar
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List

from django.conf import settings
from django.db import IntegrityError, transaction

from apps.audit.models import AuditLog
from apps.core.clock import get_default_clock
from apps.core.exceptions import ConsistencyError, PreconditionError

from .models import Class, Enrollment, PromotionLog, Term
from .validators import (
    check_enrollment_consistency,
    require_complete_year,
    validate_academic_year,
    validate_school,
)

logger = logging.getLogger(__name__)

INACTIVE_STATUSES = (
    Enrollment.PromotionStatus.EXPELLED,
    Enrollment.PromotionStatus.ON_LEAVE,
    Enrollment.PromotionStatus.WITHDRAWN,
)
LEAVING_STATUSES = (
    Enrollment.PromotionStatus.ON_LEAVE,
    Enrollment.PromotionStatus.WITHDRAWN,
)
DECIDED_STATUSES = (
    PromotionLog.Status.PROMOTED,
    PromotionLog.Status.GRADUATED,
)
YEAR_END_STATUSES = (
    PromotionLog.Status.PROMOTED,
    PromotionLog.Status.GRADUATED,
    PromotionLog.Status.REPEATED,
    PromotionLog.Status.EXPELLED,
)

# Outcomes that are counted but leave no PromotionLog row
BLOCKED = 'blocked'
SKIPPED = 'skipped'
INVALID = 'invalid'
DEACTIVATED = 'deactivated'


def add_months(day, months):
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


class PromotionSummary:
    """Counts of outcomes for one promotion or transition run."""

    def __init__(self, school, academic_year, cron_job=False):
        self.school = school
        self.academic_year = academic_year
        self.cron_job = cron_job
        self.already_processed = False
        self.counts: Dict[str, int] = {}

    def add(self, outcome):
        outcome = str(outcome)
        self.counts[outcome] = self.counts.get(outcome, 0) + 1

    def __getitem__(self, outcome):
        return self.counts.get(str(outcome), 0)

    @property
    def processed(self):
        return sum(self.counts.values())

    def as_dict(self):
        return {
            'school': str(self.school.pk),
            'academic_year': self.academic_year,
            'cron_job': self.cron_job,
            'already_processed': self.already_processed,
            'processed': self.processed,
            'counts': dict(self.counts),
        }


class PromotionService:
    """
    Drives promotion decisions for a school's academic year.
    """

    def __init__(self, clock=None):
        self.clock = clock or get_default_clock()
        self.pass_mark = Decimal(str(getattr(settings, 'PROMOTION_PASS_MARK', 50)))

    # ------------------------------------------------------------------
    # Year-end promotion
    # ------------------------------------------------------------------

    def promote_students(self, school, academic_year, cron_job=False, user=None) -> PromotionSummary:
        """
        Promote, repeat or graduate every student actively enrolled in the
        third term of ``academic_year``.
        """
        school = validate_school(school)
        academic_year = validate_academic_year(academic_year)
        terms = require_complete_year(school, academic_year)
        summary = PromotionSummary(school, academic_year, cron_job)

        with transaction.atomic():
            if cron_job and PromotionLog.objects.filter(
                school=school,
                academic_year=academic_year,
                status__in=YEAR_END_STATUSES,
                cron_job=True,
            ).exists():
                logger.info("Promotion already processed for %s %s", school, academic_year)
                summary.already_processed = True
                return summary

            for enrollment in self._latest_enrollments(school, terms[3]):
                try:
                    with transaction.atomic():
                        outcome = self._promote_one(enrollment, school, academic_year, terms[3], cron_job)
                except IntegrityError as exc:
                    logger.warning(
                        "Skipping student %s: promotion already recorded by another run (%s)",
                        enrollment.student_id, exc,
                    )
                    outcome = SKIPPED
                except ConsistencyError as exc:
                    logger.warning("Blocked promotion for student %s: %s", enrollment.student_id, exc)
                    outcome = BLOCKED
                summary.add(outcome)

            AuditLog.record(
                AuditLog.ActionType.PROMOTE,
                school,
                details=summary.as_dict(),
                user=user,
            )

        logger.info("Promotion for %s %s finished: %s", school, academic_year, summary.counts)
        return summary

    def _latest_enrollments(self, school, term) -> List[Enrollment]:
        enrollments = (
            Enrollment.objects
            .filter(school=school, term=term, is_active=True, is_deleted=False)
            .select_related('student', 'class_enrolled__trade', 'term')
            .order_by('created_at')
        )
        latest = {}
        for enrollment in enrollments:
            latest[enrollment.student_id] = enrollment
        return list(latest.values())

    def _promote_one(self, enrollment, school, academic_year, term, cron_job):
        student = enrollment.student
        current_class = enrollment.class_enrolled

        if not student.is_student:
            enrollment.deactivate('Invalid student or role')
            return INVALID

        if PromotionLog.objects.filter(
            student=student,
            academic_year=academic_year,
            school=school,
            status__in=DECIDED_STATUSES,
        ).exists():
            logger.info("Student %s already promoted or graduated for %s", student.pk, academic_year)
            return SKIPPED

        if student.graduated or enrollment.promotion_status in LEAVING_STATUSES:
            status = enrollment.promotion_status if not student.graduated else PromotionLog.Status.GRADUATED
            remarks = f"Student {status}"
            self._log(student, current_class, None, academic_year, status, remarks, school, cron_job)
            enrollment.deactivate(remarks)
            return status

        if self.has_passed(enrollment, academic_year, term, school):
            next_level = current_class.next_level
            if next_level is None:
                return self._graduate(enrollment, academic_year, school, cron_job)
            return self._promote(enrollment, next_level, academic_year, school, cron_job)

        return self._repeat(enrollment, academic_year, term, school, cron_job)

    def has_passed(self, enrollment, academic_year, term, school) -> bool:
        """A student passes with an active enrollment and a report card average at or above the pass mark."""
        if not enrollment.is_active or enrollment.is_deleted:
            return False
        if enrollment.promotion_status in INACTIVE_STATUSES:
            return False
        report_card = self._report_card(enrollment, academic_year, term, school)
        if report_card is None:
            return False
        return report_card.average >= self.pass_mark

    def _report_card(self, enrollment, academic_year, term, school):
        from apps.assessment.models import ReportCard

        return ReportCard.objects.filter(
            student=enrollment.student,
            class_enrolled=enrollment.class_enrolled,
            academic_year=academic_year,
            term=term,
            school=school,
            is_deleted=False,
        ).first()

    def _promote(self, enrollment, next_level, academic_year, school, cron_job):
        student = enrollment.student
        current_class = enrollment.class_enrolled

        target_class = self.get_next_class(current_class, next_level, academic_year + 1)
        if target_class.trade_id != current_class.trade_id:
            raise ConsistencyError(
                f"Blocked cross-trade promotion for student {student.full_name or student.pk}"
            )
        first_term = self.get_first_term(school, academic_year + 1)
        if target_class.is_full(first_term):
            raise ConsistencyError(f"Class {target_class} is at capacity")

        transferred_from = student.school if student.school_id != school.pk else None
        check_enrollment_consistency(student, target_class, first_term, school, transferred_from)

        remarks = 'Student promoted to next level'
        self._log(student, current_class, target_class, academic_year,
                  PromotionLog.Status.PROMOTED, remarks, school, cron_job)
        Enrollment.objects.create(
            student=student,
            class_enrolled=target_class,
            term=first_term,
            school=school,
            promotion_status=enrollment.promotion_status,
            transferred_from_school=transferred_from,
        )
        enrollment.deactivate(remarks)
        return PromotionLog.Status.PROMOTED

    def _graduate(self, enrollment, academic_year, school, cron_job):
        remarks = 'Student graduated'
        self._log(enrollment.student, enrollment.class_enrolled, None, academic_year,
                  PromotionLog.Status.GRADUATED, remarks, school, cron_job)
        enrollment.student.mark_graduated(self.clock.today())
        enrollment.deactivate(remarks)
        return PromotionLog.Status.GRADUATED

    def _repeat(self, enrollment, academic_year, term, school, cron_job):
        if enrollment.promotion_status == Enrollment.PromotionStatus.EXPELLED:
            status, remarks = PromotionLog.Status.EXPELLED, 'Student expelled'
        elif self._report_card(enrollment, academic_year, term, school) is None:
            status, remarks = PromotionLog.Status.REPEATED, 'No report card found'
        else:
            status, remarks = PromotionLog.Status.REPEATED, 'Student repeating due to insufficient performance'

        self._log(enrollment.student, enrollment.class_enrolled, None, academic_year,
                  status, remarks, school, cron_job)
        # TODO: place repeating students into the same level for the next academic year
        enrollment.deactivate(remarks)
        return status

    def get_next_class(self, current_class, next_level, next_year) -> Class:
        """Find or create the class one level up in the same trade for the next year."""
        target, created = Class.objects.get_or_create(
            school=current_class.school,
            trade=current_class.trade,
            level=next_level,
            year=next_year,
            defaults={'capacity': current_class.capacity},
        )
        if created:
            target.subjects.set(current_class.subjects.all())
            logger.info("Created class %s for %s", target, next_year)
        elif target.is_deleted:
            raise ConsistencyError(f"Target class {target} has been deleted")
        return target

    def get_first_term(self, school, academic_year) -> Term:
        """Find or create term 1 of a year, defaulting to 1 September - 15 December."""
        term, created = Term.objects.get_or_create(
            school=school,
            academic_year=academic_year,
            term_number=1,
            defaults={
                'start_date': date(academic_year, 9, 1),
                'end_date': date(academic_year, 12, 15),
            },
        )
        if created:
            logger.info("Created first term of %s for %s", academic_year, school)
        elif term.is_deleted:
            raise ConsistencyError(f"{term} has been deleted")
        return term

    def _log(self, student, from_class, to_class, academic_year, status, remarks, school, cron_job,
             from_term=None, to_term=None):
        return PromotionLog.objects.create(
            student=student,
            from_class=from_class,
            to_class=to_class,
            from_term=from_term,
            to_term=to_term,
            academic_year=academic_year,
            status=status,
            remarks=remarks,
            school=school,
            promotion_date=self.clock.now(),
            manual=not cron_job,
            cron_job=cron_job,
            passing_threshold=self.pass_mark,
        )

    # ------------------------------------------------------------------
    # Term transition
    # ------------------------------------------------------------------

    def transition_students_to_next_term(self, school, academic_year, current_term_number,
                                         cron_job=False, user=None) -> PromotionSummary:
        """
        Move every student actively enrolled in term ``current_term_number``
        into the next term of the same class.
        """
        school = validate_school(school)
        academic_year = validate_academic_year(academic_year)
        try:
            current_term_number = int(current_term_number)
        except (TypeError, ValueError):
            raise PreconditionError("Current term number must be 1, 2 or 3.")
        if current_term_number not in (1, 2, 3):
            raise PreconditionError("Current term number must be 1, 2 or 3.")
        if current_term_number == 3:
            raise PreconditionError("No next term available in the same academic year.")

        current_term = Term.objects.filter(
            school=school,
            academic_year=academic_year,
            term_number=current_term_number,
            is_deleted=False,
        ).first()
        if current_term is None:
            raise PreconditionError(
                f"Term {current_term_number} not found for academic year {academic_year}."
            )
        if self.clock.today() < current_term.end_date:
            raise PreconditionError(f"Term {current_term_number} has not yet ended.")

        summary = PromotionSummary(school, academic_year, cron_job)
        with transaction.atomic():
            if cron_job and PromotionLog.objects.filter(
                school=school,
                academic_year=academic_year,
                from_term=current_term,
                status=PromotionLog.Status.TERM_TRANSITION,
                cron_job=True,
            ).exists():
                logger.info("Term %s already processed for %s", current_term_number, school)
                summary.already_processed = True
                return summary

            next_term = self.get_next_term(current_term)
            for enrollment in self._latest_enrollments(school, current_term):
                try:
                    with transaction.atomic():
                        outcome = self._transition_one(enrollment, school, academic_year,
                                                       current_term, next_term, cron_job)
                except IntegrityError as exc:
                    logger.warning("Skipping term transition for student %s: %s", enrollment.student_id, exc)
                    outcome = SKIPPED
                except ConsistencyError as exc:
                    logger.warning("Blocked term transition for student %s: %s", enrollment.student_id, exc)
                    outcome = BLOCKED
                summary.add(outcome)

            details = summary.as_dict()
            details.update(from_term=current_term_number, to_term=next_term.term_number)
            AuditLog.record(AuditLog.ActionType.TERM_TRANSITION, current_term, details=details, user=user)

        logger.info("Term transition for %s %s finished: %s", school, academic_year, summary.counts)
        return summary

    def get_next_term(self, current_term) -> Term:
        """Find or create the following term; a new one starts the day after and lasts three months."""
        next_term = Term.objects.filter(
            school=current_term.school,
            academic_year=current_term.academic_year,
            term_number=current_term.term_number + 1,
        ).first()
        if next_term is not None:
            if next_term.is_deleted:
                raise PreconditionError(f"{next_term} has been deleted.")
            return next_term

        start = current_term.end_date + timedelta(days=1)
        next_term = Term.objects.create(
            school=current_term.school,
            academic_year=current_term.academic_year,
            term_number=current_term.term_number + 1,
            start_date=start,
            end_date=add_months(start, 3),
        )
        logger.info("Created %s for %s", next_term, current_term.school)
        return next_term

    def _transition_one(self, enrollment, school, academic_year, current_term, next_term, cron_job):
        student = enrollment.student
        current_class = enrollment.class_enrolled

        if not student.is_student or student.graduated:
            enrollment.deactivate('Invalid student, role, or graduated')
            return INVALID

        if enrollment.promotion_status in INACTIVE_STATUSES:
            status = enrollment.promotion_status
            self._log(student, current_class, current_class, academic_year, status,
                      f"Student {status}, not transitioned", school, cron_job, from_term=current_term)
            enrollment.deactivate(f"Student {status}")
            return status

        if Enrollment.objects.filter(
            student=student, term=next_term, school=school, is_active=True, is_deleted=False
        ).exists():
            enrollment.deactivate('Student already enrolled in next term')
            return DEACTIVATED

        if current_class.is_full(next_term):
            self._log(student, current_class, current_class, academic_year, PromotionLog.Status.REPEATED,
                      'Class capacity reached, not transitioned', school, cron_job, from_term=current_term)
            enrollment.deactivate('Class capacity reached')
            return PromotionLog.Status.REPEATED

        check_enrollment_consistency(student, current_class, next_term, school,
                                     enrollment.transferred_from_school)
        self._log(student, current_class, current_class, academic_year, PromotionLog.Status.TERM_TRANSITION,
                  f"Student transitioned to Term {next_term.term_number}", school, cron_job,
                  from_term=current_term, to_term=next_term)
        Enrollment.objects.create(
            student=student,
            class_enrolled=current_class,
            term=next_term,
            school=school,
            promotion_status=enrollment.promotion_status,
            transferred_from_school=enrollment.transferred_from_school,
        )
        enrollment.deactivate(f"Transitioned to Term {next_term.term_number}")
        return PromotionLog.Status.TERM_TRANSITION

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def eligibility_report(self, school, academic_year) -> List[dict]:
        """Active enrollments of the year with the details a promotion review needs."""
        school = validate_school(school)
        academic_year = validate_academic_year(academic_year)
        enrollments = (
            Enrollment.objects
            .filter(school=school, term__academic_year=academic_year, is_active=True, is_deleted=False)
            .select_related('student', 'class_enrolled__trade', 'term')
            .order_by('term__term_number', 'class_enrolled__level', 'student__last_name')
        )
        return [
            {
                'student_id': str(enrollment.student_id),
                'student_name': enrollment.student.full_name or enrollment.student.email,
                'class_id': str(enrollment.class_enrolled_id),
                'class_name': enrollment.class_enrolled.name,
                'promotion_status': enrollment.promotion_status,
                'term_id': str(enrollment.term_id),
                'term_number': enrollment.term.term_number,
            }
            for enrollment in enrollments
        ]


def summarize_logs(school, academic_year) -> Dict[str, int]:
    """Year-end PromotionLog counts per status, for command output."""
    counts: Dict[str, int] = {}
    for status in PromotionLog.objects.filter(
        school=school, academic_year=academic_year, from_term__isnull=True
    ).values_list('status', flat=True):
        counts[status] = counts.get(status, 0) + 1
    return counts
