# apps/academics/tests.py

from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import IntegrityError, transaction
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from apps.assessment.models import ReportCard
from apps.assessment.services import ReportService
from apps.audit.models import AuditLog
from apps.core.clock import FixedClock
from apps.core.exceptions import ConsistencyError, PreconditionError
from apps.core.factories import (
    enroll,
    grade,
    make_class,
    make_school,
    make_student,
    make_subject,
    make_teacher,
    make_term,
    make_trade,
    make_year,
)

from .models import Class, Enrollment, PromotionLog, Term
from .promotion import BLOCKED, DEACTIVATED, INVALID, SKIPPED, PromotionService, add_months, summarize_logs
from .validators import (
    check_enrollment_consistency,
    require_complete_year,
    validate_school,
    validate_term,
)

YEAR_END = date(2024, 12, 1)


class PromotionTestMixin:
    """A school with a complete 2024 year, an L3 and an L5 class of the SOD trade"""

    def setUp(self):
        self.school = make_school()
        self.trade = make_trade()
        self.terms = make_year(self.school, 2024)
        self.third_term = self.terms[3]
        self.junior = make_class(self.school, self.trade, 'L3', 2024)
        self.senior = make_class(self.school, self.trade, 'L5', 2024)
        self.service = PromotionService(clock=FixedClock(YEAR_END))

    def student_in(self, klass, email, **extra):
        student = make_student(self.school, email)
        return student, enroll(student, klass, self.third_term, **extra)

    def report_card(self, enrollment, average):
        return ReportCard.objects.create(
            student=enrollment.student,
            class_enrolled=enrollment.class_enrolled,
            academic_year=2024,
            term=self.third_term,
            school=self.school,
            total_score=average,
            average=average,
        )


class ClassModelTestCase(PromotionTestMixin, TestCase):

    def test_name_and_next_level(self):
        self.assertEqual(self.junior.name, 'L3SOD')
        self.assertEqual(self.junior.next_level, 'L4')
        self.assertIsNone(self.senior.next_level)

    def test_is_full(self):
        klass = make_class(self.school, self.trade, 'L4', 2024, capacity=1)
        self.assertFalse(klass.is_full(self.third_term))
        enroll(make_student(self.school, 'one@example.com'), klass, self.third_term)
        self.assertTrue(klass.is_full(self.third_term))


class ValidatorTestCase(PromotionTestMixin, TestCase):

    def test_validate_school_rejects_unknown_ids(self):
        with self.assertRaises(PreconditionError):
            validate_school('not-a-uuid')
        self.school.delete()
        with self.assertRaises(PreconditionError):
            validate_school(self.school.pk)

    def test_validate_term_requires_same_school(self):
        other = make_school('OTH')
        with self.assertRaises(PreconditionError):
            validate_term(self.third_term, other)
        self.assertEqual(validate_term(self.third_term.pk, self.school), self.third_term)

    def test_require_complete_year(self):
        self.assertEqual(set(require_complete_year(self.school, 2024)), {1, 2, 3})
        make_year(self.school, 2025, numbers=(1, 2))
        with self.assertRaises(PreconditionError):
            require_complete_year(self.school, 2025)

    def test_enrollment_consistency(self):
        student = make_student(self.school, 'pupil@example.com')
        other = make_school('OTH')
        foreign_class = make_class(other, self.trade, 'L3', 2024)
        with self.assertRaises(ConsistencyError):
            check_enrollment_consistency(student, foreign_class, self.third_term, self.school)

        teacher = make_teacher(self.school, 'teacher@example.com')
        with self.assertRaises(ConsistencyError):
            check_enrollment_consistency(teacher, self.junior, self.third_term, self.school)

        check_enrollment_consistency(student, self.junior, self.third_term, self.school)


class PromotionLogTestCase(PromotionTestMixin, TestCase):

    def make_log(self, student, **extra):
        values = {
            'student': student,
            'from_class': self.junior,
            'academic_year': 2024,
            'status': PromotionLog.Status.REPEATED,
            'school': self.school,
            'promotion_date': FixedClock(YEAR_END).now(),
        }
        values.update(extra)
        return PromotionLog.objects.create(**values)

    def test_logs_are_immutable(self):
        log = self.make_log(make_student(self.school, 'log@example.com'))
        log.remarks = 'changed'
        with self.assertRaises(ConsistencyError):
            log.save()
        with self.assertRaises(ConsistencyError):
            log.delete()
        with self.assertRaises(ConsistencyError):
            log.hard_delete()
        self.assertEqual(PromotionLog.objects.get(pk=log.pk).remarks, '')

    def test_one_year_end_log_per_student_and_year(self):
        student = make_student(self.school, 'twice@example.com')
        self.make_log(student)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self.make_log(student, status=PromotionLog.Status.PROMOTED)

        # Term transitions are keyed on their term and do not collide
        self.make_log(student, status=PromotionLog.Status.TERM_TRANSITION, from_term=self.terms[1])
        self.make_log(student, status=PromotionLog.Status.TERM_TRANSITION, from_term=self.terms[2])
        self.assertEqual(PromotionLog.objects.filter(student=student).count(), 3)


class PromoteStudentsTestCase(PromotionTestMixin, TestCase):

    def test_passing_student_is_promoted_within_trade(self):
        math = make_subject(self.school, 'Mathematics')
        english = make_subject(self.school, 'English')
        student, enrollment = self.student_in(self.junior, 'pass@example.com')
        grade(enrollment, math, 'exam', 80, max_score=100)
        grade(enrollment, english, 'exam', 40, max_score=100)
        card = ReportService().generate_term_report(self.school, 2024, self.third_term)[0]
        self.assertEqual(card.average, Decimal('60.00'))

        summary = self.service.promote_students(self.school, 2024)

        self.assertEqual(summary['promoted'], 1)
        log = PromotionLog.objects.get(student=student)
        self.assertEqual(log.status, PromotionLog.Status.PROMOTED)
        self.assertEqual(log.from_class, self.junior)
        self.assertEqual(log.to_class.level, 'L4')
        self.assertEqual(log.to_class.trade, self.trade)
        self.assertEqual(log.to_class.year, 2025)
        self.assertTrue(log.manual)

        new_enrollment = Enrollment.objects.get(student=student, is_active=True)
        self.assertEqual(new_enrollment.class_enrolled, log.to_class)
        self.assertEqual(new_enrollment.term.academic_year, 2025)
        self.assertEqual(new_enrollment.term.term_number, 1)
        self.assertEqual(new_enrollment.term.start_date, date(2025, 9, 1))
        enrollment.refresh_from_db()
        self.assertFalse(enrollment.is_active)
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ActionType.PROMOTE).exists())

    def test_pass_mark_is_inclusive(self):
        student, enrollment = self.student_in(self.junior, 'fifty@example.com')
        self.report_card(enrollment, Decimal('50.00'))
        self.service.promote_students(self.school, 2024)
        self.assertEqual(PromotionLog.objects.get(student=student).status, PromotionLog.Status.PROMOTED)

    def test_failing_student_repeats(self):
        student, enrollment = self.student_in(self.junior, 'fail@example.com')
        self.report_card(enrollment, Decimal('49.99'))
        self.service.promote_students(self.school, 2024)

        log = PromotionLog.objects.get(student=student)
        self.assertEqual(log.status, PromotionLog.Status.REPEATED)
        self.assertIsNone(log.to_class)
        enrollment.refresh_from_db()
        self.assertFalse(enrollment.is_active)
        self.assertFalse(Enrollment.objects.filter(student=student, is_active=True).exists())

    def test_student_without_report_card_repeats(self):
        student, _ = self.student_in(self.junior, 'none@example.com')
        self.service.promote_students(self.school, 2024)
        log = PromotionLog.objects.get(student=student)
        self.assertEqual(log.status, PromotionLog.Status.REPEATED)
        self.assertEqual(log.remarks, 'No report card found')

    def test_last_level_graduates(self):
        student, enrollment = self.student_in(self.senior, 'grad@example.com')
        self.report_card(enrollment, Decimal('75'))

        summary = self.service.promote_students(self.school, 2024)

        self.assertEqual(summary['graduated'], 1)
        student.refresh_from_db()
        self.assertTrue(student.graduated)
        self.assertEqual(student.graduation_date, YEAR_END)
        self.assertEqual(PromotionLog.objects.get(student=student).status, PromotionLog.Status.GRADUATED)
        self.assertFalse(Enrollment.objects.filter(student=student, is_active=True).exists())

    def test_leaving_and_expelled_students(self):
        withdrawn, _ = self.student_in(
            self.junior, 'gone@example.com', promotion_status=Enrollment.PromotionStatus.WITHDRAWN
        )
        expelled, enrollment = self.student_in(
            self.junior, 'out@example.com', promotion_status=Enrollment.PromotionStatus.EXPELLED
        )
        self.report_card(enrollment, Decimal('90'))

        self.service.promote_students(self.school, 2024)

        self.assertEqual(PromotionLog.objects.get(student=withdrawn).status, PromotionLog.Status.WITHDRAWN)
        self.assertEqual(PromotionLog.objects.get(student=expelled).status, PromotionLog.Status.EXPELLED)
        self.assertEqual(Enrollment.objects.filter(is_active=True).count(), 0)

    def test_non_student_enrollment_is_deactivated(self):
        teacher = make_teacher(self.school, 'teacher@example.com')
        enrollment = enroll(teacher, self.junior, self.third_term)

        summary = self.service.promote_students(self.school, 2024)

        self.assertEqual(summary[INVALID], 1)
        enrollment.refresh_from_db()
        self.assertFalse(enrollment.is_active)
        self.assertFalse(PromotionLog.objects.exists())

    def test_rerun_changes_nothing(self):
        student, enrollment = self.student_in(self.junior, 'again@example.com')
        self.report_card(enrollment, Decimal('70'))
        self.service.promote_students(self.school, 2024)
        logs, enrollments = PromotionLog.objects.count(), Enrollment.objects.count()

        summary = self.service.promote_students(self.school, 2024)
        self.assertEqual(summary.processed, 0)

        # A reactivated enrollment of an already promoted student is skipped untouched
        Enrollment.objects.filter(pk=enrollment.pk).update(is_active=True)
        summary = self.service.promote_students(self.school, 2024)
        self.assertEqual(summary[SKIPPED], 1)
        self.assertEqual(PromotionLog.objects.count(), logs)
        self.assertEqual(Enrollment.objects.count(), enrollments)
        self.assertTrue(Enrollment.objects.get(pk=enrollment.pk).is_active)

    def test_scheduled_rerun_is_already_processed(self):
        _, enrollment = self.student_in(self.junior, 'cron@example.com')
        self.report_card(enrollment, Decimal('70'))
        first = self.service.promote_students(self.school, 2024, cron_job=True)
        self.assertFalse(first.already_processed)
        self.assertTrue(PromotionLog.objects.get().cron_job)

        second = self.service.promote_students(self.school, 2024, cron_job=True)
        self.assertTrue(second.already_processed)
        self.assertEqual(second.processed, 0)

    def test_incomplete_year_is_rejected_before_any_write(self):
        school = make_school('TWO')
        terms = make_year(school, 2024, numbers=(1, 2))
        klass = make_class(school, self.trade, 'L3', 2024)
        enrollment = enroll(make_student(school, 'two@example.com'), klass, terms[2])

        with self.assertRaises(PreconditionError):
            self.service.promote_students(school, 2024)

        enrollment.refresh_from_db()
        self.assertTrue(enrollment.is_active)
        self.assertFalse(PromotionLog.objects.exists())
        self.assertFalse(Class.objects.filter(year=2025).exists())

    def test_full_target_class_blocks_promotion(self):
        target = make_class(self.school, self.trade, 'L4', 2025, capacity=1)
        first_term = make_term(self.school, 2025, 1)
        enroll(make_student(self.school, 'seat@example.com'), target, first_term)
        student, enrollment = self.student_in(self.junior, 'blocked@example.com')
        self.report_card(enrollment, Decimal('80'))

        summary = self.service.promote_students(self.school, 2024)

        self.assertEqual(summary[BLOCKED], 1)
        self.assertFalse(PromotionLog.objects.filter(student=student).exists())
        enrollment.refresh_from_db()
        self.assertTrue(enrollment.is_active)

    def test_deleted_first_term_blocks_promotion(self):
        make_term(self.school, 2025, 1).delete()
        student, enrollment = self.student_in(self.junior, 'deleted-term@example.com')
        self.report_card(enrollment, Decimal('80'))

        summary = self.service.promote_students(self.school, 2024)

        self.assertEqual(summary[BLOCKED], 1)
        self.assertFalse(PromotionLog.objects.filter(student=student).exists())
        self.assertFalse(Enrollment.objects.filter(term__is_deleted=True).exists())
        self.assertFalse(Class.objects.filter(year=2025).exists())
        enrollment.refresh_from_db()
        self.assertTrue(enrollment.is_active)

    def test_fourth_level_is_promoted_to_fifth_in_same_trade(self):
        middle = make_class(self.school, self.trade, 'L4', 2024)
        student, enrollment = self.student_in(middle, 'level4@example.com')
        self.report_card(enrollment, Decimal('65'))

        self.service.promote_students(self.school, 2024)

        log = PromotionLog.objects.get(student=student)
        self.assertEqual(log.status, PromotionLog.Status.PROMOTED)
        self.assertEqual(log.to_class.level, 'L5')
        self.assertEqual(log.to_class.trade, self.trade)
        self.assertEqual(log.to_class.year, 2025)
        self.assertEqual(Enrollment.objects.get(student=student, is_active=True).class_enrolled, log.to_class)

    def test_duplicate_decision_from_another_run_is_skipped(self):
        student, enrollment = self.student_in(self.junior, 'repeat@example.com')
        self.report_card(enrollment, Decimal('30'))
        self.service.promote_students(self.school, 2024)
        self.assertEqual(PromotionLog.objects.get(student=student).status, PromotionLog.Status.REPEATED)
        logs = PromotionLog.objects.count()

        # The repeat decision is not a settled one, so the rerun tries to record it again
        Enrollment.objects.filter(pk=enrollment.pk).update(is_active=True)
        summary = self.service.promote_students(self.school, 2024)

        self.assertEqual(summary[SKIPPED], 1)
        self.assertEqual(PromotionLog.objects.count(), logs)
        self.assertTrue(Enrollment.objects.get(pk=enrollment.pk).is_active)

    def test_summarize_logs(self):
        _, passed = self.student_in(self.junior, 'a@example.com')
        self.report_card(passed, Decimal('80'))
        self.student_in(self.junior, 'b@example.com')
        self.service.promote_students(self.school, 2024)
        self.assertEqual(summarize_logs(self.school, 2024), {'promoted': 1, 'repeated': 1})

    def test_eligibility_report(self):
        student, _ = self.student_in(self.junior, 'eligible@example.com')
        rows = self.service.eligibility_report(self.school, 2024)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['student_id'], str(student.pk))
        self.assertEqual(rows[0]['class_name'], 'L3SOD')
        self.assertEqual(rows[0]['term_number'], 3)


class TermTransitionTestCase(PromotionTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.first_term = self.terms[1]
        self.student = make_student(self.school, 'term@example.com')
        self.enrollment = enroll(self.student, self.junior, self.first_term)

    def service_on(self, day):
        return PromotionService(clock=FixedClock(day))

    def test_term_must_have_ended(self):
        with self.assertRaises(PreconditionError):
            self.service_on(date(2024, 4, 1)).transition_students_to_next_term(self.school, 2024, 1)
        self.assertFalse(PromotionLog.objects.exists())

    def test_third_term_has_no_successor(self):
        with self.assertRaises(PreconditionError):
            self.service_on(YEAR_END).transition_students_to_next_term(self.school, 2024, 3)

    def test_students_move_to_next_term(self):
        summary = self.service_on(date(2024, 4, 10)).transition_students_to_next_term(self.school, 2024, 1)

        self.assertEqual(summary['termTransition'], 1)
        new_enrollment = Enrollment.objects.get(student=self.student, is_active=True)
        self.assertEqual(new_enrollment.term, self.terms[2])
        self.assertEqual(new_enrollment.class_enrolled, self.junior)
        log = PromotionLog.objects.get(student=self.student)
        self.assertEqual(log.status, PromotionLog.Status.TERM_TRANSITION)
        self.assertEqual(log.from_term, self.first_term)
        self.assertEqual(log.to_term, self.terms[2])
        self.enrollment.refresh_from_db()
        self.assertFalse(self.enrollment.is_active)
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ActionType.TERM_TRANSITION).exists())

    def test_missing_next_term_is_created(self):
        school = make_school('NEW')
        term = make_term(school, 2024, 1)
        klass = make_class(school, self.trade, 'L3', 2024)
        enroll(make_student(school, 'new@example.com'), klass, term)

        self.service_on(date(2024, 4, 10)).transition_students_to_next_term(school, 2024, 1)

        created = Term.objects.get(school=school, academic_year=2024, term_number=2)
        self.assertEqual(created.start_date, date(2024, 4, 6))
        self.assertEqual(created.end_date, date(2024, 7, 6))

    def test_already_enrolled_student_is_deactivated(self):
        enroll(self.student, self.junior, self.terms[2])
        summary = self.service_on(date(2024, 4, 10)).transition_students_to_next_term(self.school, 2024, 1)
        self.assertEqual(summary[DEACTIVATED], 1)
        self.assertFalse(PromotionLog.objects.exists())

    def test_scheduled_rerun_is_already_processed(self):
        service = self.service_on(date(2024, 4, 10))
        service.transition_students_to_next_term(self.school, 2024, 1, cron_job=True)
        summary = service.transition_students_to_next_term(self.school, 2024, 1, cron_job=True)
        self.assertTrue(summary.already_processed)
        self.assertEqual(Enrollment.objects.filter(student=self.student).count(), 2)


class AddMonthsTestCase(TestCase):

    def test_clamps_to_month_end(self):
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2024, 11, 30), 3), date(2025, 2, 28))
        self.assertEqual(add_months(date(2024, 4, 6), 3), date(2024, 7, 6))


class PromotionAPITestCase(PromotionTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=make_teacher(self.school, 'dean@example.com'))

    def test_promote(self):
        _, enrollment = self.student_in(self.junior, 'api@example.com')
        self.report_card(enrollment, Decimal('65'))
        response = self.client.post(
            reverse('academics:promote_students'),
            {'school_id': str(self.school.pk), 'academic_year': 2024},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['summary']['counts'], {'promoted': 1})

    def test_incomplete_year_is_bad_request(self):
        response = self.client.post(
            reverse('academics:promote_students'),
            {'school_id': str(self.school.pk), 'academic_year': 2023},
            format='json',
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['category'], 'precondition')

    def test_transition(self):
        enroll(make_student(self.school, 'move@example.com'), self.junior, self.terms[1])
        response = self.client.post(
            reverse('academics:transition_term'),
            {'school_id': str(self.school.pk), 'academic_year': 2024, 'current_term_number': 1},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['message'], 'Students successfully transitioned to Term 2.')


class CommandTestCase(PromotionTestMixin, TestCase):

    def test_promote_students_command(self):
        _, enrollment = self.student_in(self.junior, 'cmd@example.com')
        self.report_card(enrollment, Decimal('65'))
        out = StringIO()
        call_command('promote_students', '--school', 'tss', '--year', '2024', stdout=out)
        self.assertIn('Summary: 1 enrollment(s) processed', out.getvalue())

    def test_unknown_school(self):
        with self.assertRaises(CommandError):
            call_command('promote_students', '--school', 'NOPE', '--year', '2024', stdout=StringIO())

    def test_incomplete_year_fails(self):
        with self.assertRaises(CommandError):
            call_command('promote_students', '--school', 'TSS', '--year', '2023', stdout=StringIO())

    def test_transition_term_command(self):
        enroll(make_student(self.school, 'cmdterm@example.com'), self.junior, self.terms[2])
        out = StringIO()
        call_command('transition_term', '--school', 'TSS', '--year', '2024', '--term', '2', stdout=out)
        self.assertIn('1 enrollment(s) processed', out.getvalue())

    def test_generate_reports_command(self):
        _, enrollment = self.student_in(self.junior, 'report@example.com')
        grade(enrollment, make_subject(self.school, 'Mathematics'), 'exam', 55)
        out = StringIO()
        call_command('generate_reports', '--school', 'TSS', '--year', '2024', '--term', '3', stdout=out)
        self.assertIn('1 report card(s) generated', out.getvalue())
        self.assertEqual(ReportCard.objects.count(), 1)
