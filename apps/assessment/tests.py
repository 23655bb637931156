# apps/assessment/tests.py

from decimal import Decimal

from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from apps.audit.models import AuditLog
from apps.core.exceptions import PreconditionError, RankingError
from apps.core.factories import (
    enroll,
    grade,
    make_class,
    make_school,
    make_student,
    make_subject,
    make_teacher,
    make_trade,
    make_year,
)

from .aggregation import aggregate, decision_for, percentage_of, round_half_up
from .models import Decision, Exam, Question, ReportCard, ReportCardResult, Submission, TeacherPerformance
from .ranking import fractional_rank, rank_entities
from .services import ReportService


class AssessmentTestMixin:
    """Shared fixture: one school, one L3 class, three students in term 1 of 2024"""

    def setUp(self):
        self.school = make_school()
        self.trade = make_trade()
        self.terms = make_year(self.school, 2024)
        self.term = self.terms[1]
        self.klass = make_class(self.school, self.trade, 'L3', 2024)
        self.math_teacher = make_teacher(self.school, 'math@example.com', 'Math', 'Teacher')
        self.english_teacher = make_teacher(self.school, 'english@example.com', 'English', 'Teacher')
        self.math = make_subject(self.school, 'Mathematics', self.math_teacher)
        self.english = make_subject(self.school, 'English', self.english_teacher)
        self.alice = make_student(self.school, 'alice@example.com', 'Alice', 'Uwase')
        self.bob = make_student(self.school, 'bob@example.com', 'Bob', 'Habimana')
        self.carol = make_student(self.school, 'carol@example.com', 'Carol', 'Ingabire')
        self.enrollments = {
            student.pk: enroll(student, self.klass, self.term)
            for student in (self.alice, self.bob, self.carol)
        }

    def enrollment(self, student):
        return self.enrollments[student.pk]


class ScoreHelpersTestCase(TestCase):

    def test_round_half_up(self):
        self.assertEqual(round_half_up(Decimal('0.125')), Decimal('0.13'))
        self.assertEqual(round_half_up(Decimal('2.675')), Decimal('2.68'))

    def test_percentage_of(self):
        self.assertEqual(percentage_of(Decimal('2'), Decimal('3')), Decimal('66.67'))
        self.assertEqual(percentage_of(Decimal('5'), Decimal('0')), Decimal('0.00'))

    def test_decision_threshold_is_inclusive(self):
        self.assertEqual(decision_for(Decimal('70.00')), Decision.COMPETENT)
        self.assertEqual(decision_for(Decimal('69.99')), Decision.NOT_YET_COMPETENT)

    def test_fractional_rank(self):
        self.assertEqual(fractional_rank(1, 3), Decimal('0.3333'))
        self.assertEqual(fractional_rank(2, 3), Decimal('0.6667'))
        self.assertEqual(fractional_rank(1, 0), Decimal('0'))


class DerivedTotalsTestCase(AssessmentTestMixin, TestCase):

    def test_exam_total_points_follow_questions(self):
        exam = Exam.objects.create(title='Quiz', school=self.school, subject=self.math, exam_type='test')
        first = Question.objects.create(exam=exam, text='Q1', max_score=Decimal('10'), order=1)
        Question.objects.create(exam=exam, text='Q2', max_score=Decimal('20'), order=2)
        exam.refresh_from_db()
        self.assertEqual(exam.total_points, Decimal('30'))

        first.delete()
        exam.refresh_from_db()
        self.assertEqual(exam.total_points, Decimal('20'))

    def test_submission_total_follows_answers(self):
        submission = grade(self.enrollment(self.alice), self.math, 'exam', 45, max_score=60)
        self.assertEqual(submission.total_score, Decimal('45'))
        self.assertEqual(submission.percentage, Decimal('75.00'))


class AggregationTestCase(AssessmentTestMixin, TestCase):

    def test_student_scores_per_subject(self):
        enrollment = self.enrollment(self.alice)
        grade(enrollment, self.math, 'assessment1', 12, max_score=15)
        grade(enrollment, self.math, 'assessment2', 10, max_score=15)
        grade(enrollment, self.math, 'test', 8, max_score=10)
        grade(enrollment, self.math, 'exam', 40, max_score=60)
        grade(enrollment, self.english, 'exam', 30, max_score=60)

        rows = aggregate('student', self.school, 2024, student=self.alice, term=self.term)

        self.assertEqual(len(rows), 1)
        row = rows[0]
        self.assertEqual(row['student_id'], self.alice.pk)
        self.assertEqual(row['class_id'], self.klass.pk)
        self.assertEqual(row['term_id'], self.term.pk)
        self.assertEqual(row['total_score'], Decimal('100.00'))
        self.assertEqual(row['average'], Decimal('50.00'))

        english, math = row['results']
        self.assertEqual(math['subject_name'], 'Mathematics')
        self.assertEqual(math['scores']['exam'], Decimal('40'))
        self.assertEqual(math['max_scores']['assessment1'], Decimal('15'))
        self.assertEqual(math['total'], Decimal('70'))
        self.assertEqual(math['max_total'], Decimal('100'))
        self.assertEqual(math['percentage'], Decimal('70.00'))
        self.assertEqual(math['decision'], Decision.COMPETENT)

        self.assertEqual(english['total'], Decimal('30'))
        self.assertEqual(english['percentage'], Decimal('50.00'))
        self.assertEqual(english['decision'], Decision.NOT_YET_COMPETENT)

    def test_ungraded_and_inactive_work_is_ignored(self):
        enrollment = self.enrollment(self.alice)
        submission = grade(enrollment, self.math, 'exam', 50)
        submission.status = Submission.Status.SUBMITTED
        submission.save()

        self.assertEqual(aggregate('student', self.school, 2024, student=self.alice, term=self.term), [])

        grade(self.enrollment(self.bob), self.math, 'exam', 50)
        self.enrollment(self.bob).deactivate('moved')
        self.assertEqual(aggregate('term', self.school, 2024, term=self.term), [])

    def test_zero_maximum_scores_zero_percent(self):
        exam = Exam.objects.create(title='Empty', school=self.school, subject=self.math, exam_type='exam')
        Submission.objects.create(
            exam=exam,
            student=self.alice,
            enrollment=self.enrollment(self.alice),
            status=Submission.Status.GRADED,
        )

        row = aggregate('student', self.school, 2024, student=self.alice, term=self.term)[0]
        result = row['results'][0]
        self.assertEqual(result['max_total'], Decimal('0'))
        self.assertEqual(result['percentage'], Decimal('0.00'))
        self.assertEqual(result['decision'], Decision.NOT_YET_COMPETENT)

    def test_subjectless_exams_are_skipped(self):
        enrollment = self.enrollment(self.alice)
        grade(enrollment, self.math, 'exam', 50)
        grade(enrollment, None, 'exam', 90)

        with self.assertLogs('apps.assessment.aggregation', level='WARNING'):
            rows = aggregate('student', self.school, 2024, student=self.alice, term=self.term)
        self.assertEqual(len(rows[0]['results']), 1)
        self.assertEqual(rows[0]['total_score'], Decimal('50.00'))

    def test_missing_and_unknown_parameters(self):
        with self.assertRaises(PreconditionError):
            aggregate('class', self.school, 2024, term=self.term)
        with self.assertRaises(PreconditionError):
            aggregate('term', self.school, 2024, term=self.term, subject=self.math)
        with self.assertRaises(PreconditionError):
            aggregate('galaxy', self.school, 2024)

    def test_single_assessment_scope(self):
        enrollment = self.enrollment(self.alice)
        grade(enrollment, self.math, 'assessment1', 12, max_score=15)
        grade(enrollment, self.math, 'exam', 40, max_score=60)

        rows = aggregate('assessment', self.school, 2024, term=self.term, category='assessment1')
        result = rows[0]['results'][0]
        self.assertEqual(result['scores'], {'assessment1': Decimal('12')})
        self.assertEqual(result['percentage'], Decimal('80.00'))

        with self.assertRaises(PreconditionError):
            aggregate('assessment', self.school, 2024, term=self.term, category='test')


class RankingTestCase(TestCase):

    def test_competition_ranking_shares_ties(self):
        rows = [{'total_score': Decimal('10')}, {'total_score': Decimal('5')}, {'total_score': Decimal('10')}]
        rank_entities(rows, 'trade')
        self.assertEqual([row['rank'] for row in rows], [Decimal('1'), Decimal('3'), Decimal('1')])

    def test_score_resolution_order(self):
        rows = [{'average': Decimal('40')}, {'average_score': Decimal('60')}, {'name': 'unscored'}]
        rank_entities(rows, 'school')
        self.assertEqual([row['rank'] for row in rows], [Decimal('2'), Decimal('1'), Decimal('0')])

    def test_ranking_requires_school_for_population_scopes(self):
        with self.assertRaises(PreconditionError):
            rank_entities([{'total_score': 1}], 'teacher')

    def test_failed_save_raises_ranking_error(self):
        class Unsaveable:
            def __init__(self, score):
                self.total_score = Decimal(score)
                self.rank = None

            def save(self, update_fields=None):
                raise DatabaseError('database is locked')

        entities = [Unsaveable(5), Unsaveable(7)]
        with self.assertRaises(RankingError) as caught:
            rank_entities(entities, 'trade')
        self.assertEqual(len(caught.exception.entities), 2)
        self.assertEqual(entities[1].rank, Decimal('1'))


class ReportServiceTestCase(AssessmentTestMixin, TestCase):

    def grade_class(self):
        grade(self.enrollment(self.alice), self.math, 'exam', 90)
        grade(self.enrollment(self.bob), self.math, 'exam', 80)
        grade(self.enrollment(self.carol), self.math, 'exam', 70)

    def test_class_report_ranks_students(self):
        self.grade_class()
        cards = ReportService().generate_class_report(self.school, 2024, self.term, self.klass)

        self.assertEqual([card.student for card in cards], [self.alice, self.bob, self.carol])
        self.assertEqual(
            [card.rank for card in cards],
            [Decimal('0.3333'), Decimal('0.6667'), Decimal('1.0000')],
        )
        self.assertEqual(cards[0].results.get().decision, Decision.COMPETENT)
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ActionType.GENERATE_REPORT).exists())

    def test_regeneration_is_idempotent(self):
        self.grade_class()
        service = ReportService()
        first = service.generate_class_report(self.school, 2024, self.term, self.klass)
        second = service.generate_class_report(self.school, 2024, self.term, self.klass)

        self.assertEqual(ReportCard.objects.count(), 3)
        self.assertEqual(ReportCardResult.objects.count(), 3)
        self.assertEqual([card.pk for card in first], [card.pk for card in second])
        self.assertEqual([card.rank for card in first], [card.rank for card in second])
        self.assertEqual([card.total_score for card in second], [Decimal('90'), Decimal('80'), Decimal('70')])

    def test_ties_get_distinct_positions(self):
        grade(self.enrollment(self.alice), self.math, 'exam', 75)
        grade(self.enrollment(self.bob), self.math, 'exam', 75)
        cards = ReportService().generate_class_report(self.school, 2024, self.term, self.klass)
        self.assertEqual(sorted(card.rank for card in cards), [Decimal('0.5000'), Decimal('1.0000')])

    def test_student_report(self):
        self.grade_class()
        card = ReportService().generate_student_report(self.school, 2024, self.term, self.alice)
        self.assertEqual(card.student, self.alice)
        self.assertEqual(card.average, Decimal('90.00'))
        self.assertEqual(card.rank, Decimal('1.0000'))

    def test_student_report_without_work(self):
        self.assertIsNone(ReportService().generate_student_report(self.school, 2024, self.term, self.alice))

    def test_subject_report_uses_competition_ranking(self):
        self.grade_class()
        grade(self.enrollment(self.carol), self.english, 'exam', 95)
        cards = ReportService().generate_subject_report(self.school, 2024, self.term, self.math)
        self.assertEqual([card.rank for card in cards], [Decimal('1'), Decimal('2'), Decimal('3')])
        carol = next(card for card in cards if card.student == self.carol)
        self.assertEqual([result.subject for result in carol.results.all()], [self.math])

    def test_term_must_match_year(self):
        other_year = make_year(self.school, 2025, numbers=(1,))[1]
        with self.assertRaises(PreconditionError):
            ReportService().generate_term_report(self.school, 2024, other_year)
        self.assertFalse(ReportCard.objects.exists())

    def test_passing_threshold_range(self):
        self.grade_class()
        with self.assertRaises(PreconditionError):
            ReportService().generate_term_report(self.school, 2024, self.term, passing_threshold=150)
        cards = ReportService().generate_term_report(self.school, 2024, self.term, passing_threshold=60)
        self.assertEqual(cards[0].passing_threshold, Decimal('60'))

    def test_school_report_uses_latest_enrollment(self):
        grade(self.enrollment(self.alice), self.math, 'exam', 60)
        later = enroll(self.alice, self.klass, self.terms[2])
        grade(later, self.english, 'exam', 80)

        cards = ReportService().generate_school_report(self.school, 2024)
        card = next(card for card in cards if card.student == self.alice)
        self.assertEqual(card.term, self.terms[2])
        self.assertEqual(card.total_score, Decimal('140.00'))

    def test_teacher_report(self):
        make_teacher(self.school, 'idle@example.com')
        grade(self.enrollment(self.alice), self.math, 'exam', 80)
        grade(self.enrollment(self.bob), self.math, 'exam', 60)
        grade(self.enrollment(self.alice), self.english, 'exam', 90)

        records = ReportService().generate_teacher_report(self.school, 2024, self.term)

        self.assertEqual([record.teacher for record in records], [self.english_teacher, self.math_teacher])
        english, math = records
        self.assertEqual(english.rank, Decimal('0.3333'))
        self.assertEqual(math.rank, Decimal('0.6667'))
        self.assertEqual(math.total_students, 2)
        self.assertEqual(math.average_score, Decimal('70.00'))
        self.assertEqual(math.competency_rate, Decimal('50.00'))

        ReportService().generate_teacher_report(self.school, 2024, self.term)
        self.assertEqual(TeacherPerformance.objects.count(), 2)

    def test_class_performance_is_not_persisted(self):
        senior = make_class(self.school, self.trade, 'L4', 2024)
        dan = make_student(self.school, 'dan@example.com', 'Dan')
        grade(enroll(dan, senior, self.term), self.math, 'exam', 50)
        grade(self.enrollment(self.alice), self.math, 'exam', 90)
        grade(self.enrollment(self.bob), self.math, 'exam', 80)

        rows = ReportService().generate_class_performance_report(self.school, 2024)

        by_class = {row['class_id']: row for row in rows}
        self.assertEqual(by_class[self.klass.pk]['student_count'], 2)
        self.assertEqual(by_class[self.klass.pk]['average_score'], Decimal('85.00'))
        self.assertEqual(by_class[self.klass.pk]['rank'], Decimal('0.5000'))
        self.assertEqual(by_class[senior.pk]['rank'], Decimal('1.0000'))
        self.assertFalse(ReportCard.objects.exists())

    def test_create_report_card(self):
        card = ReportService().create_report_card(
            self.school, 2024, self.term, self.alice, self.klass,
            [{'subject': self.math.pk, 'scores': {'assessment1': 12, 'assessment2': 13, 'test': 8, 'exam': 45}}],
        )
        result = card.results.get()
        self.assertEqual(result.total, Decimal('78'))
        self.assertEqual(result.max_total, Decimal('100'))
        self.assertEqual(result.decision, Decision.COMPETENT)
        self.assertEqual(card.average, Decimal('78.00'))
        self.assertEqual(card.rank, Decimal('1.0000'))
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ActionType.CREATE).exists())

    def test_create_report_card_rejects_scores_above_maximum(self):
        with self.assertRaises(PreconditionError):
            ReportService().create_report_card(
                self.school, 2024, self.term, self.alice, self.klass,
                [{'subject': self.math.pk, 'scores': {'test': 11}}],
            )
        self.assertFalse(ReportCard.objects.exists())

    def test_rank_holds_large_competition_positions(self):
        card = ReportCard.objects.create(
            student=self.alice,
            class_enrolled=self.klass,
            academic_year=2024,
            term=self.term,
            school=self.school,
            total_score=Decimal('12'),
            average=Decimal('12'),
        )
        card.rank = Decimal('125000')
        card.save(update_fields=['rank'])
        card.refresh_from_db()
        self.assertEqual(card.rank, Decimal('125000'))


class ReportAPITestCase(AssessmentTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.math_teacher)
        grade(self.enrollment(self.alice), self.math, 'exam', 90)
        grade(self.enrollment(self.bob), self.math, 'exam', 80)

    def url(self, scope):
        return reverse('assessment:report_generate', kwargs={'scope': scope})

    def payload(self, **extra):
        data = {'school_id': str(self.school.pk), 'academic_year': 2024, 'term_id': str(self.term.pk)}
        data.update(extra)
        return data

    def test_generate_class_report(self):
        response = self.client.post(self.url('class'), self.payload(class_id=str(self.klass.pk)), format='json')
        self.assertEqual(response.status_code, 200)
        cards = response.data['report_cards']
        self.assertEqual(len(cards), 2)
        self.assertEqual(cards[0]['student_name'], 'Alice Uwase')
        self.assertEqual(cards[0]['class_name'], 'L3SOD')
        self.assertEqual(Decimal(str(cards[0]['rank'])), Decimal('0.5000'))

    def test_missing_parameter_is_bad_request(self):
        response = self.client.post(self.url('class'), self.payload(), format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['category'], 'precondition')

    def test_unknown_scope_is_bad_request(self):
        response = self.client.post(self.url('galaxy'), self.payload(), format='json')
        self.assertEqual(response.status_code, 400)

    def test_invalid_request_body_is_bad_request(self):
        response = self.client.post(self.url('term'), {'academic_year': 'soon'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['category'], 'precondition')

    def test_student_without_work_is_not_found(self):
        response = self.client.post(self.url('student'), self.payload(student_id=str(self.carol.pk)), format='json')
        self.assertEqual(response.status_code, 404)

    def test_promotion_eligibility(self):
        response = self.client.post(self.url('promotion-eligibility'), self.payload(), format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data['report']), 3)

    def test_create_report_card(self):
        response = self.client.post(
            reverse('assessment:reportcard_create'),
            {
                'school_id': str(self.school.pk),
                'academic_year': 2024,
                'term_id': str(self.term.pk),
                'student_id': str(self.carol.pk),
                'class_id': str(self.klass.pk),
                'results': [{'subject': str(self.english.pk), 'scores': {'exam': '50'}}],
            },
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['report_card']['results'][0]['decision'], Decision.NOT_YET_COMPETENT)

    def test_authentication_required(self):
        client = APIClient()
        response = client.post(self.url('term'), self.payload(), format='json')
        self.assertIn(response.status_code, (401, 403))
