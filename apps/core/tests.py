# apps/core/tests.py

from datetime import date, datetime

from django.test import TestCase
from django.utils import timezone

from .clock import FixedClock, SystemClock, get_default_clock
from .exceptions import (
    AggregationError,
    ConsistencyError,
    CoreServiceError,
    PreconditionError,
    RankingError,
)
from .factories import make_school
from .models import School


class SchoolModelTestCase(TestCase):
    """Test cases for the School model and soft delete behaviour"""

    def test_code_is_normalised(self):
        school = School.objects.create(code=' tss ', name='Tumba Technical School')
        self.assertEqual(school.code, 'TSS')

    def test_soft_delete_and_restore(self):
        school = make_school()
        school.delete()
        school.refresh_from_db()
        self.assertTrue(school.is_deleted)
        self.assertIsNotNone(school.deleted_at)
        self.assertTrue(School.objects.filter(pk=school.pk).exists())

        school.restore()
        school.refresh_from_db()
        self.assertFalse(school.is_deleted)
        self.assertIsNone(school.deleted_at)

    def test_hard_delete_removes_row(self):
        school = make_school()
        school.hard_delete()
        self.assertFalse(School.objects.filter(pk=school.pk).exists())


class ClockTestCase(TestCase):

    def test_fixed_clock_accepts_a_date(self):
        clock = FixedClock(date(2024, 12, 1))
        self.assertEqual(clock.today(), date(2024, 12, 1))
        self.assertTrue(timezone.is_aware(clock.now()))

    def test_fixed_clock_accepts_a_datetime(self):
        clock = FixedClock(datetime(2024, 5, 17, 10, 30))
        self.assertEqual(clock.today(), date(2024, 5, 17))
        self.assertEqual(clock.now().hour, 10)

    def test_default_clock_is_system_clock(self):
        clock = get_default_clock()
        self.assertIsInstance(clock, SystemClock)
        self.assertEqual(clock.today(), timezone.localdate())


class ExceptionTestCase(TestCase):

    def test_categories(self):
        self.assertEqual(CoreServiceError('x').category, 'internal')
        self.assertEqual(PreconditionError('x').category, 'precondition')
        self.assertEqual(AggregationError('x').category, 'aggregation')
        self.assertEqual(RankingError('x').category, 'aggregation')
        self.assertEqual(ConsistencyError('x').category, 'consistency')

    def test_details_are_kept(self):
        error = PreconditionError('Term is required.', scope='class')
        self.assertEqual(str(error), 'Term is required.')
        self.assertEqual(error.details, {'scope': 'class'})

    def test_ranking_error_carries_entities(self):
        entities = [{'rank': 1}]
        error = RankingError('failed', entities=entities, scope='student')
        self.assertIs(error.entities, entities)
        self.assertIsInstance(error, AggregationError)
