# apps/audit/tests.py

from django.contrib.auth.models import AnonymousUser
from django.test import TestCase

from apps.core.factories import make_school, make_teacher

from .models import AuditLog


class AuditLogTestCase(TestCase):

    def setUp(self):
        self.school = make_school()

    def test_record_describes_instance(self):
        user = make_teacher(self.school, 'dean@example.com')
        entry = AuditLog.record(
            AuditLog.ActionType.GENERATE_REPORT,
            self.school,
            details={'scope': 'class'},
            user=user,
        )
        self.assertEqual(entry.model_name, 'School')
        self.assertEqual(entry.object_id, str(self.school.pk))
        self.assertEqual(entry.details, {'scope': 'class'})
        self.assertEqual(entry.user, user)

    def test_record_without_authenticated_user(self):
        entry = AuditLog.record(AuditLog.ActionType.PROMOTE, self.school, user=AnonymousUser())
        self.assertIsNone(entry.user)
        self.assertEqual(entry.details, {})

        entry = AuditLog.record(AuditLog.ActionType.PROMOTE, self.school)
        self.assertIsNone(entry.user)
