# apps/users/tests.py

from django.contrib.auth import get_user_model
from django.test import TestCase

from apps.core.factories import make_school, make_student, make_teacher

User = get_user_model()


class UserManagerTestCase(TestCase):

    def setUp(self):
        self.school = make_school()

    def test_create_user_requires_email(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='testpass123')

    def test_create_user_defaults_to_student(self):
        user = User.objects.create_user(email='Alice@Example.com', password='testpass123')
        self.assertEqual(user.role, User.Role.STUDENT)
        self.assertTrue(user.is_student)
        self.assertTrue(user.check_password('testpass123'))

    def test_create_superuser(self):
        admin = User.objects.create_superuser(email='admin@example.com', password='testpass123')
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)
        self.assertEqual(admin.role, User.Role.ADMIN)

    def test_active_teachers(self):
        teacher = make_teacher(self.school, 'teacher@example.com')
        inactive = make_teacher(self.school, 'inactive@example.com')
        inactive.is_active = False
        inactive.save()
        deleted = make_teacher(self.school, 'deleted@example.com')
        deleted.is_deleted = True
        deleted.save()
        make_teacher(make_school('OTH'), 'other@example.com')
        make_student(self.school, 'student@example.com')

        self.assertEqual(list(User.objects.active_teachers(self.school)), [teacher])


class UserModelTestCase(TestCase):

    def test_full_name_and_str(self):
        user = make_student(make_school(), 'jean@example.com', 'Jean', 'Mugisha')
        self.assertEqual(user.full_name, 'Jean Mugisha')
        self.assertEqual(str(user), 'Jean Mugisha')

    def test_mark_graduated(self):
        from datetime import date

        user = make_student(make_school(), 'grad@example.com')
        user.mark_graduated(date(2024, 12, 1))
        user.refresh_from_db()
        self.assertTrue(user.graduated)
        self.assertEqual(user.graduation_date, date(2024, 12, 1))
