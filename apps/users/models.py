import uuid
from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.utils.translation import gettext_lazy as _


class UserManager(BaseUserManager):
    """
    Custom user manager for email-based authentication.
    """
    def create_user(self, email, password=None, **extra_fields):
        """
        Create and return a regular user with an email and password.
        """
        if not email:
            raise ValueError(_('The Email field must be set'))

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create and return a superuser with admin permissions.
        """
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('role', User.Role.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError(_('Superuser must have is_staff=True.'))
        if extra_fields.get('is_superuser') is not True:
            raise ValueError(_('Superuser must have is_superuser=True.'))

        return self.create_user(email, password, **extra_fields)

    def active_teachers(self, school):
        """Teachers of a school that count towards teacher rankings."""
        return self.filter(
            role=User.Role.TEACHER,
            school=school,
            is_active=True,
            is_deleted=False,
        )


class User(AbstractUser):
    """
    Custom User model with email as primary identifier.
    Students, teachers and school staff share this table and are told apart by role.
    """
    class Role(models.TextChoices):
        STUDENT = 'student', _('Student')
        TEACHER = 'teacher', _('Teacher')
        DEAN = 'dean', _('Dean')
        ADMIN = 'admin', _('Admin')
        HEADMASTER = 'headmaster', _('Headmaster')

    id = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        primary_key=True,
    )
    # Remove username field, use email instead
    username = None
    email = models.EmailField(
        _('email address'),
        unique=True,
        db_index=True,
    )
    role = models.CharField(
        _('role'),
        max_length=20,
        choices=Role.choices,
        default=Role.STUDENT,
        db_index=True
    )
    school = models.ForeignKey(
        'core.School',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='users',
        verbose_name=_('school')
    )
    registration_number = models.CharField(
        _('registration number'),
        max_length=30,
        blank=True,
        help_text=_('Only used for students')
    )

    graduated = models.BooleanField(_('graduated'), default=False)
    graduation_date = models.DateField(_('graduation date'), null=True, blank=True)

    is_deleted = models.BooleanField(_('is deleted'), default=False, db_index=True)

    # Override AbstractUser fields to make optional
    first_name = models.CharField(_('first name'), max_length=150, blank=True)
    last_name = models.CharField(_('last name'), max_length=150, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = _('User')
        verbose_name_plural = _('Users')
        ordering = ['-date_joined']
        indexes = [
            models.Index(fields=['role', 'school'], name='user_role_school_idx'),
            models.Index(fields=['is_active', 'is_deleted'], name='user_active_deleted_idx'),
        ]

    def __str__(self):
        return self.full_name or self.email

    @property
    def full_name(self):
        """Return the full name of the user."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_student(self):
        return self.role == self.Role.STUDENT

    @property
    def is_teacher(self):
        return self.role == self.Role.TEACHER

    def mark_graduated(self, graduation_date):
        """Flag a student as graduated; used by the promotion run."""
        self.graduated = True
        self.graduation_date = graduation_date
        self.save(update_fields=['graduated', 'graduation_date'])
