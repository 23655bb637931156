# apps/academics/models.py

from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils.translation import gettext_lazy as _

from apps.core.exceptions import ConsistencyError
from apps.core.models import CoreBaseModel


LEVEL_SEQUENCE = ('L3', 'L4', 'L5')


class Trade(CoreBaseModel):
    """
    A vocational programme (Software Development, Building Construction, ...).
    Students only ever progress inside their own trade.
    """
    code = models.CharField(_('trade code'), max_length=10, unique=True)
    name = models.CharField(_('trade name'), max_length=100)
    description = models.TextField(_('description'), blank=True)

    class Meta:
        verbose_name = _('Trade')
        verbose_name_plural = _('Trades')
        ordering = ['code']

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)


class Class(CoreBaseModel):
    """
    One cohort of a trade at a level for an academic year, e.g. L4SOD 2024.
    """
    class Level(models.TextChoices):
        L3 = 'L3', _('Level 3')
        L4 = 'L4', _('Level 4')
        L5 = 'L5', _('Level 5')

    level = models.CharField(_('level'), max_length=2, choices=Level.choices)
    trade = models.ForeignKey(
        Trade,
        on_delete=models.PROTECT,
        related_name='classes',
        verbose_name=_('trade')
    )
    year = models.PositiveIntegerField(_('academic year'), db_index=True)
    school = models.ForeignKey(
        'core.School',
        on_delete=models.CASCADE,
        related_name='classes',
        verbose_name=_('school')
    )
    capacity = models.PositiveIntegerField(
        _('maximum capacity'),
        default=30,
        validators=[MinValueValidator(1)]
    )
    subjects = models.ManyToManyField(
        'Subject',
        blank=True,
        related_name='classes',
        verbose_name=_('subjects')
    )

    class Meta:
        verbose_name = _('Class')
        verbose_name_plural = _('Classes')
        ordering = ['year', 'level', 'trade__code']
        constraints = [
            models.UniqueConstraint(
                fields=['level', 'trade', 'year', 'school'],
                name='unique_class_per_level_trade_year_school'
            ),
            models.CheckConstraint(
                condition=models.Q(capacity__gte=1),
                name='class_capacity_at_least_one'
            ),
        ]
        indexes = [
            models.Index(fields=['school', 'year'], name='class_school_year_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.year})"

    @property
    def name(self):
        return f"{self.level}{self.trade.code}"

    @property
    def next_level(self):
        """The level this class promotes into, or None at the last level."""
        index = LEVEL_SEQUENCE.index(self.level)
        if index + 1 < len(LEVEL_SEQUENCE):
            return LEVEL_SEQUENCE[index + 1]
        return None

    def active_enrollment_count(self, term):
        return self.enrollments.filter(term=term, is_active=True, is_deleted=False).count()

    def is_full(self, term):
        """Check if class has reached capacity for a term."""
        return self.active_enrollment_count(term) >= self.capacity


class Term(CoreBaseModel):
    """
    One of the three terms of a school's academic year.
    """
    class TermNumber(models.IntegerChoices):
        FIRST = 1, _('First Term')
        SECOND = 2, _('Second Term')
        THIRD = 3, _('Third Term')

    school = models.ForeignKey(
        'core.School',
        on_delete=models.CASCADE,
        related_name='terms',
        verbose_name=_('school')
    )
    academic_year = models.PositiveIntegerField(_('academic year'), db_index=True)
    term_number = models.PositiveSmallIntegerField(
        _('term number'),
        choices=TermNumber.choices,
        validators=[MinValueValidator(1), MaxValueValidator(3)]
    )
    start_date = models.DateField(_('start date'))
    end_date = models.DateField(_('end date'))

    class Meta:
        verbose_name = _('Term')
        verbose_name_plural = _('Terms')
        ordering = ['academic_year', 'term_number']
        constraints = [
            models.UniqueConstraint(
                fields=['school', 'academic_year', 'term_number'],
                name='unique_term_per_school_year'
            ),
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F('start_date')),
                name='term_end_date_after_start_date'
            ),
            models.CheckConstraint(
                condition=models.Q(term_number__gte=1) & models.Q(term_number__lte=3),
                name='term_number_between_one_and_three'
            ),
        ]

    def __str__(self):
        return f"Term {self.term_number} {self.academic_year}"

    @property
    def name(self):
        return f"Term {self.term_number}"


class Subject(CoreBaseModel):
    """
    Academic subjects taught in a school
    """
    name = models.CharField(_('subject name'), max_length=100)
    school = models.ForeignKey(
        'core.School',
        on_delete=models.CASCADE,
        related_name='subjects',
        verbose_name=_('school')
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='subjects_taught',
        verbose_name=_('assigned teacher')
    )
    description = models.TextField(_('description'), blank=True)
    credits = models.PositiveIntegerField(_('credits'), default=1)

    class Meta:
        verbose_name = _('Subject')
        verbose_name_plural = _('Subjects')
        ordering = ['name']
        indexes = [
            models.Index(fields=['school', 'teacher'], name='subject_school_teacher_idx'),
        ]

    def __str__(self):
        return self.name


class Enrollment(CoreBaseModel):
    """
    Places a student in a class for one term.
    Deactivated, never deleted, when the student moves on.
    """
    class PromotionStatus(models.TextChoices):
        ELIGIBLE = 'eligible', _('Eligible')
        REPEAT = 'repeat', _('Repeat')
        EXPELLED = 'expelled', _('Expelled')
        ON_LEAVE = 'onLeave', _('On Leave')
        WITHDRAWN = 'withdrawn', _('Withdrawn')

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='enrollments',
        verbose_name=_('student')
    )
    class_enrolled = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='enrollments',
        verbose_name=_('class')
    )
    term = models.ForeignKey(
        Term,
        on_delete=models.CASCADE,
        related_name='enrollments',
        verbose_name=_('term')
    )
    school = models.ForeignKey(
        'core.School',
        on_delete=models.CASCADE,
        related_name='enrollments',
        verbose_name=_('school')
    )
    promotion_status = models.CharField(
        _('promotion status'),
        max_length=20,
        choices=PromotionStatus.choices,
        default=PromotionStatus.ELIGIBLE
    )
    transferred_from_school = models.ForeignKey(
        'core.School',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transferred_enrollments',
        verbose_name=_('transferred from school')
    )
    remarks = models.TextField(_('remarks'), blank=True)

    class Meta:
        verbose_name = _('Enrollment')
        verbose_name_plural = _('Enrollments')
        ordering = ['class_enrolled', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'term'],
                condition=models.Q(is_deleted=False),
                name='unique_enrollment_per_student_term'
            ),
        ]
        indexes = [
            models.Index(fields=['class_enrolled', 'term'], name='enrollment_class_term_idx'),
            models.Index(fields=['school', 'term', 'is_active'], name='enrollment_school_term_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.class_enrolled} ({self.term})"

    def deactivate(self, remarks=''):
        self.is_active = False
        self.remarks = remarks
        self.save(update_fields=['is_active', 'remarks', 'updated_at'])


class PromotionLog(CoreBaseModel):
    """
    Immutable record of one promotion decision per student per academic year,
    or of one term transition per student per term.
    """
    class Status(models.TextChoices):
        PROMOTED = 'promoted', _('Promoted')
        REPEATED = 'repeated', _('Repeated')
        GRADUATED = 'graduated', _('Graduated')
        EXPELLED = 'expelled', _('Expelled')
        ON_LEAVE = 'onLeave', _('On Leave')
        WITHDRAWN = 'withdrawn', _('Withdrawn')
        TERM_TRANSITION = 'termTransition', _('Term Transition')

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='promotion_logs',
        verbose_name=_('student')
    )
    from_class = models.ForeignKey(
        Class,
        on_delete=models.PROTECT,
        related_name='promotions_out',
        verbose_name=_('from class')
    )
    to_class = models.ForeignKey(
        Class,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='promotions_in',
        verbose_name=_('to class')
    )
    from_term = models.ForeignKey(
        Term,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transitions_out',
        verbose_name=_('from term')
    )
    to_term = models.ForeignKey(
        Term,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transitions_in',
        verbose_name=_('to term')
    )
    academic_year = models.PositiveIntegerField(_('academic year'), db_index=True)
    status = models.CharField(_('status'), max_length=20, choices=Status.choices)
    remarks = models.TextField(_('remarks'), blank=True)
    school = models.ForeignKey(
        'core.School',
        on_delete=models.PROTECT,
        related_name='promotion_logs',
        verbose_name=_('school')
    )
    promotion_date = models.DateTimeField(_('promotion date'))
    manual = models.BooleanField(_('manual'), default=False)
    cron_job = models.BooleanField(_('triggered by scheduler'), default=False)
    passing_threshold = models.DecimalField(
        _('passing threshold'),
        max_digits=5,
        decimal_places=2,
        default=50
    )

    class Meta:
        verbose_name = _('Promotion Log')
        verbose_name_plural = _('Promotion Logs')
        ordering = ['-promotion_date']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'academic_year'],
                condition=models.Q(from_term__isnull=True),
                name='unique_promotion_per_student_year'
            ),
            models.UniqueConstraint(
                fields=['student', 'academic_year', 'from_term'],
                condition=models.Q(from_term__isnull=False),
                name='unique_transition_per_student_term'
            ),
        ]
        indexes = [
            models.Index(fields=['school', 'academic_year', 'status'], name='promotionlog_year_status_idx'),
        ]

    def __str__(self):
        return f"{self.student} {self.get_status_display()} ({self.academic_year})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ConsistencyError(f"Promotion log {self.pk} is immutable")
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise ConsistencyError(f"Promotion log {self.pk} cannot be deleted")

    def hard_delete(self, using=None, keep_parents=False):
        raise ConsistencyError(f"Promotion log {self.pk} cannot be deleted")
