# apps/assessment/models.py

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Sum
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils.translation import gettext_lazy as _

from apps.core.models import CoreBaseModel
# Use app-label strings for related models to avoid import-time side-effects


class AssessmentBaseModel(CoreBaseModel):
    """
    Base model for all assessment-related models.
    """
    class Meta:
        abstract = True


class AssessmentCategory(models.TextChoices):
    """The four categories a subject's score is composed of."""
    ASSESSMENT1 = 'assessment1', _('Assessment 1')
    ASSESSMENT2 = 'assessment2', _('Assessment 2')
    TEST = 'test', _('Test')
    EXAM = 'exam', _('Exam')


class Decision(models.TextChoices):
    COMPETENT = 'Competent', _('Competent')
    NOT_YET_COMPETENT = 'Not Yet Competent', _('Not Yet Competent')


class Exam(AssessmentBaseModel):
    """
    An exam definition. total_points always equals the sum of its questions' max scores.
    """
    title = models.CharField(_('exam title'), max_length=200)
    school = models.ForeignKey(
        'core.School',
        on_delete=models.CASCADE,
        related_name='exams',
        verbose_name=_('school')
    )
    subject = models.ForeignKey(
        'academics.Subject',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='exams',
        verbose_name=_('subject')
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='exams_set',
        verbose_name=_('teacher')
    )
    classes = models.ManyToManyField(
        'academics.Class',
        blank=True,
        related_name='exams',
        verbose_name=_('classes')
    )
    exam_type = models.CharField(
        _('exam type'),
        max_length=20,
        choices=AssessmentCategory.choices,
        db_index=True
    )
    total_points = models.DecimalField(
        _('total points'),
        max_digits=8,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)]
    )

    class Meta:
        verbose_name = _('Exam')
        verbose_name_plural = _('Exams')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['school', 'exam_type'], name='exam_school_type_idx'),
            models.Index(fields=['subject', 'exam_type'], name='exam_subject_type_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_exam_type_display()})"

    def recalculate_total_points(self):
        total = self.questions.filter(is_deleted=False).aggregate(total=Sum('max_score'))['total']
        self.total_points = total or Decimal('0')
        self.save(update_fields=['total_points', 'updated_at'])


class Question(AssessmentBaseModel):
    """
    A single question of an exam.
    """
    class QuestionType(models.TextChoices):
        MULTIPLE_CHOICE = 'multiple-choice', _('Multiple Choice')
        TRUE_FALSE = 'true-false', _('True/False')
        SHORT_ANSWER = 'short-answer', _('Short Answer')
        ESSAY = 'essay', _('Essay')

    exam = models.ForeignKey(
        Exam,
        on_delete=models.CASCADE,
        related_name='questions',
        verbose_name=_('exam')
    )
    question_type = models.CharField(
        _('question type'),
        max_length=20,
        choices=QuestionType.choices,
        default=QuestionType.SHORT_ANSWER
    )
    text = models.TextField(_('question text'))
    max_score = models.DecimalField(
        _('maximum score'),
        max_digits=6,
        decimal_places=2,
        validators=[MinValueValidator(1)]
    )
    order = models.PositiveIntegerField(_('order'), default=0)

    class Meta:
        verbose_name = _('Question')
        verbose_name_plural = _('Questions')
        ordering = ['exam', 'order']

    def __str__(self):
        return f"{self.exam.title} - Q{self.order}"


class Submission(AssessmentBaseModel):
    """
    One student's attempt at an exam. total_score is derived from its answers.
    """
    class Status(models.TextChoices):
        IN_PROGRESS = 'in-progress', _('In Progress')
        SUBMITTED = 'submitted', _('Submitted')
        AUTO_SUBMITTED = 'auto-submitted', _('Auto Submitted')
        GRADED = 'graded', _('Graded')

    exam = models.ForeignKey(
        Exam,
        on_delete=models.CASCADE,
        related_name='submissions',
        verbose_name=_('exam')
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='submissions',
        verbose_name=_('student')
    )
    enrollment = models.ForeignKey(
        'academics.Enrollment',
        on_delete=models.CASCADE,
        related_name='submissions',
        verbose_name=_('enrollment')
    )
    status = models.CharField(
        _('status'),
        max_length=20,
        choices=Status.choices,
        default=Status.IN_PROGRESS,
        db_index=True
    )
    total_score = models.DecimalField(
        _('total score'),
        max_digits=8,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)]
    )
    percentage = models.DecimalField(
        _('percentage'),
        max_digits=5,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    started_at = models.DateTimeField(_('started at'), null=True, blank=True)
    submitted_at = models.DateTimeField(_('submitted at'), null=True, blank=True)
    graded_at = models.DateTimeField(_('graded at'), null=True, blank=True)

    class Meta:
        verbose_name = _('Submission')
        verbose_name_plural = _('Submissions')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['exam', 'student'],
                condition=models.Q(is_deleted=False),
                name='unique_submission_per_exam_student'
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'is_deleted'], name='submission_status_idx'),
            models.Index(fields=['enrollment', 'status'], name='submission_enrollment_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.exam}"

    def recalculate_total_score(self):
        total = self.answers.filter(is_deleted=False).aggregate(total=Sum('score'))['total'] or Decimal('0')
        self.total_score = total
        if self.exam.total_points:
            self.percentage = (total / self.exam.total_points * 100).quantize(Decimal('0.01'))
        else:
            self.percentage = Decimal('0')
        self.save(update_fields=['total_score', 'percentage', 'updated_at'])


class AnswerScore(AssessmentBaseModel):
    """
    The score awarded for one answer of a submission.
    """
    submission = models.ForeignKey(
        Submission,
        on_delete=models.CASCADE,
        related_name='answers',
        verbose_name=_('submission')
    )
    question = models.ForeignKey(
        Question,
        on_delete=models.CASCADE,
        related_name='answers',
        verbose_name=_('question')
    )
    position = models.PositiveIntegerField(_('position'), default=0)
    answer_text = models.TextField(_('answer text'), blank=True)
    score = models.DecimalField(
        _('score'),
        max_digits=6,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)]
    )
    graded = models.BooleanField(_('is graded'), default=False)
    feedback = models.TextField(_('feedback'), blank=True)

    class Meta:
        verbose_name = _('Answer Score')
        verbose_name_plural = _('Answer Scores')
        ordering = ['submission', 'position']
        unique_together = ['submission', 'question']

    def __str__(self):
        return f"{self.submission} - {self.question}: {self.score}"


class ReportCard(AssessmentBaseModel):
    """
    Materialized per-student aggregate for one class, term and school.
    Content is fully replaced on every regeneration; rank is written by the ranking step.
    """
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='report_cards',
        verbose_name=_('student')
    )
    class_enrolled = models.ForeignKey(
        'academics.Class',
        on_delete=models.CASCADE,
        related_name='report_cards',
        verbose_name=_('class')
    )
    academic_year = models.PositiveIntegerField(_('academic year'), db_index=True)
    term = models.ForeignKey(
        'academics.Term',
        on_delete=models.CASCADE,
        related_name='report_cards',
        verbose_name=_('term')
    )
    school = models.ForeignKey(
        'core.School',
        on_delete=models.CASCADE,
        related_name='report_cards',
        verbose_name=_('school')
    )
    total_score = models.DecimalField(_('total score'), max_digits=10, decimal_places=2, default=0)
    average = models.DecimalField(_('average'), max_digits=8, decimal_places=2, default=0)
    rank = models.DecimalField(_('rank'), max_digits=12, decimal_places=4, null=True, blank=True)
    passing_threshold = models.DecimalField(
        _('passing threshold'),
        max_digits=5,
        decimal_places=2,
        default=50,
        help_text=_('Informational only; promotion uses a fixed pass mark')
    )
    remarks = models.TextField(_('remarks'), blank=True)

    class Meta:
        verbose_name = _('Report Card')
        verbose_name_plural = _('Report Cards')
        ordering = ['class_enrolled', 'rank']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'class_enrolled', 'academic_year', 'term', 'school'],
                name='unique_report_card_natural_key'
            ),
        ]
        indexes = [
            models.Index(fields=['class_enrolled', 'academic_year', 'term'], name='reportcard_class_term_idx'),
        ]

    def __str__(self):
        return f"Report Card - {self.student} - {self.class_enrolled}"


class ReportCardResult(AssessmentBaseModel):
    """
    Subject-wise breakdown within a report card.
    """
    report_card = models.ForeignKey(
        ReportCard,
        on_delete=models.CASCADE,
        related_name='results',
        verbose_name=_('report card')
    )
    subject = models.ForeignKey(
        'academics.Subject',
        on_delete=models.CASCADE,
        related_name='report_results',
        verbose_name=_('subject')
    )
    assessment1 = models.DecimalField(_('assessment 1'), max_digits=8, decimal_places=2, default=0)
    assessment1_max = models.DecimalField(_('assessment 1 maximum'), max_digits=8, decimal_places=2, default=0)
    assessment2 = models.DecimalField(_('assessment 2'), max_digits=8, decimal_places=2, default=0)
    assessment2_max = models.DecimalField(_('assessment 2 maximum'), max_digits=8, decimal_places=2, default=0)
    test = models.DecimalField(_('test'), max_digits=8, decimal_places=2, default=0)
    test_max = models.DecimalField(_('test maximum'), max_digits=8, decimal_places=2, default=0)
    exam = models.DecimalField(_('exam'), max_digits=8, decimal_places=2, default=0)
    exam_max = models.DecimalField(_('exam maximum'), max_digits=8, decimal_places=2, default=0)
    total = models.DecimalField(_('total'), max_digits=8, decimal_places=2, default=0)
    max_total = models.DecimalField(_('maximum total'), max_digits=8, decimal_places=2, default=0)
    percentage = models.DecimalField(_('percentage'), max_digits=6, decimal_places=2, default=0)
    decision = models.CharField(
        _('decision'),
        max_length=20,
        choices=Decision.choices,
        default=Decision.NOT_YET_COMPETENT
    )

    class Meta:
        verbose_name = _('Report Card Result')
        verbose_name_plural = _('Report Card Results')
        unique_together = ['report_card', 'subject']
        ordering = ['subject__name']

    def __str__(self):
        return f"{self.report_card} - {self.subject}"


class TeacherPerformance(AssessmentBaseModel):
    """
    Persisted teacher aggregate for a term, ranked within the school.
    """
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='performance_records',
        verbose_name=_('teacher')
    )
    school = models.ForeignKey(
        'core.School',
        on_delete=models.CASCADE,
        related_name='teacher_performance',
        verbose_name=_('school')
    )
    academic_year = models.PositiveIntegerField(_('academic year'), db_index=True)
    term = models.ForeignKey(
        'academics.Term',
        on_delete=models.CASCADE,
        related_name='teacher_performance',
        verbose_name=_('term')
    )
    total_students = models.PositiveIntegerField(_('graded submissions'), default=0)
    average_score = models.DecimalField(_('average score'), max_digits=8, decimal_places=2, default=0)
    competency_rate = models.DecimalField(_('competency rate'), max_digits=6, decimal_places=2, default=0)
    rank = models.DecimalField(_('rank'), max_digits=8, decimal_places=4, null=True, blank=True)
    remarks = models.TextField(_('remarks'), blank=True)

    class Meta:
        verbose_name = _('Teacher Performance')
        verbose_name_plural = _('Teacher Performance')
        ordering = ['rank']
        constraints = [
            models.UniqueConstraint(
                fields=['teacher', 'school', 'academic_year', 'term'],
                name='unique_teacher_performance_per_term'
            ),
        ]

    def __str__(self):
        return f"{self.teacher} - {self.term}"


# Keep derived totals in step with their parts
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver


@receiver(post_save, sender=Question)
@receiver(post_delete, sender=Question)
def update_exam_total_points(sender, instance, **kwargs):
    """Recompute the exam's total points whenever one of its questions changes."""
    exam = Exam.objects.filter(pk=instance.exam_id).first()
    if exam is not None:
        exam.recalculate_total_points()


@receiver(post_save, sender=AnswerScore)
@receiver(post_delete, sender=AnswerScore)
def update_submission_total_score(sender, instance, **kwargs):
    """Recompute the submission's total score whenever one of its answers changes."""
    submission = Submission.objects.select_related('exam').filter(pk=instance.submission_id).first()
    if submission is not None:
        submission.recalculate_total_score()
