# apps/audit/models.py
from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _
from apps.core.models import CoreBaseModel


class AuditLog(CoreBaseModel):
    """
    Model for tracking academic audit events: promotion runs, term transitions
    and report generation.
    """
    class ActionType(models.TextChoices):
        CREATE = 'create', _('Create')
        UPDATE = 'update', _('Update')
        GENERATE_REPORT = 'generate_report', _('Generate Report')
        PROMOTE = 'promote', _('Promote')
        TERM_TRANSITION = 'term_transition', _('Term Transition')

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
        verbose_name=_('user')
    )
    action = models.CharField(_('action'), max_length=20, choices=ActionType.choices)
    model_name = models.CharField(_('model name'), max_length=100)
    object_id = models.CharField(_('object id'), max_length=100)
    details = models.JSONField(_('details'), default=dict, blank=True)
    timestamp = models.DateTimeField(_('timestamp'), auto_now_add=True)

    class Meta:
        verbose_name = _('Audit Log')
        verbose_name_plural = _('Audit Logs')
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['user', 'timestamp'], name='auditlog_user_time_idx'),
            models.Index(fields=['model_name', 'object_id'], name='auditlog_object_idx'),
            models.Index(fields=['action', 'timestamp'], name='auditlog_action_time_idx'),
        ]

    def __str__(self):
        return f"{self.user} - {self.action} - {self.model_name} - {self.timestamp}"

    @classmethod
    def record(cls, action, instance, details=None, user=None):
        """Write one audit event about ``instance``."""
        return cls.objects.create(
            user=user if getattr(user, 'is_authenticated', False) else None,
            action=action,
            model_name=instance.__class__.__name__,
            object_id=str(instance.pk),
            details=details or {},
        )
