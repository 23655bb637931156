# apps/core/models.py
import uuid
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class CoreBaseModel(models.Model):
    """
    Base model shared by every persisted record:
    - UUID primary key
    - Created/updated timestamps
    - Active flag
    - Soft delete functionality
    """

    # UUID Primary Key
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Timestamp fields
    created_at = models.DateTimeField(_('created at'), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True, db_index=True)

    is_active = models.BooleanField(_('is active'), default=True, db_index=True)

    # Soft delete fields
    is_deleted = models.BooleanField(_('is deleted'), default=False, db_index=True)
    deleted_at = models.DateTimeField(_('deleted at'), null=True, blank=True)

    class Meta:
        abstract = True

    def delete(self, using=None, keep_parents=False):
        """
        Soft delete by setting is_deleted flag and deleted_at timestamp.
        """
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=['is_deleted', 'deleted_at', 'updated_at'])

    def hard_delete(self, using=None, keep_parents=False):
        """
        Perform actual database deletion.
        """
        return super().delete(using=using, keep_parents=keep_parents)

    def restore(self):
        """
        Restore a soft-deleted instance.
        """
        self.is_deleted = False
        self.deleted_at = None
        self.save(update_fields=['is_deleted', 'deleted_at', 'updated_at'])

    def __str__(self):
        return f"{self.__class__.__name__} {self.id}"


class School(CoreBaseModel):
    """
    A school whose classes, terms and results are managed by the system.
    """
    class Category(models.TextChoices):
        REB = 'REB', _('REB')
        TVET = 'TVET', _('TVET')
        PRIMARY = 'PRIMARY', _('Primary')
        OLEVEL = 'OLEVEL', _('O-Level')
        CAMBRIDGE = 'CAMBRIDGE', _('Cambridge')
        UNIVERSITY = 'UNIVERSITY', _('University')

    code = models.CharField(_('school code'), max_length=12, unique=True)
    name = models.CharField(_('school name'), max_length=200, unique=True)
    category = models.CharField(
        _('category'),
        max_length=20,
        choices=Category.choices,
        default=Category.TVET
    )
    address = models.CharField(_('address'), max_length=255, blank=True)
    contact_email = models.EmailField(_('contact email'), blank=True)
    contact_phone = models.CharField(_('contact phone'), max_length=20, blank=True)

    class Meta:
        verbose_name = _('School')
        verbose_name_plural = _('Schools')
        ordering = ['name']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)
