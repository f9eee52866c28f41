"""
Form submissions and spreadsheet imports.
"""

from decimal import Decimal

from django.db import models
from django.utils import timezone

from parsonage.constants import ImportStatus, IntakeKind, IntakeStatus

from .bookings import Booking
from .rooms import Tenant


class IntakeSubmission(models.Model):
    """
    One submitted form: tenant application, move-out request or guest
    booking request. The raw answers are kept as received.
    """
    kind = models.CharField(max_length=30, choices=IntakeKind.choices, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=IntakeStatus.choices,
        default=IntakeStatus.RECEIVED,
        db_index=True,
    )
    payload = models.JSONField(default=dict, help_text="Answers keyed by question title")
    received_at = models.DateTimeField(default=timezone.now)
    processed_at = models.DateTimeField(null=True, blank=True)
    error = models.TextField(blank=True)

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='submissions',
    )
    booking = models.ForeignKey(
        Booking,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='submissions',
    )

    class Meta:
        ordering = ['-received_at']
        verbose_name = "Intake Submission"
        verbose_name_plural = "Intake Submissions"

    def __str__(self):
        return f"{self.get_kind_display()} - {self.received_at:%Y-%m-%d %H:%M} ({self.get_status_display()})"


class SheetImport(models.Model):
    """
    Tracks imports of exported property sheets.
    """
    filename = models.CharField(max_length=255)
    sheet = models.CharField(max_length=50, help_text="Tenants, Budget, Guest Bookings or Pricing Rules")
    status = models.CharField(
        max_length=30,
        choices=ImportStatus.choices,
        default=ImportStatus.PROCESSING,
        db_index=True,
    )

    rows_total = models.PositiveIntegerField(default=0)
    rows_created = models.PositiveIntegerField(default=0)
    rows_updated = models.PositiveIntegerField(default=0)
    rows_skipped = models.PositiveIntegerField(default=0)

    errors = models.JSONField(default=list, blank=True)

    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Sheet Import"
        verbose_name_plural = "Sheet Imports"

    def __str__(self):
        return f"{self.filename} [{self.sheet}] - {self.get_status_display()}"

    @property
    def success_rate(self):
        if self.rows_total > 0:
            successful = self.rows_created + self.rows_updated
            return (Decimal(successful) / Decimal(self.rows_total) * 100).quantize(Decimal('0.1'))
        return Decimal('0.0')

    @property
    def duration_seconds(self):
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None
