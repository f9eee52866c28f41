"""
Budget ledger: an append-only log of signed income and expense lines.
"""

from django.db import models

from parsonage import records
from parsonage.constants import LedgerCategory
from parsonage.exceptions import ParsonageError

from .bookings import Booking
from .rooms import Room


class LedgerEntry(models.Model):
    """
    One budget line. Positive amounts are income, negative amounts expenses.

    Entries are never edited or deleted; corrections are new entries.
    """
    entry_date = models.DateField(db_index=True)
    entry_type = models.CharField(
        max_length=100,
        blank=True,
        help_text="e.g., 'Rent Income', 'Guest Room Income', 'Utility Expense'"
    )
    description = models.CharField(max_length=255, blank=True)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Positive for income, negative for expense"
    )
    category = models.CharField(
        max_length=20,
        choices=LedgerCategory.choices,
        default=LedgerCategory.OTHER,
        db_index=True,
    )

    room = models.ForeignKey(
        Room,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='ledger_entries',
    )
    booking = models.ForeignKey(
        Booking,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='ledger_entries',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-entry_date', '-id']
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"

    def __str__(self):
        return f"{self.entry_date} {self.entry_type or self.category}: {self.amount}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ParsonageError("Ledger entries cannot be changed once recorded", entry_id=self.pk)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ParsonageError("Ledger entries cannot be deleted", entry_id=self.pk)

    def to_record(self):
        return records.LedgerEntry(
            entry_date=self.entry_date,
            amount=self.amount,
            category=self.category,
            entry_type=self.entry_type,
            description=self.description,
            room_id=self.room_id,
            booking_id=self.booking_id,
            id=self.pk,
        )
