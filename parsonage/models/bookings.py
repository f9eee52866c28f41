"""
Guest room bookings.
"""

import secrets
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from parsonage import records
from parsonage.constants import ACTIVE_BOOKING_STATUSES, BookingStatus
from parsonage.exceptions import InvalidRangeError
from parsonage.services.availability import BookingAvailabilityService
from parsonage.services.dates import nights_between

from .rooms import Room


def generate_booking_code():
    """Short human-friendly code, e.g. 'GB240612-7F3A'."""
    return f"GB{timezone.localdate():%y%m%d}-{secrets.token_hex(2).upper()}"


class Booking(models.Model):
    """
    Short-term guest stay over the nights [check_in, check_out).
    """
    code = models.CharField(
        max_length=20,
        unique=True,
        default=generate_booking_code,
        help_text="Booking reference quoted to the guest"
    )
    room = models.ForeignKey(
        Room,
        on_delete=models.PROTECT,
        related_name='bookings'
    )

    # Guest
    guest_name = models.CharField(max_length=200)
    guest_email = models.EmailField()
    guest_phone = models.CharField(max_length=50, blank=True)
    guests = models.PositiveSmallIntegerField(default=1)

    # Stay
    check_in = models.DateField(db_index=True)
    check_out = models.DateField(
        db_index=True,
        help_text="Departure day; the night before is the last night of the stay"
    )
    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING,
        db_index=True,
    )

    # Money
    nightly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Rate after pricing rules"
    )
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    amount_paid = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    pricing_notes = models.TextField(
        blank=True,
        help_text="Pricing rules applied when the booking was quoted"
    )

    special_requests = models.TextField(blank=True)
    purpose = models.CharField(max_length=100, blank=True)
    confirmation_sent_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['check_in', 'id']
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"

    def __str__(self):
        return f"{self.code} - {self.guest_name} ({self.check_in} to {self.check_out})"

    def clean(self):
        if self.check_in is None or self.check_out is None:
            return
        try:
            nights_between(self.check_in, self.check_out)
        except InvalidRangeError as exc:
            raise ValidationError({'check_out': exc.message})

        if self.room_id is None or self.status not in ACTIVE_BOOKING_STATUSES:
            return
        others = Booking.objects.filter(room_id=self.room_id, status__in=ACTIVE_BOOKING_STATUSES)
        conflicts = BookingAvailabilityService().conflicts_for(
            self.to_record(), [other.to_record() for other in others]
        )
        if conflicts:
            raise ValidationError(
                "Room is already booked for these dates by " + ", ".join(b.code for b in conflicts)
            )

    def save(self, *args, **kwargs):
        # Raises InvalidRangeError when check_out is not after check_in.
        nights_between(self.check_in, self.check_out)
        super().save(*args, **kwargs)

    @property
    def nights(self):
        return nights_between(self.check_in, self.check_out)

    @property
    def balance_due(self):
        return self.total_amount - self.amount_paid

    def to_record(self):
        return records.Booking(
            id=self.pk,
            room_id=self.room_id,
            check_in=self.check_in,
            check_out=self.check_out,
            status=self.status,
            guest_name=self.guest_name,
            guest_email=self.guest_email,
            guest_phone=self.guest_phone,
            guests=self.guests,
            total_amount=self.total_amount,
            amount_paid=self.amount_paid,
            code=self.code,
            special_requests=self.special_requests,
            booked_on=timezone.localdate(self.created_at) if self.created_at else None,
        )
