"""
Room and tenant models.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from parsonage import records
from parsonage.constants import PaymentStatus, RoomKind, RoomStatus

# =============================================================================
# ROOMS
# =============================================================================


class Room(models.Model):
    """
    A rentable room.

    Long-term rooms are let monthly to a Tenant; guest rooms are let by the
    night through Bookings.
    """
    number = models.CharField(
        max_length=20,
        unique=True,
        help_text="Room number as shown on the door (e.g., '101', 'G1')"
    )
    name = models.CharField(
        max_length=100,
        blank=True,
        help_text="Display name (e.g., 'Guest Suite 1')"
    )
    kind = models.CharField(
        max_length=20,
        choices=RoomKind.choices,
        default=RoomKind.LONG_TERM,
        db_index=True,
    )

    # Rates
    base_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Monthly rent for long-term rooms, nightly rate for guest rooms"
    )
    negotiated_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Agreed rate that replaces the base rate for billing"
    )
    weekly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Guest rooms only: flat rate for a 7-night stay"
    )
    max_occupancy = models.PositiveSmallIntegerField(default=2)

    # State
    status = models.CharField(
        max_length=20,
        choices=RoomStatus.choices,
        default=RoomStatus.VACANT,
        db_index=True,
    )
    last_payment_date = models.DateField(null=True, blank=True)
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.NOT_APPLICABLE,
        help_text="Derived by the daily payment status refresh"
    )
    security_deposit_paid = models.BooleanField(default=False)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['kind', 'number']
        verbose_name = "Room"
        verbose_name_plural = "Rooms"

    def __str__(self):
        if self.name:
            return f"{self.number} - {self.name}"
        return f"Room {self.number}"

    @property
    def billing_rate(self):
        if self.negotiated_rate is not None:
            return self.negotiated_rate
        return self.base_rate

    @property
    def current_tenant(self):
        return getattr(self, 'tenant', None)

    def to_record(self):
        tenant = self.current_tenant
        return records.Room(
            id=self.pk,
            number=self.number,
            base_rate=self.base_rate,
            status=self.status,
            kind=self.kind,
            negotiated_rate=self.negotiated_rate,
            name=self.name,
            weekly_rate=self.weekly_rate,
            max_occupancy=self.max_occupancy,
            occupant_id=tenant.pk if tenant else None,
            last_payment_date=self.last_payment_date,
        )


# =============================================================================
# TENANTS
# =============================================================================

class Tenant(models.Model):
    """
    A long-term tenant, or an applicant while `room` is empty.
    """
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=50, blank=True)

    room = models.OneToOneField(
        Room,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tenant',
        help_text="Room the tenant currently occupies"
    )
    preferred_room = models.ForeignKey(
        Room,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='applicants',
        help_text="Room requested on the application form"
    )

    move_in_date = models.DateField(null=True, blank=True)
    move_out_date = models.DateField(
        null=True,
        blank=True,
        help_text="Planned or actual move-out date"
    )
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Tenant"
        verbose_name_plural = "Tenants"

    def __str__(self):
        return self.name

    @property
    def is_applicant(self):
        return self.room_id is None and self.move_in_date is None

    def to_record(self):
        return records.Tenant(
            id=self.pk,
            name=self.name,
            email=self.email,
            move_in_date=self.move_in_date,
            move_out_date=self.move_out_date,
            room_id=self.room_id,
            phone=self.phone,
        )
