"""
Parsonage admin configuration.

The admin is the day-to-day UI:
- Rooms with their tenant inline; payment status refresh and rent payments
- Guest bookings with lifecycle actions and guest mail
- Append-only budget ledger
- Pricing rules, form submissions and sheet imports
"""

from django.contrib import admin
from django.utils.html import format_html, format_html_join

from .constants import BookingStatus, PaymentStatus, RoomKind
from .exceptions import ParsonageError
from .models import (
    Room, Tenant, Booking, LedgerEntry, PricingRule, IntakeSubmission, SheetImport,
)


def _run_per_object(modeladmin, request, queryset, operation, label):
    """Apply `operation` to each object, reporting successes and failures."""
    done = 0
    for obj in queryset:
        try:
            operation(obj)
        except ParsonageError as exc:
            modeladmin.message_user(request, f"{obj}: {exc.message}", level='error')
            continue
        done += 1
    if done:
        modeladmin.message_user(request, f"{label} {done} item(s).")


# =============================================================================
# ROOMS & TENANTS
# =============================================================================

class TenantInline(admin.StackedInline):
    """Current tenant of a long-term room."""
    model = Tenant
    fk_name = 'room'
    extra = 0
    max_num = 1
    fields = ['name', 'email', 'phone', 'move_in_date', 'move_out_date', 'notes']


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = [
        'number', 'name', 'kind', 'base_rate', 'negotiated_rate', 'status',
        'tenant_display', 'last_payment_date', 'payment_status_display',
    ]
    list_filter = ['kind', 'status', 'payment_status']
    search_fields = ['number', 'name', 'tenant__name']
    readonly_fields = ['payment_status', 'created_at', 'updated_at']

    fieldsets = (
        (None, {
            'fields': ('number', 'name', 'kind', 'status')
        }),
        ('Rates', {
            'fields': ('base_rate', 'negotiated_rate', 'weekly_rate', 'max_occupancy'),
            'description': 'Monthly rent for long-term rooms, nightly rate for guest rooms',
        }),
        ('Rent', {
            'fields': ('last_payment_date', 'payment_status', 'security_deposit_paid'),
        }),
        ('Notes', {
            'fields': ('notes', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    inlines = [TenantInline]
    actions = ['refresh_payment_statuses', 'record_rent_payment']

    def get_inlines(self, request, obj):
        if obj is not None and obj.kind == RoomKind.GUEST:
            return []
        return super().get_inlines(request, obj)

    def tenant_display(self, obj):
        tenant = obj.current_tenant
        return tenant.name if tenant else '-'
    tenant_display.short_description = 'Tenant'

    def payment_status_display(self, obj):
        """Display payment status with color coding."""
        colors = {
            PaymentStatus.PAID.value: 'green',
            PaymentStatus.DUE.value: 'orange',
            PaymentStatus.OVERDUE.value: 'red',
        }
        color = colors.get(str(obj.payment_status), 'gray')
        return format_html('<span style="color:{};">{}</span>', color, obj.payment_status)
    payment_status_display.short_description = 'Payment'
    payment_status_display.admin_order_field = 'payment_status'

    @admin.action(description='Refresh payment statuses (all long-term rooms)')
    def refresh_payment_statuses(self, request, queryset):
        from .services.workflows import TenancyWorkflow

        result = TenancyWorkflow().refresh_payment_statuses()
        self.message_user(
            request,
            f"Evaluated {result['evaluated']} rooms, {result['changed']} status change(s).",
        )

    @admin.action(description='Record rent payment at billing rate (today)')
    def record_rent_payment(self, request, queryset):
        from .services.workflows import TenancyWorkflow

        workflow = TenancyWorkflow()
        _run_per_object(
            self, request, queryset.filter(kind=RoomKind.LONG_TERM),
            lambda room: workflow.record_rent_payment(room.pk),
            'Recorded rent for',
        )


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'phone', 'room', 'preferred_room', 'move_in_date', 'move_out_date']
    list_filter = ['room__status']
    search_fields = ['name', 'email', 'room__number']
    readonly_fields = ['created_at', 'updated_at']


# =============================================================================
# GUEST BOOKINGS
# =============================================================================

@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = [
        'code', 'guest_name', 'room', 'check_in', 'check_out', 'nights_display',
        'guests', 'total_amount', 'amount_paid', 'status_display',
    ]
    list_filter = ['status', 'room', 'check_in']
    search_fields = ['code', 'guest_name', 'guest_email']
    date_hierarchy = 'check_in'
    ordering = ['-check_in']
    readonly_fields = ['code', 'status', 'confirmation_sent_at', 'pricing_notes', 'created_at', 'updated_at']

    fieldsets = (
        (None, {
            'fields': ('code', 'room', 'status')
        }),
        ('Guest', {
            'fields': ('guest_name', 'guest_email', 'guest_phone', 'guests', 'purpose', 'special_requests'),
        }),
        ('Stay', {
            'fields': ('check_in', 'check_out'),
        }),
        ('Amounts', {
            'fields': ('nightly_rate', 'total_amount', 'amount_paid', 'pricing_notes'),
        }),
        ('Technical', {
            'fields': ('confirmation_sent_at', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    actions = [
        'confirm_bookings', 'check_in_bookings', 'check_out_bookings',
        'cancel_bookings', 'send_confirmations', 'send_invoices',
    ]

    def nights_display(self, obj):
        return obj.nights
    nights_display.short_description = 'Nights'

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            BookingStatus.PENDING.value: 'orange',
            BookingStatus.CONFIRMED.value: 'blue',
            BookingStatus.CHECKED_IN.value: 'green',
            BookingStatus.CHECKED_OUT.value: 'gray',
            BookingStatus.CANCELLED.value: 'red',
        }
        color = colors.get(str(obj.status), 'gray')
        return format_html('<span style="color:{};">{}</span>', color, obj.get_status_display())
    status_display.short_description = 'Status'
    status_display.admin_order_field = 'status'

    def _workflow(self):
        from .services.workflows import GuestBookingWorkflow
        return GuestBookingWorkflow()

    @admin.action(description='Confirm selected bookings')
    def confirm_bookings(self, request, queryset):
        workflow = self._workflow()
        _run_per_object(self, request, queryset, lambda b: workflow.confirm(b.pk), 'Confirmed')

    @admin.action(description='Check in selected bookings')
    def check_in_bookings(self, request, queryset):
        workflow = self._workflow()
        _run_per_object(self, request, queryset, lambda b: workflow.check_in(b.pk), 'Checked in')

    @admin.action(description='Check out selected bookings')
    def check_out_bookings(self, request, queryset):
        workflow = self._workflow()
        _run_per_object(self, request, queryset, lambda b: workflow.check_out(b.pk), 'Checked out')

    @admin.action(description='Cancel selected bookings')
    def cancel_bookings(self, request, queryset):
        workflow = self._workflow()
        _run_per_object(self, request, queryset, lambda b: workflow.cancel(b.pk), 'Cancelled')

    @admin.action(description='Email booking confirmation')
    def send_confirmations(self, request, queryset):
        workflow = self._workflow()
        self._send(request, queryset, workflow.send_confirmation)

    @admin.action(description='Email guest invoice (PDF)')
    def send_invoices(self, request, queryset):
        workflow = self._workflow()
        self._send(request, queryset, workflow.send_invoice)

    def _send(self, request, queryset, send):
        sent = 0
        for booking in queryset:
            report = send(booking.pk)
            for failure in report.failures:
                self.message_user(request, f"{booking.code}: {failure.error}", level='error')
            sent += report.sent
        self.message_user(request, f"Sent {sent} email(s).")


# =============================================================================
# LEDGER
# =============================================================================

@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    """Budget ledger; entries are append-only."""
    list_display = ['entry_date', 'entry_type', 'description', 'amount_display', 'category', 'room', 'booking']
    list_filter = ['category', 'entry_date']
    search_fields = ['description', 'entry_type', 'room__number', 'booking__code']
    date_hierarchy = 'entry_date'

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return [field.name for field in self.model._meta.fields]
        return ['created_at']

    def amount_display(self, obj):
        color = 'green' if obj.amount > 0 else 'red'
        return format_html('<span style="color:{};">{}</span>', color, obj.amount)
    amount_display.short_description = 'Amount'
    amount_display.admin_order_field = 'amount'

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================================
# PRICING RULES
# =============================================================================

@admin.register(PricingRule)
class PricingRuleAdmin(admin.ModelAdmin):
    list_display = ['name', 'rule_type', 'condition_display', 'adjustment', 'priority', 'active']
    list_editable = ['priority', 'active']
    list_filter = ['rule_type', 'active']
    search_fields = ['name', 'notes']
    ordering = ['priority', 'id']

    actions = ['activate_rules', 'deactivate_rules']

    def condition_display(self, obj):
        return obj.condition_display
    condition_display.short_description = 'Condition'

    @admin.action(description='Activate selected rules')
    def activate_rules(self, request, queryset):
        updated = queryset.update(active=True)
        self.message_user(request, f'{updated} rule(s) activated.')

    @admin.action(description='Deactivate selected rules')
    def deactivate_rules(self, request, queryset):
        updated = queryset.update(active=False)
        self.message_user(request, f'{updated} rule(s) deactivated.')


# =============================================================================
# FORMS & IMPORTS
# =============================================================================

@admin.register(IntakeSubmission)
class IntakeSubmissionAdmin(admin.ModelAdmin):
    list_display = ['received_at', 'kind', 'status', 'tenant', 'booking', 'error']
    list_filter = ['kind', 'status']
    search_fields = ['error', 'tenant__name', 'booking__code']
    readonly_fields = ['kind', 'status', 'payload_display', 'received_at', 'processed_at', 'error', 'tenant', 'booking']
    exclude = ['payload']

    def payload_display(self, obj):
        if not obj.payload:
            return '-'
        return format_html(
            '<dl>{}</dl>',
            format_html_join('', '<dt>{}</dt><dd>{}</dd>', obj.payload.items()),
        )
    payload_display.short_description = 'Answers'

    def has_add_permission(self, request):
        return False


@admin.register(SheetImport)
class SheetImportAdmin(admin.ModelAdmin):
    """Sheet imports are run with the import_sheet command; the admin shows their results."""
    list_display = [
        'filename', 'sheet', 'status_display',
        'rows_total', 'rows_created', 'rows_updated', 'rows_skipped',
        'success_rate_display', 'duration_display', 'created_at',
    ]
    list_filter = ['status', 'sheet', 'created_at']
    search_fields = ['filename']
    readonly_fields = [
        'filename', 'sheet', 'status', 'rows_total', 'rows_created', 'rows_updated',
        'rows_skipped', 'errors_display', 'started_at', 'completed_at', 'created_at',
        'duration_display', 'success_rate_display',
    ]
    exclude = ['errors']

    def has_add_permission(self, request):
        return False

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            'processing': 'blue',
            'completed': 'green',
            'completed_with_errors': 'orange',
            'failed': 'red',
        }
        color = colors.get(str(obj.status), 'gray')
        return format_html('<span style="color:{};">{}</span>', color, obj.get_status_display())
    status_display.short_description = 'Status'
    status_display.admin_order_field = 'status'

    def success_rate_display(self, obj):
        rate = obj.success_rate
        if rate >= 90:
            color = 'green'
        elif rate >= 70:
            color = 'orange'
        else:
            color = 'red'
        return format_html('<span style="color:{};">{}%</span>', color, rate)
    success_rate_display.short_description = 'Success Rate'

    def duration_display(self, obj):
        seconds = obj.duration_seconds
        if seconds is not None:
            if seconds < 60:
                return f"{seconds:.1f}s"
            return f"{seconds/60:.1f}m"
        return '-'
    duration_display.short_description = 'Duration'

    def errors_display(self, obj):
        if not obj.errors:
            return 'No errors'
        return format_html(
            '<div style="max-height:300px; overflow:auto;">{}</div>',
            format_html_join(
                '', '<p><strong>Row {}:</strong> {}</p>',
                ((error.get('row', '?'), error.get('message', 'Unknown error')) for error in obj.errors[:50]),
            ),
        )
    errors_display.short_description = 'Errors'
