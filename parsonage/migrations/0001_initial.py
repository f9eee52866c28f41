from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import parsonage.models.bookings


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Room',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.CharField(help_text="Room number as shown on the door (e.g., '101', 'G1')", max_length=20, unique=True)),
                ('name', models.CharField(blank=True, help_text="Display name (e.g., 'Guest Suite 1')", max_length=100)),
                ('kind', models.CharField(choices=[('long_term', 'Long-term Room'), ('guest', 'Guest Room')], db_index=True, default='long_term', max_length=20)),
                ('base_rate', models.DecimalField(decimal_places=2, help_text='Monthly rent for long-term rooms, nightly rate for guest rooms', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('negotiated_rate', models.DecimalField(blank=True, decimal_places=2, help_text='Agreed rate that replaces the base rate for billing', max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('weekly_rate', models.DecimalField(blank=True, decimal_places=2, help_text='Guest rooms only: flat rate for a 7-night stay', max_digits=10, null=True)),
                ('max_occupancy', models.PositiveSmallIntegerField(default=2)),
                ('status', models.CharField(choices=[('Vacant', 'Vacant'), ('Occupied', 'Occupied'), ('Pending', 'Pending'), ('Maintenance', 'Maintenance')], db_index=True, default='Vacant', max_length=20)),
                ('last_payment_date', models.DateField(blank=True, null=True)),
                ('payment_status', models.CharField(choices=[('N/A', 'Not Applicable'), ('Paid', 'Paid'), ('Due', 'Due'), ('Overdue', 'Overdue')], default='N/A', help_text='Derived by the daily payment status refresh', max_length=10)),
                ('security_deposit_paid', models.BooleanField(default=False)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Room',
                'verbose_name_plural': 'Rooms',
                'ordering': ['kind', 'number'],
            },
        ),
        migrations.CreateModel(
            name='Tenant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('email', models.EmailField(max_length=254)),
                ('phone', models.CharField(blank=True, max_length=50)),
                ('move_in_date', models.DateField(blank=True, null=True)),
                ('move_out_date', models.DateField(blank=True, help_text='Planned or actual move-out date', null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('room', models.OneToOneField(blank=True, help_text='Room the tenant currently occupies', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tenant', to='parsonage.room')),
                ('preferred_room', models.ForeignKey(blank=True, help_text='Room requested on the application form', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='applicants', to='parsonage.room')),
            ],
            options={
                'verbose_name': 'Tenant',
                'verbose_name_plural': 'Tenants',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(default=parsonage.models.bookings.generate_booking_code, help_text='Booking reference quoted to the guest', max_length=20, unique=True)),
                ('guest_name', models.CharField(max_length=200)),
                ('guest_email', models.EmailField(max_length=254)),
                ('guest_phone', models.CharField(blank=True, max_length=50)),
                ('guests', models.PositiveSmallIntegerField(default=1)),
                ('check_in', models.DateField(db_index=True)),
                ('check_out', models.DateField(db_index=True, help_text='Departure day; the night before is the last night of the stay')),
                ('status', models.CharField(choices=[('Pending', 'Pending'), ('Confirmed', 'Confirmed'), ('Checked In', 'Checked In'), ('Checked Out', 'Checked Out'), ('Cancelled', 'Cancelled')], db_index=True, default='Pending', max_length=20)),
                ('nightly_rate', models.DecimalField(blank=True, decimal_places=2, help_text='Rate after pricing rules', max_digits=10, null=True)),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('amount_paid', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('pricing_notes', models.TextField(blank=True, help_text='Pricing rules applied when the booking was quoted')),
                ('special_requests', models.TextField(blank=True)),
                ('purpose', models.CharField(blank=True, max_length=100)),
                ('confirmation_sent_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('room', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='parsonage.room')),
            ],
            options={
                'verbose_name': 'Booking',
                'verbose_name_plural': 'Bookings',
                'ordering': ['check_in', 'id'],
            },
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('entry_date', models.DateField(db_index=True)),
                ('entry_type', models.CharField(blank=True, help_text="e.g., 'Rent Income', 'Guest Room Income', 'Utility Expense'", max_length=100)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('amount', models.DecimalField(decimal_places=2, help_text='Positive for income, negative for expense', max_digits=12)),
                ('category', models.CharField(choices=[('Rent', 'Rent'), ('Guest Room', 'Guest Room'), ('Deposit', 'Deposit'), ('Utilities', 'Utilities'), ('Maintenance', 'Maintenance'), ('Other', 'Other')], db_index=True, default='Other', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('booking', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='parsonage.booking')),
                ('room', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='parsonage.room')),
            ],
            options={
                'verbose_name': 'Ledger Entry',
                'verbose_name_plural': 'Ledger Entries',
                'ordering': ['-entry_date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='PricingRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('rule_type', models.CharField(choices=[('Day of Week', 'Day of Week'), ('Length of Stay', 'Length of Stay'), ('Booking Window', 'Booking Window'), ('Date Range', 'Date Range')], max_length=30)),
                ('condition', models.JSONField(blank=True, default=dict, help_text='e.g., {"days": ["Friday", "Saturday"]} or "7+ nights"')),
                ('adjustment', models.CharField(help_text="Signed percentage (e.g., '+20%', '-10%')", max_length=10)),
                ('priority', models.PositiveIntegerField(default=100, help_text='Lower numbers are applied first')),
                ('active', models.BooleanField(default=True)),
                ('notes', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Pricing Rule',
                'verbose_name_plural': 'Pricing Rules',
                'ordering': ['priority', 'id'],
            },
        ),
        migrations.CreateModel(
            name='IntakeSubmission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('tenant_application', 'Tenant Application'), ('move_out_request', 'Move-Out Request'), ('guest_booking_request', 'Guest Booking Request')], db_index=True, max_length=30)),
                ('status', models.CharField(choices=[('received', 'Received'), ('processed', 'Processed'), ('unplaced', 'Received (no room available)'), ('rejected', 'Rejected')], db_index=True, default='received', max_length=20)),
                ('payload', models.JSONField(default=dict, help_text='Answers keyed by question title')),
                ('received_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
                ('error', models.TextField(blank=True)),
                ('booking', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='submissions', to='parsonage.booking')),
                ('tenant', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='submissions', to='parsonage.tenant')),
            ],
            options={
                'verbose_name': 'Intake Submission',
                'verbose_name_plural': 'Intake Submissions',
                'ordering': ['-received_at'],
            },
        ),
        migrations.CreateModel(
            name='SheetImport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('filename', models.CharField(max_length=255)),
                ('sheet', models.CharField(help_text='Tenants, Budget, Guest Bookings or Pricing Rules', max_length=50)),
                ('status', models.CharField(choices=[('processing', 'Processing'), ('completed', 'Completed'), ('completed_with_errors', 'Completed with Errors'), ('failed', 'Failed')], db_index=True, default='processing', max_length=30)),
                ('rows_total', models.PositiveIntegerField(default=0)),
                ('rows_created', models.PositiveIntegerField(default=0)),
                ('rows_updated', models.PositiveIntegerField(default=0)),
                ('rows_skipped', models.PositiveIntegerField(default=0)),
                ('errors', models.JSONField(blank=True, default=list)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Sheet Import',
                'verbose_name_plural': 'Sheet Imports',
                'ordering': ['-created_at'],
            },
        ),
    ]
