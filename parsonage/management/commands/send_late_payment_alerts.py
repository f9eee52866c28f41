"""
Email the manager a digest of rooms with overdue rent (weekly).

Usage:
    python manage.py send_late_payment_alerts
    python manage.py send_late_payment_alerts --dry-run
"""

from parsonage.management.base import ParsonageCommand


class Command(ParsonageCommand):
    help = 'Send the overdue rent digest to the manager'
    sends_mail = True

    def handle(self, *args, **options):
        from parsonage.services.workflows import TenancyWorkflow

        on = self.get_date(options)
        alert = TenancyWorkflow().late_payment_alert(on=on)
        if alert is None:
            self.stdout.write(self.style.SUCCESS(f'No overdue rent as of {on}'))
            return
        self.deliver([alert], options)
