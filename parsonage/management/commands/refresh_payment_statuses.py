"""
Re-derive the payment status of every long-term room (daily).

Usage:
    python manage.py refresh_payment_statuses
    python manage.py refresh_payment_statuses --date 2024-06-10
"""

from parsonage.management.base import ParsonageCommand


class Command(ParsonageCommand):
    help = 'Refresh rent payment statuses of long-term rooms'

    def handle(self, *args, **options):
        from parsonage.services.workflows import TenancyWorkflow

        on = self.get_date(options)
        result = TenancyWorkflow().refresh_payment_statuses(on=on)

        for number, status in result['statuses'].items():
            self.stdout.write(f'  Room {number}: {status}')
        self.stdout.write(self.style.SUCCESS(
            f"Evaluated {result['evaluated']} rooms as of {on}: {result['changed']} changed"
        ))
