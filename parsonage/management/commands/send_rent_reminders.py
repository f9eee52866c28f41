"""
Email rent reminders to tenants whose rent is due or overdue (1st of month).

Usage:
    python manage.py send_rent_reminders
    python manage.py send_rent_reminders --date 2024-06-01 --dry-run
"""

from parsonage.management.base import ParsonageCommand


class Command(ParsonageCommand):
    help = 'Send rent reminders to tenants with unpaid rent'
    sends_mail = True

    def handle(self, *args, **options):
        from parsonage.services.workflows import TenancyWorkflow

        on = self.get_date(options)
        emails = TenancyWorkflow().rent_reminders(on=on)
        self.stdout.write(f'{len(emails)} rent reminder(s) for {on}')
        self.deliver(emails, options)
