"""
Email monthly rent invoices (PDF) to every tenant of an occupied room.

Usage:
    python manage.py send_monthly_invoices
    python manage.py send_monthly_invoices --date 2024-07-01 --dry-run
"""

from parsonage.management.base import ParsonageCommand


class Command(ParsonageCommand):
    help = 'Send monthly rent invoices with PDF attachments'
    sends_mail = True

    def handle(self, *args, **options):
        from parsonage.services.dates import first_of_month
        from parsonage.services.workflows import TenancyWorkflow

        period_start = first_of_month(self.get_date(options))
        emails = TenancyWorkflow().monthly_invoices(period_start)
        self.stdout.write(f"{len(emails)} invoice(s) for {period_start:%B %Y}")
        self.deliver(emails, options)
