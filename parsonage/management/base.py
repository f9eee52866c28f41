"""
Shared base for the scheduled commands.

Every command can be evaluated as of another day with --date; commands
that send mail also take --dry-run to print what would be sent.
"""

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from parsonage.exceptions import ParsonageError
from parsonage.services.dates import today as local_today


class ParsonageCommand(BaseCommand):
    sends_mail = False

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            type=str,
            help='Evaluate as of this day (YYYY-MM-DD); defaults to today'
        )
        if self.sends_mail:
            parser.add_argument(
                '--dry-run',
                action='store_true',
                help='Show the emails without sending them'
            )

    def get_date(self, options):
        value = options.get('date')
        if not value:
            return local_today()
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise CommandError(f'--date must be YYYY-MM-DD, got {value!r}')

    def execute(self, *args, **options):
        try:
            return super().execute(*args, **options)
        except ParsonageError as exc:
            raise CommandError(exc.message)

    def deliver(self, emails, options):
        """Send `emails` (or list them with --dry-run); returns the DispatchReport or None."""
        from parsonage.services import EmailDispatcher

        if not emails:
            self.stdout.write('Nothing to send.')
            return None

        if options.get('dry_run'):
            self.stdout.write(self.style.WARNING(f'Dry run: {len(emails)} email(s) not sent'))
            for email in emails:
                self.stdout.write(f"  To {', '.join(email.to) or '(no recipient)'}: {email.subject}")
            return None

        report = EmailDispatcher().send(emails)
        self.report_dispatch(report)
        return report

    def report_dispatch(self, report):
        self.stdout.write(self.style.SUCCESS(f'Sent {report.sent} email(s)'))
        for failure in report.failures:
            self.stdout.write(self.style.ERROR(
                f"  Failed to {', '.join(failure.email.to) or '(no recipient)'}: {failure.error}"
            ))
