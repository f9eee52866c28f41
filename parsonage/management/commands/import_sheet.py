"""
Import an exported sheet (CSV or Excel) of the property workbook.

Usage:
    python manage.py import_sheet path/to/Tenants.csv --sheet Tenants
    python manage.py import_sheet path/to/workbook.xlsx --sheet "Guest Bookings" --verbose
"""

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = 'Import a Tenants, Guest Rooms, Budget, Guest Bookings or Pricing Rules sheet'

    def add_arguments(self, parser):
        from parsonage.services.import_service import SheetImportService

        parser.add_argument(
            'file_path',
            type=str,
            help='Path to the Excel or CSV file to import'
        )
        parser.add_argument(
            '--sheet',
            required=True,
            choices=SheetImportService.sheet_names(),
            help='Which sheet the file holds (also the workbook tab to read)'
        )
        parser.add_argument(
            '--verbose',
            action='store_true',
            help='Show every row error'
        )

    def handle(self, *args, **options):
        from parsonage.services.import_service import SheetImportService

        file_path = Path(options['file_path'])
        if not file_path.exists():
            raise CommandError(f'File not found: {file_path}')
        if file_path.suffix.lower() not in ['.xlsx', '.xls', '.csv']:
            raise CommandError(f'Unsupported file format: {file_path.suffix}')

        self.stdout.write(f"Importing {options['sheet']} from {file_path.name}")
        result = SheetImportService().import_file(file_path, options['sheet'])

        if result['success']:
            self.stdout.write(self.style.SUCCESS(f"Import completed: {result['status']}"))
        else:
            self.stdout.write(self.style.ERROR(f"Import failed: {result['status']}"))

        self.stdout.write(f"  Total rows:    {result['rows_total']}")
        self.stdout.write(f"  Created:       {result['rows_created']}")
        self.stdout.write(f"  Updated:       {result['rows_updated']}")
        self.stdout.write(f"  Skipped:       {result['rows_skipped']}")
        self.stdout.write(f"  Success rate:  {result['success_rate']:.1f}%")

        errors = result['errors']
        if errors and (options['verbose'] or len(errors) <= 10):
            self.stdout.write(self.style.WARNING(f'Errors ({len(errors)}):'))
            for error in errors:
                self.stdout.write(f"  Row {error.get('row', '?')}: {error.get('message')}")
        elif errors:
            self.stdout.write(self.style.WARNING(f'{len(errors)} errors (use --verbose to see details)'))

        self.stdout.write(f"Sheet Import ID: {result['sheet_import_id']}")
        if not result['success']:
            raise CommandError('Import failed')
