"""
Print the monthly revenue summary and guest room occupancy.

Usage:
    python manage.py revenue_report
    python manage.py revenue_report --date 2024-06-15 --year
"""

from parsonage.management.base import ParsonageCommand


class Command(ParsonageCommand):
    help = 'Print income, expenses and occupancy for the month of --date'

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument(
            '--year',
            action='store_true',
            help='Also print the month-by-month breakdown of that year'
        )

    def handle(self, *args, **options):
        from parsonage.conf import get_setting
        from parsonage.constants import RoomKind
        from parsonage.services import RevenueAggregator
        from parsonage.services.dates import month_bounds
        from parsonage.services.repository import DjangoTabularStore

        on = self.get_date(options)
        start, end = month_bounds(on.year, on.month)
        currency = get_setting('CURRENCY_SYMBOL')

        store = DjangoTabularStore()
        aggregator = RevenueAggregator()
        entries = store.list_ledger_entries()
        summary = aggregator.summarize(entries, start, end)

        self.stdout.write(f'Revenue report for {start:%B %Y}')
        self.stdout.write(f'  Income:    {currency}{summary.income:,.2f}')
        self.stdout.write(f'  Expenses:  {currency}{summary.expenses:,.2f}')
        self.stdout.write(self.style.SUCCESS(f'  Net:       {currency}{summary.net:,.2f}'))
        for category, total in sorted(summary.by_category.items()):
            self.stdout.write(f'    {category}: {currency}{total:,.2f}')

        rooms = store.list_rooms()
        guest_ids = {room.id for room in rooms if room.kind == RoomKind.GUEST}
        occupancy = aggregator.occupancy(
            store.list_bookings(), start, end, room_count=len(guest_ids), room_ids=guest_ids,
        )
        self.stdout.write(
            f'  Guest room occupancy: {occupancy.percent}% '
            f'({occupancy.occupied_nights}/{occupancy.possible_nights} room-nights)'
        )
        current = aggregator.current_occupancy(rooms)
        self.stdout.write(
            f"  Occupied now: {current['overall']['occupied']}/{current['overall']['total']} rooms"
        )

        if options['year']:
            self.stdout.write('')
            self.stdout.write(f'{on.year} by month:')
            for row in aggregator.monthly_breakdown(entries, on.year):
                self.stdout.write(
                    f"  {row['name']:<10} rent {currency}{row['rent']:,.2f}  "
                    f"guest {currency}{row['guest_room']:,.2f}  other {currency}{row['other']:,.2f}  "
                    f"expenses {currency}{row['expenses']:,.2f}  net {currency}{row['net']:,.2f}"
                )
