"""
Seed the default guest room pricing rules.

Usage:
    python manage.py setup_pricing_rules
    python manage.py setup_pricing_rules --reset
"""

from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = 'Create the default pricing rules (existing rules are kept unless --reset)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Overwrite existing rules with the defaults'
        )

    def handle(self, *args, **options):
        from parsonage.models import PricingRule
        from parsonage.services import DEFAULT_PRICING_RULES

        created_count = 0
        updated_count = 0

        for rule in DEFAULT_PRICING_RULES:
            defaults = {key: value for key, value in rule.items() if key != 'name'}
            if options['reset']:
                _, created = PricingRule.objects.update_or_create(name=rule['name'], defaults=defaults)
                if not created:
                    updated_count += 1
                    self.stdout.write(f"  Reset: {rule['name']}")
            else:
                _, created = PricingRule.objects.get_or_create(name=rule['name'], defaults=defaults)
            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"  Created: {rule['name']}"))

        self.stdout.write(self.style.SUCCESS(
            f'\nDone! Created {created_count}, reset {updated_count} pricing rules.'
        ))
