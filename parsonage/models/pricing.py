"""
Stored pricing rules for guest rooms.
"""

from django.core.exceptions import ValidationError
from django.db import models

from parsonage.constants import RuleType
from parsonage.exceptions import InvalidRuleError
from parsonage.services.pricing_service import describe_condition, parse_pricing_rule


class PricingRule(models.Model):
    """
    A conditional percentage adjustment to the guest room nightly rate.

    `condition` holds either the normalized payload (e.g. {"days": [4, 5]})
    or the free-text form used on the pricing sheet ("Friday, Saturday").
    Both are validated on clean().
    """
    name = models.CharField(max_length=100, unique=True)
    rule_type = models.CharField(
        max_length=30,
        choices=RuleType.choices,
    )
    condition = models.JSONField(
        default=dict,
        blank=True,
        help_text="e.g., {\"days\": [\"Friday\", \"Saturday\"]} or \"7+ nights\""
    )
    adjustment = models.CharField(
        max_length=10,
        help_text="Signed percentage (e.g., '+20%', '-10%')"
    )
    priority = models.PositiveIntegerField(
        default=100,
        help_text="Lower numbers are applied first"
    )
    active = models.BooleanField(default=True)
    notes = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['priority', 'id']
        verbose_name = "Pricing Rule"
        verbose_name_plural = "Pricing Rules"

    def __str__(self):
        return f"{self.name} ({self.adjustment})"

    def clean(self):
        try:
            self.to_record()
        except InvalidRuleError as exc:
            raise ValidationError(exc.message)

    def to_record(self):
        """Validated PricingRule record; raises InvalidRuleError."""
        return parse_pricing_rule(
            self.name,
            self.rule_type,
            self.condition,
            self.adjustment,
            self.priority,
            self.active,
        )

    @property
    def condition_display(self):
        try:
            return describe_condition(self.to_record())
        except InvalidRuleError:
            return str(self.condition)
