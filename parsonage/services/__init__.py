"""
Services package.

Re-exports the pure engines, which work on records and never touch the
database:
    from parsonage.services import PricingService

Database-backed workflows import models and are imported from their own
modules (repository, workflows, intake, import_service).
"""

from .availability import BookingAvailabilityService
from .payment_status import PaymentStatusService, derive_payment_status
from .pricing_service import (
    DEFAULT_PRICING_RULES,
    PricingService,
    parse_pricing_rule,
    parse_pricing_rules,
)
from .revenue_service import RevenueAggregator
from .pricing_analysis import PricingAnalysisService
from .notifications import EmailDispatcher, NotificationBuilder
from .documents import render_guest_invoice, render_rent_invoice

__all__ = [
    'BookingAvailabilityService',
    'PaymentStatusService',
    'derive_payment_status',
    'DEFAULT_PRICING_RULES',
    'PricingService',
    'parse_pricing_rule',
    'parse_pricing_rules',
    'RevenueAggregator',
    'PricingAnalysisService',
    'EmailDispatcher',
    'NotificationBuilder',
    'render_guest_invoice',
    'render_rent_invoice',
]
