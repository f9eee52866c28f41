"""
Views package.

Re-exports the JSON endpoints so URL modules import from one place:
    from parsonage.views import availability, quote
"""

from .api import (
    availability,
    quote,
    arrivals_departures,
    guest_invoice_pdf,
    revenue_summary,
    occupancy_report,
    payment_statuses,
    pricing_analysis,
    intake_webhook,
)

__all__ = [
    'availability',
    'quote',
    'arrivals_departures',
    'guest_invoice_pdf',
    'revenue_summary',
    'occupancy_report',
    'payment_statuses',
    'pricing_analysis',
    'intake_webhook',
]
