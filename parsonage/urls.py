"""Parsonage URL patterns: JSON endpoints under /api/."""

from django.urls import path

from parsonage.views import (
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

app_name = 'parsonage'

urlpatterns = [
    # Guest rooms
    path('api/availability/', availability, name='availability'),
    path('api/quote/', quote, name='quote'),
    path('api/arrivals-departures/', arrivals_departures, name='arrivals_departures'),
    path('api/bookings/<int:booking_id>/invoice.pdf', guest_invoice_pdf, name='guest_invoice_pdf'),

    # Reports
    path('api/revenue/', revenue_summary, name='revenue_summary'),
    path('api/occupancy/', occupancy_report, name='occupancy_report'),
    path('api/payment-statuses/', payment_statuses, name='payment_statuses'),
    path('api/pricing-analysis/', pricing_analysis, name='pricing_analysis'),

    # Forms
    path('api/intake/', intake_webhook, name='intake_webhook'),
]
