"""
Application settings lookup.

All values live in the `PARSONAGE` dict in Django settings; callers ask for
them at use time so tests can override them with `settings` fixtures.
"""

from django.conf import settings

DEFAULTS = {
    'PROPERTY_NAME': 'Parsonage',
    'MANAGER_EMAIL': 'manager@localhost',
    'CURRENCY_SYMBOL': '$',
    'EMAIL_MAX_ATTEMPTS': 3,
    'EMAIL_TEMPLATES': {},
}


def get_setting(name):
    """Return a PARSONAGE setting, falling back to the packaged default."""
    configured = getattr(settings, 'PARSONAGE', {}) or {}
    if name in configured:
        return configured[name]
    return DEFAULTS[name]
