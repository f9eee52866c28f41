"""
View helpers: request parsing, JSON serialization and error mapping.
"""

import functools
import logging
from datetime import date
from decimal import Decimal

from django.http import JsonResponse

from parsonage.exceptions import NotFoundError, ParsonageError
from parsonage.services.dates import today as local_today

logger = logging.getLogger(__name__)


class BadRequest(ParsonageError):
    """A query parameter is missing or malformed."""

    code = 'bad_request'


def parse_date_param(request, name, default=None, required=False):
    """ISO date from the query string, e.g. ?check_in=2024-06-10."""
    value = request.GET.get(name)
    if not value:
        if required:
            raise BadRequest(f"Missing parameter: {name}", parameter=name)
        return default
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise BadRequest(f"{name} must be a YYYY-MM-DD date, got {value!r}", parameter=name)


def parse_int_param(request, name, default=None):
    value = request.GET.get(name)
    if value in (None, ''):
        return default
    try:
        return int(value)
    except ValueError:
        raise BadRequest(f"{name} must be a whole number, got {value!r}", parameter=name)


def period_params(request):
    """(start, end) from ?start=&end=, defaulting to the current month to date."""
    today = local_today()
    start = parse_date_param(request, 'start', default=today.replace(day=1))
    end = parse_date_param(request, 'end', default=today)
    return start, end


def to_json(value):
    """Convert Decimals, dates and nested containers into JSON-friendly values."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    return value


def error_response(exc):
    status = 404 if isinstance(exc, NotFoundError) else 400
    return JsonResponse({
        'success': False,
        'error': exc.message,
        'code': exc.code,
        'details': to_json(exc.details),
    }, status=status)


def json_view(view):
    """
    Wrap a view returning a dict (or an HttpResponse) into a JsonResponse.

    ParsonageError maps to 400 (404 for NotFoundError); any other error is
    logged and answered with 500.
    """
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            result = view(request, *args, **kwargs)
        except ParsonageError as exc:
            return error_response(exc)
        except Exception as e:
            logger.exception("API error in %s", view.__name__)
            return JsonResponse({'success': False, 'error': str(e)}, status=500)

        if isinstance(result, dict):
            return JsonResponse({'success': True, **to_json(result)})
        return result
    return wrapper
