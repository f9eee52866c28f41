"""
Domain errors.

Engines raise these synchronously; the admin, views and management commands
decide how to present them.
"""


class ParsonageError(Exception):
    """Base class for every error raised by the parsonage domain."""

    code = 'parsonage_error'

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        return {
            'code': self.code,
            'message': self.message,
            'details': self.details,
        }


class InvalidRangeError(ParsonageError):
    """A stay or reporting interval with zero or negative length."""

    code = 'invalid_range'


class InvalidRuleError(ParsonageError):
    """A pricing rule whose adjustment or condition cannot be parsed."""

    code = 'invalid_rule'


class InvalidTransitionError(ParsonageError):
    """A booking status change the lifecycle does not allow."""

    code = 'invalid_transition'


class NotFoundError(ParsonageError):
    """A referenced room, tenant or booking is absent."""

    code = 'not_found'


class BookingConflictError(ParsonageError):
    """The booking overlaps an active booking on the same room."""

    code = 'booking_conflict'


class IntakeError(ParsonageError):
    """A form submission is missing required answers or has unusable values."""

    code = 'intake_error'
