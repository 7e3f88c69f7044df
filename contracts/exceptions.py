"""
Domain errors for the contract scheduling system.

Every error carries a human-readable ``message`` and a list of ``errors``
so callers at the boundary can tell validation (400), missing resources
(404) and conflicts (409) apart without string matching.
"""

from typing import Iterable, Optional, Union


class ShiftbookError(Exception):
    """Base class for all domain errors."""

    default_message = 'Request could not be processed'

    def __init__(self, errors: Union[str, Iterable[str], None] = None, message: Optional[str] = None):
        if errors is None:
            errors = []
        elif isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        self.message = message or (self.errors[0] if len(self.errors) == 1 else self.default_message)
        super().__init__(self.message)


class ValidationError(ShiftbookError):
    default_message = 'Validation failed'


class InvalidFormatError(ValidationError):
    default_message = 'Malformed value'


class UnknownZoneError(ValidationError):
    default_message = 'Unknown time zone'


class DateRangeError(ValidationError):
    default_message = 'Date validation failed'


class ScheduleError(ValidationError):
    default_message = 'Schedule validation failed'


class ConflictError(ShiftbookError):
    default_message = 'Request conflicts with the current state'


class InvalidTransitionError(ConflictError):
    default_message = 'Invalid status transition'


class NotFoundError(ShiftbookError):
    default_message = 'Not found'


class ContractNotFound(NotFoundError):
    default_message = 'Contract not found'


class OccurrenceNotFound(NotFoundError):
    default_message = 'Shift not found'
