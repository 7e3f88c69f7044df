"""
App settings, read from the ``SHIFTBOOK`` dictionary in Django settings.
"""

from django.conf import settings

from . import types


DEFAULTS = {
    'DEFAULT_TIMEZONE': types.DEFAULT_TIMEZONE,
    'DEFAULT_SHIFT_START': types.DEFAULT_SHIFT_START,
    'DEFAULT_SHIFT_END': types.DEFAULT_SHIFT_END,
    'DEFAULT_WEEKLY_HOURS_THRESHOLD': types.DEFAULT_WEEKLY_HOURS_THRESHOLD,
    'MAX_SCHEDULE_DAYS': types.MAX_SCHEDULE_DAYS,
}


def get_setting(name):
    """Return ``settings.SHIFTBOOK[name]``, falling back to the app default."""
    if name not in DEFAULTS:
        raise KeyError(f'Unknown shiftbook setting {name!r}')
    overrides = getattr(settings, 'SHIFTBOOK', {}) or {}
    return overrides.get(name, DEFAULTS[name])
