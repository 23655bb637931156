# apps/core/clock.py
"""
Clock abstraction used wherever a service needs "now" or "today".

Services accept a clock instance so tests can pin the date.
"""
from datetime import datetime, time

from django.utils import timezone


class SystemClock:
    """Reads the current time from Django's timezone utilities."""

    def now(self):
        return timezone.now()

    def today(self):
        return timezone.localdate()


class FixedClock:
    """
    A clock frozen at a given moment. Accepts a date or a datetime.
    """

    def __init__(self, moment):
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, time.min)
        if timezone.is_naive(moment):
            moment = timezone.make_aware(moment, timezone.get_default_timezone())
        self.moment = moment

    def now(self):
        return self.moment

    def today(self):
        return timezone.localdate(self.moment)


def get_default_clock():
    return SystemClock()
