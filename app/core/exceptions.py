"""Domain exceptions raised by the timetable services."""


class TimetableError(Exception):
    """Base class for timetable service errors."""


class ValidationError(TimetableError):
    """Invalid user input: surfaced immediately, never retried."""


class ScheduleLockedError(ValidationError):
    """Occurrences cannot be regenerated once attendance has been recorded."""


class NotFoundError(TimetableError):
    """Requested class or class date does not exist."""


class DataFetchError(TimetableError):
    """The calendar store could not be read.

    Generation never proceeds on partial or stale data, so callers must let
    this propagate instead of substituting a fallback schedule.
    """
