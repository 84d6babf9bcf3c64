"""Weekday conventions.

Two numbering schemes meet in an academic calendar:

* ``AcademicWeekday`` - the weekday a class day *counts as* in the timetable,
  1=Monday .. 7=Sunday. Stored on calendar days as ``class_weekday`` and used
  by weekly slots.
* ``CalendarWeekday`` - the weekday a date actually falls on for display,
  0=Sunday .. 6=Saturday.

They are kept as separate types; convert only through the functions below.
"""

from datetime import date
from enum import IntEnum
from typing import Optional


class AcademicWeekday(IntEnum):
    """Timetable weekday, 1=Monday .. 7=Sunday."""

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7


class CalendarWeekday(IntEnum):
    """Display weekday, 0=Sunday .. 6=Saturday."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


WEEKDAY_SHORT_LABELS = {
    CalendarWeekday.SUNDAY: "Sun",
    CalendarWeekday.MONDAY: "Mon",
    CalendarWeekday.TUESDAY: "Tue",
    CalendarWeekday.WEDNESDAY: "Wed",
    CalendarWeekday.THURSDAY: "Thu",
    CalendarWeekday.FRIDAY: "Fri",
    CalendarWeekday.SATURDAY: "Sat",
}


def to_calendar_weekday(weekday: AcademicWeekday) -> CalendarWeekday:
    """Convert an academic weekday to the calendar convention."""
    return CalendarWeekday(int(weekday) % 7)


def to_academic_weekday(weekday: CalendarWeekday) -> AcademicWeekday:
    """Convert a calendar weekday to the academic convention."""
    return AcademicWeekday(7 if weekday == CalendarWeekday.SUNDAY else int(weekday))


def academic_weekday_of(day: date) -> AcademicWeekday:
    """Academic weekday a date falls on."""
    return AcademicWeekday(day.isoweekday())


def calendar_weekday_of(day: date) -> CalendarWeekday:
    """Calendar weekday a date falls on."""
    return CalendarWeekday(day.isoweekday() % 7)


def clamp_academic_weekday(value: int) -> AcademicWeekday:
    """Clamp a stored weekday number into 1..7."""
    return AcademicWeekday(min(max(int(value), 1), 7))


def coerce_academic_weekday(value: Optional[int]) -> Optional[AcademicWeekday]:
    """Return the academic weekday for ``value`` or None when out of range."""
    if value is None:
        return None
    try:
        return AcademicWeekday(int(value))
    except ValueError:
        return None


def weekday_label(weekday: AcademicWeekday) -> str:
    """Short English label for an academic weekday."""
    return WEEKDAY_SHORT_LABELS[to_calendar_weekday(weekday)]
