"""Database models for the academic timetable service."""

from app.models.calendar import AcademicCalendar, CalendarDayDocument, CalendarTermDocument
from app.models.class_date import ClassDate
from app.models.timetable_class import TimetableClass, WeeklySlot

__all__ = [
    "AcademicCalendar",
    "CalendarTermDocument",
    "CalendarDayDocument",
    "TimetableClass",
    "WeeklySlot",
    "ClassDate",
]
