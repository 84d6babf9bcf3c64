"""Canonical academic-calendar values shared by the generator and display."""

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

# Term.holiday_flag value marking an instructional term
INSTRUCTIONAL_TERM_FLAG = 2


class DayType(str, Enum):
    """Canonical day type."""

    UNSPECIFIED = "unspecified"
    CLASS_DAY = "class_day"
    EXAM_DAY = "exam_day"
    RESERVE_DAY = "reserve_day"
    CANCELLED_DAY = "cancelled_day"


class Term(BaseModel):
    """A named academic period (semester, quarter, recess)."""

    id: str
    name: str
    short_name: Optional[str] = None
    order: Optional[int] = None
    holiday_flag: Optional[int] = None
    class_count: Optional[int] = None

    class Config:
        frozen = True

    @property
    def is_instructional(self) -> bool:
        return self.holiday_flag == INSTRUCTIONAL_TERM_FLAG

    @property
    def is_recess(self) -> bool:
        return self.holiday_flag is not None and self.holiday_flag != INSTRUCTIONAL_TERM_FLAG


class Day(BaseModel):
    """One calendar date's academic classification."""

    date: date
    type: DayType = DayType.UNSPECIFIED
    raw_type: Optional[str] = None
    term_id: Optional[str] = None
    term_name: Optional[str] = None
    term_short_name: Optional[str] = None
    class_weekday: Optional[int] = Field(default=None, ge=1, le=7)
    class_order: Optional[int] = None
    is_holiday: Optional[bool] = None
    national_holiday_name: Optional[str] = None
    description: Optional[str] = None

    class Config:
        frozen = True


class CalendarSnapshot(BaseModel):
    """Immutable Term/Day snapshot of one (fiscal year, calendar id)."""

    fiscal_year: str
    calendar_id: str
    terms: List[Term] = Field(default_factory=list)
    days: List[Day] = Field(default_factory=list)
    has_saturday_classes: Optional[bool] = None

    class Config:
        frozen = True


class AccentColor(str, Enum):
    DEFAULT = "default"
    HOLIDAY = "holiday"
    SATURDAY = "saturday"


class BackgroundClass(str, Enum):
    NONE = "none"
    SUNDAY = "sunday"
    HOLIDAY = "holiday"
    EXAM = "exam"
    RESERVE = "reserve"


class DayClassification(str, Enum):
    CLASS = "class"
    HOLIDAY = "holiday"
    EXAM = "exam"
    RESERVE = "reserve"
    OTHER = "other"


class DisplayDescriptor(BaseModel):
    """Rendering descriptor for one calendar cell."""

    date_label: str
    accent_color: AccentColor
    weekday_label: str
    supplemental_text: str
    academic_label: str
    sub_label: Optional[str] = None
    background_class: BackgroundClass = BackgroundClass.NONE
    classification: Optional[DayClassification] = None
    effective_weekday: Optional[int] = None
    effective_weekday_label: Optional[str] = None
    effective_period: Optional[int] = None
    term_id: Optional[str] = None

    class Config:
        frozen = True
