"""Timetable class inputs and generated occurrences."""

from datetime import date, datetime
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from app.services.absence import AbsencePolicy

ON_DEMAND = "OD"

Period = Union[int, Literal["OD"]]


class SpecialScheduleOption(str, Enum):
    """Cadence filter applied to each weekday's occurrence list."""

    ALL = "all"
    FIRST_HALF = "first_half"
    SECOND_HALF = "second_half"
    ODD_WEEKS = "odd_weeks"
    EVEN_WEEKS = "even_weeks"


class ClassType(str, Enum):
    IN_PERSON = "in_person"
    ONLINE = "online"
    HYBRID = "hybrid"
    ON_DEMAND = "on_demand"


class DeliveryType(str, Enum):
    UNKNOWN = "unknown"
    IN_PERSON = "in_person"
    REMOTE = "remote"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"


class WeeklySlotSelection(BaseModel):
    """Recurring weekday + period; period 0 means on-demand."""

    day_of_week: int = Field(ge=1, le=6)  # 1=Monday .. 6=Saturday
    period: int = Field(ge=0)

    class Config:
        frozen = True


class GeneratedClassDate(BaseModel):
    """A concrete date and the periods a course meets on it."""

    date: date
    periods: List[Period]

    class Config:
        frozen = True


class ScheduleRequest(BaseModel):
    """Inputs shared by preview and class creation."""

    fiscal_year: str
    calendar_id: str
    term_ids: List[str] = Field(default_factory=list)
    weekly_slots: List[WeeklySlotSelection] = Field(default_factory=list)
    special_option: SpecialScheduleOption = SpecialScheduleOption.ALL
    absence_policy: Optional[AbsencePolicy] = None


class SchedulePreview(BaseModel):
    """Generated schedule with derived counts."""

    class_dates: List[GeneratedClassDate]
    preview: List[GeneratedClassDate]
    total_sessions: int
    recommended_max_absence: int
    absence_policy: AbsencePolicy
    is_empty: bool


class TimetableClassCreate(ScheduleRequest):
    """Class creation payload."""

    class_name: str
    class_type: ClassType = ClassType.IN_PERSON
    location: str = ""
    teacher: str = ""
    credits: Optional[float] = None
    max_absence_days: Optional[int] = Field(default=None, ge=0)
    omit_weekly_slots: bool = False


class ScheduleUpdate(BaseModel):
    """Optional replacement inputs for regenerating a class's dates."""

    term_ids: Optional[List[str]] = None
    weekly_slots: Optional[List[WeeklySlotSelection]] = None
    special_option: Optional[SpecialScheduleOption] = None


class ClassDateResponse(BaseModel):
    """Persisted occurrence response model."""

    id: int
    identity_key: str
    class_date: date
    periods: List[Period]
    attendance_status: Optional[AttendanceStatus] = None
    delivery_type: DeliveryType
    is_cancelled: bool
    is_excluded_from_summary: bool
    has_user_modifications: bool

    class Config:
        from_attributes = True


class TimetableClassResponse(BaseModel):
    """Timetable class response model."""

    id: int
    class_name: str
    fiscal_year: str
    calendar_id: str
    term_ids: List[str]
    term_names: List[str]
    class_type: ClassType
    special_option: SpecialScheduleOption
    max_absence_days: int
    omit_weekly_slots: bool
    location: Optional[str] = None
    teacher: Optional[str] = None
    credits: Optional[float] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WriteSummary(BaseModel):
    """Outcome of replacing a class's occurrence set."""

    created: int = 0
    updated: int = 0
    deleted: int = 0
    unchanged: int = 0

    @property
    def total_changes(self) -> int:
        return self.created + self.updated + self.deleted


class ClassCreateResponse(BaseModel):
    timetable_class: TimetableClassResponse
    write: WriteSummary
    is_empty: bool


class RegenerateResponse(BaseModel):
    write: WriteSummary
    is_empty: bool


class AttendanceUpdate(BaseModel):
    status: Optional[AttendanceStatus] = None


class AttendanceSummary(BaseModel):
    present_count: int = 0
    late_count: int = 0
    absent_count: int = 0
    unrecorded_count: int = 0
    total_count: int = 0
    max_absence_days: Optional[int] = None


class AbsenceMessage(BaseModel):
    text: str
    emphasize: bool = False


class AttendanceSummaryResponse(BaseModel):
    summary: AttendanceSummary
    message: Optional[AbsenceMessage] = None
    period_labels: List[str] = Field(default_factory=list)
