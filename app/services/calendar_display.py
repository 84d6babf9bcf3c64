"""Calendar display computation for a single date."""

from datetime import date
from typing import Iterable, Optional, Sequence, Union

from app.core.exceptions import ValidationError
from app.schemas.calendar import (
    AccentColor,
    BackgroundClass,
    Day,
    DayClassification,
    DayType,
    DisplayDescriptor,
    Term,
)
from app.utils.weekdays import (
    WEEKDAY_SHORT_LABELS,
    CalendarWeekday,
    academic_weekday_of,
    calendar_weekday_of,
    coerce_academic_weekday,
    weekday_label,
)

# Checked in order; the first table with a keyword contained in the type wins
CLASSIFICATION_KEYWORDS = (
    (
        DayClassification.CLASS,
        ("class", "classday", "授業日", "授業", "lesson", "lecture", "通常授業"),
    ),
    (
        DayClassification.HOLIDAY,
        ("holiday", "休講日", "休講", "cancelled", "canceled", "休講日特別"),
    ),
    (DayClassification.EXAM, ("exam", "試験", "試験日", "test")),
    (DayClassification.RESERVE, ("reserve", "予備日", "makeup", "補講予備")),
)

DAY_TYPE_CLASSIFICATIONS = {
    DayType.CLASS_DAY: DayClassification.CLASS,
    DayType.EXAM_DAY: DayClassification.EXAM,
    DayType.RESERVE_DAY: DayClassification.RESERVE,
    DayType.CANCELLED_DAY: DayClassification.HOLIDAY,
}

SPECIAL_CLASS_DAY_LABEL = "Special class day"
SPECIAL_CANCELLATION_LABEL = "Special cancellation"
WEEKDAY_SUBSTITUTION_LABEL = "Weekday substitution"

EMPTY_LABEL = "-"


def parse_date_id(value: Union[str, date]) -> date:
    """Parse an ISO ``yyyy-mm-dd`` date identifier."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid date identifier: {value!r}") from exc


def classify_day_type(value: Optional[str]) -> DayClassification:
    """Classify a canonical or legacy free-text day type."""
    if not value:
        return DayClassification.OTHER
    lowered = value.lower()
    for classification, keywords in CLASSIFICATION_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return classification
    return DayClassification.OTHER


def classify_day(day: Day) -> DayClassification:
    classification = DAY_TYPE_CLASSIFICATIONS.get(day.type)
    if classification is None:
        # Only untyped records fall back to their stored free text
        classification = classify_day_type(day.raw_type)
    # An untyped national holiday is a day off; typed records keep their type
    if classification == DayClassification.OTHER and day.national_holiday_name:
        return DayClassification.HOLIDAY
    return classification


def determine_accent_color(day: Optional[Day], actual_weekday: CalendarWeekday) -> AccentColor:
    if day is not None and day.national_holiday_name:
        return AccentColor.HOLIDAY
    if actual_weekday == CalendarWeekday.SUNDAY:
        return AccentColor.HOLIDAY
    if actual_weekday == CalendarWeekday.SATURDAY:
        return AccentColor.SATURDAY
    return AccentColor.DEFAULT


def resolve_term_for_day(day: Optional[Day], terms: Sequence[Term]) -> Optional[Term]:
    """Find the day's term by id, then by name for records without ids."""
    if day is None:
        return None
    if day.term_id:
        for term in terms:
            if term.id == day.term_id:
                return term
    if day.term_name:
        for term in terms:
            if term.name == day.term_name:
                return term
    return None


def is_non_instructional_weekday(actual_weekday: CalendarWeekday, has_saturday_classes: bool) -> bool:
    """Sunday always; Saturday when the institution holds no Saturday classes."""
    if actual_weekday == CalendarWeekday.SUNDAY:
        return True
    return actual_weekday == CalendarWeekday.SATURDAY and not has_saturday_classes


def determine_background(
    classification: DayClassification,
    actual_weekday: CalendarWeekday,
    has_saturday_classes: bool,
) -> BackgroundClass:
    if is_non_instructional_weekday(actual_weekday, has_saturday_classes):
        return BackgroundClass.SUNDAY
    if classification == DayClassification.HOLIDAY:
        return BackgroundClass.HOLIDAY
    if classification == DayClassification.EXAM:
        return BackgroundClass.EXAM
    if classification == DayClassification.RESERVE:
        return BackgroundClass.RESERVE
    return BackgroundClass.NONE


def compute_academic_label(
    classification: DayClassification,
    day: Day,
    term: Optional[Term],
) -> str:
    term_name = (term.name if term else None) or day.term_name or EMPTY_LABEL
    short_name = (term.short_name if term else None) or day.term_short_name or term_name

    if term is not None and term.is_recess:
        return term_name
    if classification == DayClassification.EXAM:
        return f"{term_name} exam"
    if classification == DayClassification.HOLIDAY:
        return f"{term_name} cancelled"
    if classification == DayClassification.RESERVE:
        return f"{term_name} reserve day"
    if classification == DayClassification.CLASS:
        return short_name
    return term_name


def compute_sub_label(
    classification: DayClassification,
    day: Day,
    suppressed: bool,
) -> Optional[str]:
    """Describe anomalies: make-up sessions, special cancellations, substitutions."""
    description = day.description or None

    if classification == DayClassification.CLASS and day.is_holiday:
        return description or SPECIAL_CLASS_DAY_LABEL

    if classification == DayClassification.HOLIDAY and day.is_holiday is False:
        return description or SPECIAL_CANCELLATION_LABEL

    if classification == DayClassification.CLASS and not suppressed:
        stored = coerce_academic_weekday(day.class_weekday)
        if stored is not None and stored != academic_weekday_of(day.date):
            return description or WEEKDAY_SUBSTITUTION_LABEL

    return None


def format_long_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year} ({WEEKDAY_SHORT_LABELS[calendar_weekday_of(value)]})"


def compute_display(
    date_id: Union[str, date],
    day: Optional[Day],
    terms: Iterable[Term],
    has_saturday_classes: bool = True,
) -> DisplayDescriptor:
    """
    Classify one date into a display descriptor.

    Args:
        date_id: The date being rendered (ISO string or date)
        day: The canonical calendar day for that date, if the calendar has one
        terms: Every term of the calendar
        has_saturday_classes: Whether the institution teaches on Saturdays

    Returns:
        DisplayDescriptor for the calendar cell
    """
    target = parse_date_id(date_id)
    actual_weekday = calendar_weekday_of(target)
    accent = determine_accent_color(day, actual_weekday)
    supplemental = (
        day.national_holiday_name
        if day is not None and day.national_holiday_name
        else format_long_date(target)
    )

    general = {
        "date_label": target.isoformat(),
        "accent_color": accent,
        "weekday_label": WEEKDAY_SHORT_LABELS[actual_weekday],
        "supplemental_text": supplemental,
    }

    if day is None:
        return DisplayDescriptor(academic_label=EMPTY_LABEL, **general)

    term = resolve_term_for_day(day, list(terms))
    classification = classify_day(day)
    background = determine_background(classification, actual_weekday, has_saturday_classes)
    suppressed = classification == DayClassification.CLASS and is_non_instructional_weekday(
        actual_weekday, has_saturday_classes
    )

    effective_weekday = None
    effective_period = None
    if classification == DayClassification.CLASS and not suppressed:
        effective_weekday = coerce_academic_weekday(day.class_weekday) or academic_weekday_of(target)
        effective_period = day.class_order

    return DisplayDescriptor(
        academic_label=compute_academic_label(classification, day, term),
        sub_label=compute_sub_label(classification, day, suppressed),
        background_class=background,
        classification=classification,
        effective_weekday=int(effective_weekday) if effective_weekday is not None else None,
        effective_weekday_label=weekday_label(effective_weekday) if effective_weekday is not None else None,
        effective_period=effective_period,
        term_id=term.id if term else day.term_id,
        **general,
    )
