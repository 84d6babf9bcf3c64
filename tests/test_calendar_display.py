from datetime import date

import pytest

from app.core.exceptions import ValidationError
from app.schemas.calendar import (
    AccentColor,
    BackgroundClass,
    Day,
    DayClassification,
    DayType,
    Term,
)
from app.services.calendar_display import (
    EMPTY_LABEL,
    SPECIAL_CANCELLATION_LABEL,
    SPECIAL_CLASS_DAY_LABEL,
    WEEKDAY_SUBSTITUTION_LABEL,
    classify_day_type,
    compute_display,
    parse_date_id,
)
from app.services.calendar_normalizer import normalize_day

TERMS = [
    Term(id="spring", name="Spring Semester", short_name="Spring", order=1, holiday_flag=2),
    Term(id="summer-break", name="Summer Break", order=2, holiday_flag=1),
]


def _day(day, day_type=DayType.CLASS_DAY, term_id="spring", **fields):
    return Day(date=day, type=day_type, term_id=term_id, **fields)


def test_regular_class_day():
    display = compute_display("2025-04-07", _day(date(2025, 4, 7), class_weekday=1), TERMS)

    assert display.date_label == "2025-04-07"
    assert display.weekday_label == "Mon"
    assert display.accent_color == AccentColor.DEFAULT
    assert display.supplemental_text == "April 7, 2025 (Mon)"
    assert display.classification == DayClassification.CLASS
    assert display.academic_label == "Spring"
    assert display.background_class == BackgroundClass.NONE
    assert display.sub_label is None
    assert display.effective_weekday == 1
    assert display.effective_weekday_label == "Mon"
    assert display.term_id == "spring"


def test_missing_day_keeps_general_fields_only():
    display = compute_display("2025-04-13", None, TERMS)

    assert display.weekday_label == "Sun"
    assert display.accent_color == AccentColor.HOLIDAY
    assert display.academic_label == EMPTY_LABEL
    assert display.background_class == BackgroundClass.NONE
    assert display.classification is None
    assert display.effective_weekday is None


def test_national_holiday_overrides_accent_and_supplemental_text():
    day = _day(date(2025, 4, 29), DayType.UNSPECIFIED, national_holiday_name="Showa Day")

    display = compute_display("2025-04-29", day, TERMS)

    assert display.accent_color == AccentColor.HOLIDAY
    assert display.supplemental_text == "Showa Day"
    assert display.classification == DayClassification.HOLIDAY
    assert display.background_class == BackgroundClass.HOLIDAY
    assert display.academic_label == "Spring Semester cancelled"


def test_make_up_class_on_a_holiday_gets_special_sub_label():
    day = _day(date(2025, 4, 29), is_holiday=True, national_holiday_name="Showa Day")

    display = compute_display(date(2025, 4, 29), day, TERMS)

    assert display.classification == DayClassification.CLASS
    assert display.sub_label == SPECIAL_CLASS_DAY_LABEL


def test_description_replaces_canned_sub_label():
    day = _day(date(2025, 4, 29), is_holiday=True, description="Make-up for typhoon")

    assert compute_display("2025-04-29", day, TERMS).sub_label == "Make-up for typhoon"


def test_cancellation_on_a_working_day():
    day = _day(date(2025, 4, 8), DayType.CANCELLED_DAY, is_holiday=False)

    display = compute_display("2025-04-08", day, TERMS)

    assert display.classification == DayClassification.HOLIDAY
    assert display.sub_label == SPECIAL_CANCELLATION_LABEL
    assert display.effective_weekday is None


def test_weekday_substitution():
    # Wednesday that runs Monday's timetable
    day = _day(date(2025, 4, 9), class_weekday=1, class_order=2)

    display = compute_display("2025-04-09", day, TERMS)

    assert display.weekday_label == "Wed"
    assert display.sub_label == WEEKDAY_SUBSTITUTION_LABEL
    assert display.effective_weekday == 1
    assert display.effective_weekday_label == "Mon"
    assert display.effective_period == 2


def test_saturday_class_suppressed_without_saturday_classes():
    day = _day(date(2025, 4, 12), class_weekday=1)

    suppressed = compute_display("2025-04-12", day, TERMS, has_saturday_classes=False)
    shown = compute_display("2025-04-12", day, TERMS, has_saturday_classes=True)

    assert suppressed.accent_color == AccentColor.SATURDAY
    assert suppressed.background_class == BackgroundClass.SUNDAY
    assert suppressed.effective_weekday is None
    assert suppressed.sub_label is None
    assert shown.background_class == BackgroundClass.NONE
    assert shown.effective_weekday == 1
    assert shown.sub_label == WEEKDAY_SUBSTITUTION_LABEL


@pytest.mark.parametrize(
    "day_type, background, label",
    [
        (DayType.EXAM_DAY, BackgroundClass.EXAM, "Spring Semester exam"),
        (DayType.RESERVE_DAY, BackgroundClass.RESERVE, "Spring Semester reserve day"),
        (DayType.CANCELLED_DAY, BackgroundClass.HOLIDAY, "Spring Semester cancelled"),
    ],
)
def test_term_qualified_labels(day_type, background, label):
    display = compute_display("2025-04-10", _day(date(2025, 4, 10), day_type), TERMS)

    assert display.background_class == background
    assert display.academic_label == label


def test_recess_term_shows_term_name():
    day = _day(date(2025, 8, 5), DayType.UNSPECIFIED, term_id="summer-break")

    assert compute_display("2025-08-05", day, TERMS).academic_label == "Summer Break"


def test_term_resolved_by_name_for_legacy_days():
    day = Day(date=date(2025, 4, 7), type=DayType.CLASS_DAY, term_name="Spring Semester")

    display = compute_display("2025-04-07", day, TERMS)

    assert display.academic_label == "Spring"
    assert display.term_id == "spring"


def test_legacy_free_text_types_are_classified():
    assert classify_day_type("授業日") == DayClassification.CLASS
    assert classify_day_type("前期試験") == DayClassification.EXAM
    assert classify_day_type("予備日") == DayClassification.RESERVE
    assert classify_day_type("Holiday") == DayClassification.HOLIDAY
    assert classify_day_type(None) == DayClassification.OTHER


def test_invalid_date_identifier_is_rejected():
    with pytest.raises(ValidationError):
        parse_date_id("not-a-date")


def test_new_years_day():
    day = Day(
        date=date(2025, 1, 1),
        term_id="spring",
        national_holiday_name="New Year's Day",
    )

    display = compute_display("2025-01-01", day, TERMS)

    assert display.accent_color == AccentColor.HOLIDAY
    assert display.background_class == BackgroundClass.HOLIDAY
    assert display.supplemental_text == "New Year's Day"
    assert display.academic_label == "Spring Semester cancelled"


@pytest.mark.parametrize(
    "raw_type, background, classification, label",
    [
        ("closed", BackgroundClass.HOLIDAY, DayClassification.HOLIDAY, "Spring Semester cancelled"),
        ("補講日", BackgroundClass.RESERVE, DayClassification.RESERVE, "Spring Semester reserve day"),
        ("予備", BackgroundClass.RESERVE, DayClassification.RESERVE, "Spring Semester reserve day"),
    ],
)
def test_normalized_legacy_types_display_by_canonical_type(raw_type, background, classification, label):
    day = normalize_day("2025-04-08", {"type": raw_type, "termId": "spring"})

    display = compute_display("2025-04-08", day, TERMS)

    assert display.classification == classification
    assert display.background_class == background
    assert display.academic_label == label


def test_untyped_day_falls_back_to_stored_text():
    day = Day(date=date(2025, 4, 10), raw_type="前期試験", term_id="spring")

    assert compute_display("2025-04-10", day, TERMS).classification == DayClassification.EXAM
