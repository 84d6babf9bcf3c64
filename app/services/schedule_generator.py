"""Schedule generator: weekly slots + academic calendar -> concrete class dates."""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Set, TypeVar

from app.schemas.calendar import Day, DayType, Term
from app.schemas.timetable import (
    ON_DEMAND,
    GeneratedClassDate,
    Period,
    SpecialScheduleOption,
    WeeklySlotSelection,
)
from app.utils.weekdays import AcademicWeekday, academic_weekday_of, coerce_academic_weekday

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Sort weight that places the on-demand sentinel after every numbered period
_ON_DEMAND_WEIGHT = 999


class Occurrence(NamedTuple):
    """One class day on a weekday, with its recorded period if any."""

    date: date
    period: Optional[int]


def resolve_day_weekday(day: Day) -> Optional[AcademicWeekday]:
    """Stored class weekday, falling back to the weekday of the date."""
    if day.class_weekday is not None:
        return coerce_academic_weekday(day.class_weekday)
    return academic_weekday_of(day.date)


def apply_special_option(items: Sequence[T], option: SpecialScheduleOption) -> List[T]:
    """Thin an ordered occurrence list according to the cadence option."""
    total = len(items)
    if total == 0:
        return []

    if option == SpecialScheduleOption.FIRST_HALF:
        return list(items[: (total + 1) // 2])
    if option == SpecialScheduleOption.SECOND_HALF:
        return list(items[total // 2 :])
    if option == SpecialScheduleOption.ODD_WEEKS:
        return [item for index, item in enumerate(items, start=1) if index % 2 == 1]
    if option == SpecialScheduleOption.EVEN_WEEKS:
        return [item for index, item in enumerate(items, start=1) if index % 2 == 0]
    return list(items)


def matches_period(occurrence: Occurrence, slot: WeeklySlotSelection) -> bool:
    """Whether an occurrence satisfies a slot's period.

    Period 0 (on-demand) matches everything; a day without a recorded period
    matches any numbered slot.
    """
    if slot.period == 0:
        return True
    if occurrence.period is None:
        return True
    return occurrence.period == slot.period


def period_sort_key(period: Period) -> int:
    return _ON_DEMAND_WEIGHT if period == ON_DEMAND else int(period)


def sort_periods(periods: Iterable[Period]) -> List[Period]:
    """Numeric ascending, on-demand last."""
    return sorted(set(periods), key=period_sort_key)


def _selected_term_names(term_ids: Set[str], terms: Iterable[Term]) -> Set[str]:
    return {term.name for term in terms if term.id in term_ids and term.name}


def _matches_term(day: Day, term_ids: Set[str], term_names: Set[str]) -> bool:
    if day.term_id is not None and day.term_id in term_ids:
        return True
    # Legacy records may lack ids; match them by term name instead
    return day.term_name is not None and day.term_name in term_names


def group_occurrences_by_weekday(
    days: Iterable[Day],
    term_ids: Set[str],
    term_names: Set[str],
) -> Dict[AcademicWeekday, List[Occurrence]]:
    """Class days of the selected terms grouped by weekday, each sorted by date."""
    grouped: Dict[AcademicWeekday, List[Occurrence]] = defaultdict(list)

    for day in days:
        if day.type != DayType.CLASS_DAY:
            continue
        if not _matches_term(day, term_ids, term_names):
            continue
        weekday = resolve_day_weekday(day)
        if weekday is None:
            continue
        grouped[weekday].append(Occurrence(date=day.date, period=day.class_order))

    for occurrences in grouped.values():
        occurrences.sort(key=lambda occurrence: occurrence.date)

    return grouped


def generate_class_dates(
    days: Iterable[Day],
    term_ids: Iterable[str],
    weekly_slots: Iterable[WeeklySlotSelection],
    special_option: SpecialScheduleOption = SpecialScheduleOption.ALL,
    terms: Iterable[Term] = (),
) -> List[GeneratedClassDate]:
    """
    Generate the deduplicated list of dates a weekly course meets on.

    Args:
        days: Canonical calendar days of one calendar snapshot
        term_ids: Selected term identifiers
        weekly_slots: Weekday + period selections
        special_option: Cadence filter applied per weekday
        terms: Calendar terms, used to match legacy days by term name

    Returns:
        Dates ascending, each with its merged, sorted periods. Empty when no
        terms or slots are selected or nothing matches.
    """
    slots = list(weekly_slots)
    selected_ids = set(term_ids)
    if not slots or not selected_ids:
        return []

    special_option = SpecialScheduleOption(special_option)
    term_names = _selected_term_names(selected_ids, terms)
    grouped = group_occurrences_by_weekday(days, selected_ids, term_names)

    date_map: Dict[date, Set[Period]] = defaultdict(set)
    for slot in slots:
        candidates = grouped.get(coerce_academic_weekday(slot.day_of_week), [])
        matched = [occurrence for occurrence in candidates if matches_period(occurrence, slot)]
        emitted: Period = ON_DEMAND if slot.period == 0 else slot.period
        for occurrence in apply_special_option(matched, special_option):
            date_map[occurrence.date].add(emitted)

    result = [
        GeneratedClassDate(date=class_date, periods=sort_periods(periods))
        for class_date, periods in sorted(date_map.items())
    ]

    logger.debug(
        f"Generated {len(result)} class dates from {len(slots)} slots "
        f"(terms={sorted(selected_ids)}, option={special_option.value})"
    )
    return result
