"""Normalization of stored calendar documents into canonical Term/Day values.

Calendar documents arrive in several historical shapes:

* one document per date, keyed ``2025-04-07`` or ``20250407`` (or an
  auto-generated id with a ``date`` field);
* one document per month, keyed ``2025-04`` or ``202504``, holding a ``days``
  mapping (or top-level entries) keyed by day of month, ``7`` or ``07``.

Field names vary as well (``termName``/``name``, ``class_weekday``, term
references with an ``id`` or ``path``). Everything downstream of this module
only ever sees ``Term`` and ``Day``.
"""

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from app.schemas.calendar import Day, DayType, Term
from app.utils.timezone import timestamp_to_local_date
from app.utils.weekdays import academic_weekday_of, clamp_academic_weekday

logger = logging.getLogger(__name__)

DATE_KEY_PATTERN = re.compile(r"^(\d{4})[-/]?(\d{2})[-/]?(\d{2})$")
MONTH_KEY_PATTERN = re.compile(r"^(\d{4})[-/]?(\d{2})$")

DAY_TYPE_MAPPINGS: Sequence[Tuple[Tuple[str, ...], DayType]] = (
    (("class", "授業"), DayType.CLASS_DAY),
    (("exam", "試験", "test"), DayType.EXAM_DAY),
    (("reserve", "makeup", "補講", "予備"), DayType.RESERVE_DAY),
    (("holiday", "休講", "closed", "cancel"), DayType.CANCELLED_DAY),
)

LEGACY_TERM_HOLIDAY_FLAGS = {True: 1, False: 2}


def read_string(data: Mapping[str, Any], keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def read_number(data: Mapping[str, Any], keys: Iterable[str]) -> Optional[float]:
    """First finite number under ``keys``; numeric strings count, NaN and inf do not."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                continue
        if isinstance(value, float) and math.isfinite(value):
            return value
    return None


def read_int(data: Mapping[str, Any], keys: Iterable[str]) -> Optional[int]:
    value = read_number(data, keys)
    return int(value) if value is not None else None


def read_bool(data: Mapping[str, Any], keys: Iterable[str]) -> Optional[bool]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        if isinstance(value, (int, float)) and value in (0, 1):
            return bool(value)
    return None


def parse_date_value(value: Any) -> Optional[date]:
    """Parse ISO/compact date strings, date objects and timestamp-like mappings."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        match = DATE_KEY_PATTERN.match(value.strip())
        if not match:
            return None
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None
    if isinstance(value, Mapping) and isinstance(value.get("seconds"), (int, float)):
        return timestamp_to_local_date(value["seconds"])
    return None


def read_date(data: Mapping[str, Any], keys: Iterable[str]) -> Optional[date]:
    for key in keys:
        parsed = parse_date_value(data.get(key))
        if parsed is not None:
            return parsed
    return None


def read_term_reference(data: Mapping[str, Any]) -> Optional[str]:
    """Term id stored as a plain string or as a reference object."""
    for key in ("termId", "term_id", "termRef", "term_ref"):
        raw = data.get(key)
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
        if isinstance(raw, Mapping):
            ref_id = raw.get("id")
            if isinstance(ref_id, str) and ref_id.strip():
                return ref_id.strip()
            path = raw.get("path")
            if isinstance(path, str) and path.strip("/"):
                return path.strip("/").split("/")[-1]
    return None


def resolve_day_type(value: Optional[str]) -> DayType:
    """Map a canonical or legacy day type onto DayType."""
    if not value:
        return DayType.UNSPECIFIED
    normalized = value.strip().lower()
    try:
        return DayType(normalized)
    except ValueError:
        pass
    for keywords, day_type in DAY_TYPE_MAPPINGS:
        if any(keyword in normalized for keyword in keywords):
            return day_type
    return DayType.UNSPECIFIED


def normalize_term(doc_id: str, data: Mapping[str, Any]) -> Optional[Term]:
    """Build a Term from a stored term document; None when it has no name."""
    name = read_string(data, ("name", "termName", "term_name"))
    if not name:
        logger.warning(f"Skipping term document {doc_id!r} without a name")
        return None

    holiday_flag = read_int(data, ("holidayFlag", "holiday_flag"))
    if holiday_flag is None:
        legacy = read_bool(data, ("isHoliday", "is_holiday"))
        if legacy is not None:
            holiday_flag = LEGACY_TERM_HOLIDAY_FLAGS[legacy]

    return Term(
        id=read_string(data, ("id",)) or doc_id,
        name=name,
        short_name=read_string(data, ("shortName", "short_name", "abbr")),
        order=read_int(data, ("order", "termOrder", "term_order")),
        holiday_flag=holiday_flag,
        class_count=read_int(data, ("classCount", "class_count")),
    )


def normalize_terms(documents: Mapping[str, Mapping[str, Any]]) -> List[Term]:
    """Normalize term documents, ordered by term order then name."""
    terms = [
        term
        for term in (normalize_term(doc_id, data) for doc_id, data in documents.items())
        if term is not None
    ]
    return sorted(
        terms,
        key=lambda term: (term.order if term.order is not None else float("inf"), term.name),
    )


def normalize_day(
    doc_id: str,
    data: Mapping[str, Any],
    fallback_date: Optional[date] = None,
) -> Optional[Day]:
    """
    Build a canonical Day from one stored day record.

    The class weekday is derived from the date only for class days that do not
    store one; for other day types it stays undefined.
    """
    day_date = read_date(data, ("date", "classDate", "class_date"))
    if day_date is None:
        day_date = parse_date_value(doc_id) or fallback_date
    if day_date is None:
        logger.warning(f"Skipping day document {doc_id!r} without a valid date")
        return None

    raw_type = read_string(data, ("type", "dayType", "day_type"))
    day_type = resolve_day_type(raw_type)

    stored_weekday = read_int(data, ("classWeekday", "class_weekday"))
    if stored_weekday is not None:
        class_weekday = int(clamp_academic_weekday(stored_weekday))
    elif day_type == DayType.CLASS_DAY:
        class_weekday = int(academic_weekday_of(day_date))
    else:
        class_weekday = None

    return Day(
        date=day_date,
        type=day_type,
        raw_type=raw_type,
        term_id=read_term_reference(data),
        term_name=read_string(data, ("termName", "term_name")),
        term_short_name=read_string(data, ("termShortName", "term_short_name", "termShort")),
        class_weekday=class_weekday,
        class_order=read_int(data, ("classOrder", "class_order")),
        is_holiday=read_bool(data, ("isHoliday", "is_holiday")),
        national_holiday_name=read_string(
            data, ("nationalHolidayName", "national_holiday_name", "holidayName")
        ),
        description=read_string(data, ("description", "note", "notes")),
    )


def _month_entries(data: Mapping[str, Any]) -> Mapping[str, Any]:
    nested = data.get("days")
    return nested if isinstance(nested, Mapping) else data


def date_key_candidates(target: date) -> List[str]:
    return [target.isoformat(), target.strftime("%Y%m%d")]


def month_key_candidates(target: date) -> List[str]:
    return [target.strftime("%Y-%m"), target.strftime("%Y%m")]


def day_of_month_candidates(target: date) -> List[str]:
    return [str(target.day), f"{target.day:02d}"]


def resolve_day(
    date_id: str,
    documents: Mapping[str, Mapping[str, Any]],
) -> Optional[Day]:
    """
    Resolve one canonical Day for ``date_id`` across storage shapes.

    Args:
        date_id: ISO or compact date identifier
        documents: Stored documents keyed by document key

    Returns:
        The Day, or None when no shape holds a record for the date
    """
    target = parse_date_value(date_id)
    if target is None:
        return None

    for key in date_key_candidates(target):
        data = documents.get(key)
        if isinstance(data, Mapping):
            return normalize_day(key, data, fallback_date=target)

    for key in month_key_candidates(target):
        data = documents.get(key)
        if not isinstance(data, Mapping):
            continue
        entries = _month_entries(data)
        for day_key in day_of_month_candidates(target):
            entry = entries.get(day_key)
            if isinstance(entry, Mapping):
                return normalize_day(f"{key}/{day_key}", entry, fallback_date=target)

    # Auto-id documents carry the date as a field
    for key, data in documents.items():
        if isinstance(data, Mapping) and read_date(data, ("date", "classDate", "class_date")) == target:
            return normalize_day(key, data, fallback_date=target)

    return None


def _expand_month_document(key: str, data: Mapping[str, Any]) -> List[Day]:
    match = MONTH_KEY_PATTERN.match(key)
    year, month = int(match.group(1)), int(match.group(2))
    days: List[Day] = []
    for day_key, entry in _month_entries(data).items():
        if not isinstance(entry, Mapping) or not str(day_key).isdigit():
            continue
        try:
            fallback = date(year, month, int(day_key))
        except ValueError:
            logger.warning(f"Skipping invalid day-of-month {day_key!r} in {key!r}")
            continue
        day = normalize_day(f"{key}/{day_key}", entry, fallback_date=fallback)
        if day is not None:
            days.append(day)
    return days


def flatten_day_documents(documents: Mapping[str, Mapping[str, Any]]) -> List[Day]:
    """
    Expand every stored day document into canonical Days.

    Per-date records win over month entries for the same date. The result is
    sorted by date with one Day per date.
    """
    per_date: Dict[date, Day] = {}
    from_months: Dict[date, Day] = {}

    for key, data in documents.items():
        if not isinstance(data, Mapping):
            continue
        if MONTH_KEY_PATTERN.match(key):
            for day in _expand_month_document(key, data):
                from_months.setdefault(day.date, day)
            continue
        day = normalize_day(key, data)
        if day is not None:
            per_date.setdefault(day.date, day)

    merged = {**from_months, **per_date}
    return [merged[day_date] for day_date in sorted(merged)]


def filter_fiscal_year(days: Iterable[Day], fiscal_year: str) -> List[Day]:
    """Days inside an April-to-March fiscal year; all days if it is not numeric."""
    days = list(days)
    try:
        year = int(str(fiscal_year).strip())
    except ValueError:
        return days
    start, end = date(year, 4, 1), date(year + 1, 3, 31)
    return [day for day in days if start <= day.date <= end]
