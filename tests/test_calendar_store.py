from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import DataFetchError, ValidationError
from app.schemas.calendar import CalendarSnapshot, DayType
from app.services.calendar_store import (
    CalendarDataStore,
    CalendarSnapshotCache,
    filter_schedulable_terms,
    validate_calendar_query_params,
)
from tests.calendar_data import CALENDAR_ID, FISCAL_YEAR, store_calendar


def test_validate_calendar_query_params_trims_and_requires_both():
    assert validate_calendar_query_params(" 2025 ", "main ") == ("2025", "main")
    with pytest.raises(ValidationError):
        validate_calendar_query_params("", "main")
    with pytest.raises(ValidationError):
        validate_calendar_query_params("2025", None)


async def test_snapshot_normalizes_terms_and_days(spring_calendar):
    store = CalendarDataStore(spring_calendar)

    snapshot = await store.get_snapshot(FISCAL_YEAR, CALENDAR_ID)

    assert [term.id for term in snapshot.terms] == ["spring", "summer-break", "fall"]
    assert len(snapshot.days) == 40
    assert snapshot.days[0].date == date(2025, 4, 7)
    assert all(day.type == DayType.CLASS_DAY for day in snapshot.days)
    assert [term.id for term in filter_schedulable_terms(snapshot.terms)] == ["spring", "fall"]


async def test_snapshot_excludes_days_outside_fiscal_year(db):
    await store_calendar(
        db,
        {
            "2025-03-31": {"type": "class_day"},
            "2025-04-01": {"type": "class_day"},
        },
        has_saturday_classes=False,
    )

    snapshot = await CalendarDataStore(db).get_snapshot(FISCAL_YEAR, CALENDAR_ID)

    assert [day.date for day in snapshot.days] == [date(2025, 4, 1)]
    assert snapshot.has_saturday_classes is False


async def test_unknown_calendar_is_empty_not_an_error(db):
    snapshot = await CalendarDataStore(db).get_snapshot("2030", "nowhere")

    assert snapshot.terms == []
    assert snapshot.days == []
    assert snapshot.has_saturday_classes is None


async def test_get_day_reads_month_documents(db):
    await store_calendar(db, {"2025-05": {"days": {"07": {"type": "exam_day", "termId": "spring"}}}})
    store = CalendarDataStore(db)

    day = await store.get_day(FISCAL_YEAR, CALENDAR_ID, "2025-05-07")
    missing = await store.get_day(FISCAL_YEAR, CALENDAR_ID, "2025-05-08")

    assert day.type == DayType.EXAM_DAY
    assert missing is None


async def test_get_day_rejects_malformed_identifier(spring_calendar):
    with pytest.raises(ValidationError):
        await CalendarDataStore(spring_calendar).get_day(FISCAL_YEAR, CALENDAR_ID, "tomorrow")


async def test_read_failure_raises_data_fetch_error(db, monkeypatch):
    async def broken_execute(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(db, "execute", broken_execute)

    with pytest.raises(DataFetchError):
        await CalendarDataStore(db).get_snapshot(FISCAL_YEAR, CALENDAR_ID)


async def test_cache_reuses_snapshot_for_same_key():
    cache = CalendarSnapshotCache()
    calls = []

    async def loader():
        calls.append(1)
        return CalendarSnapshot(fiscal_year="2025", calendar_id="main")

    first = await cache.get_or_load(("2025", "main"), loader)
    second = await cache.get_or_load(("2025", "main"), loader)

    assert first is second
    assert len(calls) == 1


async def test_cache_drops_snapshot_when_key_changes():
    cache = CalendarSnapshotCache()

    def loader_for(calendar_id):
        async def loader():
            return CalendarSnapshot(fiscal_year="2025", calendar_id=calendar_id)

        return loader

    await cache.get_or_load(("2025", "main"), loader_for("main"))
    await cache.get_or_load(("2025", "annex"), loader_for("annex"))

    assert cache.key == ("2025", "annex")
    assert cache.peek(("2025", "main")) is None
    assert cache.peek(("2025", "annex")).calendar_id == "annex"


async def test_failed_load_leaves_cache_empty():
    cache = CalendarSnapshotCache()

    async def loader():
        raise DataFetchError("unavailable")

    with pytest.raises(DataFetchError):
        await cache.get_or_load(("2025", "main"), loader)

    assert cache.key is None


async def test_store_serves_days_from_cache(spring_calendar):
    cache = CalendarSnapshotCache()
    store = CalendarDataStore(spring_calendar, cache)

    await store.get_snapshot(FISCAL_YEAR, CALENDAR_ID)
    day = await store.get_day(FISCAL_YEAR, CALENDAR_ID, "2025-04-08")

    assert cache.key == (FISCAL_YEAR, CALENDAR_ID)
    assert day.date == date(2025, 4, 8)
