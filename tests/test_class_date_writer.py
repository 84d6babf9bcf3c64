from datetime import date

import pytest

from app.models import TimetableClass
from app.schemas.timetable import ON_DEMAND, ClassType, DeliveryType, GeneratedClassDate
from app.services.class_date_writer import (
    ClassDateWriter,
    build_class_date_key,
    delivery_type_for,
    periods_order_key,
)


def _generated(*items):
    return [GeneratedClassDate(date=day, periods=periods) for day, periods in items]


@pytest.fixture
async def timetable_class(db):
    timetable_class = TimetableClass(class_name="Linear Algebra", fiscal_year="2025", calendar_id="main")
    db.add(timetable_class)
    await db.commit()
    return timetable_class


def test_identity_key_sorts_periods_numerically():
    item = GeneratedClassDate(date=date(2025, 4, 7), periods=[10, ON_DEMAND, 2])

    assert build_class_date_key(7, item) == "7:2025-04-07#P2_P10_OD"


def test_periods_order_key_uses_smallest_period():
    assert periods_order_key([3, 1]) == 1
    assert periods_order_key([ON_DEMAND]) == 999


def test_delivery_type_follows_class_type():
    assert delivery_type_for(ClassType.IN_PERSON) == DeliveryType.IN_PERSON
    assert delivery_type_for("online") == DeliveryType.REMOTE
    assert delivery_type_for(ClassType.HYBRID) == DeliveryType.UNKNOWN


async def test_first_write_creates_every_date(db, timetable_class):
    writer = ClassDateWriter(db)
    generated = _generated((date(2025, 4, 7), [1]), (date(2025, 4, 14), [1, 2]))

    summary = await writer.replace_class_dates(timetable_class.id, ClassType.IN_PERSON, generated)
    await db.commit()

    rows = await writer.list_class_dates(timetable_class.id)
    assert summary.created == 2
    assert [row.class_date for row in rows] == [date(2025, 4, 7), date(2025, 4, 14)]
    assert rows[1].periods == [1, 2]
    assert rows[0].delivery_type == DeliveryType.IN_PERSON.value
    assert all(row.is_auto_generated for row in rows)


async def test_rewriting_the_same_set_is_a_no_op(db, timetable_class):
    writer = ClassDateWriter(db)
    generated = _generated((date(2025, 4, 7), [1]), (date(2025, 4, 14), [1]))

    await writer.replace_class_dates(timetable_class.id, ClassType.IN_PERSON, generated)
    await db.commit()
    ids = [row.id for row in await writer.list_class_dates(timetable_class.id)]

    summary = await writer.replace_class_dates(timetable_class.id, ClassType.IN_PERSON, generated)
    await db.commit()

    assert summary.total_changes == 0
    assert summary.unchanged == 2
    assert [row.id for row in await writer.list_class_dates(timetable_class.id)] == ids


async def test_changed_set_deletes_missing_and_keeps_attendance_of_survivors(db, timetable_class):
    writer = ClassDateWriter(db)
    await writer.replace_class_dates(
        timetable_class.id,
        ClassType.IN_PERSON,
        _generated((date(2025, 4, 7), [1]), (date(2025, 4, 14), [1])),
    )
    await db.commit()
    kept = (await writer.list_class_dates(timetable_class.id))[0]
    kept.attendance_status = "present"
    await db.commit()

    summary = await writer.replace_class_dates(
        timetable_class.id,
        ClassType.IN_PERSON,
        _generated((date(2025, 4, 7), [1]), (date(2025, 4, 21), [1])),
    )
    await db.commit()

    rows = await writer.list_class_dates(timetable_class.id)
    assert (summary.created, summary.deleted, summary.unchanged) == (1, 1, 1)
    assert [row.class_date for row in rows] == [date(2025, 4, 7), date(2025, 4, 21)]
    assert rows[0].id == kept.id
    assert rows[0].attendance_status == "present"


async def test_delivery_type_refreshes_unless_user_modified(db, timetable_class):
    writer = ClassDateWriter(db)
    generated = _generated((date(2025, 4, 7), [1]), (date(2025, 4, 14), [1]))
    await writer.replace_class_dates(timetable_class.id, ClassType.IN_PERSON, generated)
    await db.commit()
    edited = (await writer.list_class_dates(timetable_class.id))[1]
    edited.has_user_modifications = True
    await db.commit()

    summary = await writer.replace_class_dates(timetable_class.id, ClassType.ONLINE, generated)
    await db.commit()

    rows = await writer.list_class_dates(timetable_class.id)
    assert summary.updated == 1
    assert rows[0].delivery_type == DeliveryType.REMOTE.value
    assert rows[1].delivery_type == DeliveryType.IN_PERSON.value


async def test_staged_changes_disappear_on_rollback(db, timetable_class):
    writer = ClassDateWriter(db)
    class_id = timetable_class.id

    await writer.replace_class_dates(
        class_id, ClassType.IN_PERSON, _generated((date(2025, 4, 7), [1]))
    )
    await db.rollback()

    assert await writer.list_class_dates(class_id) == []


async def test_dates_without_periods_are_skipped(db, timetable_class):
    writer = ClassDateWriter(db)

    summary = await writer.replace_class_dates(
        timetable_class.id, ClassType.IN_PERSON, _generated((date(2025, 4, 7), []))
    )

    assert summary.created == 0


async def test_changed_periods_replace_the_row(db, timetable_class):
    writer = ClassDateWriter(db)
    await writer.replace_class_dates(
        timetable_class.id, ClassType.IN_PERSON, _generated((date(2025, 4, 7), [1]))
    )
    await db.commit()

    summary = await writer.replace_class_dates(
        timetable_class.id, ClassType.IN_PERSON, _generated((date(2025, 4, 7), [2, 1]))
    )
    await db.commit()

    rows = await writer.list_class_dates(timetable_class.id)
    assert (summary.created, summary.updated, summary.deleted) == (1, 0, 1)
    assert [row.identity_key for row in rows] == [f"{timetable_class.id}:2025-04-07#P1_P2"]
    assert rows[0].periods_order_key == 1
