"""Timetable class orchestration: validate, generate, persist."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundError, ScheduleLockedError, ValidationError
from app.core.settings import settings
from app.models import ClassDate, TimetableClass, WeeklySlot
from app.schemas.calendar import CalendarSnapshot, Term
from app.schemas.timetable import (
    GeneratedClassDate,
    ScheduleRequest,
    ScheduleUpdate,
    SchedulePreview,
    SpecialScheduleOption,
    TimetableClassCreate,
    WeeklySlotSelection,
    WriteSummary,
)
from app.services.absence import recommended_max_absence
from app.services.calendar_store import CalendarDataStore, validate_calendar_query_params
from app.services.class_date_writer import ClassDateWriter
from app.services.schedule_generator import generate_class_dates

logger = logging.getLogger(__name__)


def unique_slots(slots: Iterable[WeeklySlotSelection]) -> List[WeeklySlotSelection]:
    """Drop repeated (weekday, period) selections, keeping first-seen order."""
    seen: Dict[Tuple[int, int], WeeklySlotSelection] = {}
    for slot in slots:
        seen.setdefault((slot.day_of_week, slot.period), slot)
    return list(seen.values())


def validate_selection(term_ids: List[str], weekly_slots: List[WeeklySlotSelection]) -> None:
    if not term_ids:
        raise ValidationError("Select at least one term")
    if not weekly_slots:
        raise ValidationError("Select at least one weekly slot")


def term_names_for(term_ids: Iterable[str], terms: Iterable[Term]) -> List[str]:
    names = {term.id: term.name for term in terms}
    result: List[str] = []
    for term_id in term_ids:
        name = names.get(term_id, term_id).strip()
        if name and name not in result:
            result.append(name)
    return result


class TimetableService:
    """Service for timetable classes and their generated dates."""

    def __init__(self, db: AsyncSession, calendar_store: Optional[CalendarDataStore] = None):
        self.db = db
        self.calendar_store = calendar_store or CalendarDataStore(db)
        self.writer = ClassDateWriter(db)

    async def _generate(
        self,
        snapshot: CalendarSnapshot,
        term_ids: List[str],
        weekly_slots: List[WeeklySlotSelection],
        special_option: SpecialScheduleOption,
    ) -> List[GeneratedClassDate]:
        generated = generate_class_dates(
            snapshot.days,
            term_ids,
            weekly_slots,
            special_option,
            terms=snapshot.terms,
        )
        if not generated:
            logger.info(
                f"No class dates generated for calendar {snapshot.calendar_id} "
                f"({snapshot.fiscal_year}), terms={term_ids}"
            )
        return generated

    async def preview(self, request: ScheduleRequest) -> SchedulePreview:
        """Generate dates without persisting anything."""
        fiscal_year, calendar_id = validate_calendar_query_params(
            request.fiscal_year, request.calendar_id
        )
        validate_selection(request.term_ids, request.weekly_slots)

        snapshot = await self.calendar_store.get_snapshot(fiscal_year, calendar_id)
        generated = await self._generate(
            snapshot, request.term_ids, request.weekly_slots, request.special_option
        )

        policy = request.absence_policy or settings.absence_policy
        return SchedulePreview(
            class_dates=generated,
            preview=generated[: settings.preview_limit],
            total_sessions=len(generated),
            recommended_max_absence=recommended_max_absence(len(generated), policy),
            absence_policy=policy,
            is_empty=not generated,
        )

    async def create_class(
        self,
        payload: TimetableClassCreate,
    ) -> Tuple[TimetableClass, WriteSummary, bool]:
        """
        Create a class with its weekly slots and generated dates in one transaction.

        Returns:
            (class, write summary, whether the generated set was empty)
        """
        class_name = payload.class_name.strip()
        if not class_name:
            raise ValidationError("Class name is required")

        fiscal_year, calendar_id = validate_calendar_query_params(
            payload.fiscal_year, payload.calendar_id
        )
        slots = [] if payload.omit_weekly_slots else unique_slots(payload.weekly_slots)
        if not payload.omit_weekly_slots:
            validate_selection(payload.term_ids, slots)

        snapshot = await self.calendar_store.get_snapshot(fiscal_year, calendar_id)
        generated = (
            await self._generate(snapshot, payload.term_ids, slots, payload.special_option)
            if slots
            else []
        )

        policy = payload.absence_policy or settings.absence_policy
        max_absence_days = (
            payload.max_absence_days
            if payload.max_absence_days is not None
            else recommended_max_absence(len(generated), policy)
        )

        try:
            timetable_class = TimetableClass(
                class_name=class_name,
                fiscal_year=fiscal_year,
                calendar_id=calendar_id,
                term_ids=list(payload.term_ids),
                term_names=term_names_for(payload.term_ids, snapshot.terms),
                class_type=payload.class_type.value,
                special_option=payload.special_option.value,
                location=payload.location.strip() or None,
                teacher=payload.teacher.strip() or None,
                credits=payload.credits,
                max_absence_days=max_absence_days,
                omit_weekly_slots=payload.omit_weekly_slots,
            )
            self.db.add(timetable_class)
            await self.db.flush()  # Get ID without commit

            for display_order, slot in enumerate(slots, start=1):
                self.db.add(
                    WeeklySlot(
                        class_id=timetable_class.id,
                        day_of_week=slot.day_of_week,
                        period=slot.period,
                        display_order=display_order,
                    )
                )

            summary = await self.writer.replace_class_dates(
                timetable_class.id, payload.class_type, generated
            )
            await self.db.commit()
            await self.db.refresh(timetable_class)

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error creating class '{class_name}': {e}")
            raise

        logger.info(
            f"✅ Created class {timetable_class.id} '{class_name}' with "
            f"{len(slots)} slots and {summary.created} dates"
        )
        return timetable_class, summary, not generated

    async def get_class(self, class_id: int) -> TimetableClass:
        result = await self.db.execute(
            select(TimetableClass)
            .options(selectinload(TimetableClass.weekly_slots))
            .where(TimetableClass.id == class_id)
        )
        timetable_class = result.scalar_one_or_none()
        if not timetable_class:
            raise NotFoundError(f"Class {class_id} not found")
        return timetable_class

    async def list_class_dates(self, class_id: int) -> List[ClassDate]:
        await self.get_class(class_id)
        return await self.writer.list_class_dates(class_id)

    async def regenerate_class_dates(
        self,
        class_id: int,
        update: Optional[ScheduleUpdate] = None,
    ) -> Tuple[WriteSummary, bool]:
        """
        Recompute the full date set of a class and swap it in atomically.

        ``update`` optionally replaces the stored terms, slots or cadence first.
        Refused once attendance has been recorded for the class.
        """
        timetable_class = await self.get_class(class_id)

        attendance_result = await self.db.execute(
            select(ClassDate.id)
            .where(
                ClassDate.class_id == class_id,
                ClassDate.attendance_status.is_not(None),
            )
            .limit(1)
        )
        if attendance_result.first() is not None:
            raise ScheduleLockedError(
                f"Class {class_id} already has recorded attendance; its schedule is locked"
            )

        update = update or ScheduleUpdate()
        term_ids = update.term_ids if update.term_ids is not None else list(timetable_class.term_ids)
        special_option = SpecialScheduleOption(
            update.special_option or timetable_class.special_option
        )
        if update.weekly_slots is not None:
            slots = unique_slots(update.weekly_slots)
        else:
            slots = [
                WeeklySlotSelection(day_of_week=slot.day_of_week, period=slot.period)
                for slot in timetable_class.weekly_slots
            ]

        if not timetable_class.omit_weekly_slots:
            validate_selection(term_ids, slots)

        snapshot = await self.calendar_store.get_snapshot(
            timetable_class.fiscal_year, timetable_class.calendar_id
        )
        generated = (
            await self._generate(snapshot, term_ids, slots, special_option)
            if slots and not timetable_class.omit_weekly_slots
            else []
        )

        try:
            timetable_class.term_ids = list(term_ids)
            timetable_class.term_names = term_names_for(term_ids, snapshot.terms)
            timetable_class.special_option = special_option.value

            if update.weekly_slots is not None:
                timetable_class.weekly_slots = [
                    WeeklySlot(day_of_week=slot.day_of_week, period=slot.period, display_order=index)
                    for index, slot in enumerate(slots, start=1)
                ]

            summary = await self.writer.replace_class_dates(
                class_id, timetable_class.class_type, generated
            )
            await self.db.commit()

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error regenerating dates of class {class_id}: {e}")
            raise

        logger.info(f"🔄 Regenerated class {class_id}: {len(generated)} dates")
        return summary, not generated
