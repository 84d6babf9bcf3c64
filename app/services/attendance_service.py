"""Attendance service for recording attendance on class dates."""

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models import ClassDate, TimetableClass
from app.schemas.timetable import (
    ON_DEMAND,
    AbsenceMessage,
    AttendanceStatus,
    AttendanceSummary,
    Period,
)
from app.utils.timezone import today_local

logger = logging.getLogger(__name__)


def compute_attendance_summary(
    items: Iterable[ClassDate],
    today: date,
    max_absence_days: Optional[int],
) -> AttendanceSummary:
    """
    Count attendance over a class's dates.

    Cancelled and excluded dates are skipped; dates without a status count as
    unrecorded only once they are today or in the past.
    """
    summary = AttendanceSummary(max_absence_days=max_absence_days)

    for item in items:
        if item.is_excluded_from_summary or item.is_cancelled:
            continue

        summary.total_count += 1

        if item.attendance_status == AttendanceStatus.PRESENT.value:
            summary.present_count += 1
        elif item.attendance_status == AttendanceStatus.LATE.value:
            summary.late_count += 1
        elif item.attendance_status == AttendanceStatus.ABSENT.value:
            summary.absent_count += 1
        elif item.class_date <= today:
            summary.unrecorded_count += 1

    return summary


def build_absence_message(summary: AttendanceSummary) -> Optional[AbsenceMessage]:
    """Remaining-absence message; None when no limit is set."""
    if summary.max_absence_days is None or summary.max_absence_days <= 0:
        return None

    remaining = summary.max_absence_days - summary.absent_count

    if remaining > 1:
        return AbsenceMessage(text=f"You can miss {remaining} more classes")
    if remaining == 1:
        return AbsenceMessage(text="You can miss only one more class", emphasize=True)
    if remaining == 0:
        return AbsenceMessage(text="You cannot miss any more classes", emphasize=True)
    return AbsenceMessage(text="You are already over the absence limit")


def format_period_label(periods: Sequence[Period]) -> str:
    """Human label for a period list, e.g. ``1,2 / on-demand``."""
    numeric = sorted(period for period in periods if period != ON_DEMAND)
    has_on_demand = ON_DEMAND in periods

    if not numeric:
        return "on-demand" if has_on_demand else "period not set"

    base = "Period " + ",".join(str(period) for period in numeric)
    return f"{base} / on-demand" if has_on_demand else base


class AttendanceService:
    """Service for managing attendance operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def set_attendance(
        self,
        class_date_id: int,
        status: Optional[AttendanceStatus],
    ) -> ClassDate:
        """Record (or clear, with None) the attendance of one class date."""
        try:
            class_date = await self.db.get(ClassDate, class_date_id)
            if class_date is None:
                raise NotFoundError(f"Class date {class_date_id} not found")

            class_date.attendance_status = status.value if status else None
            await self.db.commit()
            await self.db.refresh(class_date)

            logger.info(
                f"Set attendance of class date {class_date_id} "
                f"to {status.value if status else None}"
            )
            return class_date

        except NotFoundError:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error setting attendance: {e}")
            raise

    async def get_summary(
        self,
        class_id: int,
        today: Optional[date] = None,
    ) -> tuple[AttendanceSummary, Optional[AbsenceMessage], List[str]]:
        """Summary, absence message and period labels of a class's dates."""
        timetable_class = await self.db.get(TimetableClass, class_id)
        if timetable_class is None:
            raise NotFoundError(f"Class {class_id} not found")

        result = await self.db.execute(
            select(ClassDate)
            .where(ClassDate.class_id == class_id)
            .order_by(ClassDate.class_date, ClassDate.periods_order_key)
        )
        class_dates = list(result.scalars().all())

        summary = compute_attendance_summary(
            class_dates,
            today or today_local(),
            timetable_class.max_absence_days,
        )
        labels = sorted({format_period_label(item.periods) for item in class_dates})
        return summary, build_absence_message(summary), labels
