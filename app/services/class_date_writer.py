"""
Persist generated class dates as stable, idempotent ClassDate rows.
"""

import logging
from typing import Dict, Iterable, List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.class_date import ClassDate
from app.schemas.timetable import (
    ON_DEMAND,
    ClassType,
    DeliveryType,
    GeneratedClassDate,
    Period,
    WriteSummary,
)
from app.services.schedule_generator import period_sort_key, sort_periods

logger = logging.getLogger(__name__)

DELIVERY_TYPES = {
    ClassType.IN_PERSON: DeliveryType.IN_PERSON,
    ClassType.ONLINE: DeliveryType.REMOTE,
    ClassType.HYBRID: DeliveryType.UNKNOWN,
    ClassType.ON_DEMAND: DeliveryType.REMOTE,
}


def period_token(period: Period) -> str:
    return ON_DEMAND if period == ON_DEMAND else f"P{int(period)}"


def build_class_date_key(class_id: int, item: GeneratedClassDate) -> str:
    """Deterministic identity: class id + date + sorted periods."""
    suffix = "_".join(period_token(period) for period in sort_periods(item.periods))
    return f"{class_id}:{item.date.isoformat()}#{suffix}"


def periods_order_key(periods: Sequence[Period]) -> int:
    """Smallest period, on-demand counting as 999."""
    return min((period_sort_key(period) for period in periods), default=period_sort_key(ON_DEMAND))


def delivery_type_for(class_type: ClassType) -> DeliveryType:
    return DELIVERY_TYPES.get(ClassType(class_type), DeliveryType.UNKNOWN)


class ClassDateWriter:
    """Replaces a class's occurrence set with a freshly generated one.

    The writer only stages changes on the session and flushes; the caller
    commits or rolls back, so the whole set is swapped in one transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_class_dates(self, class_id: int) -> List[ClassDate]:
        result = await self.db.execute(
            select(ClassDate)
            .where(ClassDate.class_id == class_id)
            .order_by(ClassDate.class_date, ClassDate.periods_order_key)
        )
        return list(result.scalars().all())

    async def replace_class_dates(
        self,
        class_id: int,
        class_type: ClassType,
        generated: Iterable[GeneratedClassDate],
    ) -> WriteSummary:
        """
        Diff ``generated`` against the stored rows and stage create/update/delete.

        Rows whose identity survives keep their attendance and user flags;
        rows whose identity disappears are deleted.

        Returns:
            WriteSummary with per-operation counts
        """
        delivery_type = delivery_type_for(class_type).value
        desired: Dict[str, GeneratedClassDate] = {}
        for item in generated:
            if not item.periods:
                continue
            desired[build_class_date_key(class_id, item)] = item

        existing = {row.identity_key: row for row in await self.list_class_dates(class_id)}
        summary = WriteSummary()

        for key, row in existing.items():
            if key not in desired:
                await self.db.delete(row)
                summary.deleted += 1
                logger.debug(f"Deleted class date {key}")

        for key, item in desired.items():
            row = existing.get(key)

            if row is None:
                periods = sort_periods(item.periods)
                self.db.add(
                    ClassDate(
                        class_id=class_id,
                        identity_key=key,
                        class_date=item.date,
                        periods=list(periods),
                        periods_order_key=periods_order_key(periods),
                        delivery_type=delivery_type,
                        is_auto_generated=True,
                    )
                )
                summary.created += 1
                continue

            # Date and periods are part of the key; only delivery can drift
            if not row.has_user_modifications and row.delivery_type != delivery_type:
                row.delivery_type = delivery_type
                summary.updated += 1
            else:
                summary.unchanged += 1

        await self.db.flush()

        logger.info(
            f"Class {class_id} dates staged: created={summary.created}, "
            f"updated={summary.updated}, deleted={summary.deleted}, "
            f"unchanged={summary.unchanged}"
        )
        return summary
