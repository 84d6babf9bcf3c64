"""Calendar data store: batched reads of one calendar's terms and days."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DataFetchError, ValidationError
from app.models.calendar import AcademicCalendar, CalendarDayDocument, CalendarTermDocument
from app.schemas.calendar import CalendarSnapshot, Day, Term
from app.services.calendar_normalizer import (
    date_key_candidates,
    filter_fiscal_year,
    flatten_day_documents,
    month_key_candidates,
    normalize_terms,
    parse_date_value,
    resolve_day,
)

logger = logging.getLogger(__name__)

CalendarKey = Tuple[str, str]


def validate_calendar_query_params(fiscal_year: Optional[str], calendar_id: Optional[str]) -> CalendarKey:
    """Return the trimmed (fiscal year, calendar id) or raise ValidationError."""
    fiscal_year = (fiscal_year or "").strip()
    calendar_id = (calendar_id or "").strip()
    if not fiscal_year or not calendar_id:
        raise ValidationError("Fiscal year and calendar id are required")
    return fiscal_year, calendar_id


class CalendarSnapshotCache:
    """Memoizes the snapshot of a single calendar key.

    Asking for a different key drops the previous snapshot entirely; there is
    no partial invalidation.
    """

    def __init__(self) -> None:
        self._key: Optional[CalendarKey] = None
        self._snapshot: Optional[CalendarSnapshot] = None
        self._lock = asyncio.Lock()

    @property
    def key(self) -> Optional[CalendarKey]:
        return self._key

    def peek(self, key: CalendarKey) -> Optional[CalendarSnapshot]:
        return self._snapshot if self._key == key else None

    async def get_or_load(
        self,
        key: CalendarKey,
        loader: Callable[[], Awaitable[CalendarSnapshot]],
    ) -> CalendarSnapshot:
        async with self._lock:
            if self._key == key and self._snapshot is not None:
                logger.debug(f"Calendar cache hit for {key}")
                return self._snapshot

            if self._key is not None and self._key != key:
                logger.info(f"Calendar cache key changed {self._key} -> {key}, dropping snapshot")
            self._key, self._snapshot = None, None

            snapshot = await loader()
            self._key, self._snapshot = key, snapshot
            return snapshot

    def invalidate(self) -> None:
        self._key, self._snapshot = None, None


class CalendarDataStore:
    """Reads calendar documents and hands out normalized snapshots."""

    def __init__(self, db: AsyncSession, cache: Optional[CalendarSnapshotCache] = None):
        self.db = db
        self.cache = cache

    async def get_snapshot(self, fiscal_year: str, calendar_id: str) -> CalendarSnapshot:
        """Terms and days of one calendar, served from the cache when possible."""
        key = validate_calendar_query_params(fiscal_year, calendar_id)
        if self.cache is None:
            return await self._load_snapshot(*key)
        return await self.cache.get_or_load(key, lambda: self._load_snapshot(*key))

    async def list_terms(self, fiscal_year: str, calendar_id: str) -> List[Term]:
        snapshot = await self.get_snapshot(fiscal_year, calendar_id)
        return list(snapshot.terms)

    async def list_days(self, fiscal_year: str, calendar_id: str) -> List[Day]:
        snapshot = await self.get_snapshot(fiscal_year, calendar_id)
        return list(snapshot.days)

    async def get_day(self, fiscal_year: str, calendar_id: str, date_id: str) -> Optional[Day]:
        """
        Resolve the Day stored for one date.

        Looks up the per-date and per-month document keys directly and falls
        back to the full snapshot for documents keyed by generated ids.
        """
        key = validate_calendar_query_params(fiscal_year, calendar_id)
        target = parse_date_value(date_id)
        if target is None:
            raise ValidationError(f"Invalid date identifier: {date_id!r}")

        cached = self.cache.peek(key) if self.cache is not None else None
        if cached is not None:
            return next((day for day in cached.days if day.date == target), None)

        candidates = date_key_candidates(target) + month_key_candidates(target)
        try:
            result = await self.db.execute(
                select(CalendarDayDocument).where(
                    CalendarDayDocument.fiscal_year == key[0],
                    CalendarDayDocument.calendar_id == key[1],
                    CalendarDayDocument.doc_key.in_(candidates),
                )
            )
            documents = {doc.doc_key: doc.data for doc in result.scalars().all()}
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Error reading day {target} of calendar {key}: {e}")
            raise DataFetchError(f"Calendar {key[1]} ({key[0]}) is unavailable") from e

        day = resolve_day(target.isoformat(), documents)
        if day is not None:
            return day

        snapshot = await self.get_snapshot(*key)
        return next((day for day in snapshot.days if day.date == target), None)

    async def _load_snapshot(self, fiscal_year: str, calendar_id: str) -> CalendarSnapshot:
        """One batched read of the calendar, its terms and its days."""
        try:
            calendar_result = await self.db.execute(
                select(AcademicCalendar).where(
                    AcademicCalendar.fiscal_year == fiscal_year,
                    AcademicCalendar.calendar_id == calendar_id,
                )
            )
            calendar = calendar_result.scalar_one_or_none()

            term_result = await self.db.execute(
                select(CalendarTermDocument).where(
                    CalendarTermDocument.fiscal_year == fiscal_year,
                    CalendarTermDocument.calendar_id == calendar_id,
                )
            )
            term_documents: Dict[str, dict] = {
                doc.doc_id: doc.data for doc in term_result.scalars().all()
            }

            day_result = await self.db.execute(
                select(CalendarDayDocument).where(
                    CalendarDayDocument.fiscal_year == fiscal_year,
                    CalendarDayDocument.calendar_id == calendar_id,
                )
            )
            day_documents: Dict[str, dict] = {
                doc.doc_key: doc.data for doc in day_result.scalars().all()
            }
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Error loading calendar {calendar_id} ({fiscal_year}): {e}")
            raise DataFetchError(f"Calendar {calendar_id} ({fiscal_year}) is unavailable") from e

        terms = normalize_terms(term_documents)
        days = filter_fiscal_year(flatten_day_documents(day_documents), fiscal_year)

        logger.info(
            f"Loaded calendar {calendar_id} ({fiscal_year}): "
            f"{len(terms)} terms, {len(days)} days"
        )

        return CalendarSnapshot(
            fiscal_year=fiscal_year,
            calendar_id=calendar_id,
            terms=terms,
            days=days,
            has_saturday_classes=calendar.has_saturday_classes if calendar else None,
        )


def filter_schedulable_terms(terms: List[Term]) -> List[Term]:
    """Terms eligible for scheduling (instructional, not recess)."""
    return [term for term in terms if term.is_instructional]
