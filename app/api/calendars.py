"""Academic calendar API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query

from app.api.dependencies import CalendarStore, to_http_exception
from app.core.exceptions import TimetableError
from app.core.settings import settings
from app.schemas.calendar import Day, DisplayDescriptor, Term
from app.services.calendar_display import compute_display, parse_date_id
from app.services.calendar_store import filter_schedulable_terms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendars", tags=["calendars"])


@router.get("/{fiscal_year}/{calendar_id}/terms", response_model=List[Term])
async def get_terms(
    fiscal_year: str,
    calendar_id: str,
    store: CalendarStore,
    schedulable_only: bool = Query(False, description="Only instructional terms"),
) -> List[Term]:
    """Get the terms of a calendar, ordered by term order."""
    try:
        terms = await store.list_terms(fiscal_year, calendar_id)
    except TimetableError as e:
        raise to_http_exception(e)
    return filter_schedulable_terms(terms) if schedulable_only else terms


@router.get("/{fiscal_year}/{calendar_id}/days", response_model=List[Day])
async def get_days(
    fiscal_year: str,
    calendar_id: str,
    store: CalendarStore,
) -> List[Day]:
    """Get every day of a calendar within its fiscal year."""
    try:
        return await store.list_days(fiscal_year, calendar_id)
    except TimetableError as e:
        raise to_http_exception(e)


@router.get("/{fiscal_year}/{calendar_id}/display/{date_id}", response_model=DisplayDescriptor)
async def get_day_display(
    fiscal_year: str,
    calendar_id: str,
    date_id: str,
    store: CalendarStore,
    has_saturday_classes: Optional[bool] = Query(
        None, description="Override the calendar's Saturday setting"
    ),
) -> DisplayDescriptor:
    """Get the rendering descriptor of one calendar date."""
    try:
        parse_date_id(date_id)
        snapshot = await store.get_snapshot(fiscal_year, calendar_id)
        day = await store.get_day(fiscal_year, calendar_id, date_id)
    except TimetableError as e:
        raise to_http_exception(e)

    if has_saturday_classes is None:
        has_saturday_classes = snapshot.has_saturday_classes
    if has_saturday_classes is None:
        has_saturday_classes = settings.default_has_saturday_classes

    return compute_display(date_id, day, snapshot.terms, has_saturday_classes)
