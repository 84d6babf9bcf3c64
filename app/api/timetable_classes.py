"""Timetable classes API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, status

from app.api.dependencies import CalendarStore, DbSession, to_http_exception
from app.core.exceptions import TimetableError
from app.models import ClassDate, TimetableClass
from app.schemas.timetable import (
    AttendanceSummaryResponse,
    AttendanceUpdate,
    ClassCreateResponse,
    ClassDateResponse,
    RegenerateResponse,
    SchedulePreview,
    ScheduleRequest,
    ScheduleUpdate,
    TimetableClassCreate,
    TimetableClassResponse,
)
from app.services.attendance_service import AttendanceService
from app.services.timetable_service import TimetableService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classes", tags=["classes"])
class_dates_router = APIRouter(prefix="/class-dates", tags=["classes"])


@router.post("/preview", response_model=SchedulePreview)
async def preview_class_dates(
    request: ScheduleRequest,
    db: DbSession,
    store: CalendarStore,
) -> SchedulePreview:
    """Generate class dates for a weekly schedule without saving them."""
    service = TimetableService(db, store)
    try:
        return await service.preview(request)
    except TimetableError as e:
        raise to_http_exception(e)


@router.post("", response_model=ClassCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: TimetableClassCreate,
    db: DbSession,
    store: CalendarStore,
) -> ClassCreateResponse:
    """Create a class with its weekly slots and generated dates."""
    service = TimetableService(db, store)
    try:
        timetable_class, summary, is_empty = await service.create_class(payload)
    except TimetableError as e:
        raise to_http_exception(e)

    return ClassCreateResponse(
        timetable_class=TimetableClassResponse.model_validate(timetable_class),
        write=summary,
        is_empty=is_empty,
    )


@router.get("/{class_id}", response_model=TimetableClassResponse)
async def get_class(
    class_id: int,
    db: DbSession,
) -> TimetableClass:
    """Get class by ID."""
    try:
        return await TimetableService(db).get_class(class_id)
    except TimetableError as e:
        raise to_http_exception(e)


@router.get("/{class_id}/dates", response_model=List[ClassDateResponse])
async def get_class_dates(
    class_id: int,
    db: DbSession,
) -> List[ClassDate]:
    """Get the stored dates of a class, ordered by date then period."""
    try:
        return await TimetableService(db).list_class_dates(class_id)
    except TimetableError as e:
        raise to_http_exception(e)


@router.post("/{class_id}/regenerate", response_model=RegenerateResponse)
async def regenerate_class_dates(
    class_id: int,
    db: DbSession,
    store: CalendarStore,
    update: Optional[ScheduleUpdate] = None,
) -> RegenerateResponse:
    """Recompute the dates of a class, optionally with new terms, slots or cadence."""
    service = TimetableService(db, store)
    try:
        summary, is_empty = await service.regenerate_class_dates(class_id, update)
    except TimetableError as e:
        raise to_http_exception(e)
    return RegenerateResponse(write=summary, is_empty=is_empty)


@router.get("/{class_id}/attendance-summary", response_model=AttendanceSummaryResponse)
async def get_attendance_summary(
    class_id: int,
    db: DbSession,
) -> AttendanceSummaryResponse:
    """Get attendance counts and the remaining-absence message of a class."""
    try:
        summary, message, labels = await AttendanceService(db).get_summary(class_id)
    except TimetableError as e:
        raise to_http_exception(e)
    return AttendanceSummaryResponse(summary=summary, message=message, period_labels=labels)


@class_dates_router.put("/{class_date_id}/attendance", response_model=ClassDateResponse)
async def set_attendance(
    class_date_id: int,
    payload: AttendanceUpdate,
    db: DbSession,
) -> ClassDate:
    """Record or clear the attendance of one class date."""
    try:
        return await AttendanceService(db).set_attendance(class_date_id, payload.status)
    except TimetableError as e:
        raise to_http_exception(e)
