"""API dependencies for database access and calendar reads."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import (
    DataFetchError,
    NotFoundError,
    ScheduleLockedError,
    TimetableError,
    ValidationError,
)
from app.services.calendar_store import CalendarDataStore, CalendarSnapshotCache


def get_calendar_cache(request: Request) -> CalendarSnapshotCache:
    """Process-wide snapshot cache created on startup."""
    cache = getattr(request.app.state, "calendar_cache", None)
    if cache is None:
        cache = CalendarSnapshotCache()
        request.app.state.calendar_cache = cache
    return cache


async def get_calendar_store(
    db: Annotated[AsyncSession, Depends(get_db)],
    cache: Annotated[CalendarSnapshotCache, Depends(get_calendar_cache)],
) -> CalendarDataStore:
    return CalendarDataStore(db, cache)


def to_http_exception(error: TimetableError) -> HTTPException:
    """Translate a domain error into the matching HTTP error."""
    if isinstance(error, ScheduleLockedError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, DataFetchError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))


# Dependency aliases for easier use
DbSession = Annotated[AsyncSession, Depends(get_db)]
CalendarStore = Annotated[CalendarDataStore, Depends(get_calendar_store)]
