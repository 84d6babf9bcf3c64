"""Academic calendar storage models."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class AcademicCalendar(Base):
    """Published academic calendar of one institution for one fiscal year."""

    __tablename__ = "academic_calendars"
    __table_args__ = (
        UniqueConstraint("fiscal_year", "calendar_id", name="academic_calendar_key_unique"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    fiscal_year: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    calendar_id: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    has_saturday_classes: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<AcademicCalendar(id={self.id}, fiscal_year={self.fiscal_year}, "
            f"calendar_id='{self.calendar_id}', name='{self.name}')>"
        )


class CalendarTermDocument(Base):
    """Raw term document as synced from the institution."""

    __tablename__ = "calendar_term_documents"
    __table_args__ = (
        UniqueConstraint(
            "fiscal_year", "calendar_id", "doc_id",
            name="calendar_term_document_unique"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    fiscal_year: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    calendar_id: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    doc_id: Mapped[str] = mapped_column(String(120), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<CalendarTermDocument(id={self.id}, doc_id='{self.doc_id}')>"


class CalendarDayDocument(Base):
    """Raw day document; one per date or one per month depending on the source."""

    __tablename__ = "calendar_day_documents"
    __table_args__ = (
        UniqueConstraint(
            "fiscal_year", "calendar_id", "doc_key",
            name="calendar_day_document_unique"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    fiscal_year: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    calendar_id: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    doc_key: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<CalendarDayDocument(id={self.id}, doc_key='{self.doc_key}')>"
