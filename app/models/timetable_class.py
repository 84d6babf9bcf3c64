"""Timetable class and weekly slot models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class TimetableClass(Base):
    """A course a student attends, scheduled against one academic calendar."""

    __tablename__ = "timetable_classes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    class_name: Mapped[str] = mapped_column(String(200), nullable=False)
    fiscal_year: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    calendar_id: Mapped[str] = mapped_column(String(120), nullable=False)
    term_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    term_names: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    class_type: Mapped[str] = mapped_column(String(20), nullable=False, default="in_person")
    special_option: Mapped[str] = mapped_column(String(20), nullable=False, default="all")
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    teacher: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    credits: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_absence_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    omit_weekly_slots: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    weekly_slots: Mapped[list["WeeklySlot"]] = relationship(
        "WeeklySlot",
        back_populates="timetable_class",
        cascade="all, delete-orphan",
        order_by="WeeklySlot.display_order",
    )
    class_dates: Mapped[list["ClassDate"]] = relationship(
        "ClassDate",
        back_populates="timetable_class",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return (
            f"<TimetableClass(id={self.id}, name='{self.class_name}', "
            f"fiscal_year={self.fiscal_year}, calendar_id='{self.calendar_id}')>"
        )


class WeeklySlot(Base):
    """Recurring weekday + period of a timetable class (period 0 = on-demand)."""

    __tablename__ = "weekly_slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    class_id: Mapped[int] = mapped_column(
        ForeignKey("timetable_classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)  # 1=Monday .. 6=Saturday
    period: Mapped[int] = mapped_column(Integer, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    timetable_class: Mapped["TimetableClass"] = relationship(
        "TimetableClass", back_populates="weekly_slots"
    )

    def __repr__(self) -> str:
        return (
            f"<WeeklySlot(id={self.id}, class_id={self.class_id}, "
            f"day_of_week={self.day_of_week}, period={self.period})>"
        )
