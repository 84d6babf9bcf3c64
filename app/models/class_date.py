"""Class date (persisted occurrence) model."""

from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class ClassDate(Base):
    """One concrete meeting of a timetable class.

    ``identity_key`` is derived from the class id, the date and the sorted
    periods, so regenerating unchanged inputs maps onto the same rows.
    """

    __tablename__ = "class_dates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    class_id: Mapped[int] = mapped_column(
        ForeignKey("timetable_classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    identity_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    class_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    periods: Mapped[list[Union[int, str]]] = mapped_column(JSON, nullable=False, default=list)
    periods_order_key: Mapped[int] = mapped_column(Integer, nullable=False, default=999)

    attendance_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    delivery_type: Mapped[str] = mapped_column(String(20), nullable=False, default="unknown")
    is_excluded_from_summary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_auto_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_user_modifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    timetable_class: Mapped["TimetableClass"] = relationship(
        "TimetableClass", back_populates="class_dates"
    )

    def __repr__(self) -> str:
        return (
            f"<ClassDate(id={self.id}, class_id={self.class_id}, "
            f"date={self.class_date}, periods={self.periods})>"
        )
