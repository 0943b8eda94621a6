from __future__ import annotations
from typing import TYPE_CHECKING
from datetime import datetime, date, time
from sqlalchemy import CheckConstraint, Integer, String, Time, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

if TYPE_CHECKING:
    from schedule.models import Schedule
    from assignment.models import ShiftAssignment


class Shift(Base):
    """Time-of-day template repeated on every date of its schedule."""

    __tablename__ = "shifts"

    id: Mapped[int] = mapped_column(primary_key=True)
    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("schedules.id", ondelete="CASCADE"), index=True
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_time: Mapped[time] = mapped_column(Time(), nullable=False)
    end_time:   Mapped[time] = mapped_column(Time(), nullable=False)
    shift_order: Mapped[int] = mapped_column(Integer, nullable=False)
    required_staff: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="#3b82f6")

    # relationships
    schedule: Mapped["Schedule"] = relationship("Schedule", back_populates="shifts")
    assignments: Mapped[list["ShiftAssignment"]] = relationship(
        "ShiftAssignment",
        back_populates="shift",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("schedule_id", "shift_order", name="uq_shift_schedule_order"),
        CheckConstraint("required_staff >= 0", name="ck_shift_required_staff"),
        CheckConstraint("shift_order >= 1", name="ck_shift_order_positive"),
    )

    @property
    def is_overnight(self) -> bool:
        return self.end_time < self.start_time

    @property
    def duration_minutes(self) -> int:
        start = datetime.combine(date.min, self.start_time)
        end = datetime.combine(date.min, self.end_time)
        minutes = int((end - start).total_seconds() // 60)
        return minutes + 24 * 60 if minutes <= 0 else minutes
