from __future__ import annotations
from typing import TYPE_CHECKING
from datetime import date, datetime
from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, UniqueConstraint, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

if TYPE_CHECKING:
    from shift.models import Shift


class ShiftAssignment(Base):
    __tablename__ = "shift_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    shift_id: Mapped[int] = mapped_column(
        ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    staff_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    assignment_date: Mapped[date] = mapped_column(Date(), nullable=False)
    # seat number 1..required_staff; unique per shift-date so the table cannot overbook
    slot: Mapped[int] = mapped_column(Integer, nullable=False)

    assigned_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    shift: Mapped["Shift"] = relationship("Shift", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("shift_id", "staff_id", "assignment_date", name="uq_assignment_staff_shift_date"),
        UniqueConstraint("shift_id", "assignment_date", "slot", name="uq_assignment_shift_date_slot"),
        CheckConstraint("slot >= 1", name="ck_assignment_slot_positive"),
        Index("ix_assignments_shift_date", "shift_id", "assignment_date"),
        Index("ix_assignments_staff_date", "staff_id", "assignment_date"),
    )
