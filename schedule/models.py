from __future__ import annotations
from typing import TYPE_CHECKING
from datetime import date, datetime
from enum import Enum
from sqlalchemy import (
    CheckConstraint, Date, DateTime, Integer, String, Enum as SAEnum, UniqueConstraint, Index, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

if TYPE_CHECKING:
    from shift.models import Shift


class ScheduleStatus(str, Enum):
    draft = "draft"
    published = "published"
    archived = "archived"


def name_key(name: str) -> str:
    return " ".join(name.split()).lower()


class Schedule(Base):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # case-insensitive uniqueness key, see name_key()
    name_key: Mapped[str] = mapped_column(String(200), nullable=False)

    department_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    facility_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    workspace_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    start_date: Mapped[date] = mapped_column(Date(), nullable=False)
    end_date:   Mapped[date] = mapped_column(Date(), nullable=False)
    shift_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"),
        default=ScheduleStatus.draft,
        nullable=False,
    )
    created_by:   Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    created_at:   Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_at:  Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    shifts: Mapped[list["Shift"]] = relationship(
        "Shift",
        back_populates="schedule",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Shift.shift_order",
    )

    __table_args__ = (
        UniqueConstraint("department_id", "name_key", name="uq_schedule_department_name"),
        CheckConstraint("start_date <= end_date", name="ck_schedule_date_order"),
        CheckConstraint("shift_count >= 0 AND shift_count <= 3", name="ck_schedule_shift_count"),
        Index("ix_schedules_department_window", "department_id", "start_date", "end_date"),
    )

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
