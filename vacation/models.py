from __future__ import annotations
from datetime import date
from enum import Enum
from sqlalchemy import Date, Integer, Enum as SAEnum, Index
from sqlalchemy.orm import Mapped, mapped_column
from core.database import Base


class LeaveStatus(str, Enum):
    draft = "draft"
    pending = "pending"
    department_pending = "department_pending"
    facility_pending = "facility_pending"
    workspace_pending = "workspace_pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class LeaveRecord(Base):
    """Read-only mirror of the leave subsystem's date-ranged vacation splits."""

    __tablename__ = "leave_records"

    id: Mapped[int] = mapped_column(primary_key=True)
    staff_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date(), nullable=False)
    end_date: Mapped[date] = mapped_column(Date(), nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        SAEnum(LeaveStatus, name="leave_status"), nullable=False
    )

    __table_args__ = (
        Index("ix_leave_records_window", "start_date", "end_date"),
    )
