# shift/service.py
from __future__ import annotations
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from core.errors import NotFound
from schedule.models import Schedule
from .models import Shift


def get_shift(db: Session, shift_id: int) -> Shift | None:
    return db.get(Shift, shift_id)


def require_shift(db: Session, shift_id: int) -> Shift:
    row = db.get(Shift, shift_id)
    if row is None:
        raise NotFound("shift not found")
    return row


def get_shifts(
    db: Session,
    *,
    schedule_id: Optional[int] = None,
    department_id: Optional[int] = None,
) -> list[Shift]:
    stmt = select(Shift)
    if schedule_id is not None:
        stmt = stmt.where(Shift.schedule_id == schedule_id)
    if department_id is not None:
        stmt = stmt.join(Schedule, Schedule.id == Shift.schedule_id).where(Schedule.department_id == department_id)
    stmt = stmt.order_by(Shift.schedule_id, Shift.shift_order)
    return list(db.scalars(stmt))
