from __future__ import annotations
import logging
from datetime import date
from typing import Optional, List

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from authz.context import ActorContext
from core.errors import (
    AssignmentConflict, CapacityExceeded, DuplicateAssignment, NotFound, NotOnRoster, OnLeave, ScheduleLocked,
    ValidationError,
)
from eligibility.service import ALREADY_ASSIGNED, ON_LEAVE, EligibleStaff, resolve_eligible_staff
from roster.service import RosterProvider
from schedule.models import Schedule, ScheduleStatus
from shift.models import Shift
from shift.service import require_shift
from staffing.cache import staffing_cache
from vacation.service import VacationOracle
from .models import ShiftAssignment

logger = logging.getLogger(__name__)


# -------- queries --------

def get_assignment(db: Session, assignment_id: int) -> ShiftAssignment | None:
    return db.get(ShiftAssignment, assignment_id)


def get_assignments(
    db: Session,
    *,
    shift_id: Optional[int] = None,
    staff_id: Optional[int] = None,
    on_date: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[ShiftAssignment]:
    stmt = select(ShiftAssignment)
    if shift_id is not None:
        stmt = stmt.where(ShiftAssignment.shift_id == shift_id)
    if staff_id is not None:
        stmt = stmt.where(ShiftAssignment.staff_id == staff_id)
    if on_date is not None:
        stmt = stmt.where(ShiftAssignment.assignment_date == on_date)
    if start is not None:
        stmt = stmt.where(ShiftAssignment.assignment_date >= start)
    if end is not None:
        stmt = stmt.where(ShiftAssignment.assignment_date <= end)
    stmt = stmt.order_by(ShiftAssignment.assignment_date, ShiftAssignment.shift_id, ShiftAssignment.slot)
    return list(db.scalars(stmt))


def find_existing(db: Session, shift_id: int, staff_id: int, on_date: date) -> ShiftAssignment | None:
    stmt = select(ShiftAssignment).where(
        ShiftAssignment.shift_id == shift_id,
        ShiftAssignment.staff_id == staff_id,
        ShiftAssignment.assignment_date == on_date,
    )
    return db.scalars(stmt).first()


def live_count(db: Session, shift_id: int, on_date: date) -> int:
    return db.scalar(
        select(func.count(ShiftAssignment.id)).where(
            ShiftAssignment.shift_id == shift_id,
            ShiftAssignment.assignment_date == on_date,
        )
    ) or 0


def staff_assignments(db: Session, staff_id: int, start: date, end: date) -> List[ShiftAssignment]:
    """Everything a staff member works between two dates, inclusive. Leave planners use it to spot clashes."""
    if start > end:
        raise ValidationError("start must be on or before end")
    return get_assignments(db, staff_id=staff_id, start=start, end=end)


def upcoming_assignments(db: Session, staff_id: int, *, today: date, limit: int = 3) -> List[ShiftAssignment]:
    stmt = (
        select(ShiftAssignment)
        .join(Shift, Shift.id == ShiftAssignment.shift_id)
        .where(ShiftAssignment.staff_id == staff_id, ShiftAssignment.assignment_date >= today)
        .order_by(ShiftAssignment.assignment_date, Shift.start_time)
        .limit(limit)
    )
    return list(db.scalars(stmt))


# -------- engine --------

def _taken_slots(db: Session, shift_id: int, on_date: date) -> set[int]:
    return set(
        db.scalars(
            select(ShiftAssignment.slot).where(
                ShiftAssignment.shift_id == shift_id,
                ShiftAssignment.assignment_date == on_date,
            )
        )
    )


def _lock_shift(db: Session, shift_id: int) -> None:
    # row lock on backends that have one; SQLite serializes writers anyway
    db.execute(select(Shift.id).where(Shift.id == shift_id).with_for_update())


def _capacity_message(shift: Shift, on_date: date) -> str:
    return f"{shift.name} on {on_date.isoformat()} has already reached its staffing requirement"


def _require_open_shift_date(db: Session, shift_id: int, on_date: date) -> Shift:
    shift = require_shift(db, shift_id)
    sched: Schedule = shift.schedule
    if sched.status == ScheduleStatus.archived:
        raise ScheduleLocked("schedule is archived")
    if not sched.covers(on_date):
        raise ValidationError(
            f"{on_date.isoformat()} is outside the schedule window "
            f"{sched.start_date.isoformat()}..{sched.end_date.isoformat()}"
        )
    return shift


def eligible_staff_for(
    db: Session,
    shift_id: int,
    on_date: date,
    roster_provider: RosterProvider,
    oracle: VacationOracle,
) -> EligibleStaff:
    """Who could be assigned right now. Refuses archived schedules and out-of-window dates, like assign."""
    shift = _require_open_shift_date(db, shift_id, on_date)
    return resolve_eligible_staff(db, shift, on_date, roster_provider, oracle)


def assign(
    db: Session,
    actor: ActorContext,
    *,
    shift_id: int,
    staff_id: int,
    on_date: date,
    roster_provider: RosterProvider,
    oracle: VacationOracle,
) -> ShiftAssignment:
    """
    Put one staff member on one shift for one date.

    Raises NotFound, ScheduleLocked, ValidationError (date outside the schedule),
    UpstreamUnavailable (roster or leave data missing, nothing is written),
    NotOnRoster, OnLeave, DuplicateAssignment, CapacityExceeded, AssignmentConflict
    (a free seat was taken concurrently, retry).
    """
    shift = _require_open_shift_date(db, shift_id, on_date)
    eligible = resolve_eligible_staff(db, shift, on_date, roster_provider, oracle)
    reason = eligible.reason_for(staff_id)
    if reason == ALREADY_ASSIGNED:
        existing = find_existing(db, shift.id, staff_id, on_date)
        logger.info("staff %s already on shift %s for %s", staff_id, shift.id, on_date)
        raise DuplicateAssignment(
            "staff member is already assigned to this shift",
            existing_id=existing.id if existing else None,
        )
    if reason == ON_LEAVE:
        raise OnLeave("staff member is on leave on this date")
    if reason is not None:
        raise NotOnRoster("staff member is not on this department's roster")

    # capacity is decided against the live table, never a cached count
    _lock_shift(db, shift.id)
    taken = _taken_slots(db, shift.id, on_date)
    if len(taken) >= shift.required_staff:
        db.rollback()
        logger.info("shift %s on %s is full (%s/%s)", shift.id, on_date, len(taken), shift.required_staff)
        raise CapacityExceeded(_capacity_message(shift, on_date))
    slot = min(set(range(1, shift.required_staff + 1)) - taken)

    row = ShiftAssignment(
        shift_id=shift.id,
        staff_id=staff_id,
        assignment_date=on_date,
        slot=slot,
        assigned_by=actor.user_id,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # a concurrent request won the race; report what the table says now
        existing = find_existing(db, shift.id, staff_id, on_date)
        if existing is not None:
            logger.info("staff %s already on shift %s for %s", staff_id, shift.id, on_date)
            raise DuplicateAssignment("staff member is already assigned to this shift", existing_id=existing.id)
        live = live_count(db, shift.id, on_date)
        if live >= shift.required_staff:
            logger.info("shift %s on %s filled by a concurrent request", shift.id, on_date)
            raise CapacityExceeded(_capacity_message(shift, on_date))
        logger.info(
            "slot %s of shift %s on %s taken concurrently (%s/%s filled)",
            slot, shift.id, on_date, live, shift.required_staff,
        )
        raise AssignmentConflict("another assignment took this seat first, try again")

    staffing_cache.invalidate(shift.id, on_date)
    db.refresh(row)
    logger.info(
        "staff %s assigned to shift %s on %s (slot %s) by %s",
        staff_id, shift.id, on_date, slot, actor.user_id,
    )
    return row


def unassign(db: Session, assignment_id: int) -> None:
    row = db.get(ShiftAssignment, assignment_id)
    if row is None:
        raise NotFound("assignment not found")
    if row.shift.schedule.status == ScheduleStatus.archived:
        raise ScheduleLocked("schedule is archived")
    shift_id, on_date = row.shift_id, row.assignment_date
    db.delete(row)
    db.commit()
    staffing_cache.invalidate(shift_id, on_date)
    logger.info("assignment %s removed (shift %s on %s)", assignment_id, shift_id, on_date)
