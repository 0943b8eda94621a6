from __future__ import annotations
import logging
from datetime import date, datetime, timezone
from typing import Optional, List, Sequence

from sqlalchemy import select, func, and_, or_, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import DuplicateName, NotFound, ScheduleLocked, ValidationError
from shift.models import Shift
from shift.schemas import ShiftTemplate, MAX_SHIFTS_PER_SCHEDULE, default_shift_templates
from assignment.models import ShiftAssignment
from staffing.cache import staffing_cache
from .models import Schedule, ScheduleStatus, name_key
from .schema import ScheduleCreate, ScheduleUpdate

logger = logging.getLogger(__name__)


# -------- helpers --------

def _now() -> datetime:
    return datetime.now(timezone.utc)


def _validate_window(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("start must be on or before end")


def _ensure_draft(sched: Schedule, action: str) -> None:
    if sched.status != ScheduleStatus.draft:
        raise ScheduleLocked(f"cannot {action}: schedule is {sched.status.value}")


def _resolve_templates(shifts: Optional[Sequence[ShiftTemplate]], shift_count: Optional[int]) -> list[ShiftTemplate]:
    if shifts is None:
        count = shift_count or 1
        if not 1 <= count <= MAX_SHIFTS_PER_SCHEDULE:
            raise ValidationError(f"shift_count must be between 1 and {MAX_SHIFTS_PER_SCHEDULE}")
        return default_shift_templates(count)

    templates = list(shifts)
    if shift_count is not None and shift_count != len(templates):
        raise ValidationError("shift_count does not match the number of shifts")
    if not 1 <= len(templates) <= MAX_SHIFTS_PER_SCHEDULE:
        raise ValidationError(f"a schedule needs between 1 and {MAX_SHIFTS_PER_SCHEDULE} shifts")
    for t in templates:
        if t.required_staff < 0:
            raise ValidationError("required_staff cannot be negative")
    return templates


def _build_shifts(templates: Sequence[ShiftTemplate]) -> list[Shift]:
    return [
        Shift(
            name=t.name.strip(),
            start_time=t.start_time,
            end_time=t.end_time,
            shift_order=index + 1,
            required_staff=t.required_staff,
            color=t.color,
        )
        for index, t in enumerate(templates)
    ]


def _commit_or_duplicate_name(db: Session, *, department_id: int, name: str, exclude_id: Optional[int]) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # the unique key is the authoritative check; the pre-check can lose a race
        if is_duplicate_name(db, department_id=department_id, name=name, exclude_id=exclude_id):
            logger.info("schedule name %r already taken in department %s", name, department_id)
            raise DuplicateName(f'A schedule with the name "{name}" already exists in this department')
        raise


# -------- queries --------

def get_schedule(db: Session, schedule_id: int) -> Schedule | None:
    return db.get(Schedule, schedule_id)


def require_schedule(db: Session, schedule_id: int) -> Schedule:
    sched = db.get(Schedule, schedule_id)
    if sched is None:
        raise NotFound("schedule not found")
    return sched


def get_schedules(
    db: Session,
    *,
    department_id: Optional[int] = None,
    facility_id: Optional[int] = None,
    statuses: Optional[Sequence[ScheduleStatus]] = None,
    active_on: Optional[date] = None,
    overlaps_start: Optional[date] = None,
    overlaps_end: Optional[date] = None,
    ) -> List[Schedule]:
    stmt = select(Schedule)
    if department_id is not None:
        stmt = stmt.where(Schedule.department_id == department_id)
    if facility_id is not None:
        stmt = stmt.where(Schedule.facility_id == facility_id)
    if statuses:
        stmt = stmt.where(Schedule.status.in_(list(statuses)))
    if active_on is not None:
        stmt = stmt.where(and_(Schedule.start_date <= active_on, Schedule.end_date >= active_on))
    # overlap if (start <= window_end) AND (end >= window_start)
    if overlaps_end is not None:
        stmt = stmt.where(Schedule.start_date <= overlaps_end)
    if overlaps_start is not None:
        stmt = stmt.where(Schedule.end_date >= overlaps_start)
    stmt = stmt.order_by(Schedule.start_date.desc(), Schedule.id.desc())
    return list(db.scalars(stmt))


def is_duplicate_name(db: Session, *, department_id: int, name: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(func.count(Schedule.id)).where(
        Schedule.department_id == department_id,
        Schedule.name_key == name_key(name),
    )
    if exclude_id is not None:
        stmt = stmt.where(Schedule.id != exclude_id)
    return bool(db.scalar(stmt))


# -------- mutations --------

def create_schedule(db: Session, dto: ScheduleCreate) -> Schedule:
    name = dto.name.strip()
    if not name:
        raise ValidationError("name is required")
    _validate_window(dto.start_date, dto.end_date)
    templates = _resolve_templates(dto.shifts, dto.shift_count)

    if is_duplicate_name(db, department_id=dto.department_id, name=name):
        logger.info("schedule name %r already taken in department %s", name, dto.department_id)
        raise DuplicateName(f'A schedule with the name "{name}" already exists in this department')

    row = Schedule(
        name=name,
        name_key=name_key(name),
        department_id=dto.department_id,
        facility_id=dto.facility_id,
        workspace_id=dto.workspace_id,
        start_date=dto.start_date,
        end_date=dto.end_date,
        shift_count=len(templates),
        status=ScheduleStatus.draft,
        created_by=dto.created_by,
    )
    row.shifts = _build_shifts(templates)
    db.add(row)
    _commit_or_duplicate_name(db, department_id=dto.department_id, name=name, exclude_id=None)
    db.refresh(row)
    logger.info("schedule %s (%r) created in department %s by %s", row.id, row.name, row.department_id, row.created_by)
    return row


def update_schedule(db: Session, schedule_id: int, patch: ScheduleUpdate) -> Schedule:
    sched = require_schedule(db, schedule_id)
    _ensure_draft(sched, "edit schedule")

    data = patch.model_dump(exclude_unset=True, exclude_none=True)
    new_start = data.get("start_date", sched.start_date)
    new_end = data.get("end_date", sched.end_date)
    _validate_window(new_start, new_end)

    if "name" in data:
        name = data["name"].strip()
        if not name:
            raise ValidationError("name is required")
        if is_duplicate_name(db, department_id=sched.department_id, name=name, exclude_id=sched.id):
            logger.info("schedule name %r already taken in department %s", name, sched.department_id)
            raise DuplicateName(f'A schedule with the name "{name}" already exists in this department')
        sched.name = name
        sched.name_key = name_key(name)

    if (new_start, new_end) != (sched.start_date, sched.end_date):
        # keep every assignment inside the schedule window
        shift_ids = [s.id for s in sched.shifts]
        if shift_ids:
            removed = db.execute(
                delete(ShiftAssignment).where(
                    ShiftAssignment.shift_id.in_(shift_ids),
                    or_(ShiftAssignment.assignment_date < new_start, ShiftAssignment.assignment_date > new_end),
                )
            ).rowcount
            if removed:
                logger.info("schedule %s window change dropped %s assignments", sched.id, removed)
            staffing_cache.invalidate_shifts(shift_ids)
        sched.start_date = new_start
        sched.end_date = new_end

    _commit_or_duplicate_name(db, department_id=sched.department_id, name=sched.name, exclude_id=sched.id)
    db.refresh(sched)
    return sched


def replace_shifts(
    db: Session,
    schedule_id: int,
    shifts: Sequence[ShiftTemplate],
    *,
    shift_count: Optional[int] = None,
    ) -> Schedule:
    """Swap the whole shift template of a draft schedule; old shifts and their assignments go."""
    sched = require_schedule(db, schedule_id)
    _ensure_draft(sched, "change shifts")
    templates = _resolve_templates(shifts, shift_count)

    old_ids = [s.id for s in sched.shifts]
    sched.shifts.clear()
    # flush deletes first so the (schedule_id, shift_order) key is free again
    db.flush()
    sched.shifts.extend(_build_shifts(templates))
    sched.shift_count = len(templates)
    db.commit()
    staffing_cache.invalidate_shifts(old_ids)
    db.refresh(sched)
    logger.info("schedule %s shift template replaced (%s shifts)", sched.id, sched.shift_count)
    return sched


def publish_schedule(db: Session, schedule_id: int) -> Schedule:
    """
    Move a draft schedule to published.
    - already published: returned unchanged
    - archived: refused
    - refused while any shift has no staffing target, or there are no shifts
    """
    sched = require_schedule(db, schedule_id)
    if sched.status == ScheduleStatus.published:
        return sched
    if sched.status == ScheduleStatus.archived:
        raise ScheduleLocked("cannot publish an archived schedule")

    if not sched.shifts:
        raise ValidationError("cannot publish a schedule without shifts")
    understaffed = [s.name for s in sched.shifts if s.required_staff < 1]
    if understaffed:
        raise ValidationError(
            "every shift needs required_staff of at least 1",
            payload={"shifts": understaffed},
        )
    if sched.shift_count != len(sched.shifts):
        raise ValidationError("shift_count does not match the number of shifts")

    sched.status = ScheduleStatus.published
    sched.published_at = _now()
    db.commit()
    db.refresh(sched)
    logger.info("schedule %s published", sched.id)
    return sched


def delete_schedule(db: Session, schedule_id: int) -> int:
    """Delete in any status. Shifts and assignments cascade; returns how many assignments went with it."""
    sched = require_schedule(db, schedule_id)
    shift_ids = [s.id for s in sched.shifts]
    removed = 0
    if shift_ids:
        removed = db.scalar(
            select(func.count(ShiftAssignment.id)).where(ShiftAssignment.shift_id.in_(shift_ids))
        ) or 0
    status = sched.status
    db.delete(sched)
    db.commit()
    staffing_cache.invalidate_shifts(shift_ids)
    logger.info("schedule %s (%s) deleted with %s assignments", schedule_id, status.value, removed)
    return removed


# -------- archival (driven by an external process, not routed) --------

def archive_schedule(db: Session, schedule_id: int) -> Schedule:
    sched = require_schedule(db, schedule_id)
    if sched.status == ScheduleStatus.archived:
        return sched
    sched.status = ScheduleStatus.archived
    sched.archived_at = _now()
    db.commit()
    db.refresh(sched)
    logger.info("schedule %s archived", sched.id)
    return sched


def archive_ended_schedules(db: Session, *, today: date) -> int:
    stmt = select(Schedule).where(
        Schedule.status == ScheduleStatus.published,
        Schedule.end_date < today,
    )
    rows = list(db.scalars(stmt))
    stamp = _now()
    for row in rows:
        row.status = ScheduleStatus.archived
        row.archived_at = stamp
    db.commit()
    if rows:
        logger.info("archived %s schedules that ended before %s", len(rows), today)
    return len(rows)
