"""
Read-only staffing projections.

`daily_staffing` merges every draft or published schedule of a department
into per-day shift summaries for a date window. Published schedules show
every shift-day, so gaps are visible; drafts only show shift-days that
already have someone on them. Nothing in this module writes.
"""
from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterator, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from assignment.models import ShiftAssignment
from core.errors import ValidationError
from schedule.models import Schedule, ScheduleStatus
from schedule.service import get_schedules, require_schedule
from shift.models import Shift
from .cache import staffing_cache

logger = logging.getLogger(__name__)

CALENDAR_STATUSES = (ScheduleStatus.published, ScheduleStatus.draft)


@dataclass
class ShiftDayStatus:
    shift: Shift
    schedule_id: int
    on_date: date
    assigned_count: int
    required_count: int
    assignees: list[ShiftAssignment] = field(default_factory=list)

    @property
    def understaffed(self) -> bool:
        return self.assigned_count < self.required_count


@dataclass
class ShiftCount:
    shift: Shift
    assigned_count: int
    # per-day requirement, or that times the number of days for a whole-window overview
    required_count: int


@dataclass
class ScheduleOverview:
    schedule: Schedule
    on_date: Optional[date]
    shifts: list[ShiftCount]


def _days(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def daily_staffing(db: Session, department_id: int, start: date, end: date) -> dict[date, list[ShiftDayStatus]]:
    if start > end:
        raise ValidationError("start must be on or before end")

    schedules = get_schedules(
        db,
        department_id=department_id,
        statuses=CALENDAR_STATUSES,
        overlaps_start=start,
        overlaps_end=end,
    )
    if not schedules:
        return {}

    shift_ids = [s.id for sched in schedules for s in sched.shifts]
    grouped: dict[tuple[int, date], list[ShiftAssignment]] = defaultdict(list)
    if shift_ids:
        rows = db.scalars(
            select(ShiftAssignment)
            .where(
                ShiftAssignment.shift_id.in_(shift_ids),
                ShiftAssignment.assignment_date >= start,
                ShiftAssignment.assignment_date <= end,
            )
            .order_by(ShiftAssignment.slot)
        )
        for row in rows:
            grouped[(row.shift_id, row.assignment_date)].append(row)

    out: dict[date, list[ShiftDayStatus]] = defaultdict(list)
    for sched in sorted(schedules, key=lambda s: (s.start_date, s.id)):
        first = max(start, sched.start_date)
        last = min(end, sched.end_date)
        published = sched.status == ScheduleStatus.published
        for day in _days(first, last):
            for shift in sched.shifts:
                assignees = grouped.get((shift.id, day), [])
                if not assignees and not published:
                    continue
                out[day].append(
                    ShiftDayStatus(
                        shift=shift,
                        schedule_id=sched.id,
                        on_date=day,
                        assigned_count=len(assignees),
                        required_count=shift.required_staff,
                        assignees=list(assignees),
                    )
                )
    return {day: out[day] for day in sorted(out)}


def assigned_count(db: Session, shift_id: int, on_date: date) -> int:
    """Cached read of how many people are on a shift-date."""
    cached = staffing_cache.get(shift_id, on_date)
    if cached is not None:
        return cached
    # taken before the query so an assign committed meanwhile wins over this read
    generation = staffing_cache.generation()
    count = db.scalar(
        select(func.count(ShiftAssignment.id)).where(
            ShiftAssignment.shift_id == shift_id,
            ShiftAssignment.assignment_date == on_date,
        )
    ) or 0
    staffing_cache.put(shift_id, on_date, count, generation=generation)
    return count


def schedule_overview(db: Session, schedule_id: int, on_date: Optional[date] = None) -> ScheduleOverview:
    """Shift list of a schedule with assignment counts, for one date or summed over the whole window."""
    sched = require_schedule(db, schedule_id)
    if on_date is not None:
        if not sched.covers(on_date):
            raise ValidationError("date is outside the schedule window")
        counts = [
            ShiftCount(shift=s, assigned_count=assigned_count(db, s.id, on_date), required_count=s.required_staff)
            for s in sched.shifts
        ]
        return ScheduleOverview(schedule=sched, on_date=on_date, shifts=counts)

    totals = dict(
        db.execute(
            select(ShiftAssignment.shift_id, func.count(ShiftAssignment.id))
            .where(ShiftAssignment.shift_id.in_([s.id for s in sched.shifts]))
            .group_by(ShiftAssignment.shift_id)
        ).all()
    )
    days = (sched.end_date - sched.start_date).days + 1
    counts = [
        ShiftCount(shift=s, assigned_count=totals.get(s.id, 0), required_count=s.required_staff * days)
        for s in sched.shifts
    ]
    return ScheduleOverview(schedule=sched, on_date=None, shifts=counts)
