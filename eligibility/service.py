"""
Eligibility resolution for a single shift-date.

Eligible staff are roster members holding an assignable role who are neither
already on the shift that day nor away on blocking leave. The result is an
unordered set; choosing among it is left to the supervisor.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from assignment.models import ShiftAssignment
from roster.service import RosterEntry, RosterProvider, assignable_staff
from shift.models import Shift
from vacation.service import LeaveConflict, VacationOracle, is_blocking

logger = logging.getLogger(__name__)

ALREADY_ASSIGNED = "already_assigned"
ON_LEAVE = "on_leave"
NOT_ON_ROSTER = "not_on_roster"


@dataclass(frozen=True)
class EligibleStaff:
    shift_id: int
    on_date: date
    staff_ids: frozenset[int]
    # roster members left out, with the reason they were dropped
    excluded: dict[int, str] = field(default_factory=dict)

    def __contains__(self, staff_id: int) -> bool:
        return staff_id in self.staff_ids

    def reason_for(self, staff_id: int) -> Optional[str]:
        if staff_id in self.staff_ids:
            return None
        return self.excluded.get(staff_id, NOT_ON_ROSTER)


def eligible_staff(
    shift: Shift,
    on_date: date,
    roster: Iterable[RosterEntry],
    existing_assignments: Iterable[ShiftAssignment],
    conflicts: Iterable[LeaveConflict],
) -> EligibleStaff:
    candidates = assignable_staff(roster)

    assigned = {
        a.staff_id
        for a in existing_assignments
        if a.shift_id == shift.id and a.assignment_date == on_date
    }
    away = {c.staff_id for c in conflicts if c.covers(on_date) and is_blocking(c.status)}

    excluded: dict[int, str] = {}
    for staff_id in candidates & assigned:
        excluded[staff_id] = ALREADY_ASSIGNED
    for staff_id in (candidates & away) - assigned:
        excluded[staff_id] = ON_LEAVE

    return EligibleStaff(
        shift_id=shift.id,
        on_date=on_date,
        staff_ids=frozenset(candidates - assigned - away),
        excluded=excluded,
    )


def resolve_eligible_staff(
    db: Session,
    shift: Shift,
    on_date: date,
    roster_provider: RosterProvider,
    oracle: VacationOracle,
) -> EligibleStaff:
    """Live lookup of roster, assignments and leave; upstream failures propagate as UpstreamUnavailable."""
    roster = roster_provider.get_department_roster(shift.schedule.department_id)
    conflicts = oracle.get_conflicts(on_date)
    existing = db.scalars(
        select(ShiftAssignment).where(
            ShiftAssignment.shift_id == shift.id,
            ShiftAssignment.assignment_date == on_date,
        )
    )
    result = eligible_staff(shift, on_date, roster, existing, conflicts)
    logger.debug(
        "shift %s on %s: %s eligible, %s excluded",
        shift.id, on_date, len(result.staff_ids), len(result.excluded),
    )
    return result
