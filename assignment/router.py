from __future__ import annotations
from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from core.config_loader import settings
from core.database import get_db
from core.errors import DuplicateAssignment
from authz.context import ActorContext
from authz.deps import get_current_actor, require_supervisor
from roster.service import RosterProvider, get_roster_provider
from vacation.service import VacationOracle, get_vacation_oracle

from .schema import (
    AssignmentSchema,
    AssignResultSchema,
    AssignmentCreatePayload,
    EligibleStaffSchema,
    StaffAssignmentSchema,
    )
from . import service


assignment_router = APIRouter(prefix="/assignments", tags=["Assignments"])


def _with_shift(row) -> StaffAssignmentSchema:
    return StaffAssignmentSchema(
        id=row.id,
        shift_id=row.shift_id,
        staff_id=row.staff_id,
        assignment_date=row.assignment_date,
        assigned_by=row.assigned_by,
        created_at=row.created_at,
        shift_name=row.shift.name,
        start_time=row.shift.start_time,
        end_time=row.shift.end_time,
        color=row.shift.color,
    )

# List assignments. Optional filters.
@assignment_router.get("", response_model=list[AssignmentSchema])
def list_assignments(
    shift_id: Optional[int] = Query(None),
    staff_id: Optional[int] = Query(None),
    on_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
    ):
    return service.get_assignments(db, shift_id=shift_id, staff_id=staff_id, on_date=on_date)

# Who can still be put on a shift-date
@assignment_router.get("/eligible", response_model=EligibleStaffSchema)
def eligible_staff(
    shift_id: int = Query(...),
    on_date: date = Query(...),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
    roster: RosterProvider = Depends(get_roster_provider),
    oracle: VacationOracle = Depends(get_vacation_oracle),
    ):
    result = service.eligible_staff_for(db, shift_id, on_date, roster, oracle)
    return EligibleStaffSchema(
        shift_id=result.shift_id,
        on_date=result.on_date,
        staff_ids=sorted(result.staff_ids),
        excluded=result.excluded,
    )

# A staff member's shifts in a window
@assignment_router.get("/staff/{staff_id}", response_model=list[StaffAssignmentSchema])
def staff_assignments(
    staff_id: int,
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
    ):
    return [_with_shift(r) for r in service.staff_assignments(db, staff_id, start, end)]

# Next few shifts for a staff member
@assignment_router.get("/staff/{staff_id}/upcoming", response_model=list[StaffAssignmentSchema])
def upcoming_assignments(
    staff_id: int,
    today: Optional[date] = Query(None, description="Defaults to the server's current date"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
    ):
    rows = service.upcoming_assignments(
        db, staff_id, today=today or date.today(), limit=settings.UPCOMING_ASSIGNMENTS_LIMIT
    )
    return [_with_shift(r) for r in rows]

# Get single assignment
@assignment_router.get("/{assignment_id}", response_model=AssignmentSchema)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
    ):
    obj = service.get_assignment(db, assignment_id)
    if not obj:
        raise HTTPException(status_code=404, detail="assignment not found")
    return obj

# Assign (supervisor only)
@assignment_router.post("", response_model=AssignResultSchema, status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentCreatePayload,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_supervisor),
    roster: RosterProvider = Depends(get_roster_provider),
    oracle: VacationOracle = Depends(get_vacation_oracle),
    ):
    try:
        return service.assign(
            db,
            actor,
            shift_id=payload.shift_id,
            staff_id=payload.staff_id,
            on_date=payload.assignment_date,
            roster_provider=roster,
            oracle=oracle,
        )
    except DuplicateAssignment as exc:
        # already there: nothing to do, tell the caller instead of failing
        existing = service.get_assignment(db, exc.existing_id) if exc.existing_id else None
        if existing is None:
            raise
        body = AssignResultSchema.model_validate(existing).model_copy(update={"warning": exc.message})
        return JSONResponse(status_code=status.HTTP_200_OK, content=jsonable_encoder(body))

# Unassign (supervisor only)
@assignment_router.delete("/{assignment_id}")
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_supervisor),
    ):
    service.unassign(db, assignment_id)
    return {"message": "assignment deleted"}
