from __future__ import annotations
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from authz.context import ActorContext
from authz.deps import get_current_actor, require_supervisor
from shift.schemas import ShiftReplacePayload
from staffing import service as staffing_service
from staffing.schema import ScheduleOverviewSchema, ShiftCountSchema

from .models import ScheduleStatus
from .schema import ScheduleSchema, ScheduleDetailSchema, ScheduleCreatePayload, ScheduleCreate, ScheduleUpdate
from . import service

schedule_router = APIRouter(prefix="/schedules", tags=["Schedules"])

# List, filtered by department or facility
@schedule_router.get("", response_model=list[ScheduleSchema])
def list_schedules(
    department_id: Optional[int] = Query(None),
    facility_id: Optional[int] = Query(None),
    status_: Optional[list[ScheduleStatus]] = Query(None, alias="status"),
    active_on: Optional[date] = Query(None, description="Return schedules covering this date"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    return service.get_schedules(
        db,
        department_id=department_id,
        facility_id=facility_id,
        statuses=status_,
        active_on=active_on,
    )

# Get by id, with its shift template
@schedule_router.get("/{schedule_id}", response_model=ScheduleDetailSchema)
def get_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    obj = service.get_schedule(db, schedule_id)
    if not obj:
        raise HTTPException(status_code=404, detail="schedule not found")
    return obj

# Create (supervisor only), starts as draft
@schedule_router.post("", response_model=ScheduleDetailSchema, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreatePayload,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_supervisor),
):
    dto = ScheduleCreate(**payload.model_dump(), created_by=actor.user_id)
    return service.create_schedule(db, dto)

# Rename / move dates (draft only)
@schedule_router.patch("/{schedule_id}", response_model=ScheduleDetailSchema)
def update_schedule(
    schedule_id: int,
    payload: ScheduleUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_supervisor),
):
    return service.update_schedule(db, schedule_id, payload)

# Bulk replace the shift template (draft only)
@schedule_router.put("/{schedule_id}/shifts", response_model=ScheduleDetailSchema)
def replace_shifts(
    schedule_id: int,
    payload: ShiftReplacePayload,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_supervisor),
):
    return service.replace_shifts(db, schedule_id, payload.shifts, shift_count=payload.shift_count)

@schedule_router.post("/{schedule_id}/publish", response_model=ScheduleDetailSchema)
def publish_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_supervisor),
):
    return service.publish_schedule(db, schedule_id)

# Delete (supervisor only), cascades to shifts and assignments in any status
@schedule_router.delete("/{schedule_id}")
def delete_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_supervisor),
):
    removed = service.delete_schedule(db, schedule_id)
    return {"message": "schedule deleted", "assignments_removed": removed}

# Shift list with assignment counts
@schedule_router.get("/{schedule_id}/overview", response_model=ScheduleOverviewSchema)
def schedule_overview(
    schedule_id: int,
    on_date: Optional[date] = Query(None, description="Count one day instead of the whole window"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    overview = staffing_service.schedule_overview(db, schedule_id, on_date)
    return ScheduleOverviewSchema(
        schedule_id=overview.schedule.id,
        name=overview.schedule.name,
        status=overview.schedule.status,
        on_date=overview.on_date,
        shifts=[ShiftCountSchema.model_validate(c) for c in overview.shifts],
    )
