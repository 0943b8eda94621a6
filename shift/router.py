from typing import Optional
from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy.orm import Session
from core.database import get_db
from authz.deps import get_current_actor
from .schemas import ShiftSchema
from shift import service

shift_router = APIRouter(prefix="/shifts", tags=["Shifts"])

# Shift templates are written through PUT /schedules/{id}/shifts
@shift_router.get("", response_model=list[ShiftSchema])
def list_shifts(
    schedule_id: Optional[int] = Query(None, description="Filter by schedule"),
    department_id: Optional[int] = Query(None, description="Filter by owning department"),
    db: Session = Depends(get_db),
    actor = Depends(get_current_actor),
):
    return service.get_shifts(db, schedule_id=schedule_id, department_id=department_id)

@shift_router.get("/{shift_id}", response_model=ShiftSchema)
def get_shift(shift_id: int, db: Session = Depends(get_db), actor = Depends(get_current_actor)):
    obj = service.get_shift(db, shift_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Shift not found")
    return obj
