from __future__ import annotations
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import get_current_actor

from .schema import ShiftDayStatusSchema
from . import service

staffing_router = APIRouter(prefix="/staffing", tags=["Staffing"])


# Per-day staffing of one department over a window
@staffing_router.get("/daily", response_model=dict[date, list[ShiftDayStatusSchema]])
def daily_staffing(
    department_id: int = Query(..., description="Department whose schedules are merged"),
    start: date = Query(..., description="First day, inclusive"),
    end: date = Query(..., description="Last day, inclusive"),
    db: Session = Depends(get_db),
    actor = Depends(get_current_actor),
):
    result = service.daily_staffing(db, department_id, start, end)
    return {
        day: [ShiftDayStatusSchema.model_validate(status) for status in statuses]
        for day, statuses in result.items()
    }

