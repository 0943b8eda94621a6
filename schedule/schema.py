from __future__ import annotations
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from shift.schemas import ShiftSchema, ShiftTemplate, MAX_SHIFTS_PER_SCHEDULE
from .models import ScheduleStatus


class ScheduleSchema(BaseModel):
    id: int
    name: str
    department_id: int
    facility_id: Optional[int] = None
    workspace_id: Optional[int] = None
    start_date: date
    end_date: date
    shift_count: int
    status: ScheduleStatus
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ScheduleDetailSchema(ScheduleSchema):
    shifts: list[ShiftSchema] = []


class ScheduleCreatePayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    department_id: int
    facility_id: Optional[int] = None
    workspace_id: Optional[int] = None
    start_date: date = Field(..., description="Inclusive first day of the schedule")
    end_date: date = Field(..., description="Inclusive last day of the schedule")
    shift_count: Optional[int] = Field(None, ge=1, le=MAX_SHIFTS_PER_SCHEDULE)
    shifts: Optional[list[ShiftTemplate]] = Field(
        None, description="If omitted, default morning/afternoon/night templates are used"
    )
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date > self.end_date:
            raise ValueError("start must be on or before end")
        return self


# Internal DTO the service uses
class ScheduleCreate(BaseModel):
    name: str
    department_id: int
    facility_id: Optional[int] = None
    workspace_id: Optional[int] = None
    start_date: date
    end_date: date
    shift_count: Optional[int] = None
    shifts: Optional[list[ShiftTemplate]] = None
    created_by: Optional[int] = None


class ScheduleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    model_config = ConfigDict(extra="forbid")
