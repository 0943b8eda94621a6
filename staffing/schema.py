from __future__ import annotations
from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict

from schedule.models import ScheduleStatus
from shift.schemas import ShiftSchema


class AssigneeSchema(BaseModel):
    id: int
    staff_id: int
    model_config = ConfigDict(from_attributes=True)


class ShiftDayStatusSchema(BaseModel):
    shift: ShiftSchema
    schedule_id: int
    on_date: date
    assigned_count: int
    required_count: int
    understaffed: bool
    assignees: list[AssigneeSchema] = []
    model_config = ConfigDict(from_attributes=True)


class ShiftCountSchema(BaseModel):
    shift: ShiftSchema
    assigned_count: int
    required_count: int
    model_config = ConfigDict(from_attributes=True)


class ScheduleOverviewSchema(BaseModel):
    schedule_id: int
    name: str
    status: ScheduleStatus
    on_date: Optional[date] = None
    shifts: list[ShiftCountSchema]
