from __future__ import annotations
from datetime import date, datetime, time
from typing import Optional
from pydantic import BaseModel, ConfigDict


class AssignmentSchema(BaseModel):
    id: int
    shift_id: int
    staff_id: int
    assignment_date: date
    assigned_by: Optional[int] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class AssignResultSchema(AssignmentSchema):
    # set when the staff member was already on this shift-date
    warning: Optional[str] = None


class StaffAssignmentSchema(AssignmentSchema):
    """Assignment joined with its shift template, for a staff member's own agenda."""

    shift_name: str
    start_time: time
    end_time: time
    color: str


# PUBLIC payload from clients
class AssignmentCreatePayload(BaseModel):
    shift_id: int
    staff_id: int
    assignment_date: date
    model_config = ConfigDict(extra="forbid")


class EligibleStaffSchema(BaseModel):
    shift_id: int
    on_date: date
    staff_ids: list[int]
    excluded: dict[int, str] = {}
