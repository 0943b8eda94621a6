from datetime import time
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

MAX_SHIFTS_PER_SCHEDULE = 3

DEFAULT_SHIFT_NAMES = ["Morning Shift", "Afternoon Shift", "Night Shift"]
DEFAULT_SHIFT_COLORS = ["#3b82f6", "#10b981", "#f59e0b"]
DEFAULT_SHIFT_TIMES = [(time(6, 0), time(14, 0)), (time(14, 0), time(22, 0)), (time(22, 0), time(6, 0))]


class ShiftSchema(BaseModel):
    id: int
    schedule_id: int
    name: str
    start_time: time
    end_time: time
    shift_order: int
    required_staff: int
    color: str
    is_overnight: bool = False
    duration_minutes: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ShiftTemplate(BaseModel):
    """One slot of a schedule's shift template. end_time before start_time wraps past midnight."""

    name: str = Field(..., min_length=1, max_length=100)
    start_time: time
    end_time: time
    # 0 is allowed while drafting; publishing requires at least 1
    required_staff: int = Field(1, ge=0)
    color: str = Field("#3b82f6", pattern=r"^#[0-9a-fA-F]{6}$")

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def non_empty_window(self):
        if self.start_time == self.end_time:
            raise ValueError("start_time and end_time must differ")
        return self


def default_shift_templates(count: int) -> list[ShiftTemplate]:
    """Morning / afternoon / night defaults for a new schedule with `count` shifts."""
    out = []
    for i in range(count):
        start, end = DEFAULT_SHIFT_TIMES[i]
        out.append(
            ShiftTemplate(
                name=DEFAULT_SHIFT_NAMES[i],
                start_time=start,
                end_time=end,
                required_staff=1,
                color=DEFAULT_SHIFT_COLORS[i],
            )
        )
    return out


class ShiftReplacePayload(BaseModel):
    shift_count: Optional[int] = Field(None, ge=1, le=MAX_SHIFTS_PER_SCHEDULE)
    shifts: list[ShiftTemplate] = Field(..., min_length=1, max_length=MAX_SHIFTS_PER_SCHEDULE)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def count_matches(self):
        if self.shift_count is not None and self.shift_count != len(self.shifts):
            raise ValueError("shift_count does not match the number of shifts")
        return self
