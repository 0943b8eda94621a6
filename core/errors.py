from __future__ import annotations
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


class SchedulingError(Exception):
    """Base for every failure the engine reports to its caller."""

    code = "scheduling_error"
    status_code = 400

    def __init__(self, message: str, *, payload: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}


class ValidationError(SchedulingError):
    code = "validation_error"
    status_code = 422


class ScheduleLocked(ValidationError):
    """Schedule is not in a status that allows the requested change."""

    code = "schedule_locked"


class NotOnRoster(ValidationError):
    code = "not_on_roster"


class OnLeave(ValidationError):
    code = "on_leave"


class DuplicateName(SchedulingError):
    code = "duplicate_name"
    status_code = 409


class CapacityExceeded(SchedulingError):
    code = "capacity_exceeded"
    status_code = 409


class DuplicateAssignment(SchedulingError):
    code = "duplicate_assignment"
    status_code = 409

    def __init__(self, message: str, *, existing_id: Optional[int] = None, payload=None):
        super().__init__(message, payload=payload)
        self.existing_id = existing_id


class AssignmentConflict(SchedulingError):
    """Another assign took the chosen seat first while seats were still free. Safe to retry."""

    code = "assignment_conflict"
    status_code = 409


class NotFound(SchedulingError):
    code = "not_found"
    status_code = 404


class UpstreamUnavailable(SchedulingError):
    code = "upstream_unavailable"
    status_code = 503


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SchedulingError)
    async def _scheduling_error(request: Request, exc: SchedulingError):
        body: dict[str, Any] = {"detail": exc.message, "code": exc.code}
        if exc.payload:
            body.update(exc.payload)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body))
