from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.database import get_db
from core.errors import UpstreamUnavailable
from .models import LeaveRecord, LeaveStatus

logger = logging.getLogger(__name__)

# approved leave, or leave already escalated past the staff member's own tier
BLOCKING_STATUSES = frozenset(
    {
        LeaveStatus.approved,
        LeaveStatus.department_pending,
        LeaveStatus.facility_pending,
        LeaveStatus.workspace_pending,
    }
)


@dataclass(frozen=True)
class LeaveConflict:
    staff_id: int
    start_date: date
    end_date: date
    status: LeaveStatus

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


def is_blocking(status: LeaveStatus | str) -> bool:
    return LeaveStatus(status) in BLOCKING_STATUSES


class VacationOracle:
    """Answers which staff are away on a given day."""

    def get_conflicts(self, on_date: date) -> list[LeaveConflict]:
        raise NotImplementedError


class SqlVacationOracle(VacationOracle):
    def __init__(self, db: Session):
        self.db = db

    def get_conflicts(self, on_date: date) -> list[LeaveConflict]:
        stmt = (
            select(LeaveRecord)
            .where(
                LeaveRecord.start_date <= on_date,
                LeaveRecord.end_date >= on_date,
                LeaveRecord.status.in_(BLOCKING_STATUSES),
            )
            .order_by(LeaveRecord.staff_id, LeaveRecord.start_date)
        )
        try:
            rows = list(self.db.scalars(stmt))
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("leave lookup failed for %s: %s", on_date, exc)
            raise UpstreamUnavailable("leave records are unavailable, try again later") from exc
        return [
            LeaveConflict(staff_id=r.staff_id, start_date=r.start_date, end_date=r.end_date, status=r.status)
            for r in rows
        ]


def get_vacation_oracle(db: Session = Depends(get_db)) -> VacationOracle:
    return SqlVacationOracle(db)
