from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.database import get_db
from core.errors import UpstreamUnavailable
from .models import DepartmentMember

logger = logging.getLogger(__name__)

# roles that can be put on a shift
ASSIGNABLE_ROLES = frozenset({"staff", "department_head"})


@dataclass(frozen=True)
class RosterEntry:
    staff_id: int
    role: str


class RosterProvider:
    """Source of department membership. The identity subsystem owns the data."""

    def get_department_roster(self, department_id: int) -> list[RosterEntry]:
        raise NotImplementedError


class SqlRosterProvider(RosterProvider):
    def __init__(self, db: Session):
        self.db = db

    def get_department_roster(self, department_id: int) -> list[RosterEntry]:
        stmt = (
            select(DepartmentMember.staff_id, DepartmentMember.role)
            .where(DepartmentMember.department_id == department_id)
            .order_by(DepartmentMember.staff_id)
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("roster lookup failed for department %s: %s", department_id, exc)
            raise UpstreamUnavailable("roster is unavailable, try again later") from exc
        return [RosterEntry(staff_id=r.staff_id, role=r.role) for r in rows]


def assignable_staff(roster: Iterable[RosterEntry]) -> set[int]:
    return {entry.staff_id for entry in roster if entry.role in ASSIGNABLE_ROLES}


def get_roster_provider(db: Session = Depends(get_db)) -> RosterProvider:
    return SqlRosterProvider(db)
