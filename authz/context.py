from __future__ import annotations
from enum import Enum

from pydantic import BaseModel, ConfigDict


class ActorRole(str, Enum):
    staff = "staff"
    department_head = "department_head"
    facility_supervisor = "facility_supervisor"
    workspace_supervisor = "workspace_supervisor"
    organization_admin = "organization_admin"
    general_admin = "general_admin"


SUPERVISOR_ROLES = frozenset(
    {
        ActorRole.department_head,
        ActorRole.facility_supervisor,
        ActorRole.workspace_supervisor,
        ActorRole.organization_admin,
        ActorRole.general_admin,
    }
)


class ActorContext(BaseModel):
    """Who is acting. Supplied by the surrounding application, already authenticated."""

    user_id: int
    role: ActorRole
    model_config = ConfigDict(frozen=True)

    @property
    def is_supervisor(self) -> bool:
        return self.role in SUPERVISOR_ROLES
