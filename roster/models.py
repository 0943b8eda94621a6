from __future__ import annotations
from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from core.database import Base


class DepartmentMember(Base):
    """Read-only mirror of the identity subsystem's department role grants."""

    __tablename__ = "department_members"

    id: Mapped[int] = mapped_column(primary_key=True)
    department_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    staff_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False)

    __table_args__ = (
        UniqueConstraint("department_id", "staff_id", "role", name="uq_department_member_role"),
    )
