"""create scheduling tables

Revision ID: 3c1e9a7d5b20
Revises:
Create Date: 2026-10-17 09:12:44.318206

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1e9a7d5b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

schedule_status = sa.Enum("draft", "published", "archived", name="schedule_status")
leave_status = sa.Enum(
    "draft", "pending", "department_pending", "facility_pending", "workspace_pending",
    "approved", "rejected", "cancelled",
    name="leave_status",
)


def upgrade():
    op.create_table(
        "schedules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("name_key", sa.String(length=200), nullable=False),
        sa.Column("department_id", sa.Integer(), nullable=False),
        sa.Column("facility_id", sa.Integer(), nullable=True),
        sa.Column("workspace_id", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("shift_count", sa.Integer(), nullable=False),
        sa.Column("status", schedule_status, nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("department_id", "name_key", name="uq_schedule_department_name"),
        sa.CheckConstraint("start_date <= end_date", name="ck_schedule_date_order"),
        sa.CheckConstraint("shift_count >= 0 AND shift_count <= 3", name="ck_schedule_shift_count"),
    )
    op.create_index("ix_schedules_department_id", "schedules", ["department_id"])
    op.create_index("ix_schedules_facility_id", "schedules", ["facility_id"])
    op.create_index("ix_schedules_workspace_id", "schedules", ["workspace_id"])
    op.create_index("ix_schedules_created_by", "schedules", ["created_by"])
    op.create_index("ix_schedules_department_window", "schedules", ["department_id", "start_date", "end_date"])

    op.create_table(
        "shifts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("shift_order", sa.Integer(), nullable=False),
        sa.Column("required_staff", sa.Integer(), nullable=False),
        sa.Column("color", sa.String(length=16), nullable=False),
        sa.UniqueConstraint("schedule_id", "shift_order", name="uq_shift_schedule_order"),
        sa.CheckConstraint("required_staff >= 0", name="ck_shift_required_staff"),
        sa.CheckConstraint("shift_order >= 1", name="ck_shift_order_positive"),
    )
    op.create_index("ix_shifts_schedule_id", "shifts", ["schedule_id"])

    op.create_table(
        "shift_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("shift_id", sa.Integer(), sa.ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("staff_id", sa.Integer(), nullable=False),
        sa.Column("assignment_date", sa.Date(), nullable=False),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.Column("assigned_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("shift_id", "staff_id", "assignment_date", name="uq_assignment_staff_shift_date"),
        sa.UniqueConstraint("shift_id", "assignment_date", "slot", name="uq_assignment_shift_date_slot"),
        sa.CheckConstraint("slot >= 1", name="ck_assignment_slot_positive"),
    )
    op.create_index("ix_shift_assignments_shift_id", "shift_assignments", ["shift_id"])
    op.create_index("ix_shift_assignments_staff_id", "shift_assignments", ["staff_id"])
    op.create_index("ix_assignments_shift_date", "shift_assignments", ["shift_id", "assignment_date"])
    op.create_index("ix_assignments_staff_date", "shift_assignments", ["staff_id", "assignment_date"])

    # read-only mirrors fed by the identity and leave subsystems
    op.create_table(
        "department_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("department_id", sa.Integer(), nullable=False),
        sa.Column("staff_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.UniqueConstraint("department_id", "staff_id", "role", name="uq_department_member_role"),
    )
    op.create_index("ix_department_members_department_id", "department_members", ["department_id"])
    op.create_index("ix_department_members_staff_id", "department_members", ["staff_id"])

    op.create_table(
        "leave_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("staff_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", leave_status, nullable=False),
    )
    op.create_index("ix_leave_records_staff_id", "leave_records", ["staff_id"])
    op.create_index("ix_leave_records_window", "leave_records", ["start_date", "end_date"])


def downgrade():
    op.drop_table("leave_records")
    op.drop_table("department_members")
    op.drop_table("shift_assignments")
    op.drop_table("shifts")
    op.drop_table("schedules")
    leave_status.drop(op.get_bind(), checkfirst=True)
    schedule_status.drop(op.get_bind(), checkfirst=True)
