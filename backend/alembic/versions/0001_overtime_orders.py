"""overtime orders, day-off roster, sequence counters and audit log

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _trail(action: str) -> list[sa.Column]:
    return [
        sa.Column(f"{action}_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(f"{action}_by", sa.String(length=255), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "overtime_order",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("internal_id", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("department", sa.String(length=100), nullable=False),
        sa.Column("quarry", sa.String(length=100), nullable=True),
        sa.Column("number_of_employees", sa.Integer(), nullable=False),
        sa.Column("number_of_shifts", sa.Integer(), nullable=False),
        sa.Column("responsible_employee", sa.String(length=255), nullable=False),
        sa.Column("from_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("to_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("note", sa.String(), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("requested_by", sa.String(length=255), nullable=False),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("edited_by", sa.String(length=255), nullable=False),
        *_trail("pre_approved"),
        *_trail("approved"),
        *_trail("completed"),
        *_trail("canceled"),
        *_trail("accounted"),
        *_trail("reactivated"),
        sa.Column("has_attachment", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("attachment_filename", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_overtime_order_internal_id", "overtime_order", ["internal_id"], unique=True)
    op.create_index("ix_overtime_order_status", "overtime_order", ["status"])
    op.create_index("ix_overtime_order_requested_at", "overtime_order", ["requested_at"])
    op.create_index("ix_overtime_order_requested_by", "overtime_order", ["requested_by"])
    op.create_index("ix_overtime_order_responsible_employee", "overtime_order", ["responsible_employee"])
    op.create_index("ix_overtime_order_department_status", "overtime_order", ["department", "status"])

    op.create_table(
        "scheduled_day_off",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("order_id", sa.Uuid(), sa.ForeignKey("overtime_order.id", ondelete="CASCADE"), nullable=False),
        sa.Column("identifier", sa.String(length=64), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("pin", sa.String(length=32), nullable=True),
        sa.Column("agreed_receiving_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("note", sa.String(), nullable=True),
        sa.UniqueConstraint("order_id", "identifier", name="uq_day_off_order_identifier"),
    )
    op.create_index("ix_scheduled_day_off_order_id", "scheduled_day_off", ["order_id"])

    op.create_table(
        "sequence_counter",
        sa.Column("name", sa.String(length=100), primary_key=True),
        sa.Column("year", sa.Integer(), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor", sa.String(length=255), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index("ix_audit_log_actor", "audit_log", ["actor"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("sequence_counter")
    op.drop_index("ix_scheduled_day_off_order_id", table_name="scheduled_day_off")
    op.drop_table("scheduled_day_off")
    op.drop_table("overtime_order")
