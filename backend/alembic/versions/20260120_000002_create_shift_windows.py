from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20260120_000002"
down_revision = "20260120_000001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "shift_windows",
        sa.Column("name", sa.String(length=32), primary_key=True),
        sa.Column("start_time", sa.String(length=8), nullable=False),
        sa.Column("end_time", sa.String(length=8), nullable=False),
        sa.Column("wraps_midnight", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("updated_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("deleted_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_shift_windows_active", "shift_windows", ["active"])
    op.create_index("ix_shift_windows_start_time", "shift_windows", ["start_time"])
    op.create_index("ix_shift_windows_deleted_at", "shift_windows", ["deleted_at"])

    op.create_table(
        "shift_window_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("window_name", sa.String(length=32), sa.ForeignKey("shift_windows.name"), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("actor_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("changes", sa.JSON(), nullable=True),
    )
    op.create_index("ix_shift_window_events_window_name", "shift_window_events", ["window_name"])


def downgrade() -> None:
    op.drop_index("ix_shift_window_events_window_name", table_name="shift_window_events")
    op.drop_table("shift_window_events")
    op.drop_index("ix_shift_windows_deleted_at", table_name="shift_windows")
    op.drop_index("ix_shift_windows_start_time", table_name="shift_windows")
    op.drop_index("ix_shift_windows_active", table_name="shift_windows")
    op.drop_table("shift_windows")
