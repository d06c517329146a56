"""check_in_logs

Revision ID: 8e2b5d41c7a9
Revises: 3c1f0a7d92b4
Create Date: 2026-10-19 14:03:27.915402

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8e2b5d41c7a9'
down_revision: Union[str, Sequence[str], None] = '3c1f0a7d92b4'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "check_in_logs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("check_in_time", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("check_out_time", sa.DateTime(), nullable=True),
        sa.Column("duration_hours", sa.Numeric(5, 2), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("billable_amount", sa.Numeric(15, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    for column in ("id", "user_id", "job_id", "check_in_time"):
        op.create_index(f"ix_check_in_logs_{column}", "check_in_logs", [column], unique=False)

    op.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS uq_check_in_logs_active
        ON check_in_logs(user_id)
        WHERE check_out_time IS NULL AND deleted_at IS NULL;
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP INDEX IF EXISTS uq_check_in_logs_active;")
    op.drop_table("check_in_logs")
