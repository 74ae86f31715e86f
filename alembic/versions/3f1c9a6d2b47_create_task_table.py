"""create_task_table

Revision ID: 3f1c9a6d2b47
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1c9a6d2b47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Placeholder for a missing encore date, read back as the premiere date
NO_ENCORE = "1000-01-01 00:00:00"


def upgrade() -> None:
    """Create the task table."""
    op.create_table(
        "task",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description_short", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("description_long", sa.Text(), nullable=False, server_default=""),
        sa.Column("object_type", sa.String(length=32), nullable=False),
        sa.Column("premiered_on", sa.DateTime(), nullable=False),
        sa.Column("encored_on", sa.DateTime(), nullable=True, server_default=NO_ENCORE),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("tags", sa.String(length=255), nullable=True),
        sa.Column("topics", sa.String(length=255), nullable=True),
        sa.Column("base_url", sa.String(length=255), nullable=False),
        sa.Column("video_file", sa.String(length=255), nullable=False),
        sa.Column("image_file", sa.String(length=255), nullable=False),
        sa.Column("caption_file", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("show_slug", sa.String(length=255), nullable=False),
        sa.Column("parent_title", sa.String(length=255), nullable=False),
        sa.Column("parent_slug", sa.String(length=255), nullable=False),
        sa.Column("parent_description_short", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("parent_description_long", sa.Text(), nullable=False, server_default=""),
        sa.Column("episode_number", sa.Integer(), nullable=True),
        sa.Column("parent_premiered_on", sa.DateTime(), nullable=False),
        sa.Column("parent_encored_on", sa.DateTime(), nullable=True, server_default=NO_ENCORE),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("pbs_content_id", sa.String(length=255), nullable=True),
        sa.Column("tp_media_id", sa.BigInteger(), nullable=True),
        sa.Column("retries", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("lease_until", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_task_slug"), "task", ["slug"], unique=False)
    op.create_index(op.f("ix_task_status"), "task", ["status"], unique=False)


def downgrade() -> None:
    """Drop the task table."""
    op.drop_index(op.f("ix_task_status"), table_name="task")
    op.drop_index(op.f("ix_task_slug"), table_name="task")
    op.drop_table("task")
