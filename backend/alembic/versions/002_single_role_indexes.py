"""Partial unique indexes — at most one owner and one manager row per project.

Revision ID: 002_single_role_indexes
Revises: 001_collab_schema
Create Date: 2026-10-18

Enforced in MembershipStore as well; the indexes reject whatever a
concurrent transaction slips past the application check.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_single_role_indexes"
down_revision: Union[str, None] = "001_collab_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_index(
        "ux_project_members_single_manager", "project_members", ["project_id"],
        unique=True, postgresql_where=sa.text("role = 'manager'"),
    )
    op.create_index(
        "ux_project_members_single_owner", "project_members", ["project_id"],
        unique=True, postgresql_where=sa.text("role = 'owner'"),
    )


def downgrade() -> None:
    op.drop_index("ux_project_members_single_owner", table_name="project_members")
    op.drop_index("ux_project_members_single_manager", table_name="project_members")
