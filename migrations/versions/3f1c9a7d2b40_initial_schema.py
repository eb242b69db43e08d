"""Initial schema: users, projects, custom fields, issues and time entries.

Revision ID: 3f1c9a7d2b40
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3f1c9a7d2b40"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("identifier", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_projects_identifier", "projects", ["identifier"], unique=True)

    op.create_table(
        "custom_fields",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("field_format", sa.String(length=30), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("possible_values", sa.JSON(), nullable=False),
        sa.Column("is_for_all", sa.Boolean(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_custom_fields_name", "custom_fields", ["name"])

    op.create_table(
        "custom_fields_projects",
        sa.Column(
            "custom_field_id",
            sa.Integer(),
            sa.ForeignKey("custom_fields.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "project_id",
            sa.Integer(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "custom_values",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "project_id",
            sa.Integer(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "custom_field_id",
            sa.Integer(),
            sa.ForeignKey("custom_fields.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("value", sa.Text(), nullable=True),
        sa.UniqueConstraint(
            "project_id", "custom_field_id", name="uq_custom_value_project_field"
        ),
    )
    op.create_index("ix_custom_values_project_id", "custom_values", ["project_id"])

    op.create_table(
        "issues",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "project_id",
            sa.Integer(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("estimated_hours", sa.Float(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_issues_project_id", "issues", ["project_id"])

    op.create_table(
        "time_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "issue_id",
            sa.Integer(),
            sa.ForeignKey("issues.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("hours", sa.Float(), nullable=False),
        sa.Column("spent_on", sa.Date(), nullable=False),
        sa.Column("comments", sa.String(length=1024), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_time_entries_issue_id", "time_entries", ["issue_id"])


def downgrade() -> None:
    op.drop_index("ix_time_entries_issue_id", table_name="time_entries")
    op.drop_table("time_entries")
    op.drop_index("ix_issues_project_id", table_name="issues")
    op.drop_table("issues")
    op.drop_index("ix_custom_values_project_id", table_name="custom_values")
    op.drop_table("custom_values")
    op.drop_table("custom_fields_projects")
    op.drop_index("ix_custom_fields_name", table_name="custom_fields")
    op.drop_table("custom_fields")
    op.drop_index("ix_projects_identifier", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
