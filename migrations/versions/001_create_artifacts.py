"""Create artifacts table

Revision ID: 001_create_artifacts
Revises:
Create Date: 2026-10-19

One row per materialized commit bundle, keyed by (project_id, commit_hash).
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001_create_artifacts"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "artifacts",
        sa.Column("project_id", sa.String(length=36), primary_key=True),
        sa.Column("commit_hash", sa.String(length=40), primary_key=True),
        sa.Column("project_name", sa.String(length=255), nullable=False),
        sa.Column("working_tree_path", sa.Text, nullable=False),
        sa.Column("bundle_path", sa.Text, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_index(
        "ix_artifacts_project_created",
        "artifacts",
        ["project_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_artifacts_project_created", table_name="artifacts")
    op.drop_table("artifacts")
