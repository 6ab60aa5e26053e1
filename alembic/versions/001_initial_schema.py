"""Initial schema — jobs, outputs, outcomes and the two mapping tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- Entities --
    op.create_table(
        "jobs",
        sa.Column("job_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("notes", sa.Text, server_default=""),
        sa.Column("business_function_id", sa.String(255), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_done", sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column("impact_value", sa.Float, server_default="0", nullable=False),
        sa.Column("next_task_id", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_jobs_tenant_id", "jobs", ["tenant_id"])

    op.create_table(
        "outputs",
        sa.Column("output_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("unit", sa.String(100), server_default=""),
        sa.Column("beginning_value", sa.Float, server_default="0", nullable=False),
        sa.Column("target_value", sa.Float, nullable=False),
        sa.Column("notes", sa.Text, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_outputs_tenant_id", "outputs", ["tenant_id"])

    op.create_table(
        "outcomes",
        sa.Column("outcome_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("unit", sa.String(100), server_default=""),
        sa.Column("beginning_value", sa.Float, server_default="0", nullable=False),
        sa.Column("current_value", sa.Float, server_default="0", nullable=False),
        sa.Column("target_value", sa.Float, nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("points", sa.Float, server_default="0", nullable=False),
        sa.Column("notes", sa.Text, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_outcomes_tenant_id", "outcomes", ["tenant_id"])

    # -- Mappings (no FKs: a mapping may outlive its entities) --
    op.create_table(
        "job_output_mappings",
        sa.Column("mapping_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("job_id", UUID(as_uuid=True), nullable=False),
        sa.Column("pi_id", UUID(as_uuid=True), nullable=False),
        sa.Column("job_name", sa.String(500), server_default=""),
        sa.Column("pi_name", sa.String(500), server_default=""),
        sa.Column("pi_impact_value", sa.Float, server_default="0", nullable=False),
        sa.Column("pi_target", sa.Float, server_default="0", nullable=False),
        sa.Column("notes", sa.Text, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_job_output_mappings_tenant_id", "job_output_mappings", ["tenant_id"])
    op.create_index("ix_job_output_mappings_job_id", "job_output_mappings", ["job_id"])
    op.create_index("ix_job_output_mappings_pi_id", "job_output_mappings", ["pi_id"])

    op.create_table(
        "output_outcome_mappings",
        sa.Column("mapping_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("pi_id", UUID(as_uuid=True), nullable=False),
        sa.Column("qbo_id", UUID(as_uuid=True), nullable=False),
        sa.Column("pi_name", sa.String(500), server_default=""),
        sa.Column("qbo_name", sa.String(500), server_default=""),
        sa.Column("pi_target", sa.Float, nullable=False),
        sa.Column("qbo_target", sa.Float, nullable=False),
        sa.Column("qbo_impact", sa.Float, nullable=False),
        sa.Column("notes", sa.Text, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("tenant_id", "pi_id", "qbo_id", name="uq_output_outcome_mapping"),
    )
    op.create_index(
        "ix_output_outcome_mappings_tenant_id", "output_outcome_mappings", ["tenant_id"],
    )
    op.create_index("ix_output_outcome_mappings_pi_id", "output_outcome_mappings", ["pi_id"])
    op.create_index("ix_output_outcome_mappings_qbo_id", "output_outcome_mappings", ["qbo_id"])


def downgrade() -> None:
    op.drop_table("output_outcome_mappings")
    op.drop_table("job_output_mappings")
    op.drop_table("outcomes")
    op.drop_table("outputs")
    op.drop_table("jobs")
