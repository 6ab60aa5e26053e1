"""SQLAlchemy ORM table models for Prioriwise.

All 5 tables defined in a single file. Every row is partitioned by
``tenant_id`` (a user or organization id issued by the identity provider).

Categories:
- ENTITIES: Job, Output (PI), Outcome (QBO)
- MAPPINGS: JobOutputMapping, OutputOutcomeMapping (weighted many-to-many
            edges; no FKs, a mapping may outlive the entities it references)

Derived columns (written only by the impact aggregator):
- JobRow.impact_value
- OutcomeRow.points
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.db.session import Base


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class JobRow(Base):
    __tablename__ = "jobs"

    job_id: Mapped[UUID] = mapped_column(primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="")
    business_function_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_done: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    impact_value: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    next_task_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OutputRow(Base):
    """Performance indicator (PI) — a measurable deliverable."""

    __tablename__ = "outputs"

    output_id: Mapped[UUID] = mapped_column(primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    unit: Mapped[str] = mapped_column(String(100), default="")
    beginning_value: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OutcomeRow(Base):
    """Quarterly business objective (QBO)."""

    __tablename__ = "outcomes"

    outcome_id: Mapped[UUID] = mapped_column(primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    unit: Mapped[str] = mapped_column(String(100), default="")
    beginning_value: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    current_value: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    points: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Mappings
# ---------------------------------------------------------------------------


class JobOutputMappingRow(Base):
    """Job → Output edge. Not unique: duplicate edges sum."""

    __tablename__ = "job_output_mappings"

    mapping_id: Mapped[UUID] = mapped_column(primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    job_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    pi_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    job_name: Mapped[str] = mapped_column(String(500), default="")
    pi_name: Mapped[str] = mapped_column(String(500), default="")
    pi_impact_value: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    pi_target: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OutputOutcomeMappingRow(Base):
    """Output → Outcome edge. One edge per (tenant, output, outcome)."""

    __tablename__ = "output_outcome_mappings"
    __table_args__ = (
        UniqueConstraint("tenant_id", "pi_id", "qbo_id", name="uq_output_outcome_mapping"),
    )

    mapping_id: Mapped[UUID] = mapped_column(primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    pi_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    qbo_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    pi_name: Mapped[str] = mapped_column(String(500), default="")
    qbo_name: Mapped[str] = mapped_column(String(500), default="")
    pi_target: Mapped[float] = mapped_column(Float, nullable=False)
    qbo_target: Mapped[float] = mapped_column(Float, nullable=False)
    qbo_impact: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
