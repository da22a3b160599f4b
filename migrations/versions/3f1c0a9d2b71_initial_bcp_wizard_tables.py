"""initial_bcp_wizard_tables

Creates the continuity plan tables:
  - bcps            — one row per plan (wizard step 1)
  - processes       — business processes with sites and owners (step 1)
  - bia_data        — business impact analysis (step 2)
  - communications  — notification contacts (step 3)
  - risks           — free-text risk assessment (step 4)

Tables created conditionally (IF NOT EXISTS semantics) to support idempotent
execution against databases that already received these tables via db.create_all()
in a development environment.

Revision ID: 3f1c0a9d2b71
Revises:
Create Date: 2026-10-19 09:12:40.118203
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '3f1c0a9d2b71'
down_revision = None
branch_labels = None
depends_on = None


def _child_columns():
    return [
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("bcp_id", sa.String(length=36), nullable=False),
        sa.Column(
            "position", sa.Integer(), nullable=False, server_default="0",
            comment="Submission order within the plan",
        ),
    ]


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── ContinuityPlan ────────────────────────────────────────────────────
    if "bcps" not in existing:
        op.create_table(
            "bcps",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("business_unit", sa.String(length=200), nullable=True),
            sa.Column("sub_business_unit", sa.String(length=200), nullable=True),
            sa.Column("service_name", sa.String(length=200), nullable=False),
            sa.Column("service_description", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_bcps_created_at", "bcps", ["created_at"])

    # ── Process ───────────────────────────────────────────────────────────
    if "processes" not in existing:
        op.create_table(
            "processes",
            *_child_columns(),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column(
                "sites", sa.Text(), nullable=True,
                comment="JSON list of site names",
            ),
            sa.Column("primary_owner_name", sa.String(length=200), nullable=True),
            sa.Column("primary_owner_email", sa.String(length=255), nullable=True),
            sa.Column("backup_owner_name", sa.String(length=200), nullable=True),
            sa.Column("backup_owner_email", sa.String(length=255), nullable=True),
            sa.ForeignKeyConstraint(["bcp_id"], ["bcps.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("idx_processes_bcp_position", "processes", ["bcp_id", "position"])

    # ── ImpactRecord ──────────────────────────────────────────────────────
    if "bia_data" not in existing:
        op.create_table(
            "bia_data",
            *_child_columns(),
            sa.Column(
                "criticality_unit", sa.String(length=10), nullable=True,
                server_default="Hours", comment="Hours | Days",
            ),
            sa.Column("criticality_value", sa.Integer(), nullable=True),
            sa.Column("headcount_requirement", sa.Integer(), nullable=True),
            sa.Column(
                "dependencies", sa.Text(), nullable=True,
                comment="JSON list of {type, description}",
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["bcp_id"], ["bcps.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("idx_bia_bcp_position", "bia_data", ["bcp_id", "position"])

    # ── CommunicationContact ──────────────────────────────────────────────
    if "communications" not in existing:
        op.create_table(
            "communications",
            *_child_columns(),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column(
                "type", sa.String(length=30), nullable=False,
                server_default="individual",
                comment="individual | group | distribution_list",
            ),
            sa.ForeignKeyConstraint(["bcp_id"], ["bcps.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("idx_communications_bcp_position", "communications", ["bcp_id", "position"])

    # ── RiskNote ──────────────────────────────────────────────────────────
    if "risks" not in existing:
        op.create_table(
            "risks",
            *_child_columns(),
            sa.Column("description", sa.Text(), nullable=True, server_default=""),
            sa.ForeignKeyConstraint(["bcp_id"], ["bcps.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("idx_risks_bcp_position", "risks", ["bcp_id", "position"])


def downgrade():
    op.drop_table("risks")
    op.drop_table("communications")
    op.drop_table("bia_data")
    op.drop_table("processes")
    op.drop_table("bcps")
