"""init asset ledger tables

Revision ID: 202610180001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610180001"
down_revision = None
branch_labels = None
depends_on = None

equipment_kind = sa.Enum(
    "LAPTOP",
    "DESKTOP",
    "PRINTER",
    "SWITCH",
    "SERVER",
    "LICENSE",
    "PHONE",
    "IPAD",
    "OTHER",
    name="equipmentkind",
)
asset_status = sa.Enum(
    "SERVICEABLE",
    "UNSERVICEABLE",
    "ASSIGNED",
    "AVAILABLE",
    "UNDER_MAINTENANCE",
    "IN_STORAGE",
    "STOLEN",
    name="assetstatus",
)
maintenance_type = sa.Enum("SCHEDULED", "PREVENTIVE", "CORRECTIVE", "EMERGENCY", name="maintenancetype")
maintenance_interval = sa.Enum(
    "MONTHLY",
    "QUARTERLY",
    "BI_ANNUALLY",
    "ANNUALLY",
    "AS_NEEDED",
    name="maintenanceinterval",
)
assignment_status = sa.Enum("ACTIVE", "RETURNED", "OVERDUE", "LOST", "DAMAGED", name="assignmentstatus")


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=True),
        sa.Column("correlation_id", sa.String(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("event_id"),
    )
    op.create_index("ix_events_event_type", "events", ["event_type"])
    op.create_index("ix_events_ts", "events", ["ts"])
    op.create_index("ix_events_actor_id", "events", ["actor_id"])
    op.create_index("ix_events_correlation_id", "events", ["correlation_id"])

    op.create_table(
        "assets",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("equipment", equipment_kind, nullable=False),
        sa.Column("model", sa.String(length=200), nullable=False),
        sa.Column("serial_number", sa.String(length=100), nullable=False),
        sa.Column("asset_tag", sa.String(length=100), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("holder_name", sa.String(length=200), nullable=True),
        sa.Column("status", asset_status, nullable=False),
        sa.Column("last_maintenance_date", sa.Date(), nullable=True),
        sa.Column("next_maintenance_date", sa.Date(), nullable=True),
        sa.Column("detail", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("asset_tag", name="uq_assets_asset_tag"),
    )
    op.create_index("ix_assets_equipment", "assets", ["equipment"])
    op.create_index("ix_assets_serial_number", "assets", ["serial_number"])
    op.create_index("ix_assets_asset_tag", "assets", ["asset_tag"])
    op.create_index("ix_assets_department", "assets", ["department"])
    op.create_index("ix_assets_holder_name", "assets", ["holder_name"])
    op.create_index("ix_assets_status", "assets", ["status"])
    op.create_index("ix_assets_next_maintenance_date", "assets", ["next_maintenance_date"])
    op.create_index("ix_assets_created_at", "assets", ["created_at"])
    op.create_index("ix_assets_updated_at", "assets", ["updated_at"])

    op.create_table(
        "custody_intervals",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("asset_id", sa.String(), nullable=False),
        sa.Column("holder_name", sa.String(length=200), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("from_date", sa.Date(), nullable=False),
        sa.Column("to_date", sa.Date(), nullable=True),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["asset_id"], ["assets.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_custody_intervals_asset_id", "custody_intervals", ["asset_id"])
    op.create_index("ix_custody_intervals_created_at", "custody_intervals", ["created_at"])
    op.create_index("ix_custody_intervals_asset_from", "custody_intervals", ["asset_id", "from_date"])
    op.create_index(
        "uq_custody_intervals_open_per_asset",
        "custody_intervals",
        ["asset_id"],
        unique=True,
        postgresql_where=sa.text("to_date IS NULL"),
        sqlite_where=sa.text("to_date IS NULL"),
    )

    op.create_table(
        "maintenance_records",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("asset_id", sa.String(), nullable=False),
        sa.Column("maintenance_type", maintenance_type, nullable=False),
        sa.Column("technician_name", sa.String(length=200), nullable=False),
        sa.Column("technician_id", sa.String(), nullable=True),
        sa.Column("date_performed", sa.Date(), nullable=False),
        sa.Column("next_maintenance_date", sa.Date(), nullable=True),
        sa.Column("maintenance_interval", maintenance_interval, nullable=True),
        sa.Column("issues_found", sa.Boolean(), nullable=False),
        sa.Column("issues_description", sa.String(), nullable=True),
        sa.Column("parts_replaced", sa.String(), nullable=True),
        sa.Column("software_updated", sa.String(), nullable=True),
        sa.Column("time_spent", sa.Float(), nullable=True),
        sa.Column("followup_required", sa.Boolean(), nullable=False),
        sa.Column("additional_comments", sa.String(), nullable=True),
        sa.Column("inspection", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["asset_id"], ["assets.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_maintenance_records_asset_id", "maintenance_records", ["asset_id"])
    op.create_index("ix_maintenance_records_maintenance_type", "maintenance_records", ["maintenance_type"])
    op.create_index("ix_maintenance_records_technician_id", "maintenance_records", ["technician_id"])
    op.create_index("ix_maintenance_records_date_performed", "maintenance_records", ["date_performed"])
    op.create_index(
        "ix_maintenance_records_next_maintenance_date",
        "maintenance_records",
        ["next_maintenance_date"],
    )
    op.create_index("ix_maintenance_records_created_at", "maintenance_records", ["created_at"])
    op.create_index("ix_maintenance_records_updated_at", "maintenance_records", ["updated_at"])
    op.create_index(
        "ix_maintenance_records_asset_performed",
        "maintenance_records",
        ["asset_id", "date_performed"],
    )

    op.create_table(
        "personnel",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("designation", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_personnel_email"),
    )
    op.create_index("ix_personnel_full_name", "personnel", ["full_name"])
    op.create_index("ix_personnel_is_active", "personnel", ["is_active"])
    op.create_index("ix_personnel_created_at", "personnel", ["created_at"])

    op.create_table(
        "asset_assignments",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("asset_id", sa.String(), nullable=False),
        sa.Column("assigned_to", sa.String(), nullable=False),
        sa.Column("assigned_by", sa.String(length=200), nullable=False),
        sa.Column("assignment_date", sa.Date(), nullable=False),
        sa.Column("expected_return_date", sa.Date(), nullable=True),
        sa.Column("actual_return_date", sa.Date(), nullable=True),
        sa.Column("status", assignment_status, nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["asset_id"], ["assets.id"]),
        sa.ForeignKeyConstraint(["assigned_to"], ["personnel.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_asset_assignments_asset_id", "asset_assignments", ["asset_id"])
    op.create_index("ix_asset_assignments_assigned_to", "asset_assignments", ["assigned_to"])
    op.create_index("ix_asset_assignments_assignment_date", "asset_assignments", ["assignment_date"])
    op.create_index(
        "ix_asset_assignments_expected_return_date",
        "asset_assignments",
        ["expected_return_date"],
    )
    op.create_index("ix_asset_assignments_status", "asset_assignments", ["status"])
    op.create_index("ix_asset_assignments_created_at", "asset_assignments", ["created_at"])
    op.create_index("ix_asset_assignments_updated_at", "asset_assignments", ["updated_at"])


def downgrade() -> None:
    op.drop_table("asset_assignments")
    op.drop_table("personnel")
    op.drop_table("maintenance_records")
    op.drop_index("uq_custody_intervals_open_per_asset", table_name="custody_intervals")
    op.drop_table("custody_intervals")
    op.drop_table("assets")
    op.drop_table("events")

    bind = op.get_bind()
    for enum_type in (assignment_status, maintenance_interval, maintenance_type, asset_status, equipment_kind):
        enum_type.drop(bind, checkfirst=True)
