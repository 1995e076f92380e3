"""Initial pipeline schema: vendors, vehicles, events, sla_rules.

Revision ID: 0001_initial
Revises: None
Create Date: 2025-01-14 09:30:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "vendors",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("contact_email", sa.Text(), nullable=True),
        sa.Column("contact_phone", sa.Text(), nullable=True),
        sa.UniqueConstraint("name", "category"),
    )

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("vin", sa.String(length=17), nullable=False),
        sa.Column("make", sa.Text(), nullable=False),
        sa.Column("model", sa.Text(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("mileage", sa.Integer(), nullable=True),
        sa.Column("acquisition_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("acquisition_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("recon_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recon_done", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recon_vendor_id", sa.Text(), nullable=True),
        sa.Column("photos_done", sa.DateTime(timezone=True), nullable=True),
        sa.Column("photo_vendor_id", sa.Text(), nullable=True),
        sa.Column("photo_quality_score", sa.Numeric(4, 2), nullable=True),
        sa.Column("listing_status", sa.Text(), nullable=False),
        sa.Column("listing_live_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("listing_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("price_strategy", sa.Text(), nullable=True),
        sa.Column("market_comp_index", sa.Numeric(4, 2), nullable=True),
        sa.Column("deal_signed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("funds_received", sa.DateTime(timezone=True), nullable=True),
        sa.Column("holding_cost_per_day", sa.Numeric(8, 2), nullable=True),
        sa.Column("current_stage", sa.Text(), nullable=False),
        sa.Column("days_on_market", sa.Integer(), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["recon_vendor_id"], ["vendors.id"]),
        sa.ForeignKeyConstraint(["photo_vendor_id"], ["vendors.id"]),
        sa.UniqueConstraint("vin"),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("vehicle_id", sa.Text(), nullable=False),
        sa.Column("event_type", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "metadata",
            sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("vehicle_id", "event_type", "timestamp"),
    )

    op.create_table(
        "sla_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("task_type", sa.Text(), nullable=False),
        sa.Column("sla_days", sa.Integer(), nullable=False),
        sa.UniqueConstraint("task_type"),
    )

    op.create_index("idx_vehicles_stage_acquired", "vehicles", ["current_stage", "acquisition_date"])
    op.create_index("idx_events_timestamp", "events", ["timestamp"])
    op.create_index("idx_events_vehicle_time", "events", ["vehicle_id", "timestamp"])


def downgrade() -> None:
    op.drop_index("idx_events_vehicle_time", table_name="events")
    op.drop_index("idx_events_timestamp", table_name="events")
    op.drop_index("idx_vehicles_stage_acquired", table_name="vehicles")
    op.drop_table("sla_rules")
    op.drop_table("events")
    op.drop_table("vehicles")
    op.drop_table("vendors")
